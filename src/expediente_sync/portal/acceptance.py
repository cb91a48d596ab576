from __future__ import annotations

import logging
from typing import Optional

from ..errors import AcceptButtonNotFoundError, ConfirmationNotFoundError
from .selectors import PortalSelectors
from .session import BrowserSession


logger = logging.getLogger(__name__)


class AcceptanceWorkflow:
    """
    Accept the result row currently on screen: row action button, then the dialog's "Aceptar".

    No internal retry. A failure at either step raises; the caller records it on the outcome.
    """

    def __init__(
        self,
        session: BrowserSession,
        *,
        selectors: Optional[PortalSelectors] = None,
        dialog_settle_ms: int = 2_000,
        confirm_settle_ms: int = 3_000,
    ) -> None:
        self.session = session
        self.selectors = selectors or PortalSelectors()
        self.dialog_settle_ms = dialog_settle_ms
        self.confirm_settle_ms = confirm_settle_ms

    def accept(self) -> bool:
        page = self.session.page
        logger.info("Costs match; starting acceptance")

        if not page.click_button_in_column(self.selectors.accept_button_marker, self.selectors.accept_button_column):
            raise AcceptButtonNotFoundError("Accept button not found in the result row.")

        page.wait(self.dialog_settle_ms)

        if not page.click_button_with_text(self.selectors.overlay_container, self.selectors.confirm_text):
            raise ConfirmationNotFoundError("Could not find the confirmation button in the acceptance dialog.")

        logger.info("Acceptance confirmed")
        page.wait(self.confirm_settle_ms)
        return True
