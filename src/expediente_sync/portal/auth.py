from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from ..errors import LoginFailedError, MissingCredentialsError
from .selectors import PortalSelectors
from .session import BrowserSession, SessionState


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PortalCredentials:
    username: str
    password: str

    def __repr__(self) -> str:
        return f"PortalCredentials(username={self.username!r}, password='***')"


class AuthController:
    """
    Logs the browser session into the provider portal.

    The portal has no dedicated "logged in" marker; the password field disappearing after
    submit is the success signal.
    """

    def __init__(
        self,
        session: BrowserSession,
        *,
        base_url: str,
        selectors: Optional[PortalSelectors] = None,
        typing_delay_ms: int = 30,
        settle_ms: int = 2_000,
        debug_dir: str = "data/debug",
    ) -> None:
        self.session = session
        self.base_url = base_url.rstrip("/")
        self.selectors = selectors or PortalSelectors()
        self.typing_delay_ms = typing_delay_ms
        self.settle_ms = settle_ms
        self.debug_dir = debug_dir

    @property
    def is_authenticated(self) -> bool:
        return self.session.state is SessionState.AUTHENTICATED

    def login(self, creds: Optional[PortalCredentials]) -> bool:
        if creds is None or not (creds.username or "").strip() or not (creds.password or ""):
            raise MissingCredentialsError(
                "Portal credentials are not configured. Set PORTAL_USERNAME and PORTAL_PASSWORD."
            )

        page = self.session.page
        self.session.state = SessionState.AUTHENTICATING
        logger.info("Starting portal login (user=%s)", creds.username)
        try:
            self.session.navigate(self.base_url)

            wait_ms = self.session.default_timeout_ms
            page.wait_for_selector(self.selectors.username_input, timeout_ms=wait_ms)
            page.wait_for_selector(self.selectors.password_input, timeout_ms=wait_ms)

            page.type_text(self.selectors.username_input, creds.username, delay_ms=self.typing_delay_ms)
            page.type_text(self.selectors.password_input, creds.password, delay_ms=self.typing_delay_ms)

            page.click_and_wait_for_navigation(
                self.selectors.login_submit,
                timeout_ms=self.session.navigation_timeout_ms,
            )

            if page.has_selector(self.selectors.password_input):
                raise LoginFailedError("Login failed: the portal is still showing the login form. Check your credentials.")
        except Exception:
            page.save_debug(debug_dir=self.debug_dir, name_prefix="login_failure")
            raise

        self.session.state = SessionState.AUTHENTICATED
        logger.info("Login successful")
        # The portal fires a couple of redirects right after login; let them land.
        page.wait(self.settle_ms)
        return True
