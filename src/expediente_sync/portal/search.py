from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional

from ..errors import SearchInputNotFoundError, SelectorTimeoutError
from ..models import ExpedienteRequest, ResultRow, SearchOutcome, Validation
from ..stats import StatsAggregator
from ..util.money import format_mxn
from .acceptance import AcceptanceWorkflow
from .page import PageQuery
from .reconcile import ReconciliationEngine
from .resolver import resolve
from .selectors import PortalSelectors
from .session import BrowserSession


logger = logging.getLogger(__name__)


@dataclass
class RetryContext:
    attempt: int
    max_attempts: int
    delay_s: float

    @property
    def exhausted(self) -> bool:
        return self.attempt >= self.max_attempts


class SearchPipeline:
    """
    Look up one expediente on the pending-services page, reconcile its cost and accept it on a match.
    """

    def __init__(
        self,
        session: BrowserSession,
        stats: StatsAggregator,
        *,
        base_url: str,
        pending_path: str = "/admin/services/pendientes",
        selectors: Optional[PortalSelectors] = None,
        acceptance: Optional[AcceptanceWorkflow] = None,
        reconciler: Optional[ReconciliationEngine] = None,
        max_retries: int = 3,
        retry_delay_s: float = 2.0,
        results_timeout_ms: int = 5_000,
        keystroke_delay_ms: int = 50,
        results_settle_ms: int = 1_500,
        debug_dir: str = "data/debug",
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.session = session
        self.stats = stats
        self.base_url = base_url.rstrip("/")
        self.pending_path = "/" + pending_path.lstrip("/")
        self.selectors = selectors or PortalSelectors()
        self.acceptance = acceptance or AcceptanceWorkflow(session, selectors=self.selectors)
        self.reconciler = reconciler or ReconciliationEngine(stats)
        self.max_retries = max(0, int(max_retries))
        self.retry_delay_s = float(retry_delay_s)
        self.results_timeout_ms = results_timeout_ms
        self.keystroke_delay_ms = keystroke_delay_ms
        self.results_settle_ms = results_settle_ms
        self.debug_dir = debug_dir
        self._sleep = sleep

    @property
    def pending_url(self) -> str:
        return self.base_url + self.pending_path

    def search(self, request: ExpedienteRequest) -> SearchOutcome:
        # Counted once per record; the retry loop below never touches it.
        self.stats.record_reviewed()
        logger.info('Searching expediente "%s" (expected cost: %s)', request.id, format_mxn(request.expected_cost))

        retry = RetryContext(attempt=1, max_attempts=self.max_retries + 1, delay_s=self.retry_delay_s)
        while True:
            try:
                row = self._lookup(request)
                break
            except Exception as e:
                logger.error(
                    "Error searching expediente %s (attempt %d/%d): %s",
                    request.id,
                    retry.attempt,
                    retry.max_attempts,
                    e,
                )
                logger.debug("Search failure details", exc_info=True)
                if retry.exhausted:
                    self._save_debug(f"search_failed_{request.id}")
                    outcome = SearchOutcome(validation=Validation.ERROR_IN_QUERY, stats=self.stats.snapshot())
                    logger.warning("Giving up on expediente %s after %d attempts", request.id, retry.attempt)
                    return outcome
                logger.info("Retrying search (%d/%d)...", retry.attempt, self.max_retries)
                self._sleep(retry.delay_s)
                retry.attempt += 1

        return self._settle(request, row)

    def _lookup(self, request: ExpedienteRequest) -> Optional[ResultRow]:
        page = self.session.page
        self._ensure_on_pending_page(page)

        field = resolve(self.selectors.search_input, page)
        if field is None:
            raise SearchInputNotFoundError("Could not find the expediente search field.")

        # Select whatever is there, then reset it: the field is masked and ignores plain deletes.
        field.click(click_count=3)
        page.wait(300)
        field.clear()

        # One key at a time: the portal's validator drops characters from fast/pasted input.
        for ch in request.id:
            page.type_keys(ch, delay_ms=self.keystroke_delay_ms)
        page.wait(300)

        self._submit(page)

        try:
            page.wait_for_selector(self.selectors.results_ready, timeout_ms=self.results_timeout_ms)
        except SelectorTimeoutError:
            logger.info("Neither a results row nor a no-results marker appeared")

        page.wait(self.results_settle_ms)
        return self._row_from_cells(page.row_cells(self.selectors.result_row))

    def _ensure_on_pending_page(self, page: PageQuery) -> None:
        if self.pending_path in (page.url or ""):
            return
        logger.info("Navigating to the pending services page...")
        self.session.navigate(self.pending_url)
        page.wait(1_500)

    def _submit(self, page: PageQuery) -> None:
        button = resolve(self.selectors.search_button, page)
        if button is None:
            logger.info('No "Buscar" button found; pressing Enter...')
            page.press("Enter")
            return
        try:
            logger.info('"Buscar" button found; clicking...')
            button.click()
        except Exception as e:
            logger.warning("Clicking the search button failed, pressing Enter instead: %s", e)
            page.press("Enter")

    def _row_from_cells(self, cells: Optional[list[str]]) -> Optional[ResultRow]:
        if not cells:
            return None

        s = self.selectors

        def cell(idx: int) -> str:
            return (cells[idx] or "").strip() if idx < len(cells) else ""

        return ResultRow(
            cost=cell(s.cost_column),
            status=cell(s.status_column),
            notes=cell(s.notes_column),
            registration_date=cell(s.registration_date_column),
            service=cell(s.service_column),
            subservice=cell(s.subservice_column),
        )

    def _settle(self, request: ExpedienteRequest, row: Optional[ResultRow]) -> SearchOutcome:
        validation, result = self.reconciler.classify(row, request.expected_cost)

        if validation is Validation.NO_DATA or row is None or result is None:
            logger.info("No cost data for expediente %s", request.id)
            return SearchOutcome(validation=Validation.NO_DATA, stats=self.stats.snapshot())

        if validation is Validation.ACCEPTED and not self._accept(request):
            # "Aceptado" means the portal confirmed it; a failed click-through is reported as such.
            validation = Validation.ERROR_IN_ACCEPTANCE

        outcome = SearchOutcome(
            cost=result.formatted_cost,
            status=row.status,
            notes=row.notes,
            registration_date=row.registration_date,
            service=row.service,
            subservice=row.subservice,
            validation=validation,
            stats=self.stats.snapshot(),
        )
        logger.info(
            "Result for %s: validation=%s cost=%s stats=%s",
            request.id,
            outcome.validation.value,
            outcome.cost,
            outcome.stats.model_dump(),
        )
        return outcome

    def _accept(self, request: ExpedienteRequest) -> bool:
        try:
            return self.acceptance.accept()
        except Exception:
            logger.error("Acceptance failed for expediente %s", request.id, exc_info=True)
            self._save_debug(f"acceptance_failed_{request.id}")
            return False

    def _save_debug(self, name_prefix: str) -> None:
        try:
            self.session.page.save_debug(debug_dir=self.debug_dir, name_prefix=name_prefix)
        except Exception:
            logger.debug("Failed to save debug artifacts.", exc_info=True)
