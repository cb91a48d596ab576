from __future__ import annotations

import logging
import time
from decimal import Decimal
from typing import Callable, Optional, Union

from .config import AppConfig, credentials_from_config
from .errors import BrowserNotFoundError, MissingCredentialsError
from .models import ExpedienteRequest, SearchOutcome, StatsSnapshot
from .portal.acceptance import AcceptanceWorkflow
from .portal.auth import AuthController, PortalCredentials
from .portal.browser_locator import locate_browser
from .portal.reconcile import ReconciliationEngine
from .portal.search import SearchPipeline
from .portal.selectors import PortalSelectors
from .portal.session import BrowserSession
from .stats import StatsAggregator


logger = logging.getLogger(__name__)


class ExpedienteService:
    """
    One portal session plus its counters. Built once by the batch driver and used for every row.

    Not safe for concurrent use: records are processed strictly one at a time.
    """

    def __init__(
        self,
        cfg: AppConfig,
        *,
        session: Optional[BrowserSession] = None,
        credentials_provider: Optional[Callable[[], Optional[PortalCredentials]]] = None,
        browser_locator: Callable[[], str] = locate_browser,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.cfg = cfg
        self.session = session or BrowserSession(headless=cfg.browser.headless, slow_mo_ms=cfg.browser.slow_mo_ms)
        self.selectors = PortalSelectors()
        self._stats = StatsAggregator()
        self._credentials_provider = credentials_provider or (lambda: credentials_from_config(cfg))
        self._browser_locator = browser_locator

        self.auth = AuthController(
            self.session,
            base_url=cfg.portal.base_url,
            selectors=self.selectors,
            debug_dir=cfg.debug_dir,
        )
        self.pipeline = SearchPipeline(
            self.session,
            self._stats,
            base_url=cfg.portal.base_url,
            pending_path=cfg.portal.pending_path,
            selectors=self.selectors,
            acceptance=AcceptanceWorkflow(self.session, selectors=self.selectors),
            reconciler=ReconciliationEngine(self._stats),
            max_retries=cfg.search.max_retries,
            retry_delay_s=cfg.search.retry_delay_s,
            results_timeout_ms=cfg.search.results_timeout_ms,
            keystroke_delay_ms=cfg.search.keystroke_delay_ms,
            debug_dir=cfg.debug_dir,
            sleep=sleep,
        )

    def __enter__(self) -> "ExpedienteService":
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    @property
    def stats(self) -> StatsSnapshot:
        return self._stats.snapshot()

    @property
    def is_authenticated(self) -> bool:
        return self.auth.is_authenticated

    def initialize(self) -> bool:
        """
        Launch the browser and log in. Any failure is raised; nothing is retried here.
        """
        creds = self._credentials_provider()
        # Fail fast: don't spend time starting a browser we can't log in with.
        if creds is None or not creds.username or not creds.password:
            raise MissingCredentialsError(
                "Portal credentials are not configured. Set PORTAL_USERNAME and PORTAL_PASSWORD."
            )

        self.session.launch(
            self._resolve_executable(),
            navigation_timeout_ms=self.cfg.browser.navigation_timeout_ms,
            default_timeout_ms=self.cfg.browser.default_timeout_ms,
        )
        return self.auth.login(creds)

    def _resolve_executable(self) -> Optional[str]:
        if self.cfg.browser.executable_path:
            return self.cfg.browser.executable_path
        try:
            return self._browser_locator()
        except BrowserNotFoundError as e:
            logger.warning("%s; falling back to Playwright-managed browsers.", e)
            return None

    def search_expediente(self, expediente_id: Union[str, int], expected_cost: Union[Decimal, float, int, str]) -> SearchOutcome:
        request = ExpedienteRequest(id=expediente_id, expected_cost=expected_cost)
        return self.pipeline.search(request)

    def reset_stats(self) -> None:
        self._stats.reset()

    def close(self) -> None:
        self.session.close()
