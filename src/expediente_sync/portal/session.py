from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Optional

from playwright.sync_api import sync_playwright

from ..errors import LaunchError, SessionClosedError
from .page import PageQuery, PlaywrightPage


logger = logging.getLogger(__name__)


DEFAULT_NAVIGATION_TIMEOUT_MS = 60_000
DEFAULT_TIMEOUT_MS = 30_000


class SessionState(str, Enum):
    CLOSED = "closed"
    LAUNCHING = "launching"
    AUTHENTICATING = "authenticating"
    AUTHENTICATED = "authenticated"
    ERROR = "error"


class BrowserSession:
    """
    Owns the browser process and its single page. There is never more than one page.
    """

    def __init__(self, *, headless: bool = False, slow_mo_ms: int = 0, close_delay_ms: int = 2_000) -> None:
        self.headless = headless
        self.slow_mo_ms = int(slow_mo_ms or 0)
        self.close_delay_ms = int(close_delay_ms or 0)
        self.navigation_timeout_ms = DEFAULT_NAVIGATION_TIMEOUT_MS
        self.default_timeout_ms = DEFAULT_TIMEOUT_MS
        self.state = SessionState.CLOSED

        self._playwright: Any = None
        self._browser: Any = None
        self._context: Any = None
        self._page: Optional[PageQuery] = None

    @property
    def page(self) -> PageQuery:
        if self._page is None or self.state in (SessionState.CLOSED, SessionState.ERROR):
            raise SessionClosedError("Browser session is not open.")
        return self._page

    @property
    def is_open(self) -> bool:
        return self._page is not None and self.state not in (SessionState.CLOSED, SessionState.ERROR)

    def launch(
        self,
        executable_path: Optional[str] = None,
        *,
        navigation_timeout_ms: int = DEFAULT_NAVIGATION_TIMEOUT_MS,
        default_timeout_ms: int = DEFAULT_TIMEOUT_MS,
    ) -> None:
        if self.is_open:
            logger.info("Browser already open; relaunching.")
            self.close()

        self.navigation_timeout_ms = int(navigation_timeout_ms)
        self.default_timeout_ms = int(default_timeout_ms)
        self.state = SessionState.LAUNCHING
        logger.info("Launching browser (executable=%s headless=%s)", executable_path or "<playwright>", self.headless)

        try:
            self._playwright = sync_playwright().start()
            self._browser = self._launch_browser(executable_path)
            # no_viewport + --start-maximized: use the real window size.
            self._context = self._browser.new_context(no_viewport=True)
            page = self._context.new_page()
            page.set_default_navigation_timeout(self.navigation_timeout_ms)
            page.set_default_timeout(self.default_timeout_ms)
        except Exception as e:
            self.state = SessionState.ERROR
            self._teardown()
            self.state = SessionState.CLOSED
            raise LaunchError(
                "Could not start a browser. Install Chrome or Edge (or run `playwright install chromium`)."
            ) from e

        self._page = PlaywrightPage(page)
        self.state = SessionState.AUTHENTICATING
        logger.info("Browser launched")

    def _launch_browser(self, executable_path: Optional[str]) -> Any:
        kwargs: dict = {
            "headless": self.headless,
            "slow_mo": self.slow_mo_ms,
            "args": ["--start-maximized"],
            "timeout": self.navigation_timeout_ms,
        }
        chromium = self._playwright.chromium
        if executable_path:
            return chromium.launch(executable_path=executable_path, **kwargs)

        # Prefer Playwright's bundled Chromium, but fall back to a system-installed browser if the
        # cache doesn't have Playwright browsers available.
        try:
            return chromium.launch(**kwargs)
        except Exception as e:
            msg = str(e)
            if "Executable doesn't exist" not in msg:
                raise
            logger.warning("Playwright Chromium executable missing; falling back to system browser channel. (%s)", msg)

        # Try Chrome first, then Edge.
        try:
            return chromium.launch(channel="chrome", **kwargs)
        except Exception:
            return chromium.launch(channel="msedge", **kwargs)

    def navigate(self, url: str, *, wait_until: str = "domcontentloaded") -> None:
        self.page.goto(url, wait_until=wait_until, timeout_ms=self.navigation_timeout_ms)

    def close(self) -> None:
        if self._page is None and self._browser is None and self._playwright is None:
            self.state = SessionState.CLOSED
            return

        if self._page is not None and self.close_delay_ms > 0:
            logger.info("Waiting before closing...")
            try:
                self._page.wait(self.close_delay_ms)
            except Exception:
                logger.debug("Close delay interrupted.", exc_info=True)

        logger.info("Closing browser...")
        self._teardown()
        self.state = SessionState.CLOSED

    def _teardown(self) -> None:
        self._page = None
        for name in ("_context", "_browser"):
            obj = getattr(self, name)
            setattr(self, name, None)
            if obj is None:
                continue
            try:
                obj.close()
            except Exception:
                logger.debug("Failed to close %s.", name.lstrip("_"), exc_info=True)
        pw, self._playwright = self._playwright, None
        if pw is not None:
            try:
                pw.stop()
            except Exception:
                logger.debug("Failed to stop Playwright.", exc_info=True)
