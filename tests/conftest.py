from __future__ import annotations

import sys
from pathlib import Path
from typing import Any, Optional

import pytest


ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))


from expediente_sync.config import AppConfig, PortalConfig, SearchConfig  # noqa: E402
from expediente_sync.errors import SelectorTimeoutError, SessionClosedError  # noqa: E402
from expediente_sync.portal.session import SessionState  # noqa: E402


BASE_URL = "https://portal.test"
PENDING_URL = BASE_URL + "/admin/services/pendientes"

SEARCH_INPUT = 'input[placeholder="No. Expediente:*"]'
SEARCH_BUTTON = 'button:has-text("Buscar")'
RESULT_ROW = "table tbody tr"
USERNAME_INPUT = 'input[formcontrolname="username"]'
PASSWORD_INPUT = 'input[formcontrolname="password"]'


def pytest_configure(config: Any) -> None:
    config.addinivalue_line(
        "markers",
        "portal: integration smoke tests that require real portal credentials",
    )


def row(cost: str, status: str = "Pendiente") -> list[str]:
    # Results table: action column, expediente, cost, status, notes, date, service, subservice.
    return ["", "123456", cost, status, "Sin notas", "01/02/2024", "Grúa", "Arrastre local"]


class FakeElement:
    def __init__(self, page: "FakePage", selector: str) -> None:
        self.page = page
        self.selector = selector

    def click(self, *, click_count: int = 1) -> None:
        if self.selector in self.page.click_errors:
            raise RuntimeError(f"click failed: {self.selector}")
        self.page.events.append(("click", self.selector, click_count))

    def clear(self) -> None:
        self.page.events.append(("clear", self.selector))


class FakePage:
    """
    In-memory PageQuery: selectors are "present" if listed, result rows are scripted.
    """

    def __init__(self, *, url: str = PENDING_URL, present: Optional[set[str]] = None) -> None:
        self._url = url
        self.present: set[str] = set(present if present is not None else {SEARCH_INPUT, SEARCH_BUTTON, RESULT_ROW})
        self.raising: set[str] = set()
        self.click_errors: set[str] = set()
        self.row: Optional[list[str]] = None
        # Consumed one per row_cells() call before falling back to `row`; exceptions are raised.
        self.row_script: list[Any] = []
        self.accept_button = True
        self.confirm_button = True
        self.login_succeeds = True
        self.goto_error: Optional[Exception] = None

        self.events: list[tuple] = []
        self.goto_calls: list[str] = []
        self.typed: list[tuple[str, str]] = []
        self.keys: list[str] = []
        self.waits: list[int] = []
        self.debug_saves: list[str] = []
        self.row_reads = 0

    @property
    def url(self) -> str:
        return self._url

    def goto(self, url: str, *, wait_until: str = "domcontentloaded", timeout_ms: Optional[int] = None) -> None:
        self.goto_calls.append(url)
        if self.goto_error is not None:
            raise self.goto_error
        self._url = url

    def query(self, selector: str) -> Optional[FakeElement]:
        if selector in self.raising:
            raise RuntimeError(f"lookup exploded: {selector}")
        return FakeElement(self, selector) if selector in self.present else None

    def has_selector(self, selector: str) -> bool:
        return selector in self.present

    def wait_for_selector(self, selector: str, *, timeout_ms: Optional[int] = None) -> None:
        if any(part.strip() in self.present for part in selector.split(",")):
            return
        raise SelectorTimeoutError(f"Timed out waiting for selector: {selector}")

    def type_text(self, selector: str, text: str, *, delay_ms: int = 0) -> None:
        self.typed.append((selector, text))

    def type_keys(self, text: str, *, delay_ms: int = 0) -> None:
        self.keys.append(text)

    def press(self, key: str) -> None:
        self.events.append(("press", key))

    def click_and_wait_for_navigation(
        self, selector: str, *, wait_until: str = "domcontentloaded", timeout_ms: Optional[int] = None
    ) -> None:
        self.events.append(("submit", selector))
        if self.login_succeeds:
            self.present.discard(PASSWORD_INPUT)
            self._url = BASE_URL + "/admin/dashboard"

    def row_cells(self, row_selector: str) -> Optional[list[str]]:
        self.row_reads += 1
        if self.row_script:
            item = self.row_script.pop(0)
            if isinstance(item, Exception):
                raise item
            return item
        return self.row

    def click_button_in_column(self, marker_selector: str, column: int) -> bool:
        self.events.append(("accept", marker_selector, column))
        return self.accept_button

    def click_button_with_text(self, container_selector: str, needle: str) -> bool:
        self.events.append(("confirm", container_selector, needle))
        return self.confirm_button

    def wait(self, ms: int) -> None:
        self.waits.append(ms)

    def save_debug(self, *, debug_dir: str, name_prefix: str) -> None:
        self.debug_saves.append(name_prefix)

    def event_names(self) -> list[str]:
        return [e[0] for e in self.events]


class FakeSession:
    """
    Stands in for BrowserSession: same attributes, no browser.
    """

    def __init__(self, page: FakePage, *, state: SessionState = SessionState.AUTHENTICATED) -> None:
        self._page = page
        self.state = state
        self.navigation_timeout_ms = 60_000
        self.default_timeout_ms = 30_000
        self.launch_calls: list[Optional[str]] = []
        self.close_calls = 0

    @property
    def page(self) -> FakePage:
        if self.state in (SessionState.CLOSED, SessionState.ERROR):
            raise SessionClosedError("Browser session is not open.")
        return self._page

    def launch(
        self,
        executable_path: Optional[str] = None,
        *,
        navigation_timeout_ms: int = 60_000,
        default_timeout_ms: int = 30_000,
    ) -> None:
        self.launch_calls.append(executable_path)
        self.navigation_timeout_ms = navigation_timeout_ms
        self.default_timeout_ms = default_timeout_ms
        self.state = SessionState.AUTHENTICATING

    def navigate(self, url: str, *, wait_until: str = "domcontentloaded") -> None:
        self.page.goto(url, wait_until=wait_until, timeout_ms=self.navigation_timeout_ms)

    def close(self) -> None:
        self.close_calls += 1
        self.state = SessionState.CLOSED


@pytest.fixture
def fake_page() -> FakePage:
    return FakePage()


@pytest.fixture
def fake_session(fake_page: FakePage) -> FakeSession:
    return FakeSession(fake_page)


@pytest.fixture
def app_config(tmp_path: Path) -> AppConfig:
    return AppConfig(
        portal=PortalConfig(base_url=BASE_URL, username="proveedor", password="secreto"),
        search=SearchConfig(max_retries=3, retry_delay_s=0),
        debug_dir=str(tmp_path / "debug"),
    )
