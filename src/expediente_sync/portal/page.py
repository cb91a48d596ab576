from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Protocol

from playwright.sync_api import ElementHandle, Page
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError

from ..errors import NavigationError, SelectorTimeoutError


logger = logging.getLogger(__name__)


class PageElement(Protocol):
    def click(self, *, click_count: int = 1) -> None: ...

    def clear(self) -> None: ...


class PageQuery(Protocol):
    """
    Everything the pipeline needs from the browser page.

    The Playwright adapter below is the production implementation; tests drive the same
    algorithms against an in-memory fake.
    """

    @property
    def url(self) -> str: ...

    def goto(self, url: str, *, wait_until: str = "domcontentloaded", timeout_ms: Optional[int] = None) -> None: ...

    def query(self, selector: str) -> Optional[PageElement]: ...

    def has_selector(self, selector: str) -> bool: ...

    def wait_for_selector(self, selector: str, *, timeout_ms: Optional[int] = None) -> None: ...

    def type_text(self, selector: str, text: str, *, delay_ms: int = 0) -> None: ...

    def type_keys(self, text: str, *, delay_ms: int = 0) -> None: ...

    def press(self, key: str) -> None: ...

    def click_and_wait_for_navigation(
        self, selector: str, *, wait_until: str = "domcontentloaded", timeout_ms: Optional[int] = None
    ) -> None: ...

    def row_cells(self, row_selector: str) -> Optional[list[str]]: ...

    def click_button_in_column(self, marker_selector: str, column: int) -> bool: ...

    def click_button_with_text(self, container_selector: str, needle: str) -> bool: ...

    def wait(self, ms: int) -> None: ...

    def save_debug(self, *, debug_dir: str, name_prefix: str) -> None: ...


_ROW_CELLS_JS = """
(rowSelector) => {
  const row = document.querySelector(rowSelector);
  if (!row) return null;
  return Array.from(row.querySelectorAll('td')).map(td => (td.textContent || '').trim());
}
"""

# The accept control has no label; it is the Material icon button living in the row's action column.
_CLICK_BUTTON_IN_COLUMN_JS = """
({ marker, column }) => {
  const button = Array.from(document.querySelectorAll('button')).find(b => {
    const cell = b.closest('td');
    return b.querySelector(marker) && cell && cell.cellIndex === column;
  });
  if (!button) return false;
  button.click();
  return true;
}
"""

_CLICK_BUTTON_WITH_TEXT_JS = """
({ container, needle }) => {
  const wanted = needle.toLowerCase();
  const button = Array.from(document.querySelectorAll(container + ' button'))
    .find(b => (b.textContent || '').trim().toLowerCase().includes(wanted));
  if (!button) return false;
  button.click();
  return true;
}
"""


class _PlaywrightElement:
    def __init__(self, handle: ElementHandle) -> None:
        self._handle = handle

    def click(self, *, click_count: int = 1) -> None:
        self._handle.click(click_count=click_count)

    def clear(self) -> None:
        # Input masks ignore select+delete; reset the value directly.
        self._handle.evaluate("(el) => { el.value = ''; }")


class PlaywrightPage:
    """
    PageQuery backed by a Playwright sync `Page`.
    """

    def __init__(self, page: Page) -> None:
        self._page = page

    @property
    def url(self) -> str:
        return self._page.url

    def goto(self, url: str, *, wait_until: str = "domcontentloaded", timeout_ms: Optional[int] = None) -> None:
        try:
            self._page.goto(url, wait_until=wait_until, timeout=timeout_ms)
        except PlaywrightTimeoutError as e:
            raise NavigationError(f"Timed out navigating to {url}") from e

    def query(self, selector: str) -> Optional[PageElement]:
        handle = self._page.query_selector(selector)
        return _PlaywrightElement(handle) if handle is not None else None

    def has_selector(self, selector: str) -> bool:
        return self._page.query_selector(selector) is not None

    def wait_for_selector(self, selector: str, *, timeout_ms: Optional[int] = None) -> None:
        try:
            self._page.wait_for_selector(selector, timeout=timeout_ms)
        except PlaywrightTimeoutError as e:
            raise SelectorTimeoutError(f"Timed out waiting for selector: {selector}") from e

    def type_text(self, selector: str, text: str, *, delay_ms: int = 0) -> None:
        self._page.type(selector, text, delay=delay_ms)

    def type_keys(self, text: str, *, delay_ms: int = 0) -> None:
        self._page.keyboard.type(text, delay=delay_ms)

    def press(self, key: str) -> None:
        self._page.keyboard.press(key)

    def click_and_wait_for_navigation(
        self, selector: str, *, wait_until: str = "domcontentloaded", timeout_ms: Optional[int] = None
    ) -> None:
        try:
            with self._page.expect_navigation(wait_until=wait_until, timeout=timeout_ms):
                self._page.click(selector)
        except PlaywrightTimeoutError as e:
            raise NavigationError(f"No navigation after clicking {selector}") from e

    def row_cells(self, row_selector: str) -> Optional[list[str]]:
        return self._page.evaluate(_ROW_CELLS_JS, row_selector)

    def click_button_in_column(self, marker_selector: str, column: int) -> bool:
        return bool(self._page.evaluate(_CLICK_BUTTON_IN_COLUMN_JS, {"marker": marker_selector, "column": column}))

    def click_button_with_text(self, container_selector: str, needle: str) -> bool:
        return bool(
            self._page.evaluate(_CLICK_BUTTON_WITH_TEXT_JS, {"container": container_selector, "needle": needle})
        )

    def wait(self, ms: int) -> None:
        self._page.wait_for_timeout(ms)

    def save_debug(self, *, debug_dir: str, name_prefix: str) -> None:
        try:
            out_dir = Path(debug_dir)
            out_dir.mkdir(parents=True, exist_ok=True)
            self._page.screenshot(path=str(out_dir / f"{name_prefix}.png"), full_page=True)
            (out_dir / f"{name_prefix}.html").write_text(self._page.content(), encoding="utf-8")
            # Also save the rendered body text so the table can be inspected without DOM tooling.
            try:
                (out_dir / f"{name_prefix}.txt").write_text(self._page.inner_text("body"), encoding="utf-8")
            except Exception:
                logger.debug("Failed to save body text for %s.", name_prefix, exc_info=True)
        except Exception:
            logger.debug("Failed to save debug artifacts.", exc_info=True)
