from __future__ import annotations

import os
from pathlib import Path

import pytest

from expediente_sync.errors import BrowserNotFoundError
from expediente_sync.portal.browser_locator import locate_browser


def _touch(p: Path) -> Path:
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_bytes(b"")
    return p


def test_windows_prefers_chrome_over_edge(tmp_path: Path) -> None:
    pf = tmp_path / "Program Files"
    local = tmp_path / "Local"
    _touch(pf / "Microsoft" / "Edge" / "Application" / "msedge.exe")
    chrome = _touch(local / "Google" / "Chrome" / "Application" / "chrome.exe")

    found = locate_browser(platform="win32", env={"PROGRAMFILES": str(pf), "LOCALAPPDATA": str(local)})

    assert found == str(chrome)


def test_windows_falls_back_to_edge(tmp_path: Path) -> None:
    pf = tmp_path / "Program Files (x86)"
    edge = _touch(pf / "Microsoft" / "Edge" / "Application" / "msedge.exe")

    assert locate_browser(platform="win32", env={"PROGRAMFILES(X86)": str(pf)}) == str(edge)


def test_mac_user_applications(tmp_path: Path) -> None:
    chrome = _touch(tmp_path / "Applications/Google Chrome.app/Contents/MacOS/Google Chrome")
    found = locate_browser(platform="darwin", env={}, home=tmp_path)
    # A system-wide install (if the test machine has one) wins; otherwise the per-user bundle.
    assert found in {"/Applications/Google Chrome.app/Contents/MacOS/Google Chrome", str(chrome)}


def test_linux_uses_path(tmp_path: Path) -> None:
    binary = _touch(tmp_path / "bin" / "chromium")
    binary.chmod(0o755)

    found = locate_browser(platform="linux", env={"PATH": str(tmp_path / "bin")})

    assert found == str(binary)


def test_nothing_found_raises(tmp_path: Path) -> None:
    with pytest.raises(BrowserNotFoundError):
        locate_browser(platform="linux", env={"PATH": str(tmp_path)})
    with pytest.raises(BrowserNotFoundError):
        locate_browser(platform="win32", env={"PROGRAMFILES": str(tmp_path)})


@pytest.mark.skipif(os.name == "nt", reason="PATH lookup semantics differ on Windows")
def test_linux_ignores_non_executable(tmp_path: Path) -> None:
    _touch(tmp_path / "google-chrome").chmod(0o644)
    with pytest.raises(BrowserNotFoundError):
        locate_browser(platform="linux", env={"PATH": str(tmp_path)})
