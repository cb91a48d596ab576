from __future__ import annotations

import logging
import os
import shutil
import sys
from pathlib import Path
from typing import Iterable, Optional

from ..errors import BrowserNotFoundError


logger = logging.getLogger(__name__)


def _windows_candidates(env: dict[str, str]) -> list[Path]:
    roots = [env.get("PROGRAMFILES", ""), env.get("PROGRAMFILES(X86)", ""), env.get("LOCALAPPDATA", "")]
    roots = [r for r in roots if r]
    chrome = [Path(r) / "Google" / "Chrome" / "Application" / "chrome.exe" for r in roots]
    edge = [Path(r) / "Microsoft" / "Edge" / "Application" / "msedge.exe" for r in roots]
    return chrome + edge


def _mac_candidates(home: Path) -> list[Path]:
    return [
        Path("/Applications/Google Chrome.app/Contents/MacOS/Google Chrome"),
        home / "Applications/Google Chrome.app/Contents/MacOS/Google Chrome",
        Path("/Applications/Microsoft Edge.app/Contents/MacOS/Microsoft Edge"),
    ]


_LINUX_BINARIES = ("google-chrome", "google-chrome-stable", "chromium", "chromium-browser", "microsoft-edge")


def _first_existing(paths: Iterable[Path]) -> Optional[Path]:
    for p in paths:
        try:
            if p.is_file():
                return p
        except OSError:
            continue
    return None


def locate_browser(
    *,
    platform: Optional[str] = None,
    env: Optional[dict[str, str]] = None,
    home: Optional[Path] = None,
) -> str:
    """
    Find a Chromium-family browser (Chrome first, then Edge) for the current platform.

    Raises BrowserNotFoundError if nothing compatible is installed.
    """
    plat = platform or sys.platform
    env = dict(os.environ) if env is None else env
    home = home or Path.home()

    found: Optional[Path] = None
    if plat.startswith("win"):
        found = _first_existing(_windows_candidates(env))
    elif plat == "darwin":
        found = _first_existing(_mac_candidates(home))
    else:
        for name in _LINUX_BINARIES:
            which = shutil.which(name, path=env.get("PATH"))
            if which:
                found = Path(which)
                break

    if found is None:
        raise BrowserNotFoundError(f"No compatible browser (Chrome/Edge) found for platform={plat}")

    logger.info("Browser found at: %s", found)
    return str(found)
