from __future__ import annotations

import pytest

from expediente_sync.errors import LaunchError, SessionClosedError
from expediente_sync.portal import session as session_mod
from expediente_sync.portal.session import BrowserSession, SessionState


def test_close_is_idempotent_on_unlaunched_session() -> None:
    s = BrowserSession()
    s.close()
    s.close()
    assert s.state is SessionState.CLOSED
    assert not s.is_open


def test_page_requires_open_session() -> None:
    with pytest.raises(SessionClosedError):
        _ = BrowserSession().page


class _FailingChromium:
    def __init__(self) -> None:
        self.calls: list[dict] = []

    def launch(self, **kwargs):
        self.calls.append(kwargs)
        raise RuntimeError("Executable doesn't exist at /nowhere/chrome")


class _FakePlaywright:
    def __init__(self) -> None:
        self.chromium = _FailingChromium()
        self.stopped = False

    def stop(self) -> None:
        self.stopped = True


class _Starter:
    def __init__(self, pw: _FakePlaywright) -> None:
        self._pw = pw

    def start(self) -> _FakePlaywright:
        return self._pw


def test_launch_failure_raises_launch_error_and_closes(monkeypatch: pytest.MonkeyPatch) -> None:
    pw = _FakePlaywright()
    monkeypatch.setattr(session_mod, "sync_playwright", lambda: _Starter(pw))

    s = BrowserSession(headless=True)
    with pytest.raises(LaunchError):
        s.launch(navigation_timeout_ms=1_000, default_timeout_ms=500)

    assert s.state is SessionState.CLOSED
    assert pw.stopped
    # bundled chromium, then the chrome and msedge channels
    assert [c.get("channel") for c in pw.chromium.calls] == [None, "chrome", "msedge"]
    assert all(c["headless"] is True for c in pw.chromium.calls)


def test_launch_with_explicit_executable_does_not_try_channels(monkeypatch: pytest.MonkeyPatch) -> None:
    pw = _FakePlaywright()
    monkeypatch.setattr(session_mod, "sync_playwright", lambda: _Starter(pw))

    with pytest.raises(LaunchError):
        BrowserSession().launch("/opt/chrome/chrome")

    assert len(pw.chromium.calls) == 1
    assert pw.chromium.calls[0]["executable_path"] == "/opt/chrome/chrome"
    assert pw.chromium.calls[0]["args"] == ["--start-maximized"]
