from __future__ import annotations


class BrowserNotFoundError(RuntimeError):
    """
    Raised when no compatible browser executable can be found on this machine.
    """


class LaunchError(RuntimeError):
    """
    Raised when the browser process cannot be started (bad executable, missing Playwright browsers, etc.).
    """


class SessionClosedError(RuntimeError):
    """
    Raised when a page operation is attempted after the browser session was closed (or never launched).
    """


class NavigationError(RuntimeError):
    """
    Raised when a page navigation does not finish within the navigation timeout.
    """


class SelectorTimeoutError(RuntimeError, TimeoutError):
    """
    Raised when a required element does not appear within the action timeout.

    Kept distinct from NavigationError so callers can tell "portal is down" from "selector missing".
    """


class MissingCredentialsError(RuntimeError):
    """
    Raised when portal credentials are not configured (or username/password is blank).
    """


class LoginFailedError(RuntimeError):
    """
    Raised when the password field is still on screen after submitting the login form.
    """


class SearchInputNotFoundError(RuntimeError):
    """
    Raised when none of the search input candidates exist on the pending-services page.
    """


class AcceptButtonNotFoundError(RuntimeError):
    """
    Raised when the result row has no accept button in its first column.
    """


class ConfirmationNotFoundError(RuntimeError):
    """
    Raised when the confirmation dialog has no "Aceptar" button to click.
    """


class WorkbookError(RuntimeError):
    """
    Raised when the input workbook is missing, unreadable or has no worksheet.
    """
