from .auth import AuthController, PortalCredentials
from .acceptance import AcceptanceWorkflow
from .browser_locator import locate_browser
from .reconcile import Reconciliation, ReconciliationEngine, reconcile
from .search import RetryContext, SearchPipeline
from .selectors import PortalSelectors, SelectorCandidate, SelectorKind
from .session import BrowserSession, SessionState

__all__ = [
    "AcceptanceWorkflow",
    "AuthController",
    "BrowserSession",
    "PortalCredentials",
    "PortalSelectors",
    "Reconciliation",
    "ReconciliationEngine",
    "RetryContext",
    "SearchPipeline",
    "SelectorCandidate",
    "SelectorKind",
    "SessionState",
    "locate_browser",
    "reconcile",
]
