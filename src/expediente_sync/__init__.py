"""
Reconcile expediente costs from a workbook against the provider portal and accept the ones that match.
"""

from .models import ExpedienteRequest, SearchOutcome, StatsSnapshot, Validation
from .service import ExpedienteService

__all__ = ["ExpedienteRequest", "ExpedienteService", "SearchOutcome", "StatsSnapshot", "Validation"]

__version__ = "0.1.0"
