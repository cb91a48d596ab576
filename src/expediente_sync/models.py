from __future__ import annotations

from decimal import Decimal, InvalidOperation
from enum import Enum

from pydantic import BaseModel, ConfigDict, field_validator


class Validation(str, Enum):
    """
    Per-record classification written back to the workbook (portal users read these in Spanish).
    """

    ACCEPTED = "Aceptado"
    NOT_ACCEPTED = "No aceptado"
    NO_DATA = "Sin datos"
    ERROR_IN_QUERY = "Error en consulta"
    ERROR_IN_ACCEPTANCE = "Error en aceptación"


class StatsSnapshot(BaseModel):
    model_config = ConfigDict(frozen=True)

    total_reviewed: int = 0
    total_with_cost: int = 0
    total_accepted: int = 0


class ExpedienteRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    expected_cost: Decimal

    @field_validator("id", mode="before")
    @classmethod
    def _normalize_id(cls, value: object) -> str:
        # Spreadsheets hand us ints (or floats like 123456.0) as often as strings.
        if isinstance(value, float) and value.is_integer():
            value = int(value)
        s = str(value if value is not None else "").strip()
        if not s.isdigit():
            raise ValueError(f"expediente id must contain digits only (got: {s!r})")
        return s

    @field_validator("expected_cost", mode="before")
    @classmethod
    def _coerce_cost(cls, value: object) -> Decimal:
        if isinstance(value, Decimal):
            return value
        if isinstance(value, str):
            value = value.replace("$", "").replace(",", "").strip()
        try:
            # str() keeps float values at their shortest repr instead of the binary expansion.
            return Decimal(str(value))
        except (InvalidOperation, ValueError) as e:
            raise ValueError(f"expected_cost is not a number: {value!r}") from e


class ResultRow(BaseModel):
    """
    Raw text of the first row of the portal's results table.
    """

    cost: str = ""
    status: str = ""
    notes: str = ""
    registration_date: str = ""
    service: str = ""
    subservice: str = ""


class SearchOutcome(BaseModel):
    model_config = ConfigDict(frozen=True)

    cost: str = ""
    status: str = ""
    notes: str = ""
    registration_date: str = ""
    service: str = ""
    subservice: str = ""
    validation: Validation
    stats: StatsSnapshot
