from __future__ import annotations

import csv
import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from pathlib import Path
from typing import Iterable, Optional, Union

from openpyxl import Workbook, load_workbook
from openpyxl.worksheet.worksheet import Worksheet
from pydantic import ValidationError

from .errors import WorkbookError
from .models import ExpedienteRequest, SearchOutcome


logger = logging.getLogger(__name__)


# Input layout: A = expediente, B = expected cost. Results go to C..J.
ID_COLUMN = 1
EXPECTED_COST_COLUMN = 2
RESULT_HEADERS = (
    "Costo Sistema",
    "Estatus",
    "Notas",
    "Fecha Registro",
    "Servicio",
    "Subservicio",
    "Validación",
    "Fecha Consulta",
)
FIRST_RESULT_COLUMN = 3

CSV_HEADERS = ("Expediente", "Costo Guardado") + RESULT_HEADERS


@dataclass(frozen=True)
class WorkbookRow:
    row_number: int
    request: ExpedienteRequest


@dataclass(frozen=True)
class LoadedWorkbook:
    workbook: Workbook
    worksheet: Worksheet
    rows: list[WorkbookRow]


def read_requests(path: Union[str, Path], *, sheet: str = "", first_data_row: int = 2) -> LoadedWorkbook:
    """
    Read expediente ids (column A) and expected costs (column B).

    Rows with a blank id, a non-numeric id or an unusable cost are skipped (and logged), not fatal.
    """
    p = Path(path)
    if not p.exists():
        raise WorkbookError(f"Workbook not found: {p}")

    logger.info("Reading workbook: %s", p)
    try:
        wb = load_workbook(p)
    except Exception as e:
        raise WorkbookError(f"Could not open {p}. Make sure it is not open in another program.") from e

    if sheet:
        if sheet not in wb.sheetnames:
            raise WorkbookError(f"Worksheet {sheet!r} not found in {p} (available: {', '.join(wb.sheetnames)})")
        ws = wb[sheet]
    else:
        if not wb.worksheets:
            raise WorkbookError(f"{p} has no worksheets.")
        ws = wb.worksheets[0]

    rows: list[WorkbookRow] = []
    for row in ws.iter_rows(min_row=first_data_row, max_col=EXPECTED_COST_COLUMN):
        row_number = row[0].row
        raw_id = row[0].value
        raw_cost = row[1].value if len(row) > 1 else None

        if raw_id is None or str(raw_id).strip() == "":
            logger.info("Row %d has no expediente in column A; skipping.", row_number)
            continue
        try:
            request = ExpedienteRequest(id=raw_id, expected_cost=raw_cost if raw_cost is not None else "")
        except ValidationError as e:
            logger.info("Invalid row %d (expediente=%r cost=%r); skipping. (%s)", row_number, raw_id, raw_cost, e.errors()[0]["msg"])
            continue
        rows.append(WorkbookRow(row_number=row_number, request=request))

    logger.info("Valid rows found: %d", len(rows))
    return LoadedWorkbook(workbook=wb, worksheet=ws, rows=rows)


def _outcome_values(outcome: SearchOutcome, checked_at: datetime) -> list[str]:
    return [
        outcome.cost,
        outcome.status,
        outcome.notes,
        outcome.registration_date,
        outcome.service,
        outcome.subservice,
        outcome.validation.value,
        checked_at.strftime("%Y-%m-%d %H:%M:%S"),
    ]


def ensure_result_headers(ws: Worksheet, *, header_row: int = 1) -> None:
    for offset, header in enumerate(RESULT_HEADERS):
        cell = ws.cell(row=header_row, column=FIRST_RESULT_COLUMN + offset)
        if cell.value in (None, ""):
            cell.value = header


def write_outcome(
    ws: Worksheet, row_number: int, outcome: SearchOutcome, *, checked_at: Optional[datetime] = None
) -> None:
    values = _outcome_values(outcome, checked_at or datetime.now())
    for offset, value in enumerate(values):
        ws.cell(row=row_number, column=FIRST_RESULT_COLUMN + offset, value=value)


def save_workbook(wb: Workbook, path: Union[str, Path]) -> None:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    logger.info("Saving workbook: %s", p)
    try:
        wb.save(p)
    except PermissionError as e:
        raise WorkbookError(f"Could not save {p}. Close it in Excel and try again.") from e


@dataclass(frozen=True)
class ExportRow:
    expediente: str
    expected_cost: Decimal
    outcome: SearchOutcome
    checked_at: datetime


def export_csv(results: Iterable[ExportRow], path: Union[str, Path]) -> int:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    n = 0
    # utf-8-sig so Excel opens accented headers correctly.
    with p.open("w", newline="", encoding="utf-8-sig") as f:
        w = csv.writer(f)
        w.writerow(CSV_HEADERS)
        for r in results:
            w.writerow([r.expediente, str(r.expected_cost)] + _outcome_values(r.outcome, r.checked_at))
            n += 1
    logger.info("Exported %d results to CSV: %s", n, p)
    return n
