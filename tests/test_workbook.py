from __future__ import annotations

import csv
from datetime import datetime
from decimal import Decimal
from pathlib import Path

import pytest
from openpyxl import Workbook, load_workbook

from expediente_sync.errors import WorkbookError
from expediente_sync.models import SearchOutcome, StatsSnapshot, Validation
from expediente_sync.workbook import (
    CSV_HEADERS,
    ExportRow,
    ensure_result_headers,
    export_csv,
    read_requests,
    save_workbook,
    write_outcome,
)


def _make_input(path: Path) -> Path:
    wb = Workbook()
    ws = wb.active
    ws.title = "Expedientes"
    ws.append(["Expediente", "Costo"])
    ws.append(["123456", 1000])
    ws.append([None, 50])
    ws.append(["ABC-1", 10])
    ws.append([789012, "1,250.50"])
    ws.append(["345678", None])
    ws.append([901234.0, 99.9])
    wb.save(path)
    return path


def _outcome() -> SearchOutcome:
    return SearchOutcome(
        cost="$1,000.00",
        status="Pendiente",
        notes="",
        registration_date="01/02/2024",
        service="Grúa",
        subservice="Arrastre",
        validation=Validation.ACCEPTED,
        stats=StatsSnapshot(total_reviewed=1, total_with_cost=1, total_accepted=1),
    )


def test_read_requests_skips_invalid_rows(tmp_path: Path) -> None:
    loaded = read_requests(_make_input(tmp_path / "in.xlsx"))

    got = [(r.row_number, r.request.id, r.request.expected_cost) for r in loaded.rows]
    assert got == [
        (2, "123456", Decimal("1000")),
        (5, "789012", Decimal("1250.50")),
        (7, "901234", Decimal("99.9")),
    ]
    assert loaded.worksheet.title == "Expedientes"


def test_read_requests_named_sheet(tmp_path: Path) -> None:
    path = _make_input(tmp_path / "in.xlsx")
    assert len(read_requests(path, sheet="Expedientes").rows) == 3
    with pytest.raises(WorkbookError):
        read_requests(path, sheet="Otra")


def test_read_requests_missing_or_corrupt_file(tmp_path: Path) -> None:
    with pytest.raises(WorkbookError):
        read_requests(tmp_path / "nope.xlsx")

    bad = tmp_path / "bad.xlsx"
    bad.write_bytes(b"not a zip")
    with pytest.raises(WorkbookError):
        read_requests(bad)


def test_write_outcome_round_trip(tmp_path: Path) -> None:
    path = _make_input(tmp_path / "in.xlsx")
    loaded = read_requests(path)
    ensure_result_headers(loaded.worksheet)
    write_outcome(loaded.worksheet, 2, _outcome(), checked_at=datetime(2024, 3, 1, 9, 30, 0))
    out = tmp_path / "out" / "result.xlsx"
    save_workbook(loaded.workbook, out)

    ws = load_workbook(out).active
    assert ws.cell(row=1, column=3).value == "Costo Sistema"
    assert ws.cell(row=1, column=9).value == "Validación"
    assert ws.cell(row=2, column=5).value in (None, "")
    assert [ws.cell(row=2, column=c).value for c in range(3, 11)] == [
        "$1,000.00",
        "Pendiente",
        ws.cell(row=2, column=5).value,
        "01/02/2024",
        "Grúa",
        "Arrastre",
        "Aceptado",
        "2024-03-01 09:30:00",
    ]


def test_existing_headers_are_kept(tmp_path: Path) -> None:
    wb = Workbook()
    ws = wb.active
    ws.cell(row=1, column=3, value="Mi costo")
    ensure_result_headers(ws)
    assert ws.cell(row=1, column=3).value == "Mi costo"
    assert ws.cell(row=1, column=4).value == "Estatus"


def test_export_csv(tmp_path: Path) -> None:
    out = tmp_path / "res.csv"
    n = export_csv(
        [ExportRow("123456", Decimal("1000"), _outcome(), datetime(2024, 3, 1, 9, 30, 0))],
        out,
    )
    assert n == 1

    with out.open(encoding="utf-8-sig", newline="") as f:
        rows = list(csv.reader(f))
    assert tuple(rows[0]) == CSV_HEADERS
    assert rows[1][:3] == ["123456", "1000", "$1,000.00"]
    assert rows[1][-2:] == ["Aceptado", "2024-03-01 09:30:00"]
