from __future__ import annotations

import argparse
import logging
import os
import time
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

from .config import AppConfig, load_config
from .errors import BrowserNotFoundError, WorkbookError
from .logging_config import configure_logging
from .portal.browser_locator import locate_browser
from .service import ExpedienteService
from .workbook import ExportRow, ensure_result_headers, export_csv, read_requests, save_workbook, write_outcome


logger = logging.getLogger("expediente_sync")


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="expediente_sync")
    p.add_argument(
        "--env-file",
        default=".env",
        help="Path to a dotenv file (default: .env). If missing, env vars must already be set.",
    )

    sub = p.add_subparsers(dest="cmd", required=True)

    rec = sub.add_parser("reconcile", help="Check every expediente in a workbook against the portal and accept matches")
    rec.add_argument("--input", required=True, help="Workbook with expediente ids (column A) and expected costs (column B)")
    rec.add_argument("--config", default="config.yaml", help="Path to YAML config (default: config.yaml, optional)")
    rec.add_argument("--output", default="", help="Where to save results (default: overwrite --input)")
    rec.add_argument("--csv", default="", help="Also export results to this CSV file")
    rec.add_argument("--headless", action="store_true", help="Run the browser headless (default: visible window)")
    rec.add_argument("--limit", type=int, default=0, help="Only process the first N valid rows (0 = all)")

    check = sub.add_parser("check-login", help="Open the portal, log in and exit (verifies credentials)")
    check.add_argument("--config", default="config.yaml", help="Path to YAML config (default: config.yaml, optional)")
    check.add_argument("--headless", action="store_true", help="Run the browser headless")

    sub.add_parser("locate-browser", help="Print the Chrome/Edge executable that would be used")
    return p


def main(argv: Optional[List[str]] = None) -> int:
    args = _build_parser().parse_args(argv)

    env_path = Path(args.env_file)
    if env_path.exists():
        load_dotenv(env_path)

    # Default logging: can be overridden once config is loaded.
    configure_logging(level=os.getenv("LOG_LEVEL", "INFO"))

    if args.cmd == "locate-browser":
        try:
            print(locate_browser())
        except BrowserNotFoundError as e:
            print(f"❌ {e}")
            return 1
        return 0

    cfg = load_config(args.config)
    if getattr(args, "headless", False):
        cfg = cfg.model_copy(update={"browser": cfg.browser.model_copy(update={"headless": True})})
    configure_logging(level=cfg.logging.level, file_path=cfg.logging.file_path)

    if args.cmd == "check-login":
        service = ExpedienteService(cfg)
        try:
            service.initialize()
            print("✅ Login OK")
            return 0
        except Exception as e:
            logger.error("Login check failed: %s", e)
            print(f"❌ Login failed: {e}")
            return 1
        finally:
            service.close()

    if args.cmd == "reconcile":
        return _reconcile(cfg, args)

    raise AssertionError("Unhandled command")


def _reconcile(cfg: AppConfig, args: argparse.Namespace) -> int:
    try:
        loaded = read_requests(args.input, sheet=cfg.workbook.sheet, first_data_row=cfg.workbook.first_data_row)
    except WorkbookError as e:
        logger.error("%s", e)
        return 1

    rows = loaded.rows[: args.limit] if args.limit and args.limit > 0 else loaded.rows
    if not rows:
        logger.warning("No valid expedientes found in %s", args.input)
        return 0

    output = args.output or args.input
    ensure_result_headers(loaded.worksheet, header_row=max(1, cfg.workbook.first_data_row - 1))

    t0 = time.time()
    exported: list[ExportRow] = []
    service = ExpedienteService(cfg)
    try:
        try:
            service.initialize()
        except Exception as e:
            logger.error("Could not start the portal session: %s", e)
            return 1

        logger.info("Processing %d expedientes from %s", len(rows), args.input)
        for idx, row in enumerate(rows, start=1):
            req = row.request
            logger.info("[%d/%d] Row %d: expediente %s", idx, len(rows), row.row_number, req.id)
            outcome = service.search_expediente(req.id, req.expected_cost)
            checked_at = datetime.now()
            write_outcome(loaded.worksheet, row.row_number, outcome, checked_at=checked_at)
            exported.append(ExportRow(req.id, req.expected_cost, outcome, checked_at))
            # Save as we go so an interrupted run keeps what it already reviewed.
            save_workbook(loaded.workbook, output)
    except WorkbookError as e:
        logger.error("%s", e)
        return 1
    finally:
        service.close()

    if args.csv:
        export_csv(exported, args.csv)

    s = service.stats
    logger.info(
        "Run finished (seconds=%.2f reviewed=%d with_cost=%d accepted=%d)",
        time.time() - t0,
        s.total_reviewed,
        s.total_with_cost,
        s.total_accepted,
    )
    print(f"Reviewed: {s.total_reviewed}  With cost: {s.total_with_cost}  Accepted: {s.total_accepted}")
    return 0
