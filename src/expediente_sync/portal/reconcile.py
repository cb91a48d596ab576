from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from ..models import ResultRow, Validation
from ..stats import StatsAggregator
from ..util.money import format_mxn, is_zero_or_blank, parse_currency


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Reconciliation:
    costs_match: bool
    formatted_cost: str


def reconcile(extracted_cost: str, expected_cost: Decimal) -> Reconciliation:
    """
    Compare the portal's cost text against the expected cost.

    Exact equality only: both sides are peso amounts at cent precision, and any tolerance would
    change which records get accepted. Text that isn't a number never matches and is reported as-is.
    """
    try:
        portal_cost = parse_currency(extracted_cost)
    except ValueError:
        logger.warning("Portal cost is not a number: %r", extracted_cost)
        return Reconciliation(costs_match=False, formatted_cost=extracted_cost.strip())
    return Reconciliation(
        costs_match=portal_cost == Decimal(expected_cost),
        formatted_cost=format_mxn(portal_cost),
    )


class ReconciliationEngine:
    def __init__(self, stats: StatsAggregator) -> None:
        self.stats = stats

    def classify(
        self, row: Optional[ResultRow], expected_cost: Decimal
    ) -> tuple[Validation, Optional[Reconciliation]]:
        """
        Decide Accepted / NotAccepted / NoData for one extracted row and record the cost counters.
        """
        if row is None or is_zero_or_blank(row.cost):
            return Validation.NO_DATA, None

        result = reconcile(row.cost, expected_cost)
        self.stats.record_cost(matched=result.costs_match)
        if result.costs_match:
            return Validation.ACCEPTED, result

        logger.info("Cost mismatch (portal=%s expected=%s)", result.formatted_cost, format_mxn(Decimal(expected_cost)))
        return Validation.NOT_ACCEPTED, result
