from __future__ import annotations

import logging

from .models import StatsSnapshot


logger = logging.getLogger(__name__)


class StatsAggregator:
    """
    Session counters: reviewed >= with cost >= accepted.

    Only the search pipeline records outcomes; everyone else reads snapshots.
    """

    def __init__(self) -> None:
        self._reviewed = 0
        self._with_cost = 0
        self._accepted = 0

    def record_reviewed(self) -> None:
        self._reviewed += 1

    def record_cost(self, *, matched: bool) -> None:
        # with_cost and accepted move together so accepted can never overtake with_cost.
        self._with_cost += 1
        if matched:
            self._accepted += 1

    def reset(self) -> None:
        self._reviewed = 0
        self._with_cost = 0
        self._accepted = 0
        logger.info("Stats reset")

    def snapshot(self) -> StatsSnapshot:
        return StatsSnapshot(
            total_reviewed=self._reviewed,
            total_with_cost=self._with_cost,
            total_accepted=self._accepted,
        )
