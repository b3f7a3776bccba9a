"""Collect the records of every goal and order them by goal and target."""

import math
from typing import Iterable, List, Optional, Tuple

from ods_pipeline.config import GOALS
from ods_pipeline.fetcher import PainelClient
from ods_pipeline.logging_config import create_logger
from ods_pipeline.transform import IndicatorRecord, process_goal

logger = create_logger(__name__)


def _target_value(target_number: str) -> Optional[float]:
    """Numeric value of a target number, or ``None`` when it has none."""
    try:
        value = float(target_number)
    except (TypeError, ValueError):
        return None
    return None if math.isnan(value) else value


def sort_key(record: IndicatorRecord) -> Tuple[int, int, float]:
    """Sort by goal, then numeric target; unnumbered targets go last in their goal."""
    value = _target_value(record.target_number)
    if value is None:
        return record.goal_number, 1, 0.0
    return record.goal_number, 0, value


def sort_records(records: Iterable[IndicatorRecord]) -> List[IndicatorRecord]:
    """Return the records ordered by goal number, then target number."""
    return sorted(records, key=sort_key)


async def export_all(
    client: PainelClient, goals: Iterable[int] = GOALS
) -> List[IndicatorRecord]:
    """Process every goal, one at a time, and return the sorted dataset.

    Goals run sequentially so that only one goal's requests are in flight
    against the API at any moment.

    :param client: Open API client
    :param goals: Goal numbers to export
    :return: Sorted list of records
    """
    all_records: List[IndicatorRecord] = []
    for goal_id in goals:
        logger.info(f"Processing ODS {goal_id}...")
        goal_records = await process_goal(client, goal_id)
        logger.info(f"ODS {goal_id}: {len(goal_records)} indicators")
        all_records.extend(goal_records)

    return sort_records(all_records)
