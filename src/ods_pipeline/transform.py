"""Transform panel rows into one record per indicator.

For each goal the two year windows are fetched concurrently. Their rows are
then walked in order, one metadata request at a time, against a set of
indicator ids owned by the call. An indicator already seen in an earlier
window is skipped before its metadata is requested, so each goal yields at
most one record per indicator.
"""

import asyncio
import re
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Sequence, Set, Tuple

from ods_pipeline.config import (
    COLUMN_ORDER,
    DISCRIMINATION_COLUMN,
    GOAL_COLUMN,
    SOURCE_COLUMN,
    SOURCE_LABEL,
    TARGET_DESCRIPTION_COLUMN,
    TARGET_NUMBER_COLUMN,
    YEAR_WINDOWS,
    YEARS,
)
from ods_pipeline.fetcher import PainelClient
from ods_pipeline.logging_config import create_logger

logger = create_logger(__name__)

META_SEPARATOR = " : "
TARGET_NUMBER_PATTERN = re.compile(r"\d+\.\d+")

# First value column of a panel row; columns 0 and 1 are id and label.
VALUE_OFFSET = 2


@dataclass(frozen=True)
class IndicatorRecord:
    """One output row: an indicator of a goal with its yearly values.

    ``years`` maps every exported year to the source value, or to ``""``
    when the year lies outside the window the row was fetched with.
    """

    goal_number: int
    indicator_id: Any
    target_number: str
    target_description: str
    discrimination: str
    years: Mapping[int, Any] = field(default_factory=dict)
    source: str = SOURCE_LABEL

    def to_row(self) -> Dict[str, Any]:
        """Return the record keyed by spreadsheet column name."""
        row = {
            GOAL_COLUMN: self.goal_number,
            TARGET_NUMBER_COLUMN: self.target_number,
            TARGET_DESCRIPTION_COLUMN: self.target_description,
            DISCRIMINATION_COLUMN: self.discrimination,
            SOURCE_COLUMN: self.source,
        }
        for year in YEARS:
            row[str(year)] = self.years.get(year, "")
        return {column: row[column] for column in COLUMN_ORDER}


def parse_meta(meta_text: Optional[str]) -> Tuple[str, str]:
    """Split a target text into its number and description.

    ``"1.2 : Reduce poverty"`` gives ``("1.2", "Reduce poverty")``. Text
    without the separator is returned whole as the description.

    :param meta_text: Text returned by the metadata endpoint
    :return: Tuple of (target number, target description)
    """
    if not meta_text:
        return "", ""

    parts = meta_text.split(META_SEPARATOR)
    if len(parts) == 1:
        return "", meta_text

    match = TARGET_NUMBER_PATTERN.search(parts[0])
    target_number = match.group(0) if match else ""
    target_description = META_SEPARATOR.join(parts[1:]).strip()
    return target_number, target_description


def year_values(item: Sequence[Any], start_year: int, end_year: int) -> Dict[int, Any]:
    """Map each exported year to the row's value, or ``""`` outside the window.

    Values inside the window are taken as-is, ``None`` included. A row
    shorter than its window yields ``None`` for the missing positions.
    """
    values: Dict[int, Any] = {}
    for year in YEARS:
        if start_year <= year <= end_year:
            index = VALUE_OFFSET + (year - start_year)
            values[year] = item[index] if index < len(item) else None
        else:
            values[year] = ""
    return values


def build_record(
    goal_id: int,
    item: Sequence[Any],
    window: Tuple[int, int],
    meta_text: Optional[str],
) -> IndicatorRecord:
    """Combine a panel row and its target text into a record."""
    start_year, end_year = window
    target_number, target_description = parse_meta(meta_text)
    discrimination = item[1] if len(item) > 1 else ""

    return IndicatorRecord(
        goal_number=goal_id,
        indicator_id=item[0],
        target_number=target_number,
        target_description=target_description,
        discrimination="" if discrimination is None else discrimination,
        years=MappingProxyType(year_values(item, start_year, end_year)),
    )


async def _process_window(
    client: PainelClient,
    goal_id: int,
    items: Optional[List[Sequence[Any]]],
    window: Tuple[int, int],
    seen: Set[Any],
) -> List[IndicatorRecord]:
    """Turn the rows of one window into records, skipping ids in ``seen``.

    Rows are handled one after another; ``seen`` is updated before the
    metadata request of each new indicator is issued.
    """
    if not items:
        return []

    records: List[IndicatorRecord] = []
    for item in items:
        if not item:
            logger.warning(f"ODS {goal_id}: skipping empty row")
            continue

        indicator_id = item[0]
        try:
            hash(indicator_id)
        except TypeError:
            logger.warning(f"ODS {goal_id}: skipping row with invalid indicator id {indicator_id!r}")
            continue

        if indicator_id in seen:
            logger.debug(f"ODS {goal_id}: indicator {indicator_id} already processed")
            continue
        seen.add(indicator_id)

        meta_text = await client.fetch_indicator_meta(indicator_id)
        records.append(build_record(goal_id, item, window, meta_text))

    return records


async def process_goal(
    client: PainelClient,
    goal_id: int,
    windows: Sequence[Tuple[int, int]] = YEAR_WINDOWS,
) -> List[IndicatorRecord]:
    """Fetch and transform every indicator of one goal.

    :param client: Open API client
    :param goal_id: Goal (ODS) number
    :param windows: Year windows to fetch, processed in the given order
    :return: Records of the goal, one per indicator id
    """
    window_data = await asyncio.gather(
        *(client.fetch_goal_data(goal_id, start, end) for start, end in windows)
    )

    seen: Set[Any] = set()
    records: List[IndicatorRecord] = []
    for window, items in zip(windows, window_data):
        records.extend(await _process_window(client, goal_id, items, window, seen))

    return records
