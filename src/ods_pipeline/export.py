"""Spreadsheet export of the indicator dataset.

Writes a single sheet with a header row in a fixed column order, one row
per record and fixed column widths.
"""

import os
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Union

import pandas as pd
from openpyxl.utils import get_column_letter

from ods_pipeline.config import COLUMN_ORDER, COLUMN_WIDTHS, SHEET_NAME
from ods_pipeline.logging_config import create_logger
from ods_pipeline.transform import IndicatorRecord

logger = create_logger(__name__)


def records_to_frame(records: Iterable[IndicatorRecord]) -> pd.DataFrame:
    """Build a DataFrame with one row per record in ``COLUMN_ORDER``."""
    rows = [record.to_row() for record in records]
    return pd.DataFrame(rows, columns=COLUMN_ORDER)


def apply_column_widths(
    worksheet, columns: List[str], widths: Optional[Dict[str, int]] = None
) -> None:
    """Set the display width of each column of an openpyxl worksheet."""
    widths = COLUMN_WIDTHS if widths is None else widths
    for position, column in enumerate(columns, start=1):
        width = widths.get(column)
        if width is not None:
            worksheet.column_dimensions[get_column_letter(position)].width = width


def write_workbook(
    records: Iterable[IndicatorRecord],
    path: Union[str, Path],
    sheet_name: str = SHEET_NAME,
) -> Path:
    """Write the records to an .xlsx file, replacing any existing file.

    :param records: Sorted dataset
    :param path: Destination file
    :param sheet_name: Name of the only sheet
    :return: Path of the written file
    """
    path = Path(path)
    frame = records_to_frame(records)

    os.makedirs(path.parent.resolve(), exist_ok=True)
    logger.info(f"Writing {len(frame)} rows to {path}")

    with pd.ExcelWriter(path, engine="openpyxl", mode="w") as writer:
        frame.to_excel(writer, sheet_name=sheet_name, index=False)
        apply_column_widths(writer.sheets[sheet_name], list(frame.columns))

    logger.info(f"✅ Spreadsheet generated: {path}")
    return path
