"""Run the ODS indicator export.

Fetches every goal for the configured city, sorts the records and writes
the spreadsheet. Failures are logged, shown to the user and end the run;
nothing is retried.
"""

import argparse
import asyncio
import time
from pathlib import Path
from typing import List, Optional, Sequence

from ods_pipeline import config
from ods_pipeline.aggregate import export_all
from ods_pipeline.alerting import AlertManager, notify_failure
from ods_pipeline.exceptions import ExportError
from ods_pipeline.export import write_workbook
from ods_pipeline.fetcher import PainelClient
from ods_pipeline.logging_config import create_logger, log_exception, set_log_level
from ods_pipeline.transform import IndicatorRecord

logger = create_logger(__name__)


class IndicatorExport:
    """Export the ODS indicators of one city to a spreadsheet.

    :param output_path: Destination .xlsx file (default: ``config.OUTPUT_FILE``)
    :param client: API client to use instead of a new ``PainelClient``
    :param alert_manager: Where failures are reported
    """

    def __init__(
        self,
        output_path: Optional[str] = None,
        client: Optional[PainelClient] = None,
        alert_manager: Optional[AlertManager] = None,
    ) -> None:
        self.output_path = Path(output_path or config.OUTPUT_FILE)
        self.client = client
        self.alert_manager = alert_manager
        self.records: List[IndicatorRecord] = []

    async def _collect(self) -> List[IndicatorRecord]:
        if self.client is not None:
            return await export_all(self.client)

        async with PainelClient() as client:
            return await export_all(client)

    def run(self) -> Path:
        """
        Main method to run the export.

        :return: Path of the written spreadsheet
        :raises ExportError: If any step of the export fails
        """
        start_time = time.time()
        try:
            config.validate_config()
            logger.info(
                f"Starting export for city {config.get_city_id()} "
                f"({config.FIRST_YEAR}-{config.LAST_YEAR})"
            )

            self.records = asyncio.run(self._collect())
            path = write_workbook(self.records, self.output_path)

            duration = time.time() - start_time
            logger.info(
                f"Export completed successfully: {len(self.records)} records "
                f"in {duration:.2f}s"
            )
            return path

        except Exception as e:
            duration = time.time() - start_time
            log_exception(logger, e, {"context": "ODS export", "output": str(self.output_path)})
            notify_failure(
                e,
                context={
                    "Output": str(self.output_path),
                    "Records collected": len(self.records),
                    "Duration": f"{duration:.2f}s",
                },
                alert_manager=self.alert_manager,
            )
            raise ExportError(f"Export failed: {e}") from e


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Export the Cidades Sustentáveis ODS indicators of a city to a spreadsheet"
    )
    parser.add_argument(
        "-o",
        "--output",
        default=None,
        help=f"Output .xlsx file (default: {config.OUTPUT_FILE})",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: LOG_LEVEL or INFO)",
    )
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Command-line entry point. Returns the process exit status."""
    args = parse_args(argv)
    if args.log_level:
        set_log_level(args.log_level)

    try:
        IndicatorExport(output_path=args.output).run()
    except ExportError as e:
        logger.error(f"Export process failed: {e}")
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
