"""Configuration module for project settings and environment variables.

This module manages the API location, the city and year windows being
exported and the layout of the output spreadsheet. Every value has a
hard-coded default and may be overridden from the environment or a
``.env`` file.
"""

import os
from typing import Dict, List, Tuple

from dotenv import load_dotenv

from ods_pipeline.exceptions import ConfigurationError
from ods_pipeline.logging_config import create_logger

load_dotenv()

logger = create_logger(__name__)

# API configuration
API_BASE_URL = os.getenv(
    "ODS_API_BASE_URL", "https://www.cidadessustentaveis.org.br/api"
).rstrip("/")
# Kept as raw strings; converted and checked by get_city_id/get_http_timeout
CITY_ID = os.getenv("ODS_CITY_ID", "3981")
HTTP_TIMEOUT = os.getenv("ODS_HTTP_TIMEOUT", "60")

# Goals and year windows
GOALS = range(1, 18)
FIRST_YEAR = 2017
LAST_YEAR = 2024
YEARS = list(range(FIRST_YEAR, LAST_YEAR + 1))
YEAR_WINDOWS: List[Tuple[int, int]] = [(2017, 2020), (2021, 2024)]

# Output configuration
OUTPUT_FILE = os.getenv("ODS_OUTPUT_FILE", "indicadores_organizados.xlsx")
SHEET_NAME = "Indicadores"
SOURCE_LABEL = "Cidades Sustentáveis"

GOAL_COLUMN = "ODS nº"
TARGET_NUMBER_COLUMN = "Meta Nº"
TARGET_DESCRIPTION_COLUMN = "Meta Descrição"
DISCRIMINATION_COLUMN = "Discriminação"
SOURCE_COLUMN = "Fonte"

COLUMN_ORDER: List[str] = [
    GOAL_COLUMN,
    TARGET_NUMBER_COLUMN,
    TARGET_DESCRIPTION_COLUMN,
    DISCRIMINATION_COLUMN,
    *[str(year) for year in YEARS],
    SOURCE_COLUMN,
]

COLUMN_WIDTHS: Dict[str, int] = {
    GOAL_COLUMN: 8,
    TARGET_NUMBER_COLUMN: 8,
    TARGET_DESCRIPTION_COLUMN: 60,
    DISCRIMINATION_COLUMN: 40,
    **{str(year): 8 for year in YEARS},
    SOURCE_COLUMN: 20,
}


def get_city_id() -> int:
    """
    Return ODS_CITY_ID as a positive integer.

    :raises ConfigurationError: If the value is not a positive integer
    """
    try:
        city_id = int(CITY_ID)
    except (TypeError, ValueError):
        raise ConfigurationError(
            f"Invalid city id (ODS_CITY_ID): {CITY_ID!r} is not an integer"
        )

    if city_id <= 0:
        raise ConfigurationError(f"Invalid city id (ODS_CITY_ID): {city_id}")
    return city_id


def get_http_timeout() -> float:
    """
    Return ODS_HTTP_TIMEOUT in seconds as a positive number.

    :raises ConfigurationError: If the value is not a positive number
    """
    try:
        timeout = float(HTTP_TIMEOUT)
    except (TypeError, ValueError):
        raise ConfigurationError(
            f"HTTP timeout (ODS_HTTP_TIMEOUT): {HTTP_TIMEOUT!r} is not a number"
        )

    if not timeout > 0:
        raise ConfigurationError(
            f"HTTP timeout (ODS_HTTP_TIMEOUT) must be positive, got {timeout}"
        )
    return timeout


def validate_config():
    """
    Validate critical configuration parameters.
    Raises ConfigurationError if any required config is missing or invalid.

    :raises ConfigurationError: If configuration is invalid
    """
    if not API_BASE_URL:
        raise ConfigurationError("API base URL (ODS_API_BASE_URL) is not configured")

    get_city_id()
    get_http_timeout()

    for start_year, end_year in YEAR_WINDOWS:
        if start_year > end_year:
            raise ConfigurationError(
                f"Year window {start_year}-{end_year} starts after it ends"
            )
        if start_year < FIRST_YEAR or end_year > LAST_YEAR:
            raise ConfigurationError(
                f"Year window {start_year}-{end_year} is outside "
                f"{FIRST_YEAR}-{LAST_YEAR}"
            )

    if not OUTPUT_FILE:
        raise ConfigurationError("Output file (ODS_OUTPUT_FILE) is not configured")

    output_dir = os.path.dirname(os.path.abspath(OUTPUT_FILE))
    try:
        os.makedirs(output_dir, exist_ok=True)
    except OSError as e:
        raise ConfigurationError(
            f"Unable to create output directory at {output_dir}: {e}"
        )

    logger.info("Configuration validation successful")
