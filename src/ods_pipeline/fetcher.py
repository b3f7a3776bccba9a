"""Fetcher for the Cidades Sustentáveis indicator API.

Two endpoints are used: the per-indicator chart endpoint, which carries the
target ("meta") text of an indicator, and the panel endpoint, which returns
the time series of every indicator of one goal for a range of years.

Both fetch methods log failures and return an empty sentinel instead of
raising, so one broken request never stops the export.
"""

from typing import Any, Dict, List, Optional

import httpx

from ods_pipeline import config
from ods_pipeline.exceptions import FetchError
from ods_pipeline.logging_config import create_logger

logger = create_logger(__name__)

META_PATH = "/indicador/preenchidos/grafico/indicadores"
PANEL_PATH = "/painel/indicadores"


class PainelClient:
    """Async client for the two indicator endpoints of one city.

    Owns a single ``httpx.AsyncClient`` for the lifetime of the export.
    Use it as an async context manager::

        async with PainelClient() as client:
            items = await client.fetch_goal_data(1, 2017, 2020)
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        city_id: Optional[int] = None,
        timeout: Optional[float] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.base_url = (base_url or config.API_BASE_URL).rstrip("/")
        self.city_id = config.get_city_id() if city_id is None else city_id
        self._owns_client = http_client is None
        if http_client is None:
            if timeout is None:
                timeout = config.get_http_timeout()
            http_client = httpx.AsyncClient(timeout=timeout)
        self._http = http_client

    async def __aenter__(self) -> "PainelClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying HTTP client if this instance created it."""
        if self._owns_client:
            await self._http.aclose()

    async def _get_json(self, path: str, params: Dict[str, Any]) -> Any:
        """GET ``path`` and decode the JSON body.

        :raises FetchError: On non-2xx status, transport failure or bad JSON
        """
        url = f"{self.base_url}{path}"
        try:
            response = await self._http.get(url, params=params)
        except httpx.HTTPError as e:
            raise FetchError(f"Request failed: {e}", url=url) from e

        if not response.is_success:
            raise FetchError(
                f"HTTP error {response.status_code}",
                url=str(response.url),
                status_code=response.status_code,
            )

        try:
            return response.json()
        except ValueError as e:
            raise FetchError(
                f"Invalid JSON in response: {e}",
                url=str(response.url),
                status_code=response.status_code,
            ) from e

    async def fetch_indicator_meta(self, indicator_id: Any) -> str:
        """Return the target text of an indicator, or ``""`` on any failure.

        :param indicator_id: Indicator identifier as returned by the panel endpoint
        :return: Text of the form ``"<target-number> : <description>"`` or ``""``
        """
        params = {
            "indicador": indicator_id,
            "cidades": self.city_id,
            "formulaidx": 0,
        }
        try:
            payload = await self._get_json(META_PATH, params)
        except FetchError as e:
            logger.error(f"Error fetching meta for indicator {indicator_id}: {e}")
            return ""

        if not isinstance(payload, dict):
            logger.warning(
                f"Unexpected meta payload for indicator {indicator_id}: "
                f"{type(payload).__name__}"
            )
            return ""

        meta = payload.get("meta")
        return str(meta) if meta else ""

    async def fetch_goal_data(
        self, goal_id: int, start_year: int, end_year: int
    ) -> Optional[List[List[Any]]]:
        """Return the panel rows of one goal for a year window.

        Each row is ``[indicator_id, discrimination, value_start, ..., value_end]``.

        :param goal_id: Goal (ODS) number, 1-17
        :param start_year: First year of the window
        :param end_year: Last year of the window
        :return: Parsed JSON array, or ``None`` on any failure
        """
        params = {
            "idOds": goal_id,
            "idCidade": self.city_id,
            "anoInicial": start_year,
            "anoFinal": end_year,
            "indicadorPcs": "true",
            "indicadorComplementar": "false",
            "indicadorIndice": "false",
        }
        try:
            payload = await self._get_json(PANEL_PATH, params)
        except FetchError as e:
            logger.error(f"Error in ODS {goal_id} ({start_year}-{end_year}): {e}")
            return None

        if payload is None:
            logger.warning(f"No data for ODS {goal_id} ({start_year}-{end_year})")
            return None

        if not isinstance(payload, list):
            logger.error(
                f"Unexpected panel payload for ODS {goal_id} "
                f"({start_year}-{end_year}): {type(payload).__name__}"
            )
            return None

        logger.debug(
            f"ODS {goal_id} ({start_year}-{end_year}): {len(payload)} rows received"
        )
        return payload
