"""Pytest configuration and shared fixtures for the ODS export tests.

This module provides fixtures for:
- A fake Cidades Sustentáveis API served through httpx.MockTransport
- API clients bound to the fake API
- Non-interactive alert managers
- Sample records
"""

import asyncio
import io
from typing import Any, Dict, Generator, List, Optional, Tuple

import httpx
import pytest

from ods_pipeline.alerting import AlertManager
from ods_pipeline.fetcher import PainelClient
from ods_pipeline.transform import IndicatorRecord, year_values

TEST_BASE_URL = "https://painel.test/api"
TEST_CITY_ID = 3981


class ConnectFailure:
    """Marker: answer the request with a transport error."""


class HttpStatus:
    """Marker: answer the request with an empty body and this status."""

    def __init__(self, status_code: int):
        self.status_code = status_code


class InvalidJson:
    """Marker: answer the request with a body that is not JSON."""


class FakePainelApi:
    """In-memory stand-in for the two API endpoints.

    ``panels`` maps ``(goal, start_year, end_year)`` to the JSON payload (or a
    marker) returned by the panel endpoint; unknown keys answer ``[]``.
    ``metas`` maps indicator ids to the ``meta`` text of the chart endpoint.
    """

    def __init__(self) -> None:
        self.panels: Dict[Tuple[int, int, int], Any] = {}
        self.metas: Dict[Any, Any] = {}
        self.requests: List[httpx.Request] = []

    def _answer(self, request: httpx.Request, payload: Any) -> httpx.Response:
        if isinstance(payload, ConnectFailure):
            raise httpx.ConnectError("connection refused", request=request)
        if isinstance(payload, HttpStatus):
            return httpx.Response(payload.status_code, text="error")
        if isinstance(payload, InvalidJson):
            return httpx.Response(200, text="<html>not json</html>")
        return httpx.Response(200, json=payload)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        params = request.url.params

        if request.url.path.endswith("/painel/indicadores"):
            key = (
                int(params["idOds"]),
                int(params["anoInicial"]),
                int(params["anoFinal"]),
            )
            return self._answer(request, self.panels.get(key, []))

        if request.url.path.endswith("/grafico/indicadores"):
            metas = {str(key): value for key, value in self.metas.items()}
            meta = metas.get(params["indicador"])
            if isinstance(meta, (ConnectFailure, HttpStatus, InvalidJson)):
                return self._answer(request, meta)
            return self._answer(request, {"meta": meta} if meta is not None else {})

        return httpx.Response(404, text="unknown endpoint")

    def panel_requests(self) -> List[httpx.Request]:
        return [r for r in self.requests if r.url.path.endswith("/painel/indicadores")]

    def meta_requests(self, indicator_id: Optional[Any] = None) -> List[httpx.Request]:
        requests = [r for r in self.requests if r.url.path.endswith("/grafico/indicadores")]
        if indicator_id is None:
            return requests
        return [r for r in requests if r.url.params["indicador"] == str(indicator_id)]


# ============================================================================
# Fake API Fixtures
# ============================================================================

@pytest.fixture(scope="function")
def fake_api() -> FakePainelApi:
    """Provide an empty fake API; tests fill ``panels`` and ``metas``."""
    return FakePainelApi()


@pytest.fixture(scope="function")
def painel_client(fake_api: FakePainelApi) -> Generator[PainelClient, None, None]:
    """Provide a PainelClient whose requests are answered by ``fake_api``.

    Yields:
        Client bound to the fake API; its HTTP client is closed afterwards
    """
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(fake_api.handler))

    yield PainelClient(
        base_url=TEST_BASE_URL, city_id=TEST_CITY_ID, http_client=http_client
    )

    asyncio.run(http_client.aclose())


# ============================================================================
# Alerting Fixtures
# ============================================================================

@pytest.fixture(scope="function")
def alert_stream() -> io.StringIO:
    return io.StringIO()


@pytest.fixture(scope="function")
def quiet_alert_manager(alert_stream: io.StringIO, monkeypatch) -> AlertManager:
    """Provide an AlertManager that never blocks and never calls Slack."""
    monkeypatch.delenv("SLACK_WEBHOOK_URL", raising=False)
    return AlertManager(interactive=False, stream=alert_stream)


# ============================================================================
# Test Data Fixtures
# ============================================================================

def make_record(
    goal_number: int,
    target_number: str,
    indicator_id: Any = 1,
    window: Tuple[int, int] = (2017, 2020),
    values: Optional[List[Any]] = None,
    description: str = "description",
    discrimination: str = "Total",
) -> IndicatorRecord:
    """Build a record the way the transformer does, for sorting/export tests."""
    item = [indicator_id, discrimination, *(values or [1, 2, 3, 4])]
    return IndicatorRecord(
        goal_number=goal_number,
        indicator_id=indicator_id,
        target_number=target_number,
        target_description=description,
        discrimination=discrimination,
        years=year_values(item, *window),
    )


@pytest.fixture(scope="function")
def record_factory():
    """Provide ``make_record`` to tests."""
    return make_record


@pytest.fixture(scope="function")
def sample_records() -> List[IndicatorRecord]:
    """Three records already in dataset order."""
    return [
        make_record(1, "1.2", indicator_id=101, values=[10, 20, 30, 40],
                    description="Reduce poverty disparities", discrimination="Label"),
        make_record(1, "1.4", indicator_id=102, window=(2021, 2024),
                    values=[5, None, 7, 8], discrimination="Urban"),
        make_record(3, "3.1", indicator_id=301, values=[0.5, 0.6, None, 0.8]),
    ]
