"""
Tests unitarios para la superficie HTTP.

La app se crea sin lifespan (no arranca scheduler ni base de datos) y las
dependencias se reemplazan via dependency_overrides.
"""
from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest
from httpx import ASGITransport, AsyncClient

from tariff_sync.api.v1.dependencies.sync_deps import get_sync_scheduler, get_tariff_repository
from tariff_sync.application.use_cases.tariff_sync_use_cases import SyncRunResult
from tariff_sync.domain.entities.tariff import WarehouseTariffRecord
from tariff_sync.infrastructure.external.google_sheets.publisher import PublishSummary


@pytest.fixture
def mock_scheduler() -> MagicMock:
    scheduler = MagicMock()
    scheduler.trigger = AsyncMock(
        return_value=SyncRunResult(
            status="completed",
            date="2024-01-15",
            fetched=3,
            saved=3,
            window=10,
            published=PublishSummary(succeeded=2, failed=1),
        )
    )
    return scheduler


@pytest.fixture
def mock_repository() -> MagicMock:
    repository = MagicMock()
    repository.window_days = 7
    repository.get_recent_window = AsyncMock(
        return_value=[
            WarehouseTariffRecord(
                date="2024-01-15",
                warehouse_name="Коледино",
                box_delivery_base=48.0,
                box_storage_coef_expr=115.0,
                geo_name="ЦФО",
            )
        ]
    )
    return repository


@pytest.fixture
def app_with_mock(mock_scheduler, mock_repository):
    """Crea la app FastAPI con los componentes mockeados via dependency_overrides."""
    from main import create_application
    app = create_application(with_lifespan=False)
    app.dependency_overrides[get_sync_scheduler] = lambda: mock_scheduler
    app.dependency_overrides[get_tariff_repository] = lambda: mock_repository
    yield app
    app.dependency_overrides.clear()


async def _post(app, url: str, **kwargs):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        return await client.post(url, **kwargs)


async def _get(app, url: str, **kwargs):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        return await client.get(url, **kwargs)


async def test_run_sync_returns_result(app_with_mock, mock_scheduler) -> None:
    response = await _post(app_with_mock, "/api/v1/sync/run")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "completed"
    assert data["saved"] == 3
    assert data["published_succeeded"] == 2
    assert data["published_failed"] == 1
    mock_scheduler.trigger.assert_awaited_once_with(None, publish=True)


async def test_run_sync_with_date_and_no_publish(app_with_mock, mock_scheduler) -> None:
    response = await _post(app_with_mock, "/api/v1/sync/run", params={"date": "2024-01-10", "publish": "false"})

    assert response.status_code == 200
    mock_scheduler.trigger.assert_awaited_once_with("2024-01-10", publish=False)


async def test_run_sync_skipped_is_conflict(app_with_mock, mock_scheduler) -> None:
    mock_scheduler.trigger.return_value = SyncRunResult(status="skipped", date="2024-01-15")

    response = await _post(app_with_mock, "/api/v1/sync/run")

    assert response.status_code == 409
    assert response.json()["status"] == "skipped"


async def test_run_sync_invalid_date_is_400(app_with_mock, mock_scheduler) -> None:
    response = await _post(app_with_mock, "/api/v1/sync/run", params={"date": "15/01/2024"})

    assert response.status_code == 400
    assert response.json()["error"] == "INVALID_DATE"
    mock_scheduler.trigger.assert_not_awaited()


async def test_recent_tariffs(app_with_mock) -> None:
    response = await _get(app_with_mock, "/api/v1/tariffs/recent")

    assert response.status_code == 200
    data = response.json()
    assert data["window_days"] == 7
    assert data["count"] == 1
    item = data["items"][0]
    assert item["warehouse_name"] == "Коледино"
    assert item["box_storage_coef_expr"] == 115.0
    assert item["box_delivery_liter"] is None


async def test_endpoints_without_container_are_503() -> None:
    from main import create_application
    app = create_application(with_lifespan=False)

    response = await _get(app, "/api/v1/tariffs/recent")

    assert response.status_code == 503
    assert response.json()["error"] == "SERVICE_NOT_READY"


async def test_health() -> None:
    from main import create_application
    app = create_application(with_lifespan=False)

    response = await _get(app, "/health")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["sync_running"] is False


async def test_metrics_endpoint() -> None:
    from main import create_application
    app = create_application(with_lifespan=False)

    response = await _get(app, "/metrics")

    assert response.status_code == 200
    assert "text/plain" in response.headers["content-type"]
