"""
Configuracion de fixtures para pytest.
"""
from datetime import date
from typing import AsyncGenerator, List

import pytest
import pytest_asyncio
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from tariff_sync.core.metrics import SyncMetrics
from tariff_sync.infrastructure.database.session import Base, build_session_factory
from tariff_sync.infrastructure.repositories.tariff_repository import TariffRepository


# URL de base de datos de prueba
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

# "Hoy" fijo para las pruebas de ventana
FIXED_TODAY = date(2024, 1, 15)


@pytest_asyncio.fixture
async def db_engine() -> AsyncGenerator[AsyncEngine, None]:
    """
    Engine sobre una base de datos en memoria, nueva para cada test.
    StaticPool mantiene una unica conexion (si no, cada conexion ve una
    base de datos vacia distinta).
    """
    engine = create_async_engine(TEST_DATABASE_URL, echo=False, poolclass=StaticPool)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
def session_factory(db_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return build_session_factory(db_engine)


@pytest.fixture
def metrics() -> SyncMetrics:
    """Metricas con registro propio: los contadores arrancan en cero en cada test."""
    return SyncMetrics()


@pytest.fixture
def repository(session_factory, metrics: SyncMetrics) -> TariffRepository:
    return TariffRepository(
        session_factory,
        window_days=7,
        today_provider=lambda: FIXED_TODAY,
        metrics=metrics,
    )


@pytest.fixture
def log_messages() -> List[str]:
    """Captura los mensajes de loguru emitidos durante el test como 'LEVEL|mensaje'."""
    messages: List[str] = []
    handler_id = logger.add(
        lambda message: messages.append(message.record["level"].name + "|" + message.record["message"]),
        level="DEBUG",
    )
    yield messages
    logger.remove(handler_id)
