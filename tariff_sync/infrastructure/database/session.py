"""
Gestion del engine y de las sesiones de base de datos.

El engine se construye a partir de la configuracion explicita que recibe
(no lee settings al importarse), de modo que el repositorio de tarifas
pueda ser su unico dueno.
"""
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    create_async_engine,
    async_sessionmaker
)
from sqlalchemy.orm import declarative_base


# Base para modelos de SQLAlchemy
Base = declarative_base()


def _create_engine_args(database_url: str, *, echo: bool, pool_size: int, max_overflow: int) -> dict:
    """
    Construye los argumentos del engine segun el tipo de base de datos.
    PostgreSQL usa pool de conexiones, SQLite no lo soporta.
    """
    args = {
        "echo": echo,
    }

    # Configuracion de pool solo para PostgreSQL
    if database_url.startswith("postgresql"):
        args.update({
            "pool_size": pool_size,
            "max_overflow": max_overflow,
            "pool_pre_ping": True,  # Verifica conexion antes de usar
        })

    return args


def build_engine(
    database_url: str,
    *,
    echo: bool = False,
    pool_size: int = 5,
    max_overflow: int = 10,
) -> AsyncEngine:
    """Crea el engine async (asyncpg en produccion, aiosqlite en tests)."""
    return create_async_engine(
        database_url,
        **_create_engine_args(database_url, echo=echo, pool_size=pool_size, max_overflow=max_overflow),
    )


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory sin autoflush ni expiracion al commit."""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False
    )


async def init_db(engine: AsyncEngine) -> None:
    """Crea las tablas que no existan (equivalente a CREATE TABLE IF NOT EXISTS)."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db(engine: AsyncEngine) -> None:
    """Cierra las conexiones de la base de datos."""
    await engine.dispose()
