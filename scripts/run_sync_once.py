"""
CLI: una pasada del pipeline de tarifas (API -> Postgres -> Google Sheets).

Uso recomendado:
  - Backfill de una fecha puntual o prueba de credenciales.
  - No arranca el scheduler ni el servidor HTTP.

Variables de entorno requeridas (o en .env):
  - WB_API_TOKEN
  - GOOGLE_SERVICE_ACCOUNT_EMAIL
  - GOOGLE_PRIVATE_KEY
  - DATABASE_URL o DATABASE_HOST/PORT/USER/PASSWORD/NAME
  - SPREADSHEET_IDS (opcional; sin hojas no se publica)

Ejecucion:
  python scripts/run_sync_once.py
  python scripts/run_sync_once.py --date 2024-01-15
  python scripts/run_sync_once.py --no-publish

Codigo de salida: 0 si la corrida termina "completed", 1 en otro caso.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

from loguru import logger
from dotenv import load_dotenv

# Permite ejecutar este script desde cualquier cwd sin configurar PYTHONPATH.
_PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(_PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(_PROJECT_ROOT))

# Cargar variables desde .env si existe.
load_dotenv(_PROJECT_ROOT / ".env", override=False)

from tariff_sync.application.use_cases.tariff_sync_use_cases import STATUS_COMPLETED
from tariff_sync.core.config import Settings
from tariff_sync.core.container import build_container
from tariff_sync.core.events import configure_logging
from tariff_sync.infrastructure.database.session import init_db
from tariff_sync.shared.exceptions.base import AppException
from tariff_sync.shared.utils.date_utils import is_valid_iso_date


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Ejecuta una sincronizacion de tarifas y termina.")
    parser.add_argument(
        "--date",
        default=None,
        help="Fecha YYYY-MM-DD a consultar (por defecto hoy, UTC).",
    )
    parser.add_argument(
        "--no-publish",
        action="store_true",
        help="Guarda en la base de datos sin replicar a Google Sheets.",
    )
    args = parser.parse_args(argv)
    if args.date is not None and not is_valid_iso_date(args.date):
        parser.error(f"fecha invalida: {args.date!r} (formato YYYY-MM-DD)")
    return args


async def _run(args: argparse.Namespace) -> int:
    settings = Settings()
    configure_logging(settings)

    try:
        container = build_container(settings)
    except AppException as e:
        logger.error(f"Configuracion invalida: {e.message}")
        return 1

    try:
        await init_db(container.engine)
        result = await container.scheduler.trigger(args.date, publish=not args.no_publish)
    finally:
        await container.aclose()

    logger.info(
        f"Resultado: status={result.status}, fetched={result.fetched}, saved={result.saved}, "
        f"window={result.window}, hojas_ok={result.published.succeeded}, "
        f"hojas_fallidas={result.published.failed}"
    )
    return 0 if result.status == STATUS_COMPLETED else 1


def main(argv: list[str] | None = None) -> int:
    return asyncio.run(_run(_parse_args(argv)))


if __name__ == "__main__":
    raise SystemExit(main())
