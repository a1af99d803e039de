"""
CLI: sincroniza registros entre dos tablas (one-way o bidireccional).

Uso recomendado:
  - Ejecutar como job (cron/systemd timer).
  - En modo bidireccional, el caller guarda el `--since` de cada corrida y lo
    avanza en la siguiente; este script no persiste estado.

Variables de entorno requeridas:
  - TEABLE_API_TOKEN
  - TEABLE_API_URL (opcional, default https://app.teable.io/api)

Ejecución:
  python scripts/sync_tables.py tblSource tblTarget --key-field fldKey
  python scripts/sync_tables.py tblSource tblTarget --key-field fldKey --delete-extra --what-if
  python scripts/sync_tables.py tblSource tblTarget --key-field fldKey --bidirectional --since 2025-12-16T10:15:00Z
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Optional

from loguru import logger
from dotenv import load_dotenv

# Permite ejecutar este script desde cualquier cwd sin configurar PYTHONPATH.
_REPO_ROOT = Path(__file__).resolve().parents[1]
if str(_REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(_REPO_ROOT))

load_dotenv(_REPO_ROOT / ".env", override=False)

from tablesync.application.dto.sync_dto import SyncOptions
from tablesync.application.use_cases.sync_use_cases import SyncTableDataUseCase
from tablesync.core.config import get_settings
from tablesync.core.log_config import configure_logging
from tablesync.infrastructure.external.teable import build_from_settings
from tablesync.shared.exceptions.base import AppException
from tablesync.shared.exceptions.sync import SyncConfigError
from tablesync.shared.utils.datetime_utils import parse_iso_datetime


def _parse_mapping(pairs: Optional[list[str]]) -> Optional[dict[str, str]]:
    """Convierte ["src=dst", ...] en dict. Sin pares -> None (inferir por nombre)."""
    if not pairs:
        return None
    mapping: dict[str, str] = {}
    for pair in pairs:
        source, sep, target = pair.partition("=")
        if not sep or not source or not target:
            raise SyncConfigError(f"Mapeo invalido '{pair}', se espera SRC=DST", field="map")
        mapping[source.strip()] = target.strip()
    return mapping


def _parse_filter(raw: Optional[str]) -> Optional[Any]:
    """Un filtro JSON se envía estructurado; cualquier otro texto va tal cual."""
    if not raw:
        return None
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return raw


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Sincroniza registros entre dos tablas.")
    parser.add_argument("source_table", help="ID de la tabla origen")
    parser.add_argument("target_table", help="ID de la tabla destino")
    parser.add_argument("--key-field", required=True, help="Field usado para emparejar registros")
    parser.add_argument(
        "--map",
        action="append",
        metavar="SRC=DST",
        help="Mapeo explicito de fields (repetible). Sin --map se infiere por nombre.",
    )
    parser.add_argument("--no-create", action="store_true", help="No crear registros faltantes")
    parser.add_argument("--no-update", action="store_true", help="No actualizar registros existentes")
    parser.add_argument("--delete-extra", action="store_true", help="Borrar registros que no estan en source")
    parser.add_argument("--source-filter", help="Filtro (JSON u opaco) para la tabla origen")
    parser.add_argument("--target-filter", help="Filtro (JSON u opaco) para la tabla destino")
    parser.add_argument("--batch-size", type=int, help="Registros por batch")
    parser.add_argument("--batch-delay-ms", type=int, help="Pausa entre batches en ms")
    parser.add_argument("--respect-rate-limit", action="store_true", default=None, help="Usar Retry-After de la API")
    parser.add_argument("--rate-limit-delay", type=float, help="Espera por defecto ante 429 (s)")
    parser.add_argument("--bidirectional", action="store_true", help="Sync incremental por eventos")
    parser.add_argument("--since", help="Inicio de la ventana de cambios (ISO8601)")
    parser.add_argument("--what-if", action="store_true", help="Dry-run: no modifica datos")
    parser.add_argument("--stop-on-error", action="store_true", help="Abortar en el primer fallo")
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    settings = get_settings()
    configure_logging(settings)

    try:
        since = None
        if args.since:
            since = parse_iso_datetime(args.since)
            if since is None:
                raise SyncConfigError(f"--since no es una fecha ISO8601 valida: {args.since}", field="since")

        options = SyncOptions.from_settings(
            settings,
            source_table_id=args.source_table,
            target_table_id=args.target_table,
            key_field=args.key_field,
            field_mapping=_parse_mapping(args.map),
            create_missing=not args.no_create,
            update_existing=not args.no_update,
            delete_extra=args.delete_extra,
            source_filter=_parse_filter(args.source_filter),
            target_filter=_parse_filter(args.target_filter),
            batch_size=args.batch_size,
            batch_delay_ms=args.batch_delay_ms,
            respect_rate_limit=args.respect_rate_limit,
            rate_limit_delay_s=args.rate_limit_delay,
            bidirectional=args.bidirectional,
            since=since,
            what_if=args.what_if,
            continue_on_error=False if args.stop_on_error else None,
        )
        api = build_from_settings(settings)
        stats = SyncTableDataUseCase(api).execute(options)
    except AppException as e:
        logger.error(f"Sync fallido [{e.error_code}]: {e.message}")
        return 1

    print(json.dumps(stats.to_dict(), indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
