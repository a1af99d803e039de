"""
Utilidades para manejo de fechas y horas.

Se mantienen libres de I/O para poder testearlas fácilmente.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional


def ensure_utc(dt: datetime) -> datetime:
    """
    Normaliza datetime a UTC (aware).

    La API suele devolver ISO8601 con zona; aun así, normalizamos para
    comparar de forma consistente.
    """
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def isoformat_z(dt: datetime) -> str:
    """
    Serializa datetime a ISO8601 con 'Z' (UTC).
    """
    dt_utc = ensure_utc(dt)
    return dt_utc.isoformat().replace("+00:00", "Z")


def parse_iso_datetime(raw: Any) -> Optional[datetime]:
    """
    Convierte un string ISO 8601 (con o sin 'Z') a datetime UTC.

    Returns:
        Optional[datetime]: datetime aware o None si no se puede parsear
    """
    if raw is None or raw == "":
        return None
    if isinstance(raw, datetime):
        return ensure_utc(raw)
    try:
        # Python < 3.11 no acepta el sufijo 'Z' en fromisoformat
        return ensure_utc(datetime.fromisoformat(str(raw).replace("Z", "+00:00")))
    except (ValueError, TypeError):
        return None
