"""
Утилиты времени.

Назначение:
- единый формат времени в ответах (RFC3339, UTC, секунды)
- компоненты префикса имени файла в хранилище
"""

from __future__ import annotations

from datetime import UTC, datetime

RFC3339_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


def utc_now() -> datetime:
    """
    Текущее время в UTC (datetime).
    """
    return datetime.now(UTC)


def utc_now_rfc3339() -> str:
    """
    Текущее время в UTC в формате RFC3339, например 2024-05-01T10:20:30Z.
    """
    return utc_now().strftime(RFC3339_FORMAT)


def unix_ts() -> int:
    """Текущее время в секундах с эпохи."""
    return int(utc_now().timestamp())


def date_time_parts(now: datetime | None = None) -> tuple[str, str]:
    """
    Дата и время (UTC) для префикса в хранилище: ("YYYYMMDD", "HHMMSS").
    """
    now = now or utc_now()
    return now.strftime("%Y%m%d"), now.strftime("%H%M%S")
