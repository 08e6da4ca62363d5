"""
Логирование middleware.

- одна строка на событие в stdout: JSON по умолчанию, LOG_FORMAT=text для локальной отладки
- структурированные поля передаём через extra={"payload": {...}}
- в payload часто попадают тела запросов к Agora, поэтому секреты
  (токены, ключи бакета, customer secret, сертификат) маскируются до вывода
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import UTC, datetime
from typing import Any

from agora_middleware.common.config import Settings, get_settings

PROJECT_LOGGER = "agora-middleware"
VENDOR_LOGGER = f"{PROJECT_LOGGER}.vendor"
MASK = "***"

# Ключи сравниваются в нормализованном виде: secret_key, secretKey, Secret-Key -> secretkey
_SECRET_KEYS = frozenset(
    {
        "secretkey",
        "accesskey",
        "customersecret",
        "appcertificate",
        "authorization",
        "password",
    }
)


def _normalize_key(key: str) -> str:
    return key.replace("_", "").replace("-", "").lower()


def is_secret_key(key: Any) -> bool:
    if not isinstance(key, str):
        return False
    norm = _normalize_key(key)
    # token, builderToken, rtc_token ...
    return norm in _SECRET_KEYS or norm.endswith("token")


def redact(value: Any) -> Any:
    """Копия значения с замаскированными секретами на любой глубине вложенности."""
    if isinstance(value, dict):
        return {k: MASK if is_secret_key(k) else redact(v) for k, v in value.items()}
    if isinstance(value, list | tuple):
        return [redact(v) for v in value]
    return value


def _record_payload(record: logging.LogRecord) -> dict[str, Any] | None:
    payload = getattr(record, "payload", None)
    if not isinstance(payload, dict):
        return None
    return redact(payload)


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        ts = datetime.now(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")
        line: dict[str, Any] = {
            "ts": ts,
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        payload = _record_payload(record)
        if payload is not None:
            line["payload"] = payload
        if record.exc_info:
            line["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(line, ensure_ascii=False, default=str)


class TextFormatter(logging.Formatter):
    """Человекочитаемый формат: payload дописывается в конец строки как key=value."""

    def __init__(self) -> None:
        super().__init__(
            fmt="%(asctime)s %(levelname)s %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    def format(self, record: logging.LogRecord) -> str:
        text = super().format(record)
        payload = _record_payload(record)
        if not payload:
            return text
        pairs = " ".join(f"{k}={v}" for k, v in payload.items())
        head, sep, tail = text.partition("\n")
        return f"{head} {pairs}{sep}{tail}"


def build_formatter(log_format: str | None) -> logging.Formatter:
    if (log_format or "").lower() == "text":
        return TextFormatter()
    return JsonFormatter()


def setup_logging(settings: Settings | None = None) -> None:
    s = settings or get_settings()
    level = logging.getLevelName((s.log_level or "INFO").upper())
    if not isinstance(level, int):
        level = logging.INFO

    root = logging.getLogger()
    root.setLevel(level)

    # Свой хэндлер ставим один раз; чужие (pytest, uvicorn) не трогаем
    ours = [h for h in root.handlers if getattr(h, "_agora_middleware", False)]
    if ours:
        for h in ours:
            h.setLevel(level)
            h.setFormatter(build_formatter(s.log_format))
    else:
        handler = logging.StreamHandler(sys.stdout)
        handler._agora_middleware = True  # type: ignore[attr-defined]
        handler.setLevel(level)
        handler.setFormatter(build_formatter(s.log_format))
        root.addHandler(handler)

    for name in ("uvicorn.error", "uvicorn.access"):
        logging.getLogger(name).setLevel(level)


def get_project_logger(name: str = PROJECT_LOGGER) -> logging.Logger:
    return logging.getLogger(name)


def get_vendor_logger() -> logging.Logger:
    """
    Отдельный логгер для обращений к Agora REST API (удобно фильтровать).
    """
    return logging.getLogger(VENDOR_LOGGER)
