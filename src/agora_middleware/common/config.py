"""
Централизованная конфигурация проекта (ENV / .env).

Важно:
- настройки читаются из .env и переменных окружения
- типизированные значения через pydantic-settings
- секреты можно передать файлом: <ENV>_FILE=/run/secrets/...
- обязательность полей проверяется при сборке сервисов (fail-fast),
  а не при импорте модуля
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from pydantic import Field, TypeAdapter
from pydantic import ValidationError as PydanticValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # -------------------------------------------------------------------------
    # Runtime
    # -------------------------------------------------------------------------
    app_env: str = Field(default="dev", alias="APP_ENV")
    service_name: str = Field(default="agora-middleware", alias="SERVICE_NAME")
    api_host: str = Field(default="0.0.0.0", alias="API_HOST")
    api_port: int = Field(default=8080, alias="SERVER_PORT")
    cors_allow_origin: str = Field(default="*", alias="CORS_ALLOW_ORIGIN")

    # -------------------------------------------------------------------------
    # Agora: приложение и доступ к REST API
    # -------------------------------------------------------------------------
    app_id: str | None = Field(default=None, alias="APP_ID")
    app_certificate: str | None = Field(default=None, alias="APP_CERTIFICATE")
    customer_id: str | None = Field(default=None, alias="CUSTOMER_ID")
    customer_secret: str | None = Field(default=None, alias="CUSTOMER_SECRET")

    agora_base_url: str | None = Field(default=None, alias="AGORA_BASE_URL")
    agora_cloud_recording_url: str | None = Field(default=None, alias="AGORA_CLOUD_RECORDING_URL")
    agora_rtt_url: str | None = Field(default=None, alias="AGORA_RTT_URL")
    agora_rtmp_url: str | None = Field(default=None, alias="AGORA_RTMP_URL")
    agora_cloud_player_url: str | None = Field(default=None, alias="AGORA_CLOUD_PLAYER_URL")
    vendor_timeout_sec: int = Field(default=10, alias="VENDOR_TIMEOUT_SEC")

    # -------------------------------------------------------------------------
    # Storage (облачное хранилище для записей и субтитров)
    # -------------------------------------------------------------------------
    storage_vendor: int | None = Field(default=None, alias="STORAGE_VENDOR")
    storage_region: int | None = Field(default=None, alias="STORAGE_REGION")
    storage_bucket: str | None = Field(default=None, alias="STORAGE_BUCKET")
    storage_bucket_access_key: str | None = Field(default=None, alias="STORAGE_BUCKET_ACCESS_KEY")
    storage_bucket_secret_key: str | None = Field(default=None, alias="STORAGE_BUCKET_SECRET_KEY")

    # -------------------------------------------------------------------------
    # Logging
    # -------------------------------------------------------------------------
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_format: str = Field(default="json", alias="LOG_FORMAT")  # json|text

    def model_post_init(self, __context) -> None:
        _apply_file_overrides(self)


def _apply_file_overrides(settings: Settings) -> None:
    alias_to_field = {}
    for name, field in type(settings).model_fields.items():
        alias = field.alias or name
        alias_to_field[str(alias)] = name
        alias_to_field[str(name)] = name

    for key, path in os.environ.items():
        if not key.endswith("_FILE"):
            continue
        base = key[: -len("_FILE")]
        target = alias_to_field.get(base)
        if not target:
            continue
        file_path = (path or "").strip()
        if not file_path:
            continue
        try:
            raw = Path(file_path).read_text(encoding="utf-8")
        except OSError as e:
            logging.getLogger("agora-middleware").error(
                "config_file_read_failed",
                extra={"payload": {"env_key": key, "path": file_path, "error": str(e)[:200]}},
            )
            raise RuntimeError(f"Failed to read {key} from {file_path}") from e
        # значение из файла проходит ту же типизацию, что и ENV
        annotation = type(settings).model_fields[target].annotation
        try:
            value = TypeAdapter(annotation).validate_python(raw.strip())
        except PydanticValidationError as e:
            raise RuntimeError(f"Invalid value for {base} in {file_path}: {e}") from e
        setattr(settings, target, value)


_SETTINGS = Settings()


def get_settings() -> Settings:
    return _SETTINGS
