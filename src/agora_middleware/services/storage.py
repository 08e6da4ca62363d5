"""
Конфигурация облачного хранилища на один вызов.

Общая конфигурация читается один раз при старте и не меняется.
Префикс имени файла считается для каждого старта отдельно и кладётся в копию.
"""

from __future__ import annotations

from datetime import datetime

from agora_middleware.common.config import Settings
from agora_middleware.common.time import date_time_parts
from agora_middleware.contracts.cloud_recording import StorageConfig, StorageExtensionParams


def storage_from_settings(s: Settings) -> StorageConfig:
    return StorageConfig(
        vendor=int(s.storage_vendor),
        region=int(s.storage_region),
        bucket=s.storage_bucket,
        access_key=s.storage_bucket_access_key,
        secret_key=s.storage_bucket_secret_key,
    )


def file_name_prefix(channel_name: str, now: datetime | None = None) -> list[str]:
    """
    [имя канала без "-", YYYYMMDD, HHMMSS] в UTC.
    Вендор допускает в сегментах префикса только буквы и цифры.
    """
    date_part, time_part = date_time_parts(now)
    return [channel_name.replace("-", ""), date_part, time_part]


def storage_for_call(
    base: StorageConfig,
    channel_name: str,
    *,
    enable_ntp_timestamp: bool | None = None,
    now: datetime | None = None,
) -> StorageConfig:
    update: dict = {"file_name_prefix": file_name_prefix(channel_name, now)}
    if enable_ntp_timestamp:
        params = base.extension_params or StorageExtensionParams()
        update["extension_params"] = params.model_copy(update={"enable_ntp_timestamp": True})
    return base.model_copy(update=update, deep=True)
