"""
Контракты транскрипции в реальном времени (Real-Time Transcription, RTT).
"""

from __future__ import annotations

from pydantic import Field

from .cloud_recording import StorageConfig
from .common import VendorResponse, WireModel


# =============================================================================
# ЗАПРОСЫ КЛИЕНТА
# =============================================================================
class TranslateLanguage(WireModel):
    source: str
    target: list[str]


class TranslateConfig(WireModel):
    force_translate_interval: int | None = None
    languages: list[TranslateLanguage]


class ClientStartRTTRequest(WireModel):
    channel_name: str = Field(min_length=1)
    languages: list[str] = Field(default_factory=list)
    subscribe_audio_uids: list[str] = Field(default_factory=list)
    cryption_mode: str | None = None
    secret: str | None = None
    salt: str | None = None
    max_idle_time: int | None = None
    translate_config: TranslateConfig | None = None
    enable_storage: bool | None = None
    enable_ntp_timestamp: bool | None = Field(default=None, alias="enableNTPtimestamp")


class ClientStopRTTRequest(WireModel):
    builder_token: str = Field(min_length=1)


# =============================================================================
# ЗАПРОСЫ К ВЕНДОРУ
# =============================================================================
class AcquireBuilderTokenRequest(WireModel):
    instance_id: str


class RTCConfig(WireModel):
    channel_name: str
    sub_bot_uid: str
    sub_bot_token: str
    pub_bot_uid: str
    pub_bot_token: str
    subscribe_audio_uids: list[str] | None = None
    cryption_mode: str | None = None
    secret: str | None = None
    salt: str | None = None


class CaptionConfig(WireModel):
    storage: StorageConfig


class StartRTTRequest(WireModel):
    languages: list[str]
    max_idle_time: int
    rtc_config: RTCConfig
    caption_config: CaptionConfig | None = None
    translate_config: TranslateConfig | None = None


# =============================================================================
# ОТВЕТЫ ВЕНДОРА
# =============================================================================
class AcquireBuilderTokenResponse(VendorResponse):
    token_name: str
    create_ts: int | None = None
    instance_id: str | None = None


class RTTTaskResponse(VendorResponse):
    task_id: str
    create_ts: int | None = None
    status: str | None = None


class RTTStartResponse(VendorResponse):
    """Сводный ответ старта: builder token + созданная задача."""

    acquire: AcquireBuilderTokenResponse
    start: RTTTaskResponse
