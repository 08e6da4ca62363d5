"""
Контракты RTMP: push (Media Push, rtmp-converters) и pull (Cloud Player, players).
"""

from __future__ import annotations

from typing import Any

from pydantic import Field

from .common import VendorObject, VendorResponse, WireModel


# =============================================================================
# PUSH: ОПЦИИ ТРАНСКОДИРОВАНИЯ
# =============================================================================
class PushAudioOptions(WireModel):
    codec_profile: str | None = None
    sample_rate: int | None = None
    bitrate: int | None = None
    audio_channels: int | None = None


class Canvas(WireModel):
    width: int
    height: int


class LayoutRegion(WireModel):
    x_pos: int
    y_pos: int
    z_index: int | None = None
    width: int
    height: int


class PushLayout(WireModel):
    rtc_stream_uid: str
    region: LayoutRegion
    fill_mode: str | None = None
    placeholder_image_url: str | None = None


class VerticalLayout(WireModel):
    max_resolution_uid: int | None = None
    fill_mode: str | None = None


class SeiCustomized(WireModel):
    prefix_for_agora_sei: str | None = None
    payload: str | None = None


class SeiSource(WireModel):
    metadata: bool | None = None
    datastream: bool | None = None
    customized: SeiCustomized | None = None


class SeiSink(WireModel):
    type: int | None = None


class SeiOptions(WireModel):
    source: SeiSource | None = None
    sink: SeiSink | None = None


class PushVideoOptions(WireModel):
    canvas: Canvas | None = None
    layout: list[PushLayout] | None = None
    vertical: VerticalLayout | None = None
    default_placeholder_image_url: str | None = None
    codec: str | None = None
    codec_profile: str | None = None
    frame_rate: int | None = None
    gop: int | None = None
    bitrate: int | None = None
    sei_options: SeiOptions | None = None


class PushTranscodeOptions(WireModel):
    rtc_channel: str
    audio_options: PushAudioOptions | None = None
    video_options: PushVideoOptions | None = None


class RawOptions(WireModel):
    rtc_channel: str
    rtc_stream_uid: str


class Converter(WireModel):
    name: str | None = None
    transcode_options: PushTranscodeOptions | None = None
    raw_options: RawOptions | None = None
    rtmp_url: str | None = None
    idle_time_out: int | None = None
    jitter_buffer_size_ms: int | None = None


class RtmpPushRequest(WireModel):
    converter: Converter


# =============================================================================
# PULL: CLOUD PLAYER
# =============================================================================
class PullAudioOptions(WireModel):
    profile: int = 0


class PullVideoOptions(WireModel):
    width: int | None = None
    height: int | None = None
    width_height_adaption: bool | None = None
    frame_rate: int | None = None
    bitrate: int | None = None
    codec: str | None = None
    fill_mode: str | None = None
    gop: int | None = None


class Player(WireModel):
    audio_options: PullAudioOptions | None = None
    video_options: PullVideoOptions | None = None
    stream_url: str
    channel_name: str
    token: str
    uid: str
    idle_time_out: int | None = None
    play_ts: int | None = None
    encrypt_mode: str | None = None
    name: str | None = None


class CloudPlayerStartRequest(WireModel):
    player: Player


class PlayerAudioUpdate(WireModel):
    volume: int


class PlayerUpdate(WireModel):
    stream_url: str | None = None
    audio_options: PlayerAudioUpdate | None = None
    is_pause: bool | None = None
    seek_position: int | None = None


class CloudPlayerUpdateRequest(WireModel):
    player: PlayerUpdate


# =============================================================================
# ЗАПРОСЫ КЛИЕНТА
# =============================================================================
class ClientStartRtmpRequest(WireModel):
    converter_name: str | None = None
    rtc_channel: str = Field(min_length=1)
    stream_url: str = Field(min_length=1)
    stream_key: str = ""
    region: str
    region_hint_ip: str | None = None
    use_transcoding: bool = False
    rtc_stream_uid: str | None = None
    audio_options: PushAudioOptions | None = None
    video_options: PushVideoOptions | None = None
    idle_time_out: int | None = None
    jitter_buffer_size_ms: int | None = None


class ClientStopRtmpRequest(WireModel):
    converter_id: str = Field(min_length=1)
    region: str


class ClientUpdateRtmpRequest(WireModel):
    converter_id: str = Field(min_length=1)
    region: str
    stream_url: str | None = None
    stream_key: str | None = None
    rtc_channel: str = Field(min_length=1)
    video_options: PushVideoOptions | None = None
    jitter_buffer_size_ms: int | None = None
    sequence_id: int | None = None


class ClientStartCloudPlayerRequest(WireModel):
    channel_name: str = Field(min_length=1)
    stream_url: str = Field(min_length=1)
    region: str
    uid: str | None = None
    name: str | None = None
    stream_origin_ip: str | None = None
    audio_options: PullAudioOptions | None = None
    video_options: PullVideoOptions | None = None
    idle_time_out: int | None = None
    play_ts: int | None = None
    encrypt_mode: str | None = None


class ClientStopPullRequest(WireModel):
    player_id: str = Field(min_length=1)
    region: str


class ClientUpdatePullRequest(WireModel):
    player_id: str = Field(min_length=1)
    region: str
    stream_url: str | None = None
    volume: int | None = Field(default=None, ge=0, le=200)
    is_pause: bool | None = None
    seek_position: int | None = None
    sequence_id: int | None = None


# =============================================================================
# ОТВЕТЫ ВЕНДОРА
# =============================================================================
class ConverterInfo(VendorObject):
    id: str
    create_ts: int | None = None
    update_ts: int | None = None
    state: str | None = None


class StartRtmpResponse(VendorResponse):
    converter: ConverterInfo
    fields: str | None = None


class UpdateRtmpResponse(VendorResponse):
    converter: ConverterInfo | None = None
    fields: str | None = None


class PlayerInfo(VendorObject):
    id: str
    create_ts: int | None = None
    uid: str | None = None


class StartCloudPlayerResponse(VendorResponse):
    player: PlayerInfo
    fields: str | None = None


class ListResponse(VendorResponse):
    """Список конвертеров/плееров: тело вендора целиком проходит как есть."""

    success: bool | None = None
    data: dict[str, Any] | None = None
