"""
Контракты облачной записи (Cloud Recording).

Назначение:
- запросы клиента к middleware
- тела запросов к REST API вендора
- ответы вендора, включая полиморфный serverResponse.fileList
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import ConfigDict, Field

from .common import VendorObject, VendorResponse, WireModel

ALL_STREAMS = "#allstream#"


# =============================================================================
# ХРАНИЛИЩЕ
# =============================================================================
class StorageExtensionParams(WireModel):
    sse: str | None = None
    tag: str | None = None
    enable_ntp_timestamp: bool | None = Field(default=None, alias="enableNTPtimestamp")


class StorageConfig(WireModel):
    vendor: int
    region: int
    bucket: str
    access_key: str
    secret_key: str
    file_name_prefix: list[str] | None = None
    extension_params: StorageExtensionParams | None = None


# =============================================================================
# КОНФИГУРАЦИЯ ЗАПИСИ
# =============================================================================
class LayoutConfig(WireModel):
    model_config = ConfigDict(alias_generator=None)

    uid: str | None = None
    x_axis: float
    y_axis: float
    width: float
    height: float
    alpha: float | None = None
    render_mode: int | None = None


class BackgroundConfig(WireModel):
    model_config = ConfigDict(alias_generator=None)

    uid: str
    image_url: str
    render_mode: int | None = None


class TranscodingConfig(WireModel):
    width: int
    height: int
    fps: int
    bitrate: int
    max_resolution_uid: str | None = None
    mixed_video_layout: int | None = None
    background_color: str | None = None
    background_image: str | None = None
    default_user_background_image: str | None = None
    layout_config: list[LayoutConfig] | None = None
    background_config: list[BackgroundConfig] | None = None


class RecordingConfig(WireModel):
    channel_type: int | None = None
    decryption_mode: int | None = None
    secret: str | None = None
    salt: str | None = None
    max_idle_time: int | None = None
    stream_types: int | None = None
    video_stream_type: int | None = None
    subscribe_audio_uids: list[str] | None = None
    unsubscribe_audio_uids: list[str] | None = None
    subscribe_video_uids: list[str] | None = None
    unsubscribe_video_uids: list[str] | None = None
    subscribe_uid_group: int | None = None
    stream_mode: str | None = None
    audio_profile: int | None = None
    transcoding_config: TranscodingConfig | None = None


def default_recording_config() -> RecordingConfig:
    """
    Конфигурация записи по умолчанию: все потоки канала, mix-совместимые параметры.
    """
    return RecordingConfig(
        channel_type=0,
        stream_types=2,
        video_stream_type=0,
        max_idle_time=120,
        subscribe_audio_uids=[ALL_STREAMS],
        subscribe_video_uids=[ALL_STREAMS],
        subscribe_uid_group=0,
        stream_mode="standard",
    )


class RecordingFileConfig(WireModel):
    av_file_type: list[str]


class SnapshotConfig(WireModel):
    capture_interval: int | None = None
    file_type: list[str]


class ServiceParam(WireModel):
    url: str
    audio_profile: int | None = None
    video_width: int | None = None
    video_height: int | None = None
    max_recording_hour: int | None = None
    video_bitrate: int | None = None
    video_fps: int | None = None
    mobile: bool | None = None
    max_video_duration: int | None = None
    onhold: bool | None = None
    ready_timeout: int | None = None


class ExtensionService(WireModel):
    service_name: str
    error_handle_policy: str | None = None
    service_param: ServiceParam


class ExtensionServiceConfig(WireModel):
    error_handle_policy: str | None = None
    extension_services: list[ExtensionService]


class AppsCollection(WireModel):
    combination_policy: str | None = None


class TransConfig(WireModel):
    trans_mode: str


class Container(WireModel):
    format: str


class TranscodeAudio(WireModel):
    sample_rate: str | None = None
    bitrate: str | None = None
    channels: str | None = None


class TranscodeOptions(WireModel):
    trans_config: TransConfig
    container: Container | None = None
    audio: TranscodeAudio | None = None


# =============================================================================
# ЗАПРОСЫ КЛИЕНТА
# =============================================================================
class ClientStartRecordingRequest(WireModel):
    channel_name: str = Field(min_length=1)
    scene_mode: str | None = None
    recording_mode: str | None = None
    exclude_resource_ids: list[str] | None = None
    recording_config: RecordingConfig | None = None
    recording_file_config: RecordingFileConfig | None = None
    snapshot_config: SnapshotConfig | None = None
    extension_service_config: ExtensionServiceConfig | None = None
    apps_collection: AppsCollection | None = None
    transcode_options: TranscodeOptions | None = None


class ClientStopRecordingRequest(WireModel):
    cname: str = Field(min_length=1)
    uid: str = Field(min_length=1)
    resource_id: str = Field(min_length=1)
    sid: str = Field(min_length=1)
    recording_mode: str | None = None
    async_stop: bool | None = Field(default=None, alias="async_stop")


class AudioUidList(WireModel):
    subscribe_audio_uids: list[str] | None = None
    unsubscribe_audio_uids: list[str] | None = None


class VideoUidList(WireModel):
    subscribe_video_uids: list[str] | None = None
    unsubscribe_video_uids: list[str] | None = None


class StreamSubscribe(WireModel):
    audio_uid_list: AudioUidList | None = None
    video_uid_list: VideoUidList | None = None


class WebRecordingConfig(WireModel):
    onhold: bool


class RtmpOutput(WireModel):
    rtmp_url: str


class RtmpPublishConfig(WireModel):
    outputs: list[RtmpOutput]


class UpdateSubscriptionClientRequest(WireModel):
    """
    Ровно один из трёх блоков: подписка на потоки, пауза web-записи, RTMP-публикация.
    """

    stream_subscribe: StreamSubscribe | None = None
    web_recording_config: WebRecordingConfig | None = None
    rtmp_publish_config: RtmpPublishConfig | None = None

    def configured_count(self) -> int:
        alternatives = (
            self.stream_subscribe,
            self.web_recording_config,
            self.rtmp_publish_config,
        )
        return sum(1 for alt in alternatives if alt is not None)

    def is_valid(self) -> bool:
        return self.configured_count() == 1


class UpdateLayoutClientRequest(WireModel):
    max_resolution_uid: str | None = None
    mixed_video_layout: int | None = None
    background_color: str | None = None
    background_image: str | None = None
    default_user_background_image: str | None = None
    layout_config: list[LayoutConfig] | None = None
    background_config: list[BackgroundConfig] | None = None


class _ClientUpdateBase(WireModel):
    cname: str = Field(min_length=1)
    uid: str = Field(min_length=1)
    resource_id: str = Field(min_length=1)
    sid: str = Field(min_length=1)
    recording_mode: str | None = None


class ClientUpdateSubscriptionRequest(_ClientUpdateBase):
    recording_config: UpdateSubscriptionClientRequest


class ClientUpdateLayoutRequest(_ClientUpdateBase):
    recording_config: UpdateLayoutClientRequest


# =============================================================================
# ЗАПРОСЫ К ВЕНДОРУ
# =============================================================================
class StartParameter(WireModel):
    token: str
    storage_config: StorageConfig
    recording_config: RecordingConfig


class AcquireClientRequest(WireModel):
    scene: int = 0
    resource_expired_hour: int = 24
    start_parameter: StartParameter | None = None
    exclude_resource_ids: list[str] | None = None


class AcquireResourceRequest(WireModel):
    cname: str
    uid: str
    client_request: AcquireClientRequest


class StartClientRequest(WireModel):
    token: str
    storage_config: StorageConfig
    recording_config: RecordingConfig
    recording_file_config: RecordingFileConfig | None = None
    snapshot_config: SnapshotConfig | None = None
    extension_service_config: ExtensionServiceConfig | None = None
    apps_collection: AppsCollection | None = None
    transcode_options: TranscodeOptions | None = None


class StartRecordingRequest(WireModel):
    cname: str
    uid: str
    client_request: StartClientRequest


class StopClientRequest(WireModel):
    async_stop: bool | None = Field(default=None, alias="async_stop")


class StopRecordingRequest(WireModel):
    cname: str
    uid: str
    client_request: StopClientRequest


class UpdateSubscriptionRequest(WireModel):
    cname: str
    uid: str
    client_request: UpdateSubscriptionClientRequest


class UpdateLayoutRequest(WireModel):
    cname: str
    uid: str
    client_request: UpdateLayoutClientRequest


# =============================================================================
# ОТВЕТЫ ВЕНДОРА
# =============================================================================
class AcquireResourceResponse(VendorResponse):
    cname: str | None = None
    uid: str | None = None
    resource_id: str


class StartRecordingResponse(VendorResponse):
    cname: str | None = None
    uid: str | None = None
    resource_id: str
    sid: str


class UpdateRecordingResponse(VendorResponse):
    cname: str | None = None
    uid: str | None = None
    resource_id: str | None = None
    sid: str | None = None


class FileDetail(WireModel):
    """Элемент списка файлов при fileListMode="string"."""

    filename: str
    slice_start_time: int


class FileListEntry(WireModel):
    """Элемент списка файлов при fileListMode="json"."""

    file_name: str
    track_type: str
    uid: str
    mixed_all_user: bool
    is_playable: bool
    slice_start_time: int


class FlatFileList(WireModel):
    kind: Literal["string"] = "string"
    files: list[FileDetail]


class StructuredFileList(WireModel):
    kind: Literal["json"] = "json"
    files: list[FileListEntry]


DecodedFileList = FlatFileList | StructuredFileList


class ServerResponse(VendorObject):
    extension_service_state: list[dict[str, Any]] | None = None
    uploading_status: str | None = None
    file_list_mode: str | None = None
    # Форма зависит от file_list_mode, разбирается в decode_file_list
    file_list: Any = None


class ActiveRecordingResponse(VendorResponse):
    """Ответ stop/query: содержит serverResponse с полиморфным списком файлов."""

    cname: str | None = None
    uid: str | None = None
    resource_id: str
    sid: str
    server_response: ServerResponse | None = None
