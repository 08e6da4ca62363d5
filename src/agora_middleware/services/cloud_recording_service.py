"""
Облачная запись (Cloud Recording).

Сценарий старта:
1) UID бота записи + RTC-токен
2) конфигурация хранилища для этого вызова (префикс по каналу и времени)
3) acquire -> resourceId
4) start -> sid

stop/query/update не хранят состояние сессии: resourceId/sid передаёт клиент.
"""

from __future__ import annotations

from agora_middleware.common.errors import InvalidConfigurationError
from agora_middleware.common.ids import UidGenerator
from agora_middleware.common.logging import get_project_logger
from agora_middleware.connectors.base import VendorDispatcher
from agora_middleware.contracts.cloud_recording import (
    ALL_STREAMS,
    AcquireClientRequest,
    AcquireResourceRequest,
    AcquireResourceResponse,
    ActiveRecordingResponse,
    ClientStartRecordingRequest,
    ClientStopRecordingRequest,
    ClientUpdateLayoutRequest,
    ClientUpdateSubscriptionRequest,
    RecordingConfig,
    StartClientRequest,
    StartParameter,
    StartRecordingRequest,
    StartRecordingResponse,
    StopClientRequest,
    StopRecordingRequest,
    StorageConfig,
    UpdateLayoutRequest,
    UpdateRecordingResponse,
    UpdateSubscriptionRequest,
    default_recording_config,
)
from agora_middleware.domain.enums import RecordingMode, scene_code
from agora_middleware.services.responses import (
    parse_response,
    timestamp_response,
    validate_active_recording,
)
from agora_middleware.services.storage import storage_for_call
from agora_middleware.services.token_service import TokenService

log = get_project_logger()

DEFAULT_RECORDING_MODE = RecordingMode.mix.value
RESOURCE_EXPIRED_HOUR = 24


def resolve_recording_mode(value: str | None) -> str:
    """Пустое значение -> mix; вне {individual, mix, web} -> InvalidConfigurationError."""
    if not value:
        return DEFAULT_RECORDING_MODE
    try:
        return RecordingMode(value).value
    except ValueError as e:
        raise InvalidConfigurationError(
            "Invalid recordingMode",
            details={"recordingMode": value, "allowed": [m.value for m in RecordingMode]},
        ) from e


def apply_recording_defaults(cfg: RecordingConfig | None) -> RecordingConfig:
    """
    Заполняет незаданные поля значениями по умолчанию.
    Подписка на "все потоки" ставится, только если клиент не задал ни subscribe, ни unsubscribe.
    """
    defaults = default_recording_config()
    if cfg is None:
        return defaults

    update: dict = {}
    for name in (
        "channel_type",
        "stream_types",
        "video_stream_type",
        "max_idle_time",
        "subscribe_uid_group",
        "stream_mode",
    ):
        if getattr(cfg, name) is None:
            update[name] = getattr(defaults, name)
    if cfg.subscribe_audio_uids is None and cfg.unsubscribe_audio_uids is None:
        update["subscribe_audio_uids"] = [ALL_STREAMS]
    if cfg.subscribe_video_uids is None and cfg.unsubscribe_video_uids is None:
        update["subscribe_video_uids"] = [ALL_STREAMS]
    return cfg.model_copy(update=update)


class CloudRecordingService:
    def __init__(
        self,
        *,
        app_id: str,
        base_url: str,
        dispatcher: VendorDispatcher,
        token_service: TokenService,
        storage_config: StorageConfig,
        uid_generator: UidGenerator | None = None,
    ) -> None:
        self.app_id = app_id
        self.base_url = base_url.rstrip("/")
        self._dispatcher = dispatcher
        self._tokens = token_service
        self._storage = storage_config
        self._uids = uid_generator or UidGenerator()

    # -------------------------------------------------------------------------
    # URL
    # -------------------------------------------------------------------------
    def _app_url(self) -> str:
        return f"{self.base_url}/{self.app_id}/cloud_recording"

    def acquire_url(self) -> str:
        return f"{self._app_url()}/acquire"

    def start_url(self, resource_id: str, mode: str) -> str:
        return f"{self._app_url()}/resourceid/{resource_id}/mode/{mode}/start"

    def session_url(self, resource_id: str, sid: str, mode: str, action: str) -> str:
        return f"{self._app_url()}/resourceid/{resource_id}/sid/{sid}/mode/{mode}/{action}"

    # -------------------------------------------------------------------------
    # Операции
    # -------------------------------------------------------------------------
    def acquire_resource(self, req: AcquireResourceRequest) -> AcquireResourceResponse:
        body = self._dispatcher.dispatch("POST", self.acquire_url(), req)
        return parse_response(body, AcquireResourceResponse)

    def build_start_requests(
        self, req: ClientStartRecordingRequest
    ) -> tuple[str, AcquireResourceRequest, StartClientRequest]:
        """
        Собирает тела acquire и start. Возвращает (mode, acquire, clientRequest для start).
        """
        mode = resolve_recording_mode(req.recording_mode)
        uid = self._uids.next_uid_str()
        token = self._tokens.rtc_token_for(req.channel_name, uid)
        storage = storage_for_call(self._storage, req.channel_name)
        recording_config = apply_recording_defaults(req.recording_config)

        acquire = AcquireResourceRequest(
            cname=req.channel_name,
            uid=uid,
            client_request=AcquireClientRequest(
                scene=scene_code(req.scene_mode),
                resource_expired_hour=RESOURCE_EXPIRED_HOUR,
                start_parameter=StartParameter(
                    token=token,
                    storage_config=storage,
                    recording_config=recording_config,
                ),
                exclude_resource_ids=req.exclude_resource_ids,
            ),
        )
        start = StartClientRequest(
            token=token,
            storage_config=storage,
            recording_config=recording_config,
            recording_file_config=req.recording_file_config,
            snapshot_config=req.snapshot_config,
            extension_service_config=req.extension_service_config,
            apps_collection=req.apps_collection,
            transcode_options=req.transcode_options,
        )
        return mode, acquire, start

    def start_recording(self, req: ClientStartRecordingRequest) -> bytes:
        mode, acquire_req, start_client_req = self.build_start_requests(req)
        acquired = self.acquire_resource(acquire_req)

        start_req = StartRecordingRequest(
            cname=acquire_req.cname,
            uid=acquire_req.uid,
            client_request=start_client_req,
        )
        body = self._dispatcher.dispatch(
            "POST", self.start_url(acquired.resource_id, mode), start_req
        )
        resp = parse_response(body, StartRecordingResponse)

        log.info(
            "cloud_recording_started",
            extra={
                "payload": {
                    "cname": req.channel_name,
                    "mode": mode,
                    "resource_id": resp.resource_id,
                    "sid": resp.sid,
                }
            },
        )
        return timestamp_response(resp)

    def stop_recording(self, req: ClientStopRecordingRequest) -> bytes:
        mode = resolve_recording_mode(req.recording_mode)
        stop_req = StopRecordingRequest(
            cname=req.cname,
            uid=req.uid,
            client_request=StopClientRequest(async_stop=req.async_stop),
        )
        body = self._dispatcher.dispatch(
            "POST", self.session_url(req.resource_id, req.sid, mode, "stop"), stop_req
        )
        resp = parse_response(body, ActiveRecordingResponse)
        # web-режим пишет результат в extensionServiceState, fileList там нет
        validate_active_recording(resp, require_file_list=mode != RecordingMode.web.value)

        log.info(
            "cloud_recording_stopped",
            extra={
                "payload": {"cname": req.cname, "resource_id": req.resource_id, "sid": req.sid}
            },
        )
        return timestamp_response(resp)

    def query_status(self, resource_id: str, sid: str, recording_mode: str | None) -> bytes:
        mode = resolve_recording_mode(recording_mode)
        body = self._dispatcher.dispatch(
            "GET", self.session_url(resource_id, sid, mode, "query")
        )
        resp = parse_response(body, ActiveRecordingResponse)
        validate_active_recording(resp, require_file_list=False)
        return timestamp_response(resp)

    def update_subscription(self, req: ClientUpdateSubscriptionRequest) -> bytes:
        if not req.recording_config.is_valid():
            raise InvalidConfigurationError(
                "Exactly one of streamSubscribe, webRecordingConfig or rtmpPublishConfig "
                "must be set",
                details={"configured": req.recording_config.configured_count()},
            )
        mode = resolve_recording_mode(req.recording_mode)
        update_req = UpdateSubscriptionRequest(
            cname=req.cname,
            uid=req.uid,
            client_request=req.recording_config,
        )
        body = self._dispatcher.dispatch(
            "POST", self.session_url(req.resource_id, req.sid, mode, "update"), update_req
        )
        return timestamp_response(parse_response(body, UpdateRecordingResponse))

    def update_layout(self, req: ClientUpdateLayoutRequest) -> bytes:
        mode = resolve_recording_mode(req.recording_mode)
        layout_req = UpdateLayoutRequest(
            cname=req.cname,
            uid=req.uid,
            client_request=req.recording_config,
        )
        body = self._dispatcher.dispatch(
            "POST", self.session_url(req.resource_id, req.sid, mode, "updateLayout"), layout_req
        )
        return timestamp_response(parse_response(body, UpdateRecordingResponse))
