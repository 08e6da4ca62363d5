"""
Транскрипция в реальном времени (RTT, speech-to-text).

Старт задачи:
1) builder token на канал (instanceId = имя канала)
2) два бота: подписчик (слушает аудио) и публикатор (пишет субтитры),
   у каждого свой UID и свой RTC-токен
3) POST tasks?builderToken=...

stop/query требуют taskId и builderToken от клиента.
"""

from __future__ import annotations

from urllib.parse import quote

from agora_middleware.common.errors import MalformedRequestError
from agora_middleware.common.ids import UidGenerator
from agora_middleware.common.logging import get_project_logger
from agora_middleware.connectors.base import VendorDispatcher
from agora_middleware.contracts.cloud_recording import StorageConfig
from agora_middleware.contracts.common import StatusResponse
from agora_middleware.contracts.rtt import (
    AcquireBuilderTokenRequest,
    AcquireBuilderTokenResponse,
    CaptionConfig,
    ClientStartRTTRequest,
    RTCConfig,
    RTTStartResponse,
    RTTTaskResponse,
    StartRTTRequest,
)
from agora_middleware.services.responses import parse_response, timestamp_response
from agora_middleware.services.storage import storage_for_call
from agora_middleware.services.token_service import TokenService

log = get_project_logger()

DEFAULT_MAX_IDLE_TIME = 30
MIN_MAX_IDLE_TIME = 5
MAX_MAX_IDLE_TIME = 2592000  # 30 суток
DEFAULT_LANGUAGES = ("en-US",)


def resolve_max_idle_time(value: int | None) -> int:
    if value is None or not (MIN_MAX_IDLE_TIME <= value <= MAX_MAX_IDLE_TIME):
        return DEFAULT_MAX_IDLE_TIME
    return value


class RTTService:
    def __init__(
        self,
        *,
        base_url: str,
        dispatcher: VendorDispatcher,
        token_service: TokenService,
        storage_config: StorageConfig,
        uid_generator: UidGenerator | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._dispatcher = dispatcher
        self._tokens = token_service
        self._storage = storage_config
        self._uids = uid_generator or UidGenerator()

    def builder_tokens_url(self) -> str:
        return f"{self.base_url}/builderTokens"

    def tasks_url(self, builder_token: str) -> str:
        return f"{self.base_url}/tasks?builderToken={quote(builder_token, safe='')}"

    def task_url(self, task_id: str, builder_token: str) -> str:
        return (
            f"{self.base_url}/tasks/{quote(task_id, safe='')}"
            f"?builderToken={quote(builder_token, safe='')}"
        )

    def acquire_builder_token(self, channel_name: str) -> AcquireBuilderTokenResponse:
        body = self._dispatcher.dispatch(
            "POST",
            self.builder_tokens_url(),
            AcquireBuilderTokenRequest(instance_id=channel_name),
        )
        return parse_response(body, AcquireBuilderTokenResponse)

    def _bot_uids(self) -> tuple[str, str]:
        sub_uid = self._uids.next_uid_str()
        pub_uid = self._uids.next_uid_str()
        while pub_uid == sub_uid:
            pub_uid = self._uids.next_uid_str()
        return sub_uid, pub_uid

    def build_start_request(self, req: ClientStartRTTRequest) -> StartRTTRequest:
        sub_uid, pub_uid = self._bot_uids()
        sub_token = self._tokens.rtc_token_for(req.channel_name, sub_uid)
        pub_token = self._tokens.rtc_token_for(req.channel_name, pub_uid)

        caption_config = None
        if req.enable_storage:
            caption_config = CaptionConfig(
                storage=storage_for_call(
                    self._storage,
                    req.channel_name,
                    enable_ntp_timestamp=req.enable_ntp_timestamp,
                )
            )

        return StartRTTRequest(
            languages=list(req.languages or DEFAULT_LANGUAGES),
            max_idle_time=resolve_max_idle_time(req.max_idle_time),
            rtc_config=RTCConfig(
                channel_name=req.channel_name,
                sub_bot_uid=sub_uid,
                sub_bot_token=sub_token,
                pub_bot_uid=pub_uid,
                pub_bot_token=pub_token,
                subscribe_audio_uids=req.subscribe_audio_uids or None,
                cryption_mode=req.cryption_mode,
                secret=req.secret,
                salt=req.salt,
            ),
            caption_config=caption_config,
            translate_config=req.translate_config,
        )

    def start(self, req: ClientStartRTTRequest) -> bytes:
        acquired = self.acquire_builder_token(req.channel_name)
        start_req = self.build_start_request(req)

        body = self._dispatcher.dispatch("POST", self.tasks_url(acquired.token_name), start_req)
        task = parse_response(body, RTTTaskResponse)

        log.info(
            "rtt_started",
            extra={"payload": {"channel": req.channel_name, "task_id": task.task_id}},
        )
        return timestamp_response(RTTStartResponse(acquire=acquired, start=task))

    def stop(self, task_id: str, builder_token: str) -> bytes:
        self._require_handle(task_id, builder_token)
        body = self._dispatcher.dispatch("DELETE", self.task_url(task_id, builder_token))
        # Вендор может ответить пустым телом
        resp = parse_response(body, StatusResponse)
        log.info("rtt_stopped", extra={"payload": {"task_id": task_id}})
        return timestamp_response(resp)

    def query(self, task_id: str, builder_token: str) -> bytes:
        self._require_handle(task_id, builder_token)
        body = self._dispatcher.dispatch("GET", self.task_url(task_id, builder_token))
        return timestamp_response(parse_response(body, RTTTaskResponse))

    @staticmethod
    def _require_handle(task_id: str, builder_token: str) -> None:
        if not task_id:
            raise MalformedRequestError("taskId is required")
        if not builder_token:
            raise MalformedRequestError("builderToken is required")
