"""
RTMP push (Media Push, rtmp-converters) и pull (Cloud Player, players).

URL: {base}/{region}/{путь проекта}/rtmp-converters|players[/{id}]
Регион проверяется локально и в вендора с неверным регионом не уходим.
Каждый запрос пробрасывает X-Request-ID клиента.
"""

from __future__ import annotations

from urllib.parse import quote, urlencode

from agora_middleware.common.errors import InvalidConfigurationError
from agora_middleware.common.ids import UidGenerator
from agora_middleware.common.logging import get_project_logger
from agora_middleware.common.utils import is_valid_ipv4
from agora_middleware.connectors.base import VendorDispatcher
from agora_middleware.contracts.common import StatusResponse
from agora_middleware.contracts.rtmp import (
    ClientStartCloudPlayerRequest,
    ClientStartRtmpRequest,
    ClientStopPullRequest,
    ClientStopRtmpRequest,
    ClientUpdatePullRequest,
    ClientUpdateRtmpRequest,
    CloudPlayerStartRequest,
    CloudPlayerUpdateRequest,
    Converter,
    ListResponse,
    Player,
    PlayerAudioUpdate,
    PlayerUpdate,
    PullAudioOptions,
    PushTranscodeOptions,
    RawOptions,
    RtmpPushRequest,
    StartCloudPlayerResponse,
    StartRtmpResponse,
    UpdateRtmpResponse,
)
from agora_middleware.domain.enums import RtmpRegion
from agora_middleware.services.responses import parse_response, timestamp_response
from agora_middleware.services.token_service import TokenService

log = get_project_logger()

DEFAULT_IDLE_TIMEOUT = 300
MIN_IDLE_TIMEOUT = 5
MAX_IDLE_TIMEOUT = 600


def validate_region(region: str | None) -> str:
    try:
        return RtmpRegion(region).value
    except ValueError as e:
        raise InvalidConfigurationError(
            "Invalid region specified.",
            details={"region": region, "allowed": [r.value for r in RtmpRegion]},
        ) from e


def resolve_idle_timeout(value: int | None) -> int | None:
    """idleTimeOut плеера: вне [5, 600] заменяется на 300 с предупреждением."""
    if value is None:
        return None
    if MIN_IDLE_TIMEOUT <= value <= MAX_IDLE_TIMEOUT:
        return value
    log.warning(
        "rtmp_idle_timeout_out_of_range",
        extra={"payload": {"given": value, "used": DEFAULT_IDLE_TIMEOUT}},
    )
    return DEFAULT_IDLE_TIMEOUT


def _with_query(url: str, params: dict) -> str:
    params = {k: v for k, v in params.items() if v is not None}
    if not params:
        return url
    return f"{url}?{urlencode(params)}"


class RtmpService:
    def __init__(
        self,
        *,
        base_url: str,
        dispatcher: VendorDispatcher,
        token_service: TokenService,
        push_path: str | None = None,
        player_path: str | None = None,
        uid_generator: UidGenerator | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.push_path = (push_path or "").strip("/")
        self.player_path = (player_path or "").strip("/")
        self._dispatcher = dispatcher
        self._tokens = token_service
        self._uids = uid_generator or UidGenerator()

    @property
    def push_enabled(self) -> bool:
        return bool(self.push_path)

    @property
    def pull_enabled(self) -> bool:
        return bool(self.player_path)

    # -------------------------------------------------------------------------
    # URL
    # -------------------------------------------------------------------------
    def converters_url(self, region: str, converter_id: str | None = None) -> str:
        url = f"{self.base_url}/{region}/{self.push_path}/rtmp-converters"
        if converter_id:
            url = f"{url}/{quote(converter_id, safe='')}"
        return url

    def players_url(self, region: str, player_id: str | None = None) -> str:
        url = f"{self.base_url}/{region}/{self.player_path}/players"
        if player_id:
            url = f"{url}/{quote(player_id, safe='')}"
        return url

    def _dispatch(self, method: str, url: str, body, request_id: str) -> bytes:
        return self._dispatcher.dispatch(method, url, body, headers={"X-Request-ID": request_id})

    # -------------------------------------------------------------------------
    # Push
    # -------------------------------------------------------------------------
    def build_push_request(self, req: ClientStartRtmpRequest) -> RtmpPushRequest:
        converter = Converter(
            name=req.converter_name,
            rtmp_url=req.stream_url + req.stream_key,
            idle_time_out=req.idle_time_out,
            jitter_buffer_size_ms=req.jitter_buffer_size_ms,
        )
        if req.use_transcoding:
            converter.transcode_options = PushTranscodeOptions(
                rtc_channel=req.rtc_channel,
                audio_options=req.audio_options,
                video_options=req.video_options,
            )
        else:
            if not req.rtc_stream_uid:
                raise InvalidConfigurationError(
                    "rtcStreamUid is required when useTranscoding is false"
                )
            converter.raw_options = RawOptions(
                rtc_channel=req.rtc_channel,
                rtc_stream_uid=req.rtc_stream_uid,
            )
        return RtmpPushRequest(converter=converter)

    def start_push(self, req: ClientStartRtmpRequest, request_id: str) -> bytes:
        region = validate_region(req.region)
        push_req = self.build_push_request(req)

        hint_ip = req.region_hint_ip if is_valid_ipv4(req.region_hint_ip) else None
        url = _with_query(self.converters_url(region), {"regionHintIp": hint_ip})

        body = self._dispatch("POST", url, push_req, request_id)
        resp = parse_response(body, StartRtmpResponse)
        log.info(
            "rtmp_push_started",
            extra={
                "payload": {
                    "region": region,
                    "converter_id": resp.converter.id,
                    "request_id": request_id,
                }
            },
        )
        return timestamp_response(resp)

    def stop_push(self, req: ClientStopRtmpRequest, request_id: str) -> bytes:
        region = validate_region(req.region)
        self._dispatch("DELETE", self.converters_url(region, req.converter_id), None, request_id)
        log.info(
            "rtmp_push_stopped",
            extra={"payload": {"converter_id": req.converter_id, "request_id": request_id}},
        )
        return timestamp_response(StatusResponse())

    def update_push(self, req: ClientUpdateRtmpRequest, request_id: str) -> bytes:
        region = validate_region(req.region)

        video_options = req.video_options
        if video_options is not None:
            # codec и codecProfile после старта не меняются
            video_options = video_options.model_copy(
                update={"codec": None, "codec_profile": None}
            )

        converter = Converter(
            transcode_options=PushTranscodeOptions(
                rtc_channel=req.rtc_channel,
                video_options=video_options,
            ),
            jitter_buffer_size_ms=req.jitter_buffer_size_ms,
        )
        if req.stream_url is not None and req.stream_key is not None:
            converter.rtmp_url = req.stream_url + req.stream_key

        url = _with_query(
            self.converters_url(region, req.converter_id), {"sequence": req.sequence_id}
        )
        body = self._dispatch("PATCH", url, RtmpPushRequest(converter=converter), request_id)
        return timestamp_response(parse_response(body, UpdateRtmpResponse))

    def list_push(self, region: str, request_id: str, channel: str | None = None) -> bytes:
        region = validate_region(region)
        if channel:
            url = (
                f"{self.base_url}/{region}/{self.push_path}"
                f"/channels/{quote(channel, safe='')}/rtmp-converters"
            )
        else:
            url = self.converters_url(region)
        return timestamp_response(
            parse_response(self._dispatch("GET", url, None, request_id), ListResponse)
        )

    # -------------------------------------------------------------------------
    # Pull (Cloud Player)
    # -------------------------------------------------------------------------
    def build_player_request(self, req: ClientStartCloudPlayerRequest) -> CloudPlayerStartRequest:
        uid = req.uid or self._uids.next_uid_str()
        token = self._tokens.rtc_token_for(req.channel_name, uid)

        audio_options = req.audio_options
        if req.video_options is not None and audio_options is None:
            audio_options = PullAudioOptions(profile=0)

        return CloudPlayerStartRequest(
            player=Player(
                audio_options=audio_options,
                video_options=req.video_options,
                stream_url=req.stream_url,
                channel_name=req.channel_name,
                token=token,
                uid=uid,
                idle_time_out=resolve_idle_timeout(req.idle_time_out),
                play_ts=req.play_ts,
                encrypt_mode=req.encrypt_mode,
                name=req.name,
            )
        )

    def start_pull(self, req: ClientStartCloudPlayerRequest, request_id: str) -> bytes:
        region = validate_region(req.region)
        player_req = self.build_player_request(req)

        origin_ip = req.stream_origin_ip if is_valid_ipv4(req.stream_origin_ip) else None
        url = _with_query(self.players_url(region), {"streamOriginIp": origin_ip})

        body = self._dispatch("POST", url, player_req, request_id)
        resp = parse_response(body, StartCloudPlayerResponse)
        log.info(
            "rtmp_pull_started",
            extra={
                "payload": {
                    "region": region,
                    "player_id": resp.player.id,
                    "request_id": request_id,
                }
            },
        )
        return timestamp_response(resp)

    def stop_pull(self, req: ClientStopPullRequest, request_id: str) -> bytes:
        region = validate_region(req.region)
        self._dispatch("DELETE", self.players_url(region, req.player_id), None, request_id)
        log.info(
            "rtmp_pull_stopped",
            extra={"payload": {"player_id": req.player_id, "request_id": request_id}},
        )
        return timestamp_response(StatusResponse())

    def update_pull(self, req: ClientUpdatePullRequest, request_id: str) -> bytes:
        region = validate_region(req.region)
        update = PlayerUpdate(
            stream_url=req.stream_url,
            audio_options=(
                PlayerAudioUpdate(volume=req.volume) if req.volume is not None else None
            ),
            is_pause=req.is_pause,
            seek_position=req.seek_position,
        )
        if not update.to_wire():
            raise InvalidConfigurationError(
                "Nothing to update: set streamUrl, volume, isPause or seekPosition"
            )

        url = _with_query(self.players_url(region, req.player_id), {"sequence": req.sequence_id})
        self._dispatch("PATCH", url, CloudPlayerUpdateRequest(player=update), request_id)
        return timestamp_response(StatusResponse())

    def list_pull(self, region: str, request_id: str) -> bytes:
        region = validate_region(region)
        body = self._dispatch("GET", self.players_url(region), None, request_id)
        return timestamp_response(parse_response(body, ListResponse))
