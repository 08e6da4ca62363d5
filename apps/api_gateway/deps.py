"""
FastAPI Depends.

Сюда выносим:
- доступ к сервисам, собранным при старте (app.state.services)
- обязательный X-Request-ID для RTMP-маршрутов
- отдача готовых байт ответа вендора как JSON
"""

from __future__ import annotations

from fastapi import Header, Request
from fastapi.responses import Response

from agora_middleware.common.errors import MalformedRequestError
from agora_middleware.services.cloud_recording_service import CloudRecordingService
from agora_middleware.services.registry import ServiceRegistry
from agora_middleware.services.rtmp_service import RtmpService
from agora_middleware.services.rtt_service import RTTService
from agora_middleware.services.token_service import TokenService


def get_registry(request: Request) -> ServiceRegistry:
    return request.app.state.services


def get_token_service(request: Request) -> TokenService:
    return get_registry(request).token


def get_cloud_recording_service(request: Request) -> CloudRecordingService:
    return get_registry(request).cloud_recording


def get_rtt_service(request: Request) -> RTTService:
    return get_registry(request).rtt


def get_rtmp_service(request: Request) -> RtmpService:
    return get_registry(request).rtmp


def require_request_id(
    x_request_id: str | None = Header(default=None, alias="X-Request-ID"),
) -> str:
    request_id = (x_request_id or "").strip()
    if not request_id:
        raise MalformedRequestError("X-Request-ID header is required")
    return request_id


def vendor_response(body: bytes) -> Response:
    return Response(content=body, media_type="application/json")
