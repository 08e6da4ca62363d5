"""
RTMP push/pull. Все маршруты требуют заголовок X-Request-ID.
Push и pull подключаются независимо, по наличию путей в конфигурации.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response

from agora_middleware.contracts.rtmp import (
    ClientStartCloudPlayerRequest,
    ClientStartRtmpRequest,
    ClientStopPullRequest,
    ClientStopRtmpRequest,
    ClientUpdatePullRequest,
    ClientUpdateRtmpRequest,
)
from agora_middleware.services.rtmp_service import RtmpService
from apps.api_gateway.deps import get_rtmp_service, require_request_id, vendor_response

SERVICE_DEP = Depends(get_rtmp_service)
REQUEST_ID_DEP = Depends(require_request_id)

push_router = APIRouter(prefix="/rtmp/push", tags=["rtmp"])
pull_router = APIRouter(prefix="/rtmp/pull", tags=["rtmp"])


# =============================================================================
# PUSH
# =============================================================================
@push_router.post("/start")
def start_push(
    req: ClientStartRtmpRequest,
    request_id: str = REQUEST_ID_DEP,
    svc: RtmpService = SERVICE_DEP,
) -> Response:
    return vendor_response(svc.start_push(req, request_id))


@push_router.post("/stop")
def stop_push(
    req: ClientStopRtmpRequest,
    request_id: str = REQUEST_ID_DEP,
    svc: RtmpService = SERVICE_DEP,
) -> Response:
    return vendor_response(svc.stop_push(req, request_id))


@push_router.post("/update")
def update_push(
    req: ClientUpdateRtmpRequest,
    request_id: str = REQUEST_ID_DEP,
    svc: RtmpService = SERVICE_DEP,
) -> Response:
    return vendor_response(svc.update_push(req, request_id))


@push_router.get("/list")
def list_push(
    region: str = Query(...),
    channel: str | None = Query(default=None),
    request_id: str = REQUEST_ID_DEP,
    svc: RtmpService = SERVICE_DEP,
) -> Response:
    return vendor_response(svc.list_push(region, request_id, channel=channel))


# =============================================================================
# PULL
# =============================================================================
@pull_router.post("/start")
def start_pull(
    req: ClientStartCloudPlayerRequest,
    request_id: str = REQUEST_ID_DEP,
    svc: RtmpService = SERVICE_DEP,
) -> Response:
    return vendor_response(svc.start_pull(req, request_id))


@pull_router.post("/stop")
def stop_pull(
    req: ClientStopPullRequest,
    request_id: str = REQUEST_ID_DEP,
    svc: RtmpService = SERVICE_DEP,
) -> Response:
    return vendor_response(svc.stop_pull(req, request_id))


@pull_router.post("/update")
def update_pull(
    req: ClientUpdatePullRequest,
    request_id: str = REQUEST_ID_DEP,
    svc: RtmpService = SERVICE_DEP,
) -> Response:
    return vendor_response(svc.update_pull(req, request_id))


@pull_router.get("/list")
def list_pull(
    region: str = Query(...),
    request_id: str = REQUEST_ID_DEP,
    svc: RtmpService = SERVICE_DEP,
) -> Response:
    return vendor_response(svc.list_pull(region, request_id))
