from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response

from agora_middleware.contracts.rtt import ClientStartRTTRequest, ClientStopRTTRequest
from agora_middleware.services.rtt_service import RTTService
from apps.api_gateway.deps import get_rtt_service, vendor_response

router = APIRouter(prefix="/rtt", tags=["rtt"])
SERVICE_DEP = Depends(get_rtt_service)


@router.post("/start")
def start_rtt(req: ClientStartRTTRequest, svc: RTTService = SERVICE_DEP) -> Response:
    return vendor_response(svc.start(req))


@router.post("/stop/{task_id}")
def stop_rtt(task_id: str, req: ClientStopRTTRequest, svc: RTTService = SERVICE_DEP) -> Response:
    return vendor_response(svc.stop(task_id, req.builder_token))


@router.get("/status/{task_id}")
def rtt_status(
    task_id: str,
    builder_token: str = Query(alias="builderToken", min_length=1),
    svc: RTTService = SERVICE_DEP,
) -> Response:
    return vendor_response(svc.query(task_id, builder_token))
