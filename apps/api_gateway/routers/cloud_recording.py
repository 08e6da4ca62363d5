from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response

from agora_middleware.contracts.cloud_recording import (
    ClientStartRecordingRequest,
    ClientStopRecordingRequest,
    ClientUpdateLayoutRequest,
    ClientUpdateSubscriptionRequest,
)
from agora_middleware.services.cloud_recording_service import CloudRecordingService
from apps.api_gateway.deps import get_cloud_recording_service, vendor_response

router = APIRouter(prefix="/cloud_recording", tags=["cloud_recording"])
SERVICE_DEP = Depends(get_cloud_recording_service)


@router.post("/start")
def start_recording(
    req: ClientStartRecordingRequest, svc: CloudRecordingService = SERVICE_DEP
) -> Response:
    return vendor_response(svc.start_recording(req))


@router.post("/stop")
def stop_recording(
    req: ClientStopRecordingRequest, svc: CloudRecordingService = SERVICE_DEP
) -> Response:
    return vendor_response(svc.stop_recording(req))


@router.get("/status")
def recording_status(
    resource_id: str = Query(alias="resourceId", min_length=1),
    sid: str = Query(min_length=1),
    recording_mode: str | None = Query(default=None, alias="recordingMode"),
    svc: CloudRecordingService = SERVICE_DEP,
) -> Response:
    return vendor_response(svc.query_status(resource_id, sid, recording_mode))


@router.post("/update/subscriber-list")
def update_subscriber_list(
    req: ClientUpdateSubscriptionRequest, svc: CloudRecordingService = SERVICE_DEP
) -> Response:
    return vendor_response(svc.update_subscription(req))


@router.post("/update/layout")
def update_layout(
    req: ClientUpdateLayoutRequest, svc: CloudRecordingService = SERVICE_DEP
) -> Response:
    return vendor_response(svc.update_layout(req))
