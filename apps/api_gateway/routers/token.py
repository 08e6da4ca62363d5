from __future__ import annotations

from fastapi import APIRouter, Depends

from agora_middleware.contracts.token import TokenRequest, TokenResponse
from agora_middleware.services.token_service import TokenService
from apps.api_gateway.deps import get_token_service

router = APIRouter(prefix="/token", tags=["token"])
SERVICE_DEP = Depends(get_token_service)


@router.post("/getNew", response_model=TokenResponse)
def get_new_token(req: TokenRequest, svc: TokenService = SERVICE_DEP) -> TokenResponse:
    return TokenResponse(token=svc.issue(req))
