"""
HTTP-диспетчер для REST API Agora.

Назначение:
- единая точка обращения к вендору для всех сервисов
- Basic-Auth заголовок, JSON-тело, ограниченный таймаут
- классификация ошибок: Malformed / Transport / VendorRejected
- без ретраев: любая ошибка сразу уходит вызывающему
"""

from __future__ import annotations

import json
from typing import Any

import requests
from pydantic import BaseModel

from agora_middleware.common.errors import (
    MalformedRequestError,
    TransportError,
    VendorRejectedError,
)
from agora_middleware.common.logging import get_vendor_logger
from agora_middleware.common.metrics import record_vendor_outcome, track_vendor_latency
from agora_middleware.common.utils import truncate

log = get_vendor_logger()

DEFAULT_TIMEOUT_SEC = 10


def requires_body(method: str, body: Any) -> bool:
    """
    GET всегда без тела, DELETE допускается без тела.
    Остальные методы обязаны иметь тело.
    """
    method = method.upper()
    if method == "GET":
        return False
    if method == "DELETE" and body is None:
        return False
    return True


def _serialize(body: Any) -> str:
    if isinstance(body, BaseModel):
        body = body.model_dump(by_alias=True, exclude_none=True, mode="json")
    return json.dumps(body)


class AgoraHttpClient:
    def __init__(
        self,
        basic_auth: str,
        *,
        timeout_sec: int = DEFAULT_TIMEOUT_SEC,
        service: str = "agora",
    ) -> None:
        self._basic_auth = basic_auth
        self.timeout_sec = int(timeout_sec)
        self.service = service

    def dispatch(
        self,
        method: str,
        url: str,
        body: Any = None,
        *,
        headers: dict[str, str] | None = None,
    ) -> bytes:
        method = method.upper()
        data: str | None = None
        req_headers: dict[str, str] = {"Authorization": self._basic_auth}

        if requires_body(method, body):
            if body is None:
                record_vendor_outcome(self.service, method, "malformed")
                raise MalformedRequestError(
                    "request body missing",
                    details={"method": method, "url": url},
                )
            try:
                data = _serialize(body)
            except (TypeError, ValueError) as e:
                record_vendor_outcome(self.service, method, "transport_error")
                raise TransportError(
                    "failed to serialize request body",
                    details={"err": str(e)},
                ) from e
            req_headers["Content-Type"] = "application/json"

        if headers:
            req_headers.update(headers)

        try:
            with track_vendor_latency(self.service, method):
                resp = requests.request(
                    method=method,
                    url=url,
                    data=data,
                    headers=req_headers,
                    timeout=self.timeout_sec,
                )
        except requests.RequestException as e:
            record_vendor_outcome(self.service, method, "transport_error")
            log.warning(
                "agora_request_transport_error",
                extra={"payload": {"service": self.service, "method": method, "err": str(e)}},
            )
            raise TransportError(
                "Agora API request failed",
                details={"err": str(e)},
            ) from e

        if resp.status_code != 200:
            record_vendor_outcome(self.service, method, "rejected")
            log.warning(
                "agora_request_rejected",
                extra={
                    "payload": {
                        "service": self.service,
                        "method": method,
                        "status_code": resp.status_code,
                        "body": truncate(resp.text),
                    }
                },
            )
            raise VendorRejectedError(resp.status_code, resp.text)

        record_vendor_outcome(self.service, method, "ok")
        log.info(
            "agora_request_ok",
            extra={"payload": {"service": self.service, "method": method}},
        )
        return resp.content
