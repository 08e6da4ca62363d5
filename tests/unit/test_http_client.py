from __future__ import annotations

import json

import pytest
import requests

from agora_middleware.common.errors import (
    MalformedRequestError,
    TransportError,
    VendorRejectedError,
)
from agora_middleware.connectors.agora.http_client import AgoraHttpClient, requires_body
from agora_middleware.contracts.rtt import AcquireBuilderTokenRequest

AUTH = "Basic Y3VzdG9tZXI6c2VjcmV0"


class _FakeResponse:
    def __init__(self, status_code: int = 200, body: bytes = b"{}") -> None:
        self.status_code = status_code
        self.content = body

    @property
    def text(self) -> str:
        return self.content.decode("utf-8")


class _Recorder:
    def __init__(self, response: _FakeResponse | None = None) -> None:
        self.calls: list[dict] = []
        self.response = response or _FakeResponse()

    def __call__(self, **kwargs):
        self.calls.append(kwargs)
        return self.response


def _client() -> AgoraHttpClient:
    return AgoraHttpClient(AUTH, timeout_sec=7, service="test")


@pytest.mark.parametrize("method", ["POST", "PUT", "PATCH", "post"])
def test_body_required_method_without_body_makes_no_network_call(monkeypatch, method) -> None:
    recorder = _Recorder()
    monkeypatch.setattr("agora_middleware.connectors.agora.http_client.requests.request", recorder)

    with pytest.raises(MalformedRequestError) as exc:
        _client().dispatch(method, "https://api.example.com/v1/x")

    assert exc.value.message == "request body missing"
    assert exc.value.is_client_error
    assert recorder.calls == []


def test_get_is_bodyless_and_carries_auth_and_timeout(monkeypatch) -> None:
    recorder = _Recorder(_FakeResponse(200, b'{"ok": true}'))
    monkeypatch.setattr("agora_middleware.connectors.agora.http_client.requests.request", recorder)

    body = _client().dispatch("GET", "https://api.example.com/v1/query", {"ignored": True})

    assert body == b'{"ok": true}'
    call = recorder.calls[0]
    assert call["method"] == "GET"
    assert call["data"] is None
    assert call["timeout"] == 7
    assert call["headers"]["Authorization"] == AUTH
    assert "Content-Type" not in call["headers"]


def test_delete_without_body_is_allowed(monkeypatch) -> None:
    recorder = _Recorder()
    monkeypatch.setattr("agora_middleware.connectors.agora.http_client.requests.request", recorder)

    _client().dispatch("DELETE", "https://api.example.com/v1/tasks/1")

    assert recorder.calls[0]["data"] is None


def test_post_serializes_body_and_sets_content_type(monkeypatch) -> None:
    recorder = _Recorder()
    monkeypatch.setattr("agora_middleware.connectors.agora.http_client.requests.request", recorder)

    _client().dispatch(
        "POST",
        "https://api.example.com/v1/builderTokens",
        AcquireBuilderTokenRequest(instance_id="room-1"),
        headers={"X-Request-ID": "req-1"},
    )

    call = recorder.calls[0]
    assert json.loads(call["data"]) == {"instanceId": "room-1"}
    assert call["headers"]["Content-Type"] == "application/json"
    assert call["headers"]["X-Request-ID"] == "req-1"
    assert call["headers"]["Authorization"] == AUTH


@pytest.mark.parametrize("status_code", [201, 400, 404, 409, 500, 503])
def test_non_200_is_vendor_rejected_with_verbatim_body(monkeypatch, status_code) -> None:
    raw = '{"code": 2, "reason": "invalid parameter"}'
    recorder = _Recorder(_FakeResponse(status_code, raw.encode()))
    monkeypatch.setattr("agora_middleware.connectors.agora.http_client.requests.request", recorder)

    with pytest.raises(VendorRejectedError) as exc:
        _client().dispatch("POST", "https://api.example.com/v1/x", {"a": 1})

    assert exc.value.status_code == status_code
    assert exc.value.body == raw
    assert not exc.value.is_client_error


def test_network_failure_is_transport_error(monkeypatch) -> None:
    def _boom(**kwargs):
        raise requests.Timeout("read timed out")

    monkeypatch.setattr("agora_middleware.connectors.agora.http_client.requests.request", _boom)

    with pytest.raises(TransportError) as exc:
        _client().dispatch("GET", "https://api.example.com/v1/x")

    assert exc.value.message == "Agora API request failed"
    assert "read timed out" in exc.value.details["err"]


def test_unserializable_body_is_transport_error_without_network(monkeypatch) -> None:
    recorder = _Recorder()
    monkeypatch.setattr("agora_middleware.connectors.agora.http_client.requests.request", recorder)

    with pytest.raises(TransportError) as exc:
        _client().dispatch("POST", "https://api.example.com/v1/x", {"bad": object()})

    assert exc.value.message == "failed to serialize request body"
    assert recorder.calls == []


def test_requires_body_rules() -> None:
    assert requires_body("GET", None) is False
    assert requires_body("GET", {"a": 1}) is False
    assert requires_body("DELETE", None) is False
    assert requires_body("DELETE", {"a": 1}) is True
    assert requires_body("POST", None) is True
    assert requires_body("patch", None) is True
