from __future__ import annotations

import json
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient
from prometheus_client import REGISTRY

from agora_middleware.common.config import Settings
from agora_middleware.services import token_service as token_module
from apps.api_gateway.main import NO_CACHE_HEADERS, create_app

BASE = "https://api.agora.test"
APP_ID = "app123"
RECORDING_BASE = f"{BASE}/v1/apps/{APP_ID}/cloud_recording"

FULL_ENV = {
    "APP_ENV": "dev",
    "APP_ID": APP_ID,
    "APP_CERTIFICATE": "cert456",
    "CUSTOMER_ID": "customer",
    "CUSTOMER_SECRET": "secret",
    "AGORA_BASE_URL": BASE,
    "AGORA_CLOUD_RECORDING_URL": "/v1/apps",
    "AGORA_RTT_URL": "api/speech-to-text/v1/projects/{appId}",
    "AGORA_RTMP_URL": "v1/projects/{appId}",
    "AGORA_CLOUD_PLAYER_URL": "v1/projects/{appId}/cloud-player",
    "STORAGE_VENDOR": 1,
    "STORAGE_REGION": 0,
    "STORAGE_BUCKET": "recordings",
    "STORAGE_BUCKET_ACCESS_KEY": "ak",
    "STORAGE_BUCKET_SECRET_KEY": "sk",
}


def _settings(**overrides) -> Settings:
    values = {**FULL_ENV, **overrides}
    return Settings(_env_file=None, **{k: v for k, v in values.items() if v is not None})


class _FakeResponse:
    def __init__(self, status_code: int, payload) -> None:
        self.status_code = status_code
        self.content = payload if isinstance(payload, bytes) else json.dumps(payload).encode()

    @property
    def text(self) -> str:
        return self.content.decode("utf-8")


class _FakeVendor:
    """Подмена requests.request: ответы по (метод, суффикс пути)."""

    def __init__(self) -> None:
        self.routes: list[tuple[str, str, int, object]] = []
        self.calls: list[dict] = []

    def on(self, method: str, path_part: str, payload, status_code: int = 200) -> _FakeVendor:
        self.routes.append((method, path_part, status_code, payload))
        return self

    def __call__(self, *, method, url, data=None, headers=None, timeout=None):
        self.calls.append(
            {
                "method": method,
                "url": url,
                "body": json.loads(data) if data else None,
                "headers": headers,
            }
        )
        for route_method, path_part, status_code, payload in self.routes:
            if route_method == method and path_part in url:
                return _FakeResponse(status_code, payload)
        return _FakeResponse(404, b"not found")


@pytest.fixture()
def vendor(monkeypatch) -> _FakeVendor:
    fake = _FakeVendor()
    monkeypatch.setattr("agora_middleware.connectors.agora.http_client.requests.request", fake)
    return fake


@pytest.fixture(autouse=True)
def fake_token_builders(monkeypatch) -> None:
    monkeypatch.setattr(
        token_module,
        "RtcTokenBuilder",
        SimpleNamespace(
            buildTokenWithUid=lambda app_id, cert, channel, uid, role, exp: f"rtc-{uid}",
            buildTokenWithAccount=lambda app_id, cert, channel, acc, role, exp: f"rtc-{acc}",
        ),
    )
    monkeypatch.setattr(
        token_module,
        "RtmTokenBuilder",
        SimpleNamespace(buildToken=lambda app_id, cert, acc, role, exp: f"rtm-{acc}"),
    )


@pytest.fixture()
def client() -> TestClient:
    return TestClient(create_app(_settings()))


# -----------------------------------------------------------------------------
# Служебные маршруты
# -----------------------------------------------------------------------------
def test_ping_has_no_cache_headers_and_timestamp(client) -> None:
    r = client.get("/ping")

    assert r.status_code == 200
    assert r.json() == {"message": "pong"}
    for name, value in NO_CACHE_HEADERS.items():
        assert r.headers[name] == value
    assert r.headers["X-Timestamp"].endswith("Z")


def test_health_and_metrics(client) -> None:
    assert client.get("/health").json() == {"ok": True}

    metrics = client.get("/metrics")
    assert metrics.status_code == 200
    assert "agora_middleware_requests_total" in metrics.text


# -----------------------------------------------------------------------------
# Облачная запись
# -----------------------------------------------------------------------------
def test_start_recording_sends_default_vendor_body(client, vendor) -> None:
    vendor.on("POST", "/cloud_recording/acquire", {"resourceId": "rid-1"})
    vendor.on("POST", "/resourceid/rid-1/mode/mix/start", {"resourceId": "rid-1", "sid": "sid-1"})

    r = client.post("/cloud_recording/start", json={"channelName": "test_channel"})

    assert r.status_code == 200
    out = r.json()
    assert out["resourceId"] == "rid-1"
    assert out["sid"] == "sid-1"
    assert "timestamp" in out

    acquire, start = vendor.calls
    assert acquire["url"] == f"{RECORDING_BASE}/acquire"
    assert acquire["headers"]["Authorization"].startswith("Basic ")
    uid = acquire["body"]["uid"]
    storage = acquire["body"]["clientRequest"]["startParameter"]["storageConfig"]
    assert acquire["body"] == {
        "cname": "test_channel",
        "uid": uid,
        "clientRequest": {
            "scene": 0,
            "resourceExpiredHour": 24,
            "startParameter": {
                "token": f"rtc-{uid}",
                "storageConfig": {
                    "vendor": 1,
                    "region": 0,
                    "bucket": "recordings",
                    "accessKey": "ak",
                    "secretKey": "sk",
                    "fileNamePrefix": storage["fileNamePrefix"],
                },
                "recordingConfig": {
                    "channelType": 0,
                    "maxIdleTime": 120,
                    "streamTypes": 2,
                    "videoStreamType": 0,
                    "subscribeAudioUids": ["#allstream#"],
                    "subscribeVideoUids": ["#allstream#"],
                    "subscribeUidGroup": 0,
                    "streamMode": "standard",
                },
            },
        },
    }
    assert storage["fileNamePrefix"][0] == "test_channel"

    assert start["url"] == f"{RECORDING_BASE}/resourceid/rid-1/mode/mix/start"
    assert start["body"]["uid"] == uid
    assert start["body"]["clientRequest"]["token"] == f"rtc-{uid}"


def test_stop_recording_returns_normalized_vendor_body(client, vendor) -> None:
    vendor.on(
        "POST",
        "/resourceid/rid-1/sid/sid-1/mode/mix/stop",
        {
            "cname": "test_channel",
            "uid": "10",
            "resourceId": "rid-1",
            "sid": "sid-1",
            "serverResponse": {
                "uploadingStatus": "uploaded",
                "fileListMode": "json",
                "fileList": [
                    {
                        "fileName": "a.m3u8",
                        "trackType": "audio_and_video",
                        "uid": "0",
                        "mixedAllUser": True,
                        "isPlayable": True,
                        "sliceStartTime": 1700000000000,
                    }
                ],
            },
        },
    )

    r = client.post(
        "/cloud_recording/stop",
        json={"cname": "test_channel", "uid": "10", "resourceId": "rid-1", "sid": "sid-1"},
    )

    assert r.status_code == 200
    out = r.json()
    assert out["resourceId"] == "rid-1"
    assert out["sid"] == "sid-1"
    assert out["serverResponse"]["fileList"][0]["fileName"] == "a.m3u8"
    assert "timestamp" in out


def test_stop_with_unknown_file_list_mode_is_server_error(client, vendor) -> None:
    vendor.on(
        "POST",
        "/stop",
        {
            "resourceId": "rid-1",
            "sid": "sid-1",
            "serverResponse": {"fileListMode": "xml", "fileList": []},
        },
    )

    r = client.post(
        "/cloud_recording/stop",
        json={"cname": "c", "uid": "10", "resourceId": "rid-1", "sid": "sid-1"},
    )

    assert r.status_code == 500
    assert r.json()["code"] == "unknown_file_list_mode"
    assert "xml" in r.json()["error"]


def test_vendor_rejection_is_server_error_with_vendor_body(client, vendor) -> None:
    vendor.on("POST", "/acquire", {"code": 2, "reason": "invalid appid"}, status_code=400)

    r = client.post("/cloud_recording/start", json={"channelName": "room"})

    assert r.status_code == 500
    body = r.json()
    assert body["code"] == "vendor_rejected"
    assert "invalid appid" in body["error"]
    assert len(vendor.calls) == 1


def test_invalid_recording_mode_is_client_error(client, vendor) -> None:
    r = client.post(
        "/cloud_recording/start", json={"channelName": "room", "recordingMode": "audio"}
    )

    assert r.status_code == 400
    assert r.json()["code"] == "invalid_configuration"
    assert vendor.calls == []


def test_missing_channel_name_is_validation_error(client, vendor) -> None:
    r = client.post("/cloud_recording/start", json={})

    assert r.status_code == 400
    assert r.json()["code"] == "validation"
    assert vendor.calls == []


def test_status_is_query_get(client, vendor) -> None:
    vendor.on("GET", "/query", {"resourceId": "r", "sid": "s", "serverResponse": {"status": 5}})

    r = client.get(
        "/cloud_recording/status",
        params={"resourceId": "r", "sid": "s", "recordingMode": "individual"},
    )

    assert r.status_code == 200
    assert vendor.calls[0]["url"] == f"{RECORDING_BASE}/resourceid/r/sid/s/mode/individual/query"
    assert vendor.calls[0]["body"] is None


def test_two_subscription_alternatives_are_rejected(client, vendor) -> None:
    r = client.post(
        "/cloud_recording/update/subscriber-list",
        json={
            "cname": "c",
            "uid": "1",
            "resourceId": "r",
            "sid": "s",
            "recordingConfig": {
                "webRecordingConfig": {"onhold": True},
                "rtmpPublishConfig": {"outputs": [{"rtmpUrl": "rtmp://x/y"}]},
            },
        },
    )

    assert r.status_code == 400
    assert r.json()["code"] == "invalid_configuration"
    assert vendor.calls == []


# -----------------------------------------------------------------------------
# RTT
# -----------------------------------------------------------------------------
def test_rtt_start_and_stop(client, vendor) -> None:
    vendor.on("POST", "/builderTokens", {"tokenName": "bt-1", "instanceId": "room"})
    vendor.on("POST", "/tasks?builderToken=bt-1", {"taskId": "task-1", "status": "STARTED"})
    vendor.on("DELETE", "/tasks/task-1", b"")

    started = client.post("/rtt/start", json={"channelName": "room"})
    stopped = client.post("/rtt/stop/task-1", json={"builderToken": "bt-1"})

    assert started.status_code == 200
    assert started.json()["start"]["taskId"] == "task-1"
    assert vendor.calls[0]["url"] == (
        f"{BASE}/api/speech-to-text/v1/projects/{APP_ID}/builderTokens"
    )
    assert stopped.status_code == 200
    assert stopped.json()["status"] == "Success"


def test_request_metrics_are_labelled_by_route_template(vendor) -> None:
    service = "metrics-route-template"
    client = TestClient(create_app(_settings(SERVICE_NAME=service)))
    vendor.on("GET", "/tasks/t-1", {"taskId": "t-1", "status": "IN_PROGRESS"})
    vendor.on("GET", "/tasks/t-2", {"taskId": "t-2", "status": "IN_PROGRESS"})

    assert client.get("/rtt/status/t-1", params={"builderToken": "bt"}).status_code == 200
    assert client.get("/rtt/status/t-2", params={"builderToken": "bt"}).status_code == 200

    labels = {"service": service, "method": "GET", "status": "200"}
    assert REGISTRY.get_sample_value(
        "agora_middleware_requests_total", {**labels, "route": "/rtt/status/{task_id}"}
    ) == 2
    assert REGISTRY.get_sample_value(
        "agora_middleware_requests_total", {**labels, "route": "/rtt/status/t-1"}
    ) is None


# -----------------------------------------------------------------------------
# RTMP
# -----------------------------------------------------------------------------
PUSH_BODY = {
    "rtcChannel": "room",
    "streamUrl": "rtmp://live.example.com/app/",
    "streamKey": "key",
    "region": "na",
    "useTranscoding": True,
}


def test_rtmp_requires_request_id(client, vendor) -> None:
    r = client.post("/rtmp/push/start", json=PUSH_BODY)

    assert r.status_code == 400
    assert r.json()["code"] == "malformed_request"
    assert vendor.calls == []


def test_rtmp_bad_region_is_client_error(client, vendor) -> None:
    r = client.post(
        "/rtmp/push/start",
        json={**PUSH_BODY, "region": "mars"},
        headers={"X-Request-ID": "req-1"},
    )

    assert r.status_code == 400
    assert r.json()["error"] == "Invalid region specified."
    assert vendor.calls == []


def test_rtmp_push_start_forwards_request_id(client, vendor) -> None:
    vendor.on("POST", "/rtmp-converters", {"converter": {"id": "conv-1"}})

    r = client.post("/rtmp/push/start", json=PUSH_BODY, headers={"X-Request-ID": "req-1"})

    assert r.status_code == 200
    assert r.json()["converter"]["id"] == "conv-1"
    call = vendor.calls[0]
    assert call["url"] == f"{BASE}/na/v1/projects/{APP_ID}/rtmp-converters"
    assert call["headers"]["X-Request-ID"] == "req-1"


def test_rtmp_pull_list(client, vendor) -> None:
    vendor.on("GET", "/players", {"success": True, "data": {"members": []}})

    r = client.get("/rtmp/pull/list", params={"region": "eu"}, headers={"X-Request-ID": "req-2"})

    assert r.status_code == 200
    assert vendor.calls[0]["url"] == f"{BASE}/eu/v1/projects/{APP_ID}/cloud-player/players"


# -----------------------------------------------------------------------------
# Токены
# -----------------------------------------------------------------------------
def test_rtc_token(client) -> None:
    r = client.post(
        "/token/getNew",
        json={"tokenType": "rtc", "channel": "room", "uid": "42", "role": "publisher"},
    )

    assert r.status_code == 200
    assert r.json() == {"token": "rtc-42"}


def test_chat_token_is_unsupported(client) -> None:
    r = client.post("/token/getNew", json={"tokenType": "chat", "uid": "42"})

    assert r.status_code == 400
    assert r.json()["code"] == "validation"
    assert r.json()["error"] == "Unsupported tokenType"


# -----------------------------------------------------------------------------
# Конфигурация
# -----------------------------------------------------------------------------
def test_without_base_url_only_tokens_are_served() -> None:
    client = TestClient(create_app(_settings(AGORA_BASE_URL=None)))

    assert client.post("/cloud_recording/start", json={"channelName": "room"}).status_code == 404
    assert client.post("/rtt/start", json={"channelName": "room"}).status_code == 404
    assert client.get("/rtmp/push/list", params={"region": "na"}).status_code == 404

    r = client.post("/token/getNew", json={"tokenType": "rtm", "uid": "alice"})
    assert r.json() == {"token": "rtm-alice"}


def test_only_configured_rtmp_direction_is_exposed() -> None:
    client = TestClient(create_app(_settings(AGORA_CLOUD_PLAYER_URL=None)))

    assert client.get("/rtmp/pull/list", params={"region": "na"}).status_code == 404
