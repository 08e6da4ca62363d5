"""
Сборка сервисов по конфигурации (fail-fast при старте).

- без APP_ID/APP_CERTIFICATE не стартуем вообще
- AGORA_BASE_URL задан -> нужны CUSTOMER_ID/CUSTOMER_SECRET
- облачная запись и RTT требуют полный набор STORAGE_*
- AGORA_BASE_URL не задан -> вендорные сервисы не поднимаются, токены работают
"""

from __future__ import annotations

from dataclasses import dataclass

from agora_middleware.common.config import Settings, get_settings
from agora_middleware.common.logging import get_project_logger
from agora_middleware.common.utils import basic_auth_header
from agora_middleware.connectors.agora.http_client import AgoraHttpClient
from agora_middleware.services.cloud_recording_service import CloudRecordingService
from agora_middleware.services.rtmp_service import RtmpService
from agora_middleware.services.rtt_service import RTTService
from agora_middleware.services.storage import storage_from_settings
from agora_middleware.services.token_service import TokenService

log = get_project_logger()

APP_ID_PLACEHOLDER = "{appId}"

_STORAGE_ENV = {
    "storage_vendor": "STORAGE_VENDOR",
    "storage_region": "STORAGE_REGION",
    "storage_bucket": "STORAGE_BUCKET",
    "storage_bucket_access_key": "STORAGE_BUCKET_ACCESS_KEY",
    "storage_bucket_secret_key": "STORAGE_BUCKET_SECRET_KEY",
}


@dataclass
class ServiceRegistry:
    token: TokenService
    cloud_recording: CloudRecordingService | None = None
    rtt: RTTService | None = None
    rtmp: RtmpService | None = None


def _blank(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _join_url(base: str, path: str) -> str:
    return f"{base.rstrip('/')}/{path.strip('/')}"


def _with_app_id(path: str | None, app_id: str) -> str | None:
    if _blank(path):
        return None
    return path.replace(APP_ID_PLACEHOLDER, app_id)


def validate_settings(s: Settings) -> None:
    """
    Проверка обязательных параметров. Ошибка -> RuntimeError (процесс не стартует).
    """
    missing = [
        env
        for env, v in (("APP_ID", s.app_id), ("APP_CERTIFICATE", s.app_certificate))
        if _blank(v)
    ]
    if missing:
        raise RuntimeError(f"Missing required configuration: {', '.join(missing)}")

    if _blank(s.agora_base_url):
        return

    missing = [
        env
        for env, v in (("CUSTOMER_ID", s.customer_id), ("CUSTOMER_SECRET", s.customer_secret))
        if _blank(v)
    ]
    if missing:
        raise RuntimeError(
            f"AGORA_BASE_URL is set but required credentials are missing: {', '.join(missing)}"
        )

    needs_storage = not _blank(s.agora_cloud_recording_url) or not _blank(s.agora_rtt_url)
    if needs_storage:
        missing = [env for field, env in _STORAGE_ENV.items() if _blank(getattr(s, field))]
        if missing:
            raise RuntimeError(
                "Cloud recording / RTT require storage configuration, missing: "
                + ", ".join(missing)
            )


def build_services(settings: Settings | None = None) -> ServiceRegistry:
    s = settings or get_settings()
    validate_settings(s)

    token_service = TokenService(s.app_id, s.app_certificate)
    registry = ServiceRegistry(token=token_service)

    if _blank(s.agora_base_url):
        log.warning(
            "agora_base_url_not_set",
            extra={"payload": {"skipped": ["cloud_recording", "rtt", "rtmp"]}},
        )
        return registry

    auth = basic_auth_header(s.customer_id, s.customer_secret)
    base_url = s.agora_base_url

    def _client(service: str) -> AgoraHttpClient:
        return AgoraHttpClient(auth, timeout_sec=s.vendor_timeout_sec, service=service)

    if not _blank(s.agora_cloud_recording_url):
        registry.cloud_recording = CloudRecordingService(
            app_id=s.app_id,
            base_url=_join_url(base_url, s.agora_cloud_recording_url),
            dispatcher=_client("cloud_recording"),
            token_service=token_service,
            storage_config=storage_from_settings(s),
        )

    rtt_path = _with_app_id(s.agora_rtt_url, s.app_id)
    if rtt_path:
        registry.rtt = RTTService(
            base_url=_join_url(base_url, rtt_path),
            dispatcher=_client("rtt"),
            token_service=token_service,
            storage_config=storage_from_settings(s),
        )

    push_path = _with_app_id(s.agora_rtmp_url, s.app_id)
    player_path = _with_app_id(s.agora_cloud_player_url, s.app_id)
    if push_path or player_path:
        registry.rtmp = RtmpService(
            base_url=base_url,
            dispatcher=_client("rtmp"),
            token_service=token_service,
            push_path=push_path,
            player_path=player_path,
        )

    log.info(
        "services_ready",
        extra={
            "payload": {
                "cloud_recording": registry.cloud_recording is not None,
                "rtt": registry.rtt is not None,
                "rtmp_push": bool(registry.rtmp and registry.rtmp.push_enabled),
                "rtmp_pull": bool(registry.rtmp and registry.rtmp.pull_enabled),
            }
        },
    )
    return registry
