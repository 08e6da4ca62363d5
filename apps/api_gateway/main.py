"""
API Gateway (FastAPI).

Функции:
- /ping, /health
- /metrics
- /token/getNew
- /cloud_recording/*, /rtt/*, /rtmp/push/*, /rtmp/pull/* (если настроены)

Архитектурно:
- сервисы собираются один раз при создании приложения (fail-fast по конфигурации)
- маршруты вендорных сервисов подключаются только для настроенных возможностей
- каждый ответ получает no-cache заголовки и X-Timestamp

Запуск: uvicorn apps.api_gateway.main:create_app --factory
"""

from __future__ import annotations

from typing import Any

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from agora_middleware.common.config import Settings, get_settings
from agora_middleware.common.logging import get_project_logger, setup_logging
from agora_middleware.common.metrics import setup_metrics_endpoint
from agora_middleware.common.time import utc_now_rfc3339
from agora_middleware.services.registry import ServiceRegistry, build_services
from apps.api_gateway.errors import install_error_handlers
from apps.api_gateway.routers.cloud_recording import router as cloud_recording_router
from apps.api_gateway.routers.rtmp import pull_router as rtmp_pull_router
from apps.api_gateway.routers.rtmp import push_router as rtmp_push_router
from apps.api_gateway.routers.rtt import router as rtt_router
from apps.api_gateway.routers.token import router as token_router

log = get_project_logger()

NO_CACHE_HEADERS = {
    "Cache-Control": "private, no-cache, no-store, must-revalidate",
    "Expires": "-1",
    "Pragma": "no-cache",
}


def _parse_origins(raw: str) -> list[str]:
    origins = [o.strip() for o in (raw or "").split(",") if o.strip()]
    return origins or ["*"]


def _is_prod_env(app_env: str | None) -> bool:
    env = (app_env or "").strip().lower()
    return env in {"prod", "production"}


def _cors_params(settings: Settings) -> tuple[list[str], bool]:
    allow_origins = _parse_origins(settings.cors_allow_origin)
    allow_credentials = True

    if _is_prod_env(settings.app_env) and "*" in allow_origins:
        raise RuntimeError("CORS wildcard '*' is not allowed in APP_ENV=prod")

    # '*' нельзя использовать вместе с credentials=true
    if "*" in allow_origins:
        allow_credentials = False

    return allow_origins, allow_credentials


def _include_service_routers(app: FastAPI, services: ServiceRegistry) -> None:
    app.include_router(token_router)

    if services.cloud_recording is not None:
        app.include_router(cloud_recording_router)
    if services.rtt is not None:
        app.include_router(rtt_router)
    if services.rtmp is not None:
        if services.rtmp.push_enabled:
            app.include_router(rtmp_push_router)
        if services.rtmp.pull_enabled:
            app.include_router(rtmp_pull_router)


def create_app(
    settings: Settings | None = None,
    services: ServiceRegistry | None = None,
) -> FastAPI:
    settings = settings or get_settings()
    setup_logging(settings)

    allow_origins, allow_credentials = _cors_params(settings)
    services = services or build_services(settings)

    app = FastAPI(title="Agora Backend Middleware", version="0.1.0")
    app.state.services = services

    # CORS (настраивается через ENV; в prod wildcard запрещён)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allow_origins,
        allow_methods=["*"],
        allow_headers=["*"],
        allow_credentials=allow_credentials,
    )

    setup_metrics_endpoint(app, service_name=settings.service_name)
    install_error_handlers(app)

    @app.middleware("http")
    async def response_headers(request: Request, call_next):
        response = await call_next(request)
        response.headers.update(NO_CACHE_HEADERS)
        response.headers["X-Timestamp"] = utc_now_rfc3339()
        return response

    @app.get("/ping")
    def ping() -> dict[str, Any]:
        return {"message": "pong"}

    @app.get("/health")
    def health() -> dict[str, Any]:
        return {"ok": True}

    _include_service_routers(app, services)

    log.info(
        "api_gateway_ready",
        extra={"payload": {"service": settings.service_name, "app_env": settings.app_env}},
    )
    return app


def run() -> None:
    s = get_settings()
    uvicorn.run(
        "apps.api_gateway.main:create_app",
        factory=True,
        host=s.api_host,
        port=s.api_port,
    )


if __name__ == "__main__":
    run()
