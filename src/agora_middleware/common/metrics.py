"""
Метрики Prometheus для сервиса.

Назначение:
- Экспорт /metrics
- HTTP-метрики входящих запросов
- Счётчики и задержки обращений к REST API вендора
"""

from __future__ import annotations

import time
from collections.abc import Iterator
from contextlib import contextmanager

from fastapi import FastAPI, Request
from fastapi.responses import Response
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest

# =============================================================================
# СЧЁТЧИКИ И МЕТРИКИ
# =============================================================================

# Общее количество HTTP-запросов
REQUESTS_TOTAL = Counter(
    "agora_middleware_requests_total",
    "Общее количество HTTP запросов",
    ["service", "route", "method", "status"],
)

HTTP_REQUEST_LATENCY_MS = Histogram(
    "agora_middleware_http_request_latency_ms",
    "Задержка HTTP запроса (мс)",
    ["service", "route", "method"],
    buckets=(5, 10, 25, 50, 100, 250, 500, 1000, 2500, 5000, 10000),
)

# Обращения к вендору
VENDOR_REQUESTS_TOTAL = Counter(
    "agora_middleware_vendor_requests_total",
    "Количество обращений к REST API вендора",
    ["service", "method", "outcome"],
)

VENDOR_REQUEST_LATENCY_MS = Histogram(
    "agora_middleware_vendor_request_latency_ms",
    "Задержка обращения к REST API вендора (мс)",
    ["service", "method"],
    buckets=(5, 10, 25, 50, 100, 250, 500, 1000, 2500, 5000, 10000),
)


@contextmanager
def track_vendor_latency(service: str, method: str) -> Iterator[None]:
    """
    Контекст-менеджер для измерения задержки одного обращения к вендору.
    """
    started = time.perf_counter()
    try:
        yield
    finally:
        elapsed_ms = (time.perf_counter() - started) * 1000
        VENDOR_REQUEST_LATENCY_MS.labels(service=service, method=method).observe(elapsed_ms)


def record_vendor_outcome(service: str, method: str, outcome: str) -> None:
    VENDOR_REQUESTS_TOTAL.labels(service=service, method=method, outcome=outcome).inc()


def setup_metrics_endpoint(app: FastAPI, service_name: str = "agora-middleware") -> None:
    """
    Регистрирует endpoint /metrics для Prometheus.
    """

    @app.middleware("http")
    async def http_metrics(request: Request, call_next):
        method = request.method
        started = time.perf_counter()

        response = await call_next(request)
        # шаблон маршрута (/rtt/status/{task_id}) проставляется роутером при матчинге
        route = getattr(request.scope.get("route"), "path", None) or request.url.path
        elapsed_ms = (time.perf_counter() - started) * 1000
        status_code = str(response.status_code)

        REQUESTS_TOTAL.labels(
            service=service_name,
            route=route,
            method=method,
            status=status_code,
        ).inc()
        HTTP_REQUEST_LATENCY_MS.labels(
            service=service_name,
            route=route,
            method=method,
        ).observe(elapsed_ms)
        return response

    @app.get("/metrics")
    def metrics() -> Response:
        return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)
