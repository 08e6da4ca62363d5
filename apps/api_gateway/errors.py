"""
Обработчики ошибок API.

AppError -> {"error", "code", "details"}:
- ошибки клиента (валидация, некорректный запрос, конфигурация) -> 400
- всё остальное (сеть, отказ вендора, контракт ответа) -> 500
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from agora_middleware.common.errors import AppError, ErrCode
from agora_middleware.common.logging import get_project_logger

log = get_project_logger()


def error_body(code: str, message: str, details: dict | None = None) -> dict:
    return {"error": message, "code": code, "details": details or {}}


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    status_code = (
        status.HTTP_400_BAD_REQUEST
        if exc.is_client_error
        else status.HTTP_500_INTERNAL_SERVER_ERROR
    )
    log.log(
        logging.WARNING if exc.is_client_error else logging.ERROR,
        "api_request_failed",
        extra={
            "payload": {
                "endpoint": request.url.path,
                "method": request.method,
                "status_code": status_code,
                "code": exc.code,
                "error": exc.message[:500],
            }
        },
    )
    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(error_body(exc.code, exc.message, exc.details)),
    )


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    _ = request
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=jsonable_encoder(
            error_body(ErrCode.VALIDATION, "Invalid request body", {"errors": exc.errors()})
        ),
    )


def install_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
