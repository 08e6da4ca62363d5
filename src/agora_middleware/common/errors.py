"""
Единые ошибки и коды ошибок.

Назначение:
- предсказуемые коды для HTTP-ответов и логов
- единый стиль исключений по проекту
- явное разделение: ошибка клиента (400) против ошибки вендора/сети (500)
"""

from __future__ import annotations

from dataclasses import dataclass


class ErrCode:
    # Общие
    UNKNOWN = "unknown"
    VALIDATION = "validation"

    # Локальная валидация до обращения к вендору
    MALFORMED_REQUEST = "malformed_request"
    INVALID_CONFIGURATION = "invalid_configuration"

    # Обращение к вендору
    TRANSPORT_ERROR = "transport_error"
    VENDOR_REJECTED = "vendor_rejected"

    # Контракт ответа вендора
    RESPONSE_PARSE_ERROR = "response_parse_error"
    INCOMPLETE_SERVER_RESPONSE = "incomplete_server_response"
    UNKNOWN_FILE_LIST_MODE = "unknown_file_list_mode"


# Коды, которые считаются ошибкой клиента
CLIENT_ERROR_CODES = frozenset(
    {
        ErrCode.VALIDATION,
        ErrCode.MALFORMED_REQUEST,
        ErrCode.INVALID_CONFIGURATION,
    }
)


@dataclass
class AppError(Exception):
    """
    Базовая ошибка приложения.
    - code: стабильный код ошибки
    - message: безопасное сообщение
    - details: доп. данные (без секретов)
    """

    code: str
    message: str
    details: dict | None = None

    def __str__(self) -> str:  # pragma: no cover
        return f"{self.code}: {self.message}"

    @property
    def is_client_error(self) -> bool:
        return self.code in CLIENT_ERROR_CODES


class ValidationError(AppError):
    def __init__(self, message: str = "validation failed", details: dict | None = None) -> None:
        super().__init__(ErrCode.VALIDATION, message, details)


class MalformedRequestError(AppError):
    """Запрос собран некорректно (например, нет тела для POST). Сеть не трогаем."""

    def __init__(
        self,
        message: str = "malformed request",
        details: dict | None = None,
        *,
        code: str = ErrCode.MALFORMED_REQUEST,
    ) -> None:
        super().__init__(code, message, details)


class InvalidConfigurationError(MalformedRequestError):
    """Недопустимая конфигурация: регион, режим записи, взаимоисключающие блоки."""

    def __init__(
        self, message: str = "invalid configuration", details: dict | None = None
    ) -> None:
        super().__init__(message, details, code=ErrCode.INVALID_CONFIGURATION)


class TransportError(AppError):
    def __init__(
        self, message: str = "vendor request failed", details: dict | None = None
    ) -> None:
        super().__init__(ErrCode.TRANSPORT_ERROR, message, details)


class VendorRejectedError(AppError):
    """
    Вендор ответил статусом, отличным от 200.
    Тело ответа сохраняется без изменений.
    """

    def __init__(self, status_code: int, body: str) -> None:
        self.status_code = status_code
        self.body = body
        super().__init__(
            ErrCode.VENDOR_REJECTED,
            f"API request failed with status {status_code}: {body}",
            {"status_code": status_code, "body": body},
        )


class ResponseParseError(AppError):
    def __init__(self, target: str, cause: str) -> None:
        self.target = target
        self.cause = cause
        super().__init__(
            ErrCode.RESPONSE_PARSE_ERROR,
            f"failed to parse vendor response as {target}",
            {"target": target, "cause": cause},
        )


class IncompleteServerResponseError(AppError):
    def __init__(
        self,
        message: str = "Incomplete server response: fileListMode or fileList is missing",
        details: dict | None = None,
    ) -> None:
        super().__init__(ErrCode.INCOMPLETE_SERVER_RESPONSE, message, details)


class UnknownFileListModeError(AppError):
    def __init__(self, mode: str) -> None:
        self.mode = mode
        super().__init__(
            ErrCode.UNKNOWN_FILE_LIST_MODE,
            f"Unknown fileListMode: {mode}",
            {"file_list_mode": mode},
        )
