"""
Нормализация ответов вендора.

Порядок для каждого ответа:
1) разбор байтов в типизированную модель (ResponseParseError при несовпадении)
2) проверка полиморфного serverResponse.fileList там, где он есть
3) простановка timestamp и сериализация обратно в байты

Шаг 3 выполняется только после успешных 1-2.
"""

from __future__ import annotations

import json
from typing import TypeVar

from pydantic import ValidationError as PydanticValidationError

from agora_middleware.common.errors import (
    IncompleteServerResponseError,
    ResponseParseError,
    UnknownFileListModeError,
)
from agora_middleware.common.time import utc_now_rfc3339
from agora_middleware.contracts.cloud_recording import (
    ActiveRecordingResponse,
    DecodedFileList,
    FileDetail,
    FileListEntry,
    FlatFileList,
    ServerResponse,
    StructuredFileList,
)
from agora_middleware.contracts.common import VendorResponse
from agora_middleware.domain.enums import FileListMode

ResponseT = TypeVar("ResponseT", bound=VendorResponse)


def parse_response(body: bytes, model: type[ResponseT]) -> ResponseT:
    """
    Разбор тела ответа вендора в модель. Пустое тело трактуется как {}.
    """
    raw = body or b"{}"
    try:
        return model.model_validate_json(raw)
    except PydanticValidationError as e:
        raise ResponseParseError(model.__name__, str(e)) from e


def _decode_entries(raw, entry_model, mode: str):
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except ValueError as e:
            raise ResponseParseError(entry_model.__name__, str(e)) from e
    if not isinstance(raw, list):
        raise ResponseParseError(
            entry_model.__name__,
            f"fileList for mode {mode!r} must be an array, got {type(raw).__name__}",
        )
    try:
        return [entry_model.model_validate(item) for item in raw]
    except PydanticValidationError as e:
        raise ResponseParseError(entry_model.__name__, str(e)) from e


def decode_file_list(server_response: ServerResponse | None) -> DecodedFileList:
    """
    Разбор serverResponse.fileList по дискриминатору fileListMode.

    - "string" -> FlatFileList (FileDetail)
    - "json"   -> StructuredFileList (FileListEntry)
    - иначе    -> UnknownFileListModeError
    Отсутствие дискриминатора или списка -> IncompleteServerResponseError.
    """
    if server_response is None:
        raise IncompleteServerResponseError(
            "Incomplete server response: serverResponse is missing"
        )

    mode = server_response.file_list_mode
    raw = server_response.file_list
    if not mode or raw is None:
        raise IncompleteServerResponseError(
            details={"has_file_list_mode": bool(mode), "has_file_list": raw is not None}
        )

    if mode == FileListMode.string.value:
        return FlatFileList(files=_decode_entries(raw, FileDetail, mode))
    elif mode == FileListMode.json.value:
        return StructuredFileList(files=_decode_entries(raw, FileListEntry, mode))
    else:
        raise UnknownFileListModeError(mode)


def has_file_list(server_response: ServerResponse | None) -> bool:
    """Есть ли в ответе хотя бы одна часть пары fileListMode/fileList."""
    if server_response is None:
        return False
    return bool(server_response.file_list_mode) or server_response.file_list is not None


def validate_active_recording(
    resp: ActiveRecordingResponse, *, require_file_list: bool
) -> DecodedFileList | None:
    """
    Проверка ответа stop/query.
    require_file_list=False: список проверяется, только если вендор его прислал.
    """
    if not require_file_list and not has_file_list(resp.server_response):
        return None
    return decode_file_list(resp.server_response)


def with_timestamp(resp: ResponseT) -> ResponseT:
    """
    Копия ответа с проставленным timestamp (RFC3339, UTC).
    Повторный вызов перезаписывает поле, а не добавляет новое.
    """
    return resp.model_copy(update={"timestamp": utc_now_rfc3339()})


def timestamp_response(resp: VendorResponse) -> bytes:
    """
    Финальный шаг нормализации: timestamp + сериализация в байты.
    Уходят только поля, которые прислал вендор (включая null), и timestamp.
    """
    stamped = with_timestamp(resp)
    return stamped.model_dump_json(by_alias=True, exclude_unset=True).encode("utf-8")
