"""
Базовые модели обмена с вендором и клиентами.

- поля в Python называются snake_case, на проводе camelCase (alias_generator)
- None-поля при отправке вендору не сериализуются (exclude_none)
- ответы вендора отдаются клиенту в том виде, в каком пришли:
  неизвестные поля сохраняются (extra="allow"), явные null тоже
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, model_validator
from pydantic.alias_generators import to_camel


class WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


class VendorObject(WireModel):
    """
    Вложенный объект ответа вендора (converter, player, serverResponse ...).
    """

    model_config = ConfigDict(extra="allow")


class VendorResponse(VendorObject):
    """
    Ответ вендора: поле timestamp проставляет нормализатор перед отдачей клиенту.
    """

    timestamp: str | None = None


class StatusResponse(VendorResponse):
    """Ответ для операций, где вендор не возвращает полезного тела (stop/update)."""

    status: str = "Success"

    @model_validator(mode="before")
    @classmethod
    def _status_always_present(cls, data: Any) -> Any:
        # пустое тело вендора тоже должно дать клиенту status
        if isinstance(data, dict) and "status" not in data:
            data = {**data, "status": "Success"}
        return data
