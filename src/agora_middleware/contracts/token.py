"""
Контракты выдачи токенов.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class TokenRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    token_type: str = Field(alias="tokenType")
    channel: str | None = None
    role: str | None = None
    uid: str | None = None
    # Время жизни в секундах
    expire: int | None = Field(default=None, ge=1)


class TokenResponse(BaseModel):
    token: str
