"""
Выдача токенов доступа (RTC / RTM).

Подпись токена выполняет библиотека agora-token-builder, здесь только
валидация входа и выбор нужного построителя. Сервис без состояния.
"""

from __future__ import annotations

from agora_token_builder import RtcTokenBuilder, RtmTokenBuilder

from agora_middleware.common.errors import ValidationError
from agora_middleware.common.logging import get_project_logger
from agora_middleware.common.time import unix_ts
from agora_middleware.contracts.token import TokenRequest
from agora_middleware.domain.enums import TokenRole, TokenType

log = get_project_logger()

DEFAULT_EXPIRE_SEC = 3600

# Роли RTC-токена в терминах agora-token-builder
ROLE_PUBLISHER = 1
ROLE_SUBSCRIBER = 2
ROLE_RTM_USER = 1


def rtc_role(role: str | None) -> int:
    if role == TokenRole.publisher.value:
        return ROLE_PUBLISHER
    return ROLE_SUBSCRIBER


class TokenService:
    def __init__(self, app_id: str, app_certificate: str) -> None:
        self.app_id = app_id
        self._app_certificate = app_certificate

    def _expire_at(self, expire: int | None) -> int:
        return unix_ts() + (expire or DEFAULT_EXPIRE_SEC)

    def gen_rtc_token(self, req: TokenRequest) -> str:
        """
        RTC-токен на канал. Числовой uid -> токен по uid, иначе по строковому аккаунту.
        """
        if not req.channel:
            raise ValidationError("missing channel name")
        if req.uid is None or req.uid == "":
            raise ValidationError("missing uid")

        role = rtc_role(req.role)
        expire_at = self._expire_at(req.expire)
        if req.uid.isdigit():
            return RtcTokenBuilder.buildTokenWithUid(
                self.app_id, self._app_certificate, req.channel, int(req.uid), role, expire_at
            )
        return RtcTokenBuilder.buildTokenWithAccount(
            self.app_id, self._app_certificate, req.channel, req.uid, role, expire_at
        )

    def gen_rtm_token(self, req: TokenRequest) -> str:
        if not req.uid:
            raise ValidationError("missing uid")
        return RtmTokenBuilder.buildToken(
            self.app_id,
            self._app_certificate,
            req.uid,
            ROLE_RTM_USER,
            self._expire_at(req.expire),
        )

    def issue(self, req: TokenRequest) -> str:
        if req.token_type == TokenType.rtc.value:
            token = self.gen_rtc_token(req)
        elif req.token_type == TokenType.rtm.value:
            token = self.gen_rtm_token(req)
        else:
            # chat и прочие типы библиотека подписи не поддерживает
            raise ValidationError("Unsupported tokenType", details={"tokenType": req.token_type})

        log.info(
            "token_issued",
            extra={"payload": {"token_type": req.token_type, "channel": req.channel}},
        )
        return token

    def rtc_token_for(self, channel: str, uid: str, role: str = TokenRole.publisher.value) -> str:
        """Токен для служебного бота (запись, транскрипция, плеер)."""
        return self.gen_rtc_token(
            TokenRequest(token_type=TokenType.rtc.value, channel=channel, uid=uid, role=role)
        )
