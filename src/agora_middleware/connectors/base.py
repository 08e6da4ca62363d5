"""
Базовые интерфейсы коннекторов (интеграции с внешними системами).

Назначение:
- сервисы зависят от контракта диспетчера, а не от HTTP-библиотеки
- в тестах диспетчер подменяется фейком
"""

from __future__ import annotations

from typing import Any, Protocol


class VendorDispatcher(Protocol):
    """
    Контракт отправки одного запроса к REST API вендора.
    """

    def dispatch(
        self,
        method: str,
        url: str,
        body: Any = None,
        *,
        headers: dict[str, str] | None = None,
    ) -> bytes:
        """Выполнить запрос и вернуть сырое тело ответа (только статус 200)."""
        ...
