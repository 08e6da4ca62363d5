"""
Общие утилиты проекта.

Правила:
- сюда кладём только реально общие функции
- без бизнес-логики
"""

from __future__ import annotations

import base64
import ipaddress


def b64_encode(data: bytes) -> str:
    """
    base64(bytes) -> str
    """
    return base64.b64encode(data).decode("utf-8")


def basic_auth_header(customer_id: str, customer_secret: str) -> str:
    """
    Значение заголовка Authorization для REST API вендора.
    """
    return "Basic " + b64_encode(f"{customer_id}:{customer_secret}".encode())


def is_valid_ipv4(value: str | None) -> bool:
    if not value:
        return False
    try:
        ipaddress.IPv4Address(value)
    except ValueError:
        return False
    return True


def truncate(text: str, max_len: int = 500) -> str:
    if len(text) > max_len:
        return text[:max_len] + "...(truncated)"
    return text

