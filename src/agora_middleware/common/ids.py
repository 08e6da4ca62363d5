"""
Генерация идентификаторов.

Назначение:
- числовые UID для ботов записи/транскрипции/плеера
- 0 зарезервирован вендором, 2^32-1 тоже не выдаём
"""

from __future__ import annotations

import random

UID_MIN = 1
UID_MAX = 4294967294


class UidGenerator:
    """
    Генератор UID на собственном источнике случайности.
    Не криптостойкий: уникальность вероятностная.
    """

    def __init__(self, rng: random.Random | None = None) -> None:
        self._rng = rng or random.Random()

    def next_uid(self) -> int:
        return self._rng.randint(UID_MIN, UID_MAX)

    def next_uid_str(self) -> str:
        return str(self.next_uid())
