"""
Доменные перечисления (enum).

Используются во всей системе:
- режимы облачной записи и сцены
- режим списка файлов в ответе вендора
- регионы RTMP и типы токенов
"""

from __future__ import annotations

import enum


class RecordingMode(str, enum.Enum):
    """
    Режим облачной записи (сегмент URL .../mode/{mode}/...).
    """

    individual = "individual"
    mix = "mix"
    web = "web"


class SceneMode(str, enum.Enum):
    """
    Сцена облачной записи. Вендор ждёт число: см. scene_code().
    """

    realtime = "realtime"
    web = "web"
    postponed = "postponed"


_SCENE_CODES = {
    SceneMode.realtime: 0,
    SceneMode.web: 1,
    SceneMode.postponed: 2,
}


def scene_code(value: str | None) -> int:
    """Код сцены для вендора; неизвестное или пустое значение -> 0 (realtime)."""
    try:
        return _SCENE_CODES[SceneMode(value)]
    except ValueError:
        return 0


class FileListMode(str, enum.Enum):
    """
    Дискриминатор формы serverResponse.fileList.
    """

    string = "string"
    json = "json"


class RtmpRegion(str, enum.Enum):
    na = "na"
    eu = "eu"
    ap = "ap"
    cn = "cn"


class TokenType(str, enum.Enum):
    rtc = "rtc"
    rtm = "rtm"


class TokenRole(str, enum.Enum):
    publisher = "publisher"
    subscriber = "subscriber"
