from __future__ import annotations

import math
import re
from datetime import datetime, timezone

_RFC3339_RE = re.compile(
    r"^(?P<date>\d{4}-\d{2}-\d{2})[Tt ](?P<time>\d{2}:\d{2}:\d{2})"
    r"(?:\.(?P<fraction>\d+))?(?P<offset>[Zz]|[+-]\d{2}:\d{2})$"
)


def parseRfc3339(value: str) -> datetime:
    """
    Назначение:
        Строгий разбор даты-времени RFC 3339 (смещение обязательно).

    Выходные данные:
        datetime с tzinfo.

    Ошибки:
        ValueError, если строка не RFC 3339.
    """
    match = _RFC3339_RE.match(value.strip())
    if match is None:
        raise ValueError(f"not an RFC 3339 date-time: {value!r}")
    offset = match.group("offset")
    if offset in ("Z", "z"):
        offset = "+00:00"
    fraction = match.group("fraction") or ""
    # fromisoformat понимает не больше 6 знаков дробной части
    fraction = f".{fraction[:6]:0<6}" if fraction else ""
    return datetime.fromisoformat(f"{match.group('date')}T{match.group('time')}{fraction}{offset}")


def toEpochSeconds(value: datetime) -> int:
    """Секунды с начала эпохи; naive datetime считается UTC."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return math.floor(value.timestamp())


def getDurationMs(start: float, end: float) -> int:
    return int((end - start) * 1000)
