import uuid
from datetime import datetime, timezone
from typing import Callable

Clock = Callable[[], datetime]
IdFactory = Callable[[], str]


def system_clock() -> datetime:
    """現在時刻（UTC）。エンジンにはこの関数を差し替え可能な形で渡す"""
    return datetime.now(timezone.utc)


def new_id() -> str:
    return str(uuid.uuid4())


def ensure_aware(value: datetime) -> datetime:
    """タイムゾーン無しのdatetimeは比較できないため受け付けない"""
    if value.tzinfo is None or value.utcoffset() is None:
        raise ValueError(f"timezone-aware datetime required: {value!r}")
    return value
