# services/closing_boundary.py
"""20日締めの締め期間と締め境界の計算

締め期間は前月21日 0:00（JST）から当月20日 23:59:59（JST）まで。
サーバーのローカルタイムゾーンに関係なく、常にJSTで判定する。
"""
from datetime import datetime, timedelta, timezone

from services.clock import ensure_aware
from services.models import AttendancePeriod

JST = timezone(timedelta(hours=9))
CLOSING_DAY = 20


def _add_month(year: int, month: int, delta: int) -> tuple[int, int]:
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def _jst(value: datetime) -> datetime:
    return ensure_aware(value).astimezone(JST)


def _period_start(year: int, month: int) -> datetime:
    return datetime(year, month, CLOSING_DAY + 1, tzinfo=JST)


def _period_end(year: int, month: int) -> datetime:
    return datetime(year, month, CLOSING_DAY, 23, 59, 59, tzinfo=JST)


def _format_jst_date(value: datetime) -> str:
    local = _jst(value)
    return f"{local.year}/{local.month}/{local.day}"


def _make_period(start: datetime, end: datetime) -> AttendancePeriod:
    label = f"{_format_jst_date(start)} 〜 {_format_jst_date(end)}"
    return AttendancePeriod(start_at=start, end_at=end, label=label)


def get_next_closing_boundary(session_start: datetime) -> datetime:
    """勤務開始が属する締め期間の次の境界（21日 0:00 JST）を返す"""
    local = _jst(session_start)
    if local.day <= CLOSING_DAY:
        return _period_start(local.year, local.month)
    year, month = _add_month(local.year, local.month, 1)
    return _period_start(year, month)


def get_current_closing_period(now: datetime) -> AttendancePeriod:
    """nowを含む締め期間を返す"""
    local = _jst(now)
    if local.day > CLOSING_DAY:
        end_year, end_month = _add_month(local.year, local.month, 1)
        return _make_period(
            _period_start(local.year, local.month),
            _period_end(end_year, end_month),
        )
    start_year, start_month = _add_month(local.year, local.month, -1)
    return _make_period(
        _period_start(start_year, start_month),
        _period_end(local.year, local.month),
    )


def get_closing_period_for_month(year: int, month: int) -> AttendancePeriod:
    """指定月の20日に締まる期間（"YYYY年M月分"）を返す"""
    start_year, start_month = _add_month(year, month, -1)
    return _make_period(
        _period_start(start_year, start_month),
        _period_end(year, month),
    )


def format_closing_month_label(period: AttendancePeriod) -> str:
    local = _jst(period.end_at)
    return f"{local.year}年{local.month}月分"


def is_closing_warning_day(now: datetime) -> bool:
    """締め日当日か（日付が変わると勤務が自動分割される）"""
    return _jst(now).day == CLOSING_DAY
