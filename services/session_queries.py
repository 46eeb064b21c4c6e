# services/session_queries.py
"""勤務状態・時間集計・締め期間による絞り込み"""
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Optional

from services.clock import ensure_aware
from services.models import AttendancePeriod, AttendanceSession, AttendanceStatus
from services.session_ops import find_open_break_index, find_open_session_index, sanitize_tasks


@dataclass(frozen=True)
class PeriodSummary:
    session_count: int
    work_minutes: int
    break_minutes: int


def get_current_open_session(sessions: list[AttendanceSession], user_id: str) -> Optional[AttendanceSession]:
    index = find_open_session_index(sessions, user_id)
    if index is None:
        return None
    return sessions[index]


def get_current_attendance_status(sessions: list[AttendanceSession], user_id: str) -> AttendanceStatus:
    session = get_current_open_session(sessions, user_id)
    if session is None:
        return AttendanceStatus.OFF
    if find_open_break_index(session) is not None:
        return AttendanceStatus.ON_BREAK
    return AttendanceStatus.WORKING


def _whole_minutes(start: datetime, end: datetime) -> int:
    seconds = max(0.0, (end - start).total_seconds())
    return int(seconds // 60)


def get_break_minutes(session: AttendanceSession, now: datetime) -> int:
    """休憩ごとに分単位で切り捨てて合計する"""
    ensure_aware(now)
    return sum(_whole_minutes(item.start_at, item.end_at or now) for item in session.breaks)


def get_work_minutes(session: AttendanceSession, now: datetime) -> int:
    """実働時間（分）= 拘束時間（分切り捨て）- 休憩時間。0未満にはしない"""
    ensure_aware(now)
    gross = _whole_minutes(session.start_at, session.end_at or now)
    return max(0, gross - get_break_minutes(session, now))


def is_session_in_period(session: AttendanceSession, period: AttendancePeriod, now: datetime) -> bool:
    session_end = session.end_at or ensure_aware(now)
    return session.start_at <= period.end_at and session_end >= period.start_at


def filter_sessions_in_period(
    sessions: Iterable[AttendanceSession],
    period: AttendancePeriod,
    now: datetime,
    user_id: Optional[str] = None,
) -> list[AttendanceSession]:
    return [
        session
        for session in sessions
        if (user_id is None or session.user_id == user_id) and is_session_in_period(session, period, now)
    ]


def summarize_period(
    sessions: Iterable[AttendanceSession],
    period: AttendancePeriod,
    now: datetime,
    user_id: Optional[str] = None,
) -> PeriodSummary:
    """締め期間内の勤務の件数・実働・休憩を合計する"""
    matched = filter_sessions_in_period(sessions, period, now, user_id=user_id)
    return PeriodSummary(
        session_count=len(matched),
        work_minutes=sum(get_work_minutes(session, now) for session in matched),
        break_minutes=sum(get_break_minutes(session, now) for session in matched),
    )


def format_duration_minutes(minutes: int) -> str:
    hours, mins = divmod(int(minutes), 60)
    if hours <= 0:
        return f"{mins}分"
    if mins == 0:
        return f"{hours}時間"
    return f"{hours}時間{mins}分"


def parse_task_lines(text: str) -> list[str]:
    """複数行入力を「やったこと」の一覧にする"""
    return sanitize_tasks(text.split("\n"))


def format_task_lines(tasks: Iterable[str]) -> str:
    return "\n".join(sanitize_tasks(tasks))
