# services/anomaly_detector.py
from datetime import datetime, timedelta
from typing import Iterable

from services.closing_boundary import JST
from services.clock import ensure_aware
from services.models import Anomaly, AnomalyType, AttendanceSession
from services.session_ops import find_open_break_index

DEFAULT_CLOSING_SPLIT_WINDOW_DAYS = 90

MESSAGES = {
    AnomalyType.OPEN_SHIFT: "未退勤（勤務中のまま）",
    AnomalyType.OPEN_BREAK: "休憩未終了（休憩中のまま）",
    AnomalyType.CLOSING_SPLIT: "20日締め分割が発生",
}


def _anomaly(anomaly_type: AnomalyType, session: AttendanceSession) -> Anomaly:
    return Anomaly(
        id=f"{anomaly_type.value}:{session.id}",
        type=anomaly_type,
        session_id=session.id,
        user_id=session.user_id,
        message=MESSAGES[anomaly_type],
    )


def find_attendance_anomalies(
    sessions: Iterable[AttendanceSession],
    now: datetime,
    window_days: int = DEFAULT_CLOSING_SPLIT_WINDOW_DAYS,
) -> list[Anomaly]:
    """勤務一覧から未退勤・休憩未終了・締め日分割を検出する

    open_shift は「閉じているはずの勤務」に対して使う想定。
    締め日分割は updated_at が直近 window_days 日以内のものだけを対象にする。
    """
    cutoff = ensure_aware(now) - timedelta(days=window_days)
    anomalies: list[Anomaly] = []
    for session in sessions:
        if session.end_at is None:
            anomalies.append(_anomaly(AnomalyType.OPEN_SHIFT, session))
            if find_open_break_index(session) is not None:
                anomalies.append(_anomaly(AnomalyType.OPEN_BREAK, session))
        if session.split_by_closing_boundary and session.updated_at > cutoff:
            anomalies.append(_anomaly(AnomalyType.CLOSING_SPLIT, session))
    return anomalies


def find_stale_open_sessions(sessions: Iterable[AttendanceSession], now: datetime) -> list[AttendanceSession]:
    """JSTの今日より前に開始し、まだ閉じていない勤務"""
    local = ensure_aware(now).astimezone(JST)
    start_of_today = local.replace(hour=0, minute=0, second=0, microsecond=0)
    return [
        session
        for session in sessions
        if session.end_at is None and session.start_at < start_of_today
    ]
