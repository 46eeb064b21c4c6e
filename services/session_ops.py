# services/session_ops.py
"""勤務セッションの操作プリミティブと締め日分割"""
import logging
from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from typing import Iterable, Optional

from services.clock import IdFactory, ensure_aware, new_id
from services.closing_boundary import get_next_closing_boundary
from services.models import AttendanceBreak, AttendanceSession

logger = logging.getLogger(__name__)

AUTO_SPLIT_TASK_MESSAGE = "20日締めを跨いだため強制退勤"


@dataclass
class SplitResult:
    sessions: list[AttendanceSession]
    split_occurred: bool


def find_open_session_index(sessions: list[AttendanceSession], user_id: str) -> Optional[int]:
    for index in range(len(sessions) - 1, -1, -1):
        session = sessions[index]
        if session.user_id == user_id and session.end_at is None:
            return index
    return None


def find_open_break_index(session: AttendanceSession) -> Optional[int]:
    for index in range(len(session.breaks) - 1, -1, -1):
        if session.breaks[index].end_at is None:
            return index
    return None


def clone_session(session: AttendanceSession) -> AttendanceSession:
    return replace(
        session,
        breaks=[replace(item) for item in session.breaks],
        tasks=list(session.tasks),
        corrections=list(session.corrections),
    )


def clone_sessions(sessions: Iterable[AttendanceSession]) -> list[AttendanceSession]:
    return [clone_session(session) for session in sessions]


def sanitize_tasks(tasks: Iterable[str]) -> list[str]:
    stripped = (item.strip() for item in tasks)
    return [item for item in stripped if item]


def sort_sessions(sessions: Iterable[AttendanceSession]) -> list[AttendanceSession]:
    """開始時刻の降順（表示用）"""
    return sorted(sessions, key=lambda session: session.start_at, reverse=True)


def new_open_session(
    user_id: str,
    start_at: datetime,
    now: datetime,
    id_factory: IdFactory = new_id,
    continued: bool = False,
) -> AttendanceSession:
    return AttendanceSession(
        id=id_factory(),
        user_id=user_id,
        start_at=start_at,
        end_at=None,
        continued_from_closing_boundary=continued,
        created_at=now,
        updated_at=now,
    )


def ensure_closing_boundary_split(
    sessions: list[AttendanceSession],
    user_id: str,
    now: datetime,
    id_factory: IdFactory = new_id,
) -> SplitResult:
    """開いている勤務が締め境界を跨いでいれば境界で分割する

    境界の1秒前で元の勤務（と休憩）を閉じ、境界ちょうどから継続勤務を作る。
    複数の締め境界を跨いで放置された場合も、境界ごとに繰り返し分割する。
    """
    ensure_aware(now)
    next_sessions = clone_sessions(sessions)
    split_occurred = False

    while True:
        index = find_open_session_index(next_sessions, user_id)
        if index is None:
            break

        open_session = next_sessions[index]
        boundary = get_next_closing_boundary(open_session.start_at)
        if now < boundary:
            break

        split_end = boundary - timedelta(seconds=1)
        break_index = find_open_break_index(open_session)
        if break_index is not None:
            open_session.breaks[break_index].end_at = split_end

        open_session.end_at = split_end
        if AUTO_SPLIT_TASK_MESSAGE not in open_session.tasks:
            open_session.tasks.append(AUTO_SPLIT_TASK_MESSAGE)
        open_session.split_by_closing_boundary = True
        open_session.updated_at = now

        next_sessions.append(
            new_open_session(user_id, boundary, now, id_factory=id_factory, continued=True)
        )
        split_occurred = True
        logger.debug("締め境界で勤務を分割: user=%s boundary=%s", user_id, boundary.isoformat())

    return SplitResult(sessions=next_sessions, split_occurred=split_occurred)


def open_break(session: AttendanceSession, now: datetime, id_factory: IdFactory = new_id) -> AttendanceBreak:
    item = AttendanceBreak(id=id_factory(), start_at=now, end_at=None)
    session.breaks.append(item)
    session.updated_at = now
    return item
