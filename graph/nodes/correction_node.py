# graph/nodes/correction_node.py
from dataclasses import replace
from datetime import datetime
from typing import Optional

from graph.notices import NOTICES
from graph.state import MutationState
from services.clock import IdFactory, ensure_aware, new_id
from services.models import (
    CORRECTION_ROLES,
    AttendanceBreak,
    AttendanceCorrection,
    CorrectionRequest,
    MutationError,
    Role,
)
from services.session_ops import find_open_session_index


def _validate(request: CorrectionRequest) -> Optional[MutationError]:
    if request.actor_role not in CORRECTION_ROLES:
        return MutationError.FORBIDDEN
    if not request.message.strip():
        return MutationError.VALIDATION_ERROR
    if request.start_at is None:
        return MutationError.VALIDATION_ERROR
    if request.end_at is not None and ensure_aware(request.end_at) <= ensure_aware(request.start_at):
        return MutationError.VALIDATION_ERROR
    return None


def clamp_break(item: AttendanceBreak, start_at: datetime, end_at: Optional[datetime]) -> AttendanceBreak:
    """休憩を修正後の勤務時間内に収める。収まらない場合は長さ0にする"""
    next_start = max(item.start_at, start_at)
    next_end = item.end_at
    if end_at is not None and (next_end is None or next_end > end_at):
        next_end = end_at
    if next_end is not None and next_end < next_start:
        next_end = next_start
    return replace(item, start_at=next_start, end_at=next_end)


def correction_node(state: MutationState, id_factory: IdFactory = new_id) -> dict:
    """上長（reviewer/admin）による勤務時刻の修正ノード"""
    request = state["correction"]
    error = _validate(request)
    if error is not None:
        return {"error": error}

    working = state["working"]
    target = next((session for session in working if session.id == state["session_id"]), None)
    if target is None:
        return {"error": MutationError.NOT_FOUND}

    if request.end_at is None:
        # 開いたままにする修正は、同じユーザーの別の勤務中セッションと共存できない
        open_index = find_open_session_index(working, target.user_id)
        if open_index is not None and working[open_index].id != target.id:
            return {"error": MutationError.VALIDATION_ERROR}

    now = state["now"]
    correction = AttendanceCorrection(
        id=id_factory(),
        actor_id=request.actor_id,
        actor_role=Role(request.actor_role),
        message=request.message.strip(),
        created_at=now,
        before_start_at=target.start_at,
        before_end_at=target.end_at,
        after_start_at=request.start_at,
        after_end_at=request.end_at,
    )

    target.start_at = request.start_at
    target.end_at = request.end_at
    target.updated_at = now
    target.breaks = [clamp_break(item, target.start_at, target.end_at) for item in target.breaks]
    target.corrections.insert(0, correction)

    return {"working": working, "notice": NOTICES["corrected"]}
