# services/session_codec.py
"""勤務一覧のJSON保存形式との相互変換

保存形式はキャメルケースのJSON配列で、時刻はISO-8601文字列。
読み込み時は壊れたレコードだけを捨て、全体の読み込みは失敗させない。
"""
import json
import logging
from datetime import datetime, timezone
from typing import Any, Iterable, Optional

from services.models import (
    AttendanceBreak,
    AttendanceCorrection,
    AttendanceSession,
    Role,
)
from services.session_ops import sanitize_tasks, sort_sessions

logger = logging.getLogger(__name__)

ATTENDANCE_STORAGE_KEY = "notocord_attendance_v2"


def _format_timestamp(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def _parse_timestamp(value: Any) -> datetime:
    if not isinstance(value, str):
        raise TypeError(f"timestamp must be a string: {value!r}")
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        raise ValueError(f"timestamp without offset: {value}")
    return parsed


def _parse_optional_timestamp(value: Any) -> Optional[datetime]:
    if value is None:
        return None
    return _parse_timestamp(value)


def _require_str(row: dict, key: str) -> str:
    value = row[key]
    if not isinstance(value, str):
        raise TypeError(f"{key} must be a string")
    return value


def _list_or_empty(row: dict, key: str) -> list:
    value = row.get(key)
    return value if isinstance(value, list) else []


def break_to_dict(item: AttendanceBreak) -> dict:
    return {
        "id": item.id,
        "startAt": _format_timestamp(item.start_at),
        "endAt": _format_timestamp(item.end_at),
    }


def correction_to_dict(item: AttendanceCorrection) -> dict:
    return {
        "id": item.id,
        "actorId": item.actor_id,
        "actorRole": Role(item.actor_role).value,
        "message": item.message,
        "createdAt": _format_timestamp(item.created_at),
        "beforeStartAt": _format_timestamp(item.before_start_at),
        "beforeEndAt": _format_timestamp(item.before_end_at),
        "afterStartAt": _format_timestamp(item.after_start_at),
        "afterEndAt": _format_timestamp(item.after_end_at),
    }


def session_to_dict(session: AttendanceSession) -> dict:
    return {
        "id": session.id,
        "userId": session.user_id,
        "startAt": _format_timestamp(session.start_at),
        "endAt": _format_timestamp(session.end_at),
        "breaks": [break_to_dict(item) for item in session.breaks],
        "tasks": list(session.tasks),
        "splitByClosingBoundary": session.split_by_closing_boundary,
        "continuedFromClosingBoundary": session.continued_from_closing_boundary,
        "corrections": [correction_to_dict(item) for item in session.corrections],
        "createdAt": _format_timestamp(session.created_at),
        "updatedAt": _format_timestamp(session.updated_at),
    }


def break_from_dict(row: dict) -> AttendanceBreak:
    return AttendanceBreak(
        id=_require_str(row, "id"),
        start_at=_parse_timestamp(row["startAt"]),
        end_at=_parse_optional_timestamp(row.get("endAt")),
    )


def correction_from_dict(row: dict) -> AttendanceCorrection:
    return AttendanceCorrection(
        id=_require_str(row, "id"),
        actor_id=_require_str(row, "actorId"),
        actor_role=Role(row["actorRole"]),
        message=_require_str(row, "message"),
        created_at=_parse_timestamp(row["createdAt"]),
        before_start_at=_parse_timestamp(row["beforeStartAt"]),
        before_end_at=_parse_optional_timestamp(row.get("beforeEndAt")),
        after_start_at=_parse_timestamp(row["afterStartAt"]),
        after_end_at=_parse_optional_timestamp(row.get("afterEndAt")),
    )


def session_from_dict(row: dict) -> AttendanceSession:
    """1件分を復元する。不正な値があれば例外を送出する"""
    start_at = _parse_timestamp(row["startAt"])
    tasks = [item for item in _list_or_empty(row, "tasks") if isinstance(item, str)]
    created_at = row.get("createdAt")
    updated_at = row.get("updatedAt")
    return AttendanceSession(
        id=_require_str(row, "id"),
        user_id=_require_str(row, "userId"),
        start_at=start_at,
        end_at=_parse_optional_timestamp(row.get("endAt")),
        breaks=[break_from_dict(item) for item in _list_or_empty(row, "breaks")],
        tasks=sanitize_tasks(tasks),
        split_by_closing_boundary=bool(row.get("splitByClosingBoundary")),
        continued_from_closing_boundary=bool(row.get("continuedFromClosingBoundary")),
        corrections=[correction_from_dict(item) for item in _list_or_empty(row, "corrections")],
        created_at=start_at if created_at is None else _parse_timestamp(created_at),
        updated_at=start_at if updated_at is None else _parse_timestamp(updated_at),
    )


def load_attendance_sessions(raw: Optional[str]) -> list[AttendanceSession]:
    """保存済みJSONから勤務一覧を読み込む"""
    if not raw:
        return []
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError:
        logger.warning("勤怠データのJSONを解析できないため空として扱います")
        return []
    if not isinstance(parsed, list):
        return []

    sessions: list[AttendanceSession] = []
    for position, row in enumerate(parsed):
        if not isinstance(row, dict):
            logger.warning("勤怠レコード#%dを破棄しました: オブジェクトではありません", position)
            continue
        try:
            sessions.append(session_from_dict(row))
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            logger.warning("勤怠レコード#%dを破棄しました: %s", position, e)
    return sessions


def serialize_attendance_sessions(sessions: Iterable[AttendanceSession]) -> str:
    return json.dumps(
        [session_to_dict(session) for session in sort_sessions(sessions)],
        ensure_ascii=False,
    )
