import copy
import itertools
from datetime import datetime

from graph.engine import AttendanceEngine, apply_manager_correction
from graph.notices import NOTICES
from services.closing_boundary import JST
from services.models import (
    AttendanceBreak,
    AttendanceSession,
    CorrectionRequest,
    MutationError,
    Role,
)


def _jst(year, month, day, hour=0, minute=0, second=0):
    return datetime(year, month, day, hour, minute, second, tzinfo=JST)


def _engine():
    counter = itertools.count(1)
    return AttendanceEngine(id_factory=lambda: f"c-{next(counter)}")


def _session(**overrides):
    values = {
        "id": "s1",
        "user_id": "u1",
        "start_at": _jst(2026, 2, 2, 9),
        "end_at": _jst(2026, 2, 2, 18),
        "tasks": ["作業"],
    }
    values.update(overrides)
    return AttendanceSession(**values)


def _request(**overrides):
    values = {
        "start_at": _jst(2026, 2, 2, 9),
        "end_at": _jst(2026, 2, 2, 17, 15),
        "message": " 退勤打刻忘れのため修正 ",
        "actor_id": "boss",
        "actor_role": "reviewer",
    }
    values.update(overrides)
    return CorrectionRequest(**values)


def test_correction_updates_times_and_records_audit():
    """修正前後の時刻が監査レコードに残る"""
    now = _jst(2026, 2, 3, 10)
    result = _engine().correct([_session()], "s1", _request(), now)

    assert result.ok is True
    assert result.notice == NOTICES["corrected"]
    session = result.sessions[0]
    assert session.end_at == _jst(2026, 2, 2, 17, 15)
    assert session.updated_at == now

    correction = session.corrections[0]
    assert correction.id == "c-1"
    assert correction.actor_id == "boss"
    assert correction.actor_role == Role.REVIEWER
    assert correction.message == "退勤打刻忘れのため修正"
    assert correction.created_at == now
    assert correction.before_start_at == _jst(2026, 2, 2, 9)
    assert correction.before_end_at == _jst(2026, 2, 2, 18)
    assert correction.after_start_at == _jst(2026, 2, 2, 9)
    assert correction.after_end_at == _jst(2026, 2, 2, 17, 15)


def test_correction_clamps_break_end():
    """終了を17:15に縮めると17:00〜17:30の休憩は17:15までになる"""
    session = _session(
        breaks=[AttendanceBreak(id="b1", start_at=_jst(2026, 2, 2, 17), end_at=_jst(2026, 2, 2, 17, 30))]
    )
    result = _engine().correct([session], "s1", _request(), _jst(2026, 2, 3))
    item = result.sessions[0].breaks[0]
    assert item.start_at == _jst(2026, 2, 2, 17)
    assert item.end_at == _jst(2026, 2, 2, 17, 15)


def test_correction_collapses_break_outside_interval():
    """新しい開始より前に終わる休憩は長さ0になる"""
    session = _session(
        breaks=[AttendanceBreak(id="b1", start_at=_jst(2026, 2, 2, 9, 30), end_at=_jst(2026, 2, 2, 9, 45))]
    )
    request = _request(start_at=_jst(2026, 2, 2, 10), end_at=_jst(2026, 2, 2, 18))
    result = _engine().correct([session], "s1", request, _jst(2026, 2, 3))
    item = result.sessions[0].breaks[0]
    assert item.start_at == _jst(2026, 2, 2, 10)
    assert item.end_at == _jst(2026, 2, 2, 10)


def test_correction_keeps_open_break_on_open_session():
    """勤務中のままの修正では開いている休憩は開いたまま"""
    session = _session(
        end_at=None,
        breaks=[AttendanceBreak(id="b1", start_at=_jst(2026, 2, 2, 12))],
    )
    request = _request(start_at=_jst(2026, 2, 2, 8, 30), end_at=None)
    result = _engine().correct([session], "s1", request, _jst(2026, 2, 2, 12, 30))
    corrected = result.sessions[0]
    assert corrected.start_at == _jst(2026, 2, 2, 8, 30)
    assert corrected.end_at is None
    assert corrected.breaks[0].end_at is None


def test_correction_closes_open_break_when_session_closed():
    """勤務を閉じる修正では開いている休憩も終了時刻で閉じる"""
    session = _session(
        end_at=None,
        breaks=[AttendanceBreak(id="b1", start_at=_jst(2026, 2, 2, 17))],
    )
    result = _engine().correct([session], "s1", _request(), _jst(2026, 2, 3))
    assert result.sessions[0].breaks[0].end_at == _jst(2026, 2, 2, 17, 15)


def test_corrections_newest_first():
    """修正履歴は新しい順に積まれる"""
    engine = _engine()
    first = engine.correct([_session()], "s1", _request(message="1回目"), _jst(2026, 2, 3))
    second = engine.correct(
        first.sessions, "s1", _request(end_at=_jst(2026, 2, 2, 17), message="2回目"), _jst(2026, 2, 4)
    )
    messages = [c.message for c in second.sessions[0].corrections]
    assert messages == ["2回目", "1回目"]
    assert second.sessions[0].corrections[0].before_end_at == _jst(2026, 2, 2, 17, 15)


def test_correction_forbidden_for_staff():
    """staffは修正できない"""
    sessions = [_session()]
    result = _engine().correct(sessions, "s1", _request(actor_role="staff"), _jst(2026, 2, 3))
    assert result.ok is False
    assert result.error == MutationError.FORBIDDEN
    assert result.sessions is sessions


def test_correction_admin_allowed():
    """adminは修正できる"""
    result = _engine().correct([_session()], "s1", _request(actor_role=Role.ADMIN), _jst(2026, 2, 3))
    assert result.ok is True
    assert result.sessions[0].corrections[0].actor_role == Role.ADMIN


def test_correction_validation_errors():
    """メッセージ空・開始なし・終了が開始以前はValidationError"""
    engine = _engine()
    cases = [
        _request(message="   "),
        _request(start_at=None),
        _request(end_at=_jst(2026, 2, 2, 9)),
        _request(end_at=_jst(2026, 2, 2, 8)),
    ]
    for request in cases:
        result = engine.correct([_session()], "s1", request, _jst(2026, 2, 3))
        assert result.ok is False
        assert result.error == MutationError.VALIDATION_ERROR


def test_correction_not_found():
    """存在しない勤務はNotFound"""
    result = _engine().correct([_session()], "missing", _request(), _jst(2026, 2, 3))
    assert result.error == MutationError.NOT_FOUND


def test_correction_does_not_mutate_input():
    """修正しても入力の勤務は変わらない"""
    sessions = [
        _session(breaks=[AttendanceBreak(id="b1", start_at=_jst(2026, 2, 2, 17), end_at=_jst(2026, 2, 2, 17, 30))])
    ]
    snapshot = copy.deepcopy(sessions)
    _engine().correct(sessions, "s1", _request(), _jst(2026, 2, 3))
    assert sessions == snapshot


def test_correction_accepts_dict_payload():
    """モジュール関数はdictの修正内容も受け付ける"""
    payload = {
        "start_at": _jst(2026, 2, 2, 9),
        "end_at": _jst(2026, 2, 2, 17),
        "message": "修正",
        "actor_id": "admin-1",
        "actor_role": "admin",
    }
    result = apply_manager_correction([_session()], "s1", payload, _jst(2026, 2, 3))
    assert result.ok is True
    assert result.sessions[0].end_at == _jst(2026, 2, 2, 17)


def test_correction_dict_without_start_is_validation_error():
    """開始時刻のないdictは例外ではなくValidationErrorを返す"""
    payload = {
        "end_at": _jst(2026, 2, 2, 17),
        "message": "修正",
        "actor_id": "admin-1",
        "actor_role": "admin",
    }
    sessions = [_session()]
    result = apply_manager_correction(sessions, "s1", payload, _jst(2026, 2, 3))
    assert result.ok is False
    assert result.error == MutationError.VALIDATION_ERROR
    assert result.sessions is sessions


def test_correction_dict_without_end_keeps_session_open():
    """終了時刻のないdictは勤務中のまま修正される"""
    payload = {
        "start_at": _jst(2026, 2, 2, 8),
        "message": "出勤時刻の修正",
        "actor_id": "admin-1",
        "actor_role": "admin",
    }
    result = apply_manager_correction([_session(end_at=None)], "s1", payload, _jst(2026, 2, 2, 12))
    assert result.ok is True
    assert result.sessions[0].start_at == _jst(2026, 2, 2, 8)
    assert result.sessions[0].end_at is None


def test_correction_cannot_reopen_while_other_session_open():
    """同じユーザーに別の勤務中セッションがあれば、再オープンする修正は拒否する"""
    closed = _session()
    current = _session(id="s2", start_at=_jst(2026, 2, 3, 9), end_at=None)
    result = _engine().correct(
        [current, closed], "s1", _request(end_at=None), _jst(2026, 2, 3, 10)
    )
    assert result.ok is False
    assert result.error == MutationError.VALIDATION_ERROR
    assert result.sessions[1].end_at == _jst(2026, 2, 2, 18)


def test_correction_can_keep_own_open_session_open():
    """対象自身が勤務中なら開いたままの修正はできる"""
    current = _session(end_at=None)
    other_user = _session(id="s9", user_id="u2", end_at=None)
    result = _engine().correct(
        [current, other_user], "s1", _request(end_at=None), _jst(2026, 2, 2, 12)
    )
    assert result.ok is True
    open_ids = [s.id for s in result.sessions if s.user_id == "u1" and s.end_at is None]
    assert open_ids == ["s1"]
