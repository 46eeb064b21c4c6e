# tests/test_graph.py
from datetime import datetime

import pytest

from graph.engine import AttendanceEngine
from graph.graph import (
    route_entry,
    route_after_closing_split,
    route_after_operation,
    build_mutation_graph,
)
from services.closing_boundary import JST
from services.models import MutationError


def _make_state(**overrides):
    base = {
        "operation": "clock_in",
        "sessions": [],
        "working": [],
        "user_id": "u1",
        "session_id": None,
        "tasks": [],
        "correction": None,
        "now": datetime(2026, 2, 22, 9, tzinfo=JST),
        "split_occurred": False,
        "notice": None,
        "error": None,
    }
    base.update(overrides)
    return base


def test_route_entry_split_operations():
    """勤務中セッションに触れる操作はclosing_splitへ"""
    for operation in ("break_start", "break_end", "clock_out", "save_current_tasks"):
        assert route_entry(_make_state(operation=operation)) == "closing_split"


def test_route_entry_direct_operations():
    """出勤・過去勤務編集・修正は直接操作ノードへ"""
    for operation in ("clock_in", "save_session_tasks", "correct"):
        assert route_entry(_make_state(operation=operation)) == operation


def test_route_after_closing_split():
    """分割後は要求された操作へ"""
    assert route_after_closing_split(_make_state(operation="clock_out")) == "clock_out"


def test_route_after_operation_error():
    """失敗した場合endへ"""
    state = _make_state(error=MutationError.NOT_WORKING)
    assert route_after_operation(state) == "end"


def test_route_after_operation_success():
    """成功した場合finalizeへ"""
    assert route_after_operation(_make_state()) == "finalize"


def test_build_graph():
    """グラフが正常にビルドできること"""
    graph = build_mutation_graph()
    assert graph is not None


def test_graph_invoke_clock_in():
    """グラフを直接実行して出勤できること"""
    graph = build_mutation_graph(id_factory=lambda: "s-1")
    final = graph.invoke(_make_state())
    assert final["error"] is None
    assert [s.id for s in final["working"]] == ["s-1"]
    assert final["notice"] == "出勤しました"


def test_unknown_operation():
    """未知の操作は例外"""
    with pytest.raises(ValueError):
        AttendanceEngine().apply("teleport", [], user_id="u1", now=datetime(2026, 2, 22, tzinfo=JST))
