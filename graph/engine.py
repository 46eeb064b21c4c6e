# graph/engine.py
"""勤怠セッションエンジン

すべての操作は純粋関数として振る舞う: 受け取ったセッション一覧は変更せず、
新しい一覧を含む MutationResult を返す。業務上想定される失敗は例外にせず
ok=False で返す。
"""
from typing import Iterable, Optional, Union

from graph.graph import OPERATIONS, build_mutation_graph
from graph.state import MutationState
from services.clock import Clock, IdFactory, ensure_aware, new_id, system_clock
from services.models import AttendanceSession, CorrectionRequest, MutationResult
from services.session_ops import clone_sessions


class AttendanceEngine:
    """ID生成と時計を注入できる勤怠操作の実行器"""

    def __init__(self, id_factory: Optional[IdFactory] = None, clock: Optional[Clock] = None):
        self._id_factory = id_factory or new_id
        self._clock = clock or system_clock
        self._graph = build_mutation_graph(id_factory=self._id_factory)

    def now(self):
        return ensure_aware(self._clock())

    def apply(
        self,
        operation: str,
        sessions: list[AttendanceSession],
        *,
        user_id: Optional[str] = None,
        session_id: Optional[str] = None,
        tasks: Iterable[str] = (),
        correction: Optional[CorrectionRequest] = None,
        now=None,
    ) -> MutationResult:
        """1つの操作をパイプライン（締め日分割 → 操作 → 整列）に通す"""
        if operation not in OPERATIONS:
            raise ValueError(f"unknown attendance operation: {operation}")
        now = self.now() if now is None else ensure_aware(now)

        state: MutationState = {
            "operation": operation,
            "sessions": sessions,
            "working": clone_sessions(sessions),
            "user_id": user_id,
            "session_id": session_id,
            "tasks": list(tasks),
            "correction": correction,
            "now": now,
            "split_occurred": False,
            "notice": None,
            "error": None,
        }
        final = self._graph.invoke(state)

        if final.get("error") is not None:
            return MutationResult(ok=False, sessions=sessions, error=final["error"])
        return MutationResult(ok=True, sessions=final["working"], notice=final.get("notice"))

    def clock_in(self, sessions, user_id: str, now=None) -> MutationResult:
        return self.apply("clock_in", sessions, user_id=user_id, now=now)

    def break_start(self, sessions, user_id: str, now=None) -> MutationResult:
        return self.apply("break_start", sessions, user_id=user_id, now=now)

    def break_end(self, sessions, user_id: str, now=None) -> MutationResult:
        return self.apply("break_end", sessions, user_id=user_id, now=now)

    def clock_out(self, sessions, user_id: str, tasks: Iterable[str], now=None) -> MutationResult:
        return self.apply("clock_out", sessions, user_id=user_id, tasks=tasks, now=now)

    def save_current_tasks(self, sessions, user_id: str, tasks: Iterable[str], now=None) -> MutationResult:
        return self.apply("save_current_tasks", sessions, user_id=user_id, tasks=tasks, now=now)

    def save_session_tasks(
        self, sessions, session_id: str, user_id: str, tasks: Iterable[str], now=None
    ) -> MutationResult:
        return self.apply(
            "save_session_tasks",
            sessions,
            user_id=user_id,
            session_id=session_id,
            tasks=tasks,
            now=now,
        )

    def correct(
        self, sessions, session_id: str, payload: Union[CorrectionRequest, dict], now=None
    ) -> MutationResult:
        if isinstance(payload, dict):
            payload = CorrectionRequest(
                start_at=payload.get("start_at"),
                end_at=payload.get("end_at"),
                message=payload.get("message") or "",
                actor_id=payload.get("actor_id") or "",
                actor_role=payload.get("actor_role") or "",
            )
        return self.apply("correct", sessions, session_id=session_id, correction=payload, now=now)


_default_engine: Optional[AttendanceEngine] = None


def get_default_engine() -> AttendanceEngine:
    global _default_engine
    if _default_engine is None:
        _default_engine = AttendanceEngine()
    return _default_engine


def create_clock_in(sessions, user_id: str, now=None) -> MutationResult:
    return get_default_engine().clock_in(sessions, user_id, now)


def create_break_start(sessions, user_id: str, now=None) -> MutationResult:
    return get_default_engine().break_start(sessions, user_id, now)


def create_break_end(sessions, user_id: str, now=None) -> MutationResult:
    return get_default_engine().break_end(sessions, user_id, now)


def create_clock_out(sessions, user_id: str, tasks: Iterable[str], now=None) -> MutationResult:
    return get_default_engine().clock_out(sessions, user_id, tasks, now)


def save_current_tasks(sessions, user_id: str, tasks: Iterable[str], now=None) -> MutationResult:
    return get_default_engine().save_current_tasks(sessions, user_id, tasks, now)


def save_session_tasks(sessions, session_id: str, user_id: str, tasks: Iterable[str], now=None) -> MutationResult:
    return get_default_engine().save_session_tasks(sessions, session_id, user_id, tasks, now)


def apply_manager_correction(sessions, session_id: str, payload, now=None) -> MutationResult:
    return get_default_engine().correct(sessions, session_id, payload, now)
