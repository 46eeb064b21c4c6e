# services/attendance_service.py
import logging
import threading
from typing import Callable, Iterable, Optional

from graph.engine import AttendanceEngine
from services.anomaly_detector import (
    DEFAULT_CLOSING_SPLIT_WINDOW_DAYS,
    find_attendance_anomalies,
    find_stale_open_sessions,
)
from services.closing_boundary import get_current_closing_period
from services.clock import Clock, ensure_aware, system_clock
from services.models import (
    Anomaly,
    AttendanceSession,
    AttendanceStatus,
    CorrectionRequest,
    MutationResult,
)
from services.session_queries import filter_sessions_in_period, get_current_attendance_status
from services.session_store import SessionStore

logger = logging.getLogger(__name__)


class AttendanceService:
    """保存先から読み込み → エンジンで1操作 → 成功時に保存、を直列に実行する

    保存先は勤務一覧をまるごと書き換えるため、ユーザーが異なっても
    書き込みは1本のロックで直列化する（後勝ちで操作が消えないように）。
    """

    def __init__(
        self,
        store: SessionStore,
        engine: Optional[AttendanceEngine] = None,
        clock: Optional[Clock] = None,
        anomaly_window_days: int = DEFAULT_CLOSING_SPLIT_WINDOW_DAYS,
    ):
        self._store = store
        self._clock = clock or system_clock
        self._engine = engine or AttendanceEngine(clock=self._clock)
        self._anomaly_window_days = anomaly_window_days
        self._lock = threading.Lock()

    def _now(self):
        return ensure_aware(self._clock())

    def _mutate(
        self,
        label: str,
        operation: Callable[[list[AttendanceSession]], MutationResult],
    ) -> MutationResult:
        with self._lock:
            sessions = self._store.load()
            result = operation(sessions)
            if result.ok:
                self._store.save(result.sessions)
                logger.info("%s: %s", label, result.notice)
            else:
                logger.info("%s: 失敗 (%s)", label, result.error.value)
        return result

    def clock_in(self, user_id: str) -> MutationResult:
        now = self._now()
        return self._mutate(
            f"出勤 user={user_id}",
            lambda sessions: self._engine.clock_in(sessions, user_id, now),
        )

    def break_start(self, user_id: str) -> MutationResult:
        now = self._now()
        return self._mutate(
            f"休憩開始 user={user_id}",
            lambda sessions: self._engine.break_start(sessions, user_id, now),
        )

    def break_end(self, user_id: str) -> MutationResult:
        now = self._now()
        return self._mutate(
            f"休憩終了 user={user_id}",
            lambda sessions: self._engine.break_end(sessions, user_id, now),
        )

    def clock_out(self, user_id: str, tasks: Iterable[str]) -> MutationResult:
        now = self._now()
        tasks = list(tasks)
        return self._mutate(
            f"退勤 user={user_id}",
            lambda sessions: self._engine.clock_out(sessions, user_id, tasks, now),
        )

    def save_current_tasks(self, user_id: str, tasks: Iterable[str]) -> MutationResult:
        now = self._now()
        tasks = list(tasks)
        return self._mutate(
            f"やったこと保存 user={user_id}",
            lambda sessions: self._engine.save_current_tasks(sessions, user_id, tasks, now),
        )

    def save_session_tasks(self, session_id: str, user_id: str, tasks: Iterable[str]) -> MutationResult:
        now = self._now()
        tasks = list(tasks)
        return self._mutate(
            f"やったこと編集 user={user_id} session={session_id}",
            lambda sessions: self._engine.save_session_tasks(sessions, session_id, user_id, tasks, now),
        )

    def correct(self, session_id: str, request: CorrectionRequest) -> MutationResult:
        now = self._now()
        return self._mutate(
            f"勤務修正 actor={request.actor_id} session={session_id}",
            lambda sessions: self._engine.correct(sessions, session_id, request, now),
        )

    def status(self, user_id: str) -> AttendanceStatus:
        return get_current_attendance_status(self._store.load(), user_id)

    def current_period_sessions(self, user_id: Optional[str] = None) -> list[AttendanceSession]:
        now = self._now()
        period = get_current_closing_period(now)
        return filter_sessions_in_period(self._store.load(), period, now, user_id=user_id)

    def anomalies(self) -> list[Anomaly]:
        return find_attendance_anomalies(
            self._store.load(), self._now(), window_days=self._anomaly_window_days
        )

    def stale_open_sessions(self) -> list[AttendanceSession]:
        return find_stale_open_sessions(self._store.load(), self._now())
