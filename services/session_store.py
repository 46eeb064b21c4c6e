# services/session_store.py
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

from services.models import AttendanceSession
from services.session_codec import load_attendance_sessions, serialize_attendance_sessions


class SessionStore(ABC):
    """勤務一覧の保存先の抽象インターフェース"""

    @abstractmethod
    def load(self) -> list[AttendanceSession]:
        """保存済みの勤務一覧を読み込む"""
        ...

    @abstractmethod
    def save(self, sessions: list[AttendanceSession]) -> None:
        """勤務一覧を丸ごと保存する"""
        ...


class InMemorySessionStore(SessionStore):
    """メモリ上の保存先。読み込みのたびに新しいオブジェクトを返す"""

    def __init__(self, sessions: Optional[list[AttendanceSession]] = None):
        self._raw = serialize_attendance_sessions(sessions or [])

    def load(self) -> list[AttendanceSession]:
        return load_attendance_sessions(self._raw)

    def save(self, sessions: list[AttendanceSession]) -> None:
        self._raw = serialize_attendance_sessions(sessions)


class JsonFileSessionStore(SessionStore):
    """JSONファイルへの保存。書き込みは一時ファイル経由で置き換える"""

    def __init__(self, path: str):
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> list[AttendanceSession]:
        if not self._path.exists():
            return []
        return load_attendance_sessions(self._path.read_text(encoding="utf-8"))

    def save(self, sessions: list[AttendanceSession]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(
            prefix=f".{self._path.name}.", suffix=".tmp", dir=str(self._path.parent)
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(serialize_attendance_sessions(sessions))
            os.replace(tmp_path, self._path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise
