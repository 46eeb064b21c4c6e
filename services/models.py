from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional


class Role(str, Enum):
    STAFF = "staff"
    REVIEWER = "reviewer"
    ADMIN = "admin"


# 勤怠修正が可能なロール
CORRECTION_ROLES = (Role.REVIEWER, Role.ADMIN)


class AttendanceStatus(str, Enum):
    OFF = "off"
    WORKING = "working"
    ON_BREAK = "on_break"


class AnomalyType(str, Enum):
    OPEN_SHIFT = "open_shift"
    OPEN_BREAK = "open_break"
    CLOSING_SPLIT = "closing_split"


class MutationError(str, Enum):
    ALREADY_WORKING = "AlreadyWorking"
    NOT_WORKING = "NotWorking"
    ALREADY_ON_BREAK = "AlreadyOnBreak"
    NOT_ON_BREAK = "NotOnBreak"
    MISSING_TASKS = "MissingTasks"
    NOT_FOUND = "NotFound"
    FORBIDDEN = "Forbidden"
    VALIDATION_ERROR = "ValidationError"


ERROR_MESSAGES = {
    MutationError.ALREADY_WORKING: "すでに勤務中です",
    MutationError.NOT_WORKING: "勤務中ではありません",
    MutationError.ALREADY_ON_BREAK: "すでに休憩中です",
    MutationError.NOT_ON_BREAK: "休憩中ではありません",
    MutationError.MISSING_TASKS: "退勤時は「やったこと」を1項目以上入力してください",
    MutationError.NOT_FOUND: "対象の勤務が見つかりません",
    MutationError.FORBIDDEN: "修正権限がありません",
    MutationError.VALIDATION_ERROR: "修正内容が正しくありません",
}


@dataclass
class AttendanceBreak:
    id: str
    start_at: datetime
    end_at: Optional[datetime] = None


@dataclass(frozen=True)
class AttendanceCorrection:
    """上長による勤怠修正の監査レコード（作成後は変更しない）"""

    id: str
    actor_id: str
    actor_role: Role
    message: str
    created_at: datetime
    before_start_at: datetime
    before_end_at: Optional[datetime]
    after_start_at: datetime
    after_end_at: Optional[datetime]


@dataclass
class AttendanceSession:
    """1回の連続勤務（締め日分割されたものを含む）"""

    id: str
    user_id: str
    start_at: datetime
    end_at: Optional[datetime] = None
    breaks: list[AttendanceBreak] = field(default_factory=list)
    tasks: list[str] = field(default_factory=list)
    split_by_closing_boundary: bool = False
    continued_from_closing_boundary: bool = False
    corrections: list[AttendanceCorrection] = field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def __post_init__(self):
        if self.created_at is None:
            self.created_at = self.start_at
        if self.updated_at is None:
            self.updated_at = self.start_at

    @property
    def is_open(self) -> bool:
        return self.end_at is None


@dataclass(frozen=True)
class AttendancePeriod:
    start_at: datetime
    end_at: datetime
    label: str


@dataclass(frozen=True)
class CorrectionRequest:
    start_at: Optional[datetime]
    end_at: Optional[datetime]
    message: str
    actor_id: str
    actor_role: str


@dataclass
class MutationResult:
    ok: bool
    sessions: list[AttendanceSession]
    error: Optional[MutationError] = None
    notice: Optional[str] = None

    @property
    def error_message(self) -> Optional[str]:
        if self.error is None:
            return None
        return ERROR_MESSAGES[self.error]


@dataclass(frozen=True)
class Anomaly:
    id: str
    type: AnomalyType
    session_id: str
    user_id: str
    message: str
