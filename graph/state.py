from typing import TypedDict, Optional
from datetime import datetime

from services.models import AttendanceSession, CorrectionRequest, MutationError


class MutationState(TypedDict):
    operation: str                          # "clock_in" / "break_start" / "break_end" / ...
    sessions: list[AttendanceSession]       # 呼び出し元のリスト（変更しない）
    working: list[AttendanceSession]        # 複製した作業用リスト
    user_id: Optional[str]                  # 操作するユーザー
    session_id: Optional[str]               # 対象セッション（タスク編集・修正）
    tasks: list[str]                        # 入力された「やったこと」
    correction: Optional[CorrectionRequest]  # 上長修正の内容
    now: datetime                           # 操作時刻
    split_occurred: bool                    # 締め日分割が発生したか
    notice: Optional[str]                   # 利用者向けメッセージ
    error: Optional[MutationError]          # 失敗理由
