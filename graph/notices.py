NOTICES = {
    "clock_in": "出勤しました",
    "break_start": "休憩を開始しました",
    "break_end": "休憩を終了しました",
    "clock_out": "退勤しました",
    "clock_out_with_break": "休憩を終了して退勤しました",
    "tasks_saved": "やったことを保存しました",
    "corrected": "勤務を修正しました",
    "closing_split": "締め日のため勤務を分割しました（20日分は23:59で確定、21日分は0:00から継続）",
}
