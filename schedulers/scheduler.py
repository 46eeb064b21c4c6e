# schedulers/scheduler.py
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger
from typing import Callable

# 締め日の判定と同じくJSTで動かす
SCHEDULER_TIMEZONE = "Asia/Tokyo"


def _parse_time(time_str: str) -> tuple[int, int]:
    """HH:MM形式の文字列を(時, 分)に変換"""
    h, m = map(int, time_str.split(":"))
    return h, m


class AttendanceScheduler:
    """APSchedulerによる定期実行管理

    - 異常チェック: interval_minutes 間隔
    - 締め日警告チェック: 毎日 warning_time（JST）
    """

    def __init__(
        self,
        interval_minutes: int,
        job_func: Callable,
        warning_func: Callable = None,
        warning_time: str = "09:00",
    ):
        self._interval = interval_minutes
        self._job_func = job_func
        self._warning_func = warning_func
        self._scheduler = BackgroundScheduler(timezone=SCHEDULER_TIMEZONE)
        self._scheduler.add_job(
            self._job_func,
            trigger=IntervalTrigger(minutes=self._interval),
            id="anomaly_check",
            replace_existing=True,
        )
        if warning_func is not None:
            hour, minute = _parse_time(warning_time)
            self._scheduler.add_job(
                warning_func,
                trigger=CronTrigger(hour=hour, minute=minute, timezone=SCHEDULER_TIMEZONE),
                id="closing_warning",
                replace_existing=True,
            )

    def job_ids(self) -> list[str]:
        return [job.id for job in self._scheduler.get_jobs()]

    def start(self):
        """スケジューラ開始"""
        self._scheduler.start()

    def stop(self):
        """スケジューラ停止"""
        self._scheduler.shutdown(wait=False)
