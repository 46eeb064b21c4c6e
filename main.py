"""勤怠セッションエンジン - エントリーポイント

保存先の勤務一覧を定期的に点検し、未退勤・休憩未終了・締め日分割を通知する。
締め日（20日）には日付が変わると勤務が分割される旨を事前に通知する。
"""
import logging
import os
import signal
import sys
import time

from dotenv import load_dotenv

from schedulers.scheduler import AttendanceScheduler
from services.attendance_service import AttendanceService
from services.closing_boundary import is_closing_warning_day
from services.clock import system_clock
from services.config_loader import load_config
from services.models import AnomalyType
from services.session_store import JsonFileSessionStore
from services.slack_client import (
    CLOSING_WARNING_MESSAGE,
    ConsoleNotifier,
    SlackNotifier,
    format_anomaly_report,
)

logger = logging.getLogger("attendance")


def create_services(config: dict):
    """設定に基づいてサービスインスタンスを生成"""
    load_dotenv()

    store_path = os.getenv("ATTENDANCE_STORE_PATH", config["storage"]["path"])
    store = JsonFileSessionStore(store_path)
    service = AttendanceService(
        store,
        anomaly_window_days=config["anomalies"]["closing_split_window_days"],
    )

    slack_config = config["slack"]
    slack_token = os.getenv("SLACK_BOT_TOKEN", "")
    slack_channel = os.getenv("SLACK_NOTIFY_CHANNEL", slack_config.get("notify_channel", ""))
    if slack_config["enabled"] and slack_token:
        notifier = SlackNotifier(token=slack_token, channel=slack_channel)
    else:
        notifier = ConsoleNotifier()

    return service, notifier


def collect_actionable_anomalies(service: AttendanceService):
    """閉じているはずの勤務（前日以前に開始）と直近の締め日分割だけを拾う"""
    stale_ids = {session.id for session in service.stale_open_sessions()}
    return [
        anomaly
        for anomaly in service.anomalies()
        if anomaly.type == AnomalyType.CLOSING_SPLIT or anomaly.session_id in stale_ids
    ]


def run_anomaly_check(service: AttendanceService, notifier):
    """1回分の異常チェックを実行"""
    anomalies = collect_actionable_anomalies(service)
    if not anomalies:
        logger.info("勤怠の異常はありません")
        return
    logger.info("勤怠の異常を%d件検出しました", len(anomalies))
    notifier.send(format_anomaly_report(anomalies))


def run_closing_warning(notifier, clock=system_clock):
    """締め日当日なら分割予告を通知"""
    if is_closing_warning_day(clock()):
        notifier.send(CLOSING_WARNING_MESSAGE)


def main():
    """メイン起動処理"""
    config = load_config("config.yaml")
    logging.basicConfig(
        level=config["logging"]["level"],
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    service, notifier = create_services(config)

    def check_job():
        try:
            run_anomaly_check(service, notifier)
        except Exception as e:
            logger.exception("異常チェック中にエラー")
            notifier.send_error(str(e))

    def warning_job():
        try:
            run_closing_warning(notifier)
        except Exception as e:
            logger.exception("締め日通知中にエラー")
            notifier.send_error(str(e))

    scheduler_config = config["scheduler"]
    interval = scheduler_config["anomaly_check_interval_minutes"]
    scheduler = AttendanceScheduler(
        interval_minutes=interval,
        job_func=check_job,
        warning_func=warning_job,
        warning_time=scheduler_config["closing_warning_time"],
    )
    scheduler.start()
    logger.info("%d分間隔で勤怠チェックを開始します", interval)

    # シグナルハンドリング
    def shutdown(signum, frame):
        logger.info("停止中...")
        scheduler.stop()
        logger.info("停止しました")
        sys.exit(0)

    signal.signal(signal.SIGINT, shutdown)
    signal.signal(signal.SIGTERM, shutdown)

    # メインループ
    logger.info("Ctrl+Cで停止します")
    try:
        while True:
            time.sleep(1)
    except KeyboardInterrupt:
        shutdown(None, None)


if __name__ == "__main__":
    main()
