import logging
import sys
from typing import Iterable

from slack_sdk import WebClient
from slack_sdk.errors import SlackApiError, SlackClientError

from services.models import Anomaly

logger = logging.getLogger(__name__)

CLOSING_WARNING_MESSAGE = (
    "⚠️ 本日は20日締めの締め日です。勤務中のまま日付が変わると、"
    "20日分は23:59で確定し、21日0:00から新しい勤務として継続されます"
)


def format_anomaly_report(anomalies: Iterable[Anomaly]) -> str:
    """勤怠の異常一覧を通知用テキストにする"""
    lines = [f"・{a.message}（user={a.user_id} / session={a.session_id}）" for a in anomalies]
    if not lines:
        return "✅ 勤怠の異常はありません"
    return "🔎 勤怠の確認が必要です\n" + "\n".join(lines)


class ConsoleNotifier:
    """コンソール出力による通知（フォールバック用）"""

    def send(self, message: str) -> bool:
        print(f"[勤怠通知] {message}", file=sys.stdout)
        return True

    def send_error(self, error: str) -> bool:
        print(f"[勤怠エラー] {error}", file=sys.stderr)
        return True


class SlackNotifier:
    """Slack APIによる通知サービス"""

    def __init__(self, token: str, channel: str):
        self._channel = channel
        self._client = WebClient(token=token) if token else None
        self._fallback = ConsoleNotifier()

    def send(self, message: str) -> bool:
        """メッセージ送信（クライアント未設定時はコンソールへ）"""
        if self._client is None:
            return self._fallback.send(message)

        try:
            self._client.chat_postMessage(channel=self._channel, text=message)
            return True
        except SlackApiError as e:
            logger.warning("Slack通知に失敗しました: %s", e.response.get("error"))
            return False
        except (SlackClientError, OSError) as e:
            logger.warning("Slack通知に失敗しました（接続エラー）: %s", e)
            return False

    def send_error(self, error: str) -> bool:
        """エラー通知"""
        message = f"❌ 勤怠チェックでエラーが発生しました。手動確認をお願いします（エラー: {error}）"
        return self.send(message)
