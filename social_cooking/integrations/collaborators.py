"""
外部コラボレーター（フィード・通知・分析）

オーケストレーターはこれらのポートを経由してのみ副作用を発生させます。
各呼び出しはベストエフォートで、失敗してもイベント操作の結果には影響しません。
"""

import asyncio
import inspect
import logging
from collections import deque
from typing import Any, Awaitable, Callable, Deque, Dict, List, Optional, Protocol, Set

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

# 保持する失敗記録の上限（古いものから破棄）
MAX_RECORDED_FAILURES = 100


class ContentFeed(Protocol):
    """コンテンツフィード（カードを先頭に追加）"""

    def prepend_card(self, card: Dict[str, Any]) -> Any:
        ...


class Notifier(Protocol):
    """コンパニオン通知（メッセージ表示）"""

    def show_message(self, text: str) -> Any:
        ...


class Analytics(Protocol):
    """分析シグナル送信"""

    def log_signal(self, name: str, payload: Dict[str, Any]) -> Any:
        ...


class InMemoryFeed:
    """フィードカードを保持するだけの実装"""

    def __init__(self):
        self.cards: List[Dict[str, Any]] = []

    def prepend_card(self, card: Dict[str, Any]) -> None:
        # 同じIDのカードは置き換え
        self.cards = [c for c in self.cards if c.get("id") != card.get("id")]
        self.cards.insert(0, card)


class LoggingNotifier:
    """通知をログ出力する実装"""

    def __init__(self):
        self.messages: List[str] = []

    def show_message(self, text: str) -> None:
        self.messages.append(text)
        logger.info(f"通知: {text}")


class RecordingAnalytics:
    """送信されたシグナルを記録する実装"""

    def __init__(self):
        self.signals: List[Dict[str, Any]] = []

    def log_signal(self, name: str, payload: Dict[str, Any]) -> None:
        self.signals.append({"name": name, "payload": dict(payload)})
        logger.debug(f"分析シグナル: {name} {payload}")


class NullAnalytics:
    """何もしない実装"""

    def log_signal(self, name: str, payload: Dict[str, Any]) -> None:
        return None


class CollaboratorPorts(BaseModel):
    """オーケストレーターに注入するコラボレーター一式"""
    feed: Optional[Any] = Field(default=None, description="ContentFeed")
    notifier: Optional[Any] = Field(default=None, description="Notifier")
    analytics: Optional[Any] = Field(default=None, description="Analytics")

    @classmethod
    def in_memory(cls) -> "CollaboratorPorts":
        """開発・テスト用の記録系実装"""
        return cls(
            feed=InMemoryFeed(),
            notifier=LoggingNotifier(),
            analytics=RecordingAnalytics(),
        )


class SideEffectDispatcher:
    """
    副作用のベストエフォート実行

    - 同期・非同期どちらの呼び出し先も受け付ける
    - 非同期の結果はバックグラウンドタスクとして実行し、flush() で待機できる
    - 例外はすべてログに記録して握りつぶす（呼び出し元へは伝播しない）
    """

    def __init__(self):
        self._pending: Set[asyncio.Task] = set()
        self.failures: Deque[Dict[str, str]] = deque(maxlen=MAX_RECORDED_FAILURES)

    def dispatch(self, port_name: str, func: Optional[Callable[..., Any]], *args: Any) -> None:
        """ポート呼び出しを失敗境界の内側で実行"""
        if func is None:
            return

        try:
            result = func(*args)
        except Exception as e:
            self._record_failure(port_name, e)
            return

        if inspect.isawaitable(result):
            task = asyncio.ensure_future(self._guard(port_name, result))
            self._pending.add(task)
            task.add_done_callback(self._pending.discard)

    async def _guard(self, port_name: str, awaitable: Awaitable[Any]) -> None:
        try:
            await awaitable
        except Exception as e:
            self._record_failure(port_name, e)

    def _record_failure(self, port_name: str, error: Exception) -> None:
        self.failures.append({"port": port_name, "error": str(error)})
        logger.warning(f"副作用の実行に失敗しました（無視します）: {port_name} - {error}")

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    async def flush(self) -> None:
        """未完了の副作用をすべて待機"""
        while self._pending:
            await asyncio.gather(*list(self._pending))
