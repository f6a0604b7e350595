"""
オーケストレーターレジストリ

(イベントID, ユーザーID) ごとにオーケストレーターを保持します。
TTLで古いセッションを破棄し、LRUで保持数の上限を守ります。
"""

import logging
import time
from collections import OrderedDict
from typing import Callable, Optional, Tuple

from .event_orchestrator import EventOrchestrator

logger = logging.getLogger(__name__)

SessionKey = Tuple[str, str]


class OrchestratorRegistry:
    """インメモリのオーケストレーター保持"""

    def __init__(
        self,
        factory: Callable[[str], EventOrchestrator],
        maxsize: int = 128,
        ttl: int = 60 * 60
    ):
        """
        Args:
            factory: user_id からオーケストレーターを生成する関数
            maxsize: 保持する最大セッション数
            ttl: 最終利用からの有効期間（秒）
        """
        self.factory = factory
        self.maxsize = maxsize
        self.ttl = ttl
        self._data: "OrderedDict[SessionKey, Tuple[EventOrchestrator, float]]" = OrderedDict()

    def __len__(self) -> int:
        return len(self._data)

    def __contains__(self, key: SessionKey) -> bool:
        return key in self._data

    def _evict_expired(self) -> None:
        now = time.time()
        expired = [key for key, (_, ts) in self._data.items() if now - ts > self.ttl]
        for key in expired:
            self._data.pop(key, None)
            logger.debug(f"期限切れセッションを破棄: {key}")

    def get(self, event_id: str, user_id: str) -> Optional[EventOrchestrator]:
        """有効なオーケストレーターを取得（なければ None）"""
        self._evict_expired()
        key = (event_id, user_id)
        item = self._data.get(key)
        if item is None:
            return None
        orchestrator, _ = item
        self._data.move_to_end(key)
        self._data[key] = (orchestrator, time.time())
        return orchestrator

    def set(self, event_id: str, user_id: str, orchestrator: EventOrchestrator) -> None:
        self._evict_expired()
        key = (event_id, user_id)
        if key in self._data:
            self._data.move_to_end(key)
        self._data[key] = (orchestrator, time.time())
        if len(self._data) > self.maxsize:
            evicted, _ = self._data.popitem(last=False)
            logger.debug(f"LRUでセッションを破棄: {evicted}")

    async def open(self, event_id: str, user_id: str) -> EventOrchestrator:
        """
        オーケストレーターを取得し、なければ生成してイベントを読み込む

        読み込みに失敗した場合は登録せずにそのまま返します（active_event は None）。
        保持中のオーケストレーターが別のイベントを読み込んでいる場合は破棄して読み込み直します。
        """
        orchestrator = self.get(event_id, user_id)
        if orchestrator is not None:
            active = orchestrator.active_event
            if active is not None and active.event_id == event_id:
                return orchestrator
            logger.debug(f"アクティブイベントが異なるためセッションを再作成: {(event_id, user_id)}")
            self.evict(event_id, user_id)

        orchestrator = self.factory(user_id)
        result = await orchestrator.load_event(event_id)
        if result.ok:
            self.set(event_id, user_id, orchestrator)
        else:
            logger.warning(f"イベントを開けませんでした: {event_id} ({result.message})")
        return orchestrator

    def evict(self, event_id: str, user_id: str) -> None:
        self._data.pop((event_id, user_id), None)
