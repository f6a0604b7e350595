"""
インメモリ ドキュメントストア（開発・テスト用）

※ プロセス内のみ保持（再起動で消えます）
"""

import asyncio
import copy
import logging
from collections import OrderedDict
from typing import Any, Dict, List, Optional

from ..exceptions import RepositoryError, DocumentNotFoundError, ConditionFailedError
from ..models.repository import DocumentStore

logger = logging.getLogger(__name__)


def _matches(row: Dict[str, Any], filters: Optional[Dict[str, Any]]) -> bool:
    for field, expected in (filters or {}).items():
        actual = row.get(field)
        if isinstance(expected, (list, tuple, set, frozenset)):
            if actual not in expected:
                return False
        elif actual != expected:
            return False
    return True


class InMemoryDocumentStore(DocumentStore):
    """
    インメモリ実装
    - コレクションごとの挿入順を保持
    - 読み書きはディープコピー（呼び出し側の変更が保存内容に影響しない）
    - latency 指定でネットワーク遅延をシミュレート
    """

    def __init__(self, latency: float = 0.0):
        self.latency = latency
        self._collections: Dict[str, "OrderedDict[str, Dict[str, Any]]"] = {}

        # 統計情報
        self.stats = {
            "reads": 0,
            "writes": 0,
            "errors": 0
        }

    def _collection(self, name: str) -> "OrderedDict[str, Dict[str, Any]]":
        return self._collections.setdefault(name, OrderedDict())

    async def _simulate_latency(self) -> None:
        if self.latency:
            await asyncio.sleep(self.latency)

    async def insert(self, collection: str, record_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        await self._simulate_latency()
        rows = self._collection(collection)
        if record_id in rows:
            self.stats["errors"] += 1
            raise RepositoryError(f"ID {record_id} のドキュメントは既に存在します")

        rows[record_id] = copy.deepcopy(data)
        self.stats["writes"] += 1
        logger.debug(f"インメモリ書き込み: {collection}/{record_id}")
        return copy.deepcopy(rows[record_id])

    async def get(self, collection: str, record_id: str) -> Optional[Dict[str, Any]]:
        await self._simulate_latency()
        self.stats["reads"] += 1
        row = self._collection(collection).get(record_id)
        return copy.deepcopy(row) if row is not None else None

    async def update(
        self,
        collection: str,
        record_id: str,
        patch: Dict[str, Any],
        expected: Optional[Dict[str, Any]] = None
    ) -> None:
        await self._simulate_latency()
        rows = self._collection(collection)
        row = rows.get(record_id)
        if row is None:
            self.stats["errors"] += 1
            raise DocumentNotFoundError(f"ID {record_id} のドキュメントが見つかりません")

        # 待機なしで判定と書き込みを行うため、イベントループ上では不可分
        if expected and not _matches(row, expected):
            self.stats["errors"] += 1
            raise ConditionFailedError(f"ID {record_id} の現在値が期待値と一致しません: {expected}")

        row.update(copy.deepcopy(patch))
        self.stats["writes"] += 1
        logger.debug(f"インメモリ更新: {collection}/{record_id}")

    async def delete(self, collection: str, record_id: str) -> bool:
        await self._simulate_latency()
        rows = self._collection(collection)
        if record_id not in rows:
            return False
        del rows[record_id]
        self.stats["writes"] += 1
        return True

    async def select_where(
        self,
        collection: str,
        filters: Optional[Dict[str, Any]] = None
    ) -> List[Dict[str, Any]]:
        await self._simulate_latency()
        results = [
            copy.deepcopy(row)
            for row in self._collection(collection).values()
            if _matches(row, filters)
        ]
        self.stats["reads"] += len(results)
        return results

    def get_stats(self) -> Dict[str, int]:
        """統計情報取得"""
        return dict(self.stats)

    def raw(self, collection: str, record_id: str) -> Optional[Dict[str, Any]]:
        """保存されている生データ（暗号化済みのまま）"""
        row = self._collection(collection).get(record_id)
        return copy.deepcopy(row) if row is not None else None
