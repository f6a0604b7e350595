"""
Firestore接続・トランザクション処理

DocumentStore ポートの Firestore 実装（google-cloud-firestore の AsyncClient を使用）。
"""

import logging
import os
from typing import Any, Dict, List, Optional

from google.api_core import exceptions as gcp_exceptions
from google.cloud import firestore
from google.cloud.firestore_v1 import FieldFilter
from pydantic import BaseModel

from ..exceptions import RepositoryError, DocumentNotFoundError, ConditionFailedError
from ..models.repository import DocumentStore

logger = logging.getLogger(__name__)

# Firestore の in 演算子で指定できる値の上限
IN_QUERY_LIMIT = 30


class FirestoreConfig(BaseModel):
    """Firestore設定"""
    project_id: str
    database_id: str = "(default)"
    credentials_path: Optional[str] = None
    emulator_host: Optional[str] = None  # 開発環境用
    timeout_seconds: int = 30


class FirestoreDocumentStore(DocumentStore):
    """
    Firestore ドキュメントストア
    - コレクション名・ドキュメントIDをそのまま利用
    - 条件付き更新はトランザクションで実行
    """

    def __init__(self, config: FirestoreConfig, client: Optional[firestore.AsyncClient] = None):
        self.config = config

        if config.emulator_host:
            os.environ["FIRESTORE_EMULATOR_HOST"] = config.emulator_host
            logger.info(f"Firestoreエミュレータ接続: {config.emulator_host}")
        if config.credentials_path:
            os.environ.setdefault("GOOGLE_APPLICATION_CREDENTIALS", config.credentials_path)

        self.db = client or firestore.AsyncClient(
            project=config.project_id,
            database=config.database_id,
        )

        # 統計情報
        self.stats = {
            "reads": 0,
            "writes": 0,
            "transactions": 0,
            "errors": 0
        }

    def _doc(self, collection: str, record_id: str):
        return self.db.collection(collection).document(record_id)

    async def insert(self, collection: str, record_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        try:
            await self._doc(collection, record_id).create(data, timeout=self.config.timeout_seconds)
            self.stats["writes"] += 1
            return dict(data)

        except gcp_exceptions.AlreadyExists:
            self.stats["errors"] += 1
            raise RepositoryError(f"ID {record_id} のドキュメントは既に存在します")
        except gcp_exceptions.GoogleAPICallError as e:
            self.stats["errors"] += 1
            logger.error(f"ドキュメント作成エラー: {collection}/{record_id} - {str(e)}")
            raise RepositoryError(f"Firestore書き込みに失敗しました: {e}")

    async def get(self, collection: str, record_id: str) -> Optional[Dict[str, Any]]:
        try:
            snapshot = await self._doc(collection, record_id).get(timeout=self.config.timeout_seconds)
            self.stats["reads"] += 1
            return snapshot.to_dict() if snapshot.exists else None

        except gcp_exceptions.GoogleAPICallError as e:
            self.stats["errors"] += 1
            logger.error(f"ドキュメント取得エラー: {collection}/{record_id} - {str(e)}")
            raise RepositoryError(f"Firestore読み取りに失敗しました: {e}")

    async def update(
        self,
        collection: str,
        record_id: str,
        patch: Dict[str, Any],
        expected: Optional[Dict[str, Any]] = None
    ) -> None:
        if expected:
            await self._conditional_update(collection, record_id, patch, expected)
            return

        try:
            await self._doc(collection, record_id).update(patch, timeout=self.config.timeout_seconds)
            self.stats["writes"] += 1

        except gcp_exceptions.NotFound:
            self.stats["errors"] += 1
            raise DocumentNotFoundError(f"ID {record_id} のドキュメントが見つかりません")
        except gcp_exceptions.GoogleAPICallError as e:
            self.stats["errors"] += 1
            logger.error(f"ドキュメント更新エラー: {collection}/{record_id} - {str(e)}")
            raise RepositoryError(f"Firestore更新に失敗しました: {e}")

    async def _conditional_update(
        self,
        collection: str,
        record_id: str,
        patch: Dict[str, Any],
        expected: Dict[str, Any]
    ) -> None:
        """現在値が expected と一致する場合のみトランザクション内で更新"""
        doc_ref = self._doc(collection, record_id)

        @firestore.async_transactional
        async def _update_in_transaction(transaction) -> None:
            snapshot = await doc_ref.get(transaction=transaction)
            if not snapshot.exists:
                raise DocumentNotFoundError(f"ID {record_id} のドキュメントが見つかりません")

            current = snapshot.to_dict() or {}
            mismatched = {k: current.get(k) for k, v in expected.items() if current.get(k) != v}
            if mismatched:
                raise ConditionFailedError(f"ID {record_id} の現在値が期待値と一致しません: {mismatched}")

            transaction.update(doc_ref, patch)

        try:
            await _update_in_transaction(self.db.transaction())
            self.stats["transactions"] += 1
            self.stats["writes"] += 1

        except RepositoryError:
            self.stats["errors"] += 1
            raise
        except gcp_exceptions.GoogleAPICallError as e:
            self.stats["errors"] += 1
            logger.error(f"トランザクション更新エラー: {collection}/{record_id} - {str(e)}")
            raise RepositoryError(f"トランザクション更新に失敗しました: {e}")

    async def delete(self, collection: str, record_id: str) -> bool:
        doc_ref = self._doc(collection, record_id)
        try:
            snapshot = await doc_ref.get(timeout=self.config.timeout_seconds)
            if not snapshot.exists:
                return False
            await doc_ref.delete(timeout=self.config.timeout_seconds)
            self.stats["writes"] += 1
            return True

        except gcp_exceptions.GoogleAPICallError as e:
            self.stats["errors"] += 1
            logger.error(f"ドキュメント削除エラー: {collection}/{record_id} - {str(e)}")
            raise RepositoryError(f"Firestore削除に失敗しました: {e}")

    async def select_where(
        self,
        collection: str,
        filters: Optional[Dict[str, Any]] = None
    ) -> List[Dict[str, Any]]:
        equals: Dict[str, Any] = {}
        membership_field: Optional[str] = None
        membership_values: List[Any] = []

        for field, value in (filters or {}).items():
            if isinstance(value, (list, tuple, set, frozenset)):
                if membership_field is not None:
                    raise RepositoryError("所属条件（in）はクエリごとに1つまでです")
                membership_field = field
                membership_values = list(value)
            else:
                equals[field] = value

        if membership_field is None:
            return await self._run_query(collection, equals)

        if not membership_values:
            return []

        # in 演算子の上限ごとに分割して実行
        results: List[Dict[str, Any]] = []
        for start in range(0, len(membership_values), IN_QUERY_LIMIT):
            chunk = membership_values[start:start + IN_QUERY_LIMIT]
            results.extend(await self._run_query(collection, equals, (membership_field, chunk)))
        return results

    async def _run_query(
        self,
        collection: str,
        equals: Dict[str, Any],
        membership: Optional[tuple] = None
    ) -> List[Dict[str, Any]]:
        query = self.db.collection(collection)
        for field, value in equals.items():
            query = query.where(filter=FieldFilter(field, "==", value))
        if membership is not None:
            query = query.where(filter=FieldFilter(membership[0], "in", membership[1]))

        try:
            rows = []
            async for snapshot in query.stream(timeout=self.config.timeout_seconds):
                rows.append(snapshot.to_dict())
            self.stats["reads"] += len(rows)
            return rows

        except gcp_exceptions.GoogleAPICallError as e:
            self.stats["errors"] += 1
            logger.error(f"クエリ実行エラー: {collection} - {str(e)}")
            raise RepositoryError(f"Firestoreクエリに失敗しました: {e}")

    def get_stats(self) -> Dict[str, int]:
        """統計情報取得"""
        return dict(self.stats)
