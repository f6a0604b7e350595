"""
リポジトリ基底クラス

ドキュメントストアのポート定義と、コレクション単位のCRUD・暗号化を提供します。
"""

import asyncio
import base64
import logging
import os
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Type, TypeVar, Generic

from cryptography.fernet import Fernet, InvalidToken
from pydantic import BaseModel, Field

from ..exceptions import (
    RepositoryError,
    DocumentNotFoundError,
    ConditionFailedError,
    EncryptionError,
)
from .event import SocialEvent
from .guest import SocialGuest
from .vote import SocialVote
from .dish import SocialDish
from .role import SocialRole, EventMembership

# ログ設定
logger = logging.getLogger(__name__)

# 型変数
T = TypeVar('T', bound=BaseModel)


class Collections:
    """コレクション名"""
    EVENTS = "social_events"
    GUESTS = "social_event_guests"
    VOTES = "social_event_votes"
    DISHES = "social_event_dishes"
    ROLES = "social_event_roles"
    MEMBERS = "social_event_members"


class EncryptionManager:
    """暗号化・復号化管理"""

    def __init__(self, encryption_key: Optional[str] = None):
        """
        暗号化マネージャーを初期化

        Args:
            encryption_key: Fernet形式の暗号化キー
        """
        if encryption_key is None:
            encryption_key = os.getenv('ENCRYPTION_KEY')

        if not encryption_key:
            # 開発環境用の一時キー（本番では必ず環境変数を設定）
            logger.warning("暗号化キーが設定されていません。一時キーを使用します。")
            encryption_key = Fernet.generate_key().decode()

        try:
            self.fernet = Fernet(encryption_key.encode() if isinstance(encryption_key, str) else encryption_key)
        except (ValueError, TypeError) as e:
            raise EncryptionError(f"暗号化キーの初期化に失敗しました: {e}")

    def encrypt(self, data: str) -> str:
        """文字列を暗号化"""
        encrypted_bytes = self.fernet.encrypt(data.encode('utf-8'))
        return base64.b64encode(encrypted_bytes).decode('utf-8')

    def decrypt(self, encrypted_data: str) -> str:
        """暗号化された文字列を復号化"""
        try:
            encrypted_bytes = base64.b64decode(encrypted_data.encode('utf-8'))
            return self.fernet.decrypt(encrypted_bytes).decode('utf-8')
        except (InvalidToken, ValueError) as e:
            raise EncryptionError(f"復号化に失敗しました: {e}")

    def encrypt_dict(self, data: Dict[str, Any], encrypt_fields: List[str]) -> Dict[str, Any]:
        """辞書の指定フィールドを暗号化"""
        result = data.copy()
        for field in encrypt_fields:
            if field in result and result[field] is not None:
                result[field] = self.encrypt(str(result[field]))
        return result

    def decrypt_dict(self, data: Dict[str, Any], encrypt_fields: List[str]) -> Dict[str, Any]:
        """辞書の指定フィールドを復号化"""
        result = data.copy()
        for field in encrypt_fields:
            if field in result and result[field] is not None:
                try:
                    result[field] = self.decrypt(result[field])
                except EncryptionError:
                    # 暗号化されていないデータの可能性
                    logger.warning(f"フィールド {field} の復号化に失敗しました（暗号化されていない可能性）")
        return result


class DocumentStore(ABC):
    """
    ドキュメントストアのポート

    行単位のCRUDと、等価・所属（リスト値）フィルタによる検索のみを要求します。
    """

    @abstractmethod
    async def insert(self, collection: str, record_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        """レコードを追加して保存内容を返す"""

    @abstractmethod
    async def get(self, collection: str, record_id: str) -> Optional[Dict[str, Any]]:
        """IDでレコードを取得"""

    @abstractmethod
    async def update(
        self,
        collection: str,
        record_id: str,
        patch: Dict[str, Any],
        expected: Optional[Dict[str, Any]] = None
    ) -> None:
        """
        レコードを部分更新

        Args:
            expected: 指定時は現在値がすべて一致する場合のみ更新（不一致は ConditionFailedError）
        """

    @abstractmethod
    async def delete(self, collection: str, record_id: str) -> bool:
        """レコードを削除（存在しなければ False）"""

    @abstractmethod
    async def select_where(
        self,
        collection: str,
        filters: Optional[Dict[str, Any]] = None
    ) -> List[Dict[str, Any]]:
        """フィルタ一致レコードを取得（リスト値は所属条件として扱う）"""

    async def fetch_many(self, queries: Dict[str, Dict[str, Any]]) -> Dict[str, List[Dict[str, Any]]]:
        """複数コレクションを並行して取得"""
        collections = list(queries.keys())
        results = await asyncio.gather(
            *(self.select_where(collection, queries[collection]) for collection in collections)
        )
        return dict(zip(collections, results))


class BaseRepository(ABC, Generic[T]):
    """コレクション単位のリポジトリ基底クラス"""

    def __init__(
        self,
        collection_name: str,
        model_class: Type[T],
        store: DocumentStore,
        encryption_manager: Optional[EncryptionManager] = None
    ):
        """
        リポジトリを初期化

        Args:
            collection_name: コレクション名
            model_class: エンティティのPydanticモデルクラス
            store: ドキュメントストア
            encryption_manager: 暗号化マネージャー
        """
        self.collection_name = collection_name
        self.model_class = model_class
        self.store = store

        # モデル固有の設定
        self.id_field = self._get_id_field()
        self.encrypted_fields = self._get_encrypted_fields()
        self.encryption_manager = encryption_manager
        if self.encrypted_fields and self.encryption_manager is None:
            self.encryption_manager = EncryptionManager()

    @abstractmethod
    def _get_id_field(self) -> str:
        """IDフィールド名を返す（継承クラスで実装）"""
        pass

    def _get_encrypted_fields(self) -> List[str]:
        """暗号化対象フィールドのリストを返す（オーバーライド可能）"""
        return []

    def _encrypt(self, data: Dict[str, Any]) -> Dict[str, Any]:
        if self.encrypted_fields:
            return self.encryption_manager.encrypt_dict(data, self.encrypted_fields)
        return data

    def _prepare_data_for_storage(self, entity: T) -> Dict[str, Any]:
        """ストレージ用にデータを準備"""
        data = entity.to_dict() if hasattr(entity, 'to_dict') else entity.dict()
        return self._encrypt(data)

    def _prepare_data_from_storage(self, data: Dict[str, Any]) -> T:
        """ストレージからデータを復元"""
        if self.encrypted_fields:
            data = self.encryption_manager.decrypt_dict(data, self.encrypted_fields)

        if hasattr(self.model_class, 'from_dict'):
            return self.model_class.from_dict(data)
        return self.model_class(**data)

    async def create(self, entity: T) -> T:
        """エンティティを作成"""
        entity_id = getattr(entity, self.id_field)
        try:
            data = self._prepare_data_for_storage(entity)
            stored = await self.store.insert(self.collection_name, entity_id, data)
            logger.info(f"{self.collection_name}に新しいドキュメントを作成: {entity_id}")
            return self._prepare_data_from_storage(stored)

        except RepositoryError:
            raise
        except Exception as e:
            logger.error(f"{self.collection_name}ドキュメント作成エラー: {e}")
            raise RepositoryError(f"作成に失敗しました: {e}")

    async def get_by_id(self, entity_id: str) -> Optional[T]:
        """IDでエンティティを取得"""
        try:
            data = await self.store.get(self.collection_name, entity_id)
            if data is None:
                return None
            return self._prepare_data_from_storage(data)

        except RepositoryError:
            raise
        except Exception as e:
            logger.error(f"{self.collection_name}ドキュメント取得エラー: {e}")
            raise RepositoryError(f"取得に失敗しました: {e}")

    async def update_fields(
        self,
        entity_id: str,
        patch: Dict[str, Any],
        expected: Optional[Dict[str, Any]] = None
    ) -> None:
        """指定フィールドのみ更新"""
        try:
            await self.store.update(self.collection_name, entity_id, self._encrypt(patch), expected=expected)
            logger.info(f"{self.collection_name}ドキュメントを更新: {entity_id} {sorted(patch.keys())}")

        except RepositoryError:
            # DocumentNotFoundError / ConditionFailedError もそのまま伝播
            raise
        except Exception as e:
            logger.error(f"{self.collection_name}ドキュメント更新エラー: {e}")
            raise RepositoryError(f"更新に失敗しました: {e}")

    async def delete(self, entity_id: str) -> bool:
        """エンティティを削除"""
        try:
            deleted = await self.store.delete(self.collection_name, entity_id)
            if deleted:
                logger.info(f"{self.collection_name}ドキュメントを削除: {entity_id}")
            return deleted

        except RepositoryError:
            raise
        except Exception as e:
            logger.error(f"{self.collection_name}ドキュメント削除エラー: {e}")
            raise RepositoryError(f"削除に失敗しました: {e}")

    async def find_where(self, filters: Optional[Dict[str, Any]] = None) -> List[T]:
        """フィルタでエンティティを検索"""
        try:
            rows = await self.store.select_where(self.collection_name, filters)
            return [self._prepare_data_from_storage(row) for row in rows]

        except RepositoryError:
            raise
        except Exception as e:
            logger.error(f"{self.collection_name}検索エラー: {e}")
            raise RepositoryError(f"検索に失敗しました: {e}")

    async def find_by_field(self, field_name: str, value: Any) -> List[T]:
        """指定フィールドでエンティティを検索"""
        return await self.find_where({field_name: value})


class EventRepository(BaseRepository[SocialEvent]):
    """SocialEvent エンティティ用リポジトリ"""

    def _get_id_field(self) -> str:
        return "event_id"


class GuestRepository(BaseRepository[SocialGuest]):
    """SocialGuest エンティティ用リポジトリ"""

    def _get_id_field(self) -> str:
        return "guest_id"

    def _get_encrypted_fields(self) -> List[str]:
        return ["email", "phone"]


class VoteRepository(BaseRepository[SocialVote]):
    """SocialVote エンティティ用リポジトリ"""

    def _get_id_field(self) -> str:
        return "vote_id"


class DishRepository(BaseRepository[SocialDish]):
    """SocialDish エンティティ用リポジトリ"""

    def _get_id_field(self) -> str:
        return "dish_id"


class RoleRepository(BaseRepository[SocialRole]):
    """SocialRole エンティティ用リポジトリ"""

    def _get_id_field(self) -> str:
        return "role_id"


class MembershipRepository(BaseRepository[EventMembership]):
    """EventMembership エンティティ用リポジトリ"""

    def _get_id_field(self) -> str:
        return "membership_id"


class EventBundle(BaseModel):
    """イベントと全サブレコードの一括取得結果"""
    event: SocialEvent
    guests: List[SocialGuest] = Field(default_factory=list)
    votes: List[SocialVote] = Field(default_factory=list)
    dishes: List[SocialDish] = Field(default_factory=list)
    roles: List[SocialRole] = Field(default_factory=list)


class SocialCookingRepository:
    """
    イベント関連6コレクションのリポジトリ集約

    オーケストレーターはこのクラスだけを経由して永続化を行います。
    """

    def __init__(self, store: DocumentStore, encryption_manager: Optional[EncryptionManager] = None):
        self.store = store
        self.events = EventRepository(Collections.EVENTS, SocialEvent, store)
        self.guests = GuestRepository(Collections.GUESTS, SocialGuest, store, encryption_manager)
        self.votes = VoteRepository(Collections.VOTES, SocialVote, store)
        self.dishes = DishRepository(Collections.DISHES, SocialDish, store)
        self.roles = RoleRepository(Collections.ROLES, SocialRole, store)
        self.memberships = MembershipRepository(Collections.MEMBERS, EventMembership, store)

    async def load_bundle(self, event_id: str) -> Optional[EventBundle]:
        """イベント本体と4種のサブレコードを並行取得"""
        scoped = {"event_id": event_id}
        try:
            event_row, rows = await asyncio.gather(
                self.store.get(Collections.EVENTS, event_id),
                self.store.fetch_many({
                    Collections.GUESTS: scoped,
                    Collections.VOTES: scoped,
                    Collections.DISHES: scoped,
                    Collections.ROLES: scoped,
                }),
            )
        except RepositoryError:
            raise
        except Exception as e:
            logger.error(f"イベント一括取得エラー: {event_id} - {e}")
            raise RepositoryError(f"イベント一括取得に失敗しました: {e}")

        if event_row is None:
            return None

        try:
            votes = [self.votes._prepare_data_from_storage(row) for row in rows[Collections.VOTES]]
            votes.sort(key=lambda vote: vote.created_at)
            return EventBundle(
                event=self.events._prepare_data_from_storage(event_row),
                guests=[self.guests._prepare_data_from_storage(row) for row in rows[Collections.GUESTS]],
                votes=votes,
                dishes=[self.dishes._prepare_data_from_storage(row) for row in rows[Collections.DISHES]],
                roles=[self.roles._prepare_data_from_storage(row) for row in rows[Collections.ROLES]],
            )
        except Exception as e:
            logger.error(f"イベント一括取得の復元エラー: {event_id} - {e}")
            raise RepositoryError(f"イベントデータの復元に失敗しました: {e}")

    async def event_ids_for_user(self, user_id: str) -> List[str]:
        """ユーザーが主催・招待されているイベントID一覧"""
        memberships = await self.memberships.find_by_field("user_id", user_id)
        seen = []
        for membership in memberships:
            if membership.event_id not in seen:
                seen.append(membership.event_id)
        return seen
