"""
設定

環境変数から読み込む実行設定と、ドキュメントストアの組み立て。
"""

import logging
import os
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, validator

logger = logging.getLogger(__name__)


class StoreBackend(str, Enum):
    """永続化バックエンド"""
    MEMORY = "memory"          # 開発・テスト用インメモリ
    FIRESTORE = "firestore"    # 本番Firestore


class ClaimMode(str, Enum):
    """料理担当の競合時の扱い"""
    LAST_WRITE_WINS = "last_write_wins"    # 後勝ち（既定）
    CONDITIONAL = "conditional"            # open の場合のみ更新（先勝ち）


def _env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class SocialCookingConfig(BaseModel):
    """実行設定"""
    backend: StoreBackend = StoreBackend.MEMORY
    project_id: Optional[str] = None
    database_id: str = "(default)"
    emulator_host: Optional[str] = None  # 開発環境用
    encryption_key: Optional[str] = None

    # 共有リンク
    public_web_host: str = "nosh.social"
    deep_link_scheme: str = "app"

    # オーケストレーターの挙動
    strict_transitions: bool = True
    claim_mode: ClaimMode = ClaimMode.LAST_WRITE_WINS

    log_level: str = Field(default="INFO", description="ログレベル")

    class Config:
        """Pydantic設定"""
        use_enum_values = True

    @validator('log_level')
    def validate_log_level(cls, v):
        """ログレベルの検証"""
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f'無効なログレベル: {v}')
        return level

    @validator('public_web_host')
    def validate_public_web_host(cls, v):
        """ホスト名の正規化（スキーム・末尾スラッシュを除去）"""
        v = v.strip()
        for prefix in ("https://", "http://"):
            if v.startswith(prefix):
                v = v[len(prefix):]
        return v.rstrip("/")

    @classmethod
    def from_env(cls) -> "SocialCookingConfig":
        """環境変数から設定を作成"""
        return cls(
            backend=os.getenv("SOCIAL_COOKING_BACKEND", StoreBackend.MEMORY.value),
            project_id=os.getenv("GCP_PROJECT_ID"),
            database_id=os.getenv("FIRESTORE_DATABASE_ID", "(default)"),
            emulator_host=os.getenv("FIRESTORE_EMULATOR_HOST"),
            encryption_key=os.getenv("ENCRYPTION_KEY"),
            public_web_host=os.getenv("POTLUCK_PUBLIC_HOST", "nosh.social"),
            deep_link_scheme=os.getenv("SOCIAL_DEEP_LINK_SCHEME", "app"),
            strict_transitions=_env_flag("STRICT_STATUS_TRANSITIONS", True),
            claim_mode=os.getenv("CLAIM_MODE", ClaimMode.LAST_WRITE_WINS.value),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
        )


def build_document_store(config: SocialCookingConfig):
    """設定に応じたドキュメントストアを作成"""
    if config.backend == StoreBackend.FIRESTORE:
        from .integrations.firestore_client import FirestoreConfig, FirestoreDocumentStore

        if not config.project_id:
            raise ValueError("GCP_PROJECT_ID environment variable must be set")

        logger.info(f"Firestoreバックエンドを使用: {config.project_id}")
        return FirestoreDocumentStore(FirestoreConfig(
            project_id=config.project_id,
            database_id=config.database_id,
            emulator_host=config.emulator_host,
        ))

    from .integrations.memory_store import InMemoryDocumentStore

    logger.info("インメモリバックエンドを使用（再起動で消えます）")
    return InMemoryDocumentStore()
