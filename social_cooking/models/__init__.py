"""
データモデル - Social Cooking Event Orchestrator

このパッケージには、ソーシャルクッキングイベントのエンティティモデルと
リポジトリが含まれています。
"""

from .event import (
    SocialEvent, SocialEventType, SocialEventStatus, EventDraft, TERMINAL_STATUSES
)
from .guest import SocialGuest, RsvpStatus
from .vote import SocialVote
from .dish import SocialDish, DishStatus
from .role import SocialRole, EventMembership
from .repository import (
    Collections,
    DocumentStore,
    EncryptionManager,
    BaseRepository,
    EventBundle,
    SocialCookingRepository,
    RepositoryError,
    DocumentNotFoundError,
    ConditionFailedError,
    EncryptionError,
)

__all__ = [
    # Event関連
    "SocialEvent",
    "SocialEventType",
    "SocialEventStatus",
    "EventDraft",
    "TERMINAL_STATUSES",

    # サブレコード
    "SocialGuest",
    "RsvpStatus",
    "SocialVote",
    "SocialDish",
    "DishStatus",
    "SocialRole",
    "EventMembership",

    # リポジトリ
    "Collections",
    "DocumentStore",
    "EncryptionManager",
    "BaseRepository",
    "EventBundle",
    "SocialCookingRepository",
    "RepositoryError",
    "DocumentNotFoundError",
    "ConditionFailedError",
    "EncryptionError",
]
