"""
外部連携 - ドキュメントストア実装・コラボレーター・共有
"""

from .memory_store import InMemoryDocumentStore
from .collaborators import (
    ContentFeed,
    Notifier,
    Analytics,
    InMemoryFeed,
    LoggingNotifier,
    RecordingAnalytics,
    NullAnalytics,
    CollaboratorPorts,
    SideEffectDispatcher,
)
from .sharing import (
    ShareMessage,
    get_event_type_label,
    format_event_date,
    build_event_url,
    build_share_message,
)

# Firestore実装は google-cloud-firestore を読み込むため明示的にインポートする
# from .firestore_client import FirestoreConfig, FirestoreDocumentStore

__all__ = [
    "InMemoryDocumentStore",
    "ContentFeed",
    "Notifier",
    "Analytics",
    "InMemoryFeed",
    "LoggingNotifier",
    "RecordingAnalytics",
    "NullAnalytics",
    "CollaboratorPorts",
    "SideEffectDispatcher",
    "ShareMessage",
    "get_event_type_label",
    "format_event_date",
    "build_event_url",
    "build_share_message",
]
