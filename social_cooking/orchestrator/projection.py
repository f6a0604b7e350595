"""
イベントプロジェクション

オーケストレーター1インスタンスが保持する作業用の状態（アクティブイベントとサブレコード）。
"""

from typing import List, Optional, Tuple

from pydantic import BaseModel, Field

from ..engine.view_router import ScreenKey
from ..models.dish import SocialDish
from ..models.event import EventDraft, SocialEvent
from ..models.guest import SocialGuest
from ..models.repository import EventBundle
from ..models.role import SocialRole
from ..models.vote import SocialVote


class EventProjection(BaseModel):
    """アクティブイベントのプロジェクション"""
    active_event: Optional[SocialEvent] = None
    guests: List[SocialGuest] = Field(default_factory=list)
    votes: List[SocialVote] = Field(default_factory=list)
    dishes: List[SocialDish] = Field(default_factory=list)
    roles: List[SocialRole] = Field(default_factory=list)
    draft: Optional[EventDraft] = None
    my_events: List[SocialEvent] = Field(default_factory=list)
    current_screen: ScreenKey = ScreenKey.PICKER

    class Config:
        """Pydantic設定"""
        validate_assignment = True

    def clear(self) -> None:
        """アクティブイベント・サブレコード・下書きを破棄して picker に戻す（my_events は保持）"""
        self.active_event = None
        self.guests = []
        self.votes = []
        self.dishes = []
        self.roles = []
        self.draft = None
        self.current_screen = ScreenKey.PICKER

    def apply_bundle(self, bundle: EventBundle, screen: ScreenKey) -> None:
        """一括取得結果で全体を置き換え"""
        self.draft = None
        self.active_event = bundle.event
        self.guests = list(bundle.guests)
        self.votes = list(bundle.votes)
        self.dishes = list(bundle.dishes)
        self.roles = list(bundle.roles)
        self.current_screen = screen

    def find_guest(self, guest_id: str) -> Optional[SocialGuest]:
        return next((g for g in self.guests if g.guest_id == guest_id), None)

    def find_dish(self, dish_id: str) -> Optional[SocialDish]:
        return next((d for d in self.dishes if d.dish_id == dish_id), None)

    def find_role(self, role_id: str) -> Optional[SocialRole]:
        return next((r for r in self.roles if r.role_id == role_id), None)

    @property
    def state_pair(self) -> Tuple[Optional[str], Optional[str]]:
        """(イベントタイプ, ステータス)"""
        if self.active_event is None:
            return (None, None)
        return (self.active_event.event_type, self.active_event.status)
