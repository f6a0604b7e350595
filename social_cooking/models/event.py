"""
SocialEvent エンティティモデル

ホストが主催するソーシャルクッキングイベントと、そのライフサイクル状態を表現します。
"""

import json
from datetime import datetime
from enum import Enum
from typing import List, Optional, Dict, Any
from uuid import uuid4

from pydantic import BaseModel, Field, validator


class SocialEventType(str, Enum):
    """イベントタイプ列挙"""
    ROAST = "roast"        # Sunday Roast（メニュー投票）
    PARTY = "party"        # Party Mode（メニュー決定＋担当割り当て）
    POTLUCK = "potluck"    # Dutch Prep（料理持ち寄りボード）


class SocialEventStatus(str, Enum):
    """イベントステータス列挙"""
    PLANNING = "planning"
    INVITE = "invite"
    VOTING = "voting"                  # roast のみ
    MENU_PICK = "menu_pick"            # party のみ
    ROLE_ASSIGN = "role_assign"        # party のみ
    DISH_CLAIMING = "dish_claiming"    # potluck のみ
    LOCKED = "locked"
    SHOPPING = "shopping"
    COOKING = "cooking"
    DONE = "done"
    CANCELLED = "cancelled"


TERMINAL_STATUSES = frozenset({SocialEventStatus.DONE, SocialEventStatus.CANCELLED})


def _coerce_string_list(v: Any) -> List[str]:
    """JSON文字列で保存された配列を許容してリストに変換"""
    if v is None:
        return []
    if isinstance(v, str):
        try:
            decoded = json.loads(v)
        except json.JSONDecodeError:
            return [item.strip() for item in v.split(",") if item.strip()]
        return [str(item) for item in decoded] if isinstance(decoded, list) else []
    return [str(item) for item in v]


class SocialEvent(BaseModel):
    """ソーシャルイベントエンティティ"""

    # 基本識別情報
    event_id: str = Field(default_factory=lambda: str(uuid4()))
    host_user_id: str = Field(..., description="主催者のユーザーID")
    event_type: SocialEventType = Field(..., description="イベントタイプ")

    # イベント詳細
    title: str = Field(..., description="イベントタイトル")
    occasion: Optional[str] = Field(None, description="機会（誕生日、祝日など）")
    date_time: datetime = Field(..., description="開催日時")
    location: Optional[str] = Field(None, description="開催場所")
    expected_guests: Optional[int] = Field(None, description="想定ゲスト数")
    kids_count: int = Field(default=0, description="子供の人数")
    dietary_requirements: List[str] = Field(default_factory=list, description="食事制限")
    cuisine: Optional[str] = Field(None, description="料理ジャンルの希望")
    vibe: Optional[str] = Field(None, description="雰囲気")
    budget_per_head: Optional[float] = Field(None, description="一人あたり予算")

    # 決定・集計結果
    menu_selected: Optional[Dict[str, Any]] = Field(None, description="集計・決定済みメニュー")
    decider_user_id: Optional[str] = Field(None, description="決定権を委任された参加者ID")
    ai_decides: bool = Field(default=False, description="AIにメニュー決定を任せるか")
    public_url: Optional[str] = Field(None, description="公開URL")

    # ワークフロー状態
    status: SocialEventStatus = Field(default=SocialEventStatus.PLANNING, description="ライフサイクルステータス")

    # メタデータ
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    class Config:
        """Pydantic設定"""
        use_enum_values = True
        validate_assignment = True

    @validator('title')
    def validate_title(cls, v):
        """タイトルの検証"""
        if not v or not v.strip():
            raise ValueError('イベントタイトルは必須です')
        return v.strip()

    @validator('dietary_requirements', pre=True)
    def validate_dietary_requirements(cls, v):
        """食事制限の正規化"""
        return _coerce_string_list(v)

    @validator('expected_guests', 'kids_count')
    def validate_counts(cls, v):
        """人数の検証"""
        if v is not None and v < 0:
            raise ValueError('人数は0以上である必要があります')
        return v

    def update_timestamp(self) -> None:
        """更新タイムスタンプを現在時刻に設定"""
        self.updated_at = datetime.utcnow()

    def is_active(self) -> bool:
        """終了状態でないかどうか"""
        return self.status not in TERMINAL_STATUSES

    def has_decider(self) -> bool:
        """決定権の委任先が設定されているか"""
        return bool(self.decider_user_id)

    def to_dict(self) -> Dict[str, Any]:
        """辞書形式に変換（ストレージ保存用）"""
        return {
            "event_id": self.event_id,
            "host_user_id": self.host_user_id,
            "event_type": self.event_type,
            "title": self.title,
            "occasion": self.occasion,
            "date_time": self.date_time.isoformat(),
            "location": self.location,
            "expected_guests": self.expected_guests,
            "kids_count": self.kids_count,
            "dietary_requirements": list(self.dietary_requirements),
            "cuisine": self.cuisine,
            "vibe": self.vibe,
            "budget_per_head": self.budget_per_head,
            "menu_selected": self.menu_selected,
            "decider_user_id": self.decider_user_id,
            "ai_decides": self.ai_decides,
            "public_url": self.public_url,
            "status": self.status,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SocialEvent":
        """辞書から SocialEvent インスタンスを作成"""
        return cls(**data)


class EventDraft(BaseModel):
    """未保存のイベント下書き"""

    event_type: SocialEventType = Field(..., description="イベントタイプ")
    title: Optional[str] = None
    occasion: Optional[str] = None
    date_time: Optional[datetime] = None
    location: Optional[str] = None
    expected_guests: Optional[int] = None
    kids_count: int = 0
    dietary_requirements: List[str] = Field(default_factory=list)
    cuisine: Optional[str] = None
    vibe: Optional[str] = None
    budget_per_head: Optional[float] = None
    decider_user_id: Optional[str] = None
    ai_decides: bool = False

    class Config:
        """Pydantic設定"""
        use_enum_values = True
        validate_assignment = True

    @validator('dietary_requirements', pre=True)
    def validate_dietary_requirements(cls, v):
        """食事制限の正規化"""
        return _coerce_string_list(v)

    def missing_required(self) -> List[str]:
        """確定に必要な未入力フィールド"""
        missing = []
        if not self.title or not self.title.strip():
            missing.append("title")
        if self.date_time is None:
            missing.append("date_time")
        return missing

    def to_event(self, host_user_id: str) -> SocialEvent:
        """下書きから planning 状態のイベントを生成"""
        return SocialEvent(
            host_user_id=host_user_id,
            status=SocialEventStatus.PLANNING,
            **self.dict(),
        )
