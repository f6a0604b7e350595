"""
SocialGuest エンティティモデル

イベントに招待されたゲストと、その出欠（RSVP）状態を表現します。
"""

import re
from enum import Enum
from typing import List, Optional, Dict, Any
from uuid import uuid4

from pydantic import BaseModel, Field, validator

from .event import _coerce_string_list


class RsvpStatus(str, Enum):
    """出欠ステータス列挙"""
    INVITED = "invited"        # 招待済み・未回答
    CONFIRMED = "confirmed"    # 参加
    DECLINED = "declined"      # 不参加
    MAYBE = "maybe"            # 未定


class SocialGuest(BaseModel):
    """ゲストエンティティ"""

    guest_id: str = Field(default_factory=lambda: str(uuid4()))
    event_id: str = Field(..., description="関連するイベントID")
    name: str = Field(..., description="表示名")
    user_id: Optional[str] = Field(None, description="連携済みアカウントID")

    # 連絡先（保存時に暗号化）
    email: Optional[str] = Field(None, description="メールアドレス")
    phone: Optional[str] = Field(None, description="電話番号")

    is_app_user: bool = Field(default=False, description="アプリ利用者かどうか")
    rsvp_status: RsvpStatus = Field(default=RsvpStatus.INVITED, description="出欠ステータス")
    dietary_requirements: List[str] = Field(default_factory=list, description="ゲスト個別の食事制限")

    class Config:
        """Pydantic設定"""
        use_enum_values = True
        validate_assignment = True

    @validator('name')
    def validate_name(cls, v):
        """表示名の検証"""
        if not v or not v.strip():
            raise ValueError('ゲスト名は必須です')
        return v.strip()

    @validator('email')
    def validate_email(cls, v):
        """メールアドレスの形式検証"""
        if v is not None:
            email_pattern = r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$'
            if not re.match(email_pattern, v):
                raise ValueError('有効なメールアドレス形式である必要があります')
        return v

    @validator('dietary_requirements', pre=True)
    def validate_dietary_requirements(cls, v):
        """食事制限の正規化"""
        return _coerce_string_list(v)

    def is_attending(self) -> bool:
        """参加確定かどうか"""
        return self.rsvp_status == RsvpStatus.CONFIRMED

    def is_pending(self) -> bool:
        """回答待ちかどうか"""
        return self.rsvp_status in (RsvpStatus.INVITED, RsvpStatus.MAYBE)

    def to_dict(self) -> Dict[str, Any]:
        """辞書形式に変換（ストレージ保存用）"""
        return self.dict()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SocialGuest":
        """辞書から SocialGuest インスタンスを作成"""
        return cls(**data)
