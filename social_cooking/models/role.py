"""
SocialRole / EventMembership エンティティモデル
"""

from typing import List, Optional, Dict, Any
from uuid import uuid4

from pydantic import BaseModel, Field, validator

from .event import _coerce_string_list


class SocialRole(BaseModel):
    """Party Mode の調理担当割り当て"""

    role_id: str = Field(default_factory=lambda: str(uuid4()))
    event_id: str = Field(..., description="関連するイベントID")
    user_id: Optional[str] = Field(None, description="担当者のユーザーID")
    person_name: str = Field(..., description="担当者の表示名")
    role_name: str = Field(..., description="役割名")
    tasks: List[str] = Field(default_factory=list, description="タスク一覧（順序付き）")

    @validator('person_name', 'role_name')
    def validate_not_blank(cls, v):
        """空文字の検証"""
        if not v or not v.strip():
            raise ValueError('担当者名と役割名は必須です')
        return v.strip()

    @validator('tasks', pre=True)
    def validate_tasks(cls, v):
        """タスク一覧の正規化"""
        return _coerce_string_list(v)

    def to_dict(self) -> Dict[str, Any]:
        return self.dict()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SocialRole":
        return cls(**data)


class EventMembership(BaseModel):
    """ユーザーとイベントの所属関係（主催・招待の逆引き用）"""

    membership_id: str = Field(default_factory=lambda: str(uuid4()))
    event_id: str = Field(..., description="関連するイベントID")
    user_id: str = Field(..., description="ユーザーID")
    is_host: bool = Field(default=False, description="主催者かどうか")

    def to_dict(self) -> Dict[str, Any]:
        return self.dict()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EventMembership":
        return cls(**data)
