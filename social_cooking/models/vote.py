"""
SocialVote エンティティモデル

Sunday Roast の投票フェーズで投じられた1票（投票者・カテゴリ・値）を表現します。
同じ投票者が同じカテゴリに複数票を投じることは許容され、すべて集計対象になります。
"""

from datetime import datetime
from typing import Optional, Dict, Any
from uuid import uuid4

from pydantic import BaseModel, Field, validator


class SocialVote(BaseModel):
    """投票エンティティ"""

    vote_id: str = Field(default_factory=lambda: str(uuid4()))
    event_id: str = Field(..., description="関連するイベントID")
    voter_user_id: Optional[str] = Field(None, description="投票者のユーザーID")
    voter_name: Optional[str] = Field(None, description="投票者の表示名")
    vote_category: str = Field(..., description="投票カテゴリ（protein など）")
    vote_value: str = Field(..., description="投票値")
    created_at: datetime = Field(default_factory=datetime.utcnow)

    @validator('vote_category', 'vote_value')
    def validate_not_blank(cls, v):
        """空文字の検証"""
        if not v or not v.strip():
            raise ValueError('投票カテゴリと投票値は必須です')
        return v.strip()

    def to_dict(self) -> Dict[str, Any]:
        """辞書形式に変換（ストレージ保存用）"""
        data = self.dict()
        data["created_at"] = self.created_at.isoformat()
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SocialVote":
        """辞書から SocialVote インスタンスを作成"""
        return cls(**data)
