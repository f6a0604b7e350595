"""
SocialDish エンティティモデル

ポットラックの料理ボードで誰かが担当を引き受ける料理1品を表現します。
"""

from enum import Enum
from typing import Optional, Dict, Any
from uuid import uuid4

from pydantic import BaseModel, Field, validator


class DishStatus(str, Enum):
    """料理ステータス列挙"""
    OPEN = "open"            # 担当者募集中
    CLAIMED = "claimed"      # 担当決定
    PREPPING = "prepping"    # 準備中
    READY = "ready"          # 準備完了
    DROPPED = "dropped"      # 取り下げ


class SocialDish(BaseModel):
    """料理エンティティ"""

    dish_id: str = Field(default_factory=lambda: str(uuid4()))
    event_id: str = Field(..., description="関連するイベントID")
    dish_category: str = Field(..., description="料理カテゴリ（Main、Dessert など）")
    dish_name: str = Field(..., description="料理名")
    recipe_id: Optional[str] = Field(None, description="連携レシピID")
    recipe_data: Optional[Dict[str, Any]] = Field(None, description="レシピデータ")

    # 担当者
    assigned_to_user_id: Optional[str] = Field(None, description="担当者のユーザーID")
    assigned_to_name: Optional[str] = Field(None, description="担当者の表示名")

    status: DishStatus = Field(default=DishStatus.OPEN, description="料理ステータス")

    # 準備サポート
    shopping_list: Optional[Dict[str, Any]] = Field(None, description="買い物リスト")
    prep_timeline: Optional[Dict[str, Any]] = Field(None, description="準備タイムライン")
    check_in_48h: bool = Field(default=False, description="48時間前チェックイン済み")
    check_in_day_of: bool = Field(default=False, description="当日チェックイン済み")

    class Config:
        """Pydantic設定"""
        use_enum_values = True
        validate_assignment = True

    @validator('dish_category', 'dish_name')
    def validate_not_blank(cls, v):
        """空文字の検証"""
        if not v or not v.strip():
            raise ValueError('料理カテゴリと料理名は必須です')
        return v.strip()

    def is_open(self) -> bool:
        """担当者募集中かどうか"""
        return self.status == DishStatus.OPEN

    def is_claimed(self) -> bool:
        """誰かが担当しているか"""
        return self.status in (DishStatus.CLAIMED, DishStatus.PREPPING, DishStatus.READY)

    def to_dict(self) -> Dict[str, Any]:
        """辞書形式に変換（ストレージ保存用）"""
        return self.dict()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SocialDish":
        """辞書から SocialDish インスタンスを作成"""
        return cls(**data)
