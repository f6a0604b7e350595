"""
ビュールーター

(イベントタイプ, ステータス) から表示すべき画面キーを引く参照テーブル。
描画は扱いません。
"""

from enum import Enum
from typing import Dict, Optional, Tuple, Union

from ..models.event import SocialEventType, SocialEventStatus


class ScreenKey(str, Enum):
    """画面キー列挙"""
    PICKER = "picker"                # イベントタイプ選択
    SETUP = "setup"                  # 基本情報入力
    INVITE = "invite"                # ゲスト招待
    VOTING = "voting"                # メニュー投票
    MENU_PICK = "menu_pick"          # メニュー選択（Party）
    ROLE_ASSIGN = "role_assign"      # 担当割り当て（Party）
    DISH_BOARD = "dish_board"        # 料理ボード（Potluck）
    BOSS_DECIDES = "boss_decides"    # 決定者による確定
    DASHBOARD = "dashboard"          # 進行ダッシュボード


T = SocialEventType
S = SocialEventStatus

_COMMON: Dict[SocialEventStatus, ScreenKey] = {
    S.PLANNING: ScreenKey.SETUP,
    S.INVITE: ScreenKey.INVITE,
    S.LOCKED: ScreenKey.DASHBOARD,
    S.SHOPPING: ScreenKey.DASHBOARD,
    S.COOKING: ScreenKey.DASHBOARD,
    S.DONE: ScreenKey.DASHBOARD,
    S.CANCELLED: ScreenKey.PICKER,
}

SCREEN_TABLE: Dict[Tuple[SocialEventType, SocialEventStatus], ScreenKey] = {}
for _event_type in SocialEventType:
    for _status, _screen in _COMMON.items():
        SCREEN_TABLE[(_event_type, _status)] = _screen

SCREEN_TABLE.update({
    (T.ROAST, S.VOTING): ScreenKey.VOTING,
    (T.PARTY, S.MENU_PICK): ScreenKey.MENU_PICK,
    (T.PARTY, S.ROLE_ASSIGN): ScreenKey.ROLE_ASSIGN,
    (T.POTLUCK, S.DISH_CLAIMING): ScreenKey.DISH_BOARD,
})

# 決定者が設定されている場合に差し替える投票系フェーズ
_DECIDER_PHASES = {(T.ROAST, S.VOTING), (T.PARTY, S.MENU_PICK)}


def screen_for(
    event_type: Optional[Union[SocialEventType, str]],
    status: Optional[Union[SocialEventStatus, str]],
    has_decider: bool = False
) -> ScreenKey:
    """画面キーを取得（アクティブなイベントがなければ picker）"""
    if event_type is None or status is None:
        return ScreenKey.PICKER

    key = (SocialEventType(event_type), SocialEventStatus(status))
    if has_decider and key in _DECIDER_PHASES:
        return ScreenKey.BOSS_DECIDES
    # シーケンス外の組み合わせ（roast の menu_pick など）はダッシュボード
    return SCREEN_TABLE.get(key, ScreenKey.DASHBOARD)


def landing_screen(status: Union[SocialEventStatus, str]) -> ScreenKey:
    """イベント読み込み直後の画面"""
    status = SocialEventStatus(status)
    if status == S.PLANNING:
        return ScreenKey.SETUP
    if status == S.VOTING:
        return ScreenKey.VOTING
    return ScreenKey.DASHBOARD
