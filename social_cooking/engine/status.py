"""
ステータス導出

イベントタイプごとの前進シーケンスと、許可されるステータス遷移を定義します。
ステータスの前進は常にホスト・ゲストの明示的な操作で行われ、時間経過では変化しません。
"""

from typing import Dict, List, Optional, Set, Union

from ..models.event import SocialEvent, SocialEventType, SocialEventStatus, TERMINAL_STATUSES

S = SocialEventStatus

STATUS_PROGRESSIONS: Dict[SocialEventType, List[SocialEventStatus]] = {
    SocialEventType.ROAST: [
        S.PLANNING, S.INVITE, S.VOTING, S.LOCKED, S.SHOPPING, S.COOKING, S.DONE,
    ],
    SocialEventType.POTLUCK: [
        S.PLANNING, S.INVITE, S.DISH_CLAIMING, S.LOCKED, S.SHOPPING, S.COOKING, S.DONE,
    ],
    SocialEventType.PARTY: [
        S.PLANNING, S.INVITE, S.MENU_PICK, S.ROLE_ASSIGN, S.LOCKED, S.SHOPPING, S.COOKING, S.DONE,
    ],
}

# 前進シーケンス以外に許可する近道
_SHORTCUTS: Dict[SocialEventType, Dict[SocialEventStatus, Set[SocialEventStatus]]] = {
    SocialEventType.ROAST: {
        S.PLANNING: {S.VOTING},              # 招待フェーズは省略可
    },
    SocialEventType.POTLUCK: {
        S.PLANNING: {S.DISH_CLAIMING},
        S.LOCKED: {S.DONE},                  # 持ち寄りは調理工程なしで終了可
        S.SHOPPING: {S.DONE},
    },
    SocialEventType.PARTY: {
        S.PLANNING: {S.MENU_PICK},
    },
}

# ダッシュボードの「次へ」ボタン表示
NEXT_STATUS_LABELS: Dict[SocialEventStatus, str] = {
    S.LOCKED: "Time to Shop!",
    S.SHOPPING: "Start Cooking!",
    S.COOKING: "Dinner is Served!",
}

StatusLike = Union[SocialEventStatus, str]
TypeLike = Union[SocialEventType, str]


def progression_for(event_type: TypeLike) -> List[SocialEventStatus]:
    """イベントタイプの前進シーケンス"""
    return list(STATUS_PROGRESSIONS[SocialEventType(event_type)])


def is_terminal(status: StatusLike) -> bool:
    """終了状態（done / cancelled）かどうか"""
    return SocialEventStatus(status) in TERMINAL_STATUSES


def status_order(event_type: TypeLike, status: StatusLike) -> int:
    """シーケンス上の位置（シーケンス外のステータスは -1）"""
    sequence = STATUS_PROGRESSIONS[SocialEventType(event_type)]
    status = SocialEventStatus(status)
    return sequence.index(status) if status in sequence else -1


def next_status_for(event_type: TypeLike, current: StatusLike) -> Optional[SocialEventStatus]:
    """現在ステータスの次のステータス（終了状態・シーケンス外は None）"""
    current = SocialEventStatus(current)
    if current in TERMINAL_STATUSES:
        return None
    sequence = STATUS_PROGRESSIONS[SocialEventType(event_type)]
    if current not in sequence:
        return None
    index = sequence.index(current)
    return sequence[index + 1] if index + 1 < len(sequence) else None


def next_status(event: SocialEvent) -> Optional[SocialEventStatus]:
    """イベントの前進先ステータス"""
    return next_status_for(event.event_type, event.status)


def allowed_transitions(event_type: TypeLike, current: StatusLike) -> Set[SocialEventStatus]:
    """現在ステータスから遷移可能なステータス集合"""
    event_type = SocialEventType(event_type)
    current = SocialEventStatus(current)
    if current in TERMINAL_STATUSES:
        return set()

    allowed = {S.CANCELLED}
    following = next_status_for(event_type, current)
    if following is not None:
        allowed.add(following)
    allowed.update(_SHORTCUTS.get(event_type, {}).get(current, set()))
    return allowed


def can_transition(event_type: TypeLike, current: StatusLike, requested: StatusLike) -> bool:
    """ステータス遷移が可能かチェック"""
    return SocialEventStatus(requested) in allowed_transitions(event_type, current)


def can_lock(event_type: TypeLike, current: StatusLike) -> bool:
    """メニュー確定（locked への移行）が可能か：locked より前の非終了ステータス"""
    position = status_order(event_type, current)
    return 0 <= position < status_order(event_type, S.LOCKED)


def next_status_label(status: StatusLike) -> Optional[str]:
    """ダッシュボードの前進ボタン表示"""
    return NEXT_STATUS_LABELS.get(SocialEventStatus(status))
