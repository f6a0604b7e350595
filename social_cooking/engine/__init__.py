"""
純粋関数エンジン - 集計・ステータス導出・画面ルーティング
"""

from .tally import (
    CategoryTally,
    tally_votes,
    override_winners,
    candidate_options,
    tally_dish_claims,
    build_vote_menu,
    build_dish_board_summary,
)
from .status import (
    STATUS_PROGRESSIONS,
    progression_for,
    next_status,
    next_status_for,
    allowed_transitions,
    can_transition,
    can_lock,
    is_terminal,
    next_status_label,
)
from .view_router import ScreenKey, screen_for, landing_screen

__all__ = [
    "CategoryTally",
    "tally_votes",
    "override_winners",
    "candidate_options",
    "tally_dish_claims",
    "build_vote_menu",
    "build_dish_board_summary",
    "STATUS_PROGRESSIONS",
    "progression_for",
    "next_status",
    "next_status_for",
    "allowed_transitions",
    "can_transition",
    "can_lock",
    "is_terminal",
    "next_status_label",
    "ScreenKey",
    "screen_for",
    "landing_screen",
]
