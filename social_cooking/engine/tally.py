"""
集計エンジン

投票・料理担当の生レコードをカテゴリごとの勝者に集計します。
すべて副作用のない純粋関数で、同じ入力に対して常に同じ結果を返します。

同票の場合は、最初の1票が最も早く投じられた値を勝者とします
（投票時刻 created_at、同時刻なら入力順）。
"""

from datetime import datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from pydantic import BaseModel, Field

from ..models.dish import SocialDish, DishStatus
from ..models.vote import SocialVote


class CategoryTally(BaseModel):
    """カテゴリ別集計結果"""
    winner: str = Field(..., description="勝者の値")
    count: int = Field(..., description="勝者の票数")
    all_counts: Dict[str, int] = Field(default_factory=dict, description="値ごとの票数")

    def to_dict(self) -> Dict[str, Any]:
        """保存用の辞書（クライアント共通のキー名）"""
        return {
            "winner": self.winner,
            "count": self.count,
            "allCounts": dict(self.all_counts),
        }


TallyResult = Dict[str, CategoryTally]

_FirstSeen = Tuple[Optional[datetime], int]


def _count_votes(votes: Iterable[SocialVote]) -> Tuple[Dict[str, Dict[str, int]], Dict[Tuple[str, str], _FirstSeen]]:
    counts: Dict[str, Dict[str, int]] = {}
    first_seen: Dict[Tuple[str, str], _FirstSeen] = {}

    for index, vote in enumerate(votes):
        category_counts = counts.setdefault(vote.vote_category, {})
        category_counts[vote.vote_value] = category_counts.get(vote.vote_value, 0) + 1
        first_seen.setdefault((vote.vote_category, vote.vote_value), (vote.created_at, index))

    return counts, first_seen


def _pick_winner(category: str, value_counts: Dict[str, int], first_seen: Dict[Tuple[str, str], _FirstSeen]) -> str:
    top = max(value_counts.values())
    tied = [value for value, count in value_counts.items() if count == top]
    if len(tied) == 1:
        return tied[0]

    seen = [first_seen[(category, value)] for value in tied]
    if all(cast_at is not None for cast_at, _ in seen):
        return min(tied, key=lambda value: first_seen[(category, value)])
    return min(tied, key=lambda value: first_seen[(category, value)][1])


def tally_votes(votes: Iterable[SocialVote]) -> TallyResult:
    """
    投票をカテゴリ→値で集計し、カテゴリごとの勝者を決定

    Args:
        votes: 投票レコード（同一投票者の重複票もすべて数える）

    Returns:
        カテゴリ名 → CategoryTally
    """
    counts, first_seen = _count_votes(votes)

    results: TallyResult = {}
    for category, value_counts in counts.items():
        winner = _pick_winner(category, value_counts, first_seen)
        results[category] = CategoryTally(
            winner=winner,
            count=value_counts[winner],
            all_counts=dict(value_counts),
        )
    return results


def candidate_options(
    votes: Iterable[SocialVote],
    category: str,
    defaults: Optional[Mapping[str, Sequence[str]]] = None
) -> List[str]:
    """決定者に提示する選択肢（投票済みの値を初出順、投票がなければ既定の選択肢）"""
    options: List[str] = []
    for vote in votes:
        if vote.vote_category == category and vote.vote_value not in options:
            options.append(vote.vote_value)
    if options:
        return options
    return list((defaults or {}).get(category, []))


def override_winners(
    picks: Mapping[str, str],
    votes: Sequence[SocialVote] = (),
    defaults: Optional[Mapping[str, Sequence[str]]] = None
) -> TallyResult:
    """
    決定者による上書き

    集計は行わず、決定者の指定値をそのまま勝者とします。指定のないカテゴリは
    candidate_options の先頭（投票がなければ既定の選択肢の先頭）を採用します。
    出力形式は tally_votes と同じです。
    """
    counts, _ = _count_votes(votes)

    categories: List[str] = []
    for source in (picks.keys(), counts.keys(), (defaults or {}).keys()):
        for category in source:
            if category not in categories:
                categories.append(category)

    results: TallyResult = {}
    for category in categories:
        winner = picks.get(category)
        if not winner:
            options = candidate_options(votes, category, defaults)
            if not options:
                continue
            winner = options[0]

        value_counts = dict(counts.get(category, {}))
        results[category] = CategoryTally(
            winner=winner,
            count=value_counts.get(winner, 0),
            all_counts=value_counts,
        )
    return results


def tally_dish_claims(dishes: Iterable[SocialDish]) -> TallyResult:
    """
    料理の担当状況をカテゴリごとに集計

    勝者はそのカテゴリで最も多くの料理を担当している人です（同数ならボード上で先の料理の担当者）。
    担当者のいないカテゴリは結果に含みません。
    """
    counts: Dict[str, Dict[str, int]] = {}
    for dish in dishes:
        if dish.status in (DishStatus.OPEN, DishStatus.DROPPED) or not dish.assigned_to_name:
            continue
        category_counts = counts.setdefault(dish.dish_category, {})
        category_counts[dish.assigned_to_name] = category_counts.get(dish.assigned_to_name, 0) + 1

    results: TallyResult = {}
    for category, assignee_counts in counts.items():
        top = max(assignee_counts.values())
        # dict は挿入順を保持するので最初に到達した担当者が同数時の勝者
        winner = next(name for name, count in assignee_counts.items() if count == top)
        results[category] = CategoryTally(winner=winner, count=top, all_counts=dict(assignee_counts))
    return results


def build_vote_menu(results: TallyResult, locked_at: datetime) -> Dict[str, Any]:
    """投票締め切り時の menu_selected ペイロード"""
    return {
        "votes": {category: result.to_dict() for category, result in results.items()},
        "lockedAt": locked_at.isoformat(),
    }


def build_dish_board_summary(dishes: Sequence[SocialDish], locked_at: datetime) -> Dict[str, Any]:
    """料理ボード確定時の menu_selected ペイロード"""
    claimed = [dish for dish in dishes if dish.status not in (DishStatus.OPEN, DishStatus.DROPPED)]
    return {
        "dishes": {category: result.to_dict() for category, result in tally_dish_claims(dishes).items()},
        "claimed": len(claimed),
        "total": len(dishes),
        "lockedAt": locked_at.isoformat(),
    }
