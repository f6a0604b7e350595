"""
Unit tests for the tally engine
Tests vote aggregation, tie-breaking, decider override and dish claim summaries
"""

from datetime import datetime, timedelta

import pytest

from social_cooking.engine.tally import (
    CategoryTally,
    build_dish_board_summary,
    build_vote_menu,
    candidate_options,
    override_winners,
    tally_dish_claims,
    tally_votes,
)
from social_cooking.models.dish import SocialDish
from social_cooking.models.vote import SocialVote

BASE_TIME = datetime(2026, 10, 19, 12, 0)


def make_votes(*pairs, event_id="evt-1"):
    """Create votes one second apart in the given order"""
    return [
        SocialVote(
            event_id=event_id,
            voter_user_id=f"user-{i}",
            vote_category=category,
            vote_value=value,
            created_at=BASE_TIME + timedelta(seconds=i),
        )
        for i, (category, value) in enumerate(pairs)
    ]


class TestTallyVotes:
    """Test per-category winner selection"""

    def test_winner_correctness(self):
        """Chicken beats Lamb 2-1"""
        votes = make_votes(("protein", "Chicken"), ("protein", "Chicken"), ("protein", "Lamb"))

        results = tally_votes(votes)

        assert {k: v.to_dict() for k, v in results.items()} == {
            "protein": {"winner": "Chicken", "count": 2, "allCounts": {"Chicken": 2, "Lamb": 1}}
        }

    def test_tally_is_deterministic(self):
        """Repeated calls give identical output"""
        votes = make_votes(
            ("protein", "Beef"), ("side", "Yorkshire"), ("protein", "Lamb"), ("side", "Roast Potatoes"),
        )

        first = tally_votes(votes)
        second = tally_votes(votes)

        assert first == second
        assert tally_votes(list(votes)) == first

    def test_duplicate_votes_are_all_counted(self):
        """Same voter voting twice counts twice"""
        votes = [
            SocialVote(event_id="evt-1", voter_user_id="u1", vote_category="protein", vote_value="Beef"),
            SocialVote(event_id="evt-1", voter_user_id="u1", vote_category="protein", vote_value="Beef"),
        ]

        assert tally_votes(votes)["protein"].count == 2

    def test_multiple_categories(self):
        votes = make_votes(
            ("protein", "Beef"), ("dessert", "Crumble"), ("protein", "Beef"), ("dessert", "Trifle"),
            ("dessert", "Trifle"),
        )

        results = tally_votes(votes)

        assert results["protein"].winner == "Beef"
        assert results["dessert"].winner == "Trifle"
        assert results["dessert"].all_counts == {"Crumble": 1, "Trifle": 2}

    def test_empty_votes(self):
        assert tally_votes([]) == {}

    def test_tie_goes_to_earliest_first_vote(self):
        """Lamb's first vote was cast earlier, even though it arrives later in the list"""
        beef = SocialVote(
            event_id="evt-1", vote_category="protein", vote_value="Beef",
            created_at=BASE_TIME + timedelta(minutes=5),
        )
        lamb = SocialVote(
            event_id="evt-1", vote_category="protein", vote_value="Lamb",
            created_at=BASE_TIME,
        )

        results = tally_votes([beef, lamb])

        assert results["protein"].winner == "Lamb"
        assert results["protein"].count == 1

    def test_tie_with_identical_timestamps_uses_input_order(self):
        votes = [
            SocialVote(event_id="evt-1", vote_category="protein", vote_value=value, created_at=BASE_TIME)
            for value in ("Pork", "Beef")
        ]

        assert tally_votes(votes)["protein"].winner == "Pork"


class TestDeciderOverride:
    """Test override path and candidate options"""

    def test_override_uses_picks_without_counting_winner(self):
        votes = make_votes(("protein", "Chicken"), ("protein", "Chicken"), ("protein", "Beef"))

        results = override_winners({"protein": "Beef"}, votes)

        assert results["protein"].winner == "Beef"
        assert results["protein"].count == 1
        assert results["protein"].all_counts == {"Chicken": 2, "Beef": 1}

    def test_override_falls_back_to_defaults_without_votes(self):
        results = override_winners({}, [], defaults={"dessert": ["Sticky Toffee", "Crumble"]})

        assert results["dessert"].winner == "Sticky Toffee"
        assert results["dessert"].count == 0
        assert results["dessert"].all_counts == {}

    def test_override_unpicked_category_uses_first_voted_value(self):
        votes = make_votes(("side", "Carrots"), ("side", "Parsnips"), ("side", "Parsnips"))

        results = override_winners({"protein": "Lamb"}, votes, defaults={"side": ["Peas"]})

        assert results["protein"].winner == "Lamb"
        assert results["side"].winner == "Carrots"

    def test_candidate_options(self):
        votes = make_votes(("protein", "Beef"), ("protein", "Lamb"), ("protein", "Beef"))

        assert candidate_options(votes, "protein") == ["Beef", "Lamb"]
        assert candidate_options(votes, "dessert", {"dessert": ["Trifle"]}) == ["Trifle"]
        assert candidate_options(votes, "dessert") == []


class TestDishClaims:
    """Test potluck dish board aggregation"""

    @pytest.fixture
    def dishes(self):
        return [
            SocialDish(event_id="evt-1", dish_category="Main", dish_name="Lasagna",
                       assigned_to_name="Sam", status="claimed"),
            SocialDish(event_id="evt-1", dish_category="Main", dish_name="Curry",
                       assigned_to_name="Ana", status="ready"),
            SocialDish(event_id="evt-1", dish_category="Main", dish_name="Pie",
                       assigned_to_name="Ana", status="prepping"),
            SocialDish(event_id="evt-1", dish_category="Dessert", dish_name="Tiramisu"),
            SocialDish(event_id="evt-1", dish_category="Side", dish_name="Salad",
                       assigned_to_name="Jo", status="dropped"),
        ]

    def test_tally_dish_claims(self, dishes):
        results = tally_dish_claims(dishes)

        assert set(results) == {"Main"}
        assert results["Main"] == CategoryTally(winner="Ana", count=2, all_counts={"Sam": 1, "Ana": 2})

    def test_board_summary(self, dishes):
        summary = build_dish_board_summary(dishes, BASE_TIME)

        assert summary["claimed"] == 3
        assert summary["total"] == 5
        assert summary["dishes"]["Main"]["winner"] == "Ana"
        assert summary["lockedAt"] == BASE_TIME.isoformat()


def test_build_vote_menu_shape():
    votes = make_votes(("protein", "Chicken"))

    menu = build_vote_menu(tally_votes(votes), BASE_TIME)

    assert menu == {
        "votes": {"protein": {"winner": "Chicken", "count": 1, "allCounts": {"Chicken": 1}}},
        "lockedAt": "2026-10-19T12:00:00",
    }
