"""
ドキュメントストアとリポジトリのコントラクトテスト。

インメモリ実装が DocumentStore ポートの約束（CRUD・条件付き更新・所属フィルタ・並行取得）を守り、
リポジトリ経由で連絡先が暗号化されて保存されることを検証します。
"""

from datetime import datetime

import pytest

from social_cooking.exceptions import (
    ConditionFailedError,
    DocumentNotFoundError,
    RepositoryError,
)
from social_cooking.integrations.memory_store import InMemoryDocumentStore
from social_cooking.models.dish import SocialDish
from social_cooking.models.event import SocialEvent
from social_cooking.models.guest import SocialGuest
from social_cooking.models.repository import Collections
from social_cooking.models.vote import SocialVote


class TestDocumentStoreContract:
    """DocumentStore ポートのコントラクトテスト。"""

    @pytest.mark.asyncio
    async def test_insert_and_get(self, store):
        """挿入したレコードをIDで取得できること。"""
        await store.insert("items", "a", {"id": "a", "value": 1})

        assert await store.get("items", "a") == {"id": "a", "value": 1}
        assert await store.get("items", "missing") is None

    @pytest.mark.asyncio
    async def test_duplicate_insert_is_rejected(self, store):
        """同じIDの二重挿入はリポジトリエラーになること。"""
        await store.insert("items", "a", {"id": "a"})

        with pytest.raises(RepositoryError):
            await store.insert("items", "a", {"id": "a"})

    @pytest.mark.asyncio
    async def test_returned_rows_are_copies(self, store):
        """取得結果を変更しても保存内容に影響しないこと。"""
        await store.insert("items", "a", {"id": "a", "tags": ["x"]})

        row = await store.get("items", "a")
        row["tags"].append("y")

        assert (await store.get("items", "a"))["tags"] == ["x"]

    @pytest.mark.asyncio
    async def test_update_missing_document(self, store):
        """存在しないレコードの更新は DocumentNotFoundError になること。"""
        with pytest.raises(DocumentNotFoundError):
            await store.update("items", "missing", {"value": 2})

    @pytest.mark.asyncio
    async def test_conditional_update(self, store):
        """期待値が一致する場合のみ更新されること。"""
        await store.insert("dishes", "d1", {"dish_id": "d1", "status": "open"})

        await store.update("dishes", "d1", {"status": "claimed"}, expected={"status": "open"})
        with pytest.raises(ConditionFailedError):
            await store.update("dishes", "d1", {"status": "claimed"}, expected={"status": "open"})

        assert (await store.get("dishes", "d1"))["status"] == "claimed"

    @pytest.mark.asyncio
    async def test_delete(self, store):
        """削除は存在した場合のみ True を返すこと。"""
        await store.insert("items", "a", {"id": "a"})

        assert await store.delete("items", "a") is True
        assert await store.delete("items", "a") is False

    @pytest.mark.asyncio
    async def test_select_where_equality_and_membership(self, store):
        """等価条件とリスト値の所属条件で絞り込めること（挿入順を保持）。"""
        for i, event_id in enumerate(["e1", "e2", "e3", "e1"]):
            await store.insert("rows", f"r{i}", {"id": f"r{i}", "event_id": event_id, "kind": i % 2})

        assert [r["id"] for r in await store.select_where("rows", {"event_id": "e1"})] == ["r0", "r3"]
        assert [r["id"] for r in await store.select_where("rows", {"event_id": ["e2", "e3"]})] == ["r1", "r2"]
        assert [r["id"] for r in await store.select_where("rows", {"event_id": ["e1"], "kind": 1})] == ["r3"]
        assert await store.select_where("rows", {"event_id": []}) == []
        assert len(await store.select_where("rows")) == 4

    @pytest.mark.asyncio
    async def test_fetch_many(self, store):
        """複数コレクションを一度に取得できること。"""
        await store.insert("a", "1", {"id": "1", "event_id": "e1"})
        await store.insert("b", "2", {"id": "2", "event_id": "e2"})

        rows = await store.fetch_many({"a": {"event_id": "e1"}, "b": {"event_id": "e1"}})

        assert rows == {"a": [{"id": "1", "event_id": "e1"}], "b": []}

    @pytest.mark.asyncio
    async def test_latency_does_not_change_results(self):
        """遅延ありでも同じ結果を返すこと。"""
        slow = InMemoryDocumentStore(latency=0.001)
        await slow.insert("items", "a", {"id": "a"})

        assert await slow.get("items", "a") == {"id": "a"}
        assert slow.get_stats()["writes"] == 1


class TestRepositoryContract:
    """リポジトリ経由の保存形式のコントラクトテスト。"""

    @pytest.fixture
    def event(self):
        return SocialEvent(
            host_user_id="host-1",
            event_type="roast",
            title="Family Dinner",
            date_time=datetime(2026, 10, 25, 13, 0),
            dietary_requirements=["vegetarian"],
        )

    @pytest.mark.asyncio
    async def test_guest_contact_is_encrypted_at_rest(self, repository, store, event):
        """ゲストの連絡先は平文で保存されず、読み出し時に復号されること。"""
        guest = SocialGuest(event_id=event.event_id, name="Alice", email="alice@example.com", phone="+447700900123")

        await repository.guests.create(guest)

        raw = store.raw(Collections.GUESTS, guest.guest_id)
        assert raw["email"] != "alice@example.com"
        assert raw["phone"] != "+447700900123"
        assert "alice@example.com" not in str(raw)

        loaded = await repository.guests.get_by_id(guest.guest_id)
        assert loaded.email == "alice@example.com"
        assert loaded.phone == "+447700900123"

    @pytest.mark.asyncio
    async def test_encrypted_patch(self, repository, store, event):
        """部分更新でも連絡先が暗号化されること。"""
        guest = await repository.guests.create(SocialGuest(event_id=event.event_id, name="Bob"))

        await repository.guests.update_fields(guest.guest_id, {"email": "bob@example.com"})

        assert store.raw(Collections.GUESTS, guest.guest_id)["email"] != "bob@example.com"
        assert (await repository.guests.get_by_id(guest.guest_id)).email == "bob@example.com"

    @pytest.mark.asyncio
    async def test_event_round_trip(self, repository, event):
        """イベントが日時・食事制限を含めて復元されること。"""
        await repository.events.create(event)

        loaded = await repository.events.get_by_id(event.event_id)

        assert loaded.to_dict() == event.to_dict()

    @pytest.mark.asyncio
    async def test_load_bundle(self, repository, event):
        """イベントとサブレコードを一括取得し、投票は作成順に並ぶこと。"""
        await repository.events.create(event)
        late = SocialVote(event_id=event.event_id, vote_category="protein", vote_value="Beef",
                          created_at=datetime(2026, 10, 20, 9, 0))
        early = SocialVote(event_id=event.event_id, vote_category="protein", vote_value="Lamb",
                           created_at=datetime(2026, 10, 19, 9, 0))
        await repository.votes.create(late)
        await repository.votes.create(early)
        await repository.dishes.create(SocialDish(event_id=event.event_id, dish_category="Main", dish_name="Pie"))
        await repository.dishes.create(SocialDish(event_id="other", dish_category="Main", dish_name="Curry"))

        bundle = await repository.load_bundle(event.event_id)

        assert bundle.event.event_id == event.event_id
        assert [v.vote_value for v in bundle.votes] == ["Lamb", "Beef"]
        assert [d.dish_name for d in bundle.dishes] == ["Pie"]
        assert bundle.guests == []
        assert await repository.load_bundle("missing") is None
