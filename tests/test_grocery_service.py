"""Tests for GroceryService: stored totals, cascades and scoping."""

import pytest
from sqlalchemy import func, select

from bazar_buddy.core.exceptions import NotFoundError
from bazar_buddy.models.grocery import GroceryItem, GroceryList, sum_estimated_prices
from bazar_buddy.models.schemas import (
    ItemCreate,
    ItemUpdate,
    ListCreate,
    ListDetailsUpdate,
    ListItemsReplace,
)
from bazar_buddy.models.user import User
from bazar_buddy.services.grocery_service import GroceryService


def make_list(title="March Bazar", month="March", items=None):
    return ListCreate(
        title=title,
        month=month,
        year=2025,
        items=items or [
            ItemCreate(name="Rice", quantity=2, unit="kg", estimated_price=10),
            ItemCreate(name="Milk", quantity=1, unit="l", estimated_price=2),
        ],
    )


async def stored_total(db, list_id):
    return await db.scalar(select(GroceryList.total_estimated_price).where(GroceryList.id == list_id))


class TestTotals:
    """The stored total always equals the sum of the stored item prices."""

    def test_missing_prices_count_as_zero(self):
        assert sum_estimated_prices([1.1, None, 2.2]) == 3.3

    @pytest.mark.asyncio
    async def test_create_stores_total(self, db, user):
        service = GroceryService(db, user)
        grocery_list = await service.create_list(make_list())

        assert grocery_list.total_estimated_price == 12.0
        assert await stored_total(db, grocery_list.id) == 12.0

    @pytest.mark.asyncio
    async def test_each_item_mutation_updates_total(self, db, user):
        service = GroceryService(db, user)
        grocery_list = await service.create_list(make_list())

        item, total = await service.add_item(
            grocery_list.id, ItemCreate(name="Eggs", quantity=12, unit="dozen", estimated_price=36)
        )
        assert total == 48.0
        assert await stored_total(db, grocery_list.id) == 48.0

        item, total = await service.update_item(
            grocery_list.id, item.id, ItemUpdate(name="Eggs", quantity=6, unit="dozen", estimated_price=18)
        )
        assert total == 30.0
        assert await stored_total(db, grocery_list.id) == 30.0

        total = await service.remove_item(grocery_list.id, item.id)
        assert total == 12.0
        assert await stored_total(db, grocery_list.id) == 12.0

    @pytest.mark.asyncio
    async def test_item_without_price_leaves_total(self, db, user):
        service = GroceryService(db, user)
        grocery_list = await service.create_list(make_list())

        _, total = await service.add_item(grocery_list.id, ItemCreate(name="Salt"))
        assert total == 12.0

    @pytest.mark.asyncio
    async def test_replace_items_recomputes_total(self, db, user):
        service = GroceryService(db, user)
        grocery_list = await service.create_list(make_list())

        updated = await service.replace_items(grocery_list.id, ListItemsReplace(items=[
            ItemCreate(name="Beef", quantity=1, unit="kg", estimated_price=12),
        ]))

        assert [item.name for item in updated.items] == ["Beef"]
        assert await stored_total(db, grocery_list.id) == 12.0
        count = await db.scalar(select(func.count()).select_from(GroceryItem))
        assert count == 1


class TestListLifecycle:

    @pytest.mark.asyncio
    async def test_round_trip_keeps_items_in_order(self, db, user):
        service = GroceryService(db, user)
        names = [f"Item {n}" for n in range(7)]
        created = await service.create_list(make_list(items=[ItemCreate(name=n) for n in names]))

        fetched = await service.get_list(created.id)
        assert [item.name for item in fetched.items] == names

    @pytest.mark.asyncio
    async def test_update_details(self, db, user):
        service = GroceryService(db, user)
        grocery_list = await service.create_list(make_list())

        updated = await service.update_details(
            grocery_list.id, ListDetailsUpdate(title="April Bazar", month="april", year=2025)
        )
        assert updated.title == "April Bazar"
        assert updated.month == "April"
        assert len(updated.items) == 2

    @pytest.mark.asyncio
    async def test_delete_leaves_no_orphan_items(self, db, user):
        service = GroceryService(db, user)
        grocery_list = await service.create_list(make_list())

        assert await service.delete_list(grocery_list.id) is True
        orphans = await db.scalar(
            select(func.count()).select_from(GroceryItem).where(GroceryItem.list_id == grocery_list.id)
        )
        assert orphans == 0
        assert await service.get_list(grocery_list.id) is None

    @pytest.mark.asyncio
    async def test_delete_unknown_list(self, db, user):
        assert await GroceryService(db, user).delete_list("missing") is False

    @pytest.mark.asyncio
    async def test_lists_are_scoped_to_owner(self, db, user):
        other = User(email="other@example.com", name="Other", password_hash="x")
        db.add(other)
        await db.flush()
        grocery_list = await GroceryService(db, user).create_list(make_list())

        stranger = GroceryService(db, other)
        assert await stranger.get_lists() == []
        with pytest.raises(NotFoundError):
            await stranger.add_item(grocery_list.id, ItemCreate(name="Sugar"))

    @pytest.mark.asyncio
    async def test_search_matches_title_or_month(self, db, user):
        service = GroceryService(db, user)
        await service.create_list(make_list(title="Eid shopping", month="April"))
        await service.create_list(make_list(title="Weekly", month="May"))

        assert [lst.title for lst in await service.get_lists("eid")] == ["Eid shopping"]
        assert [lst.title for lst in await service.get_lists("may")] == ["Weekly"]

    @pytest.mark.asyncio
    async def test_unknown_item_raises(self, db, user):
        service = GroceryService(db, user)
        grocery_list = await service.create_list(make_list())
        with pytest.raises(NotFoundError):
            await service.remove_item(grocery_list.id, "missing")


class TestPreviousItems:

    @pytest.mark.asyncio
    async def test_distinct_by_name_keeping_highest_price(self, db, user):
        service = GroceryService(db, user)
        await service.create_list(make_list(items=[
            ItemCreate(name="Rice", quantity=1, estimated_price=5),
            ItemCreate(name="Onion", quantity=1, estimated_price=1),
        ]))
        await service.create_list(make_list(items=[
            ItemCreate(name="rice", quantity=1, estimated_price=8),
        ]))

        previous = {item.name.lower(): item for item in await service.get_previous_items()}
        assert set(previous) == {"rice", "onion"}
        assert previous["rice"].estimated_price == 8

    @pytest.mark.asyncio
    async def test_limit(self, db, user):
        service = GroceryService(db, user)
        await service.create_list(make_list(items=[ItemCreate(name=f"Item {n}") for n in range(25)]))
        assert len(await service.get_previous_items()) == 20
