"""Grocery list and item management service."""

from datetime import datetime
from typing import List, Optional, Tuple
from sqlalchemy import select, or_
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.exceptions import NotFoundError
from ..core.logging import get_logger
from ..models.grocery import GroceryList, GroceryItem
from ..models.schemas import (
    ItemCreate,
    ItemUpdate,
    ListCreate,
    ListDetailsUpdate,
    ListItemsReplace,
    PreviousItem,
)
from ..models.user import User

logger = get_logger(__name__)


class GroceryService:
    """Service for a single user's grocery lists.

    Every item mutation recomputes the parent list's total inside the same
    session flush, so the stored total always matches the stored items.
    """

    def __init__(self, db: AsyncSession, user: User):
        self.db = db
        self.user = user

    async def get_lists(self, search: Optional[str] = None) -> List[GroceryList]:
        """Get all lists of the user, newest first, optionally filtered by title or month."""
        query = select(GroceryList).where(GroceryList.user_id == self.user.id)
        if search:
            pattern = f"%{search.strip()}%"
            query = query.where(
                or_(GroceryList.title.ilike(pattern), GroceryList.month.ilike(pattern))
            )
        query = query.order_by(GroceryList.created_at.desc())

        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def get_list(self, list_id: str) -> Optional[GroceryList]:
        """Get a list by ID, scoped to the user."""
        result = await self.db.execute(
            select(GroceryList).where(
                GroceryList.id == list_id,
                GroceryList.user_id == self.user.id,
            )
        )
        return result.scalar_one_or_none()

    async def require_list(self, list_id: str) -> GroceryList:
        grocery_list = await self.get_list(list_id)
        if grocery_list is None:
            raise NotFoundError(f"Grocery list not found: {list_id}")
        return grocery_list

    async def create_list(self, data: ListCreate) -> GroceryList:
        """Create a list with its items and stored total."""
        grocery_list = GroceryList(
            user_id=self.user.id,
            title=data.title,
            month=data.month,
            year=data.year,
        )
        grocery_list.items = [
            self._build_item(item, position) for position, item in enumerate(data.items)
        ]
        grocery_list.recalculate_total()

        self.db.add(grocery_list)
        await self.db.flush()
        logger.info("Created list %s with %d items", grocery_list.id, len(data.items))
        return grocery_list

    async def update_details(self, list_id: str, data: ListDetailsUpdate) -> GroceryList:
        """Change title, month and year of a list."""
        grocery_list = await self.require_list(list_id)
        grocery_list.title = data.title
        grocery_list.month = data.month
        grocery_list.year = data.year
        grocery_list.updated_at = datetime.utcnow()
        await self.db.flush()
        return grocery_list

    async def replace_items(self, list_id: str, data: ListItemsReplace) -> GroceryList:
        """Replace every item of a list and recompute the total."""
        grocery_list = await self.require_list(list_id)
        grocery_list.items = [
            self._build_item(item, position) for position, item in enumerate(data.items)
        ]
        grocery_list.recalculate_total()
        grocery_list.updated_at = datetime.utcnow()
        await self.db.flush()
        return grocery_list

    async def delete_list(self, list_id: str) -> bool:
        """Delete a list; its items go with it."""
        grocery_list = await self.get_list(list_id)
        if not grocery_list:
            return False
        await self.db.delete(grocery_list)
        await self.db.flush()
        logger.info("Deleted list %s", list_id)
        return True

    async def add_item(self, list_id: str, data: ItemCreate) -> Tuple[GroceryItem, float]:
        """Append an item; returns the item and the new list total."""
        grocery_list = await self.require_list(list_id)
        position = max((item.position for item in grocery_list.items), default=-1) + 1
        item = self._build_item(data, position)
        grocery_list.items.append(item)
        total = grocery_list.recalculate_total()
        grocery_list.updated_at = datetime.utcnow()
        await self.db.flush()
        return item, total

    async def update_item(
        self, list_id: str, item_id: str, data: ItemUpdate
    ) -> Tuple[GroceryItem, float]:
        """Overwrite an item's fields; returns the item and the new list total."""
        grocery_list = await self.require_list(list_id)
        item = self._find_item(grocery_list, item_id)
        item.name = data.name
        item.quantity = data.quantity
        item.unit = data.unit.value
        item.estimated_price = data.estimated_price
        total = grocery_list.recalculate_total()
        grocery_list.updated_at = datetime.utcnow()
        await self.db.flush()
        return item, total

    async def remove_item(self, list_id: str, item_id: str) -> float:
        """Remove an item; returns the new list total."""
        grocery_list = await self.require_list(list_id)
        item = self._find_item(grocery_list, item_id)
        grocery_list.items.remove(item)
        total = grocery_list.recalculate_total()
        grocery_list.updated_at = datetime.utcnow()
        await self.db.flush()
        return total

    async def get_previous_items(self, limit: int = 20) -> List[PreviousItem]:
        """Distinct item names from the user's history, keeping the highest price seen."""
        result = await self.db.execute(
            select(GroceryItem.name, GroceryItem.unit, GroceryItem.estimated_price)
            .join(GroceryList, GroceryItem.list_id == GroceryList.id)
            .where(GroceryList.user_id == self.user.id)
            .order_by(GroceryList.created_at.desc(), GroceryItem.position)
        )

        unique = {}
        for name, unit, price in result.all():
            key = name.lower()
            price = price or 0.0
            existing = unique.get(key)
            if existing is None:
                unique[key] = PreviousItem(name=name, unit=unit, estimated_price=price)
            elif price > existing.estimated_price:
                existing.estimated_price = price
                existing.unit = unit

        return list(unique.values())[:limit]

    @staticmethod
    def _build_item(data: ItemCreate, position: int) -> GroceryItem:
        return GroceryItem(
            name=data.name,
            quantity=data.quantity,
            unit=data.unit.value,
            estimated_price=data.estimated_price,
            position=position,
        )

    @staticmethod
    def _find_item(grocery_list: GroceryList, item_id: str) -> GroceryItem:
        for item in grocery_list.items:
            if item.id == item_id:
                return item
        raise NotFoundError(f"Item not found: {item_id}")
