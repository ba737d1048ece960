"""Grocery list models."""

import enum
import uuid
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Optional
from sqlalchemy import Column, Integer, String, Float, DateTime, ForeignKey
from sqlalchemy.orm import relationship

from ..core.database import Base

MONTHS = [
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
]


class Unit(str, enum.Enum):
    """Measurement units accepted for grocery items."""

    KG = "kg"
    G = "g"
    LB = "lb"
    PCS = "pcs"
    L = "l"
    ML = "ml"
    DOZEN = "dozen"


def _new_id() -> str:
    return str(uuid.uuid4())


def round_money(amount: float) -> float:
    """Round to cents, with half-cents going up."""
    return float(Decimal(str(amount)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def sum_estimated_prices(prices: Iterable[Optional[float]]) -> float:
    """Sum item prices, treating missing estimates as zero."""
    return round_money(sum(price or 0 for price in prices))


class GroceryList(Base):
    """A named, dated collection of grocery items owned by one user."""

    __tablename__ = "grocery_lists"

    id = Column(String(36), primary_key=True, default=_new_id)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    title = Column(String(200), nullable=False)
    month = Column(String(20), nullable=False)
    year = Column(Integer, nullable=False)

    total_estimated_price = Column(Float, nullable=False, default=0.0)

    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    user = relationship("User", back_populates="grocery_lists")
    items = relationship(
        "GroceryItem",
        back_populates="grocery_list",
        cascade="all, delete-orphan",
        order_by="GroceryItem.position",
        lazy="selectin",
    )

    def __repr__(self):
        return f"<GroceryList(id={self.id}, title='{self.title}', items={len(self.items) if self.items else 0})>"

    @property
    def item_count(self) -> int:
        """Get number of items in list."""
        return len(self.items) if self.items else 0

    def calculate_total(self) -> float:
        """Calculate total estimated price from the current items."""
        return sum_estimated_prices(item.estimated_price for item in self.items or [])

    def recalculate_total(self) -> float:
        """Store the recomputed total on the list and return it."""
        self.total_estimated_price = self.calculate_total()
        return self.total_estimated_price


class GroceryItem(Base):
    """A single grocery line entry."""

    __tablename__ = "grocery_items"

    id = Column(String(36), primary_key=True, default=_new_id)
    list_id = Column(String(36), ForeignKey("grocery_lists.id", ondelete="CASCADE"), nullable=False, index=True)

    name = Column(String(200), nullable=False, index=True)
    quantity = Column(Float, nullable=False, default=1.0)
    unit = Column(String(20), nullable=False, default=Unit.KG.value)
    estimated_price = Column(Float)
    position = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    grocery_list = relationship("GroceryList", back_populates="items")

    def __repr__(self):
        return f"<GroceryItem(name='{self.name}', qty={self.quantity} {self.unit})>"
