"""Catalog of popular Bangladeshi grocery items with market prices."""

import json
import re
from typing import List

from pydantic import ValidationError

from ..core.exceptions import ExternalServiceError
from ..core.logging import get_logger
from ..models.schemas import CatalogItem
from .llm_client import ChatCompletionClient

logger = get_logger(__name__)

CATEGORIES = [
    "vegetables", "fruits", "meat", "fish", "dairy",
    "grains", "spices", "pulses", "cooking",
]

FALLBACK_ITEMS: List[CatalogItem] = [
    CatalogItem(name_en="Rice (Basmati)", name_bn="চাল (বাসমতি)", category="grains", estimated_price=80, unit="kg"),
    CatalogItem(name_en="Potato", name_bn="আলু", category="vegetables", estimated_price=25, unit="kg"),
    CatalogItem(name_en="Onion", name_bn="পেঁয়াজ", category="vegetables", estimated_price=35, unit="kg"),
    CatalogItem(name_en="Chicken", name_bn="মুরগি", category="meat", estimated_price=180, unit="kg"),
    CatalogItem(name_en="Fish (Rohu)", name_bn="মাছ (রুই)", category="fish", estimated_price=250, unit="kg"),
    CatalogItem(name_en="Milk", name_bn="দুধ", category="dairy", estimated_price=60, unit="l"),
    CatalogItem(name_en="Eggs", name_bn="ডিম", category="dairy", estimated_price=12, unit="pcs"),
    CatalogItem(name_en="Tomato", name_bn="টমেটো", category="vegetables", estimated_price=40, unit="kg"),
    CatalogItem(name_en="Lentils (Red)", name_bn="মসুর ডাল", category="pulses", estimated_price=120, unit="kg"),
    CatalogItem(name_en="Oil (Soybean)", name_bn="তেল (সয়াবিন)", category="cooking", estimated_price=140, unit="l"),
]

_SYSTEM_PROMPT = (
    "You are a grocery price expert for Bangladesh. Provide accurate, current market "
    "prices for grocery items in Dhaka. Always respond with valid JSON."
)

_USER_PROMPT = (
    "Generate a comprehensive list of 50 popular Bangladeshi grocery items with accurate "
    "market prices in Dhaka, Bangladesh. Include items from categories like vegetables, "
    "fruits, meat, fish, dairy, spices, grains, pulses, and household essentials.\n\n"
    "For each item, provide:\n"
    "- English name\n"
    "- Bengali name (in Bengali script)\n"
    "- Category\n"
    "- Current market price per unit in BDT\n"
    "- Appropriate unit (kg, pcs, l, etc.)\n\n"
    "Format as JSON array with objects containing: name_en, name_bn, category, "
    "estimated_price, unit"
)

_JSON_ARRAY_RE = re.compile(r"\[[\s\S]*\]")


def parse_catalog_reply(content: str) -> List[CatalogItem]:
    """Read a JSON array of items, tolerating prose around it."""
    match = _JSON_ARRAY_RE.search(content)
    raw = json.loads(match.group(0) if match else content)
    if not isinstance(raw, list):
        raise ValueError("expected a JSON array")
    return [CatalogItem.model_validate(entry) for entry in raw]


class CatalogService:
    """Service producing item suggestions for quick add."""

    def __init__(self, llm: ChatCompletionClient = None):
        self.llm = llm or ChatCompletionClient()

    async def get_items(self, category: str = "all") -> List[CatalogItem]:
        """Items for a category; 'all' returns everything."""
        try:
            content = await self.llm.complete(
                [
                    {"role": "system", "content": _SYSTEM_PROMPT},
                    {"role": "user", "content": _USER_PROMPT},
                ],
                max_tokens=2000,
                temperature=0.3,
            )
            items = parse_catalog_reply(content)
        except (ExternalServiceError, ValueError, ValidationError) as e:
            logger.warning("Using built-in catalog: %s", e)
            items = list(FALLBACK_ITEMS)

        if category and category != "all":
            items = [item for item in items if item.category == category]
        return items
