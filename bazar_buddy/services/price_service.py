"""Price estimation for grocery items."""

import random
import re
from typing import Dict

from ..core.config import settings
from ..core.exceptions import ExternalServiceError
from ..core.logging import get_logger
from ..models.grocery import round_money
from .llm_client import ChatCompletionClient

logger = get_logger(__name__)

# Base price per unit for common items
BASE_PRICES: Dict[str, float] = {
    "rice": 5,
    "chicken": 9,
    "beef": 12,
    "eggs": 0.25,
    "milk": 2,
    "bread": 3,
    "oil": 8,
    "sugar": 2,
    "salt": 1,
    "onion": 1,
    "potato": 1,
    "tomato": 1.5,
}

UNIT_MULTIPLIERS: Dict[str, float] = {
    "kg": 1,
    "g": 0.001,
    "lb": 0.45,
    "dozen": 12,
    "pcs": 1,
    "pieces": 1,
    "l": 1,
    "liter": 1,
    "ml": 0.001,
}

UNKNOWN_PRICE_RANGE = (1, 10)

_NUMBER_RE = re.compile(r"\d+(?:[.,]\d+)?")


def base_price_for(name: str) -> float:
    """Known base price, or a pseudo-random one seeded by the name."""
    key = name.strip().lower()
    if key in BASE_PRICES:
        return BASE_PRICES[key]
    return random.Random(key).randint(*UNKNOWN_PRICE_RANGE)


def unit_multiplier(unit: str) -> float:
    return UNIT_MULTIPLIERS.get(unit.strip().lower(), 1)


def estimate_price_locally(name: str, quantity: float, unit: str) -> float:
    """Deterministic fallback estimate: base price x unit multiplier x quantity."""
    price = base_price_for(name) * quantity * unit_multiplier(unit)
    return round_money(price)


def parse_price(text: str) -> float:
    """Pull the first number out of a model reply."""
    match = _NUMBER_RE.search(text.replace(",", ""))
    if not match:
        raise ExternalServiceError(f"Could not read a price from: {text[:80]!r}")
    return round_money(float(match.group(0)))


class PriceService:
    """Service for AI-assisted price estimates."""

    def __init__(self, llm: ChatCompletionClient = None):
        self.llm = llm or ChatCompletionClient()

    async def generate_price(self, item_name: str, quantity: float, unit: str) -> float:
        """Ask the language model for the total price of a line item.

        Raises:
            ExternalServiceError: when the model is unavailable or answers
                without a number.
        """
        messages = [
            {
                "role": "system",
                "content": (
                    "You are a grocery price expert for Dhaka, Bangladesh. "
                    f"Answer with a single number: the total price in {settings.currency}."
                ),
            },
            {
                "role": "user",
                "content": f"Estimated current market price of {quantity} {unit} of {item_name}?",
            },
        ]
        reply = await self.llm.complete(messages, max_tokens=20, temperature=0.2)
        price = parse_price(reply)
        logger.debug("Generated price %.2f for %s x%s %s", price, item_name, quantity, unit)
        return price
