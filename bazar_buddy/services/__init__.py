"""Business logic services."""

from .auth_service import AuthService
from .grocery_service import GroceryService
from .price_service import PriceService, estimate_price_locally
from .catalog_service import CatalogService
from .ocr_service import OCRService
from .analytics_service import AnalyticsService

__all__ = [
    "AuthService",
    "GroceryService",
    "PriceService",
    "estimate_price_locally",
    "CatalogService",
    "OCRService",
    "AnalyticsService",
]
