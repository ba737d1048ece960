"""FastAPI dependencies shared by the API and the print-preview routes."""

from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import get_db
from ..core.exceptions import AuthenticationError
from ..models.user import User
from ..services.auth_service import AuthService
from ..services.catalog_service import CatalogService
from ..services.grocery_service import GroceryService
from ..services.notification_service import notification_service
from ..services.ocr_service import OCRService
from ..services.price_service import PriceService

bearer_scheme = HTTPBearer(auto_error=False)


async def get_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> str:
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("Please sign in to continue")
    return credentials.credentials


def get_auth_service(db: AsyncSession = Depends(get_db)) -> AuthService:
    return AuthService(db, notification_service)


async def get_current_user(
    token: str = Depends(get_token),
    auth: AuthService = Depends(get_auth_service),
) -> User:
    return await auth.authenticate(token)


def get_grocery_service(
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
) -> GroceryService:
    return GroceryService(db, user)


def get_price_service() -> PriceService:
    return PriceService()


def get_catalog_service() -> CatalogService:
    return CatalogService()


def get_ocr_service() -> OCRService:
    return OCRService()
