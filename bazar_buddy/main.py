"""FastAPI application entry point."""

from contextlib import asynccontextmanager
from typing import List, Optional

from fastapi import FastAPI, Depends, File, HTTPException, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .core.config import settings
from .core.database import init_db
from .core.exceptions import BazarBuddyError
from .core.logging import configure_logging, get_logger
from .core.scheduler import task_scheduler, setup_scheduled_tasks
from .models.schemas import (
    AuthResponse,
    CatalogRequest,
    CatalogResponse,
    DashboardResponse,
    ItemCreate,
    ItemMutationResponse,
    ItemResponse,
    ItemUpdate,
    ListCreate,
    ListDetailsUpdate,
    ListItemsReplace,
    ListResponse,
    LoginRequest,
    OCRResponse,
    PasswordResetConfirm,
    PasswordResetRequest,
    PreviousItem,
    PriceRequest,
    PriceResponse,
    RegisterRequest,
    UserResponse,
)
from .models.user import User
from .services.analytics_service import AnalyticsService
from .services.auth_service import AuthService
from .services.catalog_service import CatalogService
from .services.grocery_service import GroceryService
from .services.ocr_service import OCRService
from .services.price_service import PriceService
from .web.app import router as print_router
from .web.dependencies import (
    get_auth_service,
    get_catalog_service,
    get_current_user,
    get_grocery_service,
    get_ocr_service,
    get_price_service,
    get_token,
)

logger = get_logger(__name__)

MAX_UPLOAD_BYTES = 10 * 1024 * 1024


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    # Startup
    configure_logging()
    await init_db()
    setup_scheduled_tasks(task_scheduler)
    task_scheduler.start()
    yield
    # Shutdown
    task_scheduler.stop()


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Household grocery lists with AI-assisted price estimates",
    lifespan=lifespan
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(BazarBuddyError)
async def handle_domain_error(request: Request, exc: BazarBuddyError):
    if exc.status_code >= 500:
        logger.warning("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


app.include_router(print_router)


# ==================== API Routes ====================

@app.get("/")
async def root():
    """Health check endpoint."""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "status": "running"
    }


# Auth endpoints

@app.post("/auth/register", response_model=AuthResponse, status_code=201)
async def register(payload: RegisterRequest, auth: AuthService = Depends(get_auth_service)):
    """Create an account and sign in."""
    user, token = await auth.register(payload.name, payload.email, payload.password)
    return AuthResponse(user=UserResponse.model_validate(user), access_token=token)


@app.post("/auth/login", response_model=AuthResponse)
async def login(payload: LoginRequest, auth: AuthService = Depends(get_auth_service)):
    """Sign in with email and password."""
    user, token = await auth.login(payload.email, payload.password)
    return AuthResponse(user=UserResponse.model_validate(user), access_token=token)


@app.post("/auth/logout")
async def logout(token: str = Depends(get_token), auth: AuthService = Depends(get_auth_service)):
    """End the current session."""
    await auth.logout(token)
    return {"status": "signed_out"}


@app.get("/auth/me", response_model=UserResponse)
async def me(user: User = Depends(get_current_user)):
    """The signed-in user."""
    return user


@app.post("/auth/password-reset", status_code=202)
async def request_password_reset(
    payload: PasswordResetRequest, auth: AuthService = Depends(get_auth_service)
):
    """Email a reset code; the response never reveals whether the account exists."""
    await auth.request_password_reset(payload.email)
    return {"status": "sent"}


@app.post("/auth/password-reset/confirm")
async def confirm_password_reset(
    payload: PasswordResetConfirm, auth: AuthService = Depends(get_auth_service)
):
    """Set a new password from a reset code."""
    await auth.confirm_password_reset(payload.token, payload.new_password)
    return {"status": "password_updated"}


# Grocery list endpoints

@app.get("/api/lists", response_model=List[ListResponse])
async def list_grocery_lists(
    search: Optional[str] = None,
    service: GroceryService = Depends(get_grocery_service),
):
    """Get all lists, newest first."""
    return await service.get_lists(search)


@app.post("/api/lists", response_model=ListResponse, status_code=201)
async def create_grocery_list(
    payload: ListCreate, service: GroceryService = Depends(get_grocery_service)
):
    """Create a list with its items."""
    return await service.create_list(payload)


@app.get("/api/lists/{list_id}", response_model=ListResponse)
async def get_grocery_list(list_id: str, service: GroceryService = Depends(get_grocery_service)):
    """Get a specific list."""
    grocery_list = await service.get_list(list_id)

    if not grocery_list:
        raise HTTPException(status_code=404, detail="Grocery list not found")

    return grocery_list


@app.put("/api/lists/{list_id}/details", response_model=ListResponse)
async def update_list_details(
    list_id: str,
    payload: ListDetailsUpdate,
    service: GroceryService = Depends(get_grocery_service),
):
    """Rename a list or change its month."""
    return await service.update_details(list_id, payload)


@app.put("/api/lists/{list_id}/items", response_model=ListResponse)
async def replace_list_items(
    list_id: str,
    payload: ListItemsReplace,
    service: GroceryService = Depends(get_grocery_service),
):
    """Replace the item set of a list."""
    return await service.replace_items(list_id, payload)


@app.delete("/api/lists/{list_id}")
async def delete_grocery_list(list_id: str, service: GroceryService = Depends(get_grocery_service)):
    """Delete a list and its items."""
    success = await service.delete_list(list_id)

    if not success:
        raise HTTPException(status_code=404, detail="Grocery list not found")

    return {"status": "deleted", "id": list_id}


# Item endpoints

@app.post("/api/lists/{list_id}/items", response_model=ItemMutationResponse, status_code=201)
async def add_item(
    list_id: str,
    payload: ItemCreate,
    service: GroceryService = Depends(get_grocery_service),
):
    """Append an item to a list."""
    item, total = await service.add_item(list_id, payload)
    return ItemMutationResponse(item=ItemResponse.model_validate(item), total_estimated_price=total)


@app.put("/api/lists/{list_id}/items/{item_id}", response_model=ItemMutationResponse)
async def update_item(
    list_id: str,
    item_id: str,
    payload: ItemUpdate,
    service: GroceryService = Depends(get_grocery_service),
):
    """Edit an item."""
    item, total = await service.update_item(list_id, item_id, payload)
    return ItemMutationResponse(item=ItemResponse.model_validate(item), total_estimated_price=total)


@app.delete("/api/lists/{list_id}/items/{item_id}", response_model=ItemMutationResponse)
async def remove_item(
    list_id: str,
    item_id: str,
    service: GroceryService = Depends(get_grocery_service),
):
    """Remove an item from a list."""
    total = await service.remove_item(list_id, item_id)
    return ItemMutationResponse(item=None, total_estimated_price=total)


@app.get("/api/items/previous", response_model=List[PreviousItem])
async def previous_items(service: GroceryService = Depends(get_grocery_service)):
    """Items bought before, for quick add."""
    return await service.get_previous_items()


@app.get("/api/dashboard", response_model=DashboardResponse)
async def dashboard(service: GroceryService = Depends(get_grocery_service)):
    """Spending summary and 6-month history."""
    return await AnalyticsService(service).dashboard()


# Function endpoints

@app.post("/functions/generate-price", response_model=PriceResponse)
async def generate_price(
    payload: PriceRequest,
    user: User = Depends(get_current_user),
    prices: PriceService = Depends(get_price_service),
):
    """AI price estimate for a line item."""
    price = await prices.generate_price(payload.item_name, payload.quantity, payload.unit)
    return PriceResponse(price=price)


@app.post("/functions/extract-text-ocr", response_model=OCRResponse, response_model_by_alias=True)
async def extract_text_ocr(
    file: Optional[UploadFile] = File(None),
    user: User = Depends(get_current_user),
    ocr: OCRService = Depends(get_ocr_service),
):
    """Extract text (and list items) from an uploaded image."""
    if file is None:
        raise HTTPException(status_code=400, detail="No file provided")

    content = await file.read()
    if not content:
        raise HTTPException(status_code=400, detail="No file provided")
    if len(content) > MAX_UPLOAD_BYTES:
        raise HTTPException(status_code=413, detail="File is larger than 10 MB")

    return await ocr.extract(content, file.content_type or "image/png")


@app.post("/functions/bangladeshi-grocery-items", response_model=CatalogResponse)
async def bangladeshi_grocery_items(
    payload: CatalogRequest,
    catalog: CatalogService = Depends(get_catalog_service),
):
    """Popular items with Dhaka market prices."""
    return CatalogResponse(items=await catalog.get_items(payload.category))


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
