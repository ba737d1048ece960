"""HTTP client for the Bazar Buddy backend."""

import time
from typing import Any, Dict, List, Optional

import httpx
from pydantic import ValidationError

from ..core.config import ClientConfig, settings
from ..core.logging import get_logger
from ..models.schemas import (
    AuthResponse,
    CatalogItem,
    DashboardResponse,
    ItemCreate,
    ItemMutationResponse,
    ItemUpdate,
    ListCreate,
    ListDetailsUpdate,
    ListItemsReplace,
    ListResponse,
    OCRResponse,
    PreviousItem,
    PriceResponse,
    UserResponse,
)

logger = get_logger(__name__)


class BackendError(Exception):
    """A request to the backend failed.

    ``status_code`` is None when the server could not be reached at all,
    or when its reply did not have the expected shape.
    """

    def __init__(self, status_code: Optional[int], detail: str):
        super().__init__(f"{status_code or 'network'}: {detail}")
        self.status_code = status_code
        self.detail = detail


class BackendAuthError(BackendError):
    """The backend rejected the bearer token (HTTP 401)."""


def _error_detail(response: httpx.Response) -> str:
    """Readable message from a FastAPI error body."""
    try:
        detail = response.json().get("detail")
    except (ValueError, AttributeError):
        return response.text or response.reason_phrase

    # Validation errors arrive as a list of {loc, msg, type}
    if isinstance(detail, list):
        messages = []
        for error in detail:
            loc = ".".join(str(part) for part in error.get("loc", [])[1:])
            messages.append(f"{loc}: {error.get('msg')}" if loc else str(error.get("msg")))
        return "; ".join(messages)
    return str(detail) if detail is not None else response.reason_phrase


def _parse(model, data):
    """Validate a response body, raising BackendError when it does not fit ``model``."""
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise BackendError(None, f"Unexpected {model.__name__} from the server: {e.error_count()} error(s)") from e


class BackendClient:
    """Thin async wrapper around the REST API.

    Every method either returns parsed models or raises ``BackendError``.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        token: Optional[str] = None,
        config: ClientConfig = None,
        transport: httpx.AsyncBaseTransport = None,
    ):
        self.config = config or settings.client
        self.base_url = (base_url or self.config.api_base_url).rstrip("/")
        self.token = token
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.config.timeout,
            transport=transport,
        )

    async def close(self):
        await self._client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    @property
    def is_authenticated(self) -> bool:
        return bool(self.token)

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        headers = kwargs.pop("headers", {})
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"

        try:
            response = await self._client.request(method, path, headers=headers, **kwargs)
        except httpx.HTTPError as e:
            logger.warning("%s %s failed: %s", method, path, e)
            raise BackendError(None, f"Could not reach the server: {e}") from e

        if response.status_code == 401:
            raise BackendAuthError(401, _error_detail(response))
        if response.status_code >= 400:
            raise BackendError(response.status_code, _error_detail(response))
        return response

    async def _json(self, method: str, path: str, **kwargs) -> Any:
        response = await self._request(method, path, **kwargs)
        try:
            return response.json()
        except ValueError as e:
            raise BackendError(response.status_code, f"Invalid JSON from {path}") from e

    # ==================== Auth ====================

    async def register(self, name: str, email: str, password: str) -> AuthResponse:
        data = await self._json("POST", "/auth/register", json={
            "name": name, "email": email, "password": password,
        })
        auth = _parse(AuthResponse, data)
        self.token = auth.access_token
        return auth

    async def login(self, email: str, password: str) -> AuthResponse:
        data = await self._json("POST", "/auth/login", json={"email": email, "password": password})
        auth = _parse(AuthResponse, data)
        self.token = auth.access_token
        return auth

    async def logout(self) -> None:
        try:
            await self._request("POST", "/auth/logout")
        finally:
            self.token = None

    async def me(self) -> UserResponse:
        return _parse(UserResponse, await self._json("GET", "/auth/me"))

    async def request_password_reset(self, email: str) -> None:
        await self._request("POST", "/auth/password-reset", json={"email": email})

    async def confirm_password_reset(self, token: str, new_password: str) -> None:
        await self._request("POST", "/auth/password-reset/confirm", json={
            "token": token, "new_password": new_password,
        })

    # ==================== Lists ====================

    async def get_lists(self, search: Optional[str] = None) -> List[ListResponse]:
        params = {"search": search} if search else None
        data = await self._json("GET", "/api/lists", params=params)
        return [_parse(ListResponse, item) for item in data]

    async def get_list(self, list_id: str) -> ListResponse:
        return _parse(ListResponse, await self._json("GET", f"/api/lists/{list_id}"))

    async def create_list(self, payload: ListCreate) -> ListResponse:
        data = await self._json("POST", "/api/lists", json=payload.model_dump(mode="json"))
        return _parse(ListResponse, data)

    async def update_details(self, list_id: str, payload: ListDetailsUpdate) -> ListResponse:
        data = await self._json(
            "PUT", f"/api/lists/{list_id}/details", json=payload.model_dump(mode="json")
        )
        return _parse(ListResponse, data)

    async def replace_items(self, list_id: str, payload: ListItemsReplace) -> ListResponse:
        data = await self._json(
            "PUT", f"/api/lists/{list_id}/items", json=payload.model_dump(mode="json")
        )
        return _parse(ListResponse, data)

    async def delete_list(self, list_id: str) -> None:
        await self._request("DELETE", f"/api/lists/{list_id}")

    # ==================== Items ====================

    async def add_item(self, list_id: str, payload: ItemCreate) -> ItemMutationResponse:
        data = await self._json(
            "POST", f"/api/lists/{list_id}/items", json=payload.model_dump(mode="json")
        )
        return _parse(ItemMutationResponse, data)

    async def update_item(self, list_id: str, item_id: str, payload: ItemUpdate) -> ItemMutationResponse:
        data = await self._json(
            "PUT", f"/api/lists/{list_id}/items/{item_id}", json=payload.model_dump(mode="json")
        )
        return _parse(ItemMutationResponse, data)

    async def remove_item(self, list_id: str, item_id: str) -> ItemMutationResponse:
        data = await self._json("DELETE", f"/api/lists/{list_id}/items/{item_id}")
        return _parse(ItemMutationResponse, data)

    async def previous_items(self) -> List[PreviousItem]:
        data = await self._json("GET", "/api/items/previous")
        return [_parse(PreviousItem, item) for item in data]

    async def dashboard(self) -> DashboardResponse:
        return _parse(DashboardResponse, await self._json("GET", "/api/dashboard"))

    # ==================== Export ====================

    async def download_pdf(self, list_id: str) -> bytes:
        response = await self._request("GET", f"/api/lists/{list_id}/pdf")
        return response.content

    async def fetch_print_preview(self, list_id: str, language: Optional[str] = None) -> str:
        """Fetch the printable HTML page, labelled in ``language`` when given.

        A failed load is retried exactly once with a ``_ts`` cache-busting
        parameter; the second failure is raised.
        """
        path = f"/print-preview/{list_id}"
        params = {"lang": language} if language else {}
        try:
            response = await self._request("GET", path, params=params)
        except BackendAuthError:
            raise
        except BackendError as e:
            logger.warning("Print preview failed (%s), retrying without cache", e.detail)
            response = await self._request(
                "GET", path, params={**params, "_ts": str(int(time.time() * 1000))}
            )
        return response.text

    # ==================== Functions ====================

    async def generate_price(self, item_name: str, quantity: float, unit: str) -> float:
        data = await self._json("POST", "/functions/generate-price", json={
            "itemName": item_name, "quantity": quantity, "unit": unit,
        })
        return _parse(PriceResponse, data).price

    async def extract_text(self, content: bytes, filename: str, content_type: str = "image/png") -> OCRResponse:
        files = {"file": (filename, content, content_type)}
        data = await self._json("POST", "/functions/extract-text-ocr", files=files)
        return _parse(OCRResponse, data)

    async def catalog(self, category: str = "all") -> List[CatalogItem]:
        data: Dict[str, Any] = await self._json(
            "POST", "/functions/bangladeshi-grocery-items", json={"category": category}
        )
        return [_parse(CatalogItem, item) for item in data.get("items", [])]
