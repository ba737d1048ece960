"""Client-side state for the signed-in user and their grocery lists.

Both stores follow the same rule: the network call happens first, local
state is only reconciled from what the backend answered. Failures become
notifications instead of exceptions.
"""

import json
import os
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Callable, List, Optional, Sequence

from pydantic import ValidationError

from ..core.config import settings
from ..core.exceptions import ListValidationError
from ..core.i18n import gettext, resolve_language
from ..core.logging import get_logger
from ..models.schemas import (
    ItemCreate,
    ItemResponse,
    ItemUpdate,
    ListCreate,
    ListDetailsUpdate,
    ListItemsReplace,
    ListResponse,
    UserResponse,
)
from ..services.price_service import estimate_price_locally
from .backend import BackendAuthError, BackendClient, BackendError
from .forms import validate_new_list

logger = get_logger(__name__)


@dataclass
class Notification:
    """A user-facing message about the outcome of an action."""
    title: str
    description: str = ""
    variant: str = "default"
    created_at: datetime = field(default_factory=datetime.utcnow)

    @property
    def is_error(self) -> bool:
        return self.variant == "destructive"


class _NotifyingStore:

    def __init__(self, notify: Callable[[Notification], None] = None, language: Optional[str] = None):
        self.notifications: List[Notification] = []
        self._notify = notify
        self.language = resolve_language(language)

    def notify(self, title: str, /, description: str = "", variant: str = "default", **params) -> Notification:
        """Record a message in the store's language; ``params`` fill ``{name}`` fields."""
        title = gettext(title, self.language)
        description = gettext(description, self.language)
        if params:
            description = description.format(**params)
        notification = Notification(title=title, description=description, variant=variant)
        self.notifications.append(notification)
        if self._notify:
            self._notify(notification)
        return notification

    def notify_error(self, title: str, error) -> Notification:
        description = error.detail if isinstance(error, BackendError) else str(error)
        return self.notify(title, description, variant="destructive")


class AuthStore(_NotifyingStore):
    """Sign-in state, persisted to a session file between CLI runs."""

    def __init__(
        self,
        client: BackendClient,
        session_file: Optional[Path] = None,
        notify: Callable[[Notification], None] = None,
        language: Optional[str] = None,
    ):
        super().__init__(notify, language)
        self.client = client
        self.session_file = Path(session_file or settings.client.session_file).expanduser()
        self.user: Optional[UserResponse] = None

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None and self.client.is_authenticated

    async def register(self, name: str, email: str, password: str) -> bool:
        try:
            auth = await self.client.register(name, email, password)
        except BackendError as e:
            self.notify_error("Registration failed", e)
            return False

        self._remember(auth.user)
        self.notify("Registration successful", "Welcome to {app}!", app=settings.app_name)
        return True

    async def login(self, email: str, password: str) -> bool:
        try:
            auth = await self.client.login(email, password)
        except BackendError as e:
            self.notify_error("Login failed", e)
            return False

        self._remember(auth.user)
        self.notify("Login successful", "Welcome back to {app}!", app=settings.app_name)
        return True

    async def logout(self) -> None:
        """Sign out locally even when the server cannot be told."""
        try:
            await self.client.logout()
        except BackendError as e:
            logger.warning("Server-side logout failed: %s", e.detail)
        self.user = None
        self.clear_session()
        self.notify("Logged out", "You have been successfully logged out")

    async def restore(self) -> bool:
        """Load a saved session and confirm it with the server."""
        if not self.session_file.exists():
            return False
        try:
            data = json.loads(self.session_file.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning("Ignoring unreadable session file %s: %s", self.session_file, e)
            return False

        token = data.get("token")
        if not token:
            return False
        self.client.token = token

        try:
            self.user = await self.client.me()
        except BackendAuthError:
            self.client.token = None
            self.clear_session()
            self.notify("Session expired", "Please sign in again", variant="destructive")
            return False
        except BackendError as e:
            self.notify_error("Could not restore session", e)
            return False
        return True

    async def request_password_reset(self, email: str) -> bool:
        try:
            await self.client.request_password_reset(email)
        except BackendError as e:
            self.notify_error("Reset failed", e)
            return False
        self.notify("Check your email", "If an account exists, a reset code has been sent.")
        return True

    async def confirm_password_reset(self, token: str, new_password: str) -> bool:
        try:
            await self.client.confirm_password_reset(token, new_password)
        except BackendError as e:
            self.notify_error("Reset failed", e)
            return False
        self.notify("Password updated", "Sign in with your new password.")
        return True

    def clear_session(self) -> None:
        if self.session_file.exists():
            self.session_file.unlink()

    def _remember(self, user: UserResponse) -> None:
        self.user = user
        self.session_file.parent.mkdir(parents=True, exist_ok=True)
        self.session_file.write_text(json.dumps({
            "token": self.client.token,
            "user": user.model_dump(),
            "api_base_url": self.client.base_url,
        }), encoding="utf-8")
        os.chmod(self.session_file, 0o600)


class GroceryStore(_NotifyingStore):
    """The client's copy of the user's lists, kept in step with the backend."""

    def __init__(
        self,
        client: BackendClient,
        notify: Callable[[Notification], None] = None,
        language: Optional[str] = None,
    ):
        super().__init__(notify, language)
        self.client = client
        self.lists: List[ListResponse] = []
        self.current_list_id: Optional[str] = None

    # ==================== Queries ====================

    def get_list(self, list_id: str) -> Optional[ListResponse]:
        for grocery_list in self.lists:
            if grocery_list.id == list_id:
                return grocery_list
        return None

    @property
    def current_list(self) -> Optional[ListResponse]:
        if self.current_list_id is None:
            return None
        return self.get_list(self.current_list_id)

    def select_list(self, list_id: Optional[str]) -> Optional[ListResponse]:
        self.current_list_id = list_id
        return self.current_list

    async def refresh(self) -> bool:
        """Reload every list from the server, newest first."""
        try:
            self.lists = await self.client.get_lists()
        except BackendError as e:
            self.notify_error("Could not load lists", e)
            return False
        return True

    # ==================== List mutations ====================

    async def create_list(
        self, title: str, month: str, year: int, items: Sequence[ItemCreate]
    ) -> Optional[str]:
        """Create a list and return its id, or None when it was rejected."""
        try:
            validate_new_list(title, items)
            payload = ListCreate(title=title, month=month, year=year, items=list(items))
        except ListValidationError as e:
            self.notify("Missing Information", e.message, variant="destructive")
            return None
        except ValidationError as e:
            self.notify("Invalid list", _validation_message(e), variant="destructive")
            return None

        if not self.client.is_authenticated:
            self.notify("Not signed in", "Please sign in to create lists", variant="destructive")
            return None

        try:
            created = await self.client.create_list(payload)
        except BackendError as e:
            self.notify_error("Could not create list", e)
            return None

        self.lists.insert(0, created)
        self.notify("List Created", "{title} has been created successfully.", title=created.title)
        return created.id

    async def update_list(
        self,
        list_id: str,
        details: Optional[ListDetailsUpdate] = None,
        items: Optional[ListItemsReplace] = None,
    ) -> bool:
        """Persist the given commands, then reload the full list set.

        The reload also happens after a failure, since the details may
        already have been saved when the item replacement is rejected.
        """
        try:
            if details is not None:
                await self.client.update_details(list_id, details)
            if items is not None:
                await self.client.replace_items(list_id, items)
        except BackendError as e:
            await self.refresh()
            self.notify_error("Could not update list", e)
            return False

        if not await self.refresh():
            return False
        self.notify("List Updated", "Your grocery list has been updated successfully.")
        return True

    async def delete_list(self, list_id: str) -> bool:
        try:
            await self.client.delete_list(list_id)
        except BackendError as e:
            self.notify_error("Could not delete list", e)
            return False

        self.lists = [lst for lst in self.lists if lst.id != list_id]
        if self.current_list_id == list_id:
            self.current_list_id = None
        self.notify("List Deleted", "Your grocery list has been deleted.")
        return True

    # ==================== Item mutations ====================

    async def add_item(self, list_id: str, item: ItemCreate) -> Optional[ItemResponse]:
        try:
            result = await self.client.add_item(list_id, item)
        except BackendError as e:
            self.notify_error("Could not add item", e)
            return None

        self._apply(list_id, lambda items: items + [result.item], result.total_estimated_price)
        return result.item

    async def update_item(self, list_id: str, item_id: str, item: ItemUpdate) -> Optional[ItemResponse]:
        try:
            result = await self.client.update_item(list_id, item_id, item)
        except BackendError as e:
            self.notify_error("Could not update item", e)
            return None

        self._apply(
            list_id,
            lambda items: [result.item if i.id == item_id else i for i in items],
            result.total_estimated_price,
        )
        return result.item

    async def remove_item(self, list_id: str, item_id: str) -> bool:
        try:
            result = await self.client.remove_item(list_id, item_id)
        except BackendError as e:
            self.notify_error("Could not remove item", e)
            return False

        self._apply(list_id, lambda items: [i for i in items if i.id != item_id], result.total_estimated_price)
        return True

    # ==================== Pricing ====================

    async def generate_price_suggestion(self, name: str, quantity: float, unit: str) -> float:
        """Remote estimate, or the local heuristic when the remote call fails."""
        try:
            return await self.client.generate_price(name, quantity, unit)
        except BackendError as e:
            logger.warning("Remote price estimate failed (%s); using local estimate", e.detail)
            return estimate_price_locally(name, quantity, unit)

    def _apply(self, list_id: str, change, total: float) -> None:
        """Replace a cached list with its items changed and the server's total."""
        for index, grocery_list in enumerate(self.lists):
            if grocery_list.id == list_id:
                self.lists[index] = grocery_list.model_copy(update={
                    "items": change(list(grocery_list.items)),
                    "total_estimated_price": total,
                })
                return


def _validation_message(error: ValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}" for err in error.errors()
    )
