"""Client for the Bazar Buddy backend: HTTP access, local state, export."""

from .backend import BackendClient, BackendError, BackendAuthError
from .store import AuthStore, GroceryStore, Notification
from .export import ListExporter, ExportResult
from .forms import parse_quantity_input, validate_new_list

__all__ = [
    "BackendClient",
    "BackendError",
    "BackendAuthError",
    "AuthStore",
    "GroceryStore",
    "Notification",
    "ListExporter",
    "ExportResult",
    "parse_quantity_input",
    "validate_new_list",
]
