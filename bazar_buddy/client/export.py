"""Save a grocery list as a printable file."""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from ..core.config import settings
from ..core.logging import get_logger
from ..web.pdf_utils import generate_pdf_for_list
from .backend import BackendAuthError, BackendClient, BackendError
from .store import GroceryStore

logger = get_logger(__name__)


@dataclass
class ExportResult:
    path: Path
    strategy: str  # "print-preview" or "local-pdf"


class ListExporter:
    """Export a list as the server's print page, or as a locally rendered PDF."""

    def __init__(
        self,
        client: BackendClient,
        store: Optional[GroceryStore] = None,
        language: Optional[str] = None,
    ):
        self.client = client
        self.store = store
        self.language = language or (store.language if store else None)

    async def export(self, list_id: str, path: Path) -> ExportResult:
        """Write ``path`` with an ``.html`` or ``.pdf`` suffix, whichever strategy worked.

        Raises:
            BackendError: when the list can be neither previewed nor loaded.
        """
        path = Path(path)
        try:
            html = await self.client.fetch_print_preview(list_id, self.language)
        except BackendAuthError:
            raise
        except BackendError as e:
            logger.warning("Print preview unavailable (%s); rendering PDF locally", e.detail)
        else:
            target = path.with_suffix(".html")
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(html, encoding="utf-8")
            return ExportResult(target, "print-preview")

        grocery_list = self.store.get_list(list_id) if self.store else None
        if grocery_list is None:
            grocery_list = await self.client.get_list(list_id)

        target = path.with_suffix(".pdf")
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(generate_pdf_for_list(grocery_list, settings.currency))
        return ExportResult(target, "local-pdf")
