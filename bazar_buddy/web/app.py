"""Printable views of grocery lists."""

from datetime import datetime
from pathlib import Path
from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse, Response
from fastapi.templating import Jinja2Templates

from ..core.config import settings
from ..core.i18n import gettext, resolve_language
from ..models.schemas import ListResponse
from ..services.grocery_service import GroceryService
from .dependencies import get_grocery_service
from .pdf_utils import format_currency, format_quantity, generate_pdf_for_list

router = APIRouter()

# Setup templates
templates_dir = Path(__file__).parent / "templates"
templates = Jinja2Templates(directory=str(templates_dir))
templates.env.filters["currency"] = lambda amount: format_currency(amount, settings.currency)
templates.env.filters["quantity"] = format_quantity


@router.get("/print-preview/{list_id}", response_class=HTMLResponse)
async def print_preview(
    request: Request,
    list_id: str,
    lang: Optional[str] = None,
    service: GroceryService = Depends(get_grocery_service),
):
    """Printable A4 page for a list, labelled in ``lang`` (en or bn)."""
    grocery_list = ListResponse.model_validate(await service.require_list(list_id))
    language = resolve_language(lang)

    return templates.TemplateResponse(request, "print_preview.html", {
        "language": language,
        "t": lambda message: gettext(message, language),
        "list": grocery_list,
        "app_name": settings.app_name,
        "currency": settings.currency,
        "printed_on": datetime.now().strftime("%Y-%m-%d"),
    })


@router.get("/api/lists/{list_id}/pdf")
async def download_pdf(
    list_id: str,
    service: GroceryService = Depends(get_grocery_service),
):
    """PDF rendition of a list."""
    grocery_list = ListResponse.model_validate(await service.require_list(list_id))
    pdf = generate_pdf_for_list(grocery_list, settings.currency)

    filename = f"{grocery_list.title.replace(' ', '_')}.pdf".encode("ascii", "ignore").decode()
    return Response(
        content=pdf,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{filename or "list.pdf"}"'},
    )
