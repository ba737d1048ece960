"""Text extraction from receipts and handwritten lists."""

import base64
import re
from typing import List, Optional

import httpx

from ..core.config import OCRConfig, settings
from ..core.exceptions import ExternalServiceError
from ..core.logging import get_logger
from ..models.grocery import Unit
from ..models.schemas import OCRResponse, ParsedItem

logger = get_logger(__name__)

VISION_URL = "https://vision.googleapis.com/v1/images:annotate"
OCR_SPACE_URL = "https://api.ocr.space/parse/image"

# Spoken unit names mapped onto the stored unit codes
UNIT_ALIASES = {
    "kg": Unit.KG, "kgs": Unit.KG, "kilo": Unit.KG, "kilogram": Unit.KG, "kilograms": Unit.KG,
    "g": Unit.G, "gm": Unit.G, "gram": Unit.G, "grams": Unit.G,
    "lb": Unit.LB, "lbs": Unit.LB, "pound": Unit.LB, "pounds": Unit.LB,
    "pc": Unit.PCS, "pcs": Unit.PCS, "piece": Unit.PCS, "pieces": Unit.PCS,
    "l": Unit.L, "liter": Unit.L, "liters": Unit.L, "litre": Unit.L, "litres": Unit.L,
    "ml": Unit.ML, "milliliter": Unit.ML, "milliliters": Unit.ML,
    "dozen": Unit.DOZEN, "dz": Unit.DOZEN,
}

_LINE_RE = re.compile(
    r"^\s*(?P<name>[^\d\-:]+?)\s*[-:]?\s*(?P<qty>\d+(?:\.\d+)?)\s*(?P<unit>[^\W\d_]+)?\s*$"
)


def parse_item_lines(text: str) -> List[ParsedItem]:
    """Turn lines such as ``Rice - 2 kg`` or ``Onions - 500g`` into items.

    Lines without a quantity are skipped; an unknown or missing unit becomes pcs.
    """
    items = []
    for line in text.splitlines():
        match = _LINE_RE.match(line)
        if not match:
            continue
        unit_word = (match.group("unit") or "").lower()
        unit = UNIT_ALIASES.get(unit_word, Unit.PCS)
        items.append(ParsedItem(
            name=match.group("name").strip(),
            quantity=float(match.group("qty")),
            unit=unit.value,
        ))
    return items


class OCRService:
    """Extract text with Google Vision, falling back to OCR.space."""

    def __init__(self, config: OCRConfig = None, transport: httpx.AsyncBaseTransport = None):
        self.config = config or settings.ocr
        self._transport = transport

    async def extract(self, content: bytes, content_type: str = "image/png") -> OCRResponse:
        """Run OCR on an uploaded file.

        Raises:
            ExternalServiceError: when no OCR provider is configured.
        """
        if not self.config.google_vision_api_key and not self.config.ocr_space_api_key:
            raise ExternalServiceError("OCR is not configured")

        encoded = base64.b64encode(content).decode("ascii")

        async with httpx.AsyncClient(timeout=self.config.timeout, transport=self._transport) as client:
            text, engine = None, None
            if self.config.google_vision_api_key:
                text = await self._google_vision(client, encoded)
                engine = "google-vision"
            if not text and self.config.ocr_space_api_key:
                text = await self._ocr_space(client, encoded, content_type)
                engine = "ocr-space"

        if not text:
            return OCRResponse(success=False, error="No text could be extracted from the image")

        text = text.strip()
        return OCRResponse(
            success=True,
            extracted_text=text,
            engine=engine,
            items=parse_item_lines(text),
        )

    async def _google_vision(self, client: httpx.AsyncClient, encoded: str) -> Optional[str]:
        body = {
            "requests": [{
                "image": {"content": encoded},
                "features": [{"type": "TEXT_DETECTION", "maxResults": 50}],
                "imageContext": {"languageHints": ["en", "bn"]},
            }]
        }
        try:
            response = await client.post(
                VISION_URL, params={"key": self.config.google_vision_api_key}, json=body
            )
            response.raise_for_status()
            annotations = response.json()["responses"][0].get("textAnnotations") or []
        except (httpx.HTTPError, ValueError, KeyError, IndexError) as e:
            logger.warning("Google Vision OCR failed: %s", e)
            return None
        return annotations[0].get("description") if annotations else None

    async def _ocr_space(self, client: httpx.AsyncClient, encoded: str, content_type: str) -> Optional[str]:
        form = {
            "base64Image": f"data:{content_type};base64,{encoded}",
            "language": "ben",
            "isOverlayRequired": "false",
            "detectOrientation": "true",
            "scale": "true",
            "OCREngine": "2",
        }
        try:
            response = await client.post(
                OCR_SPACE_URL, headers={"apikey": self.config.ocr_space_api_key}, data=form
            )
            response.raise_for_status()
            results = response.json().get("ParsedResults") or []
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("OCR.space request failed: %s", e)
            return None
        return results[0].get("ParsedText") if results else None
