"""Minimal client for OpenAI-compatible chat completion endpoints."""

from typing import Dict, List, Optional

import httpx

from ..core.config import PricingConfig, settings
from ..core.exceptions import ExternalServiceError
from ..core.logging import get_logger

logger = get_logger(__name__)


class ChatCompletionClient:
    """Sends chat prompts and returns the assistant text."""

    def __init__(self, config: PricingConfig = None, transport: httpx.AsyncBaseTransport = None):
        self.config = config or settings.pricing
        self._transport = transport

    @property
    def is_configured(self) -> bool:
        return bool(self.config.api_key)

    async def complete(
        self,
        messages: List[Dict[str, str]],
        max_tokens: int = 200,
        temperature: float = 0.3,
    ) -> str:
        """Return the content of the first choice.

        Raises:
            ExternalServiceError: no API key, transport failure, or a
                response without content.
        """
        if not self.is_configured:
            raise ExternalServiceError("Price generation is not configured")

        payload = {
            "model": self.config.model,
            "messages": messages,
            "max_tokens": max_tokens,
            "temperature": temperature,
        }
        headers = {"Authorization": f"Bearer {self.config.api_key}"}

        try:
            async with httpx.AsyncClient(
                base_url=self.config.base_url,
                timeout=self.config.timeout,
                transport=self._transport,
            ) as client:
                response = await client.post("/chat/completions", json=payload, headers=headers)
                response.raise_for_status()
                data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("Chat completion request failed: %s", e)
            raise ExternalServiceError("Language model request failed") from e

        content: Optional[str] = None
        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError):
            pass
        if not content:
            raise ExternalServiceError("Language model returned no content")
        return content.strip()
