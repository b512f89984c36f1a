from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Optional

import anthropic

from entity_seo_web.domain.errors import UpstreamError
from entity_seo_web.services.query_client import PersonaQueryClient

logger = logging.getLogger(__name__)

WEB_SEARCH_TOOL = {
    "type": "web_search_20250305",
    "name": "web_search",
}


@dataclass
class AnthropicQueryClient(PersonaQueryClient):
    """
    Adapter: one Messages API call per prompt, with web search enabled.
    No retries here; the SDK's own retry loop is switched off.
    """
    api_key: str
    model: str = "claude-sonnet-4-20250514"
    max_tokens: int = 1500
    timeout_seconds: float = 120.0
    _client: Optional[Any] = field(default=None, init=False, repr=False)

    def _get_client(self):
        if not self.api_key:
            raise UpstreamError("ANTHROPIC_API_KEY is not configured.")
        if self._client is None:
            self._client = anthropic.Anthropic(
                api_key=self.api_key,
                timeout=self.timeout_seconds,
                max_retries=0,
            )
        return self._client

    def query(self, prompt: str) -> str:
        client = self._get_client()

        try:
            response = client.messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                tools=[WEB_SEARCH_TOOL],
                messages=[{"role": "user", "content": prompt}],
            )
        except anthropic.APIStatusError as e:
            raise UpstreamError(f"Model provider returned {e.status_code}: {e.message}") from e
        except anthropic.APIError as e:
            raise UpstreamError(f"Model provider call failed: {e}") from e

        usage = getattr(response, "usage", None)
        if usage is not None:
            logger.info("Model call: %s in, %s out", usage.input_tokens, usage.output_tokens)

        return extract_text(response.content or [])


def extract_text(blocks) -> str:
    """Concatenate text-typed content blocks in order; tool-use and search-result blocks are skipped."""
    return "\n".join(
        getattr(b, "text", "") or ""
        for b in blocks
        if getattr(b, "type", None) == "text"
    )
