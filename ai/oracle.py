"""OpenAI-backed reasoning oracle.

Module purpose and system role:
    - Answer one free-text prompt with free-text output; no schema.
    - Used by :class:`ai.adjudicator.ReasoningAdjudicator` for warning-status
      transactions.

Integration points and dependencies:
    - ``openai`` AsyncOpenAI client, created per call so that concurrent
      requests on separate event loops never share a connection pool.
    - API key from ``OPENAI_API_KEY`` / ``OPENAI_API_KEY_FILE``.
"""

from __future__ import annotations

from typing import Any, Optional, cast

from core.config import get_secret
from core.logger import StructuredLogger

LOG = StructuredLogger("oracle")


class OpenAIOracle:
    """Single-shot chat completion against the configured model."""

    def __init__(
        self,
        model: str = "gpt-3.5-turbo",
        *,
        temperature: float = 0.0,
        api_key: Optional[str] = None,
    ) -> None:
        self.model = model
        self.temperature = temperature
        self._api_key = api_key

    async def complete(self, prompt: str) -> str:
        """Submit ``prompt`` and return the text of the first choice."""

        import openai as openai_module  # imported here to simplify testing/mocking
        openai_client = cast(Any, openai_module)

        client = openai_client.AsyncOpenAI(api_key=self._api_key or get_secret("OPENAI_API_KEY"))
        try:
            resp = await client.chat.completions.create(
                model=self.model,
                temperature=self.temperature,
                messages=[{"role": "user", "content": prompt}],
            )
        finally:
            await client.close()
        message = cast(Optional[str], resp.choices[0].message.content) or ""
        LOG.log("oracle_response", model=self.model, response=message)
        return message
