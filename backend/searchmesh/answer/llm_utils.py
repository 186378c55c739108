"""Generation collaborator: chat completions against an OpenAI-compatible endpoint."""

import asyncio
import logging
from typing import Any, Optional, Sequence

from openai import OpenAI, OpenAIError

from searchmesh.config import Settings
from searchmesh.errors import EmptyGenerationError, GenerationError

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = "You are a helpful AI assistant with access to web search."


def get_client(settings: Settings) -> OpenAI:
    if not settings.llm_base_url:
        raise ValueError("LLM_BASE_URL environment variable is required")
    return OpenAI(base_url=settings.llm_base_url, api_key=settings.llm_api_key or "unused")


class Generator:
    """
    Produces the answer text for one turn.

    `history` is a sequence of {"role", "content"} dicts, oldest first. Blank
    output raises EmptyGenerationError; any client failure raises
    GenerationError.
    """

    def __init__(self, client: OpenAI, model: str, temperature: float = 0.15):
        self.client = client
        self.model = model
        self.temperature = temperature

    @classmethod
    def from_settings(cls, settings: Settings) -> "Generator":
        return cls(get_client(settings), settings.llm_model, settings.llm_temperature)

    def _complete(self, messages: list[dict[str, str]], options: dict[str, Any]) -> str:
        response = self.client.chat.completions.create(
            model=self.model,
            messages=messages,
            temperature=options.get("temperature", self.temperature),
        )
        return response.choices[0].message.content or ""

    async def generate(
        self,
        prompt: str,
        history: Sequence[dict[str, str]] = (),
        options: Optional[dict[str, Any]] = None,
    ) -> str:
        messages = [{"role": "system", "content": SYSTEM_PROMPT}]
        messages.extend({"role": m["role"], "content": m["content"]} for m in history if m["role"] != "system")
        messages.append({"role": "user", "content": prompt})
        try:
            text = await asyncio.to_thread(self._complete, messages, options or {})
        except OpenAIError as e:
            logger.error(f"Generation failed: {e}")
            raise GenerationError(str(e)) from e
        if not text.strip():
            raise EmptyGenerationError("Empty response from the generation endpoint")
        return text
