# services/llm_client.py

import logging
from typing import Optional

from openai import OpenAI, OpenAIError

from config.settings import Settings
from services.errors import UpstreamError

logger = logging.getLogger(__name__)

class LLMClient:
    """Thin wrapper over an OpenAI-compatible chat-completion endpoint."""

    def __init__(
        self,
        api_key: str,
        base_url: str,
        model: str,
        temperature: float = 0.7,
        max_tokens: int = 1024,
        timeout: float = 30.0,
        client: Optional[OpenAI] = None,
    ):
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        # No retries: a failed call surfaces once to the waiting request
        self._client = client or OpenAI(
            api_key=api_key,
            base_url=base_url,
            timeout=timeout,
            max_retries=0,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "LLMClient":
        return cls(
            api_key=settings.GROQ_API_KEY,
            base_url=settings.LLM_BASE_URL,
            model=settings.LLM_MODEL,
            temperature=settings.LLM_TEMPERATURE,
            max_tokens=settings.LLM_MAX_TOKENS,
            timeout=settings.LLM_TIMEOUT,
        )

    def complete(self, prompt: str, json_mode: bool = False) -> str:
        logger.info("🤖 Calling LLM API (model=%s, json_mode=%s)", self.model, json_mode)

        kwargs = {}
        if json_mode:
            kwargs["response_format"] = {"type": "json_object"}

        try:
            response = self._client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
                temperature=self.temperature,
                max_tokens=self.max_tokens,
                **kwargs,
            )
        except OpenAIError as e:
            logger.error("LLM API error: %s", e)
            raise UpstreamError(f"LLM API failed: {e}") from e

        if not response.choices or response.choices[0].message.content is None:
            raise UpstreamError("LLM API failed: response contained no message content")

        return response.choices[0].message.content.strip()
