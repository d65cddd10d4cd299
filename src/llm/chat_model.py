# src/llm/chat_model.py

"""Single-turn chat completion wrapper around the OpenAI SDK."""

import logging
import time

from openai import OpenAI, OpenAIError

from src.config.settings import Settings
from src.models.errors import LanguageModelError

logger = logging.getLogger("prixnc_ai.llm")


class ChatModel:
    """Prompt in, text out.

    The hosted model is treated as a pure function of (prompt,
    temperature).  The SDK's own retries are disabled so a failure
    surfaces to the caller straight away.
    """

    def __init__(
        self,
        model: str | None = None,
        client: OpenAI | None = None,
    ) -> None:
        self.model = model or Settings.OPENAI_MODEL
        self._client = client

    def _get_client(self) -> OpenAI:
        if self._client is None:
            self._client = OpenAI(
                api_key=Settings.OPENAI_API_KEY,
                base_url=Settings.OPENAI_BASE_URL,
                timeout=Settings.LLM_TIMEOUT,
                max_retries=0,
            )
        return self._client

    def complete(self, prompt: str, temperature: float) -> str:
        """Send *prompt* as one user message and return the reply text."""
        t0 = time.perf_counter()
        try:
            completion = self._get_client().chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
                temperature=temperature,
            )
        except OpenAIError as exc:
            logger.error(
                "Chat completion failed (model=%s): %s",
                self.model,
                exc,
                exc_info=True,
            )
            raise LanguageModelError(str(exc)) from exc

        choices = getattr(completion, "choices", None) or []
        text = choices[0].message.content if choices else None
        logger.info(
            "Chat completion model=%s temperature=%.1f finished in %.2fs "
            "(%d chars)",
            self.model,
            temperature,
            time.perf_counter() - t0,
            len(text or ""),
        )
        return text or ""
