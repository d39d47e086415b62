"""Claude LLM backend using the Anthropic API."""

from __future__ import annotations

import logging
import time

from errors import RemoteError
from llm.base import BaseLLM

log = logging.getLogger(__name__)


class ClaudeLLM(BaseLLM):
    """LLM backend that calls the Anthropic Claude API."""

    def __init__(self, config: dict):
        super().__init__(config)

        api_key = config.get("anthropic_api_key")
        if not api_key:
            raise ValueError(
                "ANTHROPIC_API_KEY is required for claude LLM mode. "
                "Set it in .env or as an environment variable."
            )

        import anthropic

        self._api_error = anthropic.APIError
        self._client = anthropic.Anthropic(api_key=api_key)
        self._model = config.get("llm_model", "claude-sonnet-4-5-20250929")
        self._max_tokens = config.get("llm_max_tokens", 256)
        self._temperature = config.get("llm_temperature", 0.8)

    def _complete(self, messages: list[dict]) -> str:
        t0 = time.monotonic()
        try:
            message = self._client.messages.create(
                model=self._model,
                max_tokens=self._max_tokens,
                temperature=self._temperature,
                system=self.system_prompt,
                messages=messages,
            )
        except self._api_error as exc:
            log.exception("Claude API error")
            raise RemoteError(f"Claude API error: {exc}") from exc

        log.info(
            "Claude replied in %dms (stop=%s, %d in / %d out tokens)",
            int((time.monotonic() - t0) * 1000),
            message.stop_reason,
            message.usage.input_tokens,
            message.usage.output_tokens,
        )
        text = "".join(block.text for block in message.content if block.type == "text")
        if not text.strip():
            raise RemoteError(f"Claude returned no text (stop_reason={message.stop_reason})")
        return text
