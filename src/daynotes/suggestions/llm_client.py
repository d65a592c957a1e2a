"""LLM client for the configured hosted model (Anthropic, OpenAI, or Ollama)."""

from __future__ import annotations

import json
import logging
import time
from typing import Any

from anthropic import Anthropic
from openai import OpenAI
from openai.types.chat import ChatCompletionMessageParam

from daynotes.config import Settings, get_settings

logger = logging.getLogger(__name__)


class LLMClient:
    """Send one chat request to the configured provider. No retries, no fallback."""

    def __init__(self, settings: Settings | None = None) -> None:
        self._settings = settings or get_settings()
        self.provider = self._settings.suggestion_provider
        self._anthropic_client: Anthropic | None = None
        self._openai_client: OpenAI | None = None

    @property
    def model_name(self) -> str:
        """Model used by the configured provider."""
        if self.provider == "anthropic":
            return self._settings.suggestion_model
        if self.provider == "ollama":
            return self._settings.ollama_model
        return self._settings.openai_model

    @property
    def anthropic_client(self) -> Anthropic | None:
        """Lazy-load Anthropic client (None if no API key)."""
        if self._anthropic_client is None and self._settings.anthropic_api_key:
            self._anthropic_client = Anthropic(api_key=self._settings.anthropic_api_key)
        return self._anthropic_client

    @property
    def openai_client(self) -> OpenAI | None:
        """Lazy-load OpenAI client, pointed at Ollama when that provider is selected."""
        if self._openai_client is None:
            if self.provider == "ollama":
                self._openai_client = OpenAI(
                    base_url=self._settings.ollama_base_url,
                    api_key="ollama",
                )
            elif self._settings.openai_api_key:
                self._openai_client = OpenAI(api_key=self._settings.openai_api_key)
        return self._openai_client

    def chat(self, system_prompt: str, user_prompt: str) -> str:
        """Send a chat completion and return the assistant's response text."""
        start = time.perf_counter()
        if self.provider == "anthropic":
            client = self.anthropic_client
            if client is None:
                raise RuntimeError("Anthropic API key not configured")
            logger.info("Calling Anthropic (%s)...", self.model_name)
            response = client.messages.create(
                model=self.model_name,
                max_tokens=1000,
                system=system_prompt,
                messages=[{"role": "user", "content": user_prompt}],
            )
            content = response.content[0].text  # type: ignore[union-attr]
        else:
            oai_client = self.openai_client
            if oai_client is None:
                raise RuntimeError("OpenAI API key not configured")
            messages: list[ChatCompletionMessageParam] = [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ]
            logger.info("Calling %s (%s)...", self.provider, self.model_name)
            oai_response = oai_client.chat.completions.create(
                model=self.model_name,
                messages=messages,
                temperature=0.7,
                max_tokens=1000,
            )
            content = oai_response.choices[0].message.content or ""
        logger.info(
            "%s responded in %.0fms", self.provider, (time.perf_counter() - start) * 1000
        )
        return content

    def chat_json(self, system_prompt: str, user_prompt: str) -> Any:
        """Send a chat completion and parse the response as JSON.

        The system prompt should instruct the model to return valid JSON.
        """
        raw = self.chat(system_prompt, user_prompt)

        # Strip markdown code fences if present
        cleaned = raw.strip()
        if cleaned.startswith("```"):
            # Remove first line (```json or ```) and last line (```)
            lines = cleaned.split("\n")
            lines = lines[1:]  # remove opening fence
            if lines and lines[-1].strip() == "```":
                lines = lines[:-1]
            cleaned = "\n".join(lines)

        return json.loads(cleaned)
