"""Anthropic Claude analysis backend with retry logic."""

from __future__ import annotations

import logging
import os
import time

from drive_analyzer.exceptions import LLMError
from drive_analyzer.llm.base import SYSTEM_PROMPT, BaseAnalyzer, build_analysis_prompt
from drive_analyzer.results import Err, Ok, Result

logger = logging.getLogger(__name__)

DEFAULT_CLAUDE_MODEL = os.environ.get("DRIVE_ANALYZER_CLAUDE_MODEL", "claude-haiku-4-5-20251001")


class AnthropicAnalyzer(BaseAnalyzer):
    """Direct Claude backend, for users without an OpenRouter account."""

    def __init__(
        self,
        api_key: str | None = None,
        model: str = DEFAULT_CLAUDE_MODEL,
        max_retries: int = 1,
    ):
        if not api_key and not os.environ.get("ANTHROPIC_API_KEY"):
            raise LLMError(
                "Anthropic API key is required. "
                "Pass it directly or set ANTHROPIC_API_KEY in your environment."
            )
        try:
            from anthropic import Anthropic
        except ImportError:
            raise ImportError(
                "anthropic is required for AnthropicAnalyzer. "
                "Install with: pip install drive-analyzer[llm]"
            )
        self._client = Anthropic(api_key=api_key or None)
        self.model = model
        self.max_retries = max(1, max_retries)

    @property
    def client(self):
        """Access the underlying Anthropic SDK client for advanced usage."""
        return self._client

    def analyze(
        self,
        content: str,
        user_prompt: str,
        model: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> Result[str]:
        from anthropic import APIError, APITimeoutError, RateLimitError

        kwargs = {
            "model": model or self.model,
            "max_tokens": max_tokens or 4096,
            "system": SYSTEM_PROMPT,
            "messages": [
                {"role": "user", "content": build_analysis_prompt(user_prompt, content)}
            ],
        }
        if temperature is not None:
            kwargs["temperature"] = temperature

        for attempt in range(self.max_retries):
            try:
                response = self._client.messages.create(**kwargs)
                text = "".join(
                    block.text for block in response.content if block.type == "text"
                )
                if not text:
                    return Err("Invalid response from Claude API")
                logger.info(
                    f"Claude analysis done: {response.usage.input_tokens} in, "
                    f"{response.usage.output_tokens} out"
                )
                return Ok(text)
            except RateLimitError:
                wait = 2 ** (attempt + 1)
                logger.warning(f"Rate limited, retrying in {wait}s (attempt {attempt + 1})")
                if attempt + 1 < self.max_retries:
                    time.sleep(wait)
            except APITimeoutError:
                wait = 2 ** attempt
                logger.warning(f"API timeout, retrying in {wait}s (attempt {attempt + 1})")
                if attempt + 1 < self.max_retries:
                    time.sleep(wait)
            except APIError as e:
                logger.error(f"Claude API error: {e}")
                return Err(f"Claude API error: {e}", details=e)

        return Err(f"Failed after {self.max_retries} attempts")
