"""OpenRouter chat-completions analysis backend."""

from __future__ import annotations

import logging
import time

from drive_analyzer.exceptions import LLMError
from drive_analyzer.llm.base import SYSTEM_PROMPT, BaseAnalyzer, build_analysis_prompt
from drive_analyzer.llm.models import DEFAULT_MODEL
from drive_analyzer.results import Err, Ok, Result

logger = logging.getLogger(__name__)

OPENROUTER_URL = "https://openrouter.ai/api/v1/chat/completions"


class OpenRouterAnalyzer(BaseAnalyzer):
    """Sends one system + user message pair to OpenRouter.

    Args:
        api_key: OpenRouter API key.
        model: Default model id, overridable per call.
        max_retries: Attempts on HTTP 429. The default of 1 means no retry.
        timeout: Request timeout in seconds.
        transport: Optional httpx transport, used by tests.
    """

    def __init__(
        self,
        api_key: str,
        model: str = DEFAULT_MODEL,
        max_retries: int = 1,
        timeout: float = 300.0,
        transport=None,
    ):
        if not api_key:
            raise LLMError(
                "OpenRouter API key is not set. Please add it in Settings "
                "or set OPENROUTER_API_KEY in your environment."
            )
        try:
            import httpx  # noqa: F401
        except ImportError:
            raise ImportError(
                "httpx is required for OpenRouterAnalyzer. "
                "Install with: pip install drive-analyzer[llm]"
            )
        self.api_key = api_key
        self.model = model
        self.max_retries = max(1, max_retries)
        self.timeout = timeout
        self._transport = transport

    def _payload(self, content, user_prompt, model, temperature, max_tokens) -> dict:
        payload = {
            "model": model or self.model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": build_analysis_prompt(user_prompt, content)},
            ],
        }
        if temperature is not None:
            payload["temperature"] = temperature
        if max_tokens is not None:
            payload["max_tokens"] = max_tokens
        return payload

    def analyze(
        self,
        content: str,
        user_prompt: str,
        model: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> Result[str]:
        import httpx

        payload = self._payload(content, user_prompt, model, temperature, max_tokens)
        logger.info(f"Requesting analysis from {payload['model']} ({len(content)} chars)")

        for attempt in range(self.max_retries):
            try:
                with httpx.Client(timeout=self.timeout, transport=self._transport) as client:
                    response = client.post(
                        OPENROUTER_URL,
                        json=payload,
                        headers={
                            "Authorization": f"Bearer {self.api_key}",
                            "Content-Type": "application/json",
                        },
                    )
            except httpx.HTTPError as e:
                logger.error(f"Error calling OpenRouter API: {e}")
                return Err(f"OpenRouter request failed: {e}", details=e)

            if response.status_code == 429 and attempt + 1 < self.max_retries:
                wait = 2 ** (attempt + 1)
                logger.warning(f"Rate limited, retrying in {wait}s (attempt {attempt + 1})")
                time.sleep(wait)
                continue
            return self._parse(response)

    def _parse(self, response) -> Result[str]:
        try:
            data = response.json()
        except ValueError:
            data = None

        if not response.is_success:
            message = None
            if isinstance(data, dict) and isinstance(data.get("error"), dict):
                message = data["error"].get("message")
            message = message or response.reason_phrase
            logger.error(f"OpenRouter API error ({response.status_code}): {message}")
            return Err(f"OpenRouter API error: {message}", details=data)

        try:
            text = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError):
            text = None
        if not text:
            logger.error("Invalid response from OpenRouter API")
            return Err("Invalid response from OpenRouter API", details=data)
        return Ok(text)
