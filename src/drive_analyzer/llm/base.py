"""Abstract base class for analysis backends."""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod

from drive_analyzer.results import Result

SYSTEM_PROMPT = (
    "You are a helpful assistant. Respond in GitHub‑flavored Markdown. "
    "Be as comprehensive and accurate as possible based on the provided documents. "
    "You MUST respond in Markdown format with proper headings such as #, ##, ### "
    "and proper bullet points."
)

_SOURCE_HEADER = "================ SOURCE DOCUMENTS ================"
_SOURCE_FOOTER = "=================================================="


def build_analysis_prompt(user_prompt: str, content: str) -> str:
    """Wrap the combined source content under the user's prompt."""
    return f"{user_prompt.strip()}\n\n{_SOURCE_HEADER}\n{content}\n{_SOURCE_FOOTER}"


class BaseAnalyzer(ABC):
    """Abstract interface for sending combined content to a model."""

    @abstractmethod
    def analyze(
        self,
        content: str,
        user_prompt: str,
        model: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> Result[str]:
        """Return the model's markdown answer, or an ``Err``."""
        ...

    async def aanalyze(self, content: str, user_prompt: str, **kwargs) -> Result[str]:
        """Async version of analyze."""
        return await asyncio.to_thread(self.analyze, content, user_prompt, **kwargs)
