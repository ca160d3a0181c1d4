"""Analysis backends (OpenRouter, Anthropic Claude).

Heavy imports are deferred. Use explicit imports:
    from drive_analyzer.llm.openrouter import OpenRouterAnalyzer
    from drive_analyzer.llm.claude import AnthropicAnalyzer
"""

from drive_analyzer.llm.base import SYSTEM_PROMPT, BaseAnalyzer, build_analysis_prompt
from drive_analyzer.llm.models import AI_MODELS, DEFAULT_MODEL, AIModel, get_model


def __getattr__(name):
    """Lazy imports for backends that require optional dependencies."""
    if name == "OpenRouterAnalyzer":
        from drive_analyzer.llm.openrouter import OpenRouterAnalyzer
        return OpenRouterAnalyzer
    if name == "AnthropicAnalyzer":
        from drive_analyzer.llm.claude import AnthropicAnalyzer
        return AnthropicAnalyzer
    raise AttributeError(f"module 'drive_analyzer.llm' has no attribute {name!r}")


__all__ = [
    "AI_MODELS",
    "AIModel",
    "AnthropicAnalyzer",
    "BaseAnalyzer",
    "DEFAULT_MODEL",
    "OpenRouterAnalyzer",
    "SYSTEM_PROMPT",
    "build_analysis_prompt",
    "get_model",
]
