"""Catalogue of analysis models offered through OpenRouter."""

from __future__ import annotations

import os
from dataclasses import dataclass


@dataclass(frozen=True)
class AIModel:
    id: str
    name: str
    description: str


AI_MODELS: list[AIModel] = [
    AIModel(
        "google/gemini-2.5-flash-preview",
        "Gemini Flash Preview",
        "Google's fastest Gemini model for quick analysis",
    ),
    AIModel(
        "google/gemini-2.5-pro-preview",
        "Gemini Pro Preview",
        "Google's high-performance model for detailed analysis",
    ),
    AIModel(
        "anthropic/claude-3-5-sonnet",
        "Claude 3.5 Sonnet",
        "Anthropic's balanced model for quality and speed",
    ),
    AIModel(
        "anthropic/claude-3-opus",
        "Claude 3 Opus",
        "Anthropic's most powerful model for in-depth analysis",
    ),
    AIModel(
        "meta-llama/llama-3-405b-instruct",
        "Llama 3 405B",
        "Meta's largest open model for comprehensive analysis",
    ),
    AIModel(
        "mistralai/mistral-large-latest",
        "Mistral Large",
        "Mistral's powerful model for efficient analysis",
    ),
    AIModel(
        "openai/gpt-4o",
        "GPT-4o",
        "OpenAI's advanced multimodal model",
    ),
]

DEFAULT_MODEL = os.environ.get("DRIVE_ANALYZER_MODEL", "google/gemini-2.5-flash-preview")


def get_model(model_id: str) -> AIModel | None:
    for model in AI_MODELS:
        if model.id == model_id:
            return model
    return None
