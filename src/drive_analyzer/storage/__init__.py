"""Local persistence for analyses, prompts, cached documents and settings."""

from drive_analyzer.storage.backend import JsonFileStore, default_data_dir
from drive_analyzer.storage.models import (
    CachedDocument,
    SavedAnalysis,
    SavedAnalysisSource,
    SavedPrompt,
    validate_saved_analysis,
)
from drive_analyzer.storage.repositories import (
    DocumentCache,
    SavedAnalysesRepository,
    SavedPromptsRepository,
    SettingsStore,
)

__all__ = [
    "CachedDocument",
    "DocumentCache",
    "JsonFileStore",
    "SavedAnalysesRepository",
    "SavedAnalysis",
    "SavedAnalysisSource",
    "SavedPrompt",
    "SavedPromptsRepository",
    "SettingsStore",
    "default_data_dir",
    "validate_saved_analysis",
]
