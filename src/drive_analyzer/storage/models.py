"""Persisted entities, serialized with camelCase keys."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any

from drive_analyzer.exceptions import AnalysisImportError

SOURCE_TYPES = ("file", "url", "text", "search", "feed")
CACHE_TYPES = ("google", "local", "url", "text")

REQUIRED_ANALYSIS_FIELDS = ("id", "title", "timestamp", "prompt", "aiOutput", "sources")


def now_ms() -> int:
    return int(time.time() * 1000)


@dataclass
class SavedAnalysisSource:
    """Label for one input of an analysis; not a link back to its content."""

    type: str
    name: str
    actor: str | None = None

    def to_dict(self) -> dict:
        data: dict[str, Any] = {"type": self.type, "name": self.name}
        if self.actor:
            data["actor"] = self.actor
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "SavedAnalysisSource":
        return cls(type=data["type"], name=data["name"], actor=data.get("actor"))


@dataclass
class SavedAnalysis:
    id: str
    title: str
    timestamp: int
    prompt: str
    ai_output: str
    sources: list[SavedAnalysisSource] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "timestamp": self.timestamp,
            "prompt": self.prompt,
            "aiOutput": self.ai_output,
            "sources": [s.to_dict() for s in self.sources],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "SavedAnalysis":
        return cls(
            id=data["id"],
            title=data["title"],
            timestamp=data["timestamp"],
            prompt=data["prompt"],
            ai_output=data["aiOutput"],
            sources=[SavedAnalysisSource.from_dict(s) for s in data.get("sources", [])],
        )


def validate_saved_analysis(data: Any) -> SavedAnalysis:
    """Check the shape of an imported analysis and build it.

    Raises:
        AnalysisImportError: If the object is not a valid saved analysis.
    """
    if not isinstance(data, dict):
        raise AnalysisImportError("Invalid analysis file: expected a JSON object.")

    missing = [name for name in REQUIRED_ANALYSIS_FIELDS if name not in data]
    if missing:
        raise AnalysisImportError(
            f"Invalid analysis file: missing required fields: {', '.join(missing)}."
        )

    checks = {
        "id": isinstance(data["id"], str) and data["id"] != "",
        "title": isinstance(data["title"], str),
        "timestamp": isinstance(data["timestamp"], (int, float))
        and not isinstance(data["timestamp"], bool),
        "prompt": isinstance(data["prompt"], str),
        "aiOutput": isinstance(data["aiOutput"], str),
        "sources": isinstance(data["sources"], list),
    }
    bad = [name for name, ok in checks.items() if not ok]
    if bad:
        raise AnalysisImportError(
            f"Invalid analysis file: wrong type for fields: {', '.join(bad)}."
        )

    for source in data["sources"]:
        if not (
            isinstance(source, dict)
            and isinstance(source.get("type"), str)
            and isinstance(source.get("name"), str)
        ):
            raise AnalysisImportError("Invalid analysis file: malformed source entry.")

    return SavedAnalysis.from_dict(data)


@dataclass
class SavedPrompt:
    id: str
    title: str
    content: str
    created_at: int

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "content": self.content,
            "createdAt": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "SavedPrompt":
        return cls(
            id=data["id"],
            title=data["title"],
            content=data["content"],
            created_at=data.get("createdAt", 0),
        )


@dataclass
class CachedDocument:
    """Extracted text kept locally for reuse across runs."""

    id: str
    name: str
    type: str
    content: str
    cached_at: int
    mime_type: str | None = None
    size: int | None = None
    original_id: str | None = None
    include_in_prompts: bool = False

    def to_dict(self) -> dict:
        data: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "type": self.type,
            "content": self.content,
            "cachedAt": self.cached_at,
        }
        if self.mime_type is not None:
            data["mimeType"] = self.mime_type
        if self.size is not None:
            data["size"] = self.size
        if self.original_id is not None:
            data["originalId"] = self.original_id
        if self.include_in_prompts:
            data["includeInPrompts"] = True
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "CachedDocument":
        return cls(
            id=data["id"],
            name=data["name"],
            type=data["type"],
            content=data.get("content", ""),
            cached_at=data.get("cachedAt", 0),
            mime_type=data.get("mimeType"),
            size=data.get("size"),
            original_id=data.get("originalId"),
            include_in_prompts=bool(data.get("includeInPrompts", False)),
        )
