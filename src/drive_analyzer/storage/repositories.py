"""One repository per persisted entity, all sharing a JsonFileStore."""

from __future__ import annotations

import json
import logging
import math
import os
import secrets
import string
from pathlib import Path
from typing import Callable, Generic, TypeVar

from drive_analyzer.exceptions import AnalysisImportError, StorageError
from drive_analyzer.results import Err, Ok, Result
from drive_analyzer.storage.backend import JsonFileStore
from drive_analyzer.storage.models import (
    CachedDocument,
    SavedAnalysis,
    SavedPrompt,
    now_ms,
    validate_saved_analysis,
)

logger = logging.getLogger(__name__)

SAVED_PROMPTS_KEY = "drive-analyzer-saved-prompts"
SAVED_ANALYSES_KEY = "drive-analyzer-saved-analyses"
CUSTOM_INSTRUCTIONS_KEY = "drive-analyzer-custom-instructions"
WEBHOOK_URL_KEY = "drive-analyzer-webhook-url"
DOCUMENT_CACHE_KEY = "drive-analyzer-document-cache"
OPENROUTER_API_KEY_KEY = "openRouterApiKey"
APIFY_API_TOKEN_KEY = "apifyApiToken"
PREFERRED_MODEL_KEY = "preferred-ai-model"

T = TypeVar("T")

_ID_ALPHABET = string.ascii_lowercase + string.digits


class _ListRepository(Generic[T]):
    """A JSON array under one key, exposed as a list of model objects."""

    key: str

    def __init__(self, store: JsonFileStore):
        self.store = store

    def _from_dict(self, data: dict) -> T:
        raise NotImplementedError

    def list(self) -> list[T]:
        raw = self.store.get(self.key, [])
        if not isinstance(raw, list):
            logger.error(f"Expected a list under {self.key}, found {type(raw).__name__}")
            return []
        items = []
        for index, entry in enumerate(raw):
            try:
                items.append(self._from_dict(entry))
            except (KeyError, TypeError, AttributeError) as e:
                logger.warning(f"Skipping malformed entry {index} under {self.key}: {e!r}")
        return items

    def _write(self, items: list[T]) -> None:
        self.store.set(self.key, [item.to_dict() for item in items])

    def get(self, item_id: str) -> T | None:
        return next((item for item in self.list() if item.id == item_id), None)

    def subscribe(self, callback: Callable[[list[T]], None]) -> Callable[[], None]:
        """Call ``callback(items)`` after every change to this collection."""
        return self.store.subscribe(self.key, lambda _key, _value: callback(self.list()))


class SavedAnalysesRepository(_ListRepository[SavedAnalysis]):
    """Completed analyses, newest first."""

    key = SAVED_ANALYSES_KEY

    def _from_dict(self, data: dict) -> SavedAnalysis:
        return SavedAnalysis.from_dict(data)

    def save(self, analysis: SavedAnalysis) -> None:
        self._write([analysis, *self.list()])
        logger.info(f"Saved analysis {analysis.id} ({analysis.title})")

    def rename(self, analysis_id: str, title: str) -> bool:
        items = self.list()
        found = False
        for item in items:
            if item.id == analysis_id:
                item.title = title
                found = True
        if found:
            self._write(items)
        return found

    def delete(self, analysis_id: str) -> bool:
        items = self.list()
        kept = [item for item in items if item.id != analysis_id]
        if len(kept) == len(items):
            return False
        self._write(kept)
        return True

    def delete_all(self) -> None:
        self.store.remove(self.key)

    def import_analysis(self, analysis: SavedAnalysis) -> Result[SavedAnalysis]:
        """Add an analysis from elsewhere; rejects ids that already exist."""
        items = self.list()
        if any(item.id == analysis.id for item in items):
            return Err(f'Analysis with ID "{analysis.id}" already exists.', source=analysis.id)
        self._write([analysis, *items])
        logger.info(f"Imported analysis {analysis.id}")
        return Ok(analysis)

    def export_json(self, analysis_id: str) -> str:
        analysis = self.get(analysis_id)
        if analysis is None:
            raise StorageError(f'Analysis with ID "{analysis_id}" not found.')
        return json.dumps(analysis.to_dict(), ensure_ascii=False, indent=2)

    def import_json(self, text: str) -> Result[SavedAnalysis]:
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            logger.error(f"Failed to parse imported analysis: {e}")
            return Err(f"Invalid analysis file: {e}")
        try:
            analysis = validate_saved_analysis(data)
        except AnalysisImportError as e:
            return Err(str(e))
        return self.import_analysis(analysis)

    def export_to_file(self, analysis_id: str, path: str | Path) -> Path:
        path = Path(path)
        path.write_text(self.export_json(analysis_id), encoding="utf-8")
        return path

    def import_from_file(self, path: str | Path) -> Result[SavedAnalysis]:
        try:
            text = Path(path).read_text(encoding="utf-8")
        except OSError as e:
            return Err(f"Failed to read {path}: {e}", source=str(path))
        return self.import_json(text)


class SavedPromptsRepository(_ListRepository[SavedPrompt]):
    """Reusable prompt snippets, in creation order."""

    key = SAVED_PROMPTS_KEY

    def _from_dict(self, data: dict) -> SavedPrompt:
        return SavedPrompt.from_dict(data)

    def add(self, title: str, content: str) -> Result[SavedPrompt]:
        if not title.strip() or not content.strip():
            return Err("Both title and content are required for saving a prompt")
        created = now_ms()
        prompt = SavedPrompt(id=str(created), title=title, content=content, created_at=created)
        self._write([*self.list(), prompt])
        return Ok(prompt)

    def delete(self, prompt_id: str) -> bool:
        items = self.list()
        kept = [item for item in items if item.id != prompt_id]
        if len(kept) == len(items):
            return False
        self._write(kept)
        return True


def format_bytes(size: int) -> str:
    if size <= 0:
        return "0 Bytes"
    units = ["Bytes", "KB", "MB", "GB"]
    i = min(int(math.floor(math.log(size, 1024))), len(units) - 1)
    return f"{round(size / 1024 ** i, 2):g} {units[i]}"


class DocumentCache(_ListRepository[CachedDocument]):
    """Extracted documents kept for reuse; newest first, never evicted."""

    key = DOCUMENT_CACHE_KEY

    def _from_dict(self, data: dict) -> CachedDocument:
        return CachedDocument.from_dict(data)

    @staticmethod
    def _new_id() -> str:
        suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(9))
        return f"cache_{now_ms()}_{suffix}"

    def add(
        self,
        name: str,
        type: str,
        content: str,
        mime_type: str | None = None,
        size: int | None = None,
        original_id: str | None = None,
        include_in_prompts: bool = False,
    ) -> str:
        document = CachedDocument(
            id=self._new_id(),
            name=name,
            type=type,
            content=content,
            cached_at=now_ms(),
            mime_type=mime_type,
            size=size,
            original_id=original_id,
            include_in_prompts=include_in_prompts,
        )
        self._write([document, *self.list()])
        logger.info(f"Cached document {document.id} ({name})")
        return document.id

    def remove(self, document_id: str) -> None:
        self._write([doc for doc in self.list() if doc.id != document_id])

    def clear(self) -> None:
        self.store.remove(self.key)

    def set_include_in_prompts(self, document_id: str, include: bool) -> bool:
        items = self.list()
        found = False
        for doc in items:
            if doc.id == document_id:
                doc.include_in_prompts = include
                found = True
        if found:
            self._write(items)
        return found

    def included_documents(self) -> list[CachedDocument]:
        return [doc for doc in self.list() if doc.include_in_prompts]

    def stats(self) -> dict:
        documents = self.list()
        total = sum(doc.size or len(doc.content) for doc in documents)
        return {
            "total_documents": len(documents),
            "total_size": total,
            "formatted_size": format_bytes(total),
        }


class SettingsStore:
    """Scalar settings; stored values win over environment fallbacks."""

    def __init__(self, store: JsonFileStore):
        self.store = store

    def _get(self, key: str, env: str | None = None) -> str:
        value = self.store.get(key)
        if isinstance(value, str) and value:
            return value
        if env:
            return os.environ.get(env, "")
        return ""

    def _set(self, key: str, value: str | None) -> None:
        value = (value or "").strip()
        if value:
            self.store.set(key, value)
        else:
            self.store.remove(key)

    @property
    def openrouter_api_key(self) -> str:
        return self._get(OPENROUTER_API_KEY_KEY, "OPENROUTER_API_KEY")

    @openrouter_api_key.setter
    def openrouter_api_key(self, value: str | None) -> None:
        self._set(OPENROUTER_API_KEY_KEY, value)

    @property
    def apify_api_token(self) -> str:
        return self._get(APIFY_API_TOKEN_KEY, "APIFY_API_TOKEN")

    @apify_api_token.setter
    def apify_api_token(self, value: str | None) -> None:
        self._set(APIFY_API_TOKEN_KEY, value)

    @property
    def webhook_url(self) -> str:
        return self._get(WEBHOOK_URL_KEY)

    @webhook_url.setter
    def webhook_url(self, value: str | None) -> None:
        self._set(WEBHOOK_URL_KEY, value)

    @property
    def custom_instructions(self) -> str:
        return self._get(CUSTOM_INSTRUCTIONS_KEY)

    @custom_instructions.setter
    def custom_instructions(self, value: str | None) -> None:
        self._set(CUSTOM_INSTRUCTIONS_KEY, value)

    @property
    def preferred_model(self) -> str:
        from drive_analyzer.llm.models import DEFAULT_MODEL

        return self._get(PREFERRED_MODEL_KEY) or DEFAULT_MODEL

    @preferred_model.setter
    def preferred_model(self, value: str | None) -> None:
        self._set(PREFERRED_MODEL_KEY, value)

    @property
    def anthropic_api_key(self) -> str:
        return os.environ.get("ANTHROPIC_API_KEY", "")

    @property
    def google_access_token(self) -> str:
        return os.environ.get("GOOGLE_ACCESS_TOKEN", "")

    def as_dict(self, mask_secrets: bool = True) -> dict:
        def mask(value: str) -> str:
            if not mask_secrets or not value:
                return value
            return value[:4] + "..." if len(value) > 8 else "***"

        return {
            "openrouter_api_key": mask(self.openrouter_api_key),
            "apify_api_token": mask(self.apify_api_token),
            "webhook_url": self.webhook_url,
            "custom_instructions": self.custom_instructions,
            "preferred_model": self.preferred_model,
        }
