"""Whole-document persistence for the GPU inventory.

Every operation reads the complete JSON document, mutates it in memory and
writes the complete document back. There is no caching, locking or atomic
rename: two concurrent writers can lose an update.
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

from fastapi import Request
from pydantic import ValidationError as PydanticValidationError

from ..core.errors import StoreReadError, StoreWriteError
from ..schemas.gpu import GpuDatabaseDocument

logger = logging.getLogger("gpu_tracker.store")

ROOT_KEY = "gpu_database"
COLLECTION_KEY = "gpus"


def empty_document() -> dict[str, Any]:
    return {ROOT_KEY: {COLLECTION_KEY: []}}


def validate_document(raw: Any) -> dict[str, Any]:
    """Check the document layout and return it unchanged."""

    try:
        GpuDatabaseDocument.model_validate(raw)
    except PydanticValidationError as exc:
        first = exc.errors()[0]
        where = ".".join(str(part) for part in first["loc"]) or "<root>"
        raise StoreReadError(f"Unexpected GPU database layout at {where}: {first['msg']}") from exc
    return raw


def _dump(document: dict[str, Any]) -> str:
    try:
        return json.dumps(document, indent=2, ensure_ascii=False)
    except (TypeError, ValueError) as exc:
        raise StoreWriteError(f"GPU database is not serializable: {exc}") from exc


class GpuStore(ABC):
    """Contract shared by every document store."""

    @abstractmethod
    def load(self) -> dict[str, Any]:
        """Return the full document. Raises ``StoreReadError``."""

    @abstractmethod
    def save(self, document: dict[str, Any]) -> None:
        """Replace the full document. Raises ``StoreWriteError``."""


class JsonFileStore(GpuStore):
    """Document store backed by a single JSON file."""

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)

    def load(self) -> dict[str, Any]:
        try:
            text = self.path.read_text(encoding="utf-8")
        except FileNotFoundError as exc:
            raise StoreReadError(f"GPU database not found: {self.path}") from exc
        except (OSError, UnicodeDecodeError) as exc:
            raise StoreReadError(str(exc)) from exc
        try:
            raw = json.loads(text)
        except json.JSONDecodeError as exc:
            raise StoreReadError(f"Invalid JSON in GPU database: {exc}") from exc
        return validate_document(raw)

    def save(self, document: dict[str, Any]) -> None:
        text = _dump(document)
        try:
            self.path.write_text(text, encoding="utf-8")
        except OSError as exc:
            raise StoreWriteError(str(exc)) from exc

    def bootstrap(self) -> bool:
        """Create an empty document if the file does not exist yet."""

        if self.path.exists():
            return False
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise StoreWriteError(str(exc)) from exc
        self.save(empty_document())
        logger.info("store.bootstrapped", extra={"extra_data": {"path": str(self.path)}})
        return True

    def __repr__(self) -> str:
        return f"JsonFileStore({str(self.path)!r})"


class MemoryStore(GpuStore):
    """In-memory store with the same contract as ``JsonFileStore``.

    Documents go through a JSON round trip on save, so callers never share
    references with the stored copy and unserializable content fails the same
    way it would on disk.
    """

    def __init__(self, document: dict[str, Any] | None = None) -> None:
        self._text: str | None = None
        if document is not None:
            self.save(document)

    def load(self) -> dict[str, Any]:
        if self._text is None:
            raise StoreReadError("GPU database not found: <memory>")
        return validate_document(json.loads(self._text))

    def save(self, document: dict[str, Any]) -> None:
        self._text = _dump(document)


def get_store(request: Request) -> GpuStore:
    """FastAPI dependency returning the store configured on the app."""

    return request.app.state.gpu_store
