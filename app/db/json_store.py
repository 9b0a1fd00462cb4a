"""
JSON document record store.

Holds the four CRM collections in a single JSON file. The loaded document is
kept in memory and every committed transaction is written through to disk
before returning. Writers are serialized by a process-wide lock.
"""

import json
import os
import tempfile
import threading
import time
from collections.abc import Generator
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from app.config import settings
from app.infrastructure.observability.logging import get_logger
from app.models.domain.errors import StoreError

logger = get_logger(__name__)

LoadPolicy = Literal["degrade", "fail"]

COLLECTIONS = ("contacts", "opportunities", "tasks", "interactions")


class StoreDocument(BaseModel):
    """The whole persisted document."""

    model_config = ConfigDict(extra="allow")

    contacts: list[dict[str, Any]] = Field(default_factory=list)
    opportunities: list[dict[str, Any]] = Field(default_factory=list)
    tasks: list[dict[str, Any]] = Field(default_factory=list)
    interactions: list[dict[str, Any]] = Field(default_factory=list)

    def collection(self, name: str) -> list[dict[str, Any]]:
        if name not in COLLECTIONS:
            raise KeyError(f"Unknown collection '{name}'")
        return getattr(self, name)


class JsonRecordStore:
    """
    File-backed store for the CRM document.

    read() surfaces every failure as StoreError; load() applies the load
    policy on top of it ("degrade" swaps in an empty document, "fail"
    re-raises). save() replaces the file atomically via a temporary file.
    """

    def __init__(self, path: Path | str, load_policy: LoadPolicy = "degrade"):
        self.path = Path(path)
        self.load_policy = load_policy
        self._document: StoreDocument | None = None
        self._lock = threading.RLock()

    @classmethod
    def from_settings(cls) -> "JsonRecordStore":
        return cls(settings.db_path(), load_policy=settings.STORE_LOAD_POLICY)

    def initialize(self) -> None:
        """Create the data directory and an empty document if none exists yet."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        if not self.path.exists():
            logger.info("Creating empty record store", path=str(self.path))
            self.save(StoreDocument())

    def read(self) -> StoreDocument:
        """Read and parse the backing file without any fallback."""
        try:
            raw = self.path.read_text(encoding="utf-8")
        except OSError as e:
            raise StoreError("Record store could not be read", details=str(e)) from e

        try:
            return StoreDocument.model_validate(json.loads(raw))
        except (json.JSONDecodeError, PydanticValidationError) as e:
            raise StoreError("Record store is corrupt", details=str(e)) from e

    def load(self) -> StoreDocument:
        """Read the document, applying the configured load policy on failure."""
        try:
            return self.read()
        except StoreError as e:
            if self.load_policy == "fail":
                logger.error("Record store load failed", path=str(self.path), error=e.details)
                raise
            logger.warning(
                "Record store unreadable, using empty document",
                path=str(self.path),
                error=e.details,
            )
            return StoreDocument()

    def save(self, document: StoreDocument) -> None:
        """Overwrite the whole document on disk."""
        payload = json.dumps(document.model_dump(mode="json"), indent=2, ensure_ascii=False)
        self.path.parent.mkdir(parents=True, exist_ok=True)

        fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=".db-", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(payload)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_name, self.path)
        except OSError as e:
            try:
                os.unlink(tmp_name)
            except OSError:
                pass
            logger.error("Record store save failed", path=str(self.path), error=str(e))
            raise StoreError("Record store could not be written", details=str(e)) from e

        logger.debug("Record store saved", path=str(self.path), bytes=len(payload))

    def _current(self) -> StoreDocument:
        if self._document is None:
            self._document = self.load()
        return self._document

    def snapshot(self) -> StoreDocument:
        """Independent copy of the current document for read-only use."""
        with self._lock:
            return self._current().model_copy(deep=True)

    @contextmanager
    def transaction(self) -> Generator[StoreDocument, None, None]:
        """
        Give a single writer a working copy of the document.

        The copy is persisted and becomes current only if the block exits
        normally; an exception leaves both the file and memory untouched.
        """
        with self._lock:
            working = self._current().model_copy(deep=True)
            yield working
            self.save(working)
            self._document = working

    def reload(self) -> None:
        """Forget the in-memory document; the next access re-reads the file."""
        with self._lock:
            self._document = None

    def health_check(self) -> dict[str, Any]:
        """Check that the backing file is readable without applying the load policy."""
        t0 = time.time()
        try:
            document = self.read()
            return {
                "healthy": True,
                "service": "record_store",
                "path": str(self.path),
                "load_policy": self.load_policy,
                "latency_ms": round((time.time() - t0) * 1000, 1),
                "counts": {name: len(document.collection(name)) for name in COLLECTIONS},
            }
        except StoreError as e:
            return {
                "healthy": False,
                "service": "record_store",
                "path": str(self.path),
                "load_policy": self.load_policy,
                "latency_ms": round((time.time() - t0) * 1000, 1),
                "error": f"{e.message}: {e.details}",
            }


# Global store instance
record_store = JsonRecordStore.from_settings()


def get_record_store() -> JsonRecordStore:
    """FastAPI dependency returning the application record store."""
    return record_store
