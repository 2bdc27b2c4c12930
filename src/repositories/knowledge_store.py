"""
Knowledge store accessors.

The corpus is one flat JSON array. Every load reads the latest saved copy and
every save replaces the whole array (last writer wins, no locking). Default
loads never raise: unreachable storage, timeouts and non-array payloads all
come back as an empty corpus. Writers load with ``strict=True`` instead, which
raises StoreReadError for those cases; a missing object or file is still an
empty corpus. Saves are a no-op in read-only mode.

The load timeout is fixed per store from ``KB_LOAD_TIMEOUT_SECONDS`` and is
applied by botocore as connect and per-socket-read timeouts, so it bounds each
network wait rather than the total load time.
"""

from __future__ import annotations

import json
import os
import time
from pathlib import Path
from typing import Any, Iterable, List

from botocore.exceptions import ClientError

from config.settings import Settings
from repositories.s3_repo import S3Repository
from utils.error_handling import StoreReadError
from utils.logging_config import get_logger

logger = get_logger(__name__)


def decode_corpus(text: str, location: str, strict: bool = False) -> List[Any]:
    """Parse a stored corpus; anything but a JSON array yields [] or, if strict, raises."""
    try:
        parsed = json.loads(text)
    except ValueError as exc:
        logger.error(
            "KB parse error",
            extra={"location": location, "error": str(exc), "snippet": text[:300]},
        )
        if strict:
            raise StoreReadError(f"KB at {location} is not valid JSON") from exc
        return []
    if not isinstance(parsed, list):
        logger.warning(
            "KB payload is not an array",
            extra={"location": location, "type": type(parsed).__name__},
        )
        if strict:
            raise StoreReadError(f"KB at {location} is not a JSON array")
        return []
    return parsed


def encode_corpus(records: Iterable[Any]) -> str:
    """Serialize typed records or raw rows back to the stored JSON shape."""
    documents = [
        record.to_document() if hasattr(record, "to_document") else record
        for record in records
    ]
    return json.dumps(documents, indent=2)


class KnowledgeStore:
    """Full-corpus load/save contract shared by all backends."""

    writable: bool = False

    @property
    def location(self) -> str:
        raise NotImplementedError

    def _read(self) -> str:
        raise NotImplementedError

    def _write(self, body: str) -> None:
        raise NotImplementedError

    def load(self, strict: bool = False) -> List[Any]:
        """
        Return the raw corpus rows.

        Any read or parse failure yields [] unless ``strict`` is set, in which
        case it raises StoreReadError so the caller does not save over it.
        """
        start = time.perf_counter()
        try:
            text = self._read()
        except Exception as exc:
            logger.error(
                "KB load failed",
                extra={"location": self.location, "error": str(exc), "strict": strict},
            )
            if strict:
                raise StoreReadError(f"KB at {self.location} could not be read") from exc
            return []

        rows = decode_corpus(text, self.location, strict=strict)
        logger.info(
            "KB loaded",
            extra={
                "location": self.location,
                "rows": len(rows),
                "duration_ms": int((time.perf_counter() - start) * 1000),
            },
        )
        return rows

    def save(self, records: Iterable[Any]) -> bool:
        """
        Replace the stored corpus.

        Returns False without writing when the store is read-only; write
        errors propagate so an operator run never reports a false success.
        """
        records = list(records)
        if not self.writable:
            logger.warning(
                "No KB write access configured; running in read-only mode",
                extra={"location": self.location, "rows": len(records)},
            )
            return False

        self._write(encode_corpus(records))
        logger.info("KB saved", extra={"location": self.location, "rows": len(records)})
        return True


class S3KnowledgeStore(KnowledgeStore):
    """Corpus stored as a single S3 object."""

    def __init__(self, repository: S3Repository, key: str = "kb.json", writable: bool = False):
        self.repository = repository
        self.key = key
        self.writable = writable

    @property
    def location(self) -> str:
        return f"s3://{self.repository.bucket_name}/{self.key}"

    def _read(self) -> str:
        try:
            return self.repository.get_text(self.key)
        except ClientError as exc:
            if exc.response.get("Error", {}).get("Code") in ("NoSuchKey", "404"):
                logger.info("KB object not found", extra={"location": self.location})
                return "[]"
            raise

    def _write(self, body: str) -> None:
        self.repository.put_text(self.key, body)


class FileKnowledgeStore(KnowledgeStore):
    """Corpus stored as a local JSON file, written atomically."""

    def __init__(self, path: str = "/tmp/kb.json", writable: bool = False):
        self.path = Path(path)
        self.writable = writable

    @property
    def location(self) -> str:
        return str(self.path)

    def _read(self) -> str:
        if not self.path.exists():
            return "[]"
        return self.path.read_text(encoding="utf-8")

    def _write(self, body: str) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        tmp_path.write_text(body, encoding="utf-8")
        os.replace(tmp_path, self.path)


def build_store(settings: Settings) -> KnowledgeStore:
    """Pick the S3 store when a bucket is configured, else the file store."""
    if settings.uses_blob_store:
        repository = S3Repository(
            settings.kb_bucket,
            timeout_seconds=settings.load_timeout_seconds,
            region=settings.aws_region,
        )
        return S3KnowledgeStore(repository, settings.kb_key, settings.kb_write_enabled)
    return FileKnowledgeStore(settings.kb_path, settings.kb_write_enabled)
