"""Durable cache tier: one JSON file per entry.

File names are the SHA-256 hex digest of the logical key, so keys of any
length or charset map to fixed-length, filesystem-safe names.  The logical
key is stored inside each record, which is what :meth:`clear_prefix` scans;
the hash alone cannot be matched against a prefix.

Blocking file I/O runs in a worker thread via ``asyncio.to_thread``.
Writes go to a temporary file that is then renamed over the target, so a
reader never sees a half-written record.
"""

from __future__ import annotations

import asyncio
import hashlib
import json
import os
import time
from collections.abc import Callable
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Any

from pydantic import ValidationError

from src.interfaces.cache_provider import ICacheProvider
from src.models.cache import CacheEntry, CacheHit, CacheSource
from src.utils.errors import CacheError
from src.utils.logging import get_logger

_SUFFIX = ".json"
_TMP_SUFFIX = ".tmp"


class FileCacheProvider(ICacheProvider):
    """Cache tier persisted as hash-named JSON files under *directory*.

    Parameters
    ----------
    directory:
        Where cache files live.  Created by :meth:`initialize`, or on the
        first write if nobody called it.
    clock:
        Wall-clock source in epoch seconds.
    """

    def __init__(self, directory: str | Path, clock: Callable[[], float] = time.time) -> None:
        self._directory = Path(directory)
        self._clock = clock
        self._logger = get_logger(__name__)

    @property
    def directory(self) -> Path:
        return self._directory

    def initialize(self) -> None:
        """Create the cache directory.  Called once at process start."""
        self._directory.mkdir(parents=True, exist_ok=True)
        self._logger.info("file_cache_initialized", directory=str(self._directory))

    # -- Private helpers -------------------------------------------------------

    @staticmethod
    def hash_key(key: str) -> str:
        return hashlib.sha256(key.encode("utf-8")).hexdigest()

    def _path_for(self, key: str) -> Path:
        return self._directory / f"{self.hash_key(key)}{_SUFFIX}"

    @staticmethod
    def _load(path: Path) -> CacheEntry | None:
        """Read one record; ``None`` if the file is missing or not a cache record."""
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        try:
            return CacheEntry.model_validate(json.loads(raw))
        except (json.JSONDecodeError, ValidationError):
            return None

    # -- Sync helpers (executed via asyncio.to_thread) -------------------------

    def _get_entry_sync(self, key: str) -> CacheEntry | None:
        path = self._path_for(key)
        entry = self._load(path)
        if entry is None:
            return None
        if entry.is_expired(self._clock()):
            path.unlink(missing_ok=True)
            return None
        return entry

    def _write_sync(self, entry: CacheEntry) -> None:
        self._directory.mkdir(parents=True, exist_ok=True)
        path = self._path_for(entry.key)
        payload = json.dumps(entry.model_dump(mode="json"), ensure_ascii=False)
        # One temp file per writer; concurrent writes of a key must not share it.
        tmp = NamedTemporaryFile(
            "w",
            encoding="utf-8",
            delete=False,
            dir=str(self._directory),
            prefix=f"{path.name}.",
            suffix=_TMP_SUFFIX,
        )
        try:
            with tmp:
                tmp.write(payload)
            os.replace(tmp.name, path)
        except OSError:
            Path(tmp.name).unlink(missing_ok=True)
            raise

    def _clear_prefix_sync(self, prefix: str) -> int:
        if not self._directory.exists():
            return 0
        removed = 0
        for path in self._directory.glob(f"*{_SUFFIX}"):
            entry = self._load(path)
            if entry is not None and entry.key.startswith(prefix):
                path.unlink(missing_ok=True)
                removed += 1
        return removed

    # -- ICacheProvider implementation -----------------------------------------

    async def get_entry(self, key: str) -> CacheEntry | None:
        """Return the live record for *key*, deleting it if it has expired.

        Raises
        ------
        CacheError
            If the file exists but cannot be read.
        """
        try:
            return await asyncio.to_thread(self._get_entry_sync, key)
        except OSError as exc:
            raise CacheError(
                message=f"Failed to read cache record for '{key}': {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

    async def get(self, key: str) -> CacheHit | None:
        entry = await self.get_entry(key)
        if entry is None:
            self._logger.debug("cache_miss", tier="disk", key=key)
            return None
        self._logger.debug("cache_hit", tier="disk", key=key)
        return CacheHit(value=entry.value, source=CacheSource.DISK)

    async def set(self, key: str, value: Any, ttl: float) -> None:
        await self.put_entry(CacheEntry(key=key, value=value, expires_at=self._clock() + ttl))

    async def put_entry(self, entry: CacheEntry) -> None:
        """Persist *entry*.

        Raises
        ------
        CacheError
            If the record cannot be serialized or written.
        """
        try:
            await asyncio.to_thread(self._write_sync, entry)
        except (OSError, TypeError, ValueError) as exc:
            raise CacheError(
                message=f"Failed to write cache record for '{entry.key}': {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        self._logger.debug("cache_set", tier="disk", key=entry.key)

    async def delete(self, key: str) -> None:
        await asyncio.to_thread(self._path_for(key).unlink, missing_ok=True)
        self._logger.debug("cache_delete", tier="disk", key=key)

    async def clear_prefix(self, prefix: str) -> int:
        removed = await asyncio.to_thread(self._clear_prefix_sync, prefix)
        self._logger.debug("cache_clear_prefix", tier="disk", prefix=prefix, removed=removed)
        return removed

    def get_provider_name(self) -> str:
        return "disk"
