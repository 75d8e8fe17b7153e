"""Local key-value storage for receipt state."""

import json
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

import aiofiles
import aiofiles.os

from tkr_receipts.config.settings import settings
from tkr_receipts.utils.logging import get_logger

logger = get_logger(__name__)


class StorageError(Exception):
    """Key-value store read or write failure."""

    pass


class KeyValueStore(ABC):
    """String key-value store (one process, last write wins)."""

    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        """Return the stored value, or None if the key is absent."""

    @abstractmethod
    async def set(self, key: str, value: str) -> None:
        """Store a value under key."""

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Remove a key; missing keys are ignored."""


class InMemoryStore(KeyValueStore):
    """Dictionary-backed store, used in tests and dry runs."""

    def __init__(self, initial: Optional[dict[str, str]] = None) -> None:
        self.data: dict[str, str] = dict(initial or {})

    async def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    async def set(self, key: str, value: str) -> None:
        self.data[key] = value

    async def delete(self, key: str) -> None:
        self.data.pop(key, None)


class JsonFileStore(KeyValueStore):
    """Store persisted as a single JSON object on disk."""

    def __init__(self, path: Optional[Path] = None) -> None:
        """
        Initialize the file store.

        Args:
            path: JSON file location (defaults to the configured store path)
        """
        self.path = Path(path) if path else settings.storage.store_path
        logger.debug("JSON file store initialized", path=str(self.path))

    async def _load(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            async with aiofiles.open(self.path, mode="r", encoding="utf-8") as f:
                content = await f.read()
        except OSError as e:
            logger.error("Failed to read store file", path=str(self.path), error=str(e))
            raise StorageError(f"Failed to read {self.path}") from e

        if not content.strip():
            return {}
        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            logger.error("Store file is not valid JSON", path=str(self.path), error=str(e))
            raise StorageError(f"Corrupt store file {self.path}") from e

        if not isinstance(data, dict):
            raise StorageError(f"Store file {self.path} does not hold an object")
        return data

    async def _dump(self, data: dict[str, str]) -> None:
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(tmp_path, mode="w", encoding="utf-8") as f:
                await f.write(json.dumps(data, ensure_ascii=False, indent=2))
            await aiofiles.os.replace(tmp_path, self.path)
        except OSError as e:
            logger.error("Failed to write store file", path=str(self.path), error=str(e))
            raise StorageError(f"Failed to write {self.path}") from e

    async def get(self, key: str) -> Optional[str]:
        data = await self._load()
        return data.get(key)

    async def set(self, key: str, value: str) -> None:
        data = await self._load()
        data[key] = value
        await self._dump(data)

    async def delete(self, key: str) -> None:
        data = await self._load()
        if key in data:
            del data[key]
            await self._dump(data)


def get_default_store() -> KeyValueStore:
    """Store used by the command line."""
    return JsonFileStore()
