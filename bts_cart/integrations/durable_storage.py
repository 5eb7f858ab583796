"""
Durable storage - origin-scoped key-value stores for the cart record.

Every backend follows the browser localStorage contract: string keys,
string values, ``None`` for a missing key. Backends raise
``StorageException`` when the underlying medium fails; the cart store
decides what to do about it.
"""
from __future__ import annotations

import json
import os
import re
import tempfile
from pathlib import Path
from typing import Protocol, runtime_checkable

from bts_cart.core.constants import DEFAULT_ORIGIN
from bts_cart.core.exceptions import StorageException
from bts_cart.core.logging_config import logger

_UNSAFE_ORIGIN_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


@runtime_checkable
class DurableStorage(Protocol):
    """Protocol for origin-scoped key-value storage."""

    origin: str

    def get_item(self, key: str) -> str | None:
        ...

    def set_item(self, key: str, value: str) -> None:
        ...

    def remove_item(self, key: str) -> None:
        ...

    def close(self) -> None:
        ...


class MemoryStorage:
    """Process-local storage. Survives store re-creation, not process restarts."""

    def __init__(self, origin: str = DEFAULT_ORIGIN) -> None:
        self.origin = origin
        self._data: dict[str, str] = {}

    def get_item(self, key: str) -> str | None:
        return self._data.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove_item(self, key: str) -> None:
        self._data.pop(key, None)

    def close(self) -> None:
        pass


class FileStorage:
    """JSON file per origin, rewritten atomically on every change."""

    def __init__(self, directory: str | os.PathLike[str], origin: str = DEFAULT_ORIGIN) -> None:
        self.origin = origin
        self._directory = Path(directory)
        safe_origin = _UNSAFE_ORIGIN_CHARS.sub("_", origin) or DEFAULT_ORIGIN
        self._path = self._directory / f"{safe_origin}.json"

    @property
    def path(self) -> Path:
        return self._path

    def _read_all(self) -> dict[str, str]:
        try:
            raw = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        except UnicodeDecodeError:
            logger.warning("Storage file %s is not valid UTF-8; treating as empty", self._path)
            return {}
        except OSError as exc:
            raise StorageException(f"Failed to read {self._path}: {exc}") from exc

        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Storage file %s is not valid JSON; treating as empty", self._path)
            return {}
        if not isinstance(data, dict):
            logger.warning("Storage file %s does not hold an object; treating as empty", self._path)
            return {}
        return {str(k): v for k, v in data.items() if isinstance(v, str)}

    def _write_all(self, data: dict[str, str], key: str) -> None:
        try:
            self._directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self._directory, prefix=".tmp-", suffix=".json")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    json.dump(data, handle, ensure_ascii=False)
                os.replace(tmp_name, self._path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as exc:
            raise StorageException(f"Failed to write {self._path}: {exc}", key=key) from exc

    def get_item(self, key: str) -> str | None:
        return self._read_all().get(key)

    def set_item(self, key: str, value: str) -> None:
        data = self._read_all()
        data[key] = value
        self._write_all(data, key)

    def remove_item(self, key: str) -> None:
        data = self._read_all()
        if data.pop(key, None) is None:
            return
        self._write_all(data, key)

    def close(self) -> None:
        pass
