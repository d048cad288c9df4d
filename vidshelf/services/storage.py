import json
import os
import logging
from typing import Optional

logger = logging.getLogger(__name__)


class JSONFileStore:
    """Durable key-value store backed by a single JSON file.

    Every value is read and written as JSON. A missing, empty or corrupt file
    behaves like an empty store.
    """

    def __init__(self, path: str):
        self.path = path

    def _read_all(self) -> dict:
        if not os.path.exists(self.path):
            return {}
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                content = f.read().strip()
                if not content:
                    return {}
                data = json.loads(content)
        except json.JSONDecodeError:
            logger.warning(f"Corrupted store file found at {self.path}. Returning empty store.")
            return {}
        except OSError as e:
            logger.error(f"Error reading store file {self.path}: {e}")
            return {}

        if not isinstance(data, dict):
            logger.warning(f"Store file {self.path} does not hold an object. Returning empty store.")
            return {}
        return data

    def load(self, key: str, default=None):
        """Returns the value stored under key, or default if absent."""
        value = self._read_all().get(key)
        if value is None:
            return default
        return value

    def save(self, key: str, value) -> None:
        """Writes value under key, keeping the other keys intact."""
        data = self._read_all()
        data[key] = value
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        # Replace the file in one step
        tmp_path = f"{self.path}.tmp"
        try:
            with open(tmp_path, 'w', encoding='utf-8') as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
            os.replace(tmp_path, self.path)
        except Exception:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise


class MemoryStore:
    """In-process store with the same interface, values kept as JSON text."""

    def __init__(self, initial: Optional[dict] = None):
        self._data = {key: json.dumps(value) for key, value in (initial or {}).items()}

    def load(self, key: str, default=None):
        raw = self._data.get(key)
        if raw is None:
            return default
        try:
            value = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning(f"Corrupted value under {key}. Returning default.")
            return default
        return default if value is None else value

    def save(self, key: str, value) -> None:
        self._data[key] = json.dumps(value)

    def put_raw(self, key: str, raw: str) -> None:
        """Stores raw text as-is, bypassing serialization."""
        self._data[key] = raw


def get_store(path: str):
    """Returns the store for a configured path; ":memory:" keeps nothing on disk."""
    if path == ":memory:":
        return MemoryStore()
    return JSONFileStore(path)
