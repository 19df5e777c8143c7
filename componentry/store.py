"""
Configuration stores - the key-value collaborator the registry persists to.

Any object with ``get(key, default)`` / ``set(key, value)`` / ``delete(key)``
can be used. Two reference implementations are provided:

- MemoryStore: process-local dict, for tests and ephemeral hosts
- FileStore: JSON or YAML document on disk (format chosen by suffix)
"""

from typing import Any, Dict, Optional, Protocol, runtime_checkable
from pathlib import Path
import copy
import json
import logging

from .faults import StoreError


logger = logging.getLogger("componentry.store")


@runtime_checkable
class ConfigStore(Protocol):
    """Interface for configuration stores."""

    def get(self, key: str, default: Any = None) -> Any:
        ...

    def set(self, key: str, value: Any) -> bool:
        ...

    def delete(self, key: str) -> bool:
        ...


class MemoryStore:
    """Dict-backed store. Values are deep-copied in and out."""

    def __init__(self, initial: Optional[Dict[str, Any]] = None):
        self._data: Dict[str, Any] = copy.deepcopy(initial) if initial else {}

    def get(self, key: str, default: Any = None) -> Any:
        if key not in self._data:
            return default
        return copy.deepcopy(self._data[key])

    def set(self, key: str, value: Any) -> bool:
        self._data[key] = copy.deepcopy(value)
        return True

    def delete(self, key: str) -> bool:
        if key not in self._data:
            return False
        del self._data[key]
        return True

    def keys(self):
        return list(self._data.keys())

    def to_dict(self) -> Dict[str, Any]:
        return copy.deepcopy(self._data)

    def __contains__(self, key: str) -> bool:
        return key in self._data

    def __len__(self) -> int:
        return len(self._data)


class FileStore(MemoryStore):
    """
    Store persisted as a single JSON or YAML document.

    The whole document is rewritten on every ``set``/``delete``; the store
    is meant for a handful of toggles, not bulk data.
    """

    YAML_SUFFIXES = (".yaml", ".yml")

    def __init__(self, path: str | Path):
        self.path = Path(path)
        super().__init__(self._read())

    @property
    def is_yaml(self) -> bool:
        return self.path.suffix in self.YAML_SUFFIXES

    def _read(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}

        try:
            text = self.path.read_text(encoding="utf-8")
        except OSError as e:
            raise StoreError(self.path, str(e)) from e

        if not text.strip():
            return {}

        if self.is_yaml:
            import yaml
            try:
                data = yaml.safe_load(text)
            except yaml.YAMLError as e:
                raise StoreError(self.path, f"invalid YAML: {e}") from e
        else:
            try:
                data = json.loads(text)
            except json.JSONDecodeError as e:
                raise StoreError(self.path, f"invalid JSON: {e}") from e

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise StoreError(self.path, "top-level document must be a mapping")
        return data

    def _write(self) -> bool:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            if self.is_yaml:
                import yaml
                text = yaml.safe_dump(self._data, sort_keys=True)
            else:
                text = json.dumps(self._data, indent=2, sort_keys=True)
            self.path.write_text(text, encoding="utf-8")
        except OSError as e:
            logger.error(f"Failed to write config store {self.path}: {e}")
            return False
        return True

    def set(self, key: str, value: Any) -> bool:
        super().set(key, value)
        return self._write()

    def delete(self, key: str) -> bool:
        removed = super().delete(key)
        if removed:
            self._write()
        return removed

    def reload(self) -> None:
        """Re-read the document from disk, discarding in-memory state."""
        self._data = self._read()
