"""The legacy flat key-value store: string keys mapped to (usually JSON) string values."""

import json
import logging
from collections import OrderedDict
from pathlib import Path
from typing import Any, List, Mapping, Optional, Union

from ecole_manager.core.exceptions import LegacyStoreError

logger = logging.getLogger(__name__)


class LegacyStore:
    """
    Ordered string -> string store. Keys keep insertion order, which is the
    order backups are written in.
    """

    def keys(self) -> List[str]:
        raise NotImplementedError

    def get_item(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def set_item(self, key: str, value: str) -> None:
        raise NotImplementedError

    def remove_item(self, key: str) -> None:
        raise NotImplementedError

    def read_json(self, key: str, default: Any = None) -> Any:
        """Parsed value of ``key``; ``default`` when absent or empty. Invalid JSON raises ValueError."""
        raw = self.get_item(key)
        if not raw:
            return default
        return json.loads(raw)

    def write_json(self, key: str, value: Any) -> None:
        self.set_item(key, json.dumps(value, ensure_ascii=False))


class MemoryLegacyStore(LegacyStore):
    def __init__(self, items: Optional[Mapping[str, Union[str, Any]]] = None) -> None:
        self._items: "OrderedDict[str, str]" = OrderedDict()
        for key, value in (items or {}).items():
            self._items[key] = value if isinstance(value, str) else json.dumps(value, ensure_ascii=False)

    def keys(self) -> List[str]:
        return list(self._items.keys())

    def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)


class JsonFileLegacyStore(LegacyStore):
    """
    The store persisted as one JSON object of key -> string value.
    Every write rewrites the file; a missing file is an empty store.
    """

    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path)

    def _load(self) -> "OrderedDict[str, str]":
        if not self.path.exists():
            return OrderedDict()
        try:
            with self.path.open(encoding="utf-8") as fh:
                data = json.load(fh, object_pairs_hook=OrderedDict)
        except (OSError, ValueError) as exc:
            raise LegacyStoreError(f"Cannot read legacy store {self.path}: {exc}") from exc
        if not isinstance(data, dict):
            raise LegacyStoreError(f"Legacy store {self.path} is not a JSON object")
        return OrderedDict(
            (key, value if isinstance(value, str) else json.dumps(value, ensure_ascii=False))
            for key, value in data.items()
        )

    def _save(self, items: Mapping[str, str]) -> None:
        try:
            with self.path.open("w", encoding="utf-8") as fh:
                json.dump(items, fh, ensure_ascii=False, indent=2)
        except OSError as exc:
            raise LegacyStoreError(f"Cannot write legacy store {self.path}: {exc}") from exc

    def keys(self) -> List[str]:
        return list(self._load().keys())

    def get_item(self, key: str) -> Optional[str]:
        return self._load().get(key)

    def set_item(self, key: str, value: str) -> None:
        items = self._load()
        items[key] = value
        self._save(items)

    def remove_item(self, key: str) -> None:
        items = self._load()
        if items.pop(key, None) is not None:
            self._save(items)
            logger.debug("Removed legacy key %s", key)
