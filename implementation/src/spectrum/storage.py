"""Key-value storage for save blobs.

Stores hold strings under string keys. ``get`` returns None for a missing
key; ``set`` and ``remove`` report success as a bool instead of raising.
"""
from __future__ import annotations

import re
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Optional


class KeyValueStore(ABC):
    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        ...

    @abstractmethod
    def set(self, key: str, value: str) -> bool:
        ...

    @abstractmethod
    def remove(self, key: str) -> bool:
        ...


class MemoryStore(KeyValueStore):
    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        self.data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    def set(self, key: str, value: str) -> bool:
        self.data[key] = value
        return True

    def remove(self, key: str) -> bool:
        self.data.pop(key, None)
        return True


_UNSAFE = re.compile(r"[^A-Za-z0-9_.-]")


class FileStore(KeyValueStore):
    """One file per key inside ``root``; writes go through tmp + rename."""

    def __init__(self, root: Path) -> None:
        self.root = Path(root)

    def path_for(self, key: str) -> Path:
        return self.root / (_UNSAFE.sub("_", key) + ".sav")

    def get(self, key: str) -> Optional[str]:
        path = self.path_for(key)
        if not path.exists():
            return None
        try:
            return path.read_text(encoding="utf-8")
        except OSError as e:
            print(f"[storage] Error reading {path}: {e}")
            return None

    def set(self, key: str, value: str) -> bool:
        path = self.path_for(key)
        tmp_path = path.with_suffix(".tmp")
        try:
            self.root.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(value, encoding="utf-8")
            tmp_path.replace(path)
        except OSError as e:
            print(f"[storage] Error writing {path}: {e}")
            return False
        return True

    def remove(self, key: str) -> bool:
        path = self.path_for(key)
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            print(f"[storage] Error removing {path}: {e}")
            return False
        return True
