"""Versioned in-memory configuration store used as the role persistence sink."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Dict, List, Optional

from simnode.errors import BadVersionError

logger = logging.getLogger(__name__)


@dataclass
class VersionedData:
    data: bytes
    version: int


class DistribStateManager:
    """
    Path -> bytes store with per-path versions.

    ``set_data`` with version -1 overwrites unconditionally; any other version
    must match the stored one. The first write of a path stores version 0.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._entries: Dict[str, VersionedData] = {}

    def set_data(self, path: str, data: bytes, version: int) -> VersionedData:
        with self._lock:
            current = self._entries.get(path)
            if version != -1:
                actual = current.version if current is not None else -1
                if actual != version:
                    raise BadVersionError(path, version, actual)
            entry = VersionedData(data=bytes(data), version=0 if current is None else current.version + 1)
            self._entries[path] = entry
        logger.debug(f"set_data {path} -> version {entry.version} ({len(entry.data)} bytes)")
        return entry

    def get_data(self, path: str) -> Optional[VersionedData]:
        with self._lock:
            return self._entries.get(path)

    def has_data(self, path: str) -> bool:
        with self._lock:
            return path in self._entries

    def remove_data(self, path: str) -> bool:
        with self._lock:
            return self._entries.pop(path, None) is not None

    def list_paths(self) -> List[str]:
        with self._lock:
            return sorted(self._entries)

