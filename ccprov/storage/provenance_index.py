"""In-memory provenance index.

Maps a download's base file name to the host it came from. All access goes
through one lock; callers only ever receive copies of the map.
"""

from __future__ import annotations

import threading
from typing import Iterable, Mapping


class ProvenanceIndex:
    """Lock-guarded ``file name -> host`` map."""

    def __init__(self) -> None:
        """Initialize an empty index."""
        self._entries: dict[str, str] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def get(self, file_name: str) -> str | None:
        """Return the host recorded for ``file_name``."""
        with self._lock:
            return self._entries.get(file_name)

    def contains(self, file_name: str) -> bool:
        """Tell whether ``file_name`` has a record."""
        with self._lock:
            return file_name in self._entries

    def insert_if_absent(self, file_name: str, host: str) -> str | None:
        """Record ``host`` for ``file_name`` unless a record exists.

        Returns:
            None if inserted, otherwise the host already on record

        """
        with self._lock:
            existing = self._entries.get(file_name)
            if existing is not None:
                return existing
            self._entries[file_name] = host
            return None

    def pop(self, file_name: str) -> str | None:
        """Remove and return the record for ``file_name``."""
        with self._lock:
            return self._entries.pop(file_name, None)

    def rename(self, old_name: str, new_name: str) -> str | None:
        """Move the record of ``old_name`` to ``new_name``.

        A record already held by ``new_name`` is replaced.

        Returns:
            The moved host, or None if ``old_name`` had no record

        """
        with self._lock:
            host = self._entries.pop(old_name, None)
            if host is None:
                return None
            self._entries[new_name] = host
            return host

    def replace_all(self, entries: Mapping[str, str]) -> None:
        """Replace the whole content with ``entries``."""
        with self._lock:
            self._entries = dict(entries)

    def clear(self) -> int:
        """Drop every record and return how many there were."""
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
            return count

    def retain(self, names: Iterable[str]) -> list[str]:
        """Drop every record whose file name is not in ``names``.

        Returns:
            The dropped file names

        """
        keep = set(names)
        with self._lock:
            stale = [name for name in self._entries if name not in keep]
            for name in stale:
                del self._entries[name]
        return stale

    def snapshot(self) -> dict[str, str]:
        """Return a point-in-time copy of all records."""
        with self._lock:
            return dict(self._entries)
