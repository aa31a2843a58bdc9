"""Provenance store for ccprov.

Remembers which remote host supplied each file in the download directory.
The in-memory index is authoritative while the process runs; a flat file in
the private state directory carries it across restarts as a best-effort
cache, written back after a quiet period following each burst of changes.

Construct one store at start-up and pass it to every collaborator::

    store = ProvenanceStore.from_config(config_manager.config.provenance)
    store.add("example.com", "report.pdf")
"""

from __future__ import annotations

import contextlib
import os
import threading
from pathlib import Path
from typing import TYPE_CHECKING, Union

from ccprov.storage.debounce import DebouncedWriter
from ccprov.storage.provenance_codec import is_encodable, write_entries
from ccprov.storage.provenance_index import ProvenanceIndex
from ccprov.storage.reconcile import ReconcileResult, reconcile
from ccprov.utils.exceptions import ProvenanceStoreError
from ccprov.utils.logging_config import LoggingContext, get_logger

if TYPE_CHECKING:  # pragma: no cover
    from ccprov.models import ProvenanceConfig

FileRef = Union[str, os.PathLike]

DEFAULT_SAVE_DELAY = 1.0
DEFAULT_READY_TIMEOUT = 5.0

__all__ = [
    "DEFAULT_READY_TIMEOUT",
    "DEFAULT_SAVE_DELAY",
    "FileRef",
    "ProvenanceStore",
]


class ProvenanceStore:
    """Durable ``file name -> origin host`` record for downloaded files.

    Operations never raise; misuse and I/O failures are logged. Every public
    operation first waits up to ``ready_timeout`` seconds for the startup
    load and reconciliation, then proceeds regardless.
    """

    def __init__(
        self,
        download_dir: str | Path,
        store_file: str | Path,
        save_delay: float = DEFAULT_SAVE_DELAY,
        ready_timeout: float = DEFAULT_READY_TIMEOUT,
    ) -> None:
        """Initialize the store and start the background load.

        Args:
            download_dir: Directory holding downloaded files
            store_file: Persisted store file, outside ``download_dir``
            save_delay: Quiet period in seconds before write-back
            ready_timeout: Seconds operations wait for the startup load

        Raises:
            ProvenanceStoreError: If ``store_file`` lies in ``download_dir``

        """
        self.download_dir = Path(download_dir).expanduser().resolve()
        self.store_file = Path(store_file).expanduser().resolve()
        if self.store_file.parent == self.download_dir:
            msg = "Store file must not live in the download directory"
            raise ProvenanceStoreError(
                msg,
                {"store_file": str(self.store_file), "download_dir": str(self.download_dir)},
            )
        self.ready_timeout = ready_timeout
        self.logger = get_logger(__name__)

        self._index = ProvenanceIndex()
        # Held by mutations and by reloads so no change lands between a
        # flush and the reload that replaces the index
        self._mutation_lock = threading.Lock()
        self._ready = threading.Event()
        self._writer = DebouncedWriter(self._save, save_delay, name="ccprov-save")
        self.last_reconcile: ReconcileResult | None = None

        self._loader = threading.Thread(
            target=self._initial_reconcile,
            name="ccprov-load",
            daemon=True,
        )
        self._loader.start()

    @classmethod
    def from_config(cls, config: ProvenanceConfig) -> ProvenanceStore:
        """Create a store from validated configuration."""
        return cls(
            config.download_path,
            config.store_path,
            save_delay=config.save_delay,
            ready_timeout=config.ready_timeout,
        )

    # Lifecycle

    @property
    def is_ready(self) -> bool:
        """Whether the startup load and reconciliation have finished."""
        return self._ready.is_set()

    def wait_ready(self, timeout: float | None = None) -> bool:
        """Block until the startup load has finished.

        Returns:
            True if ready, False on timeout

        """
        return self._ready.wait(timeout)

    def _await_ready(self) -> None:
        if self._ready.is_set():
            return
        if not self._ready.wait(self.ready_timeout):
            self.logger.warning(
                "Provenance not loaded after %.1fs, continuing without it",
                self.ready_timeout,
            )

    def _initial_reconcile(self) -> None:
        try:
            self.reconcile(wait=False)
        except Exception:
            self.logger.exception("Startup reconciliation of %s failed", self.store_file)
        finally:
            self._ready.set()

    def reconcile(self, wait: bool = True) -> ReconcileResult:
        """Reload the persisted file and drop records of vanished files.

        A pending write-back is flushed first so no change is lost to the
        reload. Mutations wait until the reload is done. The startup run
        skips the lock because operations already wait for readiness.
        """
        if wait:
            self._await_ready()
        guard = self._mutation_lock if wait else contextlib.nullcontext()
        with guard:
            if wait:
                self._writer.flush_now()
            else:
                self._writer.cancel()
            with LoggingContext("reconcile", download_dir=str(self.download_dir)):
                result = reconcile(self._index, self.download_dir, self.store_file)
            self.last_reconcile = result
            if result.pruned:
                self._writer.schedule()
        return result

    def flush(self) -> bool:
        """Write pending changes now instead of after the quiet period.

        Returns:
            True if a write-back ran

        """
        self._await_ready()
        return self._writer.flush_now()

    def close(self) -> None:
        """Flush pending changes and stop the writer."""
        self._await_ready()
        self._writer.close(flush=True)

    def __enter__(self) -> ProvenanceStore:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    # Operations

    def add(self, host: str | None, file_name: str | None) -> None:
        """Record that ``host`` supplied ``file_name``.

        Ignored when either value is empty, when the file is not in the
        download directory, or when the file already has a record: the
        first recorded origin wins.
        """
        if not host or not file_name:
            return
        self._await_ready()
        name = Path(file_name).name
        self.logger.debug("add(%s, %s)", host, name)
        if not is_encodable(name, host):
            self.logger.warning("Not recording origin %r of %r: unstorable value", host, name)
            return
        if not (self.download_dir / name).exists():
            return
        with self._mutation_lock:
            existing = self._index.insert_if_absent(name, host)
            if existing is None:
                self._writer.schedule()
                return
        self.logger.debug(
            'Will not overwrite origin "%s" of "%s" with "%s"', existing, name, host
        )

    def remove(self, file: FileRef | None) -> None:
        """Forget the record of a file *which must not exist any more*."""
        if not file:
            return
        self._await_ready()
        path = self._resolve(file)
        if path.exists():
            self.logger.warning(
                "Not removing origin for %s because the file exists!", path.name
            )
            return
        with self._mutation_lock:
            if self._index.pop(path.name) is None:
                self.logger.warning("No origin for %s had been stored", path.name)
                return
            self._writer.schedule()

    def transfer(self, old: FileRef | None, renamed: FileRef | None) -> None:
        """Move the record of a renamed file to its new name."""
        if not old or not renamed:
            return
        self._await_ready()
        old_name = Path(old).name
        new_name = Path(renamed).name
        with self._mutation_lock:
            host = self._index.get(old_name)
            if host is None:
                return
            if not is_encodable(new_name, host):
                self._index.pop(old_name)
                self._writer.schedule()
                self.logger.warning(
                    "Dropping origin %r of %r: new name %r cannot be stored",
                    host,
                    old_name,
                    new_name,
                )
                return
            self._index.rename(old_name, new_name)
            self._writer.schedule()
        self.logger.debug("Transferred origin %s from %s to %s", host, old_name, new_name)

    def get_host(self, file: FileRef | None) -> str | None:
        """Return the host ``file`` was downloaded from."""
        if not file:
            return None
        self._await_ready()
        return self._index.get(Path(file).name)

    def knows_file(self, file: FileRef | None) -> bool:
        """Tell whether a record exists for ``file``."""
        if not file:
            return False
        self._await_ready()
        return self._index.contains(Path(file).name)

    def entries(self) -> dict[str, str]:
        """Return a snapshot of all records."""
        self._await_ready()
        return self._index.snapshot()

    def __len__(self) -> int:
        self._await_ready()
        return len(self._index)

    # Internals

    def _resolve(self, file: FileRef) -> Path:
        """Map a bare file name into the download directory."""
        path = Path(file)
        if not path.is_absolute() and path.parent == Path("."):
            return self.download_dir / path
        return path

    def _save(self) -> None:
        snapshot = self._index.snapshot()
        try:
            self.store_file.parent.mkdir(parents=True, exist_ok=True)
            write_entries(self.store_file, snapshot)
        except OSError as e:
            self.logger.error(
                "Failed to save %d provenance entries to %s: %s",
                len(snapshot),
                self.store_file,
                e,
                exc_info=True,
            )
            return
        self.logger.debug("Saved %d provenance entries to %s", len(snapshot), self.store_file)
