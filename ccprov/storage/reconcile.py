"""Startup reconciliation of the provenance index against the download directory.

Loads the persisted snapshot, then drops records of files that disappeared
while the process was not running.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from ccprov.storage.provenance_codec import read_entries
from ccprov.utils.logging_config import get_logger

if TYPE_CHECKING:  # pragma: no cover
    from ccprov.storage.provenance_index import ProvenanceIndex

logger = get_logger(__name__)


@dataclass
class ReconcileResult:
    """Outcome of one reconciliation run."""

    loaded: int = 0
    pruned: int = 0
    cleared: bool = False

    @property
    def modified(self) -> bool:
        """Whether reconciliation changed the index."""
        return self.cleared or self.pruned > 0


def list_download_names(download_dir: Path) -> set[str] | None:
    """List the base names in ``download_dir``.

    Returns:
        The names, or None if the directory cannot be read

    """
    try:
        return {entry.name for entry in download_dir.iterdir()}
    except OSError as e:
        logger.debug("Cannot list %s: %s", download_dir, e)
        return None


def load(index: ProvenanceIndex, store_file: Path) -> int:
    """Replace the index content with the persisted snapshot, if any.

    Returns:
        Number of entries loaded

    """
    if not store_file.is_file():
        logger.debug("No persisted provenance at %s", store_file)
        return 0
    entries = read_entries(store_file)
    index.replace_all(entries)
    logger.debug("Loaded %d provenance entries from %s", len(entries), store_file)
    return len(entries)


def reconcile(
    index: ProvenanceIndex, download_dir: Path, store_file: Path
) -> ReconcileResult:
    """Load the persisted snapshot and prune records of vanished files.

    An empty or unreadable download directory clears the index and deletes
    the persisted file.
    """
    result = ReconcileResult(loaded=load(index, store_file))

    names = list_download_names(download_dir)
    if not names:
        dropped = index.clear()
        try:
            store_file.unlink(missing_ok=True)
        except OSError as e:
            logger.warning("Could not delete %s: %s", store_file, e)
        result.cleared = dropped > 0 or result.loaded > 0
        if result.cleared:
            logger.info(
                "Download directory %s is empty, forgot %d entries",
                download_dir,
                dropped,
            )
        return result

    stale = index.retain(names)
    result.pruned = len(stale)
    if stale:
        logger.info(
            "Pruned %d provenance entries for missing files: %s",
            len(stale),
            ", ".join(sorted(stale)),
        )
    return result
