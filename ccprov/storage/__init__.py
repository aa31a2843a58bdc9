"""Storage components.

This module handles the provenance index, its file codec, debounced
write-back and startup reconciliation.
"""

from __future__ import annotations

from ccprov.storage.debounce import DebouncedWriter
from ccprov.storage.provenance import ProvenanceStore
from ccprov.storage.provenance_index import ProvenanceIndex
from ccprov.storage.reconcile import ReconcileResult
from ccprov.storage.resume import (
    may_resume,
    origin_host,
    record_download,
    suggest_alternative_filename,
)

__all__ = [
    "DebouncedWriter",
    "ProvenanceIndex",
    "ProvenanceStore",
    "ReconcileResult",
    "may_resume",
    "origin_host",
    "record_download",
    "suggest_alternative_filename",
]
