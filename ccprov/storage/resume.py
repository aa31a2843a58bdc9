"""Download policy helpers built on the provenance store.

Loaders use these to decide whether an existing partial file may be
continued from a given host, or whether a fresh download must go to a new
file name.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING
from urllib.parse import urlsplit

if TYPE_CHECKING:  # pragma: no cover
    from ccprov.storage.provenance import FileRef, ProvenanceStore

SUPPORTED_REMOTE_SCHEMES = ("https", "http", "ftp", "sftp")


def origin_host(url: str | None) -> str | None:
    """Return the host of ``url`` if it uses a supported remote scheme."""
    if not url:
        return None
    try:
        parts = urlsplit(url)
        host = parts.hostname
    except ValueError:
        return None
    if parts.scheme.lower() not in SUPPORTED_REMOTE_SCHEMES:
        return None
    return host or None


def record_download(store: ProvenanceStore, url: str | None, file_name: str | None) -> bool:
    """Record the origin of a completed download.

    Returns:
        True if ``url`` was remote and the origin was offered to the store

    """
    host = origin_host(url)
    if host is None or not file_name:
        return False
    store.add(host, file_name)
    return True


def may_resume(store: ProvenanceStore, file: FileRef, host: str | None) -> bool:
    """Tell whether a partial ``file`` may be continued from ``host``.

    A file without a record may be resumed (the process may have died
    before the download finished and got recorded); a recorded file only
    from the host it came from.
    """
    if not store.knows_file(file):
        return True
    return host is not None and host == store.get_host(file)


def suggest_alternative_filename(path: str | Path) -> str | None:
    """Suggest a free name next to an existing file.

    ``song.MP3`` becomes ``song.1.mp3``, then ``song.2.mp3`` and so on.

    Returns:
        The new base name, or None if ``path`` does not exist

    """
    path = Path(path)
    if not path.exists():
        return None
    name = path.name
    dot = name.rfind(".")
    if dot > 0:
        stem, extension = name[:dot], name[dot:].lower()
    else:
        stem, extension = name, ""
    counter = 0
    while True:
        counter += 1
        candidate = f"{stem}.{counter}{extension}"
        if not (path.parent / candidate).exists():
            return candidate
