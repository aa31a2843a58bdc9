"""Line-oriented codec for the persisted provenance file.

Each line holds ``<file name><SP><host>``. The split point is the last
space, so file names may contain spaces while hosts may not.
"""

from __future__ import annotations

import contextlib
import os
from pathlib import Path
from typing import Iterable, Iterator, Mapping

from ccprov.utils.logging_config import get_logger

logger = get_logger(__name__)

SEP = " "
ENCODING = "utf-8"
_LINE_BREAKS = ("\n", "\r")


def parse_line(line: str) -> tuple[str, str] | None:
    """Parse one persisted line.

    Returns:
        ``(file_name, host)`` or None if the line is malformed

    """
    line = line.rstrip("\r\n")
    sep = line.rfind(SEP)
    if sep <= 0:
        return None
    file_name = line[:sep]
    host = line[sep + 1 :]
    if not file_name or not host:
        return None
    return file_name, host


def format_line(file_name: str, host: str) -> str:
    """Format one entry as a persisted line (without line terminator)."""
    return f"{file_name}{SEP}{host}"


def is_encodable(file_name: str, host: str) -> bool:
    """Tell whether an entry survives a round trip through the file format."""
    if not file_name or not host or SEP in host:
        return False
    return not any(c in file_name or c in host for c in _LINE_BREAKS)


def _iter_entries(entries: Mapping[str, str] | Iterable[tuple[str, str]]) -> Iterator[tuple[str, str]]:
    if isinstance(entries, Mapping):
        return iter(entries.items())
    return iter(entries)


def encode(entries: Mapping[str, str] | Iterable[tuple[str, str]]) -> str:
    """Serialize entries, one line each, ordered by file name."""
    return "".join(
        format_line(file_name, host) + "\n"
        for file_name, host in sorted(_iter_entries(entries))
    )


def decode(text: str) -> dict[str, str]:
    """Parse persisted text.

    Malformed lines are skipped. A file name that occurs more than once
    keeps its last host.
    """
    return _decode_lines(text.split("\n"))


def _decode_lines(lines: Iterable[str]) -> dict[str, str]:
    entries: dict[str, str] = {}
    for line in lines:
        parsed = parse_line(line)
        if parsed is None:
            continue
        file_name, host = parsed
        entries[file_name] = host
    return entries


def read_entries(path: Path) -> dict[str, str]:
    """Read the persisted file line by line.

    An I/O or decoding failure part way through keeps the entries read up to
    that point.
    """
    entries: dict[str, str] = {}
    try:
        with open(path, encoding=ENCODING, newline="\n") as f:
            for line in f:
                parsed = parse_line(line)
                if parsed is not None:
                    entries[parsed[0]] = parsed[1]
    except (OSError, UnicodeDecodeError) as e:
        logger.error(
            "Failed reading %s after %d entries: %s", path, len(entries), e,
            exc_info=True,
        )
    return entries


def write_entries(
    path: Path, entries: Mapping[str, str] | Iterable[tuple[str, str]]
) -> None:
    """Replace the persisted file with the given entries.

    Writes to a temporary sibling and renames it over ``path``.

    Raises:
        OSError: If the file cannot be written

    """
    data = encode(entries)
    temp_file = path.with_name(path.name + ".tmp")
    try:
        with open(temp_file, "w", encoding=ENCODING, newline="\n") as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        temp_file.replace(path)
    except OSError:
        with contextlib.suppress(OSError):
            temp_file.unlink()
        raise
