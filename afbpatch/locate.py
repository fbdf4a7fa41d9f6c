# -*- coding: utf-8 -*-
"""
locate.py
- Find marker-delimited chunks ("DDS " ... "POF0") inside a container buffer,
  dump them to files, and rebuild the container with some chunks replaced.
- There is no index table to trust here. A chunk starts at its "DDS " marker and
  runs until the next "DDS ", the "POF0" pointer table, or EOF (whichever comes first).
- Marker bytes showing up inside a payload are NOT detected. Same heuristic as
  the existing files were built with, so chunk boundaries stay compatible.
"""

from __future__ import annotations

from pathlib import Path
from typing import BinaryIO, List, Optional, Sequence, Tuple

from .errors import AfbIOError, InvalidArgument

DDS_MAGIC = b"DDS "
POF0_MAGIC = b"POF0"

Chunk = Tuple[int, int]


def find_marker(data: bytes, needle: bytes, start: int = 0) -> Optional[int]:
    if start >= len(data) or not needle:
        return None
    i = data.find(needle, start)
    return None if i == -1 else i


def find_all(data: bytes, needle: bytes) -> List[int]:
    offs = []
    i = 0
    while True:
        j = find_marker(data, needle, i)
        if j is None:
            break
        offs.append(j)
        i = j + 1
    return offs


def locate_chunks(data: bytes, start_marker: bytes, stop_marker: bytes) -> List[Chunk]:
    """
    Returns ascending, non-overlapping (start, end) ranges. start is the offset
    of the start marker itself, end is exclusive.
    """
    if not start_marker or not stop_marker:
        raise InvalidArgument("start/stop markers must not be empty")

    chunks: List[Chunk] = []
    cursor = 0
    while True:
        start = find_marker(data, start_marker, cursor)
        if start is None:
            break

        body = start + len(start_marker)
        stop = find_marker(data, stop_marker, body)
        nxt = find_marker(data, start_marker, body)

        if stop is None and nxt is None:
            chunks.append((start, len(data)))
            break

        if stop is None:
            end = nxt
        elif nxt is None:
            end = stop
        else:
            end = min(stop, nxt)

        chunks.append((start, end))
        cursor = end

    return chunks


def locate_dds_chunks(data: bytes) -> List[Chunk]:
    return locate_chunks(data, DDS_MAGIC, POF0_MAGIC)


def extract_chunks(data: bytes, out_dir: Path, base_name: str, extension: str,
                   chunks: Sequence[Chunk]) -> List[Path]:
    """
    Write each chunk verbatim to out_dir/{base_name}_{NNNN}{extension} (1-based).
    out_dir has to exist already. Files written before a failure are left as is.
    """
    out_dir = Path(out_dir)
    if not out_dir.is_dir():
        raise AfbIOError(f"Output folder not found: {out_dir}")

    written = []
    for i, (s, e) in enumerate(chunks):
        path = out_dir / f"{base_name}_{i + 1:04d}{extension}"
        try:
            path.write_bytes(data[s:e])
        except OSError as exc:
            raise AfbIOError(f"Failed to write chunk #{i + 1} -> {path}: {exc}") from exc
        written.append(path)
    return written


def check_splice_args(data: bytes, chunks: Sequence[Chunk],
                      replacements: Sequence[Optional[bytes]]) -> None:
    if len(replacements) < len(chunks):
        raise InvalidArgument(
            f"Replacements length ({len(replacements)}) must be at least equal to "
            f"chunks length ({len(chunks)})"
        )
    prev_end = 0
    for i, (s, e) in enumerate(chunks):
        if s < prev_end or e < s or e > len(data):
            raise InvalidArgument(
                f"Chunk #{i} [{s}, {e}) is out of order or outside the buffer (size={len(data)})"
            )
        prev_end = e


def write_spliced(data: bytes, chunks: Sequence[Chunk],
                  replacements: Sequence[Optional[bytes]], fp: BinaryIO) -> int:
    """Stream data into fp with chunk i swapped for replacements[i] when it is not None."""
    view = memoryview(data)
    total = 0
    cursor = 0
    for (s, e), new in zip(chunks, replacements):
        total += fp.write(view[cursor:s])
        total += fp.write(view[s:e] if new is None else new)
        cursor = e
    # trailer (POF0 table, footer) goes out untouched
    total += fp.write(view[cursor:])
    return total


def replace_chunks(data: bytes, out_path: Path, chunks: Sequence[Chunk],
                   replacements: Sequence[Optional[bytes]]) -> int:
    check_splice_args(data, chunks, replacements)

    out_path = Path(out_path)
    try:
        out = out_path.open("wb")
    except OSError as exc:
        raise AfbIOError(f"Failed to create {out_path}: {exc}") from exc

    try:
        with out:
            return write_spliced(data, chunks, replacements, out)
    except OSError as exc:
        # no half-written container left behind
        out_path.unlink(missing_ok=True)
        raise AfbIOError(f"Failed to write spliced container -> {out_path}: {exc}") from exc


def splice_chunks(data: bytes, chunks: Sequence[Chunk],
                  replacements: Sequence[Optional[bytes]]) -> bytes:
    check_splice_args(data, chunks, replacements)

    parts = []
    cursor = 0
    for (s, e), new in zip(chunks, replacements):
        parts.append(data[cursor:s])
        parts.append(data[s:e] if new is None else bytes(new))
        cursor = e
    parts.append(data[cursor:])
    return b"".join(parts)
