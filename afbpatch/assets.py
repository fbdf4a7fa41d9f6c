# -*- coding: utf-8 -*-
"""
Built-in byte assets for stage assembly.

STAGE_TEMPLATE layout:
  0x00  container header (32B)
        background DDS  (DXT1 placeholder, always replaced)
        effects DDS     (DXT5 placeholder, always replaced)
        POF0 pointer table
        EOFC footer
The chunk layout is located once at import (STAGE_CHUNKS) and reused for every build.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass
from pathlib import Path
from typing import Tuple

from .errors import AfbIOError, InvalidArgument
from .locate import DDS_MAGIC, POF0_MAGIC, Chunk, locate_dds_chunks

# DDS_HEADER flags
DDSD_CAPS = 0x1
DDSD_HEIGHT = 0x2
DDSD_WIDTH = 0x4
DDSD_PIXELFORMAT = 0x1000
DDSD_LINEARSIZE = 0x80000
DDPF_FOURCC = 0x4
DDSCAPS_TEXTURE = 0x1000

BLOCK_BYTES = {b"DXT1": 8, b"DXT5": 16}

STAGE_CHUNK_COUNT = 2  # background, effects


def dds_blank(width: int, height: int, fourcc: bytes) -> bytes:
    """Legacy-header DDS with zeroed block data (black, fully transparent for DXT5)."""
    blocks = max(1, (width + 3) // 4) * max(1, (height + 3) // 4)
    linear = blocks * BLOCK_BYTES[fourcc]
    header = struct.pack(
        "<7I44x" "2I4s5I" "5I",
        124,
        DDSD_CAPS | DDSD_HEIGHT | DDSD_WIDTH | DDSD_PIXELFORMAT | DDSD_LINEARSIZE,
        height, width, linear, 0, 0,
        32, DDPF_FOURCC, fourcc, 0, 0, 0, 0, 0,
        DDSCAPS_TEXTURE, 0, 0, 0, 0,
    )
    return DDS_MAGIC + header + b"\x00" * linear


def _build_stage_template() -> bytes:
    head = struct.pack("<4sIII16x", b"STG0", 1, STAGE_CHUNK_COUNT, 0x20)
    bg = dds_blank(4, 4, b"DXT1")
    fx = dds_blank(4, 4, b"DXT5")
    body = head + bg + fx
    # pointer table: the two texture offsets as seen by the engine
    pointers = struct.pack("<II", len(head), len(head) + len(bg))
    pof0 = POF0_MAGIC + struct.pack("<I", len(pointers)) + pointers
    footer = b"EOFC" + struct.pack("<I", 0) + b"\x00" * 8
    return body + pof0 + footer


STAGE_TEMPLATE: bytes = _build_stage_template()
FX_DUMMY: bytes = dds_blank(512, 512, b"DXT5")
NF_DUMMY: bytes = struct.pack("<4sIII", b"NFX0", 1, 0, 0)


@dataclass(frozen=True)
class StageTemplate:
    data: bytes
    chunks: Tuple[Chunk, ...]


def _layout(data: bytes, source: str) -> StageTemplate:
    chunks = tuple(locate_dds_chunks(data))
    if len(chunks) != STAGE_CHUNK_COUNT:
        raise InvalidArgument(
            f"Stage template {source} must hold {STAGE_CHUNK_COUNT} DDS chunks, found {len(chunks)}"
        )
    return StageTemplate(data, chunks)


STAGE: StageTemplate = _layout(STAGE_TEMPLATE, "<built-in>")
STAGE_CHUNKS: Tuple[Chunk, ...] = STAGE.chunks


def load_template(path: Path) -> StageTemplate:
    path = Path(path)
    try:
        data = path.read_bytes()
    except OSError as exc:
        raise AfbIOError(f"Failed to read stage template {path}: {exc}") from exc
    return _layout(data, str(path))
