# -*- coding: utf-8 -*-
"""
Stage assembly and container extraction.

convert_stage: background + optional effect images -> stage container + sidecar.
extract_afb  : container -> {stem}_0001.dds, {stem}_0002.dds, ...
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence

from .assets import FX_DUMMY, NF_DUMMY, STAGE, StageTemplate
from .convert import convert_bg, convert_fx
from .errors import AfbIOError, ChunksNotFound
from .locate import extract_chunks, locate_dds_chunks, replace_chunks


@dataclass
class StageResult:
    stage_path: Path
    sidecar_path: Path
    stage_size: int
    bg_size: int
    fx_size: int
    has_fx: bool


def convert_stage(bg_path: Path, fx_paths: Sequence[Optional[Path]], stage_out: Path,
                  sidecar_out: Path, template: Optional[StageTemplate] = None) -> StageResult:
    template = template or STAGE

    bg_dds = convert_bg(bg_path)
    has_fx = any(p is not None for p in fx_paths)
    # a missing effects texture still gets a well-formed (blank) chunk
    fx_dds = convert_fx(fx_paths) if has_fx else FX_DUMMY

    size = replace_chunks(template.data, stage_out, template.chunks, [bg_dds, fx_dds])

    sidecar_out = Path(sidecar_out)
    try:
        sidecar_out.write_bytes(NF_DUMMY)
    except OSError as exc:
        raise AfbIOError(f"Failed to write sidecar {sidecar_out}: {exc}") from exc

    return StageResult(Path(stage_out), sidecar_out, size, len(bg_dds), len(fx_dds), has_fx)


def extract_afb(path: Path, out_dir: Path) -> List[Path]:
    path = Path(path)
    try:
        data = path.read_bytes()
    except OSError as exc:
        raise AfbIOError(f"Failed to read {path}: {exc}") from exc

    chunks = locate_dds_chunks(data)
    if not chunks:
        raise ChunksNotFound(f"No .dds chunks found in the file: {path}")

    return extract_chunks(data, out_dir, path.stem or "chunk", ".dds", chunks)
