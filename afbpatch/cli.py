#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
afbpatch - DDS chunk extractor / splicer / stage builder for .afb containers

Usage:
  afbpatch validate bg.png fx1.png
  afbpatch extract stage.afb out_dir
  afbpatch scan stage.afb --csv chunks.csv
  afbpatch splice stage.afb stage_patched.afb --map replace.csv
  afbpatch splice stage.afb stage_patched.afb -r 1=edited/stage_0002.dds
  afbpatch stage bg.png --fx a.png --fx - --fx c.png -o st.afb --sidecar nf.afb
  afbpatch convert jacket.png jk.dds

Mapping CSV (splice --map):
  index,path
  0,edited/stage_0001.dds
  - index is 0-based (chunk #1 in extracted file names == index 0)
  - relative paths are resolved against the CSV folder
  - rows with an empty path are skipped (original bytes kept)
"""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import Dict, List, Optional

import pandas as pd

from .assets import load_template
from .convert import FX_SLOTS, convert_jk, is_valid_image, save_dds_file
from .errors import AfbError, AfbIOError, InvalidArgument, describe
from .locate import (
    DDS_MAGIC,
    POF0_MAGIC,
    extract_chunks,
    locate_chunks,
    replace_chunks,
)
from .stage import convert_stage


def parse_marker(s: str) -> bytes:
    b = s.encode("latin1")
    if not b:
        raise argparse.ArgumentTypeError("marker must not be empty")
    return b


def read_container(p: Path) -> bytes:
    if not p.is_file():
        raise SystemExit(f"[!] File not found: {p}")
    return p.read_bytes()


def chunk_table(chunks, base_name: str, ext: str) -> pd.DataFrame:
    rows = []
    for i, (s, e) in enumerate(chunks):
        rows.append({
            "index": i,
            "start": s,
            "end": e,
            "size": e - s,
            "file_hint": f"{base_name}_{i + 1:04d}{ext}",
        })
    return pd.DataFrame(rows, columns=["index", "start", "end", "size", "file_hint"])


def load_mapping(mapping_csv: Path) -> Dict[int, Path]:
    try:
        df = pd.read_csv(mapping_csv, dtype=str, encoding="utf-8-sig").fillna("")
    except OSError as exc:
        raise AfbIOError(f"Failed to read mapping CSV {mapping_csv}: {exc}") from exc
    except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError) as exc:
        raise InvalidArgument(f"Bad mapping CSV {mapping_csv}: {exc}") from exc
    if "index" not in df.columns or "path" not in df.columns:
        raise InvalidArgument("Mapping CSV must contain columns: 'index', 'path'")
    out: Dict[int, Path] = {}
    for r in df.to_dict(orient="records"):
        if not r["path"].strip():
            continue
        try:
            idx = int(r["index"])
        except ValueError:
            raise InvalidArgument(f"Bad index in mapping CSV: {r['index']!r}") from None
        p = Path(r["path"].strip())
        out[idx] = p if p.is_absolute() else mapping_csv.parent / p
    return out


def parse_replace_arg(s: str) -> tuple:
    idx, sep, path = s.partition("=")
    if not sep or not idx.strip().isdigit() or not path:
        raise argparse.ArgumentTypeError(f"expected INDEX=PATH, got {s!r}")
    return int(idx), Path(path)


def cmd_validate(args) -> int:
    bad = 0
    for p in args.images:
        try:
            is_valid_image(p)
            print(f"[OK] {p}")
        except AfbError as exc:
            print(f"[!] {describe(exc)}")
            bad += 1
    return 1 if bad else 0


def cmd_extract(args) -> int:
    data = read_container(args.container)
    chunks = locate_chunks(data, args.start_marker, args.stop_marker)
    if not chunks:
        raise SystemExit("[!] No chunks found in the file.")

    args.out_dir.mkdir(parents=True, exist_ok=True)
    base = args.base or args.container.stem or "chunk"
    paths = extract_chunks(data, args.out_dir, base, args.ext, chunks)
    for (s, e), p in zip(chunks, paths):
        print(f"[OK] offset={s} size={e - s} -> {p}")
    print(f"[OK] Extracted {len(paths)} chunks -> {args.out_dir}")
    return 0


def cmd_scan(args) -> int:
    data = read_container(args.container)
    chunks = locate_chunks(data, args.start_marker, args.stop_marker)
    df = chunk_table(chunks, args.container.stem or "chunk", args.ext)

    print(f"Input : {args.container} ({len(data)} bytes)")
    if df.empty:
        print("[!] No chunks found.")
    else:
        print(df.to_string(index=False))
        trailer = len(data) - chunks[-1][1]
        print(f"trailer: {trailer} bytes after last chunk")

    if args.csv:
        df.to_csv(args.csv, index=False, encoding="utf-8-sig")
        print(f"[OK] Chunk table -> {args.csv}")
    return 0 if chunks else 1


def cmd_splice(args) -> int:
    data = read_container(args.container)
    chunks = locate_chunks(data, args.start_marker, args.stop_marker)
    if not chunks:
        raise SystemExit("[!] No chunks found in the file.")

    mapping: Dict[int, Path] = {}
    if args.map:
        mapping.update(load_mapping(args.map))
    for idx, p in args.replace or []:
        mapping[idx] = p
    if not mapping:
        raise SystemExit("[!] Nothing to replace (use --map and/or -r INDEX=PATH).")

    replacements: List[Optional[bytes]] = [None] * len(chunks)
    for idx, p in sorted(mapping.items()):
        if idx < 0 or idx >= len(chunks):
            raise SystemExit(f"[!] index {idx} out of range. found={len(chunks)}")
        if not p.is_file():
            raise SystemExit(f"[!] replacement not found: {p}")
        replacements[idx] = p.read_bytes()

    args.out.parent.mkdir(parents=True, exist_ok=True)
    size = replace_chunks(data, args.out, chunks, replacements)
    for idx, new in enumerate(replacements):
        if new is not None:
            s, e = chunks[idx]
            print(f"     Replaced index {idx} at [{s}, {e}) old={e - s} new={len(new)}")
    print(f"[OK] Patched written: {args.out} ({size} bytes)")
    return 0


def cmd_stage(args) -> int:
    fx = [None if p == "-" else Path(p) for p in args.fx or []]
    if len(fx) > FX_SLOTS:
        raise SystemExit(f"[!] At most {FX_SLOTS} --fx images are supported.")
    template = load_template(args.template) if args.template else None

    res = convert_stage(args.background, fx, args.out, args.sidecar, template=template)
    fx_note = f"fx={res.fx_size} bytes" if res.has_fx else "fx=blank"
    print(f"[OK] Stage written: {res.stage_path} ({res.stage_size} bytes, bg={res.bg_size} bytes, {fx_note})")
    print(f"[OK] Sidecar written: {res.sidecar_path}")
    return 0


def cmd_convert(args) -> int:
    save_dds_file(convert_jk(args.image), args.out)
    print(f"[OK] {args.image} -> {args.out}")
    return 0


def add_marker_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--start-marker", type=parse_marker, default=DDS_MAGIC,
                   help="Chunk start signature (default: 'DDS ')")
    p.add_argument("--stop-marker", type=parse_marker, default=POF0_MAGIC,
                   help="Signature that ends the chunk region (default: 'POF0')")


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="afbpatch",
                                 description="Extract / replace DDS chunks in .afb containers and build stage files.")
    sp = ap.add_subparsers(dest="cmd", required=True)

    v = sp.add_parser("validate", help="check that images can be decoded")
    v.add_argument("images", nargs="+", type=Path)
    v.set_defaults(func=cmd_validate)

    x = sp.add_parser("extract", help="dump every chunk to its own file")
    x.add_argument("container", type=Path)
    x.add_argument("out_dir", type=Path)
    x.add_argument("--ext", default=".dds", help="Output extension (default: .dds)")
    x.add_argument("--base", default=None, help="Output base name (default: input file stem)")
    add_marker_args(x)
    x.set_defaults(func=cmd_extract)

    s = sp.add_parser("scan", help="list chunk offsets/sizes")
    s.add_argument("container", type=Path)
    s.add_argument("--csv", type=Path, default=None, help="Also write the chunk table as CSV")
    s.add_argument("--ext", default=".dds")
    add_marker_args(s)
    s.set_defaults(func=cmd_scan)

    r = sp.add_parser("splice", help="rebuild a container with some chunks replaced")
    r.add_argument("container", type=Path)
    r.add_argument("out", type=Path)
    r.add_argument("--map", type=Path, default=None, help="CSV with columns index,path")
    r.add_argument("-r", "--replace", type=parse_replace_arg, action="append",
                   help="INDEX=PATH (0-based, repeatable)")
    add_marker_args(r)
    r.set_defaults(func=cmd_splice)

    st = sp.add_parser("stage", help="build a stage container from background + effect images")
    st.add_argument("background", type=Path)
    st.add_argument("--fx", action="append",
                    help=f"Effect image slot, up to {FX_SLOTS}. Images fill quadrants in order; '-' is an empty slot that is skipped")
    st.add_argument("-o", "--out", type=Path, required=True, help="Output stage container")
    st.add_argument("--sidecar", type=Path, required=True, help="Output sidecar file")
    st.add_argument("--template", type=Path, default=None,
                    help="Use this two-chunk container instead of the built-in template")
    st.set_defaults(func=cmd_stage)

    c = sp.add_parser("convert", help="image -> 300x300 BC1 DDS")
    c.add_argument("image", type=Path)
    c.add_argument("out", type=Path)
    c.set_defaults(func=cmd_convert)

    return ap


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        return args.func(args)
    except AfbError as exc:
        raise SystemExit(f"[!] {describe(exc)}") from None


if __name__ == "__main__":
    raise SystemExit(main())
