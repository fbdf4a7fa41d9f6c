# -*- coding: utf-8 -*-
"""
Image -> DDS conversion (Pillow).

- Background : any image -> 1920x1080 BC1 (DXT1)
- Effects    : up to 4 images, 256x256 each, tiled on a 512x512 canvas -> BC3 (DXT5)
- Jacket     : any image -> 300x300 BC1 (DXT1)

Pillow >= 11.2 is needed for the DXT1/DXT5 DDS encoders.
"""

from __future__ import annotations

import io
from pathlib import Path
from typing import Optional, Sequence

from PIL import Image

from .errors import AfbIOError, CodecError, InvalidArgument

BC1 = "DXT1"
BC3 = "DXT5"

BG_SIZE = (1920, 1080)
JK_SIZE = (300, 300)
FX_TILE = 256
FX_CANVAS = FX_TILE * 2
FX_SLOTS = 4

# accepted without sniffing the header (exact, case-sensitive suffix)
PASSTHROUGH_EXTS = {".tga"}
SNIFF_BYTES = 32


def is_valid_image(path: Path) -> None:
    path = Path(path)
    if path.suffix in PASSTHROUGH_EXTS:
        return

    try:
        with path.open("rb") as f:
            head = f.read(SNIFF_BYTES)
    except OSError as exc:
        raise AfbIOError(f"Failed to open image {path}: {exc}") from exc
    if len(head) < SNIFF_BYTES:
        raise CodecError(f"File too small to be an image ({len(head)} bytes): {path}")

    try:
        with Image.open(path):
            pass
    except Exception as exc:  # any Pillow rejection, decompression bombs included
        raise CodecError(f"Unrecognized image format: {path}: {exc}") from exc


def decode_image(path: Path) -> Image.Image:
    path = Path(path)
    try:
        with Image.open(path) as im:
            return im.convert("RGBA")
    except FileNotFoundError as exc:
        raise AfbIOError(f"Image not found: {path}") from exc
    except Exception as exc:
        raise CodecError(f"Failed to decode image {path}: {exc}") from exc


def resize_if_needed(img: Image.Image, width: int, height: int) -> Image.Image:
    if img.size == (width, height):
        return img
    return img.resize((width, height), Image.Resampling.LANCZOS)


def compress_image(img: Image.Image, pixel_format: str) -> bytes:
    """Encode an RGBA image as a block-compressed DDS blob."""
    buf = io.BytesIO()
    try:
        img.save(buf, format="DDS", pixel_format=pixel_format)
    except (OSError, ValueError) as exc:
        raise CodecError(f"Failed to compress {img.size[0]}x{img.size[1]} image as {pixel_format}: {exc}") from exc
    return buf.getvalue()


def convert_dds(path: Path, width: int, height: int, pixel_format: str) -> bytes:
    if width <= 0 or height <= 0:
        raise InvalidArgument("Invalid dimensions: width and height must be greater than 0")
    img = resize_if_needed(decode_image(path), width, height)
    return compress_image(img, pixel_format)


def convert_bg(path: Path) -> bytes:
    return convert_dds(path, *BG_SIZE, BC1)


def convert_jk(path: Path) -> bytes:
    return convert_dds(path, *JK_SIZE, BC1)


def convert_fx(paths: Sequence[Optional[Path]]) -> bytes:
    """
    Tile effect images onto one canvas, filling quadrants in order
    (top-left, top-right, bottom-left, bottom-right).
    Only the first 4 slots are read. None slots are skipped without taking a
    quadrant, so unused quadrants are the trailing ones and stay transparent.
    """
    canvas = Image.new("RGBA", (FX_CANVAS, FX_CANVAS), (0, 0, 0, 0))
    count = 0
    for p in list(paths)[:FX_SLOTS]:
        if p is None:
            continue
        tile = resize_if_needed(decode_image(p), FX_TILE, FX_TILE)
        canvas.paste(tile, ((count % 2) * FX_TILE, (count // 2) * FX_TILE))
        count += 1
    return compress_image(canvas, BC3)


def save_dds_file(blob: bytes, out_path: Path) -> None:
    out_path = Path(out_path)
    try:
        out_path.write_bytes(blob)
    except OSError as exc:
        raise AfbIOError(f"Failed to write {out_path}: {exc}") from exc
