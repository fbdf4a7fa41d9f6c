# -*- coding: utf-8 -*-
"""
Host-facing entry points.

Every function follows the host calling convention:
    fn(<wide string args...>, error_buffer, error_buffer_size) -> int
and returns SUCCESS (0) or FAILURE (1). On failure a readable message is copied
into error_buffer (ctypes c_wchar or c_uint16 array), truncated to
error_buffer_size - 1 UTF-16 units and NUL-terminated.

Wide string args may be None (NULL), str, UTF-16LE bytes, c_wchar_p or a
c_wchar / c_uint16 array. They are turned into plain str right here; nothing
past this module ever sees a ctypes object.
"""

from __future__ import annotations

import ctypes
import functools
from pathlib import Path
from typing import Any, List, Optional

from . import convert, stage
from .errors import InvalidArgument, describe

SUCCESS = 0
FAILURE = 1


def set_error_msg(error_buffer: Any, error_buffer_size: int, err: BaseException) -> int:
    if error_buffer is None or error_buffer_size <= 0:
        return FAILURE

    units = describe(err).encode("utf-16-le", "surrogatepass")
    cap = error_buffer_size - 1
    # raw pointers (POINTER(c_uint16)) carry no length: error_buffer_size is all we have
    if hasattr(error_buffer, "__len__"):
        cap = min(cap, len(error_buffer) - 1)
    if cap < 0:
        return FAILURE
    count = min(len(units) // 2, cap)

    if getattr(error_buffer, "_type_", None) is ctypes.c_wchar:
        # c_wchar may be wider than 16 bits; drop a split surrogate pair
        text = units[:count * 2].decode("utf-16-le", "ignore")
        for i, ch in enumerate(text):
            error_buffer[i] = ch
        error_buffer[len(text)] = "\0"
    else:
        for i in range(count):
            error_buffer[i] = units[2 * i] | (units[2 * i + 1] << 8)
        error_buffer[count] = 0
    return FAILURE


def _from_units(raw: bytes, name: str) -> str:
    if len(raw) % 2:
        raise InvalidArgument(f"Odd byte length for wchar_t* {name}")
    for i in range(0, len(raw), 2):
        if raw[i] == 0 and raw[i + 1] == 0:
            raw = raw[:i]
            break
    try:
        return raw.decode("utf-16-le")
    except UnicodeDecodeError as exc:
        raise InvalidArgument(f"Invalid UTF-16 sequence in wchar_t* ({name})") from exc


def wchar_to_string(value: Any, name: str = "argument") -> str:
    if isinstance(value, ctypes.c_wchar_p):
        value = value.value
    elif isinstance(value, ctypes.Array):
        if value._type_ is ctypes.c_wchar:
            value = value.value
        else:
            value = bytes(value)

    if value is None:
        raise InvalidArgument(f"NULL received for {name}")

    if isinstance(value, (bytes, bytearray, memoryview)):
        return _from_units(bytes(value), name)

    if isinstance(value, str):
        value = value.split("\0", 1)[0]
        try:
            value.encode("utf-16-le")
        except UnicodeEncodeError as exc:
            raise InvalidArgument(f"Invalid UTF-16 sequence in wchar_t* ({name})") from exc
        return value

    raise InvalidArgument(f"Unsupported wide string type for {name}: {type(value).__name__}")


def wchar_arr_to_list(values: Any, count: int, name: str = "array") -> List[Optional[str]]:
    if count < 0:
        raise InvalidArgument(f"Invalid length: {count}")
    if values is None:
        if count > 0:
            raise InvalidArgument(f"NULL received for {name} while count is greater than 0")
        return []
    if count == 0:
        return []
    if len(values) < count:
        raise InvalidArgument(f"{name} holds {len(values)} entries, count says {count}")

    out: List[Optional[str]] = []
    for i in range(count):
        item = values[i]
        out.append(None if item is None else wchar_to_string(item, f"{name}[{i}]"))
    return out


def api(fn):
    @functools.wraps(fn)
    def wrapper(*args):
        *params, error_buffer, error_buffer_size = args
        try:
            fn(*params)
        except Exception as exc:  # host boundary: report, never raise
            return set_error_msg(error_buffer, error_buffer_size, exc)
        return SUCCESS
    return wrapper


@api
def validate_image(in_path):
    convert.is_valid_image(Path(wchar_to_string(in_path, "in_path")))


@api
def extract_afb(in_path, out_folder):
    src = wchar_to_string(in_path, "in_path")
    dst = wchar_to_string(out_folder, "out_folder")
    stage.extract_afb(Path(src), Path(dst))


@api
def convert_stage(bg_in_path, fx_in_paths, fx_in_paths_count, st_out_path, nf_out_path):
    bg = wchar_to_string(bg_in_path, "bg_in_path")
    fx = wchar_arr_to_list(fx_in_paths, fx_in_paths_count, "fx_in_paths")
    st = wchar_to_string(st_out_path, "st_out_path")
    nf = wchar_to_string(nf_out_path, "nf_out_path")
    stage.convert_stage(
        Path(bg),
        [None if p is None else Path(p) for p in fx],
        Path(st),
        Path(nf),
    )


@api
def convert_jk(in_path, out_path):
    src = wchar_to_string(in_path, "in_path")
    dst = wchar_to_string(out_path, "out_path")
    convert.save_dds_file(convert.convert_jk(Path(src)), Path(dst))
