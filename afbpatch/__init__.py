"""Locate, extract and splice marker-delimited DDS chunks in game containers."""

from .assets import FX_DUMMY, NF_DUMMY, STAGE_CHUNKS, STAGE_TEMPLATE, load_template
from .convert import convert_bg, convert_dds, convert_fx, convert_jk, is_valid_image, save_dds_file
from .errors import AfbError, AfbIOError, ChunksNotFound, CodecError, InvalidArgument
from .locate import (
    extract_chunks,
    find_marker,
    locate_chunks,
    locate_dds_chunks,
    replace_chunks,
    splice_chunks,
)
from .stage import StageResult, convert_stage, extract_afb

__version__ = "0.1.0"
