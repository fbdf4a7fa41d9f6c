from __future__ import annotations


class AfbError(Exception):
    """Base class for every failure reported by afbpatch."""


class InvalidArgument(AfbError, ValueError):
    pass


class ChunksNotFound(AfbError):
    pass


class AfbIOError(AfbError, OSError):
    pass


class CodecError(AfbError):
    """Image decode or texture compression rejected its input."""


def describe(err: BaseException) -> str:
    """Single line message with the causes appended ("outer: inner")."""
    parts = [str(err) or type(err).__name__]
    cause = err.__cause__
    while cause is not None:
        text = str(cause)
        if text and text not in parts[-1]:
            parts.append(text)
        cause = cause.__cause__
    return ": ".join(parts)
