"""
Decode-layer error types.

All errors are local to a single call. Decoding never mutates anything, so
there is no partial state to roll back when one of these is raised.
"""
from __future__ import annotations


class SlabBookError(Exception):
    """Base class for errors raised while decoding or querying account data."""


class FormatError(SlabBookError, ValueError):
    """Buffer length or contents are inconsistent with the declared layout."""


class CorruptionError(SlabBookError, RuntimeError):
    """Tree walk left the arena or exceeded the arena capacity.

    Implies cyclic or out-of-range child indices. Retrying against the same
    buffer will fail the same way.
    """
