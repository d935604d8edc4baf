"""Whole-buffer helpers built on Filesystem.create() and Filesystem.open()."""

from typing import Optional

from .base import Filesystem, Reference


def write_file(
    fs: Filesystem, ref: Reference, data: bytes, mode: Optional[int] = None
) -> int:
    """
    Replace the content of ``ref`` with ``data``.

    The parent directory must already exist. ``mode`` is accepted for
    signature parity with os-level helpers; the backend's configured file
    mode applies.

    Returns:
        Number of bytes written
    """
    with fs.create(ref) as f:
        return f.write(data)


def read_file(fs: Filesystem, ref: Reference) -> bytes:
    """Return the full committed content of ``ref``."""
    with fs.open(ref) as f:
        return f.read()
