"""Reference backends implementing the pkgfs contract."""

from .disk import DiskFilesystem, LocalRoot
from .memory import MemoryFilesystem

__all__ = ["MemoryFilesystem", "DiskFilesystem", "LocalRoot"]
