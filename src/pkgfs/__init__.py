"""Namespaced virtual filesystem contract with interchangeable backends.

Example:
    >>> from pkgfs import FilesystemConfig, MemoryFilesystem, read_file, write_file
    >>> fs = MemoryFilesystem(FilesystemConfig.for_namespace("app"))
    >>> fs.mkdir_all("/public")
    >>> write_file(fs, "app:/public/index.html", b"hello")
    5
    >>> read_file(fs, "/public/index.html")
    b'hello'
"""

from .backends import DiskFilesystem, MemoryFilesystem
from .base import BufferedFile, File, FileInfo, Filesystem
from .config import FilesystemConfig
from .exceptions import (
    ConflictError,
    IsDirectoryError,
    NamespaceUnknownError,
    NotFoundError,
    ParentMissingError,
    ParseError,
    PathEscapeError,
    PkgfsError,
)
from .paths import NamespaceInfo, ParseOutcome, Path, PathParser, ReferenceForm
from .util import read_file, write_file

__version__ = "0.1.0"

__all__ = [
    # Contract
    "Filesystem",
    "File",
    "BufferedFile",
    "FileInfo",
    # Paths
    "Path",
    "NamespaceInfo",
    "PathParser",
    "ParseOutcome",
    "ReferenceForm",
    # Configuration
    "FilesystemConfig",
    # Backends
    "MemoryFilesystem",
    "DiskFilesystem",
    # Helpers
    "read_file",
    "write_file",
    # Errors
    "PkgfsError",
    "ParseError",
    "NotFoundError",
    "ParentMissingError",
    "ConflictError",
    "IsDirectoryError",
    "NamespaceUnknownError",
    "PathEscapeError",
]
