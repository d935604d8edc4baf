"""
Abstract base classes for virtual filesystem backends.

This module defines the contract every backend implements, the file handle
interface and the metadata record returned by stat(). Path parsing, namespace
lookup and traversal ordering live here so that backends cannot drift apart on
them; backends supply storage only.
"""

import io
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional, Tuple, Union

from .config import FilesystemConfig
from .exceptions import NamespaceUnknownError, NotFoundError
from .paths import NamespaceInfo, Path, PathParser

logger = logging.getLogger(__name__)

Reference = Union[str, Path]
Visitor = Callable[[Path, "FileInfo"], None]
CommitFn = Callable[[Path, bytes, datetime], "FileInfo"]


def utcnow() -> datetime:
    """Timestamp used for mod_time of new entries."""
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class FileInfo:
    """
    Point-in-time metadata for one entry.

    Attributes:
        name: Absolute virtual name of the entry (never namespace-prefixed)
        size: Size in bytes (0 for directories)
        mode: Permission bits
        mod_time: Last commit time, timezone-aware UTC
        is_dir: True for directories
    """
    name: str
    size: int
    mode: int
    mod_time: datetime
    is_dir: bool

    @property
    def base(self) -> str:
        """Last segment of the name."""
        return self.name.rsplit("/", 1)[-1]


class File(ABC):
    """
    An open handle bound to one virtual path.

    Handles are either readable or writable, never both. A writable handle's
    content becomes visible to open(), stat() and walk() only once it is closed.
    """

    def __init__(self, path: Path, mode: str) -> None:
        if mode not in ("r", "w"):
            raise ValueError(f"mode must be 'r' or 'w', got {mode!r}")
        self._path = path
        self._mode = mode
        self._closed = False

    @property
    def path(self) -> Path:
        return self._path

    @property
    def name(self) -> str:
        """Virtual name of the bound entry."""
        return self._path.name

    @property
    def mode(self) -> str:
        return self._mode

    @property
    def closed(self) -> bool:
        return self._closed

    def readable(self) -> bool:
        return self._mode == "r"

    def writable(self) -> bool:
        return self._mode == "w"

    @abstractmethod
    def read(self, size: int = -1) -> bytes:
        """Read up to ``size`` bytes; -1 reads to the end."""
        pass

    @abstractmethod
    def write(self, data: bytes) -> int:
        """Append ``data`` and return the number of bytes written."""
        pass

    @abstractmethod
    def stat(self) -> FileInfo:
        """Metadata snapshot; after close this is the committed metadata."""
        pass

    @abstractmethod
    def close(self) -> None:
        """Close the handle, committing written content. Closing twice is a no-op."""
        pass

    def _check_open(self) -> None:
        if self._closed:
            raise ValueError("I/O operation on closed file.")

    def __enter__(self) -> "File":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __repr__(self) -> str:
        state = "closed" if self._closed else "open"
        return f"<{self.__class__.__name__} {self._path} mode={self._mode!r} {state}>"


class BufferedFile(File):
    """
    File handle that keeps its content in memory.

    Readers serve a snapshot of the committed bytes taken at open(). Writers
    collect bytes in a buffer and hand them to the backend's commit function on
    close().
    """

    def __init__(
        self,
        path: Path,
        mode: str,
        info: FileInfo,
        data: bytes = b"",
        commit: Optional[CommitFn] = None,
    ) -> None:
        super().__init__(path, mode)
        if mode == "w" and commit is None:
            raise ValueError("writable handles need a commit function")
        self._info = info
        self._buffer = io.BytesIO(data)
        self._commit = commit

    @classmethod
    def reader(cls, path: Path, data: bytes, info: FileInfo) -> "BufferedFile":
        return cls(path, "r", info=info, data=data)

    @classmethod
    def writer(cls, path: Path, commit: CommitFn, file_mode: int) -> "BufferedFile":
        info = FileInfo(
            name=path.name, size=0, mode=file_mode, mod_time=utcnow(), is_dir=False
        )
        return cls(path, "w", info=info, commit=commit)

    def read(self, size: int = -1) -> bytes:
        self._check_open()
        if not self.readable():
            raise io.UnsupportedOperation("File not open for reading")
        return self._buffer.read(size)

    def write(self, data: bytes) -> int:
        self._check_open()
        if not self.writable():
            raise io.UnsupportedOperation("File not open for writing")
        return self._buffer.write(data)

    def stat(self) -> FileInfo:
        if self.writable() and not self._closed:
            return FileInfo(
                name=self._info.name,
                size=self._buffer.getbuffer().nbytes,
                mode=self._info.mode,
                mod_time=self._info.mod_time,
                is_dir=False,
            )
        return self._info

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        if self.writable():
            self._info = self._commit(self._path, self._buffer.getvalue(), utcnow())
        self._buffer.close()


class Filesystem(ABC):
    """
    Contract every virtual filesystem backend implements.

    Every operation taking a location accepts a raw reference string
    ('/dir/file', 'namespace:/dir/file', 'namespace', or a real path inside the
    current namespace root) or an already parsed Path.

    Failures are raised as pkgfs exceptions:
    - ParseError: malformed or unresolvable reference
    - NotFoundError: missing entry
    - ParentMissingError: create() without an existing parent directory
    - ConflictError / IsDirectoryError: entry of the wrong kind
    - NamespaceUnknownError: unknown or unconfigured namespace
    """

    def __init__(self, config: Optional[FilesystemConfig] = None) -> None:
        self.config = config or FilesystemConfig()
        self._namespaces: Dict[str, NamespaceInfo] = self.config.known_namespaces()
        self._parser = PathParser(self.config.current, self._namespaces)

    # ========== Namespaces and references ==========

    def current(self) -> NamespaceInfo:
        """Return the namespace bare paths resolve against."""
        if self.config.current is None:
            raise NamespaceUnknownError(
                "No current namespace is configured",
                error_code="NO_CURRENT_NAMESPACE",
            )
        return self.config.current

    def info(self, namespace: str) -> NamespaceInfo:
        """Return the NamespaceInfo for ``namespace``."""
        try:
            return self._namespaces[namespace]
        except KeyError:
            raise NamespaceUnknownError(
                f"Unknown namespace {namespace!r}", namespace=namespace
            ) from None

    def parse(self, ref: Reference) -> Path:
        """Resolve a reference to a Path."""
        return self._parser.parse(ref)

    # ========== Entry operations ==========

    @abstractmethod
    def mkdir_all(self, ref: Reference, mode: Optional[int] = None) -> None:
        """
        Create a directory and every missing ancestor.

        Succeeds silently if the directory already exists.

        Raises:
            ConflictError: If a non-directory occupies any segment of the path
        """
        pass

    @abstractmethod
    def create(self, ref: Reference) -> File:
        """
        Return a writable handle bound to a new, empty entry.

        Never creates directories.

        Raises:
            ParentMissingError: If the parent directory does not exist
            IsDirectoryError: If a directory occupies the path
        """
        pass

    @abstractmethod
    def open(self, ref: Reference) -> File:
        """
        Return a readable handle over the last committed content.

        Raises:
            NotFoundError: If no entry exists
            IsDirectoryError: If the path is a directory
        """
        pass

    @abstractmethod
    def stat(self, ref: Reference) -> FileInfo:
        """
        Return metadata for the entry.

        Raises:
            NotFoundError: If no entry exists
        """
        pass

    @abstractmethod
    def remove(self, ref: Reference) -> None:
        """
        Delete exactly one entry. Empty directories may be removed.

        Raises:
            NotFoundError: If no entry exists
            ConflictError: If the path is a non-empty directory
        """
        pass

    @abstractmethod
    def remove_all(self, ref: Reference) -> None:
        """Delete the entry and its whole subtree; a missing entry is a no-op."""
        pass

    @abstractmethod
    def _children(self, path: Path) -> List[Tuple[Path, FileInfo]]:
        """Return the direct children of the directory at ``path``, in any order."""
        pass

    # ========== Traversal ==========

    def walk(self, ref: Reference, visitor: Visitor) -> None:
        """
        Visit ``ref`` and everything below it.

        The root is visited first. Directory entries are visited in name order,
        depth first, which is the order of a sorted walk of an equivalent real
        directory. An exception raised by the visitor aborts the walk and
        propagates.

        Raises:
            NotFoundError: If the root does not exist
        """
        root = self.parse(ref)
        self._walk(root, self.stat(root), visitor)

    def _walk(self, path: Path, info: FileInfo, visitor: Visitor) -> None:
        visitor(path, info)
        if not info.is_dir:
            return
        for child, child_info in sorted(self._children(path), key=lambda item: item[0].base):
            self._walk(child, child_info, visitor)

    # ========== Conveniences ==========

    def exists(self, ref: Reference) -> bool:
        """True if stat() would succeed."""
        try:
            self.stat(ref)
        except NotFoundError:
            return False
        return True

    def __repr__(self) -> str:
        current = self.config.current.namespace if self.config.current else None
        return f"<{self.__class__.__name__} current={current!r}>"
