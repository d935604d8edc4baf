"""In-memory virtual filesystem backend.

Every namespace known to the config starts with an empty root directory.
"""

import logging
import threading
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from ..base import BufferedFile, FileInfo, Filesystem, Reference, utcnow
from ..config import FilesystemConfig
from ..exceptions import (
    ConflictError,
    IsDirectoryError,
    NotFoundError,
    ParentMissingError,
)
from ..paths import ROOT, Path

logger = logging.getLogger(__name__)


@dataclass
class _Entry:
    info: FileInfo
    data: bytes = b""


class MemoryFilesystem(Filesystem):
    """
    Backend holding every namespace's tree in a dictionary keyed by Path.

    Example:
        >>> fs = MemoryFilesystem(FilesystemConfig.for_namespace("app"))
        >>> fs.mkdir_all("/public")
        >>> with fs.create("app:/public/index.html") as f:
        ...     f.write(b"<html/>")
        7
    """

    def __init__(self, config: Optional[FilesystemConfig] = None) -> None:
        super().__init__(config)
        self._lock = threading.RLock()
        self._entries: Dict[Path, _Entry] = {}
        for namespace in self._namespaces:
            root = Path(namespace, ROOT)
            self._entries[root] = _Entry(self._dir_info(root, self.config.dir_mode))
        logger.debug(f"MemoryFilesystem initialized with namespaces {sorted(self._namespaces)}")

    def mkdir_all(self, ref: Reference, mode: Optional[int] = None) -> None:
        path = self.parse(ref)
        mode = self.config.dir_mode if mode is None else mode

        with self._lock:
            for ancestor in self._chain(path):
                entry = self._entries.get(ancestor)
                if entry is None:
                    self._entries[ancestor] = _Entry(self._dir_info(ancestor, mode))
                    logger.debug(f"mkdir {ancestor}")
                elif not entry.info.is_dir:
                    raise ConflictError(
                        f"Cannot create directory {path}: {ancestor.name} is a file",
                        reference=str(path),
                        namespace=path.namespace,
                    )

    def create(self, ref: Reference) -> BufferedFile:
        path = self.parse(ref)

        with self._lock:
            existing = self._entries.get(path)
            if existing is not None and existing.info.is_dir:
                raise IsDirectoryError(
                    f"Cannot create {path}: it is a directory",
                    reference=str(path),
                    namespace=path.namespace,
                )
            self._require_parent(path)

        return BufferedFile.writer(path, self._commit, self.config.file_mode)

    def open(self, ref: Reference) -> BufferedFile:
        path = self.parse(ref)

        with self._lock:
            entry = self._lookup(path)
            if entry.info.is_dir:
                raise IsDirectoryError(
                    f"Cannot open {path}: it is a directory",
                    reference=str(path),
                    namespace=path.namespace,
                )
            return BufferedFile.reader(path, entry.data, entry.info)

    def stat(self, ref: Reference) -> FileInfo:
        path = self.parse(ref)
        with self._lock:
            return self._lookup(path).info

    def remove(self, ref: Reference) -> None:
        path = self.parse(ref)

        with self._lock:
            entry = self._lookup(path)
            if entry.info.is_dir and self._children(path):
                raise ConflictError(
                    f"Cannot remove {path}: directory is not empty",
                    reference=str(path),
                    namespace=path.namespace,
                )
            del self._entries[path]
        logger.debug(f"remove {path}")

    def remove_all(self, ref: Reference) -> None:
        path = self.parse(ref)

        with self._lock:
            doomed = [p for p in self._entries if p.is_relative_to(path)]
            for p in doomed:
                del self._entries[p]
        if doomed:
            logger.debug(f"remove_all {path}: {len(doomed)} entries")

    def _children(self, path: Path) -> List[Tuple[Path, FileInfo]]:
        with self._lock:
            return [
                (p, entry.info)
                for p, entry in self._entries.items()
                if p != path and p.parent == path
            ]

    # ========== Internals ==========

    def _commit(self, path: Path, data: bytes, mod_time: datetime) -> FileInfo:
        with self._lock:
            self._require_parent(path)
            existing = self._entries.get(path)
            if existing is not None and existing.info.is_dir:
                raise IsDirectoryError(
                    f"Cannot commit {path}: a directory was created there",
                    reference=str(path),
                    namespace=path.namespace,
                )
            info = FileInfo(
                name=path.name,
                size=len(data),
                mode=self.config.file_mode,
                mod_time=mod_time,
                is_dir=False,
            )
            self._entries[path] = _Entry(info, data)
        logger.debug(f"commit {path} ({len(data)} bytes)")
        return info

    def _lookup(self, path: Path) -> _Entry:
        entry = self._entries.get(path)
        if entry is None:
            raise NotFoundError(
                f"No such entry: {path}", reference=str(path), namespace=path.namespace
            )
        return entry

    def _require_parent(self, path: Path) -> None:
        parent = self._entries.get(path.parent) if not path.is_root else None
        if parent is None or not parent.info.is_dir:
            raise ParentMissingError(
                f"Cannot create {path}: parent directory does not exist",
                parent=path.parent.name,
                reference=str(path),
                namespace=path.namespace,
            )

    @staticmethod
    def _chain(path: Path) -> List[Path]:
        """The root, every ancestor of ``path``, then ``path`` itself."""
        chain = [Path(path.namespace, ROOT)]
        for part in path.relative_parts():
            chain.append(chain[-1].join(part))
        return chain

    @staticmethod
    def _dir_info(path: Path, mode: int) -> FileInfo:
        return FileInfo(name=path.name, size=0, mode=mode, mod_time=utcnow(), is_dir=True)
