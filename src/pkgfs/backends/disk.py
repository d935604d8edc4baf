"""Disk-backed virtual filesystem backend.

Each namespace maps to one host directory; virtual names are POSIX paths below
that directory.
"""

from __future__ import annotations

import errno
import logging
import os
import re
import shutil
import stat as stat_mod
import uuid
from datetime import datetime, timezone
from pathlib import Path as HostPath
from typing import Dict, List, Optional, Tuple

from ..base import BufferedFile, FileInfo, Filesystem, Reference
from ..config import FilesystemConfig
from ..exceptions import (
    ConflictError,
    IsDirectoryError,
    NamespaceUnknownError,
    NotFoundError,
    ParentMissingError,
    PathEscapeError,
)
from ..paths import Path

logger = logging.getLogger(__name__)

TMP_MARKER = ".pkgfs-tmp-"
TMP_PATTERN = re.compile(re.escape(TMP_MARKER) + r"[0-9a-f]{8}$")


class LocalRoot:
    """Host directory serving as the root of one namespace.

    Resolution is confined to the root; a virtual name can never address a
    host path outside it.
    """

    def __init__(self, root: HostPath, allow_symlink_escape: bool = False) -> None:
        """
        Initialize the root.

        Args:
            root: The host directory that serves as the namespace root
            allow_symlink_escape: If True, allow symlinks that point outside the root
        """
        self.root = root.resolve()
        self.allow_symlink_escape = allow_symlink_escape
        self.root.mkdir(parents=True, exist_ok=True)

    def resolve(self, path: Path) -> HostPath:
        """
        Resolve a virtual path to its host path.

        Raises:
            PathEscapeError: If the resolved path escapes the root
        """
        candidate = self.root.joinpath(*path.relative_parts())
        if self.allow_symlink_escape:
            return candidate

        resolved = candidate.resolve(strict=False)
        try:
            resolved.relative_to(self.root)
        except ValueError as exc:
            raise PathEscapeError(
                f"Resolved path escapes namespace root: {resolved}",
                host_path=str(resolved),
                reference=str(path),
                namespace=path.namespace,
            ) from exc
        return candidate

    def chain(self, path: Path) -> List[HostPath]:
        """Host paths of the root, every ancestor of ``path``, and ``path``."""
        chain = [self.root]
        for part in path.relative_parts():
            chain.append(chain[-1] / part)
        return chain


class DiskFilesystem(Filesystem):
    """
    Backend storing entries as real files and directories.

    Every configured namespace needs a ``dir``. Written content is buffered and
    moved into place atomically on close, so a file being written never shows
    up half-written.

    Example:
        >>> fs = DiskFilesystem(FilesystemConfig.for_namespace("app", dir="/tmp/app"))
        >>> fs.mkdir_all("/public")
        >>> fs.stat("app:/public").is_dir
        True
    """

    def __init__(self, config: Optional[FilesystemConfig] = None) -> None:
        super().__init__(config)
        self._roots: Dict[str, LocalRoot] = {}
        for namespace, info in self._namespaces.items():
            if not info.dir:
                raise ValueError(f"DiskFilesystem requires a dir for namespace {namespace}")
            self._roots[namespace] = LocalRoot(
                HostPath(info.dir),
                allow_symlink_escape=self.config.allow_symlink_escape,
            )
        logger.debug(f"DiskFilesystem initialized with roots {sorted(self._namespaces)}")

    def host_path(self, ref: Reference) -> HostPath:
        """Return the host path backing ``ref``."""
        path = self.parse(ref)
        return self._root(path).resolve(path)

    def mkdir_all(self, ref: Reference, mode: Optional[int] = None) -> None:
        path = self.parse(ref)
        mode = self.config.dir_mode if mode is None else mode

        for host in self._root(path).chain(path):
            if host.exists() and not host.is_dir():
                raise ConflictError(
                    f"Cannot create directory {path}: {host.name} is a file",
                    reference=str(path),
                    namespace=path.namespace,
                )

        host = self._root(path).resolve(path)
        try:
            os.makedirs(host, mode=mode, exist_ok=True)
        except (FileExistsError, NotADirectoryError) as exc:
            raise ConflictError(
                f"Cannot create directory {path}: {exc}",
                reference=str(path),
                namespace=path.namespace,
            ) from exc
        logger.debug(f"mkdir {path} -> {host}")

    def create(self, ref: Reference) -> BufferedFile:
        path = self.parse(ref)
        host = self._root(path).resolve(path)

        if host.is_dir():
            raise IsDirectoryError(
                f"Cannot create {path}: it is a directory",
                reference=str(path),
                namespace=path.namespace,
            )
        self._require_parent(path, host)

        return BufferedFile.writer(path, self._commit, self.config.file_mode)

    def open(self, ref: Reference) -> BufferedFile:
        path = self.parse(ref)
        host = self._root(path).resolve(path)

        if host.is_dir():
            raise IsDirectoryError(
                f"Cannot open {path}: it is a directory",
                reference=str(path),
                namespace=path.namespace,
            )
        try:
            data = host.read_bytes()
            st = host.stat()
        except (FileNotFoundError, NotADirectoryError):
            raise self._not_found(path) from None
        return BufferedFile.reader(path, data, self._info(path, st))

    def stat(self, ref: Reference) -> FileInfo:
        path = self.parse(ref)
        host = self._root(path).resolve(path)
        try:
            return self._info(path, host.stat())
        except (FileNotFoundError, NotADirectoryError):
            raise self._not_found(path) from None

    def remove(self, ref: Reference) -> None:
        path = self.parse(ref)
        host = self._root(path).resolve(path)

        if not os.path.lexists(host):
            raise self._not_found(path)

        if host.is_dir() and not host.is_symlink():
            try:
                host.rmdir()
            except OSError as exc:
                if exc.errno in (errno.ENOTEMPTY, errno.EEXIST):
                    raise ConflictError(
                        f"Cannot remove {path}: directory is not empty",
                        reference=str(path),
                        namespace=path.namespace,
                    ) from exc
                raise
        else:
            host.unlink()
        logger.debug(f"remove {path}")

    def remove_all(self, ref: Reference) -> None:
        path = self.parse(ref)
        host = self._root(path).resolve(path)

        if not os.path.lexists(host):
            return
        if host.is_dir() and not host.is_symlink():
            shutil.rmtree(host)
        else:
            host.unlink()
        logger.debug(f"remove_all {path}")

    def _children(self, path: Path) -> List[Tuple[Path, FileInfo]]:
        host = self._root(path).resolve(path)
        children = []
        with os.scandir(host) as it:
            for entry in it:
                if TMP_PATTERN.search(entry.name):
                    continue
                child = path.join(entry.name)
                children.append((child, self._info(child, entry.stat())))
        return children

    # ========== Internals ==========

    def _commit(self, path: Path, data: bytes, mod_time: datetime) -> FileInfo:
        host = self._root(path).resolve(path)
        self._require_parent(path, host)
        if host.is_dir():
            raise IsDirectoryError(
                f"Cannot commit {path}: a directory was created there",
                reference=str(path),
                namespace=path.namespace,
            )

        tmp = host.with_name(f"{host.name}{TMP_MARKER}{uuid.uuid4().hex[:8]}")
        try:
            tmp.write_bytes(data)
            os.chmod(tmp, self.config.file_mode)
            os.replace(tmp, host)
        except BaseException:
            if tmp.exists():
                tmp.unlink()
            raise

        # keep the handle's commit time so stat() and the handle agree
        ts = mod_time.timestamp()
        os.utime(host, (ts, ts))
        logger.debug(f"commit {path} ({len(data)} bytes) -> {host}")
        return self._info(path, host.stat())

    def _root(self, path: Path) -> LocalRoot:
        try:
            return self._roots[path.namespace]
        except KeyError:
            raise NamespaceUnknownError(
                f"Unknown namespace {path.namespace!r}", namespace=path.namespace
            ) from None

    def _require_parent(self, path: Path, host: HostPath) -> None:
        if path.is_root or not host.parent.is_dir():
            raise ParentMissingError(
                f"Cannot create {path}: parent directory does not exist",
                parent=path.parent.name,
                reference=str(path),
                namespace=path.namespace,
            )

    @staticmethod
    def _info(path: Path, st: os.stat_result) -> FileInfo:
        is_dir = stat_mod.S_ISDIR(st.st_mode)
        return FileInfo(
            name=path.name,
            size=0 if is_dir else st.st_size,
            mode=stat_mod.S_IMODE(st.st_mode),
            mod_time=datetime.fromtimestamp(st.st_mtime, tz=timezone.utc),
            is_dir=is_dir,
        )

    @staticmethod
    def _not_found(path: Path) -> NotFoundError:
        return NotFoundError(
            f"No such entry: {path}", reference=str(path), namespace=path.namespace
        )
