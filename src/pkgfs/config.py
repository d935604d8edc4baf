"""
Configuration for virtual filesystem backends.

This module defines the configuration shared by every backend: which namespace
is current, which other namespaces can be referenced, and the default modes
recorded for new entries.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional

from .paths import NamespaceInfo

ENV_NAMESPACE = "PKGFS_NAMESPACE"
ENV_DIR = "PKGFS_DIR"

DEFAULT_DIR_MODE = 0o755
DEFAULT_FILE_MODE = 0o644


@dataclass
class FilesystemConfig:
    """
    Configuration for a backend instance.

    The current namespace is passed in explicitly; there is no process-wide
    default namespace.
    """

    current: Optional[NamespaceInfo] = None
    """Namespace that bare paths ('/dir/file') resolve against."""

    namespaces: List[NamespaceInfo] = field(default_factory=list)
    """Additional namespaces that may be referenced as 'namespace:/path'."""

    dir_mode: int = DEFAULT_DIR_MODE
    """Permission bits recorded for directories created without an explicit mode."""

    file_mode: int = DEFAULT_FILE_MODE
    """Permission bits recorded for files created by create()."""

    allow_symlink_escape: bool = False
    """Disk backend only: allow symlinks that point outside a namespace root."""

    def __post_init__(self):
        """Validate configuration after initialization."""
        if not 0 <= self.dir_mode <= 0o7777:
            raise ValueError(f"dir_mode out of range: {oct(self.dir_mode)}")
        if not 0 <= self.file_mode <= 0o7777:
            raise ValueError(f"file_mode out of range: {oct(self.file_mode)}")

        seen = set()
        for info in self.namespaces:
            if info.namespace in seen:
                raise ValueError(f"Duplicate namespace: {info.namespace}")
            seen.add(info.namespace)

        if self.current is not None:
            for info in self.namespaces:
                if info.namespace == self.current.namespace and info != self.current:
                    raise ValueError(
                        f"Namespace {info.namespace} configured twice with different dirs"
                    )

    def known_namespaces(self) -> Dict[str, NamespaceInfo]:
        """Return every configured namespace keyed by identifier."""
        known = {info.namespace: info for info in self.namespaces}
        if self.current is not None:
            known[self.current.namespace] = self.current
        return known

    @classmethod
    def for_namespace(
        cls, namespace: str, dir: str = "", **kwargs
    ) -> "FilesystemConfig":
        """
        Create a config whose current namespace is ``namespace``.

        Args:
            namespace: Namespace identifier
            dir: Real-filesystem root of the namespace (optional)
            **kwargs: Remaining FilesystemConfig fields

        Returns:
            A FilesystemConfig instance
        """
        return cls(current=NamespaceInfo(namespace=namespace, dir=dir), **kwargs)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "FilesystemConfig":
        """
        Build a config from PKGFS_NAMESPACE and PKGFS_DIR.

        A missing PKGFS_NAMESPACE yields a config with no current namespace.
        """
        env = os.environ if environ is None else environ
        namespace = env.get(ENV_NAMESPACE, "").strip()
        if not namespace:
            return cls()
        return cls.for_namespace(namespace, dir=env.get(ENV_DIR, "").strip())

    def __repr__(self) -> str:
        current = self.current.namespace if self.current else None
        return (
            f"FilesystemConfig(current={current!r}, "
            f"namespaces={[i.namespace for i in self.namespaces]!r}, "
            f"dir_mode={oct(self.dir_mode)}, file_mode={oct(self.file_mode)})"
        )
