"""Project fixture used as the conformance oracle.

The fixture is a real directory tree shipped with the package, together with
its namespace identity and the ordered listings a sorted walk of it produces.
"""

import logging
import os
import shutil
from dataclasses import dataclass
from pathlib import Path as HostPath
from typing import Iterator, List, Tuple, Union

from ..base import Filesystem
from ..config import FilesystemConfig
from ..paths import ROOT, NamespaceInfo
from ..util import write_file

logger = logging.getLogger(__name__)

FIXTURE_DIR = HostPath(__file__).parent / "testdata" / "app"
FIXTURE_NAMESPACE = "example.com/app"

# Sorted-walk listings of FIXTURE_DIR
FIXTURE_ROOT_PATHS = (
    "/",
    "/README.md",
    "/app.cfg",
    "/public",
    "/public/images",
    "/public/images/img1.png",
    "/public/images/img2.png",
    "/public/index.html",
    "/templates",
    "/templates/a.txt",
    "/templates/b",
    "/templates/b/b.txt",
    "/templates/b.txt",
)
FIXTURE_PUBLIC_PATHS = tuple(p for p in FIXTURE_ROOT_PATHS if p.startswith("/public"))


def real_walk(root: Union[str, os.PathLike]) -> Iterator[Tuple[str, bool]]:
    """
    Walk a real directory the way backends must walk virtual ones.

    Yields ``(name, is_dir)`` pairs where ``name`` is the slash-separated path
    relative to ``root`` with a leading '/', starting with ('/', True). Entries
    of each directory are visited in name order, depth first.
    """
    root = os.fspath(root)

    def visit(host: str, name: str) -> Iterator[Tuple[str, bool]]:
        is_dir = os.path.isdir(host)
        yield name, is_dir
        if not is_dir:
            return
        for entry in sorted(os.listdir(host)):
            child = name.rstrip("/") + "/" + entry
            yield from visit(os.path.join(host, entry), child)

    yield from visit(root, ROOT)


@dataclass(frozen=True)
class ProjectFixture:
    """
    A known real tree plus the expected walk listings for it.

    Attributes:
        namespace: Namespace identity of the fixture project
        dir: Real directory holding the tree
        root_paths: Sorted-walk listing of '/'
        public_paths: Sorted-walk listing of '/public'
    """
    namespace: str
    dir: str
    root_paths: Tuple[str, ...]
    public_paths: Tuple[str, ...]

    @classmethod
    def default(cls) -> "ProjectFixture":
        """The fixture tree shipped with pkgfs."""
        return cls(
            namespace=FIXTURE_NAMESPACE,
            dir=str(FIXTURE_DIR.resolve()),
            root_paths=FIXTURE_ROOT_PATHS,
            public_paths=FIXTURE_PUBLIC_PATHS,
        )

    @property
    def info(self) -> NamespaceInfo:
        return NamespaceInfo(namespace=self.namespace, dir=self.dir)

    def config(self, **kwargs) -> FilesystemConfig:
        """A backend config whose current namespace is the fixture project."""
        return FilesystemConfig(current=self.info, **kwargs)

    def listing(self, root: str) -> List[str]:
        """Expected walk listing for ``root``, derived from root_paths."""
        if root == ROOT:
            return list(self.root_paths)
        return [p for p in self.root_paths if p == root or p.startswith(root + "/")]

    def load_folder(self, fs: Filesystem) -> None:
        """Copy the fixture tree into ``fs`` under its current namespace."""
        count = 0
        for name, is_dir in real_walk(self.dir):
            if is_dir:
                fs.mkdir_all(name)
            else:
                host = os.path.join(self.dir, *name.split("/")[1:])
                with open(host, "rb") as f:
                    write_file(fs, name, f.read())
            count += 1
        logger.debug(f"Loaded {count} fixture entries into {fs!r}")

    def write_folder(self, dest: Union[str, os.PathLike]) -> None:
        """Copy the fixture tree onto disk at ``dest``."""
        shutil.copytree(self.dir, dest, dirs_exist_ok=True)
