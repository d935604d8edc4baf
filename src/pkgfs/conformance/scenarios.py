"""
Conformance scenarios.

Each scenario checks one facet of the filesystem contract and, where it can,
addresses the same target through every equivalent reference form: the bare
path, 'namespace:path' and the real path inside the current namespace root.

Scenarios are registered in declaration order with @scenario(name).
"""

import os
import tempfile
from typing import Dict, List

from ..base import FileInfo, Filesystem
from ..exceptions import (
    ConflictError,
    IsDirectoryError,
    NamespaceUnknownError,
    NotFoundError,
    ParentMissingError,
    ParseError,
    PkgfsError,
)
from ..paths import Path
from ..util import read_file, write_file
from .fixture import real_walk
from .runner import ScenarioContext, ScenarioFn

SCENARIOS: Dict[str, ScenarioFn] = {}

INDEX = "/public/index.html"
IMAGE = "/public/images/img1.png"
UNREACHABLE = "/easy/listening/file.under"


def scenario(name: str):
    """Register a scenario function under ``name``."""
    def register(fn: ScenarioFn) -> ScenarioFn:
        if name in SCENARIOS:
            raise ValueError(f"Scenario {name!r} registered twice")
        SCENARIOS[name] = fn
        return fn
    return register


def _ns(fs: Filesystem) -> str:
    return fs.current().namespace


def _forms(fs: Filesystem, name: str) -> List[str]:
    """Equivalent references to ``name``: bare, explicit and, when the current
    namespace has a root dir, the real path."""
    cur = fs.current()
    refs = [name, f"{cur.namespace}:{name}"]
    if cur.dir:
        refs.append(os.path.join(cur.dir, *name.split("/")[1:]))
    return refs


@scenario("Create")
def create(ctx: ScenarioContext) -> None:
    fs = ctx.make()

    def check(ref: str) -> None:
        pt = fs.parse(ref)
        fs.mkdir_all(pt.parent)

        f = fs.create(ref)
        ctx.equal(pt.name, f.name, "handle name")
        info = f.stat()
        f.close()

        ctx.equal(pt.name, info.name, "stat name")
        ctx.not_zero(info.mod_time, "mod_time")
        ctx.not_zero(fs.stat(pt).mod_time, "committed mod_time")
        fs.remove_all(str(pt))

    for ref in _forms(fs, INDEX):
        ctx.run(ref, check, ref)


@scenario("CreateWithoutMkdirAll")
def create_without_mkdir_all(ctx: ScenarioContext) -> None:
    def check(ref: str) -> None:
        fs = ctx.make()
        ctx.expect_error(ParentMissingError, fs.create, ref)

    fs = ctx.make()
    for ref in _forms(fs, UNREACHABLE) + _forms(fs, os.path.dirname(UNREACHABLE)):
        ctx.run(ref, check, ref)


@scenario("Current")
def current(ctx: ScenarioContext) -> None:
    info = ctx.make().current()
    ctx.not_zero(info, "current namespace")
    ctx.not_zero(info.namespace, "current namespace identifier")


@scenario("Info")
def info(ctx: ScenarioContext) -> None:
    fs = ctx.make()
    cur = fs.current()

    ctx.equal(cur, fs.info(cur.namespace), "info(current)")
    ctx.expect_error(NamespaceUnknownError, fs.info, "no.such/namespace")


@scenario("MkdirAll")
def mkdir_all(ctx: ScenarioContext) -> None:
    def check(ref: str) -> None:
        fs = ctx.make()
        pt = fs.parse(ref)
        directory = pt.parent

        fs.mkdir_all(directory)
        info = fs.stat(directory)
        ctx.equal(directory.name, info.name, "stat name")
        ctx.true(info.is_dir, f"{directory} is not a directory")
        ctx.not_zero(info.mod_time, "mod_time")

        fs.mkdir_all(directory)
        fs.remove_all(str(pt))

    def over_file() -> None:
        fs = ctx.make()
        fs.mkdir_all("/public")
        write_file(fs, INDEX, b"file")
        ctx.expect_error(ConflictError, fs.mkdir_all, INDEX + "/nested")
        ctx.expect_error(ConflictError, fs.mkdir_all, INDEX)

    fs = ctx.make()
    for ref in _forms(fs, INDEX) + _forms(fs, os.path.dirname(INDEX)):
        ctx.run(ref, check, ref)
    ctx.run("over a file", over_file)


@scenario("OpenFile")
def open_file(ctx: ScenarioContext) -> None:
    def check(ref: str) -> None:
        fs = ctx.make()
        pt = fs.parse(ref)

        fs.remove_all(str(pt))
        fs.mkdir_all(pt.parent)

        body = f"!{pt}".encode()
        write_file(fs, ref, body)

        with fs.open(ref) as f:
            ctx.equal(pt, f.path, "handle path")
            ctx.equal(body, f.read(), "content")

        ctx.equal(body, read_file(fs, ref), "read_file content")

    def directory() -> None:
        fs = ctx.make()
        fs.mkdir_all("/public")
        ctx.expect_error(IsDirectoryError, fs.open, "/public")

    def missing() -> None:
        ctx.expect_error(NotFoundError, ctx.make().open, "/dontexist")

    for ref in _forms(ctx.make(), INDEX):
        ctx.run(ref, check, ref)
    ctx.run("directory", directory)
    ctx.run("missing", missing)


@scenario("Parse")
def parse(ctx: ScenarioContext) -> None:
    fs = ctx.make()
    cur = fs.current()
    ns = cur.namespace
    expected = Path(ns, INDEX)
    root = Path(ns, "/")

    table = [
        (INDEX, expected),
        (f"{ns}:{INDEX}", expected),
        (str(expected), expected),
        ("/public/./images/../index.html", expected),
        ("/public//index.html/", expected),
        ("//public/index.html", expected),
        ("/a:b", Path(ns, "/a:b")),
        (f"{ns}:/a:b", Path(ns, "/a:b")),
        (ns, root),
        (f"{ns}:", root),
        (f"{ns}:/", root),
    ]
    if cur.dir:
        table.append((os.path.join(cur.dir, *INDEX.split("/")[1:]), expected))
        table.append((cur.dir, root))

    def check(ref: str, exp: Path) -> None:
        ctx.equal(exp, fs.parse(ref), f"parse({ref!r})")

    for ref, exp in table:
        ctx.run(ref, check, ref, exp)

    for bad in ("", "   ", "relative/path", "no.such/ns:/x", f"{ns}:relative", ":/x", "/../escape"):
        ctx.run(f"invalid {bad!r}", ctx.expect_error, ParseError, fs.parse, bad)


@scenario("StatError")
def stat_error(ctx: ScenarioContext) -> None:
    fs = ctx.make()
    ns = _ns(fs)

    def check(ref: str) -> None:
        pt = fs.parse(ref)
        fs.remove_all(str(pt))
        ctx.expect_error(NotFoundError, fs.stat, ref)

    for ref in ("/dontexist", ns, f"{ns}:", f"{ns}:/dontexist"):
        ctx.run(ref, check, ref)


@scenario("StatDir")
def stat_dir(ctx: ScenarioContext) -> None:
    fs = ctx.make()
    ns = _ns(fs)
    directory = ctx.fixture.public_paths[1]

    def check(ref: str) -> None:
        pt = fs.parse(ref)
        fs.remove_all(str(pt))
        fs.mkdir_all(pt.name)

        info = fs.stat(ref)
        ctx.equal(pt.name, info.name, "stat name")
        ctx.true(info.is_dir, f"{pt} is not a directory")

    for ref in [ns] + _forms(fs, directory):
        ctx.run(ref, check, ref)


@scenario("StatFile")
def stat_file(ctx: ScenarioContext) -> None:
    def check(ref: str) -> None:
        fs = ctx.make()
        pt = fs.parse(ref)

        fs.remove_all(str(pt))
        fs.mkdir_all(pt.parent)

        body = f"!{pt}".encode()
        with fs.create(ref) as f:
            f.write(body)

        info = fs.stat(ref)
        ctx.equal(pt.name, info.name, "stat name")
        ctx.true(not info.is_dir, f"{pt} reported as a directory")
        ctx.equal(len(body), info.size, "size")

    for ref in _forms(ctx.make(), INDEX):
        ctx.run(ref, check, ref)


class _StopWalk(Exception):
    pass


@scenario("Walk")
def walk(ctx: ScenarioContext) -> None:
    fs = ctx.make()
    ctx.fixture.load_folder(fs)
    ns = _ns(fs)

    def check(root: str, listing) -> None:
        exp = [str(Path(ns, name)) for name in listing]

        with tempfile.TemporaryDirectory() as tdir:
            ctx.fixture.write_folder(tdir)
            real = []
            for name, _ in real_walk(os.path.join(tdir, *root.split("/")[1:])):
                name = root if name == "/" else root.rstrip("/") + name
                real.append(str(fs.parse(name)))
        ctx.equal(exp, real, "real walk")

        act = []
        fs.walk(root, lambda path, info: act.append(str(path)))
        ctx.equal(exp, act, "backend walk")

    def visitor_error() -> None:
        seen = []

        def visit(path: Path, info: FileInfo) -> None:
            seen.append(path.name)
            if len(seen) == 3:
                raise _StopWalk(path.name)

        exc = ctx.expect_error(_StopWalk, fs.walk, "/", visit)
        ctx.equal(list(ctx.fixture.root_paths[:3]), seen, "visited before abort")
        ctx.equal(seen[-1], str(exc), "propagated error")

    def missing_root() -> None:
        ctx.expect_error(NotFoundError, fs.walk, "/dontexist", lambda path, info: None)

    for root, listing in (("/", ctx.fixture.root_paths), ("/public", ctx.fixture.public_paths)):
        ctx.run(root, check, root, listing)
    ctx.run("visitor error", visitor_error)
    ctx.run("missing root", missing_root)


@scenario("Remove")
def remove(ctx: ScenarioContext) -> None:
    def check(ref: str) -> None:
        fs = ctx.make()
        ctx.fixture.load_folder(fs)

        fs.stat(ref)
        fs.remove(ref)
        ctx.expect_error(NotFoundError, fs.stat, ref)
        ctx.expect_error(NotFoundError, fs.remove, ref)
        ctx.expect_error(PkgfsError, fs.remove, "unknown")

    def non_empty_directory() -> None:
        fs = ctx.make()
        ctx.fixture.load_folder(fs)
        ctx.expect_error(ConflictError, fs.remove, "/public")
        fs.stat("/public/index.html")

    def empty_directory() -> None:
        fs = ctx.make()
        ctx.fixture.load_folder(fs)
        fs.remove("/public/images/img1.png")
        fs.remove("/public/images/img2.png")
        fs.remove("/public/images")
        ctx.expect_error(NotFoundError, fs.stat, "/public/images")

    def empty_namespace_root() -> None:
        fs = ctx.make()
        ns = _ns(fs)
        fs.remove(ns)
        ctx.expect_error(NotFoundError, fs.stat, ns)

        fs.mkdir_all("/")
        ctx.true(fs.stat(ns).is_dir, f"{ns} not recreated by mkdir_all")

    for ref in _forms(ctx.make(), IMAGE):
        ctx.run(ref, check, ref)
    ctx.run("non-empty directory", non_empty_directory)
    ctx.run("empty directory", empty_directory)
    ctx.run("empty namespace root", empty_namespace_root)


@scenario("RemoveAll")
def remove_all(ctx: ScenarioContext) -> None:
    def check(ref: str) -> None:
        fs = ctx.make()
        ctx.fixture.load_folder(fs)

        fs.stat(ref)
        fs.remove_all(ref)
        ctx.expect_error(NotFoundError, fs.stat, ref)
        ctx.expect_error(NotFoundError, fs.stat, IMAGE)

        fs.remove_all(ref)
        fs.stat("/templates")

    for ref in _forms(ctx.make(), "/public"):
        ctx.run(ref, check, ref)


@scenario("CommitOnClose")
def commit_on_close(ctx: ScenarioContext) -> None:
    def new_entry() -> None:
        fs = ctx.make()
        fs.mkdir_all("/drafts")

        f = fs.create("/drafts/note.txt")
        f.write(b"draft")
        ctx.expect_error(NotFoundError, fs.stat, "/drafts/note.txt")
        ctx.expect_error(NotFoundError, fs.open, "/drafts/note.txt")

        seen = []
        fs.walk("/drafts", lambda path, info: seen.append(path.name))
        ctx.equal(["/drafts"], seen, "walk before close")

        f.close()
        ctx.equal(5, fs.stat("/drafts/note.txt").size, "size after close")
        ctx.equal(b"draft", read_file(fs, "/drafts/note.txt"), "content after close")

    def replace_entry() -> None:
        fs = ctx.make()
        fs.mkdir_all("/drafts")
        write_file(fs, "/drafts/note.txt", b"v1")

        f = fs.create("/drafts/note.txt")
        f.write(b"v2")
        ctx.equal(b"v1", read_file(fs, "/drafts/note.txt"), "content before close")
        f.close()
        ctx.equal(b"v2", read_file(fs, "/drafts/note.txt"), "content after close")

    def directory_appeared() -> None:
        fs = ctx.make()
        fs.mkdir_all("/drafts")

        f = fs.create("/drafts/note")
        f.write(b"draft")
        fs.mkdir_all("/drafts/note/inner")
        ctx.expect_error(IsDirectoryError, f.close)

        ctx.true(fs.stat("/drafts/note").is_dir, "directory replaced by the commit")
        seen = []
        fs.walk("/drafts", lambda path, info: seen.append(path.name))
        ctx.equal(["/drafts", "/drafts/note", "/drafts/note/inner"], seen, "walk after failed commit")

    ctx.run("new entry", new_entry)
    ctx.run("replace entry", replace_entry)
    ctx.run("directory appeared", directory_appeared)


@scenario("ReadWriteRoundTrip")
def read_write_round_trip(ctx: ScenarioContext) -> None:
    fs = ctx.make()
    fs.mkdir_all("/data")

    def check(name: str, body: bytes) -> None:
        ref = f"/data/{name}"
        write_file(fs, ref, body)
        ctx.equal(body, read_file(fs, ref), "content")
        ctx.equal(len(body), fs.stat(ref).size, "size")

    table = [
        ("empty", b""),
        ("binary", bytes(range(256))),
        ("utf8", "namespaced été ☃".encode("utf-8")),
        ("large", b"0123456789abcdef" * 4096),
    ]
    for name, body in table:
        ctx.run(name, check, name, body)
