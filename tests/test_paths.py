"""
Tests for the pkgfs.paths module.

This module tests:
- NamespaceInfo validation
- Path helpers and canonical string form
- normalize_name
- PathParser rule priority and error cases
"""

import os

import pytest
from pydantic import ValidationError

from pkgfs.exceptions import ParseError
from pkgfs.paths import (
    NamespaceInfo,
    Path,
    PathParser,
    ReferenceForm,
    normalize_name,
)


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def app_dir(tmp_path):
    return str(tmp_path / "app")


@pytest.fixture
def parser(app_dir):
    current = NamespaceInfo(namespace="example.com/app", dir=app_dir)
    other = NamespaceInfo(namespace="example.com/lib")
    return PathParser(current, {other.namespace: other})


# =============================================================================
# NamespaceInfo Tests
# =============================================================================

class TestNamespaceInfo:
    """Tests for NamespaceInfo validation."""

    def test_valid_namespace(self):
        info = NamespaceInfo(namespace="example.com/app", dir="/srv/app")
        assert info.namespace == "example.com/app"
        assert info.dir == "/srv/app"

    def test_dir_is_optional(self):
        assert NamespaceInfo(namespace="app").dir == ""

    @pytest.mark.parametrize("bad", ["", "a:b", "/app", "my app"])
    def test_invalid_namespace_rejected(self, bad):
        with pytest.raises(ValidationError):
            NamespaceInfo(namespace=bad)

    def test_relative_dir_rejected(self):
        with pytest.raises(ValidationError):
            NamespaceInfo(namespace="app", dir="relative/dir")

    def test_frozen(self):
        info = NamespaceInfo(namespace="app")
        with pytest.raises(ValidationError):
            info.namespace = "other"


# =============================================================================
# Path Tests
# =============================================================================

class TestPath:
    """Tests for the Path value type."""

    def test_str_is_canonical_reference(self):
        assert str(Path("app", "/public/index.html")) == "app:/public/index.html"

    def test_default_name_is_root(self):
        path = Path("app")
        assert path.name == "/"
        assert path.is_root

    def test_parent_and_base(self):
        path = Path("app", "/public/images/img1.png")
        assert path.parent == Path("app", "/public/images")
        assert path.base == "img1.png"

    def test_root_is_its_own_parent(self):
        assert Path("app", "/").parent == Path("app", "/")

    def test_join(self):
        assert Path("app", "/").join("public") == Path("app", "/public")
        assert Path("app", "/public").join("index.html") == Path("app", "/public/index.html")

    def test_is_relative_to(self):
        public = Path("app", "/public")
        assert Path("app", "/public/index.html").is_relative_to(public)
        assert public.is_relative_to(public)
        assert not Path("app", "/public2").is_relative_to(public)
        assert not Path("lib", "/public/x").is_relative_to(public)
        assert public.is_relative_to(Path("app", "/"))

    def test_hashable(self):
        assert {Path("app", "/a"): 1}[Path("app", "/a")] == 1


# =============================================================================
# normalize_name Tests
# =============================================================================

class TestNormalizeName:
    """Tests for virtual name normalization."""

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("/", "/"),
            ("//", "/"),
            ("//public", "/public"),
            ("///a//b", "/a/b"),
            ("/a/b/", "/a/b"),
            ("/a//b", "/a/b"),
            ("/a/./b", "/a/b"),
            ("/a/../b", "/b"),
            ("/a/..", "/"),
        ],
    )
    def test_normalization(self, raw, expected):
        assert normalize_name(raw) == expected

    def test_relative_rejected(self):
        with pytest.raises(ValueError):
            normalize_name("a/b")

    def test_escape_rejected(self):
        with pytest.raises(ValueError, match="escapes"):
            normalize_name("/../etc")


# =============================================================================
# PathParser Tests
# =============================================================================

class TestPathParser:
    """Tests for the reference grammar."""

    def test_explicit_namespace(self, parser):
        outcome = parser.classify("example.com/lib:/x/y")
        assert outcome.form is ReferenceForm.EXPLICIT_NAMESPACE
        assert outcome.path == Path("example.com/lib", "/x/y")

    def test_explicit_namespace_empty_path_is_root(self, parser):
        assert parser.parse("example.com/app:") == Path("example.com/app", "/")

    def test_bare_namespace(self, parser):
        outcome = parser.classify("example.com/lib")
        assert outcome.form is ReferenceForm.BARE_NAMESPACE
        assert outcome.path == Path("example.com/lib", "/")

    def test_real_path(self, parser, app_dir):
        outcome = parser.classify(os.path.join(app_dir, "public", "index.html"))
        assert outcome.form is ReferenceForm.REAL_PATH
        assert outcome.path == Path("example.com/app", "/public/index.html")

    def test_real_root(self, parser, app_dir):
        assert parser.parse(app_dir) == Path("example.com/app", "/")

    def test_real_path_sibling_is_not_inside_root(self, parser, app_dir):
        outcome = parser.classify(app_dir + "2/file")
        assert outcome.form is ReferenceForm.BARE_PATH
        assert outcome.path.name == app_dir + "2/file"

    def test_bare_path(self, parser):
        outcome = parser.classify("/public/index.html")
        assert outcome.form is ReferenceForm.BARE_PATH
        assert outcome.path == Path("example.com/app", "/public/index.html")

    def test_bare_path_with_colon(self, parser):
        outcome = parser.classify("/a:b")
        assert outcome.form is ReferenceForm.BARE_PATH
        assert outcome.path == Path("example.com/app", "/a:b")
        assert parser.parse("example.com/app:/a:b") == outcome.path

    def test_leading_double_slash_is_canonical(self, parser):
        assert parser.parse("//public") == parser.parse("/public")
        assert parser.parse("example.com/app://public").name == "/public"

    def test_equivalent_forms_agree(self, parser, app_dir):
        forms = [
            "/public/index.html",
            "example.com/app:/public/index.html",
            os.path.join(app_dir, "public/index.html"),
        ]
        assert len({parser.parse(form) for form in forms}) == 1

    def test_canonical_form_round_trips(self, parser):
        path = parser.parse("/public/index.html")
        assert parser.parse(str(path)) == path

    def test_whitespace_is_stripped(self, parser):
        assert parser.parse("  /public  ") == Path("example.com/app", "/public")

    @pytest.mark.parametrize(
        "raw",
        [
            "",
            "   ",
            "relative/path",
            "unknown",
            "unknown.ns:/x",
            ":/x",
            "example.com/app:relative",
            "/../escape",
        ],
    )
    def test_invalid_references(self, parser, raw):
        assert parser.classify(raw).form is ReferenceForm.INVALID
        with pytest.raises(ParseError) as exc_info:
            parser.parse(raw)
        assert exc_info.value.error_code == "PARSE_ERROR"
        assert exc_info.value.reason

    def test_parse_accepts_path_objects(self, parser):
        assert parser.parse(Path("example.com/lib", "/a/")) == Path("example.com/lib", "/a")

    def test_parse_rejects_path_in_unknown_namespace(self, parser):
        with pytest.raises(ParseError):
            parser.parse(Path("nowhere", "/a"))

    def test_no_current_namespace(self):
        parser = PathParser(None, {"lib": NamespaceInfo(namespace="lib")})
        assert parser.parse("lib:/a") == Path("lib", "/a")
        with pytest.raises(ParseError, match="no current namespace"):
            parser.parse("/a")
