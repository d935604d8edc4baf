"""Reference grammar for namespaced virtual paths.

A reference is the raw string a caller hands to a backend. It resolves to a
:class:`Path` made of a namespace and an absolute, slash-separated name:

- ``namespace:/dir/file``  explicit namespace
- ``namespace``            the root of a known namespace
- ``<current dir>/dir/file`` a real path inside the current namespace's root
- ``/dir/file``            a path in the current namespace
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from enum import Enum
from pathlib import PurePosixPath
from typing import Callable, List, Mapping, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, field_validator

from .exceptions import ParseError

logger = logging.getLogger(__name__)

ROOT = "/"


class NamespaceInfo(BaseModel):
    """
    Identity of a resolvable namespace.

    Attributes:
        namespace: Namespace identifier (e.g. 'example.com/app')
        dir: Real-filesystem root of the namespace, empty for pure in-memory namespaces
    """

    model_config = ConfigDict(frozen=True)

    namespace: str
    dir: str = ""

    @field_validator("namespace")
    @classmethod
    def validate_namespace(cls, value: str) -> str:
        """Reject identifiers the reference grammar could not round-trip."""
        if not value:
            raise ValueError("namespace must not be empty")
        if ":" in value:
            raise ValueError(f"namespace must not contain ':': {value!r}")
        if value.startswith("/"):
            raise ValueError(f"namespace must not start with '/': {value!r}")
        if any(ch.isspace() for ch in value):
            raise ValueError(f"namespace must not contain whitespace: {value!r}")
        return value

    @field_validator("dir")
    @classmethod
    def validate_dir(cls, value: str) -> str:
        if value and not os.path.isabs(value):
            raise ValueError(f"namespace dir must be an absolute path: {value!r}")
        return os.path.normpath(value) if value else value


@dataclass(frozen=True)
class Path:
    """A resolved location: namespace plus absolute virtual name.

    Attributes:
        namespace: The namespace owning the entry
        name: Canonical absolute virtual path (e.g. '/public/index.html')
    """

    namespace: str
    name: str = ROOT

    def __str__(self) -> str:
        return f"{self.namespace}:{self.name}"

    @property
    def is_root(self) -> bool:
        return self.name == ROOT

    @property
    def base(self) -> str:
        """Last segment of the name ('' for the root)."""
        return PurePosixPath(self.name).name

    @property
    def parent(self) -> "Path":
        """The containing directory; the root is its own parent."""
        return Path(self.namespace, PurePosixPath(self.name).parent.as_posix())

    def join(self, child: str) -> "Path":
        """Return the path of ``child`` directly below this path."""
        return Path(self.namespace, (PurePosixPath(self.name) / child).as_posix())

    def is_relative_to(self, other: "Path") -> bool:
        """True if this path is ``other`` or lies beneath it."""
        if self.namespace != other.namespace:
            return False
        if other.is_root or self.name == other.name:
            return True
        return self.name.startswith(other.name + "/")

    def relative_parts(self) -> Tuple[str, ...]:
        """Name segments below the root."""
        return PurePosixPath(self.name).parts[1:]


def normalize_name(name: str) -> str:
    """Normalize an absolute virtual name to canonical form.

    Collapses duplicate slashes and '.' segments, drops trailing slashes and
    folds '..' segments.

    Raises:
        ValueError: If the name is not absolute or '..' climbs above the root
    """
    if not name.startswith("/"):
        raise ValueError(f"Virtual path must be absolute: {name}")
    # POSIX keeps a leading "//" as a distinct root; fold it to "/"
    candidate = PurePosixPath("/" + name.lstrip("/"))

    normalized: List[str] = []
    for part in candidate.parts:
        if part in ("", "/", "."):
            continue
        if part == "..":
            if not normalized:
                raise ValueError(f"Path escapes namespace root: {name}")
            normalized.pop()
            continue
        normalized.append(part)

    return (PurePosixPath("/") / PurePosixPath(*normalized)).as_posix() if normalized else ROOT


class ReferenceForm(str, Enum):
    """Which grammar rule a reference matched."""
    EXPLICIT_NAMESPACE = "explicit_namespace"  # 'ns:/name'
    BARE_NAMESPACE = "bare_namespace"  # 'ns'
    REAL_PATH = "real_path"  # '<current dir>/name'
    BARE_PATH = "bare_path"  # '/name'
    INVALID = "invalid"


@dataclass(frozen=True)
class ParseOutcome:
    """Tagged result of matching a reference against the grammar."""
    form: ReferenceForm
    raw: str
    path: Optional[Path] = None
    reason: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.form is not ReferenceForm.INVALID


Matcher = Callable[[str], Optional[ParseOutcome]]


class PathParser:
    """
    Resolves references against a fixed set of namespaces.

    Rules are tried in priority order: explicit namespace, bare namespace,
    real path inside the current root, bare absolute path. The first rule that
    claims a reference decides the outcome, including an INVALID one.

    Example:
        >>> parser = PathParser(NamespaceInfo(namespace="app"), {})
        >>> parser.parse("/public/../index.html")
        Path(namespace='app', name='/index.html')
    """

    def __init__(
        self,
        current: Optional[NamespaceInfo],
        namespaces: Mapping[str, NamespaceInfo],
    ) -> None:
        """
        Initialize the parser.

        Args:
            current: Namespace bare paths resolve against (None disables bare and real forms)
            namespaces: Every namespace that may be referenced explicitly
        """
        self.current = current
        self.namespaces = dict(namespaces)
        if current is not None:
            self.namespaces.setdefault(current.namespace, current)

        self._matchers: Tuple[Matcher, ...] = (
            self._match_explicit_namespace,
            self._match_bare_namespace,
            self._match_real_path,
            self._match_bare_path,
        )

    def classify(self, raw: str) -> ParseOutcome:
        """Match ``raw`` against the grammar without raising."""
        text = raw.strip()
        if not text:
            return self._invalid(raw, "empty reference")

        for matcher in self._matchers:
            outcome = matcher(text)
            if outcome is not None:
                return outcome

        return self._invalid(raw, "not an absolute path or a known namespace")

    def parse(self, raw: Union[str, Path]) -> Path:
        """
        Resolve a reference to a Path.

        Args:
            raw: Reference string, or an already-resolved Path

        Returns:
            The resolved Path

        Raises:
            ParseError: If the reference matches no rule or names an unknown namespace
        """
        if isinstance(raw, Path):
            if raw.namespace not in self.namespaces:
                raise ParseError(
                    f"Unknown namespace {raw.namespace!r}",
                    reason="unknown namespace",
                    reference=str(raw),
                    namespace=raw.namespace,
                )
            try:
                return Path(raw.namespace, normalize_name(raw.name))
            except ValueError as exc:
                raise ParseError(str(exc), reason="invalid name", reference=str(raw)) from exc

        outcome = self.classify(raw)
        if not outcome.ok:
            logger.debug(f"Rejected reference {raw!r}: {outcome.reason}")
            raise ParseError(
                f"Cannot parse reference {raw!r}: {outcome.reason}",
                reason=outcome.reason,
                reference=raw,
            )
        return outcome.path

    # ========== Grammar rules ==========

    def _match_explicit_namespace(self, text: str) -> Optional[ParseOutcome]:
        # namespaces never start with "/", so "/a:b" is a path
        if ":" not in text or text.startswith("/"):
            return None

        namespace, _, name = text.partition(":")
        if not namespace:
            return self._invalid(text, "empty namespace segment")
        if namespace not in self.namespaces:
            return self._invalid(text, f"unknown namespace {namespace!r}")

        name = name.strip()
        if not name:
            # 'ns:' addresses the namespace root
            return self._resolved(ReferenceForm.EXPLICIT_NAMESPACE, text, namespace, ROOT)
        if not name.startswith("/"):
            return self._invalid(text, "path after ':' must start with '/'")
        return self._resolved(ReferenceForm.EXPLICIT_NAMESPACE, text, namespace, name)

    def _match_bare_namespace(self, text: str) -> Optional[ParseOutcome]:
        if text.startswith("/") or text not in self.namespaces:
            return None
        return self._resolved(ReferenceForm.BARE_NAMESPACE, text, text, ROOT)

    def _match_real_path(self, text: str) -> Optional[ParseOutcome]:
        if self.current is None or not self.current.dir or not os.path.isabs(text):
            return None

        real = os.path.normpath(text)
        root = self.current.dir
        if real != root and not real.startswith(root.rstrip(os.sep) + os.sep):
            return None

        rel = os.path.relpath(real, root).replace(os.sep, "/")
        name = ROOT if rel == "." else "/" + rel
        return self._resolved(ReferenceForm.REAL_PATH, text, self.current.namespace, name)

    def _match_bare_path(self, text: str) -> Optional[ParseOutcome]:
        if not text.startswith("/"):
            return None
        if self.current is None:
            return self._invalid(text, "no current namespace to resolve against")
        return self._resolved(ReferenceForm.BARE_PATH, text, self.current.namespace, text)

    # ========== Helpers ==========

    def _resolved(
        self, form: ReferenceForm, raw: str, namespace: str, name: str
    ) -> ParseOutcome:
        try:
            canonical = normalize_name(name)
        except ValueError as exc:
            return self._invalid(raw, str(exc))
        return ParseOutcome(form=form, raw=raw, path=Path(namespace, canonical))

    @staticmethod
    def _invalid(raw: str, reason: str) -> ParseOutcome:
        return ParseOutcome(form=ReferenceForm.INVALID, raw=raw, reason=reason)
