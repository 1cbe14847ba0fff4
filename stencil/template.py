"""Template parsing — finds @[name]@ placeholders in a text body."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import NamedTuple, Optional

from stencil.errors import MalformedPlaceholder

logger = logging.getLogger(__name__)

OPEN_MARKER = "@["
CLOSE_MARKER = "]@"

_NAME_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")


class Segment(NamedTuple):
    """Literal text followed by an optional placeholder occurrence."""

    text: str
    name: Optional[str]


def _location(text: str, position: int) -> tuple[int, int]:
    line = text.count("\n", 0, position) + 1
    column = position - (text.rfind("\n", 0, position) + 1) + 1
    return line, column


def _malformed(text: str, position: int, message: str, source: Optional[str]) -> MalformedPlaceholder:
    line, column = _location(text, position)
    return MalformedPlaceholder(message, position, line, column, source)


def _check_literal(text: str, start: int, end: int, source: Optional[str]) -> None:
    stray = text.find(CLOSE_MARKER, start, end)
    if stray != -1:
        raise _malformed(
            text, stray, f"closing marker {CLOSE_MARKER!r} without opening {OPEN_MARKER!r}", source
        )


def scan(text: str, source: Optional[str] = None) -> tuple[Segment, ...]:
    """Split *text* into segments, validating every marker.

    There is no escape syntax: any ``@[`` or ``]@`` in the text is a marker
    attempt and must belong to a well-formed ``@[identifier]@``.
    """
    segments: list[Segment] = []
    pos = 0
    while True:
        start = text.find(OPEN_MARKER, pos)
        if start == -1:
            _check_literal(text, pos, len(text), source)
            segments.append(Segment(text[pos:], None))
            break

        # Covers a "]@" whose "@" also starts the next "@[".
        _check_literal(text, pos, start + 1, source)
        end = text.find(CLOSE_MARKER, start + len(OPEN_MARKER))
        if end == -1:
            raise _malformed(text, start, "unterminated placeholder marker", source)

        name = text[start + len(OPEN_MARKER):end]
        if not name:
            raise _malformed(text, start, "empty placeholder name", source)
        if not _NAME_RE.fullmatch(name):
            raise _malformed(text, start, f"invalid placeholder name {name!r}", source)

        segments.append(Segment(text[pos:start], name))
        pos = end + len(CLOSE_MARKER)

    return tuple(segments)


@dataclass(frozen=True)
class Template:
    """Parsed, immutable template text.

    ``placeholders`` lists each name once, in first-occurrence order; the
    segments still carry every occurrence for substitution.
    """

    body: str
    source: Optional[str] = field(default=None, compare=False)
    placeholders: tuple[str, ...] = field(init=False)
    segments: tuple[Segment, ...] = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        segments = scan(self.body, self.source)
        names = tuple(dict.fromkeys(s.name for s in segments if s.name is not None))
        object.__setattr__(self, "segments", segments)
        object.__setattr__(self, "placeholders", names)
        logger.debug(
            "Parsed template %s: %d placeholder(s) %s",
            self.source or "<string>", len(names), list(names),
        )

    @classmethod
    def parse(cls, text: str, source: Optional[str] = None) -> Template:
        return cls(text, source=source)

    def declares(self, name: str) -> bool:
        return name in self.placeholders

    def occurrences(self, name: str) -> int:
        """Number of times *name* appears in the body."""
        return sum(1 for s in self.segments if s.name == name)
