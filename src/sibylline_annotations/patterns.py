"""Annotation pattern assembly and matching."""

from __future__ import annotations

import logging
import re
from collections.abc import Iterator
from dataclasses import dataclass

from .syntax import CommentSyntax

logger = logging.getLogger(__name__)

# Horizontal whitespace only; newlines must never be crossed between the
# comment delimiter and the prefix.
_HSPACE = r"[ \t]"
_REST_OF_LINE = r"(?P<body>[^\r\n]*)"


def escape_delimiter(delimiter: str) -> str:
    """Escape a literal delimiter for use as a regex fragment.

    Every metacharacter (``. * + ? ^ $ { } ( ) | [ ] \\``) is backslash-escaped,
    so the result matches only literal occurrences of *delimiter*.
    """
    if not delimiter:
        raise ValueError("Comment delimiter must be a non-empty string")
    return re.escape(delimiter)


@dataclass(frozen=True, slots=True)
class RawMatch:
    """A single match of an annotation pattern over a whole file."""

    full_text: str
    captured_body: str
    """Everything after the prefix up to the end of the line, untrimmed."""

    start_offset: int

    @property
    def length(self) -> int:
        return len(self.full_text)


class AnnotationPattern:
    """Compiled matcher for one comment syntax and prefix token.

    Delimited languages::

        (?<!<delim>)...(?:<delim>|<delim>...)+[ \\t]+(?:<prefix>)+<body>

    Plain text (multiline, so ``^`` anchors at every line start)::

        ^[ \\t]*(?:<prefix>)+<body>

    Both variants are case-insensitive. Instances are immutable and hold no
    per-scan state, so one pattern can be reused across files.
    """

    __slots__ = ("_regex", "syntax", "prefix")

    def __init__(self, regex: re.Pattern[str], syntax: CommentSyntax, prefix: str) -> None:
        self._regex = regex
        self.syntax = syntax
        self.prefix = prefix

    @classmethod
    def build(cls, syntax: CommentSyntax, prefix: str) -> AnnotationPattern:
        """Assemble and compile the pattern for *syntax* and *prefix*."""
        if not prefix:
            raise ValueError("Annotation prefix must be a non-empty string")

        marker = f"(?:{re.escape(prefix)})+"

        if syntax.is_plain_text:
            source = f"^{_HSPACE}*{marker}{_REST_OF_LINE}"
            flags = re.IGNORECASE | re.MULTILINE
        else:
            if not syntax.single_line_delimiters:
                raise ValueError("Comment syntax has no single-line delimiter")
            escaped = [escape_delimiter(d) for d in syntax.single_line_delimiters]
            # Never start right after a whole delimiter: keeps long delimiter
            # runs (banner lines) linear instead of retrying at every offset
            not_after = "".join(f"(?<!{d})" for d in escaped)
            source = f"{not_after}(?:{'|'.join(escaped)})+{_HSPACE}+{marker}{_REST_OF_LINE}"
            flags = re.IGNORECASE

        logger.debug("Built annotation pattern %r", source)
        return cls(re.compile(source, flags), syntax, prefix)

    @property
    def source(self) -> str:
        """The regex source, useful for debugging."""
        return self._regex.pattern

    def find_all(self, text: str) -> Iterator[RawMatch]:
        """Lazily yield every match over the full *text*, in file order.

        Each call starts a fresh scan from offset 0.
        """
        for match in self._regex.finditer(text):
            yield RawMatch(
                full_text=match.group(0),
                captured_body=match.group("body"),
                start_offset=match.start(),
            )
