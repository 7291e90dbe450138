"""Per-file annotation scanning.

Resolves the comment syntax for a file, runs the annotation pattern over the
decoded text and converts raw matches into :class:`Annotation` records with
character offsets and 1-based line numbers.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from .patterns import AnnotationPattern, RawMatch
from .syntax import CommentSyntaxResolver

logger = logging.getLogger(__name__)

DEFAULT_PREFIX = "@"


@dataclass(slots=True)
class Annotation:
    """A named marker found in a comment (or at a line start in plain text)."""

    name: str
    value: str | None
    start_pos: int
    """Character offset of the match start (the comment delimiter)."""

    end_pos: int
    line_number: int
    """1-based line of ``start_pos``."""

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "value": self.value,
            "start_pos": self.start_pos,
            "end_pos": self.end_pos,
            "line_number": self.line_number,
        }


@dataclass(slots=True)
class SourceFileAnnotations:
    """All annotations of one file, in file order."""

    relative_file_path: str
    annotations: list[Annotation] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "relative_file_path": self.relative_file_path,
            "annotations": [a.to_dict() for a in self.annotations],
        }


def parse_annotation_body(body: str) -> tuple[str, str | None] | None:
    """Split a captured body into ``(name, value)``.

    The body is trimmed, then split on the first whitespace run. The first
    token is the name, the second (if any) the value; further tokens are
    dropped. Returns ``None`` for an empty body.
    """
    tokens = body.split(maxsplit=2)
    if not tokens:
        return None
    value = tokens[1] if len(tokens) > 1 else None
    return tokens[0], value


def file_extension(identity: str | os.PathLike[str]) -> str | None:
    """Return the extension of the last path segment, with its leading dot.

    ``None`` when the identity has no final segment or the segment has no
    extension (``Makefile``, ``notes.``).
    """
    path = os.fspath(identity).replace("\\", "/")
    name = path.rsplit("/", 1)[-1]
    if "." not in name:
        return None
    suffix = name.rsplit(".", 1)[1]
    if not suffix:
        return None
    return f".{suffix}"


class AnnotationScanner:
    """Scan single files for annotations.

    Patterns are cached per extension. Patterns are immutable, so the cache
    never carries state from one file into the next.
    """

    def __init__(
        self,
        resolver: CommentSyntaxResolver,
        prefix: str = DEFAULT_PREFIX,
        encoding: str = "utf-8",
    ) -> None:
        if not prefix:
            raise ValueError("Annotation prefix must be a non-empty string")
        self._resolver = resolver
        self._prefix = prefix
        self._encoding = encoding
        self._patterns: dict[str, AnnotationPattern | None] = {}

    @classmethod
    def from_table(
        cls,
        table: Mapping[str, Mapping[str, Any]],
        prefix: str = DEFAULT_PREFIX,
        plain_text_extensions: set[str] | frozenset[str] | None = None,
    ) -> AnnotationScanner:
        """Convenience constructor from an inline comment-syntax table."""
        return cls(CommentSyntaxResolver(table, plain_text_extensions), prefix=prefix)

    @property
    def prefix(self) -> str:
        return self._prefix

    def pattern_for(self, extension: str) -> AnnotationPattern | None:
        """Return the (cached) pattern for *extension*, or ``None`` if unsupported."""
        if extension not in self._patterns:
            syntax = self._resolver.resolve(extension)
            pattern = None
            if syntax is not None:
                pattern = AnnotationPattern.build(syntax, self._prefix)
                logger.debug("Pattern for %s: %s", extension, pattern.source)
            self._patterns[extension] = pattern
        return self._patterns[extension]

    def scan(
        self, identity: str | os.PathLike[str], content: bytes
    ) -> SourceFileAnnotations | None:
        """Scan raw file *content* belonging to *identity*.

        Returns ``None`` when the file is skipped: no extension, unsupported
        language, or content that does not decode. A supported file without
        matches yields an empty annotation list.
        """
        extension = file_extension(identity)
        if extension is None:
            logger.debug("Skipping %s: no file extension", identity)
            return None

        pattern = self.pattern_for(extension)
        if pattern is None:
            logger.debug("Skipping %s: unsupported extension %s", identity, extension)
            return None

        try:
            text = content.decode(self._encoding)
        except UnicodeDecodeError as exc:
            logger.warning("Skipping %s: cannot decode as %s (%s)", identity, self._encoding, exc)
            return None

        annotations = self.scan_text(text, pattern)
        logger.debug("Found %d annotation(s) in %s", len(annotations), identity)
        return SourceFileAnnotations(relative_file_path=os.fspath(identity), annotations=annotations)

    @staticmethod
    def scan_text(text: str, pattern: AnnotationPattern) -> list[Annotation]:
        """Run *pattern* over *text* and build annotations in scan order."""
        annotations: list[Annotation] = []
        # Matches arrive in offset order, so newlines are counted incrementally
        line_number = 1
        cursor = 0

        for raw in pattern.find_all(text):
            parsed = parse_annotation_body(raw.captured_body)
            if parsed is None:
                continue

            line_number += text.count("\n", cursor, raw.start_offset)
            cursor = raw.start_offset

            name, value = parsed
            annotations.append(_to_annotation(raw, name, value, line_number))

        return annotations


def _to_annotation(raw: RawMatch, name: str, value: str | None, line_number: int) -> Annotation:
    return Annotation(
        name=name,
        value=value,
        start_pos=raw.start_offset,
        end_pos=raw.start_offset + raw.length,
        line_number=line_number,
    )
