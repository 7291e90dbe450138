"""Comment syntax resolution by file extension.

Maps a file extension (``.py``, ``.sql``) to the comment delimiters used by
that language, as declared in a configuration table.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, ClassVar

DEFAULT_PLAIN_TEXT_EXTENSIONS: frozenset[str] = frozenset({".txt", ".md"})


@dataclass(frozen=True, slots=True)
class CommentSyntax:
    """Comment delimiters resolved for a single file extension."""

    single_line_delimiters: tuple[str, ...] = ()
    """Literal (unescaped) tokens that open a single-line comment."""

    block_start: str | None = None
    block_end: str | None = None

    is_plain_text: bool = False
    """No delimiter at all; annotations must start a line."""

    block_comment_support: ClassVar[bool] = False
    """Block-spanning matching is not implemented. Block delimiters only
    feed the single-line fallback in :meth:`CommentSyntaxResolver.resolve`."""

    @classmethod
    def plain_text(cls) -> CommentSyntax:
        return cls(is_plain_text=True)


class CommentSyntaxResolver:
    """Resolve a :class:`CommentSyntax` from a comment-syntax table.

    The table is keyed by extension including the leading ``.``. Each entry
    may provide ``line_comment`` (a string or a non-empty list of strings)
    and/or ``block_comment`` (a ``[start, end]`` pair). Lookup is exact and
    case-sensitive.
    """

    def __init__(
        self,
        table: Mapping[str, Mapping[str, Any]],
        plain_text_extensions: frozenset[str] | set[str] | None = None,
    ) -> None:
        # Snapshot so later edits to the caller's table cannot reach cached patterns
        self._table: dict[str, dict[str, Any]] = {
            extension: {key: _freeze(value) for key, value in entry.items()}
            for extension, entry in table.items()
            if entry
        }
        if plain_text_extensions is None:
            plain_text_extensions = DEFAULT_PLAIN_TEXT_EXTENSIONS
        self._plain_text = frozenset(plain_text_extensions)

    @property
    def plain_text_extensions(self) -> frozenset[str]:
        return self._plain_text

    def resolve(self, extension: str) -> CommentSyntax | None:
        """Return the comment syntax for *extension*, or ``None`` if unsupported."""
        if extension in self._plain_text:
            return CommentSyntax.plain_text()

        entry = self._table.get(extension)
        if not entry:
            return None

        line_comment = entry.get("line_comment")
        block_comment = entry.get("block_comment")

        if isinstance(line_comment, str):
            delimiters: tuple[str, ...] = (line_comment,) if line_comment else ()
        else:
            delimiters = tuple(line_comment or ())

        block_start = block_end = None
        if block_comment:
            block_start, block_end = block_comment[0], block_comment[1]

        if not delimiters:
            if block_start is None:
                return None
            # No line comment: the block opener stands in as a line delimiter
            delimiters = (block_start,)

        return CommentSyntax(
            single_line_delimiters=delimiters,
            block_start=block_start,
            block_end=block_end,
        )


def _freeze(value: Any) -> Any:
    if isinstance(value, (list, tuple)):
        return tuple(value)
    return value
