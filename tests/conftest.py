"""Shared test fixtures for sibylline-annotations."""

import pytest

from sibylline_annotations.scanner import AnnotationScanner
from sibylline_annotations.syntax import CommentSyntaxResolver

SAMPLE_TABLE = {
    ".py": {"line_comment": "#"},
    ".js": {"line_comment": "//", "block_comment": ["/*", "*/"]},
    ".sql": {"line_comment": ["--", "//"]},
    ".css": {"block_comment": ["/*", "*/"]},
    ".txt": {"line_comment": "#"},
}


@pytest.fixture
def syntax_table():
    """A small comment-syntax table covering each resolution branch."""
    return {ext: dict(entry) for ext, entry in SAMPLE_TABLE.items()}


@pytest.fixture
def resolver(syntax_table):
    """Create a CommentSyntaxResolver over the sample table."""
    return CommentSyntaxResolver(syntax_table)


@pytest.fixture
def scanner(resolver):
    """Create an AnnotationScanner with the default '@' prefix."""
    return AnnotationScanner(resolver, prefix="@")
