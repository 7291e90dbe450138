"""Sibylline Annotations: comment-aware annotation scanner for source trees."""

from .config import SyntaxConfig, parse_syntax_table
from .patterns import AnnotationPattern, RawMatch, escape_delimiter
from .scanner import (
    Annotation,
    AnnotationScanner,
    SourceFileAnnotations,
    file_extension,
    parse_annotation_body,
)
from .syntax import DEFAULT_PLAIN_TEXT_EXTENSIONS, CommentSyntax, CommentSyntaxResolver
from .walker import AnnotationModel, CancellationToken, ProgressReport, WorkspaceWalker
from .workspace import FileSystemReader, list_workspace_files

__all__ = [
    "CommentSyntax",
    "CommentSyntaxResolver",
    "DEFAULT_PLAIN_TEXT_EXTENSIONS",
    "AnnotationPattern",
    "RawMatch",
    "escape_delimiter",
    "Annotation",
    "SourceFileAnnotations",
    "AnnotationScanner",
    "file_extension",
    "parse_annotation_body",
    "AnnotationModel",
    "ProgressReport",
    "CancellationToken",
    "WorkspaceWalker",
    "SyntaxConfig",
    "parse_syntax_table",
    "FileSystemReader",
    "list_workspace_files",
]
