"""Configuration loader for comment syntaxes and annotation settings.

Loads ``languages.yaml`` files with priority resolution:
1. Explicit files passed by the caller (highest priority)
2. User config: ~/.config/{app_name}/languages.yaml
3. Project config: .{app_name}/languages.yaml in current directory
4. Package defaults: shipped with sibylline-annotations (fallback)

Higher-priority files override lower ones per extension.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any

from .scanner import DEFAULT_PREFIX, AnnotationScanner
from .syntax import DEFAULT_PLAIN_TEXT_EXTENSIONS, CommentSyntaxResolver

CONFIG_FILENAME = "languages.yaml"
DEFAULT_APP_NAME = "sibylline-annotations"

# Lazy import yaml to avoid startup cost
_yaml = None


def _get_yaml():
    """Lazy-load PyYAML."""
    global _yaml
    if _yaml is None:
        import yaml

        _yaml = yaml
    return _yaml


def _get_package_defaults_path() -> Path:
    """Get path to the packaged default table using importlib.resources."""
    try:
        from importlib.resources import files

        return files("sibylline_annotations.syntax_data") / "_defaults"
    except (ImportError, TypeError):
        # Fallback for editable installs
        return Path(__file__).parent / "syntax_data" / "_defaults"


def _parse_entry(extension: str, entry: Any) -> dict[str, Any] | None:
    """Validate one table entry. Returns ``None`` for entries without delimiters."""
    if not isinstance(extension, str) or not extension.startswith("."):
        raise ValueError(f"Extension {extension!r} must be a string starting with '.'")
    if entry is None:
        return None
    if not isinstance(entry, Mapping):
        raise ValueError(f"Entry for {extension} must be a mapping, got {type(entry).__name__}")

    parsed: dict[str, Any] = {}

    line_comment = entry.get("line_comment")
    if line_comment is not None:
        if isinstance(line_comment, str):
            if not line_comment:
                raise ValueError(f"Empty line_comment for {extension}")
            parsed["line_comment"] = line_comment
        elif isinstance(line_comment, Sequence) and line_comment:
            if not all(isinstance(d, str) and d for d in line_comment):
                raise ValueError(f"line_comment for {extension} must contain non-empty strings")
            parsed["line_comment"] = list(line_comment)
        else:
            raise ValueError(
                f"line_comment for {extension} must be a string or a non-empty list of strings"
            )

    block_comment = entry.get("block_comment")
    if block_comment is not None:
        if (
            isinstance(block_comment, str)
            or not isinstance(block_comment, Sequence)
            or len(block_comment) != 2
            or not all(isinstance(d, str) and d for d in block_comment)
        ):
            raise ValueError(f"block_comment for {extension} must be a [start, end] pair")
        parsed["block_comment"] = list(block_comment)

    return parsed or None


def _parse_plain_text_extensions(value: Any, source: Any) -> set[str]:
    """Validate ``settings.plain_text_extensions``; ``null`` means none."""
    if value is None:
        return set()
    if isinstance(value, str) or not isinstance(value, Sequence):
        raise ValueError(f"settings.plain_text_extensions in {source} must be a list of extensions")
    for extension in value:
        if not isinstance(extension, str) or not extension.startswith("."):
            raise ValueError(
                f"settings.plain_text_extensions in {source}: "
                f"{extension!r} must be a string starting with '.'"
            )
    return set(value)


def parse_syntax_table(data: Mapping[str, Any]) -> dict[str, dict[str, Any]]:
    """Validate a raw ``{extension: entry}`` mapping.

    Raises:
        ValueError: If any entry is malformed.
    """
    table: dict[str, dict[str, Any]] = {}
    for extension, entry in data.items():
        parsed = _parse_entry(extension, entry)
        if parsed is not None:
            table[extension] = parsed
    return table


class SyntaxConfig:
    """Load the comment-syntax table and annotation settings.

    Config locations are checked in priority order:
    1. ``extra_files`` - explicit files, later files win
    2. ~/.config/{app_name}/languages.yaml - User overrides
    3. .{app_name}/languages.yaml - Project-specific overrides
    4. Package defaults - Shipped with sibylline-annotations

    Each override file may redefine individual extensions, add new ones, or
    change ``settings``; everything else is inherited from lower layers.
    """

    def __init__(
        self,
        extra_files: Sequence[str | Path] = (),
        app_name: str = DEFAULT_APP_NAME,
        use_defaults: bool = True,
    ):
        """Initialize and load all layers.

        Args:
            extra_files: Additional YAML files applied above every other layer.
            app_name: Application name for config directory resolution.
            use_defaults: Whether to start from the packaged default table.
        """
        self._app_name = app_name
        self._config_locations = [
            Path.cwd() / f".{app_name}" / CONFIG_FILENAME,  # Project config
            Path.home() / ".config" / app_name / CONFIG_FILENAME,  # User overrides
        ]

        self._table: dict[str, dict[str, Any]] = {}
        self._prefix = DEFAULT_PREFIX
        self._plain_text_extensions: set[str] = set(DEFAULT_PLAIN_TEXT_EXTENSIONS)
        self.loaded_files: list[Path] = []

        if use_defaults:
            self._load_file(_get_package_defaults_path() / CONFIG_FILENAME)
        # Lowest priority first so that later layers override
        for path in self._config_locations:
            if path.exists():
                self._load_file(path)
        for path in extra_files:
            self._load_file(Path(path))

    def _load_file(self, config_file: Any) -> None:
        """Overlay one YAML file onto the current table and settings."""
        yaml = _get_yaml()
        content = config_file.read_text(encoding="utf-8")

        try:
            data = yaml.safe_load(content)
        except yaml.YAMLError as exc:
            raise ValueError(f"Invalid YAML in {config_file}: {exc}") from exc

        if not data:
            return
        if not isinstance(data, Mapping):
            raise ValueError(f"Top level of {config_file} must be a mapping")

        settings = data.get("settings") or {}
        if not isinstance(settings, Mapping):
            raise ValueError(f"settings in {config_file} must be a mapping")
        if "prefix" in settings:
            prefix = settings["prefix"]
            if not isinstance(prefix, str) or not prefix:
                raise ValueError(f"settings.prefix in {config_file} must be a non-empty string")
            self._prefix = prefix
        if "plain_text_extensions" in settings:
            self._plain_text_extensions = _parse_plain_text_extensions(
                settings["plain_text_extensions"], config_file
            )

        languages = data.get("languages") or {}
        if not isinstance(languages, Mapping):
            raise ValueError(f"languages in {config_file} must be a mapping")
        for extension, entry in languages.items():
            parsed = _parse_entry(extension, entry)
            if parsed is None:
                # An empty override removes the language
                self._table.pop(extension, None)
            else:
                self._table[extension] = parsed

        self.loaded_files.append(Path(str(config_file)))

    @property
    def prefix(self) -> str:
        return self._prefix

    @property
    def plain_text_extensions(self) -> frozenset[str]:
        return frozenset(self._plain_text_extensions)

    def get_table(self) -> dict[str, dict[str, Any]]:
        """Get the merged comment-syntax table.

        Returns:
            Dict mapping extensions to ``line_comment``/``block_comment`` entries.
        """
        return {ext: dict(entry) for ext, entry in self._table.items()}

    def list_extensions(self) -> list[str]:
        """List every extension with a comment syntax, plus plain-text ones."""
        return sorted(set(self._table) | self._plain_text_extensions)

    def build_resolver(self) -> CommentSyntaxResolver:
        return CommentSyntaxResolver(self.get_table(), self.plain_text_extensions)

    def build_scanner(self, prefix: str | None = None) -> AnnotationScanner:
        """Create an :class:`AnnotationScanner` from this configuration."""
        return AnnotationScanner(self.build_resolver(), prefix=prefix or self._prefix)
