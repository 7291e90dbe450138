"""Command line entry point: scan a directory and print annotations as JSON."""

from __future__ import annotations

import argparse
import json
import logging
import signal
import sys
from pathlib import Path

from .config import SyntaxConfig
from .walker import CancellationToken, ProgressReport, WorkspaceWalker
from .workspace import DEFAULT_EXCLUDES, FileSystemReader, list_workspace_files

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sibylline-annotations",
        description="Find annotations embedded in source comments",
    )
    parser.add_argument(
        "root",
        nargs="?",
        type=Path,
        default=Path("."),
        help="Workspace directory to scan (default: current directory)",
    )
    parser.add_argument(
        "--prefix",
        type=str,
        default=None,
        help="Annotation prefix token (default: from configuration, '@')",
    )
    parser.add_argument(
        "--config",
        type=Path,
        action="append",
        default=[],
        help="Additional languages.yaml file (may be repeated; later files win)",
    )
    parser.add_argument(
        "--exclude",
        type=str,
        action="append",
        default=None,
        help="Directory or file glob to skip (may be repeated)",
    )
    parser.add_argument(
        "--output",
        "-o",
        type=Path,
        default=None,
        help="Write JSON to this file instead of stdout",
    )
    parser.add_argument(
        "--progress",
        action="store_true",
        help="Print progress to stderr",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable debug logging",
    )
    return parser


class ProgressPrinter:
    """Print the running total of progress increments to a stream."""

    def __init__(self, stream=None) -> None:
        self._stream = stream
        self.completed = 0.0

    def __call__(self, report: ProgressReport) -> None:
        self.completed = min(self.completed + report.increment, 1.0)
        print(f"  [{self.completed:6.1%}] {report.message}", file=self._stream or sys.stderr)


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if not args.root.is_dir():
        print(f"error: {args.root} is not a directory", file=sys.stderr)
        return 2

    try:
        config = SyntaxConfig(extra_files=args.config)
    except (OSError, ValueError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2

    scanner = config.build_scanner(prefix=args.prefix)
    walker = WorkspaceWalker(scanner)

    excludes = DEFAULT_EXCLUDES if args.exclude is None else tuple(args.exclude)
    files = list(list_workspace_files(args.root, exclude=excludes))

    token = CancellationToken()
    previous = signal.signal(signal.SIGINT, lambda *_: token.cancel())
    try:
        model = walker.walk(
            files,
            FileSystemReader(args.root),
            progress=ProgressPrinter() if args.progress else None,
            cancel_token=token,
        )
    finally:
        signal.signal(signal.SIGINT, previous)

    payload = json.dumps(model.to_dict(), indent=2, ensure_ascii=False)
    if args.output is not None:
        args.output.write_text(payload + "\n", encoding="utf-8")
        logger.info("Wrote %d annotation(s) to %s", model.annotation_count, args.output)
    else:
        print(payload)
    return 0


if __name__ == "__main__":
    sys.exit(main())
