"""Workspace-level aggregation of per-file scans.

Iterates a supplied file list, reads each file through an external reader,
scans it and collects the results. Files are processed one at a time;
cancellation and progress reporting happen only between files.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterable, Iterator, Sequence
from dataclasses import dataclass, field
from typing import Any, Protocol

from .scanner import Annotation, AnnotationScanner, SourceFileAnnotations

logger = logging.getLogger(__name__)

DEFAULT_REPORT_INTERVAL = 0.01


@dataclass(slots=True)
class AnnotationModel:
    """Aggregated result of one walk: one entry per scanned file."""

    files_annotations: list[SourceFileAnnotations] = field(default_factory=list)

    @property
    def annotation_count(self) -> int:
        return sum(len(f.annotations) for f in self.files_annotations)

    def iter_annotations(self) -> Iterator[tuple[str, Annotation]]:
        """Yield ``(relative_file_path, annotation)`` pairs in model order."""
        for file_annotations in self.files_annotations:
            for annotation in file_annotations.annotations:
                yield file_annotations.relative_file_path, annotation

    def to_dict(self) -> dict[str, Any]:
        return {"files_annotations": [f.to_dict() for f in self.files_annotations]}


@dataclass(frozen=True, slots=True)
class ProgressReport:
    message: str
    """Identity of the most recently started file."""

    increment: float
    """Fraction of the file list completed since the previous report."""


class Cancellable(Protocol):
    @property
    def is_cancellation_requested(self) -> bool: ...


class CancellationToken:
    """Poll-able cancellation flag."""

    __slots__ = ("_requested",)

    def __init__(self) -> None:
        self._requested = False

    def cancel(self) -> None:
        self._requested = True

    @property
    def is_cancellation_requested(self) -> bool:
        return self._requested


ProgressSink = Callable[[ProgressReport], None]
FileReader = Callable[[str], bytes]


class _ProgressThrottle:
    """Emit at most one report per interval, and only after new work."""

    def __init__(
        self,
        sink: ProgressSink | None,
        total: int,
        interval: float,
        clock: Callable[[], float],
    ) -> None:
        self._sink = sink
        self._total = max(total, 1)
        self._interval = interval
        self._clock = clock
        self._last_report: float | None = None
        self._pending = 0
        self._current = ""

    def started(self, identity: str) -> None:
        self._current = identity

    def completed(self) -> None:
        self._pending += 1
        now = self._clock()
        if self._last_report is None or now - self._last_report >= self._interval:
            self._emit(now)

    def flush(self) -> None:
        if self._pending:
            self._emit(self._clock())

    def _emit(self, now: float) -> None:
        if self._sink is not None:
            self._sink(ProgressReport(message=self._current, increment=self._pending / self._total))
        self._pending = 0
        self._last_report = now


class WorkspaceWalker:
    """Scan a list of workspace files and aggregate the results.

    Args:
        scanner: Scanner used for every file.
        report_interval: Minimum number of seconds between progress reports.
        clock: Monotonic clock used for throttling (injectable for tests).
    """

    def __init__(
        self,
        scanner: AnnotationScanner,
        report_interval: float = DEFAULT_REPORT_INTERVAL,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._scanner = scanner
        self._report_interval = report_interval
        self._clock = clock

    def walk(
        self,
        files: Iterable[str],
        read_file: FileReader,
        progress: ProgressSink | None = None,
        cancel_token: Cancellable | None = None,
    ) -> AnnotationModel:
        """Scan *files* in the given order.

        Per-file failures (read errors, undecodable content, unsupported
        types) skip the file. If *cancel_token* is set before a file starts,
        the walk stops and returns what has been collected so far.
        """
        file_list: Sequence[str] = files if isinstance(files, Sequence) else list(files)
        logger.info("Scanning %d file(s) for annotations", len(file_list))

        throttle = _ProgressThrottle(progress, len(file_list), self._report_interval, self._clock)
        model = AnnotationModel()

        for identity in file_list:
            if cancel_token is not None and cancel_token.is_cancellation_requested:
                logger.info(
                    "Scan cancelled after %d file(s); returning partial results",
                    len(model.files_annotations),
                )
                return model

            throttle.started(identity)
            result = self._scan_one(identity, read_file)
            if result is not None:
                model.files_annotations.append(result)
            throttle.completed()

        throttle.flush()
        logger.info(
            "Scan complete: %d annotation(s) in %d file(s)",
            model.annotation_count,
            len(model.files_annotations),
        )
        return model

    def _scan_one(self, identity: str, read_file: FileReader) -> SourceFileAnnotations | None:
        try:
            content = read_file(identity)
        except Exception as exc:
            logger.warning("Skipping %s: read failed (%s)", identity, exc)
            return None
        return self._scanner.scan(identity, content)
