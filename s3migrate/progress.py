"""Spinner status line with a running count of completed objects."""

from __future__ import annotations

import itertools
import logging
import sys
import threading
from typing import TextIO

logger = logging.getLogger(__name__)

SPINNER = ("|", "/", "-", "\\")
DEFAULT_INTERVAL = 0.05


class ProgressReporter:
    """Owns a progress counter and the background thread that renders it.

    ``start`` begins ticking with a label, ``stop`` ends it and blanks the
    line so following output starts on a clean line. Starting again while
    already running stops the previous ticker first. The counter may be
    incremented from any number of worker threads.
    """

    def __init__(self, stream: TextIO | None = None, interval: float = DEFAULT_INTERVAL) -> None:
        self._stream = stream if stream is not None else sys.stdout
        self._interval = interval
        self._lock = threading.Lock()
        self._count: int | None = None
        self._label = ""
        self._thread: threading.Thread | None = None
        self._stopping = threading.Event()
        self._rendered_width = 0

    @property
    def count(self) -> int | None:
        """Objects completed so far, or ``None`` before counting has started."""
        with self._lock:
            return self._count

    @property
    def active(self) -> bool:
        return self._thread is not None

    def reset(self, value: int = 0) -> None:
        with self._lock:
            self._count = value

    def increment(self, amount: int = 1) -> int:
        with self._lock:
            self._count = (self._count or 0) + amount
            return self._count

    def start(self, label: str) -> None:
        if self._thread is not None:
            self.stop()
        with self._lock:
            self._count = None
        self._label = label
        self._stopping.clear()
        self._thread = threading.Thread(target=self._run, name="progress-reporter", daemon=True)
        self._thread.start()

    def stop(self) -> None:
        thread = self._thread
        if thread is None:
            return
        self._stopping.set()
        thread.join()
        self._thread = None
        self._erase()

    def render(self, glyph: str) -> str:
        count = self.count
        if count is None:
            return f"{glyph} {self._label}..."
        return f"{glyph} {self._label} ({count} done so far)"

    def _run(self) -> None:
        try:
            for glyph in itertools.cycle(SPINNER):
                line = self.render(glyph)
                self._rendered_width = max(self._rendered_width, len(line))
                self._stream.write("\r" + line)
                self._stream.flush()
                if self._stopping.wait(self._interval):
                    return
        except Exception:
            logger.exception("Progress display failed; continuing without it")

    def _erase(self) -> None:
        try:
            self._stream.write("\r" + " " * self._rendered_width + "\r")
            self._stream.flush()
        except Exception:
            logger.exception("Failed to clear progress line")
        self._rendered_width = 0

    def __enter__(self) -> ProgressReporter:
        return self

    def __exit__(self, *exc_info) -> None:
        self.stop()
