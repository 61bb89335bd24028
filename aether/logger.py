"""Core logging: timestamped log file and tee of standard streams into it."""

from __future__ import annotations

import re
import sys
import threading
from dataclasses import dataclass
from datetime import datetime
from typing import IO, Callable

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"

_LINE_CHUNK = re.compile(r"[^\n]*\n|[^\n]+")


def current_timestamp() -> str:
    """Return the local time formatted as ``YYYY-MM-DD HH:MM:SS``."""
    return datetime.now().strftime(TIMESTAMP_FORMAT)


@dataclass
class _Target:
    stream: IO[str]
    at_line_start: bool = True


class TeeStream:
    """A text stream that copies writes to several streams.

    Every line written to each stream is prefixed with ``"<timestamp> | "``.
    """

    def __init__(
        self, *streams: IO[str], clock: Callable[[], str] = current_timestamp
    ) -> None:
        self._targets = [_Target(stream) for stream in streams]
        self._clock = clock
        self._lock = threading.Lock()

    def write(self, text: str) -> int:
        chunks = _LINE_CHUNK.findall(text)
        with self._lock:
            for target in self._targets:
                for chunk in chunks:
                    if target.at_line_start:
                        target.stream.write(f"{self._clock()} | ")
                    target.stream.write(chunk)
                    target.at_line_start = chunk.endswith("\n")
        return len(text)

    def flush(self) -> None:
        with self._lock:
            for target in self._targets:
                target.stream.flush()

    def writable(self) -> bool:
        return True


class CoreLogger:
    """Writes timestamped messages to a log file.

    When ``redirect_std`` is set, :meth:`initialize` also tees standard
    output and standard error into the log file until :meth:`shutdown`.
    """

    def __init__(
        self,
        *,
        redirect_std: bool = True,
        clock: Callable[[], str] = current_timestamp,
    ) -> None:
        self._redirect = redirect_std
        self._clock = clock
        self._file: IO[str] | None = None
        self._saved: tuple[IO[str], IO[str]] | None = None
        self._tees: tuple[TeeStream, TeeStream] | None = None
        self._lock = threading.Lock()

    @property
    def is_open(self) -> bool:
        return self._file is not None

    def initialize(self, filename) -> None:
        """Open ``filename`` for appending; raises ``OSError`` on failure."""
        self.shutdown()
        with self._lock:
            self._file = open(filename, "a", encoding="utf-8")
            if self._redirect:
                self._saved = (sys.stdout, sys.stderr)
                self._tees = (
                    TeeStream(sys.stdout, self._file, clock=self._clock),
                    TeeStream(sys.stderr, self._file, clock=self._clock),
                )
                sys.stdout, sys.stderr = self._tees

    def log(self, message: str) -> None:
        """Append a timestamped message to the log file, if it is open."""
        with self._lock:
            if self._file is None:
                return
            self._file.write(f"{self._clock()} {message}\n")
            self._file.flush()

    def shutdown(self) -> None:
        """Restore the standard streams and close the log file."""
        with self._lock:
            if self._saved is not None and self._tees is not None:
                out, err = self._saved
                if sys.stdout is self._tees[0]:
                    sys.stdout = out
                if sys.stderr is self._tees[1]:
                    sys.stderr = err
            self._saved = None
            self._tees = None
            if self._file is not None:
                self._file.close()
                self._file = None

    def __enter__(self) -> CoreLogger:
        return self

    def __exit__(self, *exc_info) -> None:
        self.shutdown()