import sys
import threading
import time
import typing
from dataclasses import dataclass


def _human_readable_size(num_bytes: int) -> str:
    units = ["B", "KiB", "MiB", "GiB"]
    value = float(num_bytes)
    for unit in units:
        if value < 1024.0 or unit == units[-1]:
            return f"{value:.2f} {unit}"
        value /= 1024.0
    return f"{value:.2f} TiB"


@dataclass
class RunStats:
    batches: int = 0
    chunks: int = 0
    bytes_in: int = 0
    bytes_out: int = 0


class BatchReporter:
    """Per-batch progress lines on stderr; stdout is reserved for payload."""

    def __init__(self, stream=None, *, enabled: bool = True):
        self.stream = stream or sys.stderr
        self.enabled = enabled
        self._lock = threading.Lock()
        self._started = time.monotonic()

    def _emit(self, line: str) -> None:
        if not self.enabled:
            return
        with self._lock:
            try:
                self.stream.write(line + "\n")
                self.stream.flush()
            except (OSError, ValueError):
                pass

    def batch_done(self, number: int, chunk_count: int, size_hint: typing.Tuple[int, int]) -> None:
        src, dst = size_hint
        self._emit(
            f"batch {number}: {chunk_count} chunk(s) "
            f"({_human_readable_size(src)} -> {_human_readable_size(dst)})"
        )

    def finish(self, stats: RunStats) -> None:
        elapsed = time.monotonic() - self._started
        self._emit(
            f"done: {stats.batches} batch(es), {stats.chunks} chunk(s), "
            f"{_human_readable_size(stats.bytes_in)} in, "
            f"{_human_readable_size(stats.bytes_out)} out, {elapsed:.2f}s"
        )


__all__ = ["BatchReporter", "RunStats"]
