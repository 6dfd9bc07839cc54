import typing

from . import codec
from .config import BaseN
from .errors import StreamError


class ChunkWriter:
    """Writes transformed chunks in batch order, raw or Base-N encoded."""

    def __init__(self, stream: typing.BinaryIO, *, base: typing.Optional[BaseN] = None):
        self.stream = stream
        self.base = base

    def write_batch(self, outputs: typing.Sequence[bytes]) -> int:
        written = 0
        for payload in outputs:
            if self.base is not None:
                payload = codec.encode(payload, self.base).encode("ascii")
            self._write(payload)
            written += len(payload)
        return written

    def flush(self) -> None:
        try:
            self.stream.flush()
        except OSError as exc:
            raise StreamError(f"Failed to flush output: {exc}") from exc

    def _write(self, data: bytes) -> None:
        try:
            self.stream.write(data)
        except OSError as exc:
            raise StreamError(f"Failed to write output: {exc}") from exc


__all__ = ["ChunkWriter"]
