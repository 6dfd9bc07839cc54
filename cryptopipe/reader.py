"""Batch-at-a-time chunk input from a binary stream."""

import time
import typing
from dataclasses import dataclass, field

from . import codec
from .config import BaseN
from .errors import StreamError

# Pause between retries when a non-blocking stream has nothing ready yet.
RETRY_DELAY = 0.001


@dataclass(frozen=True)
class Chunk:
    index: int
    payload: bytes


@dataclass
class Batch:
    chunks: list[Chunk] = field(default_factory=list)
    end_of_stream: bool = False

    def __len__(self) -> int:
        return len(self.chunks)

    def __iter__(self) -> typing.Iterator[Chunk]:
        return iter(self.chunks)

    def __getitem__(self, index: int) -> Chunk:
        return self.chunks[index]

    def append(self, payload: bytes) -> None:
        self.chunks.append(Chunk(len(self.chunks), payload))

    @property
    def payloads(self) -> list[bytes]:
        return [chunk.payload for chunk in self.chunks]

    @property
    def byte_count(self) -> int:
        return sum(len(chunk.payload) for chunk in self.chunks)

    def is_empty(self) -> bool:
        return not self.chunks or not self.chunks[0].payload


class ChunkReader:
    """Pulls fixed-size binary chunks, or Base-N text chunks, from ``stream``.

    With ``base`` set the input is treated as encoded text: characters are
    read one at a time and each chunk is closed by a ``BoundaryDetector``
    before being decoded back to bytes.  Text encoded as one continuous
    stream decodes to more than a chunk per unit; the surplus is carried
    over so every chunk but the last is exactly ``chunk_size`` bytes.
    """

    def __init__(self, stream: typing.BinaryIO, *, base: typing.Optional[BaseN] = None):
        self.stream = stream
        self.base = base
        self._pending = bytearray()
        self._exhausted = False

    def read_batch(self, chunk_size: int, batch_size: int) -> Batch:
        batch = Batch()
        for _ in range(batch_size):
            if self.base is None:
                payload = self.read_chunk(chunk_size)
                short = len(payload) < chunk_size
            else:
                payload, short = self.read_text_payload(chunk_size)
            if not payload:
                batch.end_of_stream = True
                break
            batch.append(payload)
            if short:
                batch.end_of_stream = True
                break
        return batch

    def read_chunk(self, chunk_size: int) -> bytes:
        buf = bytearray()
        while len(buf) < chunk_size:
            data = self._read(chunk_size - len(buf))
            if not data:
                break
            buf += data
        return bytes(buf)

    def read_text_payload(self, chunk_size: int) -> tuple[bytes, bool]:
        """Return up to ``chunk_size`` decoded bytes and whether input is used up."""
        if len(self._pending) < chunk_size and not self._exhausted:
            text, self._exhausted = self.read_text_chunk(chunk_size - len(self._pending))
            if text:
                self._pending += codec.decode(text, self.base)
        payload = bytes(self._pending[:chunk_size])
        del self._pending[:chunk_size]
        return payload, self._exhausted and not self._pending

    def read_text_chunk(self, chunk_size: int) -> tuple[str, bool]:
        """Return one encoded chunk and whether EOF cut it off."""
        detector = codec.BoundaryDetector(self.base, chunk_size)
        chars: list[str] = []
        while True:
            data = self._read(1)
            if not data:
                return "".join(chars), True
            current = data.decode("ascii", errors="replace")
            if current.isspace():
                continue
            chars.append(current)
            if detector.is_boundary(len(chars), current):
                return "".join(chars), False

    def _read(self, size: int) -> bytes:
        while True:
            try:
                data = self.stream.read(size)
            except OSError as exc:
                raise StreamError(f"Failed to read input: {exc}") from exc
            if data is not None:
                return data
            time.sleep(RETRY_DELAY)


__all__ = ["Batch", "Chunk", "ChunkReader", "RETRY_DELAY"]
