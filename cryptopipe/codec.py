"""Base-16/32/64 chunk codec and streaming boundary detection."""

import base64
import binascii
import math

from .config import BaseN
from .errors import ValidationError

PAD = "="

# Characters per padded quantum for each base.
_QUANTUM = {
    BaseN.SIXTEEN: 2,
    BaseN.THIRTY_TWO: 8,
    BaseN.SIXTY_FOUR: 4,
}


def encode(data: bytes, base: BaseN) -> str:
    if base is BaseN.SIXTEEN:
        raw = base64.b16encode(data)
    elif base is BaseN.THIRTY_TWO:
        raw = base64.b32encode(data)
    else:
        raw = base64.b64encode(data)
    return raw.decode("ascii")


def decode(text: str, base: BaseN) -> bytes:
    try:
        if base is BaseN.SIXTEEN:
            return base64.b16decode(text, casefold=True)
        if base is BaseN.THIRTY_TWO:
            return base64.b32decode(text, casefold=True)
        return base64.b64decode(text, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ValidationError(
            f"Malformed base{int(base)} chunk ({len(text)} chars): {exc}"
        ) from exc


def encoded_length(size: int, base: BaseN) -> int:
    """Length of the padded text that ``encode`` produces for ``size`` bytes."""
    if base is BaseN.SIXTEEN:
        return size * 2
    if base is BaseN.THIRTY_TWO:
        return math.ceil(size / 5) * 8
    return math.ceil(size / 3) * 4


class BoundaryDetector:
    """Decides where one encoded chunk ends while text arrives char by char.

    Base-16 has no padding, so a chunk ends once the text reaches the
    encoded length of a full chunk.  Base-32 and Base-64 chunks shorter than
    a whole quantum end in padding: a run of ``=`` that completes the quantum
    closes the chunk (one or two ``=`` for Base-64, one to six for Base-32).
    A full-length chunk that needs no padding closes on length alone.
    """

    def __init__(self, base: BaseN, chunk_size: int):
        self.base = base
        self.chunk_size = chunk_size
        self.expected_length = encoded_length(chunk_size, base)
        self._quantum = _QUANTUM[base]

    def is_boundary(self, length: int, current: str) -> bool:
        if length >= self.expected_length:
            return True
        if self.base is BaseN.SIXTEEN:
            return False
        return current == PAD and length % self._quantum == 0


__all__ = ["BoundaryDetector", "PAD", "decode", "encode", "encoded_length"]
