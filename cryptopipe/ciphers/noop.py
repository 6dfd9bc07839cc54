from dataclasses import dataclass, field

from .base import CipherName, ChunkSizePolicy

DEFAULT_CHUNK_SIZE = 65536


@dataclass
class NoopCipher:
    """Pass-through cipher; useful for exercising the pipeline itself."""

    policy: ChunkSizePolicy = field(
        default_factory=lambda: ChunkSizePolicy(DEFAULT_CHUNK_SIZE, DEFAULT_CHUNK_SIZE)
    )
    name: CipherName = CipherName.NOOP

    def encrypt(self, message: bytes) -> bytes:
        return bytes(message)

    def decrypt(self, message: bytes) -> bytes:
        return bytes(message)
