from dataclasses import dataclass, field

import numpy as np

from ..errors import MessageLengthError
from ..keystore import KeyStore
from .base import CipherName, ChunkSizePolicy

DEFAULT_CHUNK_SIZE = 65536


def xor_message(message: bytes, key: bytes) -> bytes:
    if len(message) > len(key):
        raise MessageLengthError(
            "Unsupported message length.  "
            f"Message Length: {len(message)}, Supported Max Message Length: {len(key)}"
        )
    if not message:
        return b""
    data_arr = np.frombuffer(message, dtype=np.uint8)
    key_arr = np.frombuffer(key, dtype=np.uint8, count=len(message))
    return np.bitwise_xor(data_arr, key_arr).tobytes()


@dataclass
class XorCipher:
    """Masks each chunk with a persisted random key as long as the chunk.

    The key is picked by the active direction's chunk size, so encrypt and
    decrypt runs must agree on ``-k``.
    """

    key_store: KeyStore = field(default_factory=KeyStore)
    policy: ChunkSizePolicy = field(
        default_factory=lambda: ChunkSizePolicy(DEFAULT_CHUNK_SIZE, DEFAULT_CHUNK_SIZE)
    )
    name: CipherName = CipherName.XOR

    def encrypt(self, message: bytes) -> bytes:
        return xor_message(message, self.key_store.get_or_create_key(self.policy.encrypt))

    def decrypt(self, message: bytes) -> bytes:
        return xor_message(message, self.key_store.get_or_create_key(self.policy.decrypt))
