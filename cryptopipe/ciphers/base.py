import enum
import typing
from dataclasses import dataclass, replace

from ..config import Action
from ..errors import ConfigurationError, UnrecognizedArgumentError


class CipherName(enum.Enum):
    NOOP = "NOOP"
    XOR = "XOR"
    LATTICE = "LATTICE"

    @classmethod
    def parse(cls, name: str) -> "CipherName":
        key = (name or "").strip().upper()
        if key in _ALIASES:
            return _ALIASES[key]
        try:
            return cls(key)
        except ValueError:
            supported = ", ".join(member.value for member in cls)
            raise UnrecognizedArgumentError(
                f'Specified cryptosystem not found.  Specified Cryptosystem: "{name}", '
                f"Supported: {supported}"
            ) from None


# Names kept for command lines written against the NTRU-era tool.
_ALIASES = {"NTRU": CipherName.LATTICE}


@dataclass(frozen=True)
class ChunkSizePolicy:
    """Chunk size in bytes for each direction.

    ``fixed`` policies belong to ciphers that manage their own sizing and
    refuse an explicit key size.
    """

    encrypt: int
    decrypt: int
    fixed: bool = False

    def for_action(self, action: Action) -> int:
        return self.encrypt if action is Action.ENCRYPT else self.decrypt

    def with_key_size(self, size: int) -> "ChunkSizePolicy":
        if self.fixed:
            raise ConfigurationError(
                "This cryptosystem manages its own chunk sizes; an explicit key size is not allowed."
            )
        if size <= 0:
            raise ConfigurationError(f"Key size must be a positive integer, got {size}")
        return replace(self, encrypt=size, decrypt=size)


@typing.runtime_checkable
class Cipher(typing.Protocol):
    name: CipherName
    policy: ChunkSizePolicy

    def encrypt(self, message: bytes) -> bytes: ...

    def decrypt(self, message: bytes) -> bytes: ...


__all__ = ["Cipher", "CipherName", "ChunkSizePolicy"]
