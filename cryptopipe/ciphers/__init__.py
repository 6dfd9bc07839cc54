"""Cipher registry: a static map from cipher name to its constructor."""

import pathlib
import typing
import warnings

from ..config import store_root
from ..keystore import KeyStore
from .base import Cipher, CipherName, ChunkSizePolicy
from .noop import NoopCipher
from .xor import XorCipher


def _make_noop(policy: ChunkSizePolicy, root: pathlib.Path) -> Cipher:
    return NoopCipher(policy=policy)


def _make_xor(policy: ChunkSizePolicy, root: pathlib.Path) -> Cipher:
    return XorCipher(key_store=KeyStore(root / "xor"), policy=policy)


def _make_lattice(policy: ChunkSizePolicy, root: pathlib.Path) -> Cipher:
    # pqcrypto is only imported when the lattice cipher is actually selected
    from .lattice import LatticeCipher

    return LatticeCipher(folder=root / "lattice", policy=policy)


def _default_policy(name: CipherName) -> ChunkSizePolicy:
    if name is CipherName.LATTICE:
        from .lattice import DEFAULT_CHUNK_SIZE_DECRYPT, DEFAULT_CHUNK_SIZE_ENCRYPT

        return ChunkSizePolicy(DEFAULT_CHUNK_SIZE_ENCRYPT, DEFAULT_CHUNK_SIZE_DECRYPT, fixed=True)
    if name is CipherName.XOR:
        from .xor import DEFAULT_CHUNK_SIZE
    else:
        from .noop import DEFAULT_CHUNK_SIZE
    return ChunkSizePolicy(DEFAULT_CHUNK_SIZE, DEFAULT_CHUNK_SIZE)


REGISTRY: dict[CipherName, typing.Callable[[ChunkSizePolicy, pathlib.Path], Cipher]] = {
    CipherName.NOOP: _make_noop,
    CipherName.XOR: _make_xor,
    CipherName.LATTICE: _make_lattice,
}


def resolve_name(name: typing.Union[str, CipherName]) -> CipherName:
    if isinstance(name, CipherName):
        return name
    resolved = CipherName.parse(name)
    if name.strip().upper() != resolved.value:
        warnings.warn(
            f"Cryptosystem name '{name}' is deprecated; use '{resolved.value}' instead",
            DeprecationWarning,
            stacklevel=2,
        )
    return resolved


def create_cipher(
    name: typing.Union[str, CipherName],
    *,
    key_size: typing.Optional[int] = None,
    root: typing.Optional[pathlib.Path] = None,
) -> Cipher:
    """Build the named cipher, applying an explicit key size when given.

    Raises ``ConfigurationError`` for a key size the cipher cannot take and
    ``UnrecognizedArgumentError`` for an unknown name.
    """
    cipher_name = resolve_name(name)
    policy = _default_policy(cipher_name)
    if key_size is not None:
        policy = policy.with_key_size(key_size)
    return REGISTRY[cipher_name](policy, pathlib.Path(root) if root is not None else store_root())


__all__ = [
    "Cipher",
    "CipherName",
    "ChunkSizePolicy",
    "NoopCipher",
    "REGISTRY",
    "XorCipher",
    "create_cipher",
    "resolve_name",
]
