"""ML-KEM-768 lattice cipher: one KEM encapsulation plus AES-GCM per chunk."""

import base64
import json
import os
import pathlib
import zlib
from dataclasses import asdict, dataclass, field

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.hkdf import HKDF
from pqcrypto.kem import ml_kem_768

from ..config import store_folder
from ..errors import CipherError
from ..keystore import persist_atomic
from ..once import OnceCell
from .base import CipherName, ChunkSizePolicy

ALGORITHM = "ml-kem-768"
AEAD = "aes-256-gcm"
KDF = "hkdf-sha256"
KEM_CIPHERTEXT_SIZE = getattr(ml_kem_768, "CIPHERTEXT_SIZE", 1088)
AEAD_NONCE_LEN = 12
AEAD_TAG_LEN = 16
CHUNK_OVERHEAD = KEM_CIPHERTEXT_SIZE + AEAD_NONCE_LEN + AEAD_TAG_LEN
DEFAULT_CHUNK_SIZE_ENCRYPT = 64
DEFAULT_CHUNK_SIZE_DECRYPT = DEFAULT_CHUNK_SIZE_ENCRYPT + CHUNK_OVERHEAD
DEFAULT_MAX_MESSAGE_LENGTH = 1024
KEM_INFO = b"cryptopipe.lattice.kem.v1"
AEAD_AAD = b"cryptopipe.lattice.v1"

PUBLIC_KEY_FILENAME = "encryption_public_key"
PRIVATE_KEY_FILENAME = "encryption_private_key"
PARAMETERS_FILENAME = "encryption_parameters"


@dataclass(frozen=True)
class LatticeParameters:
    algorithm: str = ALGORITHM
    aead: str = AEAD
    kdf: str = KDF
    max_message_length: int = DEFAULT_MAX_MESSAGE_LENGTH

    def to_json(self) -> str:
        return json.dumps(asdict(self), indent=2, sort_keys=True)

    @classmethod
    def from_json(cls, text: str) -> "LatticeParameters":
        try:
            raw = json.loads(text)
            params = cls(
                algorithm=str(raw["algorithm"]),
                aead=str(raw.get("aead", AEAD)),
                kdf=str(raw.get("kdf", KDF)),
                max_message_length=int(raw["max_message_length"]),
            )
        except (ValueError, KeyError, TypeError) as exc:
            raise CipherError(f"Malformed lattice parameters: {exc}") from exc
        if (params.algorithm, params.aead, params.kdf) != (ALGORITHM, AEAD, KDF):
            raise CipherError(
                f"Unsupported lattice parameters {params.algorithm}/{params.aead}/{params.kdf}; "
                f"expected {ALGORITHM}/{AEAD}/{KDF}"
            )
        return params


def _encode_key(raw: bytes) -> bytes:
    return base64.b64encode(zlib.compress(raw))


def _decode_key(data: bytes) -> bytes:
    try:
        return zlib.decompress(base64.b64decode(data.strip(), validate=True))
    except (ValueError, zlib.error) as exc:
        raise CipherError(f"Malformed stored lattice key: {exc}") from exc


def _kem_derive_key(shared: bytes) -> bytes:
    return HKDF(algorithm=hashes.SHA256(), length=32, salt=None, info=KEM_INFO).derive(shared)


@dataclass
class LatticeCipher:
    """Public-key cipher whose keypair and parameters persist in ``folder``.

    The keypair and parameters are loaded or generated on first use by
    whichever worker gets there first; after that the engine is read-only.
    Ciphertext chunks are ``kem_ciphertext || nonce || aead_ciphertext``.
    """

    folder: pathlib.Path = field(default_factory=lambda: store_folder("lattice"))
    policy: ChunkSizePolicy = field(
        default_factory=lambda: ChunkSizePolicy(
            DEFAULT_CHUNK_SIZE_ENCRYPT, DEFAULT_CHUNK_SIZE_DECRYPT, fixed=True
        )
    )
    name: CipherName = CipherName.LATTICE

    def __post_init__(self) -> None:
        self.folder = pathlib.Path(self.folder)
        self._parameters: OnceCell[LatticeParameters] = OnceCell()
        self._keypair: OnceCell[tuple[bytes, bytes]] = OnceCell()

    @property
    def parameters(self) -> LatticeParameters:
        return self._parameters.get_or_init(self._load_parameters)

    @property
    def keypair(self) -> tuple[bytes, bytes]:
        return self._keypair.get_or_init(self._load_keypair)

    def encrypt(self, message: bytes) -> bytes:
        limit = self.parameters.max_message_length
        if len(message) > limit:
            raise CipherError(
                "Unsupported message length.  "
                f"Message Length: {len(message)}, Supported Max Message Length: {limit}"
            )
        public_key, _ = self.keypair
        kem_ct, shared = ml_kem_768.encrypt(public_key)
        nonce = os.urandom(AEAD_NONCE_LEN)
        sealed = AESGCM(_kem_derive_key(shared)).encrypt(nonce, bytes(message), AEAD_AAD)
        return kem_ct + nonce + sealed

    def decrypt(self, message: bytes) -> bytes:
        if len(message) < CHUNK_OVERHEAD:
            raise CipherError(
                f"Lattice ciphertext chunk too short: {len(message)} bytes, need at least {CHUNK_OVERHEAD}"
            )
        _, private_key = self.keypair
        kem_ct = bytes(message[:KEM_CIPHERTEXT_SIZE])
        nonce = bytes(message[KEM_CIPHERTEXT_SIZE:KEM_CIPHERTEXT_SIZE + AEAD_NONCE_LEN])
        sealed = bytes(message[KEM_CIPHERTEXT_SIZE + AEAD_NONCE_LEN:])
        shared = ml_kem_768.decrypt(private_key, kem_ct)
        try:
            return AESGCM(_kem_derive_key(shared)).decrypt(nonce, sealed, AEAD_AAD)
        except InvalidTag as exc:
            raise CipherError("Lattice ciphertext failed authentication (wrong key or corrupted chunk)") from exc

    def _load_parameters(self) -> LatticeParameters:
        path = self.folder / PARAMETERS_FILENAME
        if path.is_file():
            params = LatticeParameters.from_json(path.read_text(encoding="utf-8"))
        else:
            params = LatticeParameters()
            persist_atomic(path, params.to_json().encode("utf-8"), mode=0o644)
        if self.policy.encrypt > params.max_message_length:
            raise CipherError(
                "Unsupported message length.  "
                f"Message Length: {self.policy.encrypt}, "
                f"Supported Max Message Length: {params.max_message_length}"
            )
        return params

    def _load_keypair(self) -> tuple[bytes, bytes]:
        self.parameters  # parameters are persisted (and sizes checked) before any keypair
        public_path = self.folder / PUBLIC_KEY_FILENAME
        private_path = self.folder / PRIVATE_KEY_FILENAME
        has_public, has_private = public_path.is_file(), private_path.is_file()
        if has_public and has_private:
            return _decode_key(public_path.read_bytes()), _decode_key(private_path.read_bytes())
        if has_public or has_private:
            missing = private_path if has_public else public_path
            raise CipherError(
                f"Incomplete lattice keypair in {self.folder}: {missing.name} is missing"
            )
        public_key, private_key = ml_kem_768.generate_keypair()
        persist_atomic(private_path, _encode_key(private_key))
        persist_atomic(public_path, _encode_key(public_key), mode=0o644)
        return public_key, private_key


__all__ = [
    "CHUNK_OVERHEAD",
    "DEFAULT_CHUNK_SIZE_DECRYPT",
    "DEFAULT_CHUNK_SIZE_ENCRYPT",
    "LatticeCipher",
    "LatticeParameters",
]
