"""
CRYPTOPIPE - chunked, multi-threaded stream cipher pipeline

Reads stdin in fixed-size chunks, runs each batch of chunks through a
pluggable cipher on a worker pool, and writes the results to stdout in their
original order, optionally Base-16/32/64 encoded.
"""

from .ciphers import CipherName, ChunkSizePolicy, create_cipher
from .cli import cli, main
from .codec import BoundaryDetector, decode, encode, encoded_length
from .config import Action, BaseN, Config, DispatchStrategy
from .dispatch import BatchDispatcher
from .errors import *  # noqa: F401,F403
from .errors import __all__ as _errors_all
from .keystore import KeyStore
from .pipeline import PipelineDriver, PipelineState, RunContext, run_pipeline
from .reader import Batch, Chunk, ChunkReader
from .version import __version__
from .writer import ChunkWriter


def encrypt_stream(source, dest, cipher: str = "XOR", *, threads: int = 1, base: int | None = None):
    """Encrypt ``source`` into ``dest`` (binary file objects)."""
    return _run_stream(Action.ENCRYPT, source, dest, cipher, threads=threads, base=base)


def decrypt_stream(source, dest, cipher: str = "XOR", *, threads: int = 1, base: int | None = None):
    """Decrypt ``source`` into ``dest``; ``base`` decodes Base-N input."""
    return _run_stream(Action.DECRYPT, source, dest, cipher, threads=threads, base=base)


def _run_stream(action: Action, source, dest, cipher: str, *, threads: int, base: int | None):
    handle = create_cipher(cipher)
    base_n = BaseN.for_value(base) if base is not None else None
    config = Config(
        action=action,
        cipher_name=handle.name.value,
        chunk_size=handle.policy.for_action(action),
        thread_count=threads,
        input_base=base_n if action is Action.DECRYPT else None,
        output_base=base_n if action is Action.ENCRYPT else None,
    )
    return run_pipeline(config, handle, source, dest)


__all__ = [
    "Action",
    "BaseN",
    "Batch",
    "BatchDispatcher",
    "BoundaryDetector",
    "CipherName",
    "Chunk",
    "ChunkReader",
    "ChunkSizePolicy",
    "ChunkWriter",
    "Config",
    "DispatchStrategy",
    "KeyStore",
    "PipelineDriver",
    "PipelineState",
    "RunContext",
    "__version__",
    "cli",
    "create_cipher",
    "decode",
    "decrypt_stream",
    "encode",
    "encoded_length",
    "encrypt_stream",
    "main",
    "run_pipeline",
    *_errors_all,
]
