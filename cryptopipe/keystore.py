"""Lazily generated, disk-persisted symmetric key material."""

import os
import pathlib
import secrets
import tempfile
import threading
import typing

from .config import store_folder
from .errors import CipherError
from .once import OnceCell

KEY_FILENAME = "encryption_key"


def persist_atomic(path: pathlib.Path, data: bytes, *, mode: int = 0o600) -> None:
    """Write ``data`` to ``path`` through a same-folder temp file.

    The temp file gets ``mode`` before it is renamed into place, so readers
    never see a partial file or one with wider permissions.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", dir=path.parent)
    try:
        with os.fdopen(fd, "wb") as handle:
            handle.write(data)
            handle.flush()
            os.fsync(handle.fileno())
        os.chmod(tmp_name, mode)
        os.replace(tmp_name, path)
    except BaseException:
        try:
            os.unlink(tmp_name)
        except FileNotFoundError:
            pass
        raise


class KeyStore:
    """Hands out one key per requested size for the life of the process.

    Keys live in ``<folder>/encryption_key.<size>``.  The first request for a
    size loads the file, or generates and persists fresh random bytes when it
    is missing; every later request (from any thread) gets the same bytes.
    """

    def __init__(self, folder: typing.Optional[pathlib.Path] = None):
        self.folder = pathlib.Path(folder) if folder is not None else store_folder("xor")
        self._lock = threading.Lock()
        self._cells: dict[int, OnceCell[bytes]] = {}

    def key_path(self, size: int) -> pathlib.Path:
        return self.folder / f"{KEY_FILENAME}.{size}"

    def get_or_create_key(self, size: int) -> bytes:
        if size <= 0:
            raise CipherError(f"Key size must be positive, got {size}")
        with self._lock:
            cell = self._cells.get(size)
            if cell is None:
                cell = self._cells[size] = OnceCell()
        return cell.get_or_init(lambda: self._load_or_generate(size))

    def _load_or_generate(self, size: int) -> bytes:
        path = self.key_path(size)
        if path.is_file():
            key = path.read_bytes()
            if len(key) != size:
                raise CipherError(
                    f"Stored key {path} holds {len(key)} bytes, expected {size}"
                )
            return key
        key = self._generate(size)
        persist_atomic(path, key)
        return key

    @staticmethod
    def _generate(size: int) -> bytes:
        return secrets.token_bytes(size)


__all__ = ["KEY_FILENAME", "KeyStore", "persist_atomic"]
