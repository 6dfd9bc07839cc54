"""Per-run settings and the environment knobs that seed them."""

import enum
import os
import pathlib
import typing
from dataclasses import dataclass

from .errors import UnrecognizedArgumentError

DEFAULT_THREAD_COUNT = 1
DEFAULT_BASE = 64
DEFAULT_HOME = "~/.cryptopipe"


def _env_int(name: str) -> typing.Optional[int]:
    value = os.getenv(name)
    if not value:
        return None
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        return None
    if parsed <= 0:
        return None
    return parsed


class Action(enum.Enum):
    ENCRYPT = "encrypt"
    DECRYPT = "decrypt"


class BaseN(enum.IntEnum):
    SIXTEEN = 16
    THIRTY_TWO = 32
    SIXTY_FOUR = 64

    @classmethod
    def for_value(cls, value: typing.Union[int, str]) -> "BaseN":
        try:
            return cls(int(value))
        except (TypeError, ValueError):
            raise UnrecognizedArgumentError(
                "Unsupported value of base encoding provided.  "
                f"Supported values: 16, 32, 64, Provided Value: {value}"
            ) from None


class DispatchStrategy(enum.Enum):
    POOL = "pool"
    SCHEDULER = "scheduler"

    @classmethod
    def from_env(cls) -> "DispatchStrategy":
        raw = (os.getenv("CRYPTOPIPE_STRATEGY") or "").strip().lower()
        for member in cls:
            if member.value == raw:
                return member
        return cls.POOL


def default_thread_count() -> int:
    return _env_int("CRYPTOPIPE_THREADS") or DEFAULT_THREAD_COUNT


def store_root() -> pathlib.Path:
    """Root folder of all persisted key material (resolved on every call)."""
    return pathlib.Path(os.getenv("CRYPTOPIPE_HOME") or DEFAULT_HOME).expanduser()


def store_folder(name: str) -> pathlib.Path:
    return store_root() / name


@dataclass(frozen=True)
class Config:
    action: Action
    cipher_name: str
    chunk_size: int
    thread_count: int = DEFAULT_THREAD_COUNT
    input_base: typing.Optional[BaseN] = None
    output_base: typing.Optional[BaseN] = None
    strategy: DispatchStrategy = DispatchStrategy.POOL
    verbose: bool = False


__all__ = [
    "Action",
    "BaseN",
    "Config",
    "DEFAULT_BASE",
    "DEFAULT_THREAD_COUNT",
    "DispatchStrategy",
    "default_thread_count",
    "store_folder",
    "store_root",
]
