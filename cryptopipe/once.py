import threading
import typing

T = typing.TypeVar("T")

_UNSET = object()


class OnceCell(typing.Generic[T]):
    """A value computed at most once, by whichever thread asks first.

    Later callers take the lock-free fast path; concurrent first callers
    serialize on the lock and all observe the single stored value.  A
    factory that raises leaves the cell empty so the error surfaces to every
    caller that tries.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._value: typing.Any = _UNSET

    @property
    def is_set(self) -> bool:
        return self._value is not _UNSET

    def get_or_init(self, factory: typing.Callable[[], T]) -> T:
        value = self._value
        if value is not _UNSET:
            return value
        with self._lock:
            if self._value is _UNSET:
                self._value = factory()
            return self._value
