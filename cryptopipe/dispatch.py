"""Order-preserving parallel transform of one batch at a time."""

import concurrent.futures
import typing

from .config import Action, DispatchStrategy
from .errors import CipherError, CryptoPipeError, InterruptedProcessingError
from .reader import Batch


class BatchDispatcher:
    """Runs ``cipher.encrypt``/``cipher.decrypt`` over every chunk of a batch.

    Results land in a pre-sized list addressed by chunk index, so output
    order never depends on which worker finishes first.  ``dispatch`` only
    returns once every task of the batch is done.

    ``DispatchStrategy.POOL`` builds and joins a fresh executor per batch;
    ``DispatchStrategy.SCHEDULER`` keeps one executor for the whole run and
    waits on the batch's futures instead.  Call ``close`` (or use the
    dispatcher as a context manager) to release the shared executor.
    """

    def __init__(
        self,
        cipher,
        action: Action,
        thread_count: int,
        strategy: DispatchStrategy = DispatchStrategy.POOL,
    ):
        if action not in (Action.ENCRYPT, Action.DECRYPT):
            raise ValueError(f"Cannot dispatch action {action!r}")
        if thread_count < 1:
            raise ValueError("thread_count must be at least 1")
        self.cipher = cipher
        self.action = action
        self.thread_count = thread_count
        self.strategy = strategy
        self._transform = cipher.encrypt if action is Action.ENCRYPT else cipher.decrypt
        self._executor: typing.Optional[concurrent.futures.ThreadPoolExecutor] = None

    def __enter__(self) -> "BatchDispatcher":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None

    def dispatch(self, batch: Batch) -> list[bytes]:
        outputs: list[typing.Optional[bytes]] = [None] * len(batch)
        if not len(batch):
            return outputs

        def _run(index: int, payload: bytes) -> None:
            outputs[index] = self._transform(payload)

        if self.strategy is DispatchStrategy.POOL:
            with concurrent.futures.ThreadPoolExecutor(
                max_workers=self.thread_count,
                thread_name_prefix="cryptopipe-batch",
            ) as executor:
                futures = [executor.submit(_run, chunk.index, chunk.payload) for chunk in batch]
                self._await(futures)
        else:
            executor = self._shared_executor()
            futures = [executor.submit(_run, chunk.index, chunk.payload) for chunk in batch]
            self._await(futures)
        return outputs

    def _shared_executor(self) -> concurrent.futures.ThreadPoolExecutor:
        if self._executor is None:
            self._executor = concurrent.futures.ThreadPoolExecutor(
                max_workers=self.thread_count,
                thread_name_prefix="cryptopipe-worker",
            )
        return self._executor

    def _await(self, futures: list[concurrent.futures.Future]) -> None:
        try:
            concurrent.futures.wait(futures)
        except KeyboardInterrupt:
            for future in futures:
                future.cancel()
            raise InterruptedProcessingError() from None
        for index, future in enumerate(futures):
            exc = future.exception()
            if exc is None:
                continue
            if isinstance(exc, CryptoPipeError):
                raise exc
            raise CipherError(
                f"Failed to {self.action.value} chunk {index}: {exc}"
            ) from exc


__all__ = ["BatchDispatcher"]
