"""Read -> dispatch -> write loop, one batch at a time."""

import enum
import typing
from dataclasses import dataclass, field

from .config import Config
from .dispatch import BatchDispatcher
from .errors import EmptyInputError, ValidationError
from .reader import Batch, ChunkReader
from .report import BatchReporter, RunStats
from .writer import ChunkWriter


class PipelineState(enum.Enum):
    AWAITING_BATCH = "awaiting_batch"
    DISPATCHING = "dispatching"
    WRITING = "writing"
    DONE = "done"


@dataclass
class RunContext:
    """Everything one run owns: its config, cipher, and stream adapters."""

    config: Config
    cipher: typing.Any
    reader: ChunkReader
    writer: ChunkWriter
    dispatcher: BatchDispatcher
    reporter: BatchReporter = field(default_factory=lambda: BatchReporter(enabled=False))

    @classmethod
    def open(
        cls,
        config: Config,
        cipher,
        stdin: typing.BinaryIO,
        stdout: typing.BinaryIO,
        *,
        stderr=None,
    ) -> "RunContext":
        return cls(
            config=config,
            cipher=cipher,
            reader=ChunkReader(stdin, base=config.input_base),
            writer=ChunkWriter(stdout, base=config.output_base),
            dispatcher=BatchDispatcher(
                cipher, config.action, config.thread_count, config.strategy
            ),
            reporter=BatchReporter(stderr, enabled=config.verbose),
        )

    def close(self) -> None:
        self.dispatcher.close()

    def __enter__(self) -> "RunContext":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


def validate_input_batch(batch: Batch) -> None:
    for chunk in batch:
        if chunk.payload is None:
            raise ValidationError(
                f"Invalid null input value at chunk {chunk.index}.  Each input value must be non-null."
            )
        if len(chunk.payload) == 0:
            raise ValidationError(
                f"Invalid empty input value at chunk {chunk.index}.  "
                "The input data's length must be greater than zero."
            )


def validate_output_batch(outputs: typing.Sequence[typing.Optional[bytes]], expected: int) -> None:
    if len(outputs) != expected:
        raise ValidationError(
            f"Output batch holds {len(outputs)} values for {expected} input chunks."
        )
    for index, value in enumerate(outputs):
        if value is None:
            raise ValidationError(
                f"Invalid null output value at chunk {index}.  Each output value must be non-null."
            )
        if len(value) == 0:
            raise ValidationError(
                f"Invalid empty output value at chunk {index}.  Each output value must be non-empty."
            )


class PipelineDriver:
    def __init__(self, context: RunContext):
        self.context = context
        self.state = PipelineState.AWAITING_BATCH
        self.stats = RunStats()

    def run(self) -> RunStats:
        """Process the whole input stream.

        Raises ``EmptyInputError`` when the very first batch is empty; an
        empty batch after that is the normal end of the stream.
        """
        ctx = self.context
        chunk_size = ctx.config.chunk_size
        batch_size = ctx.config.thread_count
        while True:
            self.state = PipelineState.AWAITING_BATCH
            batch = ctx.reader.read_batch(chunk_size, batch_size)
            if batch.is_empty():
                if self.stats.batches == 0:
                    raise EmptyInputError()
                break

            self.state = PipelineState.DISPATCHING
            validate_input_batch(batch)
            outputs = ctx.dispatcher.dispatch(batch)

            self.state = PipelineState.WRITING
            validate_output_batch(outputs, len(batch))
            written = ctx.writer.write_batch(outputs)
            ctx.writer.flush()

            self.stats.batches += 1
            self.stats.chunks += len(batch)
            self.stats.bytes_in += batch.byte_count
            self.stats.bytes_out += written
            ctx.reporter.batch_done(self.stats.batches, len(batch), (batch.byte_count, written))
            if batch.end_of_stream:
                break

        self.state = PipelineState.DONE
        ctx.reporter.finish(self.stats)
        return self.stats


def run_pipeline(config: Config, cipher, stdin: typing.BinaryIO, stdout: typing.BinaryIO, *, stderr=None) -> RunStats:
    with RunContext.open(config, cipher, stdin, stdout, stderr=stderr) as ctx:
        return PipelineDriver(ctx).run()


__all__ = [
    "PipelineDriver",
    "PipelineState",
    "RunContext",
    "run_pipeline",
    "validate_input_batch",
    "validate_output_batch",
]
