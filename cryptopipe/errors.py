"""Exit codes and the exception taxonomy surfaced to the command line."""

import enum


class ExitCode(enum.IntEnum):
    SUCCESS = 0
    MISSING_CLI_ARGUMENTS = 1
    UNRECOGNIZED_ARGUMENT_VALUE = 2
    MISSING_RESOURCE = 3
    EMPTY_INPUT = 4
    INVALID_ARGUMENT = 5
    INTERRUPTED = 6
    EXCEPTION = 7

    @property
    def message(self) -> str:
        return _EXIT_MESSAGES[self]


_EXIT_MESSAGES = {
    ExitCode.SUCCESS: "Execution of this program completed successfully.",
    ExitCode.MISSING_CLI_ARGUMENTS: "Some of the required command line arguments are missing.",
    ExitCode.UNRECOGNIZED_ARGUMENT_VALUE: "Some command line arguments have unrecognized values.",
    ExitCode.MISSING_RESOURCE: "A required resource expected to be bundled with this program was not found.",
    ExitCode.EMPTY_INPUT: "Empty input was found where non-empty is required.",
    ExitCode.INVALID_ARGUMENT: "Some command line arguments were given which are invalid.",
    ExitCode.INTERRUPTED: "A processing thread was interrupted, corrupting processing.",
    ExitCode.EXCEPTION: "An unexpected exception has occurred.",
}


class CryptoPipeError(Exception):
    """Base class for every fatal pipeline condition."""

    exit_code = ExitCode.EXCEPTION

    def __init__(self, message: str | None = None):
        super().__init__(message or self.exit_code.message)


class MissingArgumentsError(CryptoPipeError):
    exit_code = ExitCode.MISSING_CLI_ARGUMENTS


class UnrecognizedArgumentError(CryptoPipeError):
    exit_code = ExitCode.UNRECOGNIZED_ARGUMENT_VALUE


class ConfigurationError(CryptoPipeError):
    """Invalid combination of run settings, reported before any processing."""

    exit_code = ExitCode.INVALID_ARGUMENT


class MissingResourceError(CryptoPipeError):
    exit_code = ExitCode.MISSING_RESOURCE


class EmptyInputError(CryptoPipeError):
    exit_code = ExitCode.EMPTY_INPUT


class InterruptedProcessingError(CryptoPipeError):
    exit_code = ExitCode.INTERRUPTED


class ValidationError(CryptoPipeError):
    """A batch or its transformed outputs broke the non-null/non-empty rules."""


class StreamError(CryptoPipeError):
    """Read or write failure on the underlying streams."""


class CipherError(CryptoPipeError):
    """Key/length mismatch or failure inside a cipher engine."""


class MessageLengthError(CipherError):
    pass


__all__ = [
    "CipherError",
    "ConfigurationError",
    "CryptoPipeError",
    "EmptyInputError",
    "ExitCode",
    "InterruptedProcessingError",
    "MessageLengthError",
    "MissingArgumentsError",
    "MissingResourceError",
    "StreamError",
    "UnrecognizedArgumentError",
    "ValidationError",
]
