import argparse
import sys
import traceback
import typing
import warnings

from .ciphers import create_cipher, resolve_name
from .config import (
    Action,
    BaseN,
    Config,
    DEFAULT_BASE,
    DispatchStrategy,
    default_thread_count,
)
from .errors import (
    ConfigurationError,
    CryptoPipeError,
    ExitCode,
    MissingArgumentsError,
    MissingResourceError,
    UnrecognizedArgumentError,
)
from .pipeline import run_pipeline
from .usage import GENERAL, usage_message


class _ArgumentParser(argparse.ArgumentParser):
    def error(self, message):
        raise UnrecognizedArgumentError(message)


def build_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        prog="cryptopipe",
        description="Chunked, multi-threaded stdin -> stdout encryption pipeline",
        add_help=False,
    )
    parser.add_argument(
        "-c", "--cryptosystem",
        default=None,
        help="Cryptosystem name: NOOP, XOR, LATTICE"
    )
    parser.add_argument("-e", "--encrypt", action="store_true", help="Encrypt stdin")
    parser.add_argument("-d", "--decrypt", action="store_true", help="Decrypt stdin")
    parser.add_argument(
        "-b", "--baseN",
        dest="base",
        nargs="?",
        const=DEFAULT_BASE,
        default=None,
        help="Base-N encode output (encrypt) or decode input (decrypt); 16, 32 or 64"
    )
    parser.add_argument("--input-base", default=None, help="Decode Base-N input (16, 32, 64)")
    parser.add_argument("--output-base", default=None, help="Encode Base-N output (16, 32, 64)")
    parser.add_argument("-k", "--key", type=int, default=None, help="Chunk/key size in bytes")
    parser.add_argument("-t", "--threads", type=int, default=None, help="Worker thread count")
    parser.add_argument(
        "-x", "--scheduler", "--rxjava",
        dest="scheduler",
        action="store_true",
        help="Reuse one worker pool for the whole run"
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Per-batch progress on stderr")
    parser.add_argument(
        "-h", "-?", "-u", "--help", "--usage",
        dest="usage",
        action="store_true",
        help="Show usage text"
    )
    return parser


def _action(args: argparse.Namespace) -> Action:
    if args.encrypt and args.decrypt:
        raise ConfigurationError("Choose one of --encrypt or --decrypt, not both.")
    if args.decrypt:
        return Action.DECRYPT
    if args.encrypt:
        return Action.ENCRYPT
    raise MissingArgumentsError("One of --encrypt or --decrypt is required.")


def build_config(args: argparse.Namespace) -> typing.Tuple[Config, typing.Any]:
    """Turn parsed arguments into a frozen ``Config`` and its cipher."""
    action = _action(args)
    if not args.cryptosystem:
        raise MissingArgumentsError("A cryptosystem (-c/--cryptosystem) is required.")
    name = resolve_name(args.cryptosystem)

    base = BaseN.for_value(args.base) if args.base is not None else None
    if args.input_base is not None:
        input_base = BaseN.for_value(args.input_base)
    else:
        input_base = base if action is Action.DECRYPT else None
    if args.output_base is not None:
        output_base = BaseN.for_value(args.output_base)
    else:
        output_base = base if action is Action.ENCRYPT else None

    threads = args.threads if args.threads is not None else default_thread_count()
    if threads < 1:
        raise ConfigurationError(f"Thread count must be at least 1, got {threads}")

    cipher = create_cipher(name, key_size=args.key)
    strategy = DispatchStrategy.SCHEDULER if args.scheduler else DispatchStrategy.from_env()
    config = Config(
        action=action,
        cipher_name=name.value,
        chunk_size=cipher.policy.for_action(action),
        thread_count=threads,
        input_base=input_base,
        output_base=output_base,
        strategy=strategy,
        verbose=args.verbose,
    )
    return config, cipher


def _report(exit_code: ExitCode, message: typing.Optional[str], stderr) -> int:
    if exit_code is not ExitCode.SUCCESS:
        print(message or exit_code.message, file=stderr)
        try:
            print(usage_message(GENERAL), file=stderr)
        except MissingResourceError as exc:
            print(exc, file=stderr)
    return int(exit_code)


def _print_usage(args: argparse.Namespace, stdout: typing.BinaryIO) -> None:
    name = resolve_name(args.cryptosystem).value if args.cryptosystem else GENERAL
    stdout.write(usage_message(name).encode("utf-8"))
    stdout.flush()


def cli(argv=None, *, stdin=None, stdout=None, stderr=None) -> int:
    argv = sys.argv[1:] if argv is None else list(argv)
    stdin = stdin if stdin is not None else sys.stdin.buffer
    stdout = stdout if stdout is not None else sys.stdout.buffer
    stderr = stderr if stderr is not None else sys.stderr

    if not argv:
        return _report(ExitCode.MISSING_CLI_ARGUMENTS, None, stderr)

    try:
        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always")
            args = build_parser().parse_args(argv)
            if args.usage:
                _print_usage(args, stdout)
                return int(ExitCode.SUCCESS)
            config, cipher = build_config(args)
        for item in caught:
            msg = str(item.message).strip()
            if msg:
                print(f"⚠ {msg}", file=stderr)
        run_pipeline(config, cipher, stdin, stdout, stderr=stderr)
    except CryptoPipeError as exc:
        return _report(exc.exit_code, str(exc), stderr)
    except KeyboardInterrupt:
        return _report(ExitCode.INTERRUPTED, None, stderr)
    except Exception as exc:
        traceback.print_exc(file=stderr)
        return _report(ExitCode.EXCEPTION, f"{ExitCode.EXCEPTION.message} {exc}", stderr)
    return int(ExitCode.SUCCESS)


def main(argv=None) -> int:
    return cli(argv)


if __name__ == "__main__":
    raise SystemExit(main())
