import io
import os
import subprocess
import sys
import unittest
from pathlib import Path
from tempfile import TemporaryDirectory
from unittest import mock

from cryptopipe.cli import build_config, build_parser, cli
from cryptopipe.config import Action, BaseN, DispatchStrategy
from cryptopipe.errors import ExitCode, InterruptedProcessingError

try:
    import pqcrypto  # noqa: F401
except ModuleNotFoundError as exc:  # pragma: no cover - dependency missing
    _PQ_ERROR = exc
else:
    _PQ_ERROR = None


class CliTests(unittest.TestCase):
    """Exit codes, usage output and end-to-end runs of the command line."""

    def setUp(self) -> None:
        self.tmpdir = TemporaryDirectory()
        self.tmp_path = Path(self.tmpdir.name)
        self.saved_env = {
            name: os.environ.get(name)
            for name in ("CRYPTOPIPE_HOME", "CRYPTOPIPE_THREADS", "CRYPTOPIPE_STRATEGY")
        }
        os.environ["CRYPTOPIPE_HOME"] = str(self.tmp_path)
        os.environ.pop("CRYPTOPIPE_THREADS", None)
        os.environ.pop("CRYPTOPIPE_STRATEGY", None)
        self.repo_root = Path(__file__).resolve().parent.parent

    def tearDown(self) -> None:
        for name, value in self.saved_env.items():
            if value is not None:
                os.environ[name] = value
            else:
                os.environ.pop(name, None)
        self.tmpdir.cleanup()

    def _cli(self, *args: str, data: bytes = b""):
        stdout, stderr = io.BytesIO(), io.StringIO()
        code = cli(list(args), stdin=io.BytesIO(data), stdout=stdout, stderr=stderr)
        return code, stdout.getvalue(), stderr.getvalue()

    def _run_cli(self, *args: str, data: bytes = b"") -> subprocess.CompletedProcess:
        return subprocess.run(
            [sys.executable, "-m", "cryptopipe", *args],
            cwd=self.repo_root,
            input=data,
            capture_output=True,
            env=os.environ.copy(),
        )

    def test_no_arguments(self):
        code, out, err = self._cli()
        self.assertEqual(code, ExitCode.MISSING_CLI_ARGUMENTS)
        self.assertEqual(out, b"")
        self.assertIn(ExitCode.MISSING_CLI_ARGUMENTS.message, err)
        self.assertIn("Usage: cryptopipe", err)

    def test_missing_action(self):
        code, _, err = self._cli("-c", "NOOP")
        self.assertEqual(code, ExitCode.MISSING_CLI_ARGUMENTS)
        self.assertIn("--encrypt or --decrypt", err)

    def test_missing_cryptosystem(self):
        code, _, _ = self._cli("-e")
        self.assertEqual(code, ExitCode.MISSING_CLI_ARGUMENTS)

    def test_unrecognized_values(self):
        for args in (
            ("-c", "ROT13", "-e"),
            ("-c", "NOOP", "-e", "-b", "12"),
            ("-c", "NOOP", "-e", "--bogus"),
            ("-c", "NOOP", "-e", "-t", "many"),
        ):
            with self.subTest(args=args):
                code, _, _ = self._cli(*args, data=b"x")
                self.assertEqual(code, ExitCode.UNRECOGNIZED_ARGUMENT_VALUE)

    def test_invalid_arguments(self):
        for args in (
            ("-c", "NOOP", "-e", "-d"),
            ("-c", "NOOP", "-e", "-t", "0"),
            ("-c", "XOR", "-e", "-k", "-4"),
        ):
            with self.subTest(args=args):
                code, _, _ = self._cli(*args, data=b"x")
                self.assertEqual(code, ExitCode.INVALID_ARGUMENT)

    def test_empty_input(self):
        code, out, err = self._cli("-c", "NOOP", "-e")
        self.assertEqual(code, ExitCode.EMPTY_INPUT)
        self.assertEqual(out, b"")
        self.assertIn(ExitCode.EMPTY_INPUT.message, err)

    def test_malformed_encoded_input_exits_with_exception_code(self):
        code, _, err = self._cli("-c", "NOOP", "-d", "-b", data=b"@@@@")
        self.assertEqual(code, ExitCode.EXCEPTION)
        self.assertIn("Usage: cryptopipe", err)

    def test_interruption_exit_code(self):
        for failure in (KeyboardInterrupt, InterruptedProcessingError()):
            with self.subTest(failure=failure):
                with mock.patch("cryptopipe.cli.run_pipeline", side_effect=failure):
                    code, out, err = self._cli("-c", "NOOP", "-e", data=b"data")
                self.assertEqual(code, ExitCode.INTERRUPTED)
                self.assertEqual(out, b"")
                self.assertIn(ExitCode.INTERRUPTED.message, err)

    def test_usage_flags(self):
        for flag in ("-h", "-?", "-u", "--help", "--usage"):
            with self.subTest(flag=flag):
                code, out, _ = self._cli(flag)
                self.assertEqual(code, ExitCode.SUCCESS)
                self.assertTrue(out.startswith(b"Usage: cryptopipe -c <cryptosystem>"))

    def test_cryptosystem_usage(self):
        code, out, _ = self._cli("-c", "xor", "-h")
        self.assertEqual(code, ExitCode.SUCCESS)
        self.assertTrue(out.startswith(b"Usage: cryptopipe -c XOR"))

    def test_xor_roundtrip_through_base64(self):
        data = os.urandom(1000)
        code, sealed, err = self._cli("-c", "XOR", "-e", "-k", "64", "-t", "4", "-b", data=data)
        self.assertEqual(code, ExitCode.SUCCESS, msg=err)
        self.assertTrue(sealed.isascii())
        code, opened, err = self._cli("-c", "XOR", "-d", "-k", "64", "-t", "3", "-x", "-b", "64", data=sealed)
        self.assertEqual(code, ExitCode.SUCCESS, msg=err)
        self.assertEqual(opened, data)

    def test_base_conversion_with_explicit_bases(self):
        data = b"convert me between encodings"
        code, b32, _ = self._cli("-c", "NOOP", "-e", "-k", "10", "--output-base", "32", data=data)
        self.assertEqual(code, ExitCode.SUCCESS)
        code, b16, _ = self._cli(
            "-c", "NOOP", "-e", "-k", "10", "--input-base", "32", "--output-base", "16", data=b32
        )
        self.assertEqual(code, ExitCode.SUCCESS)
        code, raw, _ = self._cli("-c", "NOOP", "-d", "-k", "10", "-b", "16", data=b16)
        self.assertEqual(code, ExitCode.SUCCESS)
        self.assertEqual(raw, data)

    def test_verbose_reports_on_stderr_only(self):
        code, out, err = self._cli("-c", "NOOP", "-e", "-k", "3", "-t", "2", "-v", data=b"abcdefg")
        self.assertEqual(code, ExitCode.SUCCESS)
        self.assertEqual(out, b"abcdefg")
        self.assertIn("batch 1: 2 chunk(s)", err)
        self.assertIn("done: 2 batch(es), 3 chunk(s)", err)

    def test_build_config_defaults_and_environment(self):
        os.environ["CRYPTOPIPE_THREADS"] = "6"
        os.environ["CRYPTOPIPE_STRATEGY"] = "scheduler"
        config, cipher = build_config(build_parser().parse_args(["-c", "NOOP", "-d", "-b"]))
        self.assertIs(config.action, Action.DECRYPT)
        self.assertEqual(config.thread_count, 6)
        self.assertIs(config.strategy, DispatchStrategy.SCHEDULER)
        self.assertIs(config.input_base, BaseN.SIXTY_FOUR)
        self.assertIsNone(config.output_base)
        self.assertEqual(config.chunk_size, cipher.policy.decrypt)

    @unittest.skipIf(_PQ_ERROR is not None, f"dependency unavailable: {_PQ_ERROR}")
    def test_ntru_alias_prints_warning(self):
        code, sealed, err = self._cli("-c", "NTRU", "-e", "-t", "2", data=b"legacy name")
        self.assertEqual(code, ExitCode.SUCCESS, msg=err)
        self.assertIn("⚠", err)
        self.assertIn("LATTICE", err)
        code, opened, err = self._cli("-c", "LATTICE", "-d", data=sealed)
        self.assertEqual(code, ExitCode.SUCCESS, msg=err)
        self.assertEqual(opened, b"legacy name")

    def test_module_entry_point(self):
        result = self._run_cli("-c", "NOOP", "-e", "-b", "16", data=b"\x01\xab")
        self.assertEqual(result.returncode, 0, msg=result.stderr.decode(errors="replace"))
        self.assertEqual(result.stdout, b"01AB")
        result = self._run_cli()
        self.assertEqual(result.returncode, int(ExitCode.MISSING_CLI_ARGUMENTS))


if __name__ == "__main__":
    unittest.main()
