import os
import stat
import unittest
import warnings
from pathlib import Path
from tempfile import TemporaryDirectory

from cryptopipe.ciphers import CipherName, ChunkSizePolicy, create_cipher, resolve_name
from cryptopipe.ciphers.xor import xor_message
from cryptopipe.config import Action
from cryptopipe.errors import (
    CipherError,
    ConfigurationError,
    MessageLengthError,
    UnrecognizedArgumentError,
)

try:
    from cryptopipe.ciphers import lattice
except ModuleNotFoundError as exc:  # pragma: no cover - dependency missing
    lattice = None
    _IMPORT_ERROR = exc
else:
    _IMPORT_ERROR = None


class _StoreTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.tmpdir = TemporaryDirectory()
        self.tmp_path = Path(self.tmpdir.name)
        self.old_home = os.environ.get("CRYPTOPIPE_HOME")
        os.environ["CRYPTOPIPE_HOME"] = str(self.tmp_path)

    def tearDown(self) -> None:
        if self.old_home is not None:
            os.environ["CRYPTOPIPE_HOME"] = self.old_home
        else:
            os.environ.pop("CRYPTOPIPE_HOME", None)
        self.tmpdir.cleanup()


class RegistryTests(_StoreTestCase):
    def test_names_are_case_insensitive(self):
        self.assertIs(resolve_name("xor"), CipherName.XOR)
        self.assertIs(resolve_name(" Noop "), CipherName.NOOP)

    def test_unknown_name(self):
        with self.assertRaises(UnrecognizedArgumentError) as ctx:
            create_cipher("ROT13")
        self.assertIn("ROT13", str(ctx.exception))

    def test_ntru_alias_warns_and_maps_to_lattice(self):
        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always")
            self.assertIs(resolve_name("ntru"), CipherName.LATTICE)
        self.assertTrue(any(issubclass(w.category, DeprecationWarning) for w in caught))

    def test_default_policies(self):
        self.assertEqual(create_cipher("NOOP").policy, ChunkSizePolicy(65536, 65536))
        self.assertEqual(create_cipher("XOR").policy, ChunkSizePolicy(65536, 65536))

    def test_key_size_overrides_both_directions(self):
        cipher = create_cipher("XOR", key_size=128)
        self.assertEqual(cipher.policy.for_action(Action.ENCRYPT), 128)
        self.assertEqual(cipher.policy.for_action(Action.DECRYPT), 128)

    def test_invalid_key_size(self):
        with self.assertRaises(ConfigurationError):
            create_cipher("XOR", key_size=0)

    def test_root_argument_places_keys(self):
        cipher = create_cipher("XOR", key_size=16, root=self.tmp_path / "elsewhere")
        cipher.encrypt(b"hi")
        self.assertTrue((self.tmp_path / "elsewhere" / "xor" / "encryption_key.16").is_file())


class NoopCipherTests(unittest.TestCase):
    def test_identity(self):
        cipher = create_cipher("NOOP")
        self.assertEqual(cipher.encrypt(b"payload"), b"payload")
        self.assertEqual(cipher.decrypt(b"payload"), b"payload")


class XorCipherTests(_StoreTestCase):
    def test_roundtrip_and_masking(self):
        cipher = create_cipher("XOR", key_size=32)
        message = b"attack at dawn"
        sealed = cipher.encrypt(message)
        self.assertEqual(len(sealed), len(message))
        self.assertNotEqual(sealed, message)
        self.assertEqual(cipher.decrypt(sealed), message)

    def test_key_is_shared_between_instances(self):
        sealed = create_cipher("XOR", key_size=32).encrypt(b"persisted")
        self.assertEqual(create_cipher("XOR", key_size=32).decrypt(sealed), b"persisted")
        self.assertTrue((self.tmp_path / "xor" / "encryption_key.32").is_file())

    def test_message_longer_than_key(self):
        cipher = create_cipher("XOR", key_size=4)
        with self.assertRaises(MessageLengthError) as ctx:
            cipher.encrypt(b"12345")
        self.assertIn("Message Length: 5", str(ctx.exception))
        self.assertIn("Supported Max Message Length: 4", str(ctx.exception))

    def test_xor_message(self):
        self.assertEqual(xor_message(b"\x0f\xf0", b"\xff\xff\x00"), b"\xf0\x0f")
        self.assertEqual(xor_message(b"", b"\x01"), b"")


@unittest.skipIf(lattice is None, f"dependency unavailable: {_IMPORT_ERROR}")
class LatticeCipherTests(_StoreTestCase):
    def test_fixed_sizes(self):
        cipher = create_cipher("LATTICE")
        self.assertEqual(cipher.policy.encrypt, lattice.DEFAULT_CHUNK_SIZE_ENCRYPT)
        self.assertEqual(cipher.policy.decrypt, lattice.DEFAULT_CHUNK_SIZE_ENCRYPT + lattice.CHUNK_OVERHEAD)
        with self.assertRaises(ConfigurationError):
            create_cipher("LATTICE", key_size=128)

    def test_roundtrip_full_and_partial_chunk(self):
        cipher = create_cipher("LATTICE")
        for message in (b"x" * lattice.DEFAULT_CHUNK_SIZE_ENCRYPT, b"tail"):
            sealed = cipher.encrypt(message)
            self.assertEqual(len(sealed), len(message) + lattice.CHUNK_OVERHEAD)
            self.assertEqual(cipher.decrypt(sealed), message)

    def test_keypair_and_parameters_persist(self):
        sealed = create_cipher("LATTICE").encrypt(b"across runs")
        folder = self.tmp_path / "lattice"
        for filename in (
            lattice.PUBLIC_KEY_FILENAME,
            lattice.PRIVATE_KEY_FILENAME,
            lattice.PARAMETERS_FILENAME,
        ):
            self.assertTrue((folder / filename).is_file(), filename)
        self.assertEqual(create_cipher("LATTICE").decrypt(sealed), b"across runs")

    def test_private_key_is_owner_only(self):
        create_cipher("LATTICE").encrypt(b"x")
        private_path = self.tmp_path / "lattice" / lattice.PRIVATE_KEY_FILENAME
        self.assertEqual(stat.S_IMODE(private_path.stat().st_mode), 0o600)

    def test_half_keypair_is_not_regenerated(self):
        create_cipher("LATTICE").encrypt(b"x")
        folder = self.tmp_path / "lattice"
        private_before = (folder / lattice.PRIVATE_KEY_FILENAME).read_bytes()
        (folder / lattice.PUBLIC_KEY_FILENAME).unlink()
        with self.assertRaises(CipherError) as ctx:
            create_cipher("LATTICE").encrypt(b"x")
        self.assertIn(lattice.PUBLIC_KEY_FILENAME, str(ctx.exception))
        self.assertFalse((folder / lattice.PUBLIC_KEY_FILENAME).exists())
        self.assertEqual((folder / lattice.PRIVATE_KEY_FILENAME).read_bytes(), private_before)

    def test_tampered_chunk_fails_authentication(self):
        cipher = create_cipher("LATTICE")
        sealed = bytearray(cipher.encrypt(b"integrity"))
        sealed[-1] ^= 0x01
        with self.assertRaises(CipherError):
            cipher.decrypt(bytes(sealed))

    def test_short_chunk(self):
        with self.assertRaises(CipherError):
            create_cipher("LATTICE").decrypt(b"\x00" * 10)

    def test_parameters_reject_other_algorithms(self):
        with self.assertRaises(CipherError):
            lattice.LatticeParameters.from_json('{"algorithm": "ntru", "max_message_length": 64}')
        with self.assertRaises(CipherError):
            lattice.LatticeParameters.from_json("not json")


if __name__ == "__main__":
    unittest.main()
