# tests/test_user_store.py

"""Tests for the SQLite users table."""

import shutil
import tempfile
import unittest
from pathlib import Path

from src.models.errors import (
    AuthenticationError,
    DuplicateEmailError,
    InvalidPasswordError,
)
from src.storage.user_store import UserStore, hash_password, verify_password


class TestPasswordHashing(unittest.TestCase):

    def test_hash_is_not_plaintext_and_verifies(self) -> None:
        hashed = hash_password("s3cret")
        self.assertNotEqual(hashed, "s3cret")
        self.assertTrue(verify_password("s3cret", hashed))
        self.assertFalse(verify_password("wrong", hashed))

    def test_garbage_hash_does_not_verify(self) -> None:
        self.assertFalse(verify_password("s3cret", "not-a-bcrypt-hash"))

    def test_password_over_72_bytes_rejected(self) -> None:
        """Multi-byte characters count by their UTF-8 length."""
        with self.assertRaises(InvalidPasswordError):
            hash_password("x" * 73)
        with self.assertRaises(InvalidPasswordError):
            hash_password("é" * 37)
        self.assertTrue(verify_password("é" * 36, hash_password("é" * 36)))

    def test_long_password_never_verifies(self) -> None:
        hashed = hash_password("x" * 72)
        self.assertFalse(verify_password("x" * 80, hashed))


class TestUserStore(unittest.TestCase):
    """Signup and credential checks against a temporary database."""

    def setUp(self) -> None:
        self.tmp_dir = Path(tempfile.mkdtemp())
        self.store = UserStore(self.tmp_dir / "nested" / "users.db")

    def tearDown(self) -> None:
        self.store.close()
        shutil.rmtree(self.tmp_dir, ignore_errors=True)

    def test_create_and_authenticate(self) -> None:
        user_id = self.store.create_user(
            "Dupont", "Marie", "marie@example.nc", "s3cret"
        )
        user = self.store.authenticate("marie@example.nc", "s3cret")
        self.assertEqual(user.id, user_id)
        self.assertEqual(user.display_name, "Marie Dupont")

    def test_email_is_case_insensitive(self) -> None:
        self.store.create_user("Dupont", "Marie", "Marie@Example.NC", "pw")
        user = self.store.get_by_email("  marie@example.nc ")
        self.assertIsNotNone(user)
        assert user is not None
        self.assertEqual(user.email, "marie@example.nc")

    def test_duplicate_email_rejected(self) -> None:
        self.store.create_user("Dupont", "Marie", "marie@example.nc", "pw")
        with self.assertRaises(DuplicateEmailError):
            self.store.create_user("Martin", "Paul", "MARIE@example.nc", "x")

    def test_wrong_password(self) -> None:
        self.store.create_user("Dupont", "Marie", "marie@example.nc", "pw")
        with self.assertRaises(AuthenticationError):
            self.store.authenticate("marie@example.nc", "nope")

    def test_unknown_email(self) -> None:
        with self.assertRaises(AuthenticationError):
            self.store.authenticate("ghost@example.nc", "pw")
        self.assertIsNone(self.store.get_by_email("ghost@example.nc"))

    def test_long_password_signup_leaves_no_row(self) -> None:
        with self.assertRaises(InvalidPasswordError):
            self.store.create_user(
                "Dupont", "Marie", "marie@example.nc", "x" * 100
            )
        self.assertIsNone(self.store.get_by_email("marie@example.nc"))

    def test_password_is_stored_hashed(self) -> None:
        self.store.create_user("Dupont", "Marie", "marie@example.nc", "pw")
        user = self.store.get_by_email("marie@example.nc")
        assert user is not None
        self.assertTrue(user.password_hash.startswith("$2"))


if __name__ == "__main__":
    unittest.main()
