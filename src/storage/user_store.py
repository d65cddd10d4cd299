# src/storage/user_store.py

"""SQLite-backed users table for the credentials login contract."""

import logging
import sqlite3
from pathlib import Path

import bcrypt

from src.config.settings import Settings
from src.models.errors import (
    AuthenticationError,
    DuplicateEmailError,
    InvalidPasswordError,
)
from src.models.user import User

logger = logging.getLogger("prixnc_ai.users")

MAX_PASSWORD_BYTES = 72

_SCHEMA = """\
CREATE TABLE IF NOT EXISTS users (
    id            INTEGER PRIMARY KEY AUTOINCREMENT,
    nom           TEXT    NOT NULL,
    prenom        TEXT    NOT NULL,
    email         TEXT    NOT NULL UNIQUE,
    password_hash TEXT    NOT NULL
);
"""


def hash_password(password: str) -> str:
    """Salted bcrypt hash of *password*.

    Raises:
        InvalidPasswordError: longer than 72 UTF-8 bytes.
    """
    raw = password.encode("utf-8")
    if len(raw) > MAX_PASSWORD_BYTES:
        raise InvalidPasswordError(
            f"Le mot de passe ne doit pas dépasser {MAX_PASSWORD_BYTES} octets"
        )
    return bcrypt.hashpw(raw, bcrypt.gensalt()).decode("ascii")


def verify_password(password: str, password_hash: str) -> bool:
    raw = password.encode("utf-8")
    if len(raw) > MAX_PASSWORD_BYTES:
        return False
    try:
        return bcrypt.checkpw(raw, password_hash.encode("ascii"))
    except ValueError:
        logger.warning("Stored password hash is not a bcrypt hash")
        return False


class UserStore:
    """Create and look up users; rows are never updated or deleted."""

    def __init__(self, db_path: Path | None = None) -> None:
        path = db_path or Settings.USERS_DB_PATH
        path.parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(
            str(path), check_same_thread=False,
        )
        self._conn.row_factory = sqlite3.Row
        self._conn.executescript(_SCHEMA)
        logger.debug("UserStore opened at %s", path)

    def close(self) -> None:
        """Close the database connection."""
        self._conn.close()

    @staticmethod
    def _normalise_email(email: str) -> str:
        return email.strip().lower()

    def create_user(
        self,
        nom: str,
        prenom: str,
        email: str,
        password: str,
    ) -> int:
        """Insert a user and return its id.

        Raises:
            DuplicateEmailError: the email is already registered.
            InvalidPasswordError: the password is too long to hash.
        """
        address = self._normalise_email(email)
        try:
            with self._conn:
                cur = self._conn.execute(
                    "INSERT INTO users (nom, prenom, email, password_hash) "
                    "VALUES (?, ?, ?, ?)",
                    (nom, prenom, address, hash_password(password)),
                )
        except sqlite3.IntegrityError as exc:
            raise DuplicateEmailError(
                f"Email already registered: {address}"
            ) from exc
        user_id = int(cur.lastrowid or 0)
        logger.info("Created user %d", user_id)
        return user_id

    def get_by_email(self, email: str) -> User | None:
        row = self._conn.execute(
            "SELECT id, nom, prenom, email, password_hash "
            "FROM users WHERE email = ?",
            (self._normalise_email(email),),
        ).fetchone()
        if row is None:
            return None
        return User(
            id=int(row["id"]),
            nom=str(row["nom"]),
            prenom=str(row["prenom"]),
            email=str(row["email"]),
            password_hash=str(row["password_hash"]),
        )

    def authenticate(self, email: str, password: str) -> User:
        """Return the user for valid credentials.

        Raises:
            AuthenticationError: unknown email or wrong password.
        """
        user = self.get_by_email(email)
        if user is None:
            raise AuthenticationError("Aucun utilisateur trouvé avec cet email")
        if not verify_password(password, user.password_hash):
            raise AuthenticationError("Mot de passe incorrect")
        return user
