# src/models/user.py

"""User account record for the credentials login contract."""

from dataclasses import dataclass


@dataclass
class User:
    """A row of the ``users`` table."""

    id: int
    nom: str
    prenom: str
    email: str
    password_hash: str

    @property
    def display_name(self) -> str:
        return f"{self.prenom} {self.nom}".strip()
