"""
LOT 3: Password Lifecycle Manager

Hachage bcrypt salé et décision de re-hachage à la mise à jour.
"""

from typing import Optional

import bcrypt

from src.core.interfaces import ValidationFault

from .interfaces import IPasswordManager


# bcrypt ignore silencieusement au-delà de 72 octets
BCRYPT_MAX_BYTES = 72


class PasswordManager(IPasswordManager):
    """
    Gestionnaire du cycle de vie des mots de passe.

    Le même mot de passe encodé deux fois donne deux hash différents,
    tous deux vérifiables.

    Example:
        passwords = PasswordManager(rounds=12)
        hashed = passwords.encode("secret")
        passwords.verify("secret", hashed)  # True
    """

    def __init__(self, rounds: int = 12) -> None:
        """
        Args:
            rounds: Facteur de coût bcrypt (4..31)
        """
        if rounds < 4 or rounds > 31:
            raise ValueError(f"bcrypt rounds must be 4-31, got {rounds}")
        self.rounds = rounds

    def encode(self, plaintext: str) -> str:
        """
        Hache un mot de passe.

        Raises:
            ValidationFault: Mot de passe vide ou trop long
        """
        if not plaintext:
            raise ValidationFault({"password": "Le mot de passe ne peut pas être vide"})
        raw = plaintext.encode("utf-8")
        if len(raw) > BCRYPT_MAX_BYTES:
            raise ValidationFault({"password": f"Le mot de passe dépasse {BCRYPT_MAX_BYTES} octets"})
        return bcrypt.hashpw(raw, bcrypt.gensalt(rounds=self.rounds)).decode("utf-8")

    def verify(self, plaintext: str, hashed: str) -> bool:
        if not plaintext or not hashed:
            return False
        try:
            return bcrypt.checkpw(plaintext.encode("utf-8"), hashed.encode("utf-8"))
        except ValueError:
            # Hash non bcrypt
            return False

    @staticmethod
    def is_password_changed(supplied: Optional[str]) -> bool:
        """True si un nouveau mot de passe a réellement été fourni."""
        return supplied is not None and supplied != ""

    def process(self, existing_hash: str, supplied: Optional[str]) -> str:
        """
        Hash à stocker: nouveau hash si un mot de passe est fourni, sinon l'existant.

        Une mise à jour sans mot de passe ne détruit jamais le credential en place.
        """
        if self.is_password_changed(supplied):
            return self.encode(supplied)
        return existing_hash
