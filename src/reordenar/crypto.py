"""Fernet encryption for credentials kept on disk."""

from cryptography.fernet import Fernet


class TokenEncryptor:
    """Encrypts and decrypts stored secrets with a Fernet key.

    Each call to :meth:`encrypt` uses a fresh IV, so the same token never
    produces the same ciphertext twice.
    """

    def __init__(self, key: str) -> None:
        self._fernet = Fernet(key.encode())

    @staticmethod
    def generate_key() -> str:
        """Return a new urlsafe base64 Fernet key."""
        return Fernet.generate_key().decode()

    def encrypt(self, plaintext: str) -> str:
        return self._fernet.encrypt(plaintext.encode()).decode()

    def decrypt(self, ciphertext: str) -> str:
        """Raises :class:`cryptography.fernet.InvalidToken` for a foreign key or tampered text."""
        return self._fernet.decrypt(ciphertext.encode()).decode()
