"""Credential persistence: secret stores and the typed TokenStore on top of them."""

import json
import logging
import os
from datetime import UTC, datetime
from pathlib import Path

from cryptography.fernet import InvalidToken
from pydantic import ValidationError

from reordenar.auth.exceptions import SecretNotFoundError
from reordenar.constants import SecretKey
from reordenar.crypto import TokenEncryptor
from reordenar.spotify.models import SpotifyUser, TokenBundle

logger = logging.getLogger(__name__)


class SecretStore:
    """Key/value store for opaque secret strings.

    Subclasses implement ``save``, ``load`` and ``delete``. ``load`` raises
    :class:`SecretNotFoundError` for unknown keys; ``delete`` ignores them.
    """

    def save(self, key: str, value: str) -> None:
        raise NotImplementedError

    def load(self, key: str) -> str:
        raise NotImplementedError

    def delete(self, key: str) -> None:
        raise NotImplementedError


class MemorySecretStore(SecretStore):
    """Process-local secret store; nothing survives a restart."""

    def __init__(self) -> None:
        self._secrets: dict[str, str] = {}

    def save(self, key: str, value: str) -> None:
        self._secrets[key] = value

    def load(self, key: str) -> str:
        try:
            return self._secrets[key]
        except KeyError:
            raise SecretNotFoundError(key) from None

    def delete(self, key: str) -> None:
        self._secrets.pop(key, None)


class EncryptedFileSecretStore(SecretStore):
    """Secret store backed by a JSON file of Fernet-encrypted values.

    Values are encrypted individually, so the file reveals which keys are
    present but none of their contents. Writes go to a sibling temp file
    that is then renamed over the original.
    """

    def __init__(self, path: str | Path, encryption_key: str) -> None:
        self._path = Path(path).expanduser()
        self._encryptor = TokenEncryptor(encryption_key)

    @property
    def path(self) -> Path:
        return self._path

    def save(self, key: str, value: str) -> None:
        data = self._read()
        data[key] = self._encryptor.encrypt(value)
        self._write(data)

    def load(self, key: str) -> str:
        ciphertext = self._read().get(key)
        if ciphertext is None:
            raise SecretNotFoundError(key)
        try:
            return self._encryptor.decrypt(ciphertext)
        except InvalidToken:
            logger.warning("Failed to decrypt secret %r; encryption key may have rotated", key)
            raise SecretNotFoundError(key) from None

    def delete(self, key: str) -> None:
        data = self._read()
        if data.pop(key, None) is not None:
            self._write(data)

    def _read(self) -> dict[str, str]:
        if not self._path.exists():
            return {}
        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"))
        except json.JSONDecodeError:
            logger.warning("Secret file %s is corrupt; ignoring its contents", self._path)
            return {}
        if not isinstance(raw, dict):
            return {}
        return {str(k): str(v) for k, v in raw.items()}

    def _write(self, data: dict[str, str]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._path.with_suffix(self._path.suffix + ".tmp")
        tmp_path.write_text(json.dumps(data), encoding="utf-8")
        os.chmod(tmp_path, 0o600)
        os.replace(tmp_path, self._path)


class TokenStore:
    """Persists the token bundle and cached user profile in a :class:`SecretStore`.

    Holds no business logic: values are stored and returned as-is.
    """

    def __init__(self, secrets: SecretStore) -> None:
        self._secrets = secrets

    def save_bundle(self, bundle: TokenBundle) -> None:
        self._secrets.save(SecretKey.ACCESS_TOKEN, bundle.access_token)
        if bundle.refresh_token:
            self._secrets.save(SecretKey.REFRESH_TOKEN, bundle.refresh_token)
        if bundle.expires_at is not None:
            self._secrets.save(SecretKey.TOKEN_EXPIRATION, str(bundle.expires_at.timestamp()))

    def load_bundle(self) -> TokenBundle | None:
        """Return the stored bundle, or ``None`` when no access token is stored."""
        access_token = self._load_optional(SecretKey.ACCESS_TOKEN)
        if access_token is None:
            return None
        return TokenBundle(
            access_token=access_token,
            refresh_token=self._load_optional(SecretKey.REFRESH_TOKEN),
            expires_at=self._load_expiry(),
        )

    def save_user(self, user: SpotifyUser) -> None:
        self._secrets.save(SecretKey.USER_DATA, user.model_dump_json())

    def load_user(self) -> SpotifyUser | None:
        raw = self._load_optional(SecretKey.USER_DATA)
        if raw is None:
            return None
        try:
            return SpotifyUser.model_validate_json(raw)
        except ValidationError:
            logger.warning("Discarding unreadable cached user profile")
            return None

    def clear(self) -> None:
        """Delete the access token, refresh token, expiry and cached user."""
        for key in SecretKey:
            self._secrets.delete(key)

    def _load_optional(self, key: str) -> str | None:
        try:
            return self._secrets.load(key)
        except SecretNotFoundError:
            return None

    def _load_expiry(self) -> datetime | None:
        raw = self._load_optional(SecretKey.TOKEN_EXPIRATION)
        if raw is None:
            return None
        try:
            return datetime.fromtimestamp(float(raw), tz=UTC)
        except ValueError:
            logger.warning("Ignoring malformed token expiry %r", raw)
            return None
