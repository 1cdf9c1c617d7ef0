"""Tests for the secret stores and TokenStore."""

import json
import os
import stat
from datetime import UTC, datetime
from pathlib import Path

import pytest
from cryptography.fernet import Fernet

from reordenar.auth.exceptions import SecretNotFoundError
from reordenar.auth.token_store import EncryptedFileSecretStore, MemorySecretStore, TokenStore
from reordenar.constants import SecretKey
from reordenar.spotify.models import SpotifyUser, TokenBundle

TEST_FERNET_KEY = Fernet.generate_key().decode()


def test_memory_store_round_trip() -> None:
    """Saved values load back; deleted ones raise SecretNotFoundError."""
    store = MemorySecretStore()
    store.save("k", "v")
    assert store.load("k") == "v"
    store.delete("k")
    with pytest.raises(SecretNotFoundError):
        store.load("k")


def test_memory_store_delete_missing_is_noop() -> None:
    """Deleting an unknown key does nothing."""
    MemorySecretStore().delete("missing")


def test_file_store_encrypts_values(tmp_path: Path) -> None:
    """Values on disk are not stored in plaintext."""
    path = tmp_path / "tokens.json"
    store = EncryptedFileSecretStore(path, TEST_FERNET_KEY)
    store.save(SecretKey.ACCESS_TOKEN, "super-secret-token")

    raw = path.read_text(encoding="utf-8")
    assert "super-secret-token" not in raw
    assert SecretKey.ACCESS_TOKEN.value in json.loads(raw)
    assert store.load(SecretKey.ACCESS_TOKEN) == "super-secret-token"


def test_file_store_persists_across_instances(tmp_path: Path) -> None:
    """A new store over the same file and key sees earlier writes."""
    path = tmp_path / "nested" / "tokens.json"
    EncryptedFileSecretStore(path, TEST_FERNET_KEY).save("k", "v")
    assert EncryptedFileSecretStore(path, TEST_FERNET_KEY).load("k") == "v"


@pytest.mark.skipif(os.name == "nt", reason="POSIX permissions")
def test_file_store_restricts_permissions(tmp_path: Path) -> None:
    """The secret file is readable by its owner only."""
    path = tmp_path / "tokens.json"
    EncryptedFileSecretStore(path, TEST_FERNET_KEY).save("k", "v")
    assert stat.S_IMODE(path.stat().st_mode) == 0o600


def test_file_store_wrong_key_is_not_found(tmp_path: Path) -> None:
    """Values encrypted under another key read as missing."""
    path = tmp_path / "tokens.json"
    EncryptedFileSecretStore(path, TEST_FERNET_KEY).save("k", "v")
    other = EncryptedFileSecretStore(path, Fernet.generate_key().decode())
    with pytest.raises(SecretNotFoundError):
        other.load("k")


def test_file_store_corrupt_file_reads_as_empty(tmp_path: Path) -> None:
    """A corrupt file is treated as holding no secrets."""
    path = tmp_path / "tokens.json"
    path.write_text("{not json", encoding="utf-8")
    store = EncryptedFileSecretStore(path, TEST_FERNET_KEY)
    with pytest.raises(SecretNotFoundError):
        store.load("k")
    store.save("k", "v")
    assert store.load("k") == "v"


def test_token_store_round_trips_bundle() -> None:
    """save_bundle then load_bundle returns the same values."""
    store = TokenStore(MemorySecretStore())
    expires_at = datetime(2030, 1, 1, 12, 0, tzinfo=UTC)
    store.save_bundle(TokenBundle(access_token="a", refresh_token="r", expires_at=expires_at))

    bundle = store.load_bundle()

    assert bundle is not None
    assert bundle.access_token == "a"
    assert bundle.refresh_token == "r"
    assert bundle.expires_at == expires_at


def test_token_store_stores_expiry_as_epoch_seconds() -> None:
    """The expiry is stored as seconds since the epoch."""
    secrets = MemorySecretStore()
    TokenStore(secrets).save_bundle(
        TokenBundle(access_token="a", expires_at=datetime(2030, 1, 1, tzinfo=UTC))
    )
    assert float(secrets.load(SecretKey.TOKEN_EXPIRATION)) == datetime(2030, 1, 1, tzinfo=UTC).timestamp()


def test_token_store_partial_bundle() -> None:
    """A bundle without refresh token or expiry loads with None for both."""
    store = TokenStore(MemorySecretStore())
    store.save_bundle(TokenBundle(access_token="a"))
    bundle = store.load_bundle()
    assert bundle is not None
    assert bundle.refresh_token is None
    assert bundle.expires_at is None


def test_token_store_empty_returns_none() -> None:
    """No stored access token means no bundle."""
    assert TokenStore(MemorySecretStore()).load_bundle() is None


def test_token_store_malformed_expiry_is_ignored() -> None:
    """An unparseable expiry loads as None."""
    secrets = MemorySecretStore()
    secrets.save(SecretKey.ACCESS_TOKEN, "a")
    secrets.save(SecretKey.TOKEN_EXPIRATION, "tomorrow")
    bundle = TokenStore(secrets).load_bundle()
    assert bundle is not None
    assert bundle.expires_at is None


def test_token_store_user_round_trip() -> None:
    """The cached profile survives a save/load cycle."""
    store = TokenStore(MemorySecretStore())
    store.save_user(SpotifyUser(id="u1", display_name="Test"))
    user = store.load_user()
    assert user is not None
    assert user.id == "u1"
    assert user.display_name == "Test"


def test_token_store_unreadable_user_is_none() -> None:
    """A corrupt cached profile loads as None."""
    secrets = MemorySecretStore()
    secrets.save(SecretKey.USER_DATA, "not json")
    assert TokenStore(secrets).load_user() is None


def test_token_store_clear_removes_everything(tmp_path: Path) -> None:
    """clear() deletes every stored credential and the profile."""
    secrets = EncryptedFileSecretStore(tmp_path / "tokens.json", TEST_FERNET_KEY)
    store = TokenStore(secrets)
    store.save_bundle(TokenBundle(access_token="a", refresh_token="r", expires_at=datetime.now(UTC)))
    store.save_user(SpotifyUser(id="u1"))

    store.clear()

    assert store.load_bundle() is None
    assert store.load_user() is None
    assert json.loads((tmp_path / "tokens.json").read_text(encoding="utf-8")) == {}
