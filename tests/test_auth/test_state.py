"""Tests for OAuthStateManager."""

from unittest.mock import patch

from reordenar.auth.state import OAuthStateManager

KEY = "test-secret-key-for-hmac"


def test_generate_and_verify() -> None:
    """A freshly generated state should verify successfully."""
    mgr = OAuthStateManager(key=KEY, ttl_seconds=300)
    state = mgr.generate()
    assert mgr.verify(state) is True


def test_generated_states_differ() -> None:
    """Each state carries its own nonce."""
    mgr = OAuthStateManager(key=KEY, ttl_seconds=300)
    assert mgr.generate() != mgr.generate()


def test_verify_invalid_signature() -> None:
    """A state with a tampered signature should fail verification."""
    mgr = OAuthStateManager(key=KEY, ttl_seconds=300)
    data, _sig = mgr.generate().split(".", 1)
    assert mgr.verify(f"{data}.{'a' * 64}") is False


def test_verify_wrong_key() -> None:
    """A state verified with a different key should fail."""
    state = OAuthStateManager(key=KEY, ttl_seconds=300).generate()
    assert OAuthStateManager(key="different-key", ttl_seconds=300).verify(state) is False


def test_verify_expired_state() -> None:
    """A state whose timestamp is older than the TTL should fail."""
    mgr = OAuthStateManager(key=KEY, ttl_seconds=300)
    with patch("reordenar.auth.state.time") as mock_time:
        mock_time.time.return_value = 1000000.0
        state = mgr.generate()
    assert mgr.verify(state) is False


def test_verify_malformed_state() -> None:
    """Malformed state strings should fail gracefully."""
    mgr = OAuthStateManager(key=KEY, ttl_seconds=300)
    assert mgr.verify("no-dot-separator") is False
    assert mgr.verify("") is False
    assert mgr.verify("not-a-number.abcdef") is False
