"""OAuth state parameter management for CSRF protection."""

import hashlib
import hmac
import secrets
import time


class OAuthStateManager:
    """Generates and verifies HMAC-signed OAuth state parameters.

    The state is ``{timestamp}:{nonce}.{signature}`` signed with HMAC-SHA256,
    so a redirect can be checked without remembering what was sent.
    """

    def __init__(self, key: str, ttl_seconds: int) -> None:
        self._key = key
        self._ttl_seconds = ttl_seconds

    def generate(self) -> str:
        """Generate a fresh signed state parameter."""
        data = f"{int(time.time())}:{secrets.token_urlsafe(8)}"
        return f"{data}.{self._sign(data)}"

    def verify(self, state: str) -> bool:
        """Verify the HMAC signature and TTL of a state parameter."""
        parts = state.split(".", 1)
        if len(parts) != 2:
            return False
        data, sig = parts
        if not hmac.compare_digest(sig, self._sign(data)):
            return False
        try:
            ts = int(data.split(":", 1)[0])
        except ValueError:
            return False
        return (time.time() - ts) <= self._ttl_seconds

    def _sign(self, data: str) -> str:
        return hmac.new(self._key.encode(), data.encode(), hashlib.sha256).hexdigest()
