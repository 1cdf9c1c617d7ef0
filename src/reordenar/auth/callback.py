"""Authorization redirect handling. Pulls ``code`` or ``error`` off the callback URL."""

from urllib.parse import parse_qs, urlparse

from reordenar.auth.exceptions import AuthorizationDeniedError, InvalidStateError, MissingAuthorizationCodeError
from reordenar.auth.state import OAuthStateManager


def parse_callback(url: str, *, state_manager: OAuthStateManager | None = None) -> str:
    """Return the authorization code carried by a redirect such as
    ``reordenar://callback?code=...&state=...``.

    Raises:
        AuthorizationDeniedError: The redirect carries an ``error`` parameter.
        MissingAuthorizationCodeError: Neither ``code`` nor ``error`` is present.
        InvalidStateError: A ``state_manager`` was supplied and the state does
            not verify.
    """
    query = parse_qs(urlparse(url).query)

    error = query.get("error", [None])[0]
    if error:
        raise AuthorizationDeniedError(error)

    code = query.get("code", [None])[0]
    if not code:
        raise MissingAuthorizationCodeError()

    if state_manager is not None:
        state = query.get("state", [""])[0]
        if not state_manager.verify(state):
            raise InvalidStateError("Invalid or expired state parameter")

    return code
