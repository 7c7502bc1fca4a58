"""Where an ID token arrives in a Flask request.

A token source is any zero-argument callable returning the raw token for the
current request, or raising MissingToken. Three are provided:

- bearer_token: ``Authorization: Bearer <token>`` (API clients that forward
  the ID token they got from Google)
- cookie_token(name): a cookie set by the app after sign-in
- posted_credential(): the form POST made by Google Identity Services to the
  sign-in redirect URI, with its double-submit CSRF check

Tokens are never read from query parameters.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Final

from flask import request

from .errors import MissingToken

if TYPE_CHECKING:
    from .protocols import TokenSource

DEFAULT_COOKIE: Final[str] = "id_token"

GSI_CREDENTIAL_FIELD: Final[str] = "credential"
"""Form field holding the ID token in a Google Identity Services POST."""

GSI_CSRF_FIELD: Final[str] = "g_csrf_token"
"""Name of both the CSRF cookie and the matching form field."""


def bearer_token() -> str:
    """Return the token from the Authorization header.

    Raises:
        MissingToken: Header missing, not the Bearer scheme, or empty token.
    """
    header = request.headers.get("Authorization", "").strip()
    if not header:
        raise MissingToken("Missing Authorization header")

    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer":
        raise MissingToken("Invalid authorization scheme (expected 'Bearer')")

    token = token.strip()
    if not token:
        raise MissingToken("Bearer token is empty")
    return token


def cookie_token(name: str = DEFAULT_COOKIE) -> TokenSource:
    """Build a source reading the token from cookie ``name``.

    The cookie should be HttpOnly and Secure. Routes that change state still
    need their own CSRF protection.

    Raises:
        ValueError: If name is empty.
    """
    if not name or not name.strip():
        raise ValueError("cookie name cannot be empty")

    def read_cookie() -> str:
        token = request.cookies.get(name)
        if not token:
            raise MissingToken(f"Missing cookie '{name}'")
        return token

    return read_cookie


def posted_credential(
    field: str = GSI_CREDENTIAL_FIELD, csrf_name: str = GSI_CSRF_FIELD
) -> TokenSource:
    """Build a source for the sign-in POST sent by Google Identity Services.

    Google posts the ID token in ``field`` and sets the same random value in
    both a ``csrf_name`` cookie and a ``csrf_name`` form field. The two must be
    present and equal before the credential is handed out.
    """

    def read_credential() -> str:
        cookie = request.cookies.get(csrf_name)
        if not cookie:
            raise MissingToken("No CSRF token in cookie")
        if request.form.get(csrf_name) != cookie:
            raise MissingToken("Failed to verify double submit cookie")

        token = request.form.get(field, "").strip()
        if not token:
            raise MissingToken(f"Missing form field '{field}'")
        return token

    return read_credential
