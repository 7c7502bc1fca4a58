"""Flask integration for ID token verification.

Key Components:
- IdTokenAuth: decorator that protects routes with an ID token check
- get_verified_id_claims: verify the ID token cookie of the current request

Error mapping:
- MissingToken, ValidationError (and subclasses) -> HTTP 401
- CertificateError -> HTTP 503 (the provider's keys are unreachable; the
  token was not judged)
- Anything unexpected -> HTTP 401 ("Authentication failed")
"""

from __future__ import annotations

from functools import wraps
from typing import TYPE_CHECKING, Any, Final

import structlog
from flask import Flask, abort, g

from .errors import IdTokenError
from .token_sources import DEFAULT_COOKIE, bearer_token, cookie_token

if TYPE_CHECKING:
    from .protocols import Audience, Claims, TokenSource, TokenValidator, ViewFunc

log = structlog.get_logger()

_EXT_KEY: Final[str] = "id_token_auth"
"""Flask extensions registry key for IdTokenAuth."""


class IdTokenAuth:
    """
    Flask decorator glue for ID token checks.

    Responsibilities:
    - Read the token from its source (Bearer header by default)
    - Check it with a TokenValidator for the configured audience/client id
    - Store verified claims in `flask.g.id_token`
    - Convert domain errors to HTTP responses (abort)

    Usage:
        auth = IdTokenAuth(Validator(), audience="my-client-id")

        @app.get("/me")
        @auth.require()
        def me():
            return {"email": g.id_token["email"]}

    Application factory pattern:
        auth = IdTokenAuth()
        auth.init_app(app, validator=validator, audience="my-client-id")
    """

    def __init__(
        self,
        validator: TokenValidator | None = None,
        *,
        audience: Audience | None = None,
        client_id: str | None = None,
        source: TokenSource | None = None,
    ) -> None:
        self._validator = validator
        self._audience = audience
        self._client_id = client_id
        self._source: TokenSource = source or bearer_token

    def init_app(
        self,
        app: Flask,
        *,
        validator: TokenValidator | None = None,
        audience: Audience | None = None,
        client_id: str | None = None,
        source: TokenSource | None = None,
    ) -> None:
        """Register the extension on a Flask app, overriding any given settings."""
        if validator is not None:
            self._validator = validator
        if audience is not None:
            self._audience = audience
        if client_id is not None:
            self._client_id = client_id
        if source is not None:
            self._source = source

        app.extensions[_EXT_KEY] = self

    def require(
        self,
        *,
        audience: Audience | None = None,
        client_id: str | None = None,
    ):
        """Decorator that rejects requests without a valid ID token.

        Args:
            audience: Overrides the extension's audience for this route.
            client_id: Overrides the extension's client id for this route.

        Side Effects:
            - Writes the verified claims to ``flask.g.id_token``.
            - May end the request early via ``flask.abort``.
        """

        def decorator(view: ViewFunc) -> ViewFunc:
            @wraps(view)
            def wrapper(*args: Any, **kwargs: Any) -> Any:
                validator = self._validator
                aud = audience if audience is not None else self._audience
                if validator is None or aud is None:
                    raise RuntimeError("IdTokenAuth needs a validator and an audience")

                cid = client_id if client_id is not None else self._client_id
                try:
                    token = self._source()
                    g.id_token = validator.check(token, aud, cid)
                except IdTokenError as e:
                    abort(e.error_code, description=e.description)
                except Exception:
                    log.exception("id_token_check_crashed")
                    abort(401, description="Authentication failed")

                return view(*args, **kwargs)

            return wrapper

        return decorator


def get_verified_id_claims(
    validator: TokenValidator,
    audience: Audience,
    *,
    client_id: str | None = None,
    cookie_name: str = DEFAULT_COOKIE,
) -> Claims:
    """
    Return verified ID token claims from the current Flask request.

    - Reads the ID token from a cookie (default "id_token")
    - Checks signature, expiry, audience, client id and issuer
    - Aborts with 401 (or 503 when keys are unavailable) on failure
    """
    try:
        token = cookie_token(cookie_name)()
        claims = validator.check(token, audience, client_id)
    except IdTokenError as e:
        abort(e.error_code, description=e.description)
    except Exception:
        log.exception("id_token_check_crashed")
        abort(401, description="Authentication failed")
    return claims
