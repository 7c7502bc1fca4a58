"""
ID token verification with a cached, self-refreshing signing key set.

High-level flow (per check)
---------------------------
1. `Validator.check(token, aud, cid)` takes the instance lock.
2. Every key in the `KeyStore` is tried in turn with `jwt.decode(...)` (RS256).
   - An expired token stops the search at once (`ExpiredTokenError`).
   - The first key that decodes the token wins.
3. If no key decodes it, the `KeyStore` is refreshed once (a no-op while the
   cache is fresh) and the keys are tried again.
4. The decoded claims must then match `aud`, the optional client id
   (`azp`/`cid`), and a trusted `iss`.

Errors
------
- `CertificateError`: keys could not be fetched; the token was not judged.
- `ValidationError` subclasses: the token was judged and rejected.

Example usage
-------------

.. code-block:: python

    from id_token_verification import IdTokenAuth, Validator, ValidatorOptions

    # Keep one validator for the life of the process
    validator = Validator(options=ValidatorOptions(expiry=3600))

    claims = validator.check(raw_token, "my-client-id.apps.googleusercontent.com")

    # Or protect Flask routes
    auth = IdTokenAuth(validator, audience="my-client-id.apps.googleusercontent.com")

    @app.route("/me")
    @auth.require()
    def me():
        return {"email": g.id_token["email"]}
"""

# Configuration
from .config import GOOGLE_CERTS_URI, GOOGLE_ISSUERS, ValidatorOptions

# Errors
from .errors import (
    AudienceMismatchError,
    CertificateError,
    ClientIDMismatchError,
    ExpiredTokenError,
    IdTokenError,
    InvalidIssuerError,
    MissingToken,
    SignatureError,
    ValidationError,
)

# Flask extension
from .flask_extension import IdTokenAuth, get_verified_id_claims

# Cache freshness
from .freshness import CacheFreshness, FreshnessState

# Key store
from .key_store import KeySourceMode, KeyStore, load_public_key

# Protocols
from .protocols import Claims, HttpSession, TokenSource, TokenValidator, ViewFunc

# Token sources
from .token_sources import bearer_token, cookie_token, posted_credential

# Validator
from .validator import KeyAttempt, KeyOutcome, Validator

__all__ = [
    # Configuration
    "GOOGLE_CERTS_URI",
    "GOOGLE_ISSUERS",
    "ValidatorOptions",
    # Errors
    "AudienceMismatchError",
    "CertificateError",
    "ClientIDMismatchError",
    "ExpiredTokenError",
    "IdTokenError",
    "InvalidIssuerError",
    "MissingToken",
    "SignatureError",
    "ValidationError",
    # Protocols
    "Claims",
    "HttpSession",
    "TokenSource",
    "TokenValidator",
    "ViewFunc",
    # Token sources
    "bearer_token",
    "cookie_token",
    "posted_credential",
    # Cache freshness
    "CacheFreshness",
    "FreshnessState",
    # Key store
    "KeySourceMode",
    "KeyStore",
    "load_public_key",
    # Validator
    "KeyAttempt",
    "KeyOutcome",
    "Validator",
    # Flask extension
    "IdTokenAuth",
    "get_verified_id_claims",
]
