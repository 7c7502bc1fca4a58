"""ID token verification errors.

This module defines the exception hierarchy for ID token checks. Everything
inherits from IdTokenError so application code can catch a single type, but
the two branches mean different things:

- CertificateError: the signing keys could not be obtained at all. This is an
  availability problem; the identity is unverifiable, not invalid.
- ValidationError and its subclasses: the token itself is not trusted.

Security Note:
    Messages are intentionally generic. They never echo token contents or
    claim values back to the caller.
"""

from __future__ import annotations


class IdTokenError(Exception):
    """Base exception for every ID token failure.

    Attributes:
        error_code: HTTP status the Flask integration responds with.
    """

    error_code: int = 401

    @property
    def description(self) -> str:
        """Human-readable reason, safe to return to clients."""
        return str(self.args[0]) if self.args else self.__class__.__name__


class CertificateError(IdTokenError):
    """Raised when no signing keys could be retrieved from the provider.

    Callers should treat this as "try again later" rather than rejecting the
    token holder.
    """

    error_code = 503


class MissingToken(IdTokenError):  # noqa: N818
    """Raised when no token is found in the request (header or cookie)."""


class ValidationError(IdTokenError):
    """Base class for every rejection of a token that was present."""


class ExpiredTokenError(ValidationError):
    """Raised when the signature checks out but the token's exp has passed.

    The token holder should re-authenticate. An expired token stops the key
    search immediately; no other key can make it valid.
    """


class SignatureError(ValidationError):
    """Raised when no cached or freshly fetched key verifies the token."""


class InvalidIssuerError(ValidationError):
    """Raised when iss is not one of the trusted issuers."""


class AudienceMismatchError(ValidationError):
    """Raised when aud does not match the audience the caller expects."""


class ClientIDMismatchError(ValidationError):
    """Raised when the authorized party (azp/cid) differs from the expected client id."""
