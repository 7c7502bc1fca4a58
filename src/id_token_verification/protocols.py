"""Protocol definitions for ID token verification.

Structural interfaces (PEP 544) for the seams of the package:
- Token validation (what the Flask layer depends on)
- HTTP access for the certificate fetch
- Where a request carries its token

Any object with the right methods satisfies a protocol, which keeps tests free
of network access and real keys where they are not needed.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from typing import Any, Protocol

from cryptography.hazmat.primitives.asymmetric.rsa import RSAPublicKey

# ============================================================================
# Type Aliases
# ============================================================================

type Claims = Mapping[str, Any]
"""Decoded ID token payload."""

type PublicKey = RSAPublicKey
"""Public key extracted from a signing certificate."""

type SigningKeySet = Mapping[str, PublicKey]
"""Key id -> public key."""

type Audience = str | Sequence[str]
"""One accepted audience, or several."""

type ViewFunc = Callable[..., Any]
"""Flask view function."""


# ============================================================================
# Core Protocols
# ============================================================================


class TokenValidator(Protocol):
    """Anything that can check an ID token for an audience.

    Validator is the implementation shipped with this package.
    """

    def check(self, token: str, aud: Audience, cid: str | None = None) -> Claims:
        """Return the token's claims, or raise an IdTokenError subclass."""
        ...


class HttpSession(Protocol):
    """The slice of requests.Session used to fetch certificates."""

    def get(self, url: str, *, timeout: float) -> Any: ...


type TokenSource = Callable[[], str]
"""Returns the raw token of the current Flask request, or raises MissingToken."""
