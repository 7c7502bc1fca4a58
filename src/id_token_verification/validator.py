"""ID token validation against a cached set of signing keys.

Validator is the public entry point. Keep one instance for the life of the
process: it caches the provider's keys, checks tokens locally, and only goes
back to the provider when no cached key verifies a token and the cache has
expired.

Check Flow
----------
1. Try every cached key (first key that decodes the token wins).
2. Nothing decoded: refresh the key store once.
   - Refresh failed -> CertificateError.
   - Refresh succeeded -> try every key again; still nothing -> SignatureError.

Signature and expiry are always established before any claim is looked at, so
a forged or expired token never reveals which claim would have mismatched.
Claim failures (aud, cid, iss) are final; they never trigger a refresh.
"""

from __future__ import annotations

import enum
import threading
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, Final

import jwt
import structlog
from cryptography import x509

from .config import ValidatorOptions
from .errors import (
    AudienceMismatchError,
    CertificateError,
    ClientIDMismatchError,
    ExpiredTokenError,
    InvalidIssuerError,
    SignatureError,
)
from .key_store import KeyStore
from .protocols import Audience, HttpSession, PublicKey

log = structlog.get_logger()

ALGORITHM: Final[str] = "RS256"


class KeyOutcome(enum.Enum):
    DECODED = "decoded"
    NO_MATCH = "no_match"
    EXPIRED = "expired"


@dataclass(frozen=True, slots=True)
class KeyAttempt:
    """Result of checking a token's signature against one key.

    Attributes:
        kid: Key id that was tried.
        outcome: DECODED (claims populated), NO_MATCH (try the next key) or
            EXPIRED (stop searching).
        claims: Decoded payload when outcome is DECODED.
    """

    kid: str
    outcome: KeyOutcome
    claims: dict[str, Any] | None = None


class Validator:
    """Validates ID tokens issued by a trusted provider (Google by default).

    Thread Safety:
        Every check() runs under one instance lock, including the embedded key
        refresh. Concurrent callers serialize, and at most one certificate
        fetch is in flight per Validator.

    Example:
        ```python
        validator = Validator()

        try:
            claims = validator.check(raw_token, "my-client-id.apps.googleusercontent.com")
        except CertificateError:
            # keys unavailable, ask the client to retry later
        except ValidationError:
            # token rejected
        ```
    """

    def __init__(
        self,
        x509_cert: x509.Certificate | str | bytes | None = None,
        options: ValidatorOptions | None = None,
        *,
        session: HttpSession | None = None,
    ) -> None:
        """Initialize the validator.

        Args:
            x509_cert: Fixed signing certificate. When given, only that key is
                trusted and the provider is never contacted.
            options: Validation and caching configuration.
            session: HTTP session for fetching certificates (remote mode).

        Raises:
            ValueError: If x509_cert cannot be parsed.
        """
        self._opt = options or ValidatorOptions()
        self._store = KeyStore(x509_cert, self._opt, session=session)
        self._lock = threading.RLock()

    @property
    def options(self) -> ValidatorOptions:
        return self._opt

    @property
    def key_store(self) -> KeyStore:
        return self._store

    def check(self, token: str, aud: Audience, cid: str | None = None) -> dict[str, Any]:
        """Validate a token and return its claims.

        Args:
            token: Compact-serialized ID token.
            aud: Required audience, or a list of acceptable audiences.
            cid: Optional required client id (the azp claim).

        Returns:
            The decoded payload, with azp and cid both populated when either
            was present.

        Raises:
            CertificateError: Signing keys could not be retrieved.
            ExpiredTokenError: Signature is valid but the token has expired.
            SignatureError: No known key verifies the token.
            AudienceMismatchError: aud does not match.
            ClientIDMismatchError: cid was given and does not match.
            InvalidIssuerError: iss is not trusted.
        """
        with self._lock:
            payload = self._check_cached_keys(token, aud, cid)
            if payload is not None:
                return payload

            # no cached key worked; keys may have rotated
            if not self._store.refresh():
                log.warning("id_token_rejected", reason="certificates_unavailable")
                raise CertificateError("Unable to retrieve signing keys")

            payload = self._check_cached_keys(token, aud, cid)
            if payload is None:
                log.info("id_token_rejected", reason="signature")
                raise SignatureError("Token not verified as issued by the identity provider")

            return payload

    def _check_cached_keys(
        self, token: str, aud: Audience, cid: str | None
    ) -> dict[str, Any] | None:
        """Return validated claims, or None if no cached key decodes the token."""
        payload: dict[str, Any] | None = None

        for kid, key in self._store.keys().items():
            attempt = self._try_key(token, kid, key)
            if attempt.outcome is KeyOutcome.EXPIRED:
                log.info("id_token_rejected", reason="expired", kid=kid)
                raise ExpiredTokenError("Token signature is expired")
            if attempt.outcome is KeyOutcome.DECODED:
                payload = attempt.claims
                log.debug("id_token_decoded", kid=kid)
                break

        if payload is None:
            return None

        _normalize_authorized_party(payload)
        self._check_claims(payload, aud, cid)
        return payload

    def _try_key(self, token: str, kid: str, key: PublicKey) -> KeyAttempt:
        try:
            claims = jwt.decode(
                token,
                key,
                algorithms=[ALGORITHM],
                leeway=self._opt.leeway,
                options={"verify_aud": False, "verify_iss": False, "verify_iat": False},
            )
        except jwt.ExpiredSignatureError:
            return KeyAttempt(kid, KeyOutcome.EXPIRED)
        except jwt.InvalidTokenError:
            return KeyAttempt(kid, KeyOutcome.NO_MATCH)

        return KeyAttempt(kid, KeyOutcome.DECODED, claims)

    def _check_claims(self, payload: dict[str, Any], aud: Audience, cid: str | None) -> None:
        if not _audience_matches(payload, aud):
            log.info("id_token_rejected", reason="audience")
            raise AudienceMismatchError("Token audience mismatch")

        if cid is not None and payload.get("cid") != cid:
            log.info("id_token_rejected", reason="client_id")
            raise ClientIDMismatchError("Token client-id mismatch")

        if payload.get("iss") not in self._opt.issuers:
            log.info("id_token_rejected", reason="issuer")
            raise InvalidIssuerError("Token issuer mismatch")


def _normalize_authorized_party(payload: dict[str, Any]) -> None:
    # 'cid' is the pre-2013 name of the 'azp' claim; keep both populated
    if payload.get("azp") is not None:
        payload["cid"] = payload["azp"]
    elif payload.get("cid") is not None:
        payload["azp"] = payload["cid"]


def _audience_matches(payload: dict[str, Any], aud: Audience) -> bool:
    if "aud" not in payload:
        return False

    token_aud = payload["aud"]
    if token_aud == aud:
        return True
    return isinstance(aud, Sequence) and not isinstance(aud, str) and token_aud in aud
