"""Signing key store for ID token verification.

KeyStore owns the mapping of key id -> RSA public key used to check token
signatures, and knows how to repopulate it from one of two sources:

- literal: a single certificate supplied at construction. It never expires and
  refreshing is a no-op.
- remote: a key distribution endpoint returning a JSON object of
  {kid: PEM certificate}. Results are cached for `expiry` seconds.

Refresh Semantics
-----------------
- While the cache is fresh, refresh() returns True without any I/O.
- A successful fetch is MERGED into the existing set: keys missing from the
  response are kept, so a partial response never drops a key that still signs
  live tokens.
- Any failure (transport error, non-2xx status, malformed JSON, a certificate
  that does not parse) leaves the set untouched and returns False. Failures are
  logged, never raised; the Validator decides what they mean.

Thread Safety:
    KeyStore does no locking. The owning Validator serializes every call.
"""

from __future__ import annotations

import enum
from types import MappingProxyType
from typing import Any, Final

import requests
import structlog
from cryptography import x509
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPublicKey

from .config import ValidatorOptions
from .freshness import CacheFreshness, FreshnessState
from .protocols import HttpSession, PublicKey, SigningKeySet

log = structlog.get_logger()

LITERAL_KID: Final[str] = "_"
"""Key id the literal certificate is stored under."""


class KeySourceMode(enum.Enum):
    LITERAL = "literal"
    REMOTE = "remote"


def load_public_key(cert: x509.Certificate | str | bytes) -> PublicKey:
    """Extract the RSA public key from an X.509 certificate.

    Args:
        cert: A parsed certificate, a PEM string, or PEM/DER bytes.

    Raises:
        ValueError: If the certificate cannot be parsed or carries a non-RSA key.
    """
    if isinstance(cert, str):
        cert = cert.encode("ascii")
    if isinstance(cert, bytes):
        if cert.lstrip().startswith(b"-----BEGIN"):
            cert = x509.load_pem_x509_certificate(cert)
        else:
            cert = x509.load_der_x509_certificate(cert)
    if not isinstance(cert, x509.Certificate):
        raise ValueError(f"Unsupported certificate type: {type(cert).__name__}")

    key = cert.public_key()
    if not isinstance(key, RSAPublicKey):
        raise ValueError("Certificate does not carry an RSA public key")
    return key


def parse_certs(body: Any) -> dict[str, PublicKey]:
    """Turn a decoded {kid: PEM} response body into {kid: public key}.

    The whole body is rejected if any entry is malformed.

    Raises:
        ValueError: If the body is not a mapping of strings or a certificate
            does not parse.
    """
    if not isinstance(body, dict):
        raise ValueError("Certificate response is not a JSON object")

    keys: dict[str, PublicKey] = {}
    for kid, pem in body.items():
        if not isinstance(pem, str):
            raise ValueError(f"Certificate for kid {kid!r} is not a string")
        keys[kid] = load_public_key(pem)
    return keys


class KeyStore:
    """Cache of signing keys refreshed lazily from the configured source.

    Example:
        ```python
        store = KeyStore(options=ValidatorOptions(expiry=600))

        if store.refresh():
            for kid, key in store.keys().items():
                ...
        ```

    Attributes:
        _opt: Immutable configuration (endpoint, expiry, timeout, max key age).
        _mode: Where keys come from (literal certificate or remote endpoint).
        _freshness: Last refresh bookkeeping.
        _keys: kid -> public key. Only ever added to or overwritten, except by
            the optional max_key_age eviction.
        _seen_at: kid -> timestamp of the last successful response listing it.
    """

    def __init__(
        self,
        x509_cert: x509.Certificate | str | bytes | None = None,
        options: ValidatorOptions | None = None,
        *,
        session: HttpSession | None = None,
    ) -> None:
        """Initialize the key store.

        Args:
            x509_cert: Fixed certificate. When given, the store runs in literal
                mode and never contacts the network.
            options: Endpoint, expiry and timeout settings.
            session: HTTP session used for the fetch. Defaults to a
                requests.Session created on first use.

        Raises:
            ValueError: If x509_cert is given but cannot be parsed.
        """
        self._opt = options or ValidatorOptions()
        self._freshness = CacheFreshness(self._opt.expiry)
        self._keys: dict[str, PublicKey] = {}
        self._seen_at: dict[str, float] = {}
        self._session = session

        if x509_cert is not None:
            self._mode = KeySourceMode.LITERAL
            self._keys[LITERAL_KID] = load_public_key(x509_cert)
        else:
            self._mode = KeySourceMode.REMOTE

    @property
    def mode(self) -> KeySourceMode:
        return self._mode

    @property
    def state(self) -> FreshnessState:
        return self._freshness.state

    def keys(self) -> SigningKeySet:
        """Read-only snapshot of the kid -> public key mapping.

        Later refreshes do not show up in a snapshot already handed out.
        """
        return MappingProxyType(dict(self._keys))

    def refresh(self) -> bool:
        """Make sure the key set is current.

        Returns:
            True if the key set is usable (literal mode, still fresh, or just
            refreshed). False if a fetch was needed and failed.
        """
        if self._mode is KeySourceMode.LITERAL:
            return True

        if self._freshness.is_fresh():
            return True

        return self._fetch()

    def _fetch(self) -> bool:
        uri = self._opt.certs_uri
        log.debug("certs_refresh_started", uri=uri, state=self.state.value)

        try:
            response = self._get_session().get(uri, timeout=self._opt.http_timeout)
            if not 200 <= response.status_code < 300:
                log.warning("certs_refresh_failed", uri=uri, status=response.status_code)
                return False
            fetched = parse_certs(response.json())
        except (requests.RequestException, ValueError) as e:
            log.warning("certs_refresh_failed", uri=uri, error=str(e))
            return False

        now = self._freshness.mark_refreshed()
        self._keys.update(fetched)
        for kid in fetched:
            self._seen_at[kid] = now
        self._evict_retired(now)

        log.info(
            "certs_refreshed",
            uri=uri,
            fetched=sorted(fetched),
            key_count=len(self._keys),
        )
        return True

    def _evict_retired(self, now: float) -> None:
        max_age = self._opt.max_key_age
        if max_age is None:
            return

        retired = [kid for kid, seen in self._seen_at.items() if now - seen > max_age]
        for kid in retired:
            self._keys.pop(kid, None)
            self._seen_at.pop(kid, None)
        if retired:
            log.info("certs_evicted", kids=retired, max_key_age=max_age)

    def _get_session(self) -> HttpSession:
        if self._session is None:
            self._session = requests.Session()
        return self._session
