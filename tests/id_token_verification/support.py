"""Shared helpers for the test suite: keys, tokens, fake HTTP, fake clock."""

import json
import threading
import time
from datetime import datetime, timedelta, timezone
from typing import Any

import jwt
import requests
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.x509.oid import NameOID

AUDIENCE = "myapp"
ISSUER = "accounts.google.com"


def self_signed(private_key: Any, common_name: str) -> x509.Certificate:
    name = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, common_name)])
    return (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(private_key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(datetime(2025, 1, 1, tzinfo=timezone.utc))
        .not_valid_after(datetime(2035, 12, 31, tzinfo=timezone.utc))
        .sign(private_key, hashes.SHA256())
    )


class Signer:
    """An RSA key pair plus its self-signed certificate."""

    def __init__(self, common_name: str):
        self.private_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
        self.cert = self_signed(self.private_key, common_name)
        self.pem = self.cert.public_bytes(serialization.Encoding.PEM).decode("ascii")
        self.der = self.cert.public_bytes(serialization.Encoding.DER)

    def token(self, *, expired: bool = False, drop: tuple[str, ...] = (), **claims: Any) -> str:
        """Sign an ID token. Defaults to a valid token for AUDIENCE/ISSUER."""
        now = datetime.now(tz=timezone.utc)
        payload: dict[str, Any] = {
            "iss": ISSUER,
            "aud": AUDIENCE,
            "sub": "1234567890",
            "email": "user@example.com",
            "iat": now - timedelta(hours=2) if expired else now,
            "exp": now - timedelta(hours=1) if expired else now + timedelta(minutes=10),
        }
        payload.update(claims)
        for name in drop:
            payload.pop(name, None)
        return jwt.encode(payload, self.private_key, algorithm="RS256")


def make_response(status: int = 200, body: Any = None, raw: bytes | None = None) -> requests.Response:
    response = requests.Response()
    response.status_code = status
    response._content = raw if raw is not None else json.dumps(body).encode("utf-8")
    response.encoding = "utf-8"
    return response


class FakeSession:
    """
    Minimal requests.Session stand-in.
    Serves queued responses (or raises queued exceptions); the last one repeats.
    """

    def __init__(self, *responses: requests.Response | Exception, delay: float = 0.0):
        self._responses = list(responses)
        self._delay = delay
        self._lock = threading.Lock()
        self._in_flight = 0
        self.max_in_flight = 0
        self.calls: list[tuple[str, float]] = []

    def get(self, url: str, *, timeout: float) -> requests.Response:
        with self._lock:
            self.calls.append((url, timeout))
            self._in_flight += 1
            self.max_in_flight = max(self.max_in_flight, self._in_flight)
            item = self._responses.pop(0) if len(self._responses) > 1 else self._responses[0]
        try:
            if self._delay:
                time.sleep(self._delay)
            if isinstance(item, Exception):
                raise item
            return item
        finally:
            with self._lock:
                self._in_flight -= 1


class Clock:
    def __init__(self, now: float = 1_000_000.0):
        self.now = now

    def advance(self, seconds: float) -> None:
        self.now += seconds
