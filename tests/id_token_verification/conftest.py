import types

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec
from flask import Flask

from id_token_verification import freshness

from .support import Clock, FakeSession, Signer, self_signed


@pytest.fixture()
def app():
    app = Flask(__name__)
    app.config["TESTING"] = True
    return app


@pytest.fixture(scope="session")
def signer_a() -> Signer:
    return Signer("key-a.example.com")


@pytest.fixture(scope="session")
def signer_b() -> Signer:
    return Signer("key-b.example.com")


@pytest.fixture(scope="session")
def ec_cert_pem() -> str:
    key = ec.generate_private_key(ec.SECP256R1())
    return self_signed(key, "ec.example.com").public_bytes(serialization.Encoding.PEM).decode(
        "ascii"
    )


@pytest.fixture
def fake_session():
    """
    Factory fixture that returns a function.

    Usage in tests:
        session = fake_session(make_response(200, {"kid": pem}))
    """

    def _make(*responses, delay: float = 0.0) -> FakeSession:
        return FakeSession(*responses, delay=delay)

    return _make


@pytest.fixture
def clock(monkeypatch: pytest.MonkeyPatch) -> Clock:
    """Controls the time seen by the key cache freshness tracking only."""
    c = Clock()
    monkeypatch.setattr(freshness, "time", types.SimpleNamespace(time=lambda: c.now))
    return c
