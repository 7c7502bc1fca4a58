"""Validator configuration.

ValidatorOptions is set once when a Validator is built and never changes
afterwards. Defaults target Google-issued ID tokens.

Example:
    ```python
    from dotenv import load_dotenv

    load_dotenv()
    validator = Validator(options=ValidatorOptions.from_env())
    ```
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Final

from .freshness import DEFAULT_EXPIRY

GOOGLE_CERTS_URI: Final[str] = "https://www.googleapis.com/oauth2/v1/certs"
"""Endpoint publishing Google's signing certificates as {kid: PEM}."""

# https://developers.google.com/identity/sign-in/web/backend-auth
GOOGLE_ISSUERS: Final[tuple[str, ...]] = (
    "accounts.google.com",
    "https://accounts.google.com",
)

DEFAULT_HTTP_TIMEOUT: Final[float] = 10.0

ENV_PREFIX: Final[str] = "ID_TOKEN_"


@dataclass(frozen=True, slots=True)
class ValidatorOptions:
    """Configuration for a Validator and its KeyStore.

    Attributes:
        expiry: Seconds a fetched key set stays fresh. Default: 3600.
        certs_uri: Key distribution endpoint returning {kid: PEM certificate}.
        issuers: Trusted `iss` values.
        http_timeout: Seconds before the certificate fetch is abandoned.
        leeway: Clock skew tolerance in seconds for exp/nbf/iat.
        max_key_age: If set, keys missing from every successful response for
            longer than this many seconds are evicted. None keeps them forever.
    """

    expiry: float = DEFAULT_EXPIRY
    certs_uri: str = GOOGLE_CERTS_URI
    issuers: tuple[str, ...] = GOOGLE_ISSUERS
    http_timeout: float = DEFAULT_HTTP_TIMEOUT
    leeway: int = 0
    max_key_age: float | None = None

    def __post_init__(self) -> None:
        if self.expiry <= 0:
            raise ValueError(f"expiry must be positive, got {self.expiry}")
        if self.http_timeout <= 0:
            raise ValueError(f"http_timeout must be positive, got {self.http_timeout}")
        if self.leeway < 0:
            raise ValueError(f"leeway cannot be negative, got {self.leeway}")
        if self.max_key_age is not None and self.max_key_age <= 0:
            raise ValueError(f"max_key_age must be positive, got {self.max_key_age}")
        if not self.issuers:
            raise ValueError("issuers cannot be empty")
        if not self.certs_uri:
            raise ValueError("certs_uri cannot be empty")

    @classmethod
    def from_env(
        cls,
        environ: Mapping[str, str] | None = None,
        prefix: str = ENV_PREFIX,
    ) -> ValidatorOptions:
        """Build options from environment variables.

        Recognized variables (with the default prefix): ID_TOKEN_CERTS_EXPIRY,
        ID_TOKEN_CERTS_URI, ID_TOKEN_ISSUERS (comma separated),
        ID_TOKEN_HTTP_TIMEOUT, ID_TOKEN_LEEWAY, ID_TOKEN_MAX_KEY_AGE. Unset or
        empty variables fall back to the defaults.

        Raises:
            ValueError: If a variable is set but cannot be parsed.
        """
        env = os.environ if environ is None else environ

        def get(name: str) -> str | None:
            value = env.get(prefix + name, "").strip()
            return value or None

        kwargs: dict[str, object] = {}
        if (expiry := get("CERTS_EXPIRY")) is not None:
            kwargs["expiry"] = float(expiry)
        if (uri := get("CERTS_URI")) is not None:
            kwargs["certs_uri"] = uri
        if (issuers := get("ISSUERS")) is not None:
            kwargs["issuers"] = tuple(i.strip() for i in issuers.split(",") if i.strip())
        if (timeout := get("HTTP_TIMEOUT")) is not None:
            kwargs["http_timeout"] = float(timeout)
        if (leeway := get("LEEWAY")) is not None:
            kwargs["leeway"] = int(leeway)
        if (max_age := get("MAX_KEY_AGE")) is not None:
            kwargs["max_key_age"] = float(max_age)

        return cls(**kwargs)  # type: ignore[arg-type]
