"""Time-based freshness tracking for the signing key cache.

CacheFreshness records when the key set was last refreshed successfully and
answers whether a refresh attempt needs to hit the network. It has three
states:

- NO_REFRESH_YET: nothing has been fetched; a refresh must do I/O.
- FRESH: now <= last_refresh + expiry; a refresh is a no-op.
- STALE: the expiry window has elapsed; a refresh must do I/O.

The class holds no lock of its own. It is owned by a KeyStore, whose Validator
serializes every access.
"""

from __future__ import annotations

import enum
import time
from typing import Final

DEFAULT_EXPIRY: Final[int] = 3600
"""Default key cache lifetime in seconds (one hour)."""


class FreshnessState(enum.Enum):
    NO_REFRESH_YET = "no_refresh_yet"
    FRESH = "fresh"
    STALE = "stale"


class CacheFreshness:
    """Tracks the last successful refresh of a key cache.

    Attributes:
        _expiry: Seconds a successful refresh stays fresh.
        _last_refresh: Unix timestamp of the last successful refresh, or None.
    """

    def __init__(self, expiry: float = DEFAULT_EXPIRY) -> None:
        if expiry <= 0:
            raise ValueError(f"expiry must be positive, got {expiry}")

        self._expiry = expiry
        self._last_refresh: float | None = None

    @property
    def expiry(self) -> float:
        return self._expiry

    @property
    def last_refresh(self) -> float | None:
        return self._last_refresh

    @property
    def state(self) -> FreshnessState:
        if self._last_refresh is None:
            return FreshnessState.NO_REFRESH_YET
        if time.time() > self._last_refresh + self._expiry:
            return FreshnessState.STALE
        return FreshnessState.FRESH

    def is_fresh(self) -> bool:
        return self.state is FreshnessState.FRESH

    def mark_refreshed(self) -> float:
        """Record a successful refresh at the current time and return it."""
        self._last_refresh = time.time()
        return self._last_refresh
