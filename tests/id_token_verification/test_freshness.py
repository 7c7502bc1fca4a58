import pytest

import id_token_verification as m


def test_new_cache_has_not_refreshed(clock):
    cache = m.CacheFreshness(expiry=60)

    assert cache.state is m.FreshnessState.NO_REFRESH_YET
    assert cache.last_refresh is None
    assert cache.is_fresh() is False


def test_fresh_until_expiry_elapses(clock):
    cache = m.CacheFreshness(expiry=60)

    assert cache.mark_refreshed() == clock.now
    assert cache.state is m.FreshnessState.FRESH

    clock.advance(60)  # now == last + expiry is still fresh
    assert cache.is_fresh() is True

    clock.advance(0.5)
    assert cache.state is m.FreshnessState.STALE


def test_refresh_after_stale_is_fresh_again(clock):
    cache = m.CacheFreshness(expiry=10)
    cache.mark_refreshed()
    clock.advance(11)
    assert cache.state is m.FreshnessState.STALE

    cache.mark_refreshed()
    assert cache.state is m.FreshnessState.FRESH
    assert cache.last_refresh == clock.now


@pytest.mark.parametrize("expiry", [0, -1])
def test_expiry_must_be_positive(expiry: float):
    with pytest.raises(ValueError):
        m.CacheFreshness(expiry=expiry)


def test_default_expiry_is_one_hour():
    assert m.CacheFreshness().expiry == 3600
