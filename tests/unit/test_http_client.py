import pytest

from smsoutbox.infrastructure.http import client as http_client_mod


@pytest.fixture(autouse=True)
async def reset_http_client():
    """
    Ensure each test starts with a clean module-level client
    and leaves it clean afterwards.
    """
    # hard reset before
    if getattr(http_client_mod, "_client", None) is not None:
        await http_client_mod.close_http_client()
    http_client_mod._client = None

    yield

    # hard reset after
    if getattr(http_client_mod, "_client", None) is not None:
        await http_client_mod.close_http_client()
    http_client_mod._client = None


@pytest.mark.asyncio
async def test_get_before_open_raises():
    with pytest.raises(RuntimeError):
        _ = http_client_mod.get_http_client()


@pytest.mark.asyncio
async def test_open_returns_singleton_with_settings_timeout():
    c1 = await http_client_mod.open_http_client()
    assert c1 is not None
    assert not c1.is_closed

    # Singleton behavior
    c2 = await http_client_mod.open_http_client()
    assert c1 is c2
    assert http_client_mod.get_http_client() is c1

    t = c1.timeout
    expected = http_client_mod.get_settings().http_timeout_seconds
    assert float(t.connect) == pytest.approx(expected)
    assert float(t.read) == pytest.approx(expected)
    assert c1.headers["User-Agent"] == http_client_mod.USER_AGENT


@pytest.mark.asyncio
async def test_explicit_timeout_wins():
    c = await http_client_mod.open_http_client(timeout=2.5)
    assert float(c.timeout.pool) == pytest.approx(2.5)


@pytest.mark.asyncio
async def test_close_http_client_is_idempotent_and_drops_singleton():
    c1 = await http_client_mod.open_http_client()
    await http_client_mod.close_http_client()
    assert c1.is_closed
    assert http_client_mod._client is None

    # close again (idempotent, should not raise)
    await http_client_mod.close_http_client()
    assert http_client_mod._client is None

    c2 = await http_client_mod.open_http_client()
    assert c2 is not c1
    assert not c2.is_closed
