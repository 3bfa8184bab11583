from __future__ import annotations

import asyncio
import base64
import json
from datetime import UTC, datetime, timedelta

import httpx
import pytest
from conftest import AUTH_URL, FakeClock, SpotApiStub

from rsspot_exporter.auth import Credentials, TokenAuthenticator, decode_jwt_expiry
from rsspot_exporter.constants import DEFAULT_CLIENT_ID
from rsspot_exporter.errors import AuthenticationError
from rsspot_exporter.http import SpotTransport


def _jwt_with_exp(expiry: datetime) -> str:
    return _jwt({"exp": int(expiry.timestamp())})


def _jwt(payload: dict[str, object]) -> str:
    header = {"alg": "none", "typ": "JWT"}

    def encode(value: object) -> str:
        return base64.urlsafe_b64encode(json.dumps(value).encode("utf-8")).decode("utf-8").rstrip("=")

    return f"{encode(header)}.{encode(payload)}.signature"


def _authenticator(
    spot_api: SpotApiStub,
    clock: FakeClock,
    *,
    auth_base_url: str = AUTH_URL,
) -> TokenAuthenticator:
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(spot_api))
    transport = SpotTransport(base_url="https://spot.rackspace.com", http_client=http_client)
    return TokenAuthenticator(
        Credentials(refresh_token="test-refresh-token", auth_base_url=auth_base_url),
        transport=transport,
        clock=clock,
    )


def test_decode_jwt_expiry() -> None:
    expiry = datetime.now(UTC) + timedelta(minutes=5)
    token = _jwt_with_exp(expiry)
    decoded = decode_jwt_expiry(token)
    assert decoded is not None
    assert abs((decoded - expiry).total_seconds()) < 2


def test_decode_jwt_expiry_rejects_opaque_tokens() -> None:
    assert decode_jwt_expiry("") is None
    assert decode_jwt_expiry("mock-id-token") is None
    assert decode_jwt_expiry("a.!!!.c") is None


@pytest.mark.parametrize(
    ("error", "message"),
    [
        (AuthenticationError(401, "bad -"), "Failed to authenticate: 401 - bad -"),
        (AuthenticationError(401, "trailing "), "Failed to authenticate: 401 - trailing "),
        (AuthenticationError(401), "Failed to authenticate: 401"),
        (AuthenticationError(None, "ConnectError"), "Failed to authenticate: ConnectError"),
    ],
)
def test_authentication_error_keeps_provider_body(error: AuthenticationError, message: str) -> None:
    assert str(error) == message


@pytest.mark.parametrize("exp", [10**20, -(10**20), 1e308])
def test_decode_jwt_expiry_ignores_out_of_range_exp(exp: float) -> None:
    assert decode_jwt_expiry(_jwt({"exp": exp})) is None


def test_credentials_repr_hides_refresh_token() -> None:
    credentials = Credentials(refresh_token="super-secret")
    assert "super-secret" not in repr(credentials)
    assert credentials.client_id == DEFAULT_CLIENT_ID
    assert credentials.token_url == "https://login.spot.rackspace.com/oauth/token"


@pytest.mark.asyncio
async def test_exchange_posts_refresh_token_form(spot_api: SpotApiStub, clock: FakeClock) -> None:
    authenticator = _authenticator(spot_api, clock)

    token = await authenticator.ensure_valid_token()

    assert token == "mock-id-token"
    assert len(spot_api.token_requests) == 1
    request = spot_api.token_requests[0]
    assert request.method == "POST"
    assert str(request.url) == "https://login.spot.rackspace.com/oauth/token"
    assert request.headers["Content-Type"] == "application/x-www-form-urlencoded"
    assert spot_api.token_form() == {
        "grant_type": "refresh_token",
        "client_id": "mwG3lUMV8KyeMqHe4fJ5Bb3nM1vBvRNa",
        "refresh_token": "test-refresh-token",
    }


@pytest.mark.asyncio
async def test_id_token_is_the_bearer_credential(spot_api: SpotApiStub, clock: FakeClock) -> None:
    spot_api.token_payload = {"id_token": "the-id-token", "access_token": "the-access-token", "expires_in": 3600}
    authenticator = _authenticator(spot_api, clock)

    assert await authenticator.ensure_valid_token() == "the-id-token"


@pytest.mark.asyncio
async def test_custom_auth_url(spot_api: SpotApiStub, clock: FakeClock) -> None:
    authenticator = _authenticator(spot_api, clock, auth_base_url="https://custom-auth.example.com/")

    await authenticator.ensure_valid_token()

    assert str(spot_api.token_requests[0].url) == "https://custom-auth.example.com/oauth/token"


@pytest.mark.asyncio
async def test_cached_token_is_reused_until_renewal_window(spot_api: SpotApiStub, clock: FakeClock) -> None:
    authenticator = _authenticator(spot_api, clock)

    await authenticator.ensure_valid_token()
    await authenticator.ensure_valid_token()
    assert len(spot_api.token_requests) == 1

    clock.advance(86400 - 61)
    await authenticator.ensure_valid_token()
    assert len(spot_api.token_requests) == 1

    clock.advance(1)
    await authenticator.ensure_valid_token()
    assert len(spot_api.token_requests) == 2

    await authenticator.ensure_valid_token()
    assert len(spot_api.token_requests) == 2


@pytest.mark.asyncio
async def test_expiry_is_exchange_time_plus_expires_in(spot_api: SpotApiStub, clock: FakeClock) -> None:
    authenticator = _authenticator(spot_api, clock)
    assert authenticator.expires_at is None

    await authenticator.ensure_valid_token()

    assert authenticator.expires_at == clock.now + timedelta(seconds=86400)
    assert authenticator.has_valid_token()


@pytest.mark.asyncio
async def test_missing_expires_in_falls_back_to_jwt_exp(spot_api: SpotApiStub, clock: FakeClock) -> None:
    expiry = clock.now + timedelta(hours=1)
    spot_api.token_payload = {"id_token": _jwt_with_exp(expiry)}
    authenticator = _authenticator(spot_api, clock)

    await authenticator.ensure_valid_token()
    await authenticator.ensure_valid_token()

    assert authenticator.expires_at == expiry
    assert len(spot_api.token_requests) == 1


@pytest.mark.asyncio
async def test_token_without_lifetime_is_not_cached(spot_api: SpotApiStub, clock: FakeClock) -> None:
    spot_api.token_payload = {"id_token": "opaque"}
    authenticator = _authenticator(spot_api, clock)

    assert await authenticator.ensure_valid_token() == "opaque"
    assert await authenticator.ensure_valid_token() == "opaque"

    assert len(spot_api.token_requests) == 2


@pytest.mark.asyncio
async def test_rejected_exchange_raises_authentication_error(spot_api: SpotApiStub, clock: FakeClock) -> None:
    spot_api.token_status = 401
    authenticator = _authenticator(spot_api, clock)

    with pytest.raises(AuthenticationError, match="Failed to authenticate") as exc_info:
        await authenticator.ensure_valid_token()

    assert exc_info.value.status_code == 401
    assert "Invalid refresh token" in str(exc_info.value)
    assert not authenticator.has_valid_token()


@pytest.mark.asyncio
async def test_missing_id_token_raises_authentication_error(spot_api: SpotApiStub, clock: FakeClock) -> None:
    spot_api.token_payload = {"access_token": "only-access", "expires_in": 3600}
    authenticator = _authenticator(spot_api, clock)

    with pytest.raises(AuthenticationError, match="missing id_token"):
        await authenticator.ensure_valid_token()


@pytest.mark.asyncio
async def test_unreachable_token_endpoint_raises_authentication_error(clock: FakeClock) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    transport = SpotTransport(
        base_url="https://spot.rackspace.com",
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )
    authenticator = TokenAuthenticator(Credentials(refresh_token="t"), transport=transport, clock=clock)

    with pytest.raises(AuthenticationError, match="Failed to authenticate") as exc_info:
        await authenticator.ensure_valid_token()
    assert exc_info.value.status_code is None


@pytest.mark.asyncio
async def test_concurrent_callers_all_receive_a_valid_token(spot_api: SpotApiStub, clock: FakeClock) -> None:
    authenticator = _authenticator(spot_api, clock)

    tokens = await asyncio.gather(*(authenticator.ensure_valid_token() for _ in range(5)))

    assert set(tokens) == {"mock-id-token"}
    assert len(spot_api.token_requests) >= 1
    assert authenticator.has_valid_token()


@pytest.mark.asyncio
async def test_invalidate_forces_a_new_exchange(spot_api: SpotApiStub, clock: FakeClock) -> None:
    authenticator = _authenticator(spot_api, clock)
    await authenticator.ensure_valid_token()

    authenticator.invalidate()
    await authenticator.ensure_valid_token()

    assert len(spot_api.token_requests) == 2


@pytest.mark.asyncio
@pytest.mark.parametrize("expires_in", ["nan", "inf", "-inf", 1e300, 10**400, "soon"])
async def test_unusable_expires_in_leaves_token_uncached(
    spot_api: SpotApiStub, clock: FakeClock, expires_in: object
) -> None:
    spot_api.token_payload = {"id_token": "opaque", "expires_in": expires_in}
    authenticator = _authenticator(spot_api, clock)

    assert await authenticator.ensure_valid_token() == "opaque"
    assert await authenticator.ensure_valid_token() == "opaque"

    assert len(spot_api.token_requests) == 2
    assert not authenticator.has_valid_token()


@pytest.mark.asyncio
async def test_unusable_expires_in_falls_back_to_jwt_exp(spot_api: SpotApiStub, clock: FakeClock) -> None:
    expiry = clock.now + timedelta(hours=1)
    spot_api.token_payload = {"id_token": _jwt_with_exp(expiry), "expires_in": "inf"}
    authenticator = _authenticator(spot_api, clock)

    await authenticator.ensure_valid_token()
    await authenticator.ensure_valid_token()

    assert authenticator.expires_at == expiry
    assert len(spot_api.token_requests) == 1


@pytest.mark.asyncio
async def test_out_of_range_jwt_exp_leaves_token_uncached(spot_api: SpotApiStub, clock: FakeClock) -> None:
    token = _jwt({"exp": 10**20})
    spot_api.token_payload = {"id_token": token}
    authenticator = _authenticator(spot_api, clock)

    assert await authenticator.ensure_valid_token() == token
    assert await authenticator.ensure_valid_token() == token

    assert len(spot_api.token_requests) == 2
