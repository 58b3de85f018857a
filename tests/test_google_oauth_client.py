try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

from urllib.parse import parse_qs

import httpx
import pytest

from mailgate.clients import google_auth
from mailgate.clients.google_auth import GoogleOAuthClient, OAuthStateEncoder
from mailgate.core.errors import BadRequestError, ProviderExchangeError


@pytest.fixture
def token_endpoint(monkeypatch):
    """Route the client's token requests to an in-memory handler."""
    real_client = httpx.AsyncClient
    requests: list[dict] = []
    responses: list[httpx.Response] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append({k: v[0] for k, v in parse_qs(request.content.decode()).items()})
        return responses.pop(0)

    def factory(**kwargs):
        return real_client(transport=httpx.MockTransport(handler), **kwargs)

    monkeypatch.setattr(google_auth.httpx, "AsyncClient", factory)
    return requests, responses


@pytest.fixture
def client(google_settings, oauth_settings) -> GoogleOAuthClient:
    return GoogleOAuthClient(google_settings, oauth_settings)


@pytest.mark.asyncio
async def test_exchange_returns_tokens(client, token_endpoint) -> None:
    requests, responses = token_endpoint
    responses.append(
        httpx.Response(
            200,
            json={"access_token": "a", "refresh_token": "r", "expires_in": 3599},
        )
    )

    assert await client.exchange_authorization_code("the-code") == ("a", "r", 3599)
    assert requests[0]["grant_type"] == "authorization_code"
    assert requests[0]["code"] == "the-code"
    assert requests[0]["redirect_uri"] == "http://localhost:3001/auth/callback"


@pytest.mark.asyncio
async def test_exchange_without_refresh_token_fails(client, token_endpoint) -> None:
    _, responses = token_endpoint
    responses.append(httpx.Response(200, json={"access_token": "a", "expires_in": 3599}))

    with pytest.raises(ProviderExchangeError):
        await client.exchange_authorization_code("the-code")


@pytest.mark.asyncio
async def test_rejected_code_raises_provider_error(client, token_endpoint) -> None:
    _, responses = token_endpoint
    responses.append(httpx.Response(400, json={"error": "invalid_grant"}))

    with pytest.raises(ProviderExchangeError) as excinfo:
        await client.exchange_authorization_code("used-code")
    assert "invalid_grant" not in str(excinfo.value)


@pytest.mark.asyncio
async def test_network_failure_raises_provider_error(client, monkeypatch) -> None:
    real_client = httpx.AsyncClient

    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("boom", request=request)

    monkeypatch.setattr(
        google_auth.httpx,
        "AsyncClient",
        lambda **kwargs: real_client(transport=httpx.MockTransport(handler), **kwargs),
    )

    with pytest.raises(ProviderExchangeError):
        await client.refresh_token("r")


@pytest.mark.asyncio
async def test_refresh_returns_new_access_token(client, token_endpoint) -> None:
    requests, responses = token_endpoint
    responses.append(httpx.Response(200, json={"access_token": "fresh", "expires_in": "3600"}))

    assert await client.refresh_token("r1") == ("fresh", 3600)
    assert requests[0]["grant_type"] == "refresh_token"
    assert requests[0]["refresh_token"] == "r1"


def test_state_encoder_round_trip_and_tamper_detection() -> None:
    encoder = OAuthStateEncoder("secret")
    token = encoder.encode({"user_id": "u1", "issued_at": 1.0})

    assert encoder.decode(token) == {"user_id": "u1", "issued_at": 1.0}
    with pytest.raises(BadRequestError):
        OAuthStateEncoder("other").decode(token)
