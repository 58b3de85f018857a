from __future__ import annotations

import pytest

from mailgate.core.errors import NotFoundError, ProviderExchangeError
from mailgate.services.credential_resolver import CredentialResolver
from mailgate.services.token_refresh import TokenRefreshService


class DummyOAuthClient:
    def __init__(self, *, refreshed_token: str = "refreshed-access", fail: bool = False) -> None:
        self.refreshed_token = refreshed_token
        self.fail = fail
        self.calls: list[str] = []

    async def refresh_token(self, refresh_token: str) -> tuple[str, int]:
        self.calls.append(refresh_token)
        if self.fail:
            raise ProviderExchangeError("Provider rejected the token request.")
        return self.refreshed_token, 3600


@pytest.mark.asyncio
async def test_refresh_uses_stored_refresh_token(token_store, clock) -> None:
    token_store.upsert("123", "gmail", refresh_token="refresh-token", access_token="initial", expires_in=-60)
    oauth_client = DummyOAuthClient()
    service = TokenRefreshService(token_store, oauth_client)

    record = await service.refresh("123", "gmail")

    assert oauth_client.calls == ["refresh-token"]
    assert record.access_token.get_secret_value() == "refreshed-access"
    assert record.expires_at == clock.now + 3600
    assert CredentialResolver(token_store, clock=clock).get_valid_access_token("123", "gmail") == "refreshed-access"


@pytest.mark.asyncio
async def test_refresh_prefers_explicit_refresh_token(token_store) -> None:
    token_store.upsert("123", "gmail", refresh_token="stored")
    oauth_client = DummyOAuthClient()

    await TokenRefreshService(token_store, oauth_client).refresh("123", "gmail", "supplied")

    assert oauth_client.calls == ["supplied"]
    assert token_store.get("123", "gmail").refresh_token.get_secret_value() == "stored"


@pytest.mark.asyncio
async def test_refresh_without_record_skips_provider(token_store) -> None:
    oauth_client = DummyOAuthClient()

    with pytest.raises(NotFoundError):
        await TokenRefreshService(token_store, oauth_client).refresh("nobody", "gmail", "r")

    assert oauth_client.calls == []


@pytest.mark.asyncio
async def test_provider_failure_leaves_record_untouched(token_store) -> None:
    token_store.upsert("123", "gmail", refresh_token="r", access_token="a", expires_in=30)
    before = token_store.get("123", "gmail")

    with pytest.raises(ProviderExchangeError):
        await TokenRefreshService(token_store, DummyOAuthClient(fail=True)).refresh("123", "gmail")

    assert token_store.get("123", "gmail") == before
