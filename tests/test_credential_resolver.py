try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

import sqlite3

import pytest

from mailgate.core.errors import AuthenticationRequired
from mailgate.services.credential_resolver import CredentialResolver


@pytest.fixture
def resolver(token_store, clock) -> CredentialResolver:
    return CredentialResolver(token_store, clock=clock)


def test_fresh_token_is_returned(token_store, resolver) -> None:
    token_store.upsert("u1", "gmail", refresh_token="r1", access_token="a1", expires_in=3600)

    assert resolver.get_valid_access_token("u1", "gmail") == "a1"


def test_already_expired_token_is_rejected(token_store, resolver) -> None:
    token_store.upsert("u1", "gmail", refresh_token="r1", access_token="a1", expires_in=-10)

    assert resolver.get_valid_access_token("u1", "gmail") is None


def test_missing_record_or_access_token(token_store, resolver) -> None:
    assert resolver.get_valid_access_token("nobody", "gmail") is None

    token_store.upsert("u1", "gmail", refresh_token="r1")
    assert resolver.get_valid_access_token("u1", "gmail") is None


def test_access_token_without_expiry_is_not_trusted(token_store, resolver) -> None:
    token_store.upsert("u1", "gmail", refresh_token="r1", access_token="a1")

    assert resolver.get_valid_access_token("u1", "gmail") is None


def test_expiry_boundary_counts_as_expired(token_store, resolver, clock) -> None:
    token_store.upsert("u1", "gmail", refresh_token="r1", access_token="a1", expires_in=100)

    clock.advance(99)
    assert resolver.get_valid_access_token("u1", "gmail") == "a1"

    clock.advance(1)
    assert resolver.get_valid_access_token("u1", "gmail") is None


def test_resolver_does_not_modify_store(token_store, resolver, clock) -> None:
    token_store.upsert("u1", "gmail", refresh_token="r1", access_token="a1", expires_in=10)
    before = token_store.get("u1", "gmail")
    clock.advance(20)

    assert resolver.get_valid_access_token("u1", "gmail") is None
    assert token_store.get("u1", "gmail") == before


def test_require_access_token_raises_when_unavailable(resolver) -> None:
    with pytest.raises(AuthenticationRequired):
        resolver.require_access_token("u1", "gmail")


def test_empty_stored_access_token_is_rejected(tmp_path, token_store, resolver) -> None:
    token_store.upsert("u1", "gmail", refresh_token="r1", access_token="a1", expires_in=3600)
    conn = sqlite3.connect(tmp_path / "db" / "tokens.db")
    with conn:
        conn.execute("UPDATE oauth_tokens SET access_token = '' WHERE user_id = 'u1'")
    conn.close()

    assert resolver.get_valid_access_token("u1", "gmail") is None
    with pytest.raises(AuthenticationRequired):
        resolver.require_access_token("u1", "gmail")
