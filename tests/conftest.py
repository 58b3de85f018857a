"""Pytest configuration shared across the suite."""

try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover
    import _bootstrap  # type: ignore # noqa: F401

import pytest

from mailgate.clients.sqlite_store import SQLiteTokenStore
from mailgate.core.config import GoogleSettings, OAuthSettings


class FakeClock:
    """Controllable replacement for ``time.time``."""

    def __init__(self, now: float = 1_700_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def anyio_backend() -> str:
    """Force AnyIO-powered tests to run against asyncio backend only."""
    return "asyncio"


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def token_store(tmp_path, clock) -> SQLiteTokenStore:
    return SQLiteTokenStore(str(tmp_path / "db" / "tokens.db"), clock=clock)


@pytest.fixture
def google_settings() -> GoogleSettings:
    return GoogleSettings(GOOGLE_CLIENT_ID="client", GOOGLE_CLIENT_SECRET="secret")


@pytest.fixture
def oauth_settings() -> OAuthSettings:
    return OAuthSettings(
        GMAIL_OAUTH_BASE_URL="http://localhost:3001",
        OAUTH_SCOPES=(
            "https://www.googleapis.com/auth/gmail.readonly",
            "https://www.googleapis.com/auth/gmail.send",
        ),
    )
