"""
Google OAuth utilities.

These helpers build the consent URL, sign the OAuth ``state`` value, and talk
to the token endpoint for code exchange and refresh.
"""

from __future__ import annotations

import base64
import binascii
import hmac
import json
import logging
from hashlib import sha256
from typing import Any, Dict, Tuple
from urllib.parse import urlencode

import httpx

from mailgate.core.config import GoogleSettings, OAuthSettings
from mailgate.core.errors import BadRequestError, ProviderExchangeError

logger = logging.getLogger(__name__)


class OAuthStateEncoder:
    """Encode and decode OAuth state values to guard against tampering."""

    def __init__(self, secret_key: str) -> None:
        self._secret_key = secret_key.encode("utf-8")

    def encode(self, payload: Dict[str, Any]) -> str:
        serialized = json.dumps(payload, separators=(",", ":"), sort_keys=True)
        signature = hmac.new(self._secret_key, serialized.encode("utf-8"), sha256).digest()
        return base64.urlsafe_b64encode(signature + serialized.encode("utf-8")).decode("utf-8")

    def decode(self, token: str) -> Dict[str, Any]:
        try:
            decoded = base64.urlsafe_b64decode(token.encode("utf-8"))
        except (binascii.Error, ValueError) as exc:
            raise BadRequestError("Malformed OAuth state.") from exc
        signature, serialized = decoded[:32], decoded[32:]
        expected_signature = hmac.new(self._secret_key, serialized, sha256).digest()
        if not hmac.compare_digest(signature, expected_signature):
            raise BadRequestError("Invalid OAuth state signature.")
        try:
            payload = json.loads(serialized)
        except ValueError as exc:
            raise BadRequestError("Malformed OAuth state.") from exc
        if not isinstance(payload, dict):
            raise BadRequestError("Malformed OAuth state.")
        return payload


class GoogleOAuthClient:
    """Build Google authorization URLs and exchange authorization codes."""

    AUTH_BASE_URL = "https://accounts.google.com/o/oauth2/v2/auth"
    TOKEN_URL = "https://oauth2.googleapis.com/token"

    def __init__(
        self,
        google_settings: GoogleSettings,
        oauth_settings: OAuthSettings,
        *,
        timeout: float = 10.0,
    ) -> None:
        self._google = google_settings
        self._oauth = oauth_settings
        self._timeout = timeout

    def build_authorization_url(self, state: str) -> str:
        """Construct the consent URL; offline access plus forced consent yields a refresh token."""
        params = {
            "client_id": self._google.client_id,
            "redirect_uri": self._oauth.redirect_uri,
            "response_type": "code",
            "scope": " ".join(self._oauth.scopes),
            "access_type": "offline",
            "prompt": "consent",
            "state": state,
        }
        return f"{self.AUTH_BASE_URL}?{urlencode(params)}"

    async def _post_token(self, payload: Dict[str, str]) -> Dict[str, Any]:
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.post(self.TOKEN_URL, data=payload)
        except httpx.HTTPError as exc:
            logger.warning("Token endpoint unreachable: %s", exc.__class__.__name__)
            raise ProviderExchangeError("Token endpoint unreachable.") from exc

        if response.status_code != httpx.codes.OK:
            logger.warning(
                "Token endpoint rejected %s grant with status %s",
                payload.get("grant_type"),
                response.status_code,
            )
            raise ProviderExchangeError("Provider rejected the token request.")

        try:
            return response.json()
        except ValueError as exc:
            raise ProviderExchangeError("Provider returned an unreadable token payload.") from exc

    async def exchange_authorization_code(self, code: str) -> Tuple[str, str, int]:
        """
        Exchange an authorization code for tokens.

        Returns a tuple of (access_token, refresh_token, expires_in_seconds).
        """
        token_payload = await self._post_token(
            {
                "code": code,
                "client_id": self._google.client_id or "",
                "client_secret": self._google.client_secret or "",
                "redirect_uri": self._oauth.redirect_uri,
                "grant_type": "authorization_code",
            }
        )
        access_token = token_payload.get("access_token")
        refresh_token = token_payload.get("refresh_token")
        expires_in = token_payload.get("expires_in")

        if not access_token or not refresh_token or not expires_in:
            raise ProviderExchangeError("Incomplete token payload returned from Google.")

        return access_token, refresh_token, int(expires_in)

    async def refresh_token(self, refresh_token: str) -> Tuple[str, int]:
        """Refresh the access token using a stored refresh token."""
        token_payload = await self._post_token(
            {
                "client_id": self._google.client_id or "",
                "client_secret": self._google.client_secret or "",
                "refresh_token": refresh_token,
                "grant_type": "refresh_token",
            }
        )
        access_token = token_payload.get("access_token")
        expires_in = token_payload.get("expires_in")

        if not access_token or not expires_in:
            raise ProviderExchangeError("Incomplete refresh payload returned from Google.")

        return access_token, int(expires_in)


__all__ = [
    "GoogleOAuthClient",
    "OAuthStateEncoder",
]
