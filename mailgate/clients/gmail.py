"""Gmail API client wrapper."""

from __future__ import annotations

import asyncio
import base64
from email.message import EmailMessage
from typing import Any

from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build

_METADATA_HEADERS = ["Subject", "From", "Date"]


class GmailClient:
    """Send and list messages on behalf of a user holding a bearer token."""

    def _service(self, access_token: str):
        credentials = Credentials(token=access_token)
        return build("gmail", "v1", credentials=credentials, cache_discovery=False)

    async def send_message(
        self,
        access_token: str,
        *,
        to: str,
        subject: str,
        body: str,
    ) -> str:
        """Send a plain-text message and return a confirmation string."""
        message = EmailMessage()
        message["To"] = to
        message["Subject"] = subject
        message.set_content(body)
        raw = base64.urlsafe_b64encode(message.as_bytes()).decode("ascii")

        def _execute_send() -> dict:
            service = self._service(access_token)
            return (
                service.users()
                .messages()
                .send(userId="me", body={"raw": raw})
                .execute()
            )

        sent = await asyncio.to_thread(_execute_send)
        return f"Email sent successfully (id {sent.get('id', 'unknown')})."

    async def list_messages(
        self,
        access_token: str,
        *,
        query: str = "",
        max_results: int = 10,
    ) -> list[dict[str, Any]]:
        """Return id, snippet and key headers of the newest matching messages."""

        def _execute_list() -> list[dict[str, Any]]:
            service = self._service(access_token)
            listing = (
                service.users()
                .messages()
                .list(userId="me", q=query, maxResults=max_results)
                .execute()
            )
            messages = []
            for item in listing.get("messages", []):
                detail = (
                    service.users()
                    .messages()
                    .get(
                        userId="me",
                        id=item["id"],
                        format="metadata",
                        metadataHeaders=_METADATA_HEADERS,
                    )
                    .execute()
                )
                messages.append(
                    {
                        "id": item["id"],
                        "snippet": detail.get("snippet", ""),
                        "headers": detail.get("payload", {}).get("headers", []),
                    }
                )
            return messages

        return await asyncio.to_thread(_execute_list)


__all__ = ["GmailClient"]
