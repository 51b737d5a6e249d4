"""REST client for the notification endpoints."""

import logging
from typing import Any

import httpx

logger = logging.getLogger(__name__)


class NotificationAPIError(Exception):
    """A notification request failed or was rejected by the backend."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


def error_message(response: httpx.Response) -> str:
    """Best-effort extraction of the backend's error message."""
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(body, dict):
        for key in ("message", "detail"):
            if isinstance(body.get(key), str):
                return body[key]
    return response.reason_phrase


class NotificationsAPI:
    """Thin wrapper around ``/api/notifications``.

    Shares the session's HTTP client so cookies set at login are sent.
    """

    def __init__(self, client: httpx.AsyncClient):
        self._client = client

    async def _request(self, method: str, path: str) -> Any:
        try:
            response = await self._client.request(method, path)
        except httpx.HTTPError as e:
            logger.warning("%s %s failed: %s", method, path, e)
            raise NotificationAPIError(f"Request failed: {e}") from e

        if response.is_error:
            message = error_message(response)
            logger.warning(
                "%s %s returned status %d: %s", method, path, response.status_code, message
            )
            raise NotificationAPIError(message, status_code=response.status_code)

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise NotificationAPIError(
                f"Malformed JSON from {path}", status_code=response.status_code
            ) from e

    async def list_notifications(self) -> Any:
        """Fetch the raw notification records for the current user."""
        return await self._request("GET", "/api/notifications")

    async def mark_read(self, notification_id: int | str) -> Any:
        """Mark one notification read server-side."""
        return await self._request("PATCH", f"/api/notifications/{notification_id}/read")

    async def mark_all_read(self) -> Any:
        """Mark every notification read server-side."""
        return await self._request("PATCH", "/api/notifications/read-all")
