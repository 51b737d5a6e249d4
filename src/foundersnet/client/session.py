"""Session context: the current user, the HTTP client and the query cache.

One Session is created per signed-in client and handed to everything that
needs backend access. Logging out tears the whole context down so nothing
fetched for one user leaks to the next.
"""

import logging
from typing import Any

import httpx
from pydantic import BaseModel, ValidationError

from foundersnet.client.http import NotificationAPIError, NotificationsAPI, error_message
from foundersnet.config import ClientConfig

logger = logging.getLogger(__name__)

QueryKey = tuple[str, ...]


class User(BaseModel):
    """Current user as returned by ``/api/user``."""

    id: int | str
    name: str
    username: str
    email: str | None = None
    role: str | None = None
    avatarUrl: str | None = None
    profileCompleted: int | None = None

    model_config = {"extra": "ignore"}


class QueryCache:
    """Cache of fetched data keyed by query-key tuples.

    Invalidating a key drops it and every key it prefixes.
    """

    def __init__(self) -> None:
        self._data: dict[QueryKey, Any] = {}

    def get(self, key: QueryKey) -> Any | None:
        return self._data.get(key)

    def set(self, key: QueryKey, value: Any) -> None:
        self._data[key] = value

    def invalidate(self, prefix: QueryKey) -> int:
        """Drop cached entries under a key prefix; returns how many."""
        stale = [key for key in self._data if key[: len(prefix)] == prefix]
        for key in stale:
            del self._data[key]
        return len(stale)

    def clear(self) -> None:
        self._data.clear()

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __len__(self) -> int:
        return len(self._data)


class Session:
    """Explicit session context for one client."""

    def __init__(
        self,
        config: ClientConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.config = config
        self.cache = QueryCache()
        self.client = httpx.AsyncClient(
            base_url=config.base_url,
            timeout=config.request_timeout,
            transport=transport,
        )
        self.notifications = NotificationsAPI(self.client)

    async def __aenter__(self) -> "Session":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    @property
    def user(self) -> User | None:
        return self.cache.get(("user",))

    @property
    def user_id(self) -> int | str | None:
        """User ID for the socket handshake; configured value wins."""
        if self.config.user_id is not None:
            return self.config.user_id
        return self.user.id if self.user else None

    async def fetch_user(self) -> User | None:
        """Load the signed-in user; None when not authenticated."""
        try:
            response = await self.client.get("/api/user")
        except httpx.HTTPError as e:
            logger.error("Error fetching user: %s", e)
            return None

        if response.status_code == 401:
            logger.debug("Not authenticated")
            self.cache.set(("user",), None)
            return None
        if response.is_error:
            logger.error("User fetch failed with status %d", response.status_code)
            return None

        try:
            user = User.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            logger.error("Unexpected response from /api/user: %s", e)
            return None
        self.cache.set(("user",), user)
        return user

    async def login(self, username: str, password: str) -> User:
        """Sign in; the session cookie is kept on the HTTP client."""
        logger.info("Login attempt for %s", username)
        try:
            response = await self.client.post(
                "/api/login", json={"username": username, "password": password}
            )
        except httpx.HTTPError as e:
            raise NotificationAPIError(f"Login request failed: {e}") from e

        if response.is_error:
            raise NotificationAPIError(
                error_message(response) or "Invalid username or password",
                status_code=response.status_code,
            )

        try:
            user = User.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            raise NotificationAPIError(
                "Unexpected login response", status_code=response.status_code
            ) from e
        self.cache.set(("user",), user)
        self.cache.invalidate(("profile",))
        self.cache.invalidate(("connections",))
        logger.info("Logged in as %s (id=%s)", user.username, user.id)
        return user

    async def logout(self) -> None:
        """Sign out and clear all session state.

        Local state is cleared even when the request fails; the failure is
        then re-raised.
        """
        try:
            response = await self.client.post("/api/logout")
            if response.is_error:
                raise NotificationAPIError(
                    error_message(response), status_code=response.status_code
                )
        except httpx.HTTPError as e:
            raise NotificationAPIError(f"Logout request failed: {e}") from e
        finally:
            self.cache.clear()
            self.client.cookies.clear()
            logger.info("Session cleared")

    async def close(self) -> None:
        await self.client.aclose()
