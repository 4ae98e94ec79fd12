"""
Alto token cache.

Alto issues a short-lived token from GET {api_base}/branch when called with
the account's Basic-Auth credentials. The token comes back in a response
header named "token" and is then used as the Basic-Auth username for every
other call.

One TokenManager is shared by the whole process. The cache is deliberately
unsynchronized: two imports racing past an expired token may both refresh,
and the last one wins.
"""

import logging
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Optional

from app.core.api_errors import AuthError, UpstreamFetchError

if TYPE_CHECKING:
    from app.sources.alto.client import AltoClient

logger = logging.getLogger(__name__)

DEFAULT_TOKEN_TTL_SECONDS = 20 * 60


@dataclass
class CachedToken:
    value: str
    obtained_at: float


class TokenManager:
    """
    Obtains and caches the Alto bearer token.

    Args:
        client: AltoClient used for the token request
        username: Alto datafeed username
        password: Alto datafeed password
        ttl_seconds: How long a token is reused
        clock: Zero-argument callable returning seconds (time.monotonic by default)
    """

    def __init__(
        self,
        client: "AltoClient",
        username: str,
        password: str,
        ttl_seconds: float = DEFAULT_TOKEN_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.client = client
        self.username = username
        self.password = password
        self.ttl_seconds = ttl_seconds
        self.clock = clock
        self._cached: Optional[CachedToken] = None

    @property
    def cached(self) -> Optional[CachedToken]:
        return self._cached

    def _is_fresh(self, now: float) -> bool:
        return (
            self._cached is not None
            and now - self._cached.obtained_at < self.ttl_seconds
        )

    async def get_token(self) -> str:
        """
        Return a valid token, refreshing it if the cached one has expired.

        Raises:
            AuthError: If Alto rejects the credentials or sends no token
        """
        if self._is_fresh(self.clock()):
            logger.debug("Using cached Alto token")
            return self._cached.value
        return await self.refresh()

    async def refresh(self) -> str:
        """
        Request a new token from Alto and cache it.

        Raises:
            AuthError: On a non-2xx response or a missing token header
        """
        logger.info("Requesting new token from Alto")
        now = self.clock()

        try:
            response = await self.client.request_token(self.username, self.password)
        except AuthError:
            raise
        except UpstreamFetchError as e:
            if e.status_code is None:
                raise
            raise AuthError(
                message=f"Failed to get token: {e.status_code}",
                source="alto",
                status_code=e.status_code,
            ) from e

        # httpx headers are case-insensitive: covers "token" and "Token"
        token = response.headers.get("token")
        if not token:
            raise AuthError(message="No token received from Alto", source="alto")

        self._cached = CachedToken(value=token, obtained_at=now)
        logger.info("New Alto token received")
        return token

    def invalidate(self) -> None:
        """Drop the cached token so the next get_token() refreshes."""
        self._cached = None
