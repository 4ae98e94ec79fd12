"""
Base HTTP client for XML-over-HTTP vendor APIs.

Provides a reusable foundation for external API clients: a lazily created,
pooled httpx.AsyncClient and standardized error classification. Requests
are NOT retried; callers decide whether a failure aborts the run or is
counted and skipped.
"""
import logging
from abc import ABC
from typing import Dict, Optional
import httpx

from app.core.api_errors import UpstreamFetchError, classify_http_error

logger = logging.getLogger(__name__)


class BaseAPIClient(ABC):
    """
    Base class for external API clients.

    Provides unified:
    - HTTP GET handling returning the raw response text
    - Standardized error classification
    - Connection pooling

    Subclasses should:
    - Set SOURCE_NAME and pass base_url
    - Implement API-specific methods that call _get_text()
    - Override _build_headers() for API-specific headers
    """

    # Override in subclass
    SOURCE_NAME: str = "unknown"

    # Default settings
    DEFAULT_TIMEOUT: float = 30.0
    DEFAULT_CONNECT_TIMEOUT: float = 10.0
    DEFAULT_MAX_CONNECTIONS: int = 4

    def __init__(
        self,
        base_url: str,
        timeout: float = DEFAULT_TIMEOUT,
        connect_timeout: float = DEFAULT_CONNECT_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the API client.

        Args:
            base_url: Prefix for internal relative paths
            timeout: Request timeout in seconds
            connect_timeout: Connection timeout in seconds
            transport: Optional custom httpx transport (used by tests)
        """
        self.base_url = base_url
        self.timeout = timeout
        self.connect_timeout = min(connect_timeout, timeout)
        self.transport = transport

        # HTTP client (lazy initialization)
        self._client: Optional[httpx.AsyncClient] = None

        logger.info(
            f"Initialized {self.SOURCE_NAME} client: "
            f"base_url={self.base_url}, timeout={timeout}"
        )

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client with connection pooling."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout, connect=self.connect_timeout),
                follow_redirects=True,
                limits=httpx.Limits(
                    max_connections=self.DEFAULT_MAX_CONNECTIONS,
                    max_keepalive_connections=self.DEFAULT_MAX_CONNECTIONS,
                ),
                transport=self.transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client and release resources."""
        if self._client:
            await self._client.aclose()
            self._client = None
            logger.debug(f"{self.SOURCE_NAME} client closed")

    def _build_headers(self) -> Dict[str, str]:
        """
        Build request headers.

        Override to add API-specific headers.

        Returns:
            Dict of headers
        """
        return {
            "Accept": "application/xml",
            "User-Agent": f"AltoProxy/{self.SOURCE_NAME}-client"
        }

    def _resolve_url(self, url: str) -> str:
        """
        Return url unchanged when absolute, else prepend the base URL.

        Only http(s) URLs are treated as absolute.
        """
        if url.startswith(("http://", "https://")):
            return url
        return f"{self.base_url.rstrip('/')}/{url.lstrip('/')}"

    async def _send(
        self,
        url: str,
        extra_headers: Optional[Dict[str, str]] = None,
        resource_id: str = "unknown",
    ) -> httpx.Response:
        """
        Issue one GET request and return the successful response.

        Args:
            url: Full URL or path (if path, base_url is prepended)
            extra_headers: Additional headers (e.g. Authorization)
            resource_id: Identifier for logging

        Returns:
            The 2xx httpx.Response

        Raises:
            APIError: Classified error for non-2xx responses
            UpstreamFetchError: On transport failures or an unusable URL
        """
        url = self._resolve_url(url)
        headers = self._build_headers()
        if extra_headers:
            headers.update(extra_headers)

        client = await self._get_client()
        logger.debug(f"[{self.SOURCE_NAME}] GET {resource_id}")

        try:
            response = await client.get(url, headers=headers)
        except (httpx.RequestError, httpx.InvalidURL) as e:
            raise UpstreamFetchError(
                message=f"Request failed: {e}",
                source=self.SOURCE_NAME,
            ) from e

        if not response.is_success:
            raise classify_http_error(
                response.status_code,
                response.text,
                self.SOURCE_NAME,
            )

        logger.debug(f"[{self.SOURCE_NAME}] Successfully fetched {resource_id}")
        return response

    async def _get_text(
        self,
        url: str,
        extra_headers: Optional[Dict[str, str]] = None,
        resource_id: str = "unknown",
    ) -> str:
        """GET url and return the response body as text."""
        response = await self._send(url, extra_headers, resource_id)
        return response.text
