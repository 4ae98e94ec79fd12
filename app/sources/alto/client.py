"""
Alto (Vebra) export API client.

Only three calls are used:
- GET {api_base}/branch                          -> token (credential Basic-Auth)
- GET {api_base}/branch/{branch_id}/property     -> property list XML
- GET {property_url}                             -> one property XML

API Documentation:
https://webservices.vebra.com/export/xsd/v13/

Every call after the token exchange authenticates with Basic-Auth where
the token is the username and the password is empty.
"""

import base64
import logging
from typing import Dict, Optional

import httpx

from app.core.api_errors import UpstreamFetchError
from app.core.http_client import BaseAPIClient

logger = logging.getLogger(__name__)


def basic_auth_header(username: str, password: str = "") -> str:
    """Build an HTTP Basic Authorization header value."""
    raw = f"{username}:{password}".encode("utf-8")
    return "Basic " + base64.b64encode(raw).decode("ascii")


class AltoClient(BaseAPIClient):
    """
    HTTP client for the Alto v13 export API.

    Requests are sequential and never retried; a failed call raises and
    the caller decides whether it aborts the import.
    """

    SOURCE_NAME = "alto"

    def __init__(
        self,
        api_base: str,
        branch_id: str,
        timeout: float = BaseAPIClient.DEFAULT_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(base_url=api_base, timeout=timeout, transport=transport)
        self.branch_id = branch_id

    def _token_headers(self, token: str) -> Dict[str, str]:
        return {"Authorization": basic_auth_header(token, "")}

    async def request_token(self, username: str, password: str) -> httpx.Response:
        """
        Call the branch endpoint with account credentials.

        The token is read from the response headers by TokenManager.
        """
        return await self._send(
            "branch",
            extra_headers={"Authorization": basic_auth_header(username, password)},
            resource_id="branch (token)",
        )

    async def fetch_xml(self, url: str, token: str) -> str:
        """
        GET url with token Basic-Auth and return the raw XML text.

        Raises:
            APIError: On non-2xx responses or transport failures
        """
        return await self._get_text(
            url,
            extra_headers=self._token_headers(token),
            resource_id=url,
        )

    async def list_properties(self, token: str) -> str:
        """Fetch the branch property list XML."""
        return await self.fetch_xml(f"branch/{self.branch_id}/property", token)

    async def fetch_property(self, url: str, token: str) -> str:
        """
        Fetch one property's detail XML from the URL given in the list.

        Raises:
            UpstreamFetchError: If url is not an absolute http(s) URL
        """
        if not url.startswith(("http://", "https://")):
            raise UpstreamFetchError(
                f"Invalid property URL: {url!r}", source=self.SOURCE_NAME
            )
        return await self.fetch_xml(url, token)
