"""
Error classification for the Alto proxy.

Whole-import failures (AuthError, UpstreamFetchError on the property list)
abort the request; per-property failures (UpstreamFetchError on a detail
fetch, PropertyError) are counted and the import continues.
"""

from typing import Optional


class APIError(Exception):
    """
    Base exception for all API-related errors.

    Attributes:
        message: Human-readable error description
        source: Component name (e.g., 'alto', 'config')
        status_code: HTTP status code if applicable
    """

    def __init__(
        self,
        message: str,
        source: Optional[str] = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(message)
        self.message = message
        self.source = source
        self.status_code = status_code

    def __str__(self) -> str:
        parts = [self.message]
        if self.source:
            parts.insert(0, f"[{self.source}]")
        if self.status_code:
            parts.append(f"(HTTP {self.status_code})")
        return " ".join(parts)


class AuthError(APIError):
    """
    The vendor rejected our credentials or returned no token.

    Aborts the whole import.
    """

    def __init__(
        self,
        message: str = "Authentication failed - check Alto credentials",
        source: Optional[str] = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(message=message, source=source, status_code=status_code)


class UpstreamFetchError(APIError):
    """
    A vendor GET failed: non-2xx status or a transport-level error.

    status_code is None for transport failures (timeouts, refused
    connections).
    """


class PropertyError(APIError):
    """A single property could not be decoded or mapped."""

    def __init__(
        self,
        message: str,
        source: Optional[str] = None,
        prop_id: Optional[str] = None,
    ):
        if prop_id:
            message = f"{message}: {prop_id}"
        super().__init__(message=message, source=source)
        self.prop_id = prop_id


class ProxyAuthorizationError(APIError):
    """Caller did not present the shared proxy secret."""

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message=message, status_code=401)


class ConfigurationError(APIError):
    """
    Configuration error - missing required settings.

    Raised at startup when credentials or the proxy secret are not set.
    """

    def __init__(
        self,
        message: str,
        source: Optional[str] = None,
        missing_config: Optional[str] = None,
    ):
        super().__init__(message=message, source=source)
        self.missing_config = missing_config


def classify_http_error(
    status_code: int,
    response_text: str = "",
    source: Optional[str] = None,
) -> APIError:
    """
    Classify a non-2xx vendor response into the appropriate APIError subclass.

    Args:
        status_code: HTTP status code
        response_text: Response body text
        source: Component name

    Returns:
        AuthError for 401/403, UpstreamFetchError otherwise
    """
    snippet = response_text[:200]
    if status_code in (401, 403):
        return AuthError(
            message=f"Authentication failed: {snippet}".rstrip(": "),
            source=source,
            status_code=status_code,
        )
    return UpstreamFetchError(
        message=f"HTTP error {status_code}: {snippet}".rstrip(": "),
        source=source,
        status_code=status_code,
    )
