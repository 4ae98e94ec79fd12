"""
Caller authorization for the proxy.

Every endpoint except /health and / requires the shared proxy secret as a
Bearer token.
"""

from app.auth.proxy_secret import require_proxy_secret, verify_bearer

__all__ = ["require_proxy_secret", "verify_bearer"]
