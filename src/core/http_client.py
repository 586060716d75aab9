"""
Outbound HTTP client settings.
Replies are fire-and-forget: no retries, and each service owns its own client.
"""

import httpx
from typing import Any, Dict, Optional

from src.infra.config.settings import get_settings

settings = get_settings()


class HTTPClientConfig:
    """Keyword arguments for httpx.AsyncClient, per outbound service"""

    TIMEOUTS = {
        "default": "HTTP_DEFAULT_TIMEOUT",
        "telegram": "HTTP_TELEGRAM_TIMEOUT",
    }

    @classmethod
    def get_timeout(cls, service: str) -> float:
        setting = cls.TIMEOUTS.get(service, cls.TIMEOUTS["default"])
        return getattr(settings, setting)

    @classmethod
    def create_client_config(cls, service: str = "default", timeout: Optional[float] = None) -> Dict[str, Any]:
        """
        Args:
            service: Key of TIMEOUTS; unknown services get the default timeout
            timeout: Explicit timeout in seconds, overriding the service one

        Returns:
            Dict to unpack into httpx.AsyncClient(...)
        """
        return {
            "timeout": timeout or cls.get_timeout(service),
            "limits": httpx.Limits(
                max_connections=settings.HTTP_MAX_CONNECTIONS,
                max_keepalive_connections=settings.HTTP_MAX_KEEPALIVE_CONNECTIONS
            ),
            "headers": {
                "User-Agent": f"{settings.APP_NAME}/{settings.APP_VERSION}",
                "Accept": "application/json",
            },
            "follow_redirects": False,
        }
