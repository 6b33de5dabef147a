"""HTTP client construction for backend calls.

Every content generator owns (or is handed) one ``httpx.AsyncClient``; each
call opens its own request on it and releases the connection when done.
"""

import os
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

import httpx
import structlog

from gengateway.config.core import HTTPSettings


logger = structlog.get_logger(__name__)


class HTTPClientFactory:
    """Factory for creating HTTP clients from ``HTTPSettings``."""

    @staticmethod
    def create_client(
        *,
        http_settings: HTTPSettings | None = None,
        **kwargs: Any,
    ) -> httpx.AsyncClient:
        """Create an HTTP client.

        Args:
            http_settings: Timeout, HTTP/2 and TLS configuration
            **kwargs: Additional httpx.AsyncClient arguments

        Returns:
            Configured httpx.AsyncClient instance
        """
        http_settings = http_settings or HTTPSettings()

        # Get proxy configuration from environment
        proxy = _get_proxy_url()

        timeout = httpx.Timeout(
            http_settings.timeout,
            connect=http_settings.connect_timeout,
        )

        transport = httpx.AsyncHTTPTransport(
            http2=http_settings.http2,
            verify=http_settings.verify,
            proxy=proxy,
        )

        client_config = {
            "timeout": timeout,
            "transport": transport,
            **kwargs,
        }

        logger.debug(
            "http_client_created",
            timeout=http_settings.timeout,
            connect_timeout=http_settings.connect_timeout,
            http2=http_settings.http2,
            has_proxy=proxy is not None,
        )

        return httpx.AsyncClient(**client_config)

    @staticmethod
    @asynccontextmanager
    async def managed_client(
        http_settings: HTTPSettings | None = None, **kwargs: Any
    ) -> AsyncGenerator[httpx.AsyncClient, None]:
        """Create a managed HTTP client with automatic cleanup.

        Example:
            async with HTTPClientFactory.managed_client() as client:
                response = await client.post(url, json=body)
        """
        client = HTTPClientFactory.create_client(http_settings=http_settings, **kwargs)
        try:
            logger.debug("managed_http_client_created")
            yield client
        finally:
            await client.aclose()
            logger.debug("managed_http_client_closed")


def _get_proxy_url() -> str | None:
    """Get proxy URL from environment variables.

    Returns:
        str or None: Proxy URL if any proxy is set
    """
    # For HTTPS requests, prioritize HTTPS_PROXY
    https_proxy = os.environ.get("HTTPS_PROXY") or os.environ.get("https_proxy")
    all_proxy = os.environ.get("ALL_PROXY")
    http_proxy = os.environ.get("HTTP_PROXY") or os.environ.get("http_proxy")

    proxy_url = https_proxy or all_proxy or http_proxy

    if proxy_url:
        logger.debug("proxy_configured", proxy_url=proxy_url)

    return proxy_url
