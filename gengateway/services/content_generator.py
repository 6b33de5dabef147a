"""Content generation against a custom OpenAI, Anthropic or Qwen backend."""

from collections.abc import AsyncIterator
from typing import Any

import httpx

from gengateway.config.core import HTTPSettings
from gengateway.config.settings import Settings, get_settings
from gengateway.core.errors import (
    EmptyResponseError,
    TransportError,
    UnsupportedOperationError,
    WireError,
)
from gengateway.core.http_client import HTTPClientFactory
from gengateway.core.logging import get_logger
from gengateway.correction import ToolFormatConverter
from gengateway.formatters.base import BaseTranslator
from gengateway.formatters.selector import select_translator
from gengateway.models.canonical import (
    CanonicalRequest,
    CanonicalResponse,
    CanonicalResponseChunk,
    CountTokensResponse,
)
from gengateway.models.types import ApiFormat
from gengateway.streaming.decoder import SSEEventSource
from gengateway.utils.token_counting import estimate_tokens


logger = get_logger(__name__)


class CustomApiContentGenerator:
    """Generates content through a custom backend endpoint.

    The wire protocol is resolved from the configured format and the endpoint
    host on every call; callers only see canonical requests and responses.

    Example:
        async with CustomApiContentGenerator(url, key) as generator:
            response = await generator.generate_content(request)
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        api_format: ApiFormat = ApiFormat.QWEN,
        *,
        http_client: httpx.AsyncClient | None = None,
        http_settings: HTTPSettings | None = None,
        project_root: str | None = None,
    ) -> None:
        """Initialize the generator.

        Args:
            base_url: Backend base URL
            api_key: Backend API key
            api_format: Configured wire protocol
            http_client: Client to reuse; it is not closed by ``aclose``
            http_settings: Settings for a client created by the generator
            project_root: Prefix stripped from paths in corrected tool calls
        """
        self.base_url = base_url
        self.api_format = api_format
        self._api_key = api_key
        self.converter = ToolFormatConverter(project_root)
        self._owns_client = http_client is None
        self._client = http_client or HTTPClientFactory.create_client(
            http_settings=http_settings
        )

    @classmethod
    def from_settings(
        cls,
        settings: Settings | None = None,
        *,
        http_client: httpx.AsyncClient | None = None,
    ) -> "CustomApiContentGenerator":
        """Build a generator from application settings."""
        settings = settings or get_settings()
        return cls(
            settings.api.base_url,
            settings.api.api_key.get_secret_value(),
            settings.api.format,
            http_client=http_client,
            http_settings=settings.http,
            project_root=settings.correction.project_root,
        )

    def _select_translator(self) -> BaseTranslator:
        return select_translator(self.api_format, self.base_url, self.converter)

    async def generate_content(self, request: CanonicalRequest) -> CanonicalResponse:
        """
        Generate a complete response.

        Raises:
            TransportError: If the endpoint cannot be reached
            WireError: If the backend answers with a non-success status
            EmptyResponseError: If the answer carries no usable content
        """
        translator = self._select_translator()
        url = translator.endpoint_url(self.base_url)
        body = translator.build_request(request, stream=False)
        headers = translator.build_headers(self._api_key)

        logger.debug(
            "generate_content_start",
            url=url,
            api_format=translator.api_format.value,
            model=request.model,
        )

        try:
            response = await self._client.post(url, json=body, headers=headers)
        except httpx.TransportError as e:
            logger.error("transport_error", url=url, error=str(e))
            raise TransportError(f"Failed to reach {url}: {e}") from e

        if not response.is_success:
            self._raise_wire_error(response)

        try:
            payload = response.json()
        except ValueError as e:
            raise EmptyResponseError("Response body is not valid JSON") from e

        result = translator.parse_response(payload)
        logger.debug(
            "generate_content_completed",
            finish_reason=result.finish_reason.value if result.finish_reason else None,
            part_count=len(result.parts),
        )
        return result

    async def generate_content_stream(
        self, request: CanonicalRequest
    ) -> AsyncIterator[CanonicalResponseChunk]:
        """
        Stream incremental responses.

        The sequence ends with exactly one terminal chunk. The connection is
        released when the sequence ends, fails or is abandoned.

        Raises:
            TransportError: If the endpoint cannot be reached or the stream
                ends before the backend finished
            WireError: If the backend answers with a non-success status or
                reports an error inside the stream
        """
        translator = self._select_translator()
        processor = translator.create_stream_processor()
        url = translator.endpoint_url(self.base_url)
        body = translator.build_request(request, stream=True)
        headers = translator.build_headers(self._api_key)

        logger.debug(
            "generate_content_stream_start",
            url=url,
            api_format=translator.api_format.value,
            model=request.model,
        )

        try:
            async with self._client.stream(
                "POST", url, json=body, headers=headers
            ) as response:
                if not response.is_success:
                    await response.aread()
                    self._raise_wire_error(response)

                async for event in SSEEventSource(response).get_events():
                    if processor.is_end_of_stream(event):
                        for chunk in processor.complete():
                            yield chunk
                        logger.debug("generate_content_stream_completed", url=url)
                        return

                    chunk = processor.process(event.data)
                    if chunk is not None:
                        yield chunk

                if processor.finish_reason is None:
                    logger.error("stream_truncated", url=url)
                    raise TransportError(
                        "Stream ended before the backend signalled completion"
                    )

                logger.warning(
                    "stream_ended_without_sentinel",
                    url=url,
                    finish_reason=processor.finish_reason.value,
                )
                for chunk in processor.complete():
                    yield chunk
        except httpx.TransportError as e:
            logger.error("transport_error", url=url, error=str(e))
            raise TransportError(f"Stream from {url} failed: {e}") from e

    async def count_tokens(self, request: CanonicalRequest) -> CountTokensResponse:
        """Estimate the token count of ``request``; no network call is made."""
        return estimate_tokens(request)

    async def embed_content(self, request: Any) -> Any:
        raise UnsupportedOperationError(
            "Embedding is not supported for custom API backends"
        )

    def _raise_wire_error(self, response: httpx.Response) -> None:
        logger.error(
            "wire_error",
            status_code=response.status_code,
            status_text=response.reason_phrase,
            body=response.text[:500],
        )
        raise WireError(response.status_code, response.reason_phrase, response.text)

    async def aclose(self) -> None:
        """Close the HTTP client if the generator created it."""
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "CustomApiContentGenerator":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.aclose()
