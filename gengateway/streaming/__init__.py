"""Streaming response decoding."""

from .decoder import SSEDecoder, SSEEventSource, StreamEvent


__all__ = ["SSEDecoder", "SSEEventSource", "StreamEvent"]
