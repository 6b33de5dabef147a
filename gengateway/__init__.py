"""Multi-format generation gateway.

Translates one canonical content-generation model into the OpenAI-compatible,
Anthropic and Qwen wire protocols.
"""

from ._version import __version__


__all__ = ["__version__"]
