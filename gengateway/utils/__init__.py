"""Utility helpers."""

from .token_counting import estimate_tokens


__all__ = ["estimate_tokens"]
