"""Caller-facing services."""

from .content_generator import CustomApiContentGenerator


__all__ = ["CustomApiContentGenerator"]
