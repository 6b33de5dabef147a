"""Token estimation for canonical requests."""

import math

from gengateway.config.constants import CHARS_PER_TOKEN
from gengateway.core.logging import get_logger
from gengateway.models.canonical import CanonicalRequest, CountTokensResponse


logger = get_logger(__name__)


def count_text_characters(request: CanonicalRequest) -> int:
    """Total number of characters in the text parts of ``request.contents``."""
    return sum(
        len(part.text)
        for content in request.contents
        for part in content.parts
        if part.text is not None
    )


def estimate_tokens(request: CanonicalRequest) -> CountTokensResponse:
    """Estimate the token count of a request.

    Custom backends expose no token counting endpoint, so the count is the
    character total divided by four, rounded up. It is an approximation.
    """
    characters = count_text_characters(request)
    total = math.ceil(characters / CHARS_PER_TOKEN)
    logger.debug("tokens_estimated", characters=characters, total_tokens=total)
    return CountTokensResponse(total_tokens=total)
