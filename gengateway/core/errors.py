"""Gateway error hierarchy.

Only the network call and the extraction of the top-level response shape can
fail; translators are total and never raise these.
"""


class GatewayError(Exception):
    """Base class for all gateway failures."""

    pass


class TransportError(GatewayError):
    """The endpoint could not be reached or the stream was cut short."""

    pass


class WireError(GatewayError):
    """The backend answered with a non-success HTTP status."""

    def __init__(self, status_code: int, status_text: str, body: str) -> None:
        self.status_code = status_code
        self.status_text = status_text
        self.body = body
        super().__init__(f"API error: {status_code} {status_text}. Details: {body}")


class BackendStreamError(WireError):
    """The backend reported an error event inside a successful stream."""

    def __init__(self, error_type: str, message: str) -> None:
        self.error_type = error_type
        super().__init__(200, error_type, message)


class EmptyResponseError(GatewayError):
    """A success response carried no usable choice or content."""

    pass


class UnsupportedOperationError(GatewayError):
    """The requested operation is not available for custom backends."""

    pass


class DecodeWarning(UserWarning):
    """A streamed event could not be decoded and was discarded."""

    pass


__all__ = [
    "BackendStreamError",
    "DecodeWarning",
    "EmptyResponseError",
    "GatewayError",
    "TransportError",
    "UnsupportedOperationError",
    "WireError",
]
