"""
Shim error taxonomy.

Recoverable failures derive from ShimException and are surfaced to the caller.
UnsupportedDataTypeDefect marks a programming error and deliberately sits outside
that hierarchy.
"""

from typing import Optional


class ShimException(RuntimeError):
    """Base class for errors a shim caller is expected to handle."""


class UnknownDataType(ShimException):
    """Raised when a request names a data type the shim does not support."""

    def __init__(self, data_type_key: Optional[str], time_range: Optional[str] = None) -> None:
        self.data_type_key = data_type_key
        self.time_range = time_range
        message = f"Null or invalid data type parameter: {data_type_key!r}"
        if time_range:
            message += f" for {time_range}"
        super().__init__(f"{message}, cannot retrieve data.")


class TransportFailure(ShimException):
    """Raised when the HTTP call to Withings fails or its body cannot be read."""


class MalformedVendorResponse(ShimException):
    """Raised when a Withings response is not JSON or lacks the fields a mapper needs."""


class UnsupportedDataTypeDefect(Exception):
    """A data type reached dispatch without a mapper. Indicates a bug, not bad input."""
