"""
Exceptions raised by generated records and call stubs.
"""

from typing import Any


class AutoJsonClientError(Exception):
    """Base class for all errors raised by autojsonclient."""


class DescriptionError(AutoJsonClientError, ValueError):
    """The service description cannot be turned into a client."""


class TypeMismatch(AutoJsonClientError, TypeError):
    """A value does not match the type declared for it in the service description."""


class TransportError(AutoJsonClientError):
    """The request could not be delivered or the response was not JSON."""


class RpcError(AutoJsonClientError):
    """The server answered with a JSON-RPC error object."""

    def __init__(self, message: str, code: int | None = None, data: Any = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.data = data

    @classmethod
    def from_response(cls, error: Any) -> "RpcError":
        # some servers send the message as a bare string instead of {code, message}
        if isinstance(error, dict):
            return cls(str(error.get("message", "")), error.get("code"), error.get("data"))
        return cls(str(error))
