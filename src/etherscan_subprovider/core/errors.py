"""Exceptions raised while dispatching calls to the Etherscan API."""

from collections.abc import Callable
from typing import Any

FORBIDDEN_MESSAGE = "403 - Forbidden: Access is denied."


class EtherscanError(Exception):
    """Base exception for all Etherscan dispatch errors."""


class TransportError(EtherscanError):
    """Network, DNS, connection, or timeout failure in the HTTP transport."""


class HttpStatusError(EtherscanError):
    """
    Etherscan answered with a non-success HTTP status.

    Parameters
    ----------
    status_code : int
        HTTP status code
    detail : str
        Reason phrase, or the raw body when no reason was given

    """

    def __init__(self, status_code: int, detail: str) -> None:
        super().__init__(detail)
        self.status_code = status_code
        self.detail = detail


class RateLimitedError(EtherscanError):
    """Etherscan refused the call with its forbidden-access marker."""

    def __init__(self, message: str = FORBIDDEN_MESSAGE) -> None:
        super().__init__(message)


class MalformedResponseError(EtherscanError):
    """Response body could not be decoded as JSON."""


class ApiLogicalError(EtherscanError):
    """
    Etherscan reported an error inside a well-formed response.

    Parameters
    ----------
    message : str
        Message reported by the API
    code : int | None
        JSON-RPC error code for proxy-style responses, if present

    """

    def __init__(self, message: str, code: int | None = None) -> None:
        super().__init__(message)
        self.code = code


class UnsupportedMethodError(EtherscanError):
    """No handler in the chain accepted the RPC method."""

    def __init__(self, method: str) -> None:
        super().__init__(f"Unsupported RPC method: {method}")
        self.method = method


class ProviderClosedError(EtherscanError):
    """The provider was closed before the call could be dispatched."""

    def __init__(self, message: str = "provider closed") -> None:
        super().__init__(message)


def normalize_error(err: Any) -> Exception:
    """
    Wrap non-exception error values into an EtherscanError.

    Parameters
    ----------
    err : Any
        Error value (exception, string, dict, ...)

    Returns
    -------
    Exception
        The original exception, or an EtherscanError carrying str(err)

    """
    if isinstance(err, Exception):
        return err
    return EtherscanError(str(err))


def normalize_callback(cb: Callable[[Exception | None, Any], None]) -> Callable[[Any, Any], None]:
    """Return a callback that normalizes its error argument before calling cb."""

    def wrapper(err: Any, result: Any = None) -> None:
        cb(normalize_error(err) if err else None, result)

    return wrapper
