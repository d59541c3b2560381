"""Data models for JSON-RPC payloads, translated Etherscan calls, and queued requests."""

from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

# (error, result) -> None
EndCallback = Callable[[Exception | None, Any], None]
NextCallback = Callable[[], None]


class HttpMethod(StrEnum):
    """HTTP verb used for an Etherscan call."""

    GET = "GET"
    POST = "POST"


class ResponseStyle(StrEnum):
    """Etherscan API module, which also decides how responses are classified."""

    PROXY = "proxy"
    ACCOUNT = "account"


class RpcPayload(BaseModel):
    """
    Inbound JSON-RPC request.

    Attributes
    ----------
    method : str
        RPC method name (e.g., 'eth_getBalance')
    params : list[Any]
        Ordered method parameters
    id : int | str | None
        Request identifier, passed through untouched
    jsonrpc : str
        Protocol version

    """

    method: str
    params: list[Any] = Field(default_factory=list)
    id: int | str | None = None
    jsonrpc: str = "2.0"


class EtherscanCall(BaseModel):
    """
    A JSON-RPC method translated into Etherscan query parameters.

    Attributes
    ----------
    http_method : HttpMethod
        HTTP verb
    module : ResponseStyle
        Etherscan API module ('proxy' or 'account')
    action : str
        Etherscan action name
    params : dict[str, Any]
        Method-specific query parameters, in insertion order

    """

    model_config = ConfigDict(frozen=True)

    http_method: HttpMethod = HttpMethod.GET
    module: ResponseStyle = ResponseStyle.PROXY
    action: str
    params: dict[str, Any] = Field(default_factory=dict)


class ProviderConfig(BaseModel):
    """
    Dispatcher configuration.

    Attributes
    ----------
    network : str
        Network name; 'mainnet' uses the bare API subdomain
    https : bool
        Use https instead of http
    api_key : str | None
        Etherscan API key appended to every call
    domain : str
        Etherscan API domain
    max_per_tick : int
        Queued calls released to the rate limiter per drain tick
    tick_interval : float
        Seconds between drain ticks
    max_requests_per_second : int
        Maximum calls started per second
    retry_failed : bool
        Re-queue calls refused with the forbidden-access marker
    max_retries : int | None
        Re-queue ceiling per call; None retries forever
    timeout : float
        HTTP timeout in seconds for the default transport

    """

    model_config = ConfigDict(validate_assignment=True)

    network: str = "mainnet"
    https: bool = False
    api_key: str | None = None
    domain: str = "etherscan.io"
    max_per_tick: int = Field(default=4, ge=1)
    tick_interval: float = Field(default=1.0, gt=0)
    max_requests_per_second: int = Field(default=5, ge=1)
    retry_failed: bool = True
    max_retries: int | None = Field(default=None, ge=0)
    timeout: float = Field(default=30.0, gt=0)

    @property
    def scheme(self) -> str:
        return "https" if self.https else "http"


@dataclass
class Request:
    """
    A single inbound call owned by the dispatcher until it terminates.

    Attributes
    ----------
    payload : RpcPayload
        Method and parameters
    end : EndCallback
        Completion callback, invoked exactly once with (error, result)
    next : NextCallback
        Fallthrough callback, invoked when the method is not handled here

    """

    payload: RpcPayload
    end: EndCallback
    next: NextCallback


@dataclass(frozen=True)
class QueuedItem:
    """
    A request plus the connection settings captured when it was enqueued.

    Later configuration changes never affect an item that is already queued.

    """

    request: Request
    scheme: str
    network: str
    api_key: str | None
    end: EndCallback

    @property
    def method(self) -> str:
        return self.request.payload.method

    @property
    def params(self) -> list[Any]:
        return self.request.payload.params
