"""Core functionality including models, errors, method registry, and pipeline contract."""

from etherscan_subprovider.core.errors import (
    ApiLogicalError,
    EtherscanError,
    HttpStatusError,
    MalformedResponseError,
    ProviderClosedError,
    RateLimitedError,
    TransportError,
    UnsupportedMethodError,
)
from etherscan_subprovider.core.models import (
    EtherscanCall,
    HttpMethod,
    ProviderConfig,
    QueuedItem,
    Request,
    ResponseStyle,
    RpcPayload,
)
from etherscan_subprovider.core.registry import MethodRegistry
from etherscan_subprovider.core.subprovider import ProviderEngine, Subprovider

__all__ = [
    "ApiLogicalError",
    "EtherscanCall",
    "EtherscanError",
    "HttpMethod",
    "HttpStatusError",
    "MalformedResponseError",
    "MethodRegistry",
    "ProviderClosedError",
    "ProviderConfig",
    "ProviderEngine",
    "QueuedItem",
    "RateLimitedError",
    "Request",
    "ResponseStyle",
    "RpcPayload",
    "Subprovider",
    "TransportError",
    "UnsupportedMethodError",
]
