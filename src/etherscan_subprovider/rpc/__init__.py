"""RPC layer: method translation, Etherscan client, rate limiting, and dispatch."""

# Import the method table to trigger auto-registration
from etherscan_subprovider.rpc import methods  # noqa: F401
from etherscan_subprovider.rpc.client import EtherscanClient, build_uri, parse_response, to_query_string
from etherscan_subprovider.rpc.dispatcher import EtherscanSubprovider
from etherscan_subprovider.rpc.retry import RetryConfig
from etherscan_subprovider.rpc.throttle import RateLimiter, ThrottledExecutor

__all__ = [
    "EtherscanClient",
    "EtherscanSubprovider",
    "RateLimiter",
    "RetryConfig",
    "ThrottledExecutor",
    "build_uri",
    "parse_response",
    "to_query_string",
]
