"""Rate-limited, retrying JSON-RPC subprovider backed by the Etherscan API."""

from etherscan_subprovider.core import ProviderConfig, ProviderEngine
from etherscan_subprovider.rpc import EtherscanClient, EtherscanSubprovider

__version__ = "0.1.0"

__all__ = [
    "EtherscanClient",
    "EtherscanSubprovider",
    "ProviderConfig",
    "ProviderEngine",
]
