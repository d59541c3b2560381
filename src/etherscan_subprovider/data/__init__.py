"""Network table and configuration loading."""

from etherscan_subprovider.data.loader import (
    get_chain_id,
    get_network_config,
    get_supported_networks,
    load_config,
    load_networks,
)

__all__ = [
    "get_chain_id",
    "get_network_config",
    "get_supported_networks",
    "load_config",
    "load_networks",
]
