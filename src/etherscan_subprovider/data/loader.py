"""Network table and provider configuration loader."""

import logging
import os
from pathlib import Path
from typing import Any

import yaml

from etherscan_subprovider.core.models import ProviderConfig

logger = logging.getLogger(__name__)

ENV_API_KEY = "ETHERSCAN_API_KEY"
ENV_NETWORK = "ETHERSCAN_NETWORK"


def load_networks() -> dict[str, Any]:
    """
    Load the bundled network table from networks.yaml.

    Returns
    -------
    dict[str, Any]
        Network table keyed by network name under "networks"

    """
    path = Path(__file__).parent / "networks.yaml"
    with open(path, encoding="utf-8") as f:
        return yaml.safe_load(f)


def get_network_config(network: str) -> dict[str, Any]:
    """
    Get configuration for a specific network.

    Parameters
    ----------
    network : str
        Network name (e.g., 'mainnet', 'sepolia')

    Returns
    -------
    dict[str, Any]
        Network configuration including chain id

    Raises
    ------
    KeyError
        If network is not found in configuration

    """
    return load_networks()["networks"][network]


def get_supported_networks() -> list[str]:
    """
    Get list of all bundled network names.

    Returns
    -------
    list[str]
        List of network names

    """
    return list(load_networks()["networks"].keys())


def get_chain_id(network: str) -> int:
    """
    Get numeric chain ID.

    Parameters
    ----------
    network : str
        Network name

    Returns
    -------
    int
        Chain ID

    """
    return get_network_config(network)["chain_id"]


def load_config(path: str | Path | None = None, **overrides: Any) -> ProviderConfig:
    """
    Build a ProviderConfig from a YAML file, the environment, and overrides.

    Later sources win: file, then ETHERSCAN_API_KEY / ETHERSCAN_NETWORK, then
    keyword overrides. Overrides set to None are ignored.

    Parameters
    ----------
    path : str | Path | None
        Optional YAML file with ProviderConfig fields at the top level
    **overrides : Any
        Explicit field values

    Returns
    -------
    ProviderConfig
        Validated configuration

    """
    values: dict[str, Any] = {}

    if path is not None:
        with open(path, encoding="utf-8") as f:
            values.update(yaml.safe_load(f) or {})
        logger.debug("Loaded provider config from %s", path)

    if os.environ.get(ENV_API_KEY):
        values["api_key"] = os.environ[ENV_API_KEY]
    if os.environ.get(ENV_NETWORK):
        values["network"] = os.environ[ENV_NETWORK]

    values.update({key: value for key, value in overrides.items() if value is not None})

    network = values.get("network")
    if network and network not in get_supported_networks():
        logger.warning("Network %s is not in the bundled network table", network)

    return ProviderConfig(**values)
