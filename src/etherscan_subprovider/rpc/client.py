"""Etherscan API client: URI construction, HTTP call, and response classification."""

import json
import logging
from typing import Any
from urllib.parse import quote

import httpx

from etherscan_subprovider.core.errors import (
    FORBIDDEN_MESSAGE,
    ApiLogicalError,
    HttpStatusError,
    MalformedResponseError,
    RateLimitedError,
    TransportError,
)
from etherscan_subprovider.core.models import EtherscanCall, ResponseStyle

logger = logging.getLogger(__name__)

DEFAULT_DOMAIN = "etherscan.io"

# Networks served from the bare "api" subdomain
DEFAULT_NETWORKS = {"", "api", "mainnet"}

# Unreserved characters plus the sub-delims !*'() are left unescaped
_SAFE_CHARS = "-_.!~*'()"


def build_subdomain(network: str | None) -> str:
    """
    Map a network name to its Etherscan API subdomain.

    Parameters
    ----------
    network : str | None
        Network name (e.g., 'mainnet', 'goerli')

    Returns
    -------
    str
        'api' for the default network, 'api-<network>' otherwise

    """
    if network is None or network.lower() in DEFAULT_NETWORKS:
        return "api"
    return f"api-{network.lower()}"


def _format_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def to_query_string(params: dict[str, Any]) -> str:
    """
    Percent-encode params into a query string, skipping None values.

    Parameters
    ----------
    params : dict[str, Any]
        Query parameters in the order they should appear

    Returns
    -------
    str
        Encoded 'key=value' pairs joined with '&'

    """
    return "&".join(
        f"{quote(str(key), safe=_SAFE_CHARS)}={quote(_format_value(value), safe=_SAFE_CHARS)}"
        for key, value in params.items()
        if value is not None
    )


def build_uri(
    scheme: str,
    network: str | None,
    call: EtherscanCall,
    api_key: str | None = None,
    domain: str = DEFAULT_DOMAIN,
) -> str:
    """
    Build the full Etherscan API URI for a call.

    Module and action come first, then the method params, then the API key.

    Parameters
    ----------
    scheme : str
        'http' or 'https'
    network : str | None
        Network name
    call : EtherscanCall
        Translated call
    api_key : str | None
        Etherscan API key, omitted when empty
    domain : str
        API domain

    Returns
    -------
    str
        Request URI

    """
    query: dict[str, Any] = {"module": call.module.value, "action": call.action}
    query.update(call.params)
    if api_key:
        query["apikey"] = api_key
    return f"{scheme}://{build_subdomain(network)}.{domain}/api?{to_query_string(query)}"


def parse_response(call: EtherscanCall, status_code: int, reason: str, body: str) -> Any:
    """
    Classify a raw Etherscan response and extract its result.

    Parameters
    ----------
    call : EtherscanCall
        Call that produced the response (decides proxy vs account style)
    status_code : int
        HTTP status code
    reason : str
        HTTP reason phrase, may be empty
    body : str
        Raw response text

    Returns
    -------
    Any
        The 'result' field of the decoded body

    Raises
    ------
    RateLimitedError
        If the body carries the forbidden-access marker
    HttpStatusError
        If the status code is above 300
    MalformedResponseError
        If the body is not valid JSON
    ApiLogicalError
        If the API signalled an error in the body

    """
    if FORBIDDEN_MESSAGE in body:
        raise RateLimitedError

    if status_code > 300:
        raise HttpStatusError(status_code, reason or body)

    try:
        data = json.loads(body)
    except json.JSONDecodeError as e:
        logger.exception("Failed to decode Etherscan response for %s", call.action)
        msg = f"Invalid JSON in response to {call.action}: {e}"
        raise MalformedResponseError(msg) from e

    if not isinstance(data, dict):
        msg = f"Unexpected response shape for {call.action}: {type(data).__name__}"
        raise MalformedResponseError(msg)

    if call.module == ResponseStyle.PROXY and data.get("error") is not None:
        error = data["error"]
        if isinstance(error, dict):
            raise ApiLogicalError(str(error.get("message") or error), code=error.get("code"))
        raise ApiLogicalError(str(error))

    if call.module == ResponseStyle.ACCOUNT and data.get("message") != "OK":
        raise ApiLogicalError(str(data.get("message")))

    return data.get("result")


class EtherscanClient:
    """
    Async client for the Etherscan HTTP API.

    Parameters
    ----------
    http_client : httpx.AsyncClient | None
        Transport to use. A client is created (and owned) when None.
    timeout : float
        Request timeout in seconds for an owned client
    domain : str
        API domain

    """

    HEADERS = {"Accept": "application/json"}

    def __init__(
        self,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = 30.0,
        domain: str = DEFAULT_DOMAIN,
    ) -> None:
        self.domain = domain
        self._owns_client = http_client is None
        self.client = http_client or httpx.AsyncClient(timeout=timeout)

    async def execute(
        self,
        call: EtherscanCall,
        scheme: str,
        network: str | None,
        api_key: str | None = None,
    ) -> Any:
        """
        Issue a single Etherscan call and return its normalized result.

        Parameters
        ----------
        call : EtherscanCall
            Translated call
        scheme : str
            'http' or 'https'
        network : str | None
            Network name
        api_key : str | None
            Etherscan API key

        Returns
        -------
        Any
            Response 'result' field

        Raises
        ------
        TransportError
            If the HTTP request could not be completed
        EtherscanError
            Any classification error from parse_response

        """
        uri = build_uri(scheme, network, call, api_key, self.domain)
        logger.debug("Etherscan %s %s.%s", call.http_method.value, call.module.value, call.action)

        try:
            response = await self.client.request(call.http_method.value, uri, headers=self.HEADERS)
        except httpx.HTTPError as e:
            msg = f"HTTP request failed: {e}"
            raise TransportError(msg) from e

        return parse_response(call, response.status_code, response.reason_phrase, response.text)

    async def aclose(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._owns_client:
            await self.client.aclose()

    async def __aenter__(self) -> "EtherscanClient":
        """Async context manager entry."""
        return self

    async def __aexit__(
        self,
        exc_type: type | None,
        exc_val: Exception | None,
        exc_tb: object | None,
    ) -> None:
        """Async context manager exit."""
        await self.aclose()
