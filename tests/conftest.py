"""Pytest configuration for etherscan-subprovider tests."""

import json
from collections.abc import Callable
from typing import Any

import httpx
import pytest

from etherscan_subprovider.core.models import ProviderConfig
from etherscan_subprovider.rpc import EtherscanClient, EtherscanSubprovider


def json_response(payload: Any, status_code: int = 200) -> httpx.Response:
    """Build an httpx response with a JSON body."""
    return httpx.Response(status_code, text=json.dumps(payload))


def proxy_result(result: Any) -> httpx.Response:
    return json_response({"jsonrpc": "2.0", "id": 1, "result": result})


class FakeEtherscan:
    """
    In-memory Etherscan API served through httpx.MockTransport.

    Responses are routed on the 'action' query parameter; unrouted actions
    answer with a proxy-style result of "0x1".

    """

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.routes: dict[str, Callable[[httpx.Request], httpx.Response]] = {}

    def route(self, action: str, responder: Callable[[httpx.Request], httpx.Response]) -> None:
        self.routes[action] = responder

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        responder = self.routes.get(request.url.params.get("action"))
        if responder is None:
            return proxy_result("0x1")
        return responder(request)

    def actions(self) -> list[str]:
        return [request.url.params.get("action") for request in self.requests]

    def client(self) -> EtherscanClient:
        return EtherscanClient(http_client=httpx.AsyncClient(transport=httpx.MockTransport(self.handler)))


@pytest.fixture
def etherscan() -> FakeEtherscan:
    return FakeEtherscan()


@pytest.fixture
async def make_subprovider(etherscan):
    """Factory for fast-ticking subproviders wired to the fake API; closed on teardown."""
    created: list[EtherscanSubprovider] = []

    def _make(**overrides: Any) -> EtherscanSubprovider:
        values = {"tick_interval": 0.01, "max_requests_per_second": 100}
        values.update(overrides)
        subprovider = EtherscanSubprovider(ProviderConfig(**values), client=etherscan.client())
        created.append(subprovider)
        return subprovider

    yield _make

    for subprovider in created:
        await subprovider.aclose()
        await subprovider.client.client.aclose()
