"""Request pipeline contract and a minimal chain-of-responsibility engine."""

import asyncio
import logging
from typing import Any, Protocol

from etherscan_subprovider.core.errors import UnsupportedMethodError
from etherscan_subprovider.core.models import EndCallback, NextCallback, RpcPayload

logger = logging.getLogger(__name__)


class Subprovider(Protocol):
    """
    Interface that every handler in the request pipeline implements.

    Methods
    -------
    handle_request(payload, next_, end)
        Handle the payload and call end(error, result) exactly once, or call
        next_() to pass it to the following handler

    """

    def handle_request(self, payload: RpcPayload, next_: NextCallback, end: EndCallback) -> None: ...


def future_callbacks(future: asyncio.Future, method: str) -> tuple[NextCallback, EndCallback]:
    """
    Build next/end callbacks that settle an asyncio future.

    Parameters
    ----------
    future : asyncio.Future
        Future to resolve with the result or fail with the error
    method : str
        RPC method name, reported if the request falls through

    Returns
    -------
    tuple[NextCallback, EndCallback]
        Fallthrough and completion callbacks

    """

    def end(err: Exception | None, result: Any = None) -> None:
        if future.done():
            return
        if err is not None:
            future.set_exception(err)
        else:
            future.set_result(result)

    def next_() -> None:
        end(UnsupportedMethodError(method), None)

    return next_, end


class ProviderEngine:
    """
    Passes each request down a list of subproviders until one handles it.

    Parameters
    ----------
    subproviders : list[Subprovider] | None
        Handlers in the order they are offered requests

    """

    def __init__(self, subproviders: list[Subprovider] | None = None) -> None:
        self.subproviders: list[Subprovider] = list(subproviders or [])

    def add_provider(self, subprovider: Subprovider) -> None:
        self.subproviders.append(subprovider)

    def handle_request(self, payload: RpcPayload | dict, end: EndCallback) -> None:
        """Offer a payload to each subprovider in turn; fail if none handles it."""
        payload = RpcPayload.model_validate(payload)

        def offer(index: int) -> None:
            if index >= len(self.subproviders):
                logger.debug("No subprovider handled %s", payload.method)
                end(UnsupportedMethodError(payload.method), None)
                return
            self.subproviders[index].handle_request(payload, lambda: offer(index + 1), end)

        offer(0)

    async def send(self, method: str, *params: Any) -> Any:
        """
        Send a request through the pipeline and await its result.

        Raises
        ------
        UnsupportedMethodError
            If no subprovider handles the method
        EtherscanError
            If the handling subprovider fails the request

        """
        future = asyncio.get_running_loop().create_future()
        _, end = future_callbacks(future, method)
        self.handle_request(RpcPayload(method=method, params=list(params)), end)
        return await future
