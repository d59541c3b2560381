"""Rate-limited, retrying dispatcher that serves JSON-RPC calls from the Etherscan API."""

import asyncio
import logging
from collections import deque
from functools import partial
from typing import Any

from etherscan_subprovider.core.errors import ProviderClosedError, normalize_callback
from etherscan_subprovider.core.models import (
    EndCallback,
    EtherscanCall,
    NextCallback,
    ProviderConfig,
    QueuedItem,
    Request,
    RpcPayload,
)
from etherscan_subprovider.core.registry import MethodRegistry
from etherscan_subprovider.core.subprovider import future_callbacks
from etherscan_subprovider.rpc.client import EtherscanClient
from etherscan_subprovider.rpc.retry import RetryConfig
from etherscan_subprovider.rpc.throttle import RateLimiter, ThrottledExecutor

logger = logging.getLogger(__name__)


class EtherscanSubprovider:
    """
    Queues JSON-RPC requests and serves them from the Etherscan API.

    Requests are accepted immediately and queued. A periodic drain tick
    releases up to ``max_per_tick`` of them, in FIFO order, to a rate limiter
    that starts at most ``max_requests_per_second`` calls per second. Calls
    refused with Etherscan's forbidden-access marker go back to the tail of
    the queue instead of failing the caller.

    The drain tick parks itself when the queue empties and is re-armed by
    the next submission, so an idle provider does not poll.

    Must be used from within a running asyncio event loop.

    Parameters
    ----------
    config : ProviderConfig | None
        Dispatcher configuration. Uses defaults if None.
    client : EtherscanClient | None
        API client. One is created (and owned) from config if None.

    """

    def __init__(
        self,
        config: ProviderConfig | None = None,
        client: EtherscanClient | None = None,
    ) -> None:
        self.config = config or ProviderConfig()
        self._owns_client = client is None
        self.client = client or EtherscanClient(timeout=self.config.timeout, domain=self.config.domain)
        self.retry_config = RetryConfig(
            retry_failed=self.config.retry_failed,
            max_retries=self.config.max_retries,
        )
        self.limiter = RateLimiter(max_per_second=self.config.max_requests_per_second)
        self._queue: deque[QueuedItem] = deque()
        self._executor: ThrottledExecutor[QueuedItem] = ThrottledExecutor(self.limiter, self._execute)
        self._tick_task: asyncio.Task | None = None
        self._stopped = False

    @property
    def is_running(self) -> bool:
        return self._tick_task is not None and not self._tick_task.done()

    @property
    def queue_size(self) -> int:
        return len(self._queue)

    def handle_request(self, payload: RpcPayload | dict, next_: NextCallback, end: EndCallback) -> None:
        """
        Pipeline entry point.

        Parameters
        ----------
        payload : RpcPayload | dict
            JSON-RPC payload with method and params
        next_ : NextCallback
            Called with no arguments when the method is not supported here
        end : EndCallback
            Called exactly once with (error, result) on a terminal outcome

        """
        self.submit(Request(payload=RpcPayload.model_validate(payload), end=end, next=next_))

    def submit(self, request: Request) -> None:
        """
        Queue a request for dispatch and make sure the drain tick is armed.

        Unsupported methods fall through to ``request.next`` immediately and
        never reach the API. The result is always delivered asynchronously.

        Parameters
        ----------
        request : Request
            Request to dispatch

        """
        method = request.payload.method
        if not MethodRegistry.is_supported(method):
            logger.debug("Method %s not supported, falling through", method)
            request.next()
            return

        deliver = normalize_callback(request.end)
        attempts = 0

        def end(err: Exception | None, result: Any = None) -> None:
            nonlocal attempts
            if self.retry_config.should_retry(err, attempts):
                attempts += 1
                logger.warning("%s rate limited by Etherscan, re-queueing (retry %d)", method, attempts)
                self._requeue(item)
            else:
                deliver(err, result)

        item = QueuedItem(
            request=request,
            scheme=self.config.scheme,
            network=self.config.network,
            api_key=self.config.api_key,
            end=end,
        )
        self._queue.append(item)
        logger.debug("Queued %s (%d pending)", method, len(self._queue))
        self.start()

    async def request(self, method: str, *params: Any) -> Any:
        """
        Submit a call and await its result.

        Parameters
        ----------
        method : str
            RPC method name
        *params : Any
            Method parameters

        Returns
        -------
        Any
            Normalized 'result' of the Etherscan response

        Raises
        ------
        UnsupportedMethodError
            If the method is not served by Etherscan
        EtherscanError
            If the call fails terminally

        """
        future = asyncio.get_running_loop().create_future()
        next_, end = future_callbacks(future, method)
        self.handle_request(RpcPayload(method=method, params=list(params)), next_, end)
        return await future

    def start(self) -> None:
        """Arm the periodic drain tick. Does nothing if it is already armed."""
        self._stopped = False
        if self.is_running:
            return
        self._tick_task = asyncio.get_running_loop().create_task(self._tick_loop())
        logger.debug("Drain tick armed every %.3fs", self.config.tick_interval)

    def stop(self) -> None:
        """
        Disarm the drain tick and withdraw calls not yet started.

        Withdrawn calls return to the head of the queue in their original
        order and are dispatched after the next start. Calls already started
        run to completion and still invoke their callback.

        """
        self._stopped = True
        if self._tick_task is not None:
            self._tick_task.cancel()
            self._tick_task = None

        withdrawn = self._executor.cancel()
        self._queue.extendleft(reversed(withdrawn))
        if withdrawn:
            logger.info("Stopped with %d calls returned to the queue", len(withdrawn))

    async def _tick_loop(self) -> None:
        while True:
            await asyncio.sleep(self.config.tick_interval)
            self._drain()
            if not self._queue:
                # Park until the next submit or re-queue
                self._tick_task = None
                return

    def _drain(self) -> None:
        """Release up to max_per_tick queued items to the rate limiter, in FIFO order."""
        count = min(self.config.max_per_tick, len(self._queue))
        for _ in range(count):
            self._executor.submit(self._queue.popleft())
        if count:
            logger.debug("Released %d calls, %d still queued", count, len(self._queue))

    def _requeue(self, item: QueuedItem) -> None:
        self._queue.append(item)
        if not self._stopped:
            self.start()

    async def _fetch(self, item: QueuedItem, call: EtherscanCall) -> Any:
        """Follow-up call for multi-call methods; waits for its own rate limit slot."""
        await self.limiter.acquire()
        return await self.client.execute(call, item.scheme, item.network, item.api_key)

    async def _execute(self, item: QueuedItem) -> None:
        """Translate, call, and deliver the outcome of one queued item."""
        spec = MethodRegistry.get(item.method)
        try:
            call = spec.builder(item.params)
            result = await self.client.execute(call, item.scheme, item.network, item.api_key)
            if spec.aggregator is not None:
                result = await spec.aggregator(partial(self._fetch, item), result, item.params)
        except Exception as e:
            logger.debug("%s failed: %s", item.method, e)
            self._finish(item, e, None)
            return
        self._finish(item, None, result)

    def _finish(self, item: QueuedItem, err: Exception | None, result: Any) -> None:
        try:
            item.end(err, result)
        except Exception:
            logger.exception("Completion callback for %s raised", item.method)

    def get_stats(self) -> dict:
        """Get queue and rate limiter statistics."""
        return {
            "running": self.is_running,
            "queued": len(self._queue),
            "throttled": self._executor.pending_count,
            "in_flight": self._executor.in_flight_count,
            "rate_limit": self.limiter.get_stats(),
        }

    async def aclose(self) -> None:
        """
        Stop dispatching, wait for started calls, and close an owned client.

        Calls still queued afterwards, including ones re-queued by a
        rate-limited response during shutdown, end with ProviderClosedError.
        """
        self.stop()
        await self._executor.join()

        abandoned = list(self._queue)
        self._queue.clear()
        if abandoned:
            logger.info("Closed with %d undispatched calls", len(abandoned))
        for item in abandoned:
            # Bypass the retry wrapper so the error cannot be re-queued
            try:
                normalize_callback(item.request.end)(ProviderClosedError(), None)
            except Exception:
                logger.exception("Completion callback for %s raised", item.method)

        if self._owns_client:
            await self.client.aclose()

    async def __aenter__(self) -> "EtherscanSubprovider":
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
