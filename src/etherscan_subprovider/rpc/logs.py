"""Log retrieval by fanning out receipt fetches over a block's transactions."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from etherscan_subprovider.core.errors import ApiLogicalError
from etherscan_subprovider.core.models import EtherscanCall

logger = logging.getLogger(__name__)


def _tx_hash(transaction: Any) -> str:
    # Full transaction objects carry "hash"; hash-only blocks list bare strings
    if isinstance(transaction, dict):
        return transaction["hash"]
    return str(transaction)


async def collect_block_logs(
    fetch: Callable[[EtherscanCall], Awaitable[Any]],
    block: Any,
    params: list[Any],
) -> list[Any]:
    """
    Collect every log in a block from its transactions' receipts.

    One receipt fetch is issued per transaction and all of them are awaited
    before returning, so the result is complete or an error is raised.

    Parameters
    ----------
    fetch : Callable[[EtherscanCall], Awaitable[Any]]
        Issues a single rate-limited Etherscan call
    block : Any
        Block object returned by eth_getBlockByNumber
    params : list[Any]
        Original eth_getLogs params (unused; whole-block logs are returned)

    Returns
    -------
    list[Any]
        Concatenated receipt logs, in transaction order

    Raises
    ------
    ApiLogicalError
        If the block is missing or has no transaction list
    EtherscanError
        The first receipt failure, in transaction order

    """
    if not isinstance(block, dict) or not isinstance(block.get("transactions"), list):
        msg = "Block not found or missing transactions"
        raise ApiLogicalError(msg)

    transactions = block["transactions"]
    if not transactions:
        return []

    calls = [
        EtherscanCall(action="eth_getTransactionReceipt", params={"txhash": _tx_hash(tx)}) for tx in transactions
    ]
    receipts = await asyncio.gather(*(fetch(call) for call in calls), return_exceptions=True)

    logs: list[Any] = []
    for receipt in receipts:
        if isinstance(receipt, BaseException):
            raise receipt
        logs.extend((receipt or {}).get("logs", []))

    logger.debug("Collected %d logs from %d receipts", len(logs), len(receipts))
    return logs
