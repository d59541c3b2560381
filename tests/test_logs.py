"""Tests for eth_getLogs receipt fan-out and aggregation."""

import asyncio

import httpx
import pytest

from conftest import json_response, proxy_result
from etherscan_subprovider.core.errors import FORBIDDEN_MESSAGE, ApiLogicalError
from etherscan_subprovider.core.models import EtherscanCall
from etherscan_subprovider.rpc.logs import collect_block_logs


def block_with(tx_count: int) -> dict:
    return {"number": "0x10", "transactions": [{"hash": f"0xtx{i}"} for i in range(tx_count)]}


def receipt_with(logs_per_tx: int):
    def responder(request: httpx.Request) -> httpx.Response:
        tx_hash = request.url.params["txhash"]
        return proxy_result({"transactionHash": tx_hash, "logs": [{"tx": tx_hash, "logIndex": i} for i in range(logs_per_tx)]})

    return responder


@pytest.mark.parametrize("tx_count,logs_per_tx", [(3, 2), (1, 5), (4, 0)])
async def test_logs_aggregate_across_receipts(make_subprovider, etherscan, tx_count, logs_per_tx):
    """Test T transactions with R logs each yield T x R logs in transaction order."""
    etherscan.route("eth_getBlockByNumber", lambda request: proxy_result(block_with(tx_count)))
    etherscan.route("eth_getTransactionReceipt", receipt_with(logs_per_tx))
    subprovider = make_subprovider()

    logs = await asyncio.wait_for(subprovider.request("eth_getLogs", {"toBlock": "0x10"}), timeout=2)

    assert len(logs) == tx_count * logs_per_tx
    assert [log["tx"] for log in logs] == [f"0xtx{i}" for i in range(tx_count) for _ in range(logs_per_tx)]
    assert etherscan.actions() == ["eth_getBlockByNumber"] + ["eth_getTransactionReceipt"] * tx_count

    block_request = etherscan.requests[0]
    assert block_request.url.params["tag"] == "0x10"
    assert block_request.url.params["boolean"] == "true"


async def test_logs_for_empty_block(make_subprovider, etherscan):
    """Test a block without transactions completes immediately with no logs."""
    etherscan.route("eth_getBlockByNumber", lambda request: proxy_result(block_with(0)))
    subprovider = make_subprovider()

    logs = await asyncio.wait_for(subprovider.request("eth_getLogs", {"toBlock": "latest"}), timeout=2)

    assert logs == []
    assert etherscan.actions() == ["eth_getBlockByNumber"]


async def test_logs_complete_exactly_once_after_all_receipts(make_subprovider, etherscan):
    """Test the callback fires once, only after every receipt fetch resolved."""
    etherscan.route("eth_getBlockByNumber", lambda request: proxy_result(block_with(3)))
    etherscan.route("eth_getTransactionReceipt", receipt_with(1))
    subprovider = make_subprovider()
    calls = []
    done = asyncio.Event()

    def end(err, result=None):
        calls.append((err, result, etherscan.actions().count("eth_getTransactionReceipt")))
        done.set()

    subprovider.handle_request({"method": "eth_getLogs", "params": [{"toBlock": "0x10"}]}, lambda: None, end)
    await asyncio.wait_for(done.wait(), timeout=2)
    await asyncio.sleep(0.05)

    assert len(calls) == 1
    err, result, receipts_seen = calls[0]
    assert err is None
    assert len(result) == 3
    assert receipts_seen == 3


async def test_logs_fail_on_receipt_error(make_subprovider, etherscan):
    """Test a failed receipt fails the whole call once every fetch resolved."""
    etherscan.route("eth_getBlockByNumber", lambda request: proxy_result(block_with(2)))
    etherscan.route(
        "eth_getTransactionReceipt",
        lambda request: json_response({"error": {"code": -32000, "message": "unknown transaction"}}),
    )
    subprovider = make_subprovider()

    with pytest.raises(ApiLogicalError, match="unknown transaction"):
        await asyncio.wait_for(subprovider.request("eth_getLogs", {"toBlock": "0x10"}), timeout=2)

    assert etherscan.actions().count("eth_getTransactionReceipt") == 2


async def test_logs_rate_limited_receipt_requeues_whole_call(make_subprovider, etherscan):
    """Test a refused receipt retries the whole eth_getLogs call."""
    refused = iter([True])
    etherscan.route("eth_getBlockByNumber", lambda request: proxy_result(block_with(1)))
    etherscan.route(
        "eth_getTransactionReceipt",
        lambda request: httpx.Response(403, text=FORBIDDEN_MESSAGE) if next(refused, False) else receipt_with(2)(request),
    )
    subprovider = make_subprovider()

    logs = await asyncio.wait_for(subprovider.request("eth_getLogs", {"toBlock": "0x10"}), timeout=2)

    assert len(logs) == 2
    assert etherscan.actions() == [
        "eth_getBlockByNumber",
        "eth_getTransactionReceipt",
        "eth_getBlockByNumber",
        "eth_getTransactionReceipt",
    ]


async def test_collect_block_logs_accepts_hash_only_blocks():
    """Test blocks listing bare transaction hashes are handled too."""
    fetched: list[EtherscanCall] = []

    async def fetch(call: EtherscanCall):
        fetched.append(call)
        return {"logs": [call.params["txhash"]]}

    logs = await collect_block_logs(fetch, {"transactions": ["0xa", "0xb"]}, [{}])

    assert logs == ["0xa", "0xb"]
    assert [call.action for call in fetched] == ["eth_getTransactionReceipt"] * 2


async def test_collect_block_logs_missing_block():
    """Test a null block is reported as an API error."""

    async def fetch(call: EtherscanCall):
        raise AssertionError("no receipts expected")

    with pytest.raises(ApiLogicalError, match="Block not found"):
        await collect_block_logs(fetch, None, [{}])
