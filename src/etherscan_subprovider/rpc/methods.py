"""Translation table from JSON-RPC methods to Etherscan module/action calls.

Importing this module registers every supported method with MethodRegistry.
"""

from typing import Any

from etherscan_subprovider.core.models import EtherscanCall, HttpMethod, ResponseStyle
from etherscan_subprovider.core.registry import MethodRegistry
from etherscan_subprovider.rpc.logs import collect_block_logs

# Positional params of eth_listTransactions, in order
LIST_TX_PROPS = ["address", "startblock", "endblock", "sort", "page", "offset"]

ESTIMATE_GAS_PROPS = ["data", "to", "value", "gasPrice", "gas"]


def pick_non_null(values: dict[str, Any]) -> dict[str, Any]:
    """
    Drop keys whose value is None.

    Parameters
    ----------
    values : dict[str, Any]
        Candidate query parameters

    Returns
    -------
    dict[str, Any]
        Parameters with a value, in the original order

    """
    return {key: value for key, value in values.items() if value is not None}


def _param(params: list[Any], index: int) -> Any:
    return params[index] if index < len(params) else None


def _proxy(action: str, **params: Any) -> EtherscanCall:
    return EtherscanCall(action=action, params=pick_non_null(params))


@MethodRegistry.register("eth_blockNumber")
def block_number(params: list[Any]) -> EtherscanCall:
    return _proxy("eth_blockNumber")


@MethodRegistry.register("eth_getBlockByNumber")
def get_block_by_number(params: list[Any]) -> EtherscanCall:
    return _proxy("eth_getBlockByNumber", tag=_param(params, 0), boolean=_param(params, 1))


@MethodRegistry.register("eth_getBlockTransactionCountByNumber")
def get_block_transaction_count(params: list[Any]) -> EtherscanCall:
    return _proxy("eth_getBlockTransactionCountByNumber", tag=_param(params, 0))


@MethodRegistry.register("eth_getTransactionByHash")
def get_transaction_by_hash(params: list[Any]) -> EtherscanCall:
    return _proxy("eth_getTransactionByHash", txhash=_param(params, 0))


@MethodRegistry.register("eth_getTransactionByBlockNumberAndIndex")
def get_transaction_by_block_and_index(params: list[Any]) -> EtherscanCall:
    return _proxy("eth_getTransactionByBlockNumberAndIndex", tag=_param(params, 0), index=_param(params, 1))


@MethodRegistry.register("eth_getTransactionCount")
def get_transaction_count(params: list[Any]) -> EtherscanCall:
    return _proxy("eth_getTransactionCount", address=_param(params, 0), tag=_param(params, 1))


@MethodRegistry.register("eth_sendRawTransaction")
def send_raw_transaction(params: list[Any]) -> EtherscanCall:
    return EtherscanCall(
        http_method=HttpMethod.POST,
        action="eth_sendRawTransaction",
        params=pick_non_null({"hex": _param(params, 0)}),
    )


@MethodRegistry.register("eth_call")
def call(params: list[Any]) -> EtherscanCall:
    """Forward the call object's fields, plus the block tag when one is given."""
    tx = dict(_param(params, 0) or {})
    tx.setdefault("tag", _param(params, 1))
    return EtherscanCall(action="eth_call", params=pick_non_null(tx))


@MethodRegistry.register("eth_getTransactionReceipt")
def get_transaction_receipt(params: list[Any]) -> EtherscanCall:
    return _proxy("eth_getTransactionReceipt", txhash=_param(params, 0))


@MethodRegistry.register("eth_getCode")
def get_code(params: list[Any]) -> EtherscanCall:
    return _proxy("eth_getCode", address=_param(params, 0), tag=_param(params, 1))


@MethodRegistry.register("eth_getStorageAt")
def get_storage_at(params: list[Any]) -> EtherscanCall:
    return _proxy(
        "eth_getStorageAt",
        address=_param(params, 0),
        position=_param(params, 1),
        tag=_param(params, 2),
    )


@MethodRegistry.register("eth_estimateGas")
def estimate_gas(params: list[Any]) -> EtherscanCall:
    tx = _param(params, 0) or {}
    return _proxy("eth_estimateGas", **{prop: tx.get(prop) for prop in ESTIMATE_GAS_PROPS})


@MethodRegistry.register("eth_getBalance")
def get_balance(params: list[Any]) -> EtherscanCall:
    return EtherscanCall(
        module=ResponseStyle.ACCOUNT,
        action="balance",
        params=pick_non_null({"address": _param(params, 0), "tag": _param(params, 1)}),
    )


@MethodRegistry.register("eth_listTransactions")
def list_transactions(params: list[Any]) -> EtherscanCall:
    """Non-standard method: positional params map onto LIST_TX_PROPS."""
    query = dict(zip(LIST_TX_PROPS, params[: len(LIST_TX_PROPS)], strict=False))
    return EtherscanCall(module=ResponseStyle.ACCOUNT, action="txlist", params=pick_non_null(query))


@MethodRegistry.register("eth_getLogs", aggregator=collect_block_logs)
def get_logs(params: list[Any]) -> EtherscanCall:
    """
    Fetch the filter's toBlock with full transactions.

    Logs are then gathered from each transaction's receipt. Topic and address
    filters are not applied; every log in the block is returned.

    """
    log_filter = _param(params, 0) or {}
    return _proxy("eth_getBlockByNumber", tag=log_filter.get("toBlock") or "latest", boolean=True)
