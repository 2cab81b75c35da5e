"""EIP-1559 fee suggestion over an Ethereum JSON-RPC endpoint."""

from __future__ import annotations

import itertools
from typing import Any, Protocol

import requests


class RpcError(Exception):
    """Raised when a JSON-RPC call fails."""


class FeeSource(Protocol):
    def suggest_gas_tip_cap(self) -> int: ...

    def latest_base_fee(self) -> int | None: ...


def _hex_to_int(value: Any, method: str) -> int:
    if not isinstance(value, str):
        raise RpcError(f"{method}: unexpected result {value!r}")
    try:
        return int(value, 16)
    except ValueError as exc:
        raise RpcError(f"{method}: invalid quantity {value!r}") from exc


class EthClient:
    """Minimal JSON-RPC client for the calls fee estimation needs."""

    def __init__(self, url: str, session: requests.Session | None = None) -> None:
        self.url = url
        self._session = session if session is not None else requests.Session()
        self._ids = itertools.count(1)

    def _call(self, method: str, *params: Any) -> Any:
        payload = {"jsonrpc": "2.0", "id": next(self._ids), "method": method, "params": list(params)}
        try:
            response = self._session.post(self.url, json=payload, timeout=30)
            response.raise_for_status()
            body = response.json()
        except (requests.RequestException, ValueError) as exc:
            raise RpcError(f"{method}: {exc}") from exc
        error = body.get("error") if isinstance(body, dict) else None
        if error:
            message = error.get("message", error) if isinstance(error, dict) else error
            raise RpcError(f"{method}: {message}")
        return body.get("result") if isinstance(body, dict) else None

    def suggest_gas_tip_cap(self) -> int:
        """Return the suggested max priority fee per gas, in wei."""
        return _hex_to_int(self._call("eth_maxPriorityFeePerGas"), "eth_maxPriorityFeePerGas")

    def latest_base_fee(self) -> int | None:
        """Return the base fee of the latest block, or None before London."""
        block = self._call("eth_getBlockByNumber", "latest", False)
        if not isinstance(block, dict):
            raise RpcError("eth_getBlockByNumber: block not found")
        fee = block.get("baseFeePerGas")
        return None if fee is None else _hex_to_int(fee, "eth_getBlockByNumber")


def compute_fees(tip_cap: int, base_fee: int | None) -> tuple[int, int]:
    """Return ``(max_fee_per_gas, max_priority_fee_per_gas)``.

    The tip gets a 13% buffer; the max fee allows the base fee to double.
    """
    buffer = tip_cap // 100 * 13
    max_priority_fee = tip_cap + buffer
    if base_fee is None:
        return max_priority_fee, max_priority_fee
    return base_fee * 2 + max_priority_fee, max_priority_fee


def suggest_fee(client: FeeSource) -> tuple[int, int]:
    """Ask ``client`` for current fee data and return suggested EIP-1559 fees."""
    tip_cap = client.suggest_gas_tip_cap()
    base_fee = client.latest_base_fee()
    return compute_fees(tip_cap, base_fee)