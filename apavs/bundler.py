"""JSON-RPC client for an ERC-4337 bundler."""

from __future__ import annotations

import itertools
from typing import Any, Mapping
from urllib.parse import urlsplit

import requests

from apavs.userop import AddressLike, GasEstimation, UserOperation, _normalize_address

_TIMEOUT = 30


class BundlerError(Exception):
    """Raised when a bundler call fails."""

    def __init__(self, message: str, code: int | None = None) -> None:
        super().__init__(message)
        self.code = code


class BundlerClient:
    """Talks to a bundler RPC endpoint; the endpoint itself is stateless."""

    def __init__(self, url: str, session: requests.Session | None = None) -> None:
        scheme = urlsplit(url).scheme
        if scheme not in ("http", "https"):
            raise BundlerError(
                f"Error creating bundler client: no known transport for URL scheme {scheme!r}"
            )
        self.url = url
        self._owns_session = session is None
        self._session = session if session is not None else requests.Session()
        self._ids = itertools.count(1)

    def __enter__(self) -> BundlerClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        """Close the connection pool this client opened."""
        if self._owns_session:
            self._session.close()

    def _call(self, method: str, *params: Any) -> Any:
        payload = {"jsonrpc": "2.0", "id": next(self._ids), "method": method, "params": list(params)}
        try:
            response = self._session.post(self.url, json=payload, timeout=_TIMEOUT)
        except requests.RequestException as exc:
            raise BundlerError(str(exc)) from exc
        if not response.ok:
            raise BundlerError(f"{response.status_code} {response.reason}: {response.text}")
        try:
            body = response.json()
        except ValueError as exc:
            raise BundlerError(f"invalid JSON-RPC response: {exc}") from exc
        if not isinstance(body, dict):
            raise BundlerError("invalid JSON-RPC response: expected an object")
        error = body.get("error")
        if error:
            if isinstance(error, dict):
                raise BundlerError(str(error.get("message", error)), error.get("code"))
            raise BundlerError(str(error))
        return body.get("result")

    def send_user_operation(self, user_op: UserOperation, entrypoint: AddressLike) -> str:
        """Submit ``user_op`` and return the hash the bundler assigns it."""
        result = self._call(
            "eth_sendUserOperation", user_op.to_rpc(), _normalize_address(entrypoint)
        )
        if result is None:
            return ""
        if not isinstance(result, str):
            raise BundlerError(f"eth_sendUserOperation: unexpected result {result!r}")
        return result

    def estimate_user_operation_gas(
        self,
        user_op: UserOperation,
        entrypoint: AddressLike,
        override: Mapping[str, Any] | None = None,
    ) -> GasEstimation:
        """Ask the bundler for the gas limits ``user_op`` needs.

        ``override`` is a state override set, sent as an empty object by default.
        """
        prefix = "eth_estimateUserOperationGas RPC response error"
        try:
            result = self._call(
                "eth_estimateUserOperationGas",
                user_op.to_rpc(),
                _normalize_address(entrypoint),
                dict(override) if override is not None else {},
            )
        except BundlerError as exc:
            raise BundlerError(f"{prefix}: {exc}", exc.code) from exc
        try:
            return GasEstimation.from_rpc(result if result is not None else {})
        except ValueError as exc:
            raise BundlerError(f"{prefix}: {exc}") from exc

    def get_user_operation_by_hash(self, op_hash: str) -> Any:
        """Return the user operation with hash ``op_hash``, or None."""
        return self._call("eth_getUserOperationByHash", op_hash)

    def get_user_operation_receipt(self, op_hash: str) -> Any:
        """Return the receipt of the user operation ``op_hash``, or None."""
        return self._call("eth_getUserOperationReceipt", op_hash)