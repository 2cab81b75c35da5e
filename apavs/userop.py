"""ERC-4337 user operations and bundler gas estimates."""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any, Mapping, Union

AddressLike = Union[str, bytes, bytearray]

_ADDRESS_LENGTH = 20


def _normalize_address(value: AddressLike) -> str:
    """Return ``value`` as a lower-case, 0x-prefixed 20-byte address."""
    if isinstance(value, (bytes, bytearray)):
        raw = bytes(value)
    else:
        text = value[2:] if value.startswith(("0x", "0X")) else value
        try:
            raw = bytes.fromhex(text)
        except ValueError as exc:
            raise ValueError(f"invalid address {value!r}") from exc
    if len(raw) != _ADDRESS_LENGTH:
        raise ValueError(f"address must be {_ADDRESS_LENGTH} bytes, got {len(raw)}")
    return "0x" + raw.hex()


def _hex_quantity(value: int) -> str:
    return f"0x{value:x}"


def _hex_bytes(value: bytes) -> str:
    return "0x" + value.hex()


_QUANTITY_FIELDS = (
    "nonce",
    "call_gas_limit",
    "verification_gas_limit",
    "pre_verification_gas",
    "max_fee_per_gas",
    "max_priority_fee_per_gas",
)
_BYTES_FIELDS = ("init_code", "call_data", "paymaster_and_data", "signature")


@dataclass
class UserOperation:
    """A transaction for a smart contract account, as sent to a bundler."""

    sender: AddressLike
    nonce: int = 0
    init_code: bytes = b""
    call_data: bytes = b""
    call_gas_limit: int = 0
    verification_gas_limit: int = 0
    pre_verification_gas: int = 0
    max_fee_per_gas: int = 0
    max_priority_fee_per_gas: int = 0
    paymaster_and_data: bytes = b""
    signature: bytes = b""

    def __post_init__(self) -> None:
        self.sender = _normalize_address(self.sender)
        for name in _QUANTITY_FIELDS:
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise TypeError(f"{name} must be an integer")
            if value < 0:
                raise ValueError(f"{name} must not be negative")
        for name in _BYTES_FIELDS:
            setattr(self, name, bytes(getattr(self, name)))

    def to_rpc(self) -> dict[str, str]:
        """Return the operation in the JSON form bundler RPC methods take."""
        for name in _QUANTITY_FIELDS:
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must not be negative")
        return {
            "sender": _normalize_address(self.sender),
            "nonce": _hex_quantity(self.nonce),
            "initCode": _hex_bytes(bytes(self.init_code)),
            "callData": _hex_bytes(bytes(self.call_data)),
            "callGasLimit": _hex_quantity(self.call_gas_limit),
            "verificationGasLimit": _hex_quantity(self.verification_gas_limit),
            "preVerificationGas": _hex_quantity(self.pre_verification_gas),
            "maxFeePerGas": _hex_quantity(self.max_fee_per_gas),
            "maxPriorityFeePerGas": _hex_quantity(self.max_priority_fee_per_gas),
            "paymasterAndData": _hex_bytes(bytes(self.paymaster_and_data)),
            "signature": _hex_bytes(bytes(self.signature)),
        }


def _to_int(value: Any, key: str) -> int:
    if isinstance(value, bool):
        raise ValueError(f"{key}: expected an integer, got {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value, 0)
        except ValueError as exc:
            raise ValueError(f"{key}: invalid integer {value!r}") from exc
    raise ValueError(f"{key}: expected an integer, got {value!r}")


_RPC_KEYS = {
    "pre_verification_gas": "preVerificationGas",
    "verification_gas_limit": "verificationGasLimit",
    "call_gas_limit": "callGasLimit",
    "verification_gas": "verificationGas",
}


@dataclass(frozen=True)
class GasEstimation:
    """Gas limits a bundler reports for a user operation."""

    pre_verification_gas: int
    verification_gas_limit: int
    call_gas_limit: int
    verification_gas: int

    @classmethod
    def from_rpc(cls, result: Mapping[str, Any]) -> GasEstimation:
        """Build an estimate from an ``eth_estimateUserOperationGas`` result.

        Missing members count as zero.
        """
        if not isinstance(result, Mapping):
            raise ValueError(f"expected a JSON object, got {result!r}")
        values = {
            f.name: _to_int(result.get(_RPC_KEYS[f.name], 0), _RPC_KEYS[f.name])
            for f in fields(cls)
        }
        return cls(**values)