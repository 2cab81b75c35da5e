"""Key-value storage, elapsed-time tracking, EIP-1559 fees, GraphQL, IP lookup and ERC-4337 bundler helpers."""

__version__ = "1.3.0"