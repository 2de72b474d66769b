"""RPC client layer -- JSON-RPC access to EVM networks via web3."""

from chaingas.rpc.client import BlockHeader, LogEntry, RpcClient
from chaingas.rpc.web3_client import Web3RpcClient

__all__ = ["BlockHeader", "LogEntry", "RpcClient", "Web3RpcClient"]
