"""
chains/ - Execution substrate and blockchain RPC access.

Modules:
- ledger: In-process balance ledger with atomic brackets
- providers: JSON-RPC provider with endpoint failover
"""

from chains.ledger import Ledger
from chains.providers import (
    RPCProvider,
    RPCResponse,
    RPCStats,
    resolve_rpc_urls,
)

__all__ = [
    # Ledger
    "Ledger",
    # Providers
    "RPCProvider",
    "RPCResponse",
    "RPCStats",
    "resolve_rpc_urls",
]
