"""
chains - Chain access layer.

- providers.py: JSON-RPC over httpx with endpoint failover
- abi.py: Hand-rolled ABI words for the handful of calls the bot makes
- client.py: ChainClient (reads, signing, submission, receipts)
"""

from chains.client import ChainClient, PendingTransaction, TxReceipt
from chains.providers import RPCProvider, RPCResponse

__all__ = [
    "ChainClient",
    "PendingTransaction",
    "RPCProvider",
    "RPCResponse",
    "TxReceipt",
]
