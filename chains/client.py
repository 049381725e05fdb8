"""
chains/client.py - Chain client used by the quoter, scanner and executor.

Capabilities:
- Read-only contract calls (pool lookups, slot0/liquidity, balances, allowances)
- Fee data (eth_gasPrice)
- Signed transaction submission -> PendingTransaction
- Confirmation polling -> TxReceipt

Every failure surfaces as a typed BotError (InfraError / RPCError /
TransactionError), never as a silently wrong value.
"""

import asyncio
import time
from dataclasses import dataclass
from typing import Any, Optional

from eth_account import Account
from eth_account.signers.local import LocalAccount
from eth_utils import to_checksum_address, to_hex

from chains import abi
from chains.providers import RPCProvider
from core.constants import (
    DEFAULT_RECEIPT_POLL_SECONDS,
    DEFAULT_RECEIPT_TIMEOUT_SECONDS,
    ErrorCode,
)
from core.exceptions import BotError, ExecutionError, RPCError, TransactionError
from core.logging import get_logger

logger = get_logger(__name__)


@dataclass
class PendingTransaction:
    """Handle for a broadcast transaction."""
    tx_hash: str
    to: str
    nonce: int
    gas_limit: int
    gas_price: int


@dataclass
class TxReceipt:
    """Mined transaction receipt."""
    tx_hash: str
    status: int
    gas_used: int
    effective_gas_price: int
    block_number: int = 0

    @property
    def succeeded(self) -> bool:
        return self.status == 1

    @property
    def gas_cost(self) -> int:
        """Gas paid in wei."""
        return self.gas_used * self.effective_gas_price

    @classmethod
    def from_rpc(cls, data: dict[str, Any]) -> "TxReceipt":
        def hex_int(key: str) -> int:
            value = data.get(key)
            return int(value, 16) if value else 0

        return cls(
            tx_hash=data.get("transactionHash", ""),
            status=hex_int("status"),
            gas_used=hex_int("gasUsed"),
            effective_gas_price=hex_int("effectiveGasPrice"),
            block_number=hex_int("blockNumber"),
        )


class ChainClient:
    """
    Read/write access to one EVM chain.

    Usage:
        client = ChainClient.from_private_key(provider, key)
        pool = await client.get_pool(factory, weth, usdc, 500)
        pending = await client.send_transaction(router, data, gas_limit=400_000)
        receipt = await client.wait_for_receipt(pending.tx_hash)
    """

    def __init__(
        self,
        provider: RPCProvider,
        account: Optional[LocalAccount] = None,
        receipt_timeout_seconds: float = DEFAULT_RECEIPT_TIMEOUT_SECONDS,
        receipt_poll_seconds: float = DEFAULT_RECEIPT_POLL_SECONDS,
    ):
        self.provider = provider
        self._account = account
        self.receipt_timeout_seconds = receipt_timeout_seconds
        self.receipt_poll_seconds = receipt_poll_seconds
        self._nonce: int | None = None
        self._nonce_lock = asyncio.Lock()

    @classmethod
    def from_private_key(
        cls,
        provider: RPCProvider,
        private_key: str,
        **kwargs: Any,
    ) -> "ChainClient":
        return cls(provider, Account.from_key(private_key), **kwargs)

    @property
    def chain_id(self) -> int:
        return self.provider.chain_id

    @property
    def address(self) -> str:
        """Wallet address used as owner/recipient."""
        if self._account is None:
            raise ExecutionError(
                ErrorCode.EXEC_NO_SIGNER,
                "No signing account configured",
            )
        return self._account.address

    # =========================================================================
    # READS
    # =========================================================================

    async def call(self, to: str, data: str) -> str:
        """eth_call returning the raw hex payload."""
        response = await self.provider.eth_call(to=to, data=data)
        if response.result is None:
            raise RPCError("eth_call returned null result", details={"to": to})
        return response.result

    async def get_pool(self, factory: str, token_a: str, token_b: str, fee: int) -> str | None:
        """Pool address for (token_a, token_b, fee), None if not deployed."""
        result = await self.call(factory, abi.encode_get_pool(token_a, token_b, fee))
        pool = abi.decode_address(result)
        return None if abi.is_zero_address(pool) else pool

    async def get_slot0(self, pool: str) -> int:
        """Current sqrtPriceX96 of a pool."""
        result = await self.call(pool, abi.encode_slot0())
        return abi.decode_uint(result, 0)

    async def get_liquidity(self, pool: str) -> int:
        """In-range liquidity of a pool."""
        result = await self.call(pool, abi.encode_liquidity())
        return abi.decode_uint(result, 0)

    async def balance_of(self, token: str, owner: str | None = None) -> int:
        """ERC-20 balance (defaults to the wallet)."""
        result = await self.call(token, abi.encode_balance_of(owner or self.address))
        return abi.decode_uint(result, 0)

    async def allowance(self, token: str, owner: str, spender: str) -> int:
        result = await self.call(token, abi.encode_allowance(owner, spender))
        return abi.decode_uint(result, 0)

    async def get_native_balance(self, address: str | None = None) -> int:
        return await self.provider.get_balance(address or self.address)

    async def get_gas_price(self) -> int:
        gas_price, _ = await self.provider.get_gas_price()
        return gas_price

    # =========================================================================
    # WRITES
    # =========================================================================

    async def send_transaction(
        self,
        to: str,
        data: str,
        gas_limit: int,
        value: int = 0,
    ) -> PendingTransaction:
        """
        Sign and broadcast a legacy (gasPrice) transaction.

        Nonces are tracked locally after the first lookup; a failed broadcast
        resets them so the next call re-reads the pending count.

        Raises:
            TransactionError: If signing or broadcasting fails
        """
        sender = self.address

        async with self._nonce_lock:
            try:
                if self._nonce is None:
                    self._nonce = await self.provider.get_transaction_count(sender, "pending")
                gas_price = await self.get_gas_price()

                tx = {
                    "to": to_checksum_address(to),
                    "value": value,
                    "gas": gas_limit,
                    "gasPrice": gas_price,
                    "nonce": self._nonce,
                    "chainId": self.chain_id,
                    "data": data,
                }
                signed = self._account.sign_transaction(tx)
                tx_hash = await self.provider.send_raw_transaction(to_hex(signed.raw_transaction))
            except BotError as e:
                self._nonce = None
                raise TransactionError(
                    f"Failed to submit transaction: {e.message}",
                    details={"to": to, "error": str(e)},
                ) from e

            pending = PendingTransaction(
                tx_hash=tx_hash,
                to=to,
                nonce=self._nonce,
                gas_limit=gas_limit,
                gas_price=gas_price,
            )
            self._nonce += 1

        logger.info(
            f"Transaction sent: {tx_hash}",
            extra={"context": {"to": to, "nonce": pending.nonce, "gas_limit": gas_limit}},
        )
        return pending

    async def wait_for_receipt(
        self,
        tx_hash: str,
        timeout_seconds: float | None = None,
    ) -> TxReceipt | None:
        """
        Poll until the transaction is mined.

        Returns:
            TxReceipt, or None if it was not mined within the timeout
        """
        timeout = timeout_seconds if timeout_seconds is not None else self.receipt_timeout_seconds
        deadline = time.monotonic() + timeout

        while True:
            try:
                data = await self.provider.get_transaction_receipt(tx_hash)
            except BotError as e:
                logger.debug(f"Receipt poll failed for {tx_hash}: {e}")
                data = None

            if data:
                return TxReceipt.from_rpc(data)

            if time.monotonic() >= deadline:
                logger.warning(
                    f"No receipt for {tx_hash} after {timeout}s",
                    extra={"context": {"tx_hash": tx_hash}},
                )
                return None

            await asyncio.sleep(self.receipt_poll_seconds)
