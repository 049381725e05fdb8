"""
tests/unit/test_chain_client.py - ChainClient reads, signing and receipts.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from chains import abi
from chains.client import ChainClient, TxReceipt
from chains.providers import RPCResponse
from core.constants import ErrorCode
from core.exceptions import ExecutionError, RPCError, TransactionError

TEST_KEY = "0x4c0883a69102937d6231471b5dbb6204fe5129617082792ae468d01a3f362318"
FACTORY = "0x33128a8fC17869897dcE68Ed026d694621f6FDfD"
WETH = "0x4200000000000000000000000000000000000006"
USDC = "0x833589fCD6eDb6E08f4c7C32D4f71b54bdA02913"
ROUTER = "0x2626664c2603336E57B271c5C0b26F421741e481"


@pytest.fixture
def mock_provider():
    provider = MagicMock()
    provider.chain_id = 8453
    provider.eth_call = AsyncMock()
    provider.get_transaction_count = AsyncMock(return_value=7)
    provider.get_gas_price = AsyncMock(return_value=(10**9, 12))
    provider.send_raw_transaction = AsyncMock(return_value="0x" + "ab" * 32)
    provider.get_transaction_receipt = AsyncMock(return_value=None)
    provider.get_balance = AsyncMock(return_value=5 * 10**16)
    return provider


@pytest.fixture
def client(mock_provider):
    return ChainClient.from_private_key(mock_provider, TEST_KEY, receipt_poll_seconds=0)


def call_result(payload: str) -> RPCResponse:
    return RPCResponse(result=payload, latency_ms=1, endpoint_used="mock")


class TestTxReceipt:
    """Receipt parsing."""

    def test_from_rpc(self):
        receipt = TxReceipt.from_rpc({
            "transactionHash": "0xfeed",
            "status": "0x1",
            "gasUsed": "0x249f0",
            "effectiveGasPrice": "0x3b9aca00",
            "blockNumber": "0x10",
        })
        assert receipt.succeeded
        assert receipt.gas_used == 150_000
        assert receipt.gas_cost == 150_000 * 10**9
        assert receipt.block_number == 16

    def test_reverted(self):
        receipt = TxReceipt.from_rpc({"transactionHash": "0xfeed", "status": "0x0"})
        assert not receipt.succeeded
        assert receipt.gas_cost == 0


class TestReads:
    """eth_call wrappers."""

    @pytest.mark.asyncio
    async def test_get_pool(self, client, mock_provider):
        pool = "0x" + "12" * 20
        mock_provider.eth_call.return_value = call_result("0x" + abi.encode_address(pool))

        assert await client.get_pool(FACTORY, WETH, USDC, 500) == pool
        kwargs = mock_provider.eth_call.await_args.kwargs
        assert kwargs["to"] == FACTORY
        assert kwargs["data"] == abi.encode_get_pool(WETH, USDC, 500)

    @pytest.mark.asyncio
    async def test_get_pool_zero_address(self, client, mock_provider):
        mock_provider.eth_call.return_value = call_result("0x" + "0" * 64)
        assert await client.get_pool(FACTORY, WETH, USDC, 500) is None

    @pytest.mark.asyncio
    async def test_slot0_first_word(self, client, mock_provider):
        words = abi.encode_uint(2**96) + abi.encode_uint(12345) + abi.encode_uint(0)
        mock_provider.eth_call.return_value = call_result("0x" + words)
        assert await client.get_slot0("0x" + "12" * 20) == 2**96

    @pytest.mark.asyncio
    async def test_balance_defaults_to_wallet(self, client, mock_provider):
        mock_provider.eth_call.return_value = call_result("0x" + abi.encode_uint(42))

        assert await client.balance_of(WETH) == 42
        data = mock_provider.eth_call.await_args.kwargs["data"]
        assert data == abi.encode_balance_of(client.address)

    @pytest.mark.asyncio
    async def test_null_result_raises(self, client, mock_provider):
        mock_provider.eth_call.return_value = call_result(None)
        with pytest.raises(RPCError):
            await client.get_liquidity("0x" + "12" * 20)

    def test_address_requires_account(self, mock_provider):
        with pytest.raises(ExecutionError) as exc_info:
            ChainClient(mock_provider).address
        assert exc_info.value.code == ErrorCode.EXEC_NO_SIGNER


class TestSendTransaction:
    """Local signing and nonce tracking."""

    @pytest.mark.asyncio
    async def test_signs_and_broadcasts(self, client, mock_provider):
        pending = await client.send_transaction(ROUTER, "0x095ea7b3", gas_limit=100_000)

        assert pending.tx_hash == "0x" + "ab" * 32
        assert pending.nonce == 7
        assert pending.gas_price == 10**9
        raw = mock_provider.send_raw_transaction.await_args.args[0]
        assert raw.startswith("0x") and len(raw) > 100

    @pytest.mark.asyncio
    async def test_nonce_tracked_locally(self, client, mock_provider):
        first = await client.send_transaction(ROUTER, "0x", gas_limit=21_000)
        second = await client.send_transaction(ROUTER, "0x", gas_limit=21_000)

        assert (first.nonce, second.nonce) == (7, 8)
        assert mock_provider.get_transaction_count.await_count == 1

    @pytest.mark.asyncio
    async def test_broadcast_failure_resets_nonce(self, client, mock_provider):
        mock_provider.send_raw_transaction.side_effect = RPCError("nonce too low")

        with pytest.raises(TransactionError) as exc_info:
            await client.send_transaction(ROUTER, "0x", gas_limit=21_000)
        assert "nonce too low" in exc_info.value.message

        mock_provider.send_raw_transaction.side_effect = None
        await client.send_transaction(ROUTER, "0x", gas_limit=21_000)
        assert mock_provider.get_transaction_count.await_count == 2


class TestWaitForReceipt:
    """Confirmation polling."""

    @pytest.mark.asyncio
    async def test_returns_receipt_after_polling(self, client, mock_provider):
        mined = {"transactionHash": "0xfeed", "status": "0x1", "gasUsed": "0x1", "effectiveGasPrice": "0x1"}
        mock_provider.get_transaction_receipt.side_effect = [None, RPCError("flaky"), mined]

        receipt = await client.wait_for_receipt("0xfeed", timeout_seconds=5)

        assert receipt.succeeded
        assert mock_provider.get_transaction_receipt.await_count == 3

    @pytest.mark.asyncio
    async def test_timeout_returns_none(self, client):
        assert await client.wait_for_receipt("0xfeed", timeout_seconds=0) is None

    @pytest.mark.asyncio
    async def test_native_balance(self, client):
        assert await client.get_native_balance() == 5 * 10**16
