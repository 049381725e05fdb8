"""
Pytest configuration and fixtures for ZERO-BOT tests.
"""

import sys
from pathlib import Path

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from chains.abi import SELECTOR_APPROVE  # noqa: E402
from chains.client import PendingTransaction, TxReceipt  # noqa: E402
from core.constants import MAX_UINT256, DexProtocol  # noqa: E402
from core.models import Token, Venue  # noqa: E402


def pytest_configure(config):
    """Configure pytest."""
    # Add custom markers
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )


WALLET = "0x00000000000000000000000000000000000000aa"


@pytest.fixture
def weth() -> Token:
    return Token(
        address="0x4200000000000000000000000000000000000006",
        symbol="WETH",
        decimals=18,
        name="Wrapped Ether",
    )


@pytest.fixture
def usdc() -> Token:
    return Token(
        address="0x833589fCD6eDb6E08f4c7C32D4f71b54bdA02913",
        symbol="USDC",
        decimals=6,
        name="USD Coin",
    )


@pytest.fixture
def uni_venue() -> Venue:
    return Venue(
        key="UNISWAP_V3",
        name="Uniswap V3",
        router="0x2626664c2603336E57B271c5C0b26F421741e481",
        factory="0x33128a8fC17869897dcE68Ed026d694621f6FDfD",
        quoter="0x3d4e44Eb1374240CE5F1B871ab261CD16335B76a",
        protocol=DexProtocol.UNISWAP_STYLE,
    )


@pytest.fixture
def pancake_venue() -> Venue:
    return Venue(
        key="PANCAKESWAP_V3",
        name="PancakeSwap V3",
        router="0x1b81D678ffb9C0263b24A97847620C99d213eB14",
        factory="0x0BFbCF9fa4f9C56B0F40a671Ad40E0805A091865",
        quoter="0xB048Bbc1Ee6b733FFfCFb9e9CeF7375518e25997",
        protocol=DexProtocol.PANCAKE_STYLE,
    )


class FakeChain:
    """
    In-memory stand-in for ChainClient.

    Swaps sent to a router in `swap_effects` credit the configured output
    token; routers in `reverting` mine with status 0; hashes in `lost`
    never get a receipt.
    """

    address = WALLET

    def __init__(self, gas_price: int = 10**9, gas_used: int = 150_000):
        self.gas_price = gas_price
        self.gas_used = gas_used
        self.balances: dict[str, int] = {}
        self.allowances: dict[tuple[str, str], int] = {}
        self.pools: dict[int, str] = {}
        self.swap_effects: dict[str, tuple[str, int]] = {}
        self.reverting: set[str] = set()
        self.lost: set[str] = set()
        self.sent: list[PendingTransaction] = []
        self.calldata: list[str] = []

    def set_balance(self, token: Token, amount: int) -> None:
        self.balances[token.address.lower()] = amount

    def approve_all(self, *routers: str) -> None:
        for token in list(self.balances):
            for router in routers:
                self.allowances[(token, router.lower())] = MAX_UINT256

    async def balance_of(self, token: str, owner: str | None = None) -> int:
        return self.balances.get(token.lower(), 0)

    async def allowance(self, token: str, owner: str, spender: str) -> int:
        return self.allowances.get((token.lower(), spender.lower()), 0)

    async def get_pool(self, factory: str, token_a: str, token_b: str, fee: int) -> str | None:
        return self.pools.get(fee)

    async def get_gas_price(self) -> int:
        return self.gas_price

    async def send_transaction(self, to: str, data: str, gas_limit: int, value: int = 0) -> PendingTransaction:
        pending = PendingTransaction(
            tx_hash="0x" + f"{len(self.sent) + 1:x}".zfill(64),
            to=to,
            nonce=len(self.sent),
            gas_limit=gas_limit,
            gas_price=self.gas_price,
        )
        self.sent.append(pending)
        self.calldata.append(data)
        return pending

    async def wait_for_receipt(self, tx_hash: str, timeout_seconds: float | None = None) -> TxReceipt | None:
        if tx_hash in self.lost:
            return None
        index = int(tx_hash, 16) - 1
        pending, data = self.sent[index], self.calldata[index]
        target = pending.to.lower()

        if target in self.reverting:
            status = 0
        else:
            status = 1
            if data.startswith("0x" + SELECTOR_APPROVE):
                spender = "0x" + data[10 + 24:10 + 64]
                self.allowances[(target, spender)] = MAX_UINT256
            elif target in self.swap_effects:
                token_out, amount = self.swap_effects[target]
                key = token_out.lower()
                self.balances[key] = self.balances.get(key, 0) + amount

        return TxReceipt(
            tx_hash=tx_hash,
            status=status,
            gas_used=self.gas_used,
            effective_gas_price=self.gas_price,
        )

    def swaps_to(self, router: str) -> list[str]:
        """Calldata of transactions sent to `router`."""
        return [
            data for pending, data in zip(self.sent, self.calldata)
            if pending.to.lower() == router.lower()
        ]


@pytest.fixture
def chain() -> FakeChain:
    return FakeChain()
