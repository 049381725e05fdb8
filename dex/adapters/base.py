"""
dex/adapters/base.py - Shared swap-call encoding for V3 routers.

Both supported router layouts take a static struct of single-word fields,
so encoding is selector + one 32-byte word per field.
"""

from dataclasses import dataclass
from typing import ClassVar

from chains.abi import encode_address, encode_call, encode_uint
from core.constants import DexProtocol


@dataclass(frozen=True)
class SwapParams:
    """Inputs of one exactInputSingle swap."""
    token_in: str
    token_out: str
    fee: int
    recipient: str
    amount_in: int
    amount_out_minimum: int
    sqrt_price_limit_x96: int = 0
    deadline: int | None = None


class SwapAdapter:
    """
    Base class for router protocol adapters.

    Subclasses set the protocol, the selector and the fee tiers their
    factory deploys, and implement encode_swap().
    """

    protocol: ClassVar[DexProtocol]
    selector: ClassVar[str]
    fee_tiers: ClassVar[tuple[int, ...]]
    default_fee_tier: ClassVar[int]

    def encode_swap(self, params: SwapParams) -> str:
        raise NotImplementedError

    @staticmethod
    def _address_words(params: SwapParams) -> list[str]:
        return [
            encode_address(params.token_in),
            encode_address(params.token_out),
            encode_uint(params.fee),
            encode_address(params.recipient),
        ]

    def _encode(self, words: list[str]) -> str:
        return encode_call(self.selector, *words)
