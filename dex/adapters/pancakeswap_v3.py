"""
dex/adapters/pancakeswap_v3.py - PancakeSwap V3 SwapRouter call encoding.

The Pancake V3 SwapRouter keeps the original V3 layout with a deadline:

struct ExactInputSingleParams {
    address tokenIn;
    address tokenOut;
    uint24 fee;
    address recipient;
    uint256 deadline;
    uint256 amountIn;
    uint256 amountOutMinimum;
    uint160 sqrtPriceLimitX96;
}
"""

from chains.abi import encode_uint
from core.constants import (
    PANCAKE_V3_DEFAULT_FEE_TIER,
    PANCAKE_V3_FEE_TIERS,
    SWAP_DEADLINE_SECONDS,
    DexProtocol,
)
from core.time import deadline_from_now
from dex.adapters.base import SwapAdapter, SwapParams

# exactInputSingle((address,address,uint24,address,uint256,uint256,uint256,uint160))
SELECTOR_EXACT_INPUT_SINGLE_V1 = "414bf389"


class PancakeStyleAdapter(SwapAdapter):
    """Routers with the 8-field (deadline-carrying) exactInputSingle."""

    protocol = DexProtocol.PANCAKE_STYLE
    selector = SELECTOR_EXACT_INPUT_SINGLE_V1
    fee_tiers = tuple(PANCAKE_V3_FEE_TIERS)
    default_fee_tier = PANCAKE_V3_DEFAULT_FEE_TIER

    def encode_swap(self, params: SwapParams) -> str:
        deadline = params.deadline
        if deadline is None:
            deadline = deadline_from_now(SWAP_DEADLINE_SECONDS)

        words = self._address_words(params) + [
            encode_uint(deadline),
            encode_uint(params.amount_in),
            encode_uint(params.amount_out_minimum),
            encode_uint(params.sqrt_price_limit_x96),
        ]
        return self._encode(words)
