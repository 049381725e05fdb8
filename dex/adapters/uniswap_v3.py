"""
dex/adapters/uniswap_v3.py - Uniswap V3 SwapRouter02 call encoding.

SwapRouter02 dropped the deadline from the struct:

struct ExactInputSingleParams {
    address tokenIn;
    address tokenOut;
    uint24 fee;
    address recipient;
    uint256 amountIn;
    uint256 amountOutMinimum;
    uint160 sqrtPriceLimitX96;
}
"""

from chains.abi import encode_uint
from core.constants import (
    UNISWAP_V3_DEFAULT_FEE_TIER,
    UNISWAP_V3_FEE_TIERS,
    DexProtocol,
)
from dex.adapters.base import SwapAdapter, SwapParams

# exactInputSingle((address,address,uint24,address,uint256,uint256,uint160))
SELECTOR_EXACT_INPUT_SINGLE_V2 = "04e45aaf"


class UniswapStyleAdapter(SwapAdapter):
    """Routers with the 7-field (no deadline) exactInputSingle."""

    protocol = DexProtocol.UNISWAP_STYLE
    selector = SELECTOR_EXACT_INPUT_SINGLE_V2
    fee_tiers = tuple(UNISWAP_V3_FEE_TIERS)
    default_fee_tier = UNISWAP_V3_DEFAULT_FEE_TIER

    def encode_swap(self, params: SwapParams) -> str:
        words = self._address_words(params) + [
            encode_uint(params.amount_in),
            encode_uint(params.amount_out_minimum),
            encode_uint(params.sqrt_price_limit_x96),
        ]
        return self._encode(words)
