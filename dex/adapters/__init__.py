"""
dex/adapters/ - Router protocol adapters.

Adapters:
- uniswap_v3: SwapRouter02 layout (no deadline)
- pancakeswap_v3: SwapRouter layout (with deadline)

Venues carry a DexProtocol tag; build_swap_call() dispatches on it so the
executor never branches on venue names.
"""

from core.constants import DexProtocol, ErrorCode
from core.exceptions import ValidationError
from core.models import Venue
from dex.adapters.base import SwapAdapter, SwapParams
from dex.adapters.pancakeswap_v3 import PancakeStyleAdapter
from dex.adapters.uniswap_v3 import UniswapStyleAdapter

ADAPTERS: dict[DexProtocol, SwapAdapter] = {
    DexProtocol.UNISWAP_STYLE: UniswapStyleAdapter(),
    DexProtocol.PANCAKE_STYLE: PancakeStyleAdapter(),
}


def get_adapter(protocol: DexProtocol) -> SwapAdapter:
    """
    Adapter for a venue protocol.

    Raises:
        ValidationError: UNSUPPORTED_PROTOCOL for unknown tags
    """
    adapter = ADAPTERS.get(protocol)
    if adapter is None:
        raise ValidationError(
            ErrorCode.UNSUPPORTED_PROTOCOL,
            f"Unsupported venue protocol: {protocol}",
        )
    return adapter


def build_swap_call(venue: Venue, params: SwapParams) -> str:
    """Router calldata for an exactInputSingle swap on `venue`."""
    return get_adapter(venue.protocol).encode_swap(params)


__all__ = [
    "ADAPTERS",
    "PancakeStyleAdapter",
    "SwapAdapter",
    "SwapParams",
    "UniswapStyleAdapter",
    "build_swap_call",
    "get_adapter",
]
