"""
dex - Venue quoting and router call construction.

- quoter.py: PriceQuoter (best fee tier per venue, from slot0)
- adapters/: swap-call encodings per venue protocol
"""

from dex.adapters import SwapParams, build_swap_call, get_adapter
from dex.quoter import PriceQuoter

__all__ = [
    "PriceQuoter",
    "SwapParams",
    "build_swap_call",
    "get_adapter",
]
