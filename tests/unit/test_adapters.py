"""
tests/unit/test_adapters.py - Router call encoding per venue protocol.
"""

import time

import pytest

from chains.abi import decode_words
from core.constants import DexProtocol, ErrorCode
from core.exceptions import ValidationError
from dex.adapters import (
    PancakeStyleAdapter,
    SwapParams,
    UniswapStyleAdapter,
    build_swap_call,
    get_adapter,
)

WETH = "0x4200000000000000000000000000000000000006"
USDC = "0x833589fCD6eDb6E08f4c7C32D4f71b54bdA02913"
WALLET = "0x00000000000000000000000000000000000000aa"


def make_params(**overrides) -> SwapParams:
    fields = dict(
        token_in=WETH,
        token_out=USDC,
        fee=500,
        recipient=WALLET,
        amount_in=10**17,
        amount_out_minimum=245_000_000,
    )
    fields.update(overrides)
    return SwapParams(**fields)


def split(calldata: str) -> tuple[str, list[int]]:
    return calldata[2:10], decode_words("0x" + calldata[10:])


class TestUniswapStyle:
    """SwapRouter02: 7 fields, no deadline."""

    def test_selector_and_word_count(self):
        selector, words = split(UniswapStyleAdapter().encode_swap(make_params()))
        assert selector == "04e45aaf"
        assert len(words) == 7

    def test_field_order(self):
        _, words = split(UniswapStyleAdapter().encode_swap(make_params()))
        assert words[0] == int(WETH, 16)
        assert words[1] == int(USDC, 16)
        assert words[2] == 500
        assert words[3] == int(WALLET, 16)
        assert words[4] == 10**17
        assert words[5] == 245_000_000
        assert words[6] == 0

    def test_deadline_ignored(self):
        with_deadline = UniswapStyleAdapter().encode_swap(make_params(deadline=123))
        without = UniswapStyleAdapter().encode_swap(make_params())
        assert with_deadline == without


class TestPancakeStyle:
    """V3 SwapRouter: 8 fields, deadline after recipient."""

    def test_selector_and_word_count(self):
        selector, words = split(PancakeStyleAdapter().encode_swap(make_params(deadline=1_700_000_300)))
        assert selector == "414bf389"
        assert len(words) == 8

    def test_deadline_position(self):
        _, words = split(PancakeStyleAdapter().encode_swap(make_params(deadline=1_700_000_300)))
        assert words[3] == int(WALLET, 16)
        assert words[4] == 1_700_000_300
        assert words[5] == 10**17
        assert words[6] == 245_000_000

    def test_default_deadline_in_future(self):
        _, words = split(PancakeStyleAdapter().encode_swap(make_params()))
        assert words[4] > int(time.time())


class TestRegistry:
    """Protocol dispatch."""

    def test_fee_tiers(self):
        assert get_adapter(DexProtocol.UNISWAP_STYLE).fee_tiers == (100, 500, 3000, 10000)
        assert get_adapter(DexProtocol.PANCAKE_STYLE).fee_tiers == (100, 500, 2500, 10000)

    def test_default_fee_tiers(self):
        assert get_adapter(DexProtocol.UNISWAP_STYLE).default_fee_tier == 3000
        assert get_adapter(DexProtocol.PANCAKE_STYLE).default_fee_tier == 500

    def test_unknown_protocol(self):
        with pytest.raises(ValidationError) as exc_info:
            get_adapter("curve_style")
        assert exc_info.value.code == ErrorCode.UNSUPPORTED_PROTOCOL

    def test_build_swap_call_dispatches_on_venue(self, uni_venue, pancake_venue):
        params = make_params(deadline=1)
        assert build_swap_call(uni_venue, params).startswith("0x04e45aaf")
        assert build_swap_call(pancake_venue, params).startswith("0x414bf389")
