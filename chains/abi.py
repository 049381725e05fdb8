"""
chains/abi.py - Minimal ABI encoding for the calls ZERO-BOT makes.

Only static types are used (address, uintN, static tuples), so every
argument is one 32-byte word and a static tuple encodes exactly like its
flattened fields: selector + words, no offsets.
"""

from core.constants import MAX_UINT256, ZERO_ADDRESS, ErrorCode
from core.exceptions import InfraError


# =============================================================================
# FUNCTION SELECTORS
# keccak256(signature)[:4]
# =============================================================================

# getPool(address,address,uint24)
SELECTOR_GET_POOL = "1698ee82"
# slot0()
SELECTOR_SLOT0 = "3850c7bd"
# liquidity()
SELECTOR_LIQUIDITY = "1a686502"
# balanceOf(address)
SELECTOR_BALANCE_OF = "70a08231"
# allowance(address,address)
SELECTOR_ALLOWANCE = "dd62ed3e"
# approve(address,uint256)
SELECTOR_APPROVE = "095ea7b3"


# =============================================================================
# WORD ENCODING
# =============================================================================

def encode_address(address: str) -> str:
    """Left-pad a 20-byte address to a 32-byte word (hex, no 0x)."""
    raw = address.lower().replace("0x", "")
    if len(raw) != 40:
        raise ValueError(f"Invalid address: {address}")
    return raw.zfill(64)


def encode_uint(value: int) -> str:
    """Encode an unsigned integer as a 32-byte word (hex, no 0x)."""
    if value < 0 or value > MAX_UINT256:
        raise ValueError(f"uint256 out of range: {value}")
    return hex(value)[2:].zfill(64)


def encode_call(selector: str, *words: str) -> str:
    """selector + already-encoded words, 0x-prefixed."""
    return "0x" + selector + "".join(words)


def decode_words(hex_result: str) -> list[int]:
    """
    Split a return payload into 32-byte words.

    Raises:
        InfraError: On empty or malformed payloads
    """
    if not hex_result or hex_result == "0x":
        raise InfraError(
            code=ErrorCode.INFRA_DECODE_ERROR,
            message="Empty call result",
        )

    data = hex_result[2:] if hex_result.startswith("0x") else hex_result
    if len(data) % 64 != 0:
        raise InfraError(
            code=ErrorCode.INFRA_DECODE_ERROR,
            message=f"Call result is not word-aligned: {len(data)} chars",
            details={"raw": hex_result[:100]},
        )

    try:
        return [int(data[i:i + 64], 16) for i in range(0, len(data), 64)]
    except ValueError as e:
        raise InfraError(
            code=ErrorCode.INFRA_DECODE_ERROR,
            message=f"Call result is not hex: {e}",
            details={"raw": hex_result[:100]},
        )


def decode_uint(hex_result: str, index: int = 0) -> int:
    """Decode the `index`-th word of a payload as uint."""
    words = decode_words(hex_result)
    if index >= len(words):
        raise InfraError(
            code=ErrorCode.INFRA_DECODE_ERROR,
            message=f"Call result has {len(words)} words, wanted index {index}",
        )
    return words[index]


def decode_address(hex_result: str, index: int = 0) -> str:
    """Decode the `index`-th word as a lower-case 0x address."""
    value = decode_uint(hex_result, index)
    return "0x" + hex(value)[2:].zfill(40)[-40:]


# =============================================================================
# CALL BUILDERS
# =============================================================================

def encode_get_pool(token_a: str, token_b: str, fee: int) -> str:
    return encode_call(
        SELECTOR_GET_POOL,
        encode_address(token_a),
        encode_address(token_b),
        encode_uint(fee),
    )


def encode_slot0() -> str:
    return encode_call(SELECTOR_SLOT0)


def encode_liquidity() -> str:
    return encode_call(SELECTOR_LIQUIDITY)


def encode_balance_of(owner: str) -> str:
    return encode_call(SELECTOR_BALANCE_OF, encode_address(owner))


def encode_allowance(owner: str, spender: str) -> str:
    return encode_call(
        SELECTOR_ALLOWANCE,
        encode_address(owner),
        encode_address(spender),
    )


def encode_approve(spender: str, amount: int = MAX_UINT256) -> str:
    return encode_call(
        SELECTOR_APPROVE,
        encode_address(spender),
        encode_uint(amount),
    )


def is_zero_address(address: str | None) -> bool:
    return not address or address.lower() == ZERO_ADDRESS
