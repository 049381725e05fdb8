"""
config/settings.py - Runtime settings and registries.

Environment (a .env file is loaded if present):
  RPC_URL                 required, comma-separated for failover
  PRIVATE_KEY             required
  MIN_PROFIT_THRESHOLD    required, fraction (0.005 = 0.5%)
  MAX_GAS_PRICE_GWEI      required, fallback gas price for estimates
  TRADE_AMOUNT_ETH        required, trade size in token_a units
  CHAIN_ID                optional, default 8453 (Base)
  PRICE_CHECK_INTERVAL_MS optional, default 2000
  LOG_LEVEL               optional, default INFO

Everything is resolved before the scanner starts; a missing or invalid
value raises ConfigError.
"""

import os
import re
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Dict, List, Mapping, Optional

from dotenv import load_dotenv

from config import load_dexes, load_strategy, load_token_registry
from core.constants import (
    CHAIN_KEYS,
    DEFAULT_CHAIN_ID,
    DEFAULT_SCAN_INTERVAL_MS,
    DexProtocol,
    ErrorCode,
)
from core.exceptions import ConfigError
from core.models import Token, Venue

_PRIVATE_KEY_RE = re.compile(r"^(0x)?[0-9a-fA-F]{64}$")
_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}

REQUIRED_VARS = (
    "RPC_URL",
    "PRIVATE_KEY",
    "MIN_PROFIT_THRESHOLD",
    "MAX_GAS_PRICE_GWEI",
    "TRADE_AMOUNT_ETH",
)


@dataclass(frozen=True)
class BotSettings:
    """Resolved runtime parameters."""
    rpc_urls: List[str]
    private_key: str = field(repr=False)
    min_profit_threshold: Decimal
    max_gas_price_gwei: Decimal
    trade_amount: Decimal
    chain_id: int = DEFAULT_CHAIN_ID
    scan_interval_ms: int = DEFAULT_SCAN_INTERVAL_MS
    log_level: str = "INFO"

    @property
    def chain_key(self) -> str:
        return CHAIN_KEYS[self.chain_id]


def _decimal(env: Mapping[str, str], name: str, minimum: Decimal, inclusive: bool = True) -> Decimal:
    raw = env[name].strip()
    try:
        value = Decimal(raw)
    except InvalidOperation:
        raise ConfigError(
            f"{name} is not a number: {raw!r}",
            code=ErrorCode.CONFIG_INVALID,
        )
    if not value.is_finite() or value < minimum or (not inclusive and value == minimum):
        bound = ">=" if inclusive else ">"
        raise ConfigError(
            f"{name} must be {bound} {minimum}, got {raw}",
            code=ErrorCode.CONFIG_INVALID,
        )
    return value


def _int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ConfigError(f"{name} is not an integer: {raw!r}", code=ErrorCode.CONFIG_INVALID)
    if value <= 0:
        raise ConfigError(f"{name} must be positive, got {value}", code=ErrorCode.CONFIG_INVALID)
    return value


def load_settings(
    env: Optional[Mapping[str, str]] = None,
    env_file: Optional[str] = None,
) -> BotSettings:
    """
    Build BotSettings from the environment.

    Args:
        env: Mapping to read instead of os.environ (tests)
        env_file: .env path to load first (default: search upward from cwd)

    Raises:
        ConfigError: CONFIG_MISSING / CONFIG_INVALID
    """
    if env is None:
        load_dotenv(env_file)
        env = os.environ

    missing = [name for name in REQUIRED_VARS if not env.get(name, "").strip()]
    if missing:
        raise ConfigError(
            f"Missing required environment variables: {', '.join(missing)}",
            code=ErrorCode.CONFIG_MISSING,
            details={"missing": missing},
        )

    rpc_urls = [u.strip() for u in env["RPC_URL"].split(",") if u.strip()]

    private_key = env["PRIVATE_KEY"].strip()
    if not _PRIVATE_KEY_RE.match(private_key):
        raise ConfigError("PRIVATE_KEY must be 32 bytes of hex", code=ErrorCode.CONFIG_INVALID)

    chain_id = _int(env, "CHAIN_ID", DEFAULT_CHAIN_ID)
    if chain_id not in CHAIN_KEYS:
        raise ConfigError(
            f"Unsupported CHAIN_ID: {chain_id}",
            code=ErrorCode.CONFIG_INVALID,
            details={"supported": sorted(CHAIN_KEYS)},
        )

    log_level = env.get("LOG_LEVEL", "INFO").strip().upper() or "INFO"
    if log_level not in _LOG_LEVELS:
        raise ConfigError(f"Invalid LOG_LEVEL: {log_level}", code=ErrorCode.CONFIG_INVALID)

    return BotSettings(
        rpc_urls=rpc_urls,
        private_key=private_key,
        min_profit_threshold=_decimal(env, "MIN_PROFIT_THRESHOLD", Decimal("0")),
        max_gas_price_gwei=_decimal(env, "MAX_GAS_PRICE_GWEI", Decimal("0"), inclusive=False),
        trade_amount=_decimal(env, "TRADE_AMOUNT_ETH", Decimal("0"), inclusive=False),
        chain_id=chain_id,
        scan_interval_ms=_int(env, "PRICE_CHECK_INTERVAL_MS", DEFAULT_SCAN_INTERVAL_MS),
        log_level=log_level,
    )


# =============================================================================
# REGISTRIES
# =============================================================================

def load_tokens(chain_key: str, config_dir: Path | None = None) -> Dict[str, Token]:
    """Symbol -> Token for one chain."""
    registry = load_token_registry(config_dir)
    if chain_key not in registry:
        raise ConfigError(f"No tokens configured for chain: {chain_key}", code=ErrorCode.CONFIG_INVALID)

    tokens = {}
    for symbol, entry in registry[chain_key].items():
        try:
            tokens[symbol] = Token(
                address=entry["address"],
                symbol=symbol,
                decimals=int(entry["decimals"]),
                name=entry.get("name", symbol),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise ConfigError(
                f"Invalid token entry {symbol}: {e}",
                code=ErrorCode.CONFIG_INVALID,
            )
    return tokens


def load_venues(chain_key: str, config_dir: Path | None = None) -> Dict[str, Venue]:
    """Venue key -> Venue for one chain."""
    registry = load_dexes(config_dir)
    if chain_key not in registry:
        raise ConfigError(f"No DEXes configured for chain: {chain_key}", code=ErrorCode.CONFIG_INVALID)

    venues = {}
    for key, entry in registry[chain_key].items():
        try:
            venues[key] = Venue(
                key=key,
                name=entry.get("name", key),
                router=entry["router"],
                factory=entry["factory"],
                quoter=entry.get("quoter"),
                protocol=DexProtocol(entry["protocol"]),
                version=entry.get("version", "V3"),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise ConfigError(
                f"Invalid DEX entry {key}: {e}",
                code=ErrorCode.CONFIG_INVALID,
            )
    return venues


__all__ = [
    "BotSettings",
    "REQUIRED_VARS",
    "load_settings",
    "load_strategy",
    "load_tokens",
    "load_venues",
]
