"""
strategy - Opportunity detection.

- config.py: TradingPair, ScannerConfig, ExecutionParams, strategy.yaml resolution
- scanner.py: OpportunityScanner (polling loop + per-cycle evaluation)
"""

from strategy.config import (
    ExecutionParams,
    ScannerConfig,
    StrategyConfig,
    TradingPair,
    build_strategy_config,
)
from strategy.scanner import OpportunityScanner

__all__ = [
    "ExecutionParams",
    "OpportunityScanner",
    "ScannerConfig",
    "StrategyConfig",
    "TradingPair",
    "build_strategy_config",
]
