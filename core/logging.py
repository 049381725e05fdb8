"""
core/logging.py - Structured logging.

All contextual fields are passed via extra={"context": {...}}.

Console output is human-readable; files get one JSON object per line:
{
    "timestamp": "2026-01-04T12:00:00.000+00:00",
    "level": "INFO",
    "logger": "strategy.scanner",
    "message": "Profitable opportunity found",
    "context": {"pair": "WETH/USDC", "profit_percent": "0.42"}
}
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from core.models import ArbitrageOpportunity, TradeResult

# Global context that gets added to all log entries
_global_context: dict[str, Any] = {}


class JSONFormatter(logging.Formatter):
    """JSON log formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        context = {}
        context.update(_global_context)
        if hasattr(record, "context") and record.context:
            context.update(record.context)

        if record.exc_info:
            context["exception"] = self.formatException(record.exc_info)

        if context:
            log_entry["context"] = context

        return json.dumps(log_entry, default=str)


class ConsoleFormatter(logging.Formatter):
    """
    Human-readable formatter for console output.

    Shows at most three context fields to keep lines short.
    """

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
        base = f"{timestamp} | {record.levelname:<8} | {record.name} | {record.getMessage()}"

        if hasattr(record, "context") and record.context:
            items = list(record.context.items())
            ctx_str = ", ".join(f"{k}={v}" for k, v in items[:3])
            if len(items) > 3:
                ctx_str += f", ... (+{len(items) - 3} more)"
            base += f" | {ctx_str}"

        if record.exc_info:
            base += "\n" + self.formatException(record.exc_info)

        return base


class ContextAdapter(logging.LoggerAdapter):
    """Logger adapter that adds context to all log entries."""

    def process(
        self, msg: str, kwargs: dict[str, Any]
    ) -> tuple[str, dict[str, Any]]:
        extra = kwargs.get("extra", {})
        context = {**self.extra, **extra.get("context", {})}

        kwargs["extra"] = {"context": context}
        return msg, kwargs


def set_global_context(**kwargs: Any) -> None:
    """
    Set global context that gets added to all JSON log entries.

    Example:
        set_global_context(chain_id=8453, wallet="0xabc...")
    """
    _global_context.update(kwargs)


def clear_global_context() -> None:
    """Clear global logging context."""
    _global_context.clear()


def get_logger(name: str, **context: Any) -> ContextAdapter:
    """
    Get a logger with optional default context.

    Example:
        logger = get_logger(__name__, component="scanner")
        logger.info("Cycle done", extra={"context": {"opportunities": 2}})
    """
    return ContextAdapter(logging.getLogger(name), context)


def setup_logging(
    level: str = "INFO",
    json_output: bool = False,
    log_file: str | None = None,
    error_log_file: str | None = None,
) -> None:
    """
    Setup logging configuration.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        json_output: JSON on the console too (default: human-readable)
        log_file: Optional JSON log file with every record
        error_log_file: Optional JSON log file with ERROR and above only
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper()))
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(JSONFormatter() if json_output else ConsoleFormatter())
    root_logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(JSONFormatter())
        root_logger.addHandler(file_handler)

    if error_log_file:
        error_handler = logging.FileHandler(error_log_file, encoding="utf-8")
        error_handler.setLevel(logging.ERROR)
        error_handler.setFormatter(JSONFormatter())
        root_logger.addHandler(error_handler)

    # Suppress noisy loggers
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================

def log_opportunity(
    logger: ContextAdapter,
    opportunity: "ArbitrageOpportunity",
    message: str = "Profitable opportunity found",
) -> None:
    """Log an emitted opportunity with standard context."""
    logger.info(
        f"{message}: {opportunity.pair} buy@{opportunity.buy_dex} "
        f"sell@{opportunity.sell_dex} net={opportunity.profit_percent:.2f}%",
        extra={
            "context": {
                "opportunity_id": opportunity.opportunity_id,
                "pair": opportunity.pair,
                "buy_dex": opportunity.buy_dex,
                "sell_dex": opportunity.sell_dex,
                "buy_price": str(opportunity.buy_price),
                "sell_price": str(opportunity.sell_price),
                "net_profit": str(opportunity.net_profit),
                "estimated_gas_cost": str(opportunity.estimated_gas_cost),
            }
        },
    )


def log_trade(
    logger: ContextAdapter,
    result: "TradeResult",
    **extra: Any,
) -> None:
    """Log a trade outcome with standard context."""
    context = {**result.to_dict(), **extra}
    if result.success:
        logger.info(f"Trade complete | tx={result.tx_hash}", extra={"context": context})
    else:
        logger.error(f"Trade failed | {result.error}", extra={"context": context})
