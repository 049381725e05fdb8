"""
core/exceptions.py - Typed exceptions for ZERO-BOT.

Every error carries an ErrorCode so failures can be reported with a
short cause string and grouped in logs. Transient read failures are
InfraError, execution failures ExecutionError, startup problems ConfigError.
"""

from typing import Any, Optional

from core.constants import ErrorCode


class BotError(Exception):
    """Base exception for ZERO-BOT."""

    def __init__(
        self,
        code: ErrorCode = ErrorCode.UNKNOWN,
        message: str = "",
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.message}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "error_code": self.code.value,
            "message": self.message,
            "details": self.details,
        }


class InfraError(BotError):
    """Infrastructure-related errors (RPC, timeouts, decoding)."""
    pass


class RPCError(InfraError):
    """RPC call failed or returned an error object."""

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(ErrorCode.INFRA_RPC_ERROR, message, details)


class ValidationError(BotError):
    """Pre-trade validation failed; aborts the current opportunity only."""
    pass


class ExecutionError(BotError):
    """A trade leg or approval failed on-chain."""
    pass


class TransactionError(ExecutionError):
    """Transaction could not be signed or submitted."""

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(ErrorCode.EXEC_SUBMIT_FAILED, message, details)


class ConfigError(BotError):
    """Startup configuration is missing or invalid. Fatal."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.CONFIG_MISSING,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(code, message, details)
