"""
Exception hierarchy for the delta arbitrage bot.

Per-cycle errors (everything except ConfigError) are caught at the bot loop
boundary and turn into a skipped cycle plus a log entry. ConfigError is the
only kind allowed to terminate the process, and only at startup.
"""

from typing import Any, Dict, Optional


class DeltaArbError(Exception):
    """Base exception for all delta arbitrage related errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.details = details or {}


class ConfigError(DeltaArbError):
    """Raised when the deployment config, an address or a credential is unusable."""

    pass


class ChainQueryError(DeltaArbError):
    """Raised when a read-only chain query fails (network or contract read)."""

    def __init__(
        self,
        message: str,
        source: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.source = source


class InvalidStateError(DeltaArbError):
    """Raised when on-chain data violates an invariant (e.g. zero fair price)."""

    pass


class InsufficientReserveError(DeltaArbError):
    """Raised when the wallet cannot cover a swap input even after a top-up."""

    def __init__(
        self,
        message: str,
        token: Optional[str] = None,
        required: Optional[int] = None,
        available: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.token = token
        self.required = required
        self.available = available


class SwapExecutionError(DeltaArbError):
    """Raised when a transaction could not be submitted or was reverted."""

    def __init__(
        self,
        message: str,
        route: Optional[str] = None,
        tx_hash: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.route = route
        self.tx_hash = tx_hash
