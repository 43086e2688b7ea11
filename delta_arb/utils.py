"""
Common helpers: structured logging setup and amount/percentage formatting.
"""

import logging
import sys
from decimal import Decimal
from typing import Any, Dict, Optional, Union

from .types import ONE_TOKEN


# Logging utilities
def get_logger(
    name: str,
    level: Union[str, int] = logging.INFO,
    extra: Optional[Dict[str, Any]] = None,
) -> logging.Logger:
    """
    Get a structured logger with consistent formatting and extra context.

    Args:
        name: Logger name (typically __name__)
        level: Logging level
        extra: Additional context fields to include in all log messages

    Returns:
        Configured logger with structured output
    """
    logger = logging.getLogger(name)

    if logger.level == logging.NOTSET:
        logger.setLevel(level)

    # Defer to the root handler when setup_logging() has configured one
    if not logger.handlers and not logging.getLogger().handlers:
        handler = logging.StreamHandler()
        format_str = "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s"

        if extra:
            extra_fields = " | ".join([f"{k}=%(extra_{k})s" for k in extra.keys()])
            format_str = format_str.replace(
                " | %(message)s", f" | {extra_fields} | %(message)s"
            )

        handler.setFormatter(logging.Formatter(format_str, datefmt="%H:%M:%S"))
        logger.addHandler(handler)
        logger.propagate = False

        if extra:
            logger = logging.LoggerAdapter(
                logger, {"extra_" + k: v for k, v in extra.items()}
            )

    return logger


def setup_logging(level: Union[str, int] = logging.INFO) -> None:
    """
    Configure root logging for the bot process.

    - Single stdout handler, short timestamps
    - Suppresses chatty HTTP/RPC client loggers
    """
    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(level)
    console.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s | %(levelname)-7s | %(name)s | %(message)s",
            datefmt="%H:%M:%S",
        )
    )
    root.addHandler(console)

    logging.getLogger("web3").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("aiohttp.access").setLevel(logging.WARNING)
    logging.getLogger("delta_arb").setLevel(level)


def humanize(amount: int) -> Decimal:
    """Convert base units (9 decimals) to whole token units."""
    return Decimal(amount) / Decimal(ONE_TOKEN)


def format_amount(amount: int) -> str:
    """Format base units as a whole-unit string with 2 decimals."""
    return f"{humanize(amount):.2f}"


def format_pct(fraction: Decimal) -> str:
    """
    Format a signed fraction as a percentage string.

    Examples:
        >>> format_pct(Decimal("0.1"))
        '+10.00%'
        >>> format_pct(Decimal("-0.025"))
        '-2.50%'
    """
    percentage = fraction * 100
    if percentage >= 0:
        return f"+{percentage:.2f}%"
    return f"{percentage:.2f}%"
