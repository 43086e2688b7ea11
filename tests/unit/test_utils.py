"""Tests for logging setup and amount formatting helpers."""

import logging
from decimal import Decimal

from delta_arb.types import ONE_TOKEN
from delta_arb.utils import format_amount, format_pct, get_logger, humanize, setup_logging


def test_get_logger_basic():
    """Test basic get_logger functionality."""
    logger = get_logger(__name__)
    assert isinstance(logger, (logging.Logger, logging.LoggerAdapter))
    assert logger.name == __name__


def test_get_logger_with_level():
    logger = get_logger(__name__ + ".debug", level=logging.DEBUG)
    assert logging.getLogger(__name__ + ".debug").level == logging.DEBUG


def test_setup_logging_quiets_rpc_clients():
    root = logging.getLogger()
    saved_handlers = list(root.handlers)
    saved_level = root.level
    try:
        setup_logging(logging.DEBUG)
        assert root.level == logging.DEBUG
        assert logging.getLogger("web3").level == logging.WARNING
        assert logging.getLogger("urllib3").level == logging.WARNING
    finally:
        root.handlers[:] = saved_handlers
        root.setLevel(saved_level)


def test_humanize():
    assert humanize(ONE_TOKEN) == Decimal(1)
    assert humanize(1_500_000_000) == Decimal("1.5")


def test_format_amount():
    assert format_amount(2_000 * ONE_TOKEN) == "2000.00"
    assert format_amount(0) == "0.00"


def test_format_pct():
    assert format_pct(Decimal("0.1")) == "+10.00%"
    assert format_pct(Decimal("-0.025")) == "-2.50%"
    assert format_pct(Decimal("0")) == "+0.00%"
