"""Tests for the script logging setup."""

import pytest
import structlog

from amm_engine.log_config import configure_logging


@pytest.fixture(autouse=True)
def reset_structlog():
    yield
    structlog.reset_defaults()


def test_info_shown_debug_hidden(capsys):
    configure_logging(verbose=False)
    logger = structlog.get_logger()
    logger.info("fuzz_run_finished", model="stable")
    logger.debug("stable_state_refreshed", pool="0x1")

    out = capsys.readouterr().out
    assert "fuzz_run_finished" in out
    assert "model" in out
    assert "stable_state_refreshed" not in out


def test_verbose_shows_debug(capsys):
    configure_logging(verbose=True)
    structlog.get_logger().debug("concentrated_partial_fill", requested=10)

    assert "concentrated_partial_fill" in capsys.readouterr().out
