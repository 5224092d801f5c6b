import logging

import pytest
import structlog

from token_deployer.utils.logs import QUIET_LOGGERS, configure_logging

pytestmark = pytest.mark.usefixtures("restore_logging")


def test_events_are_written_to_log_file_as_key_value_pairs(tmp_path):
    log_file = tmp_path.joinpath("token-deployer.log")
    configure_logging("DEBUG", str(log_file))

    structlog.get_logger("token_deployer.test").info("Transaction sent", nonce=7)

    content = log_file.read_text()
    assert "event='Transaction sent'" in content
    assert "level='info'" in content
    assert "nonce=7" in content


def test_level_is_applied_to_root_logger():
    configure_logging("warning")
    assert logging.getLogger().level == logging.WARNING


def test_chatty_third_party_loggers_stay_above_debug():
    configure_logging("DEBUG")

    for name in QUIET_LOGGERS:
        assert logging.getLogger(name).level == logging.INFO
