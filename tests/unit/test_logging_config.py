import logging

from config.logging_config import QUIET_LOGGERS, setup_logging


def test_client_libraries_are_quieted():
    setup_logging("debug")

    for name in QUIET_LOGGERS:
        assert logging.getLogger(name).level == logging.WARNING


def test_unknown_level_name_defaults_to_info():
    setup_logging("chatty")

    assert logging.getLogger("httpx").level == logging.WARNING
