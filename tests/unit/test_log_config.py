import sys

import pytest
from loguru import logger

from driver_wrapper import log_config


@pytest.fixture
def fresh_logger(monkeypatch):
    monkeypatch.setattr(log_config, "_logger_initialized", False)
    yield
    logger.remove()
    logger.add(sys.stderr)


def test_writes_to_configured_file(fresh_logger, tmp_path):
    log_file = tmp_path / "logs" / "driver.log"

    log_config.init_logger(level="debug", format_string="{level} {message}", log_file=str(log_file))
    logger.debug("lookup by.css(\"li\")")
    logger.complete()

    content = log_file.read_text(encoding="utf-8")
    assert 'DEBUG lookup by.css("li")' in content


def test_second_call_is_noop_unless_forced(fresh_logger, tmp_path):
    first = tmp_path / "first.log"
    second = tmp_path / "second.log"

    log_config.init_logger(level="INFO", log_file=str(first))
    log_config.init_logger(level="INFO", log_file=str(second))
    logger.info("once")
    assert not second.exists()

    log_config.init_logger(level="INFO", log_file=str(second), force=True)
    logger.info("twice")
    assert "twice" in second.read_text(encoding="utf-8")
