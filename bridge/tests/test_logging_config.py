import logging

import pytest

from widget_bridge.logging_config import BASE_LOGGER_NAME, setup_logging


@pytest.fixture
def restore_logging():
    logger = logging.getLogger(BASE_LOGGER_NAME)
    root = logging.getLogger()
    saved = (logger.handlers[:], logger.level, logger.propagate, root.handlers[:], root.level)
    yield
    for handler in logger.handlers:
        if handler not in saved[0]:
            handler.close()
    for handler in root.handlers:
        if handler not in saved[3]:
            handler.close()
    logger.handlers[:] = saved[0]
    logger.setLevel(saved[1])
    logger.propagate = saved[2]
    root.handlers[:] = saved[3]
    root.setLevel(saved[4])


def test_setup_logging_writes_file(tmp_path, restore_logging):
    setup_logging(str(tmp_path), level="debug", console_output=False)

    logger = logging.getLogger(BASE_LOGGER_NAME)
    assert logger.level == logging.DEBUG
    assert logger.propagate is False
    logging.getLogger(f"{BASE_LOGGER_NAME}.manager").error("something failed")
    for handler in logger.handlers:
        handler.flush()

    assert "something failed" in (tmp_path / "widget_bridge.log").read_text()
    assert [type(h).__name__ for h in logger.handlers] == ["RotatingFileHandler"]


def test_setup_logging_json_and_console(tmp_path, restore_logging):
    setup_logging(str(tmp_path), level=logging.INFO, console_output=True, json_output=True)

    logger = logging.getLogger(BASE_LOGGER_NAME)
    handler_types = {type(h).__name__ for h in logger.handlers}
    assert "StreamHandler" in handler_types
    logger.info("structured")
    for handler in logger.handlers:
        handler.flush()

    assert '"message": "structured"' in (tmp_path / "widget_bridge.log").read_text()
