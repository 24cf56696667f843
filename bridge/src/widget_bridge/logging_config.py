# bridge/src/widget_bridge/logging_config.py

import logging
import logging.config
import os
import sys
from typing import Union

BASE_LOGGER_NAME = "widget_bridge"

_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def setup_logging(
    log_directory: str,
    level: Union[int, str] = logging.INFO,
    log_file_name: str = 'widget_bridge.log',
    console_output: bool = True,
    json_output: bool = False
):
    """
    Route the `widget_bridge` loggers to a rotating log file and, optionally,
    a colored console stream. With `json_output` the file holds JSON lines.
    """
    os.makedirs(log_directory, exist_ok=True)
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)

    formatters = {
        'file': {
            '()': 'pythonjsonlogger.jsonlogger.JsonFormatter',
            'format': '%(asctime)s %(levelname)s %(name)s %(message)s'
        } if json_output else {'format': _FORMAT},
        'console': {
            '()': 'colorlog.ColoredFormatter',
            'format': '%(log_color)s' + _FORMAT + '%(reset)s',
        },
    }
    handlers = {
        'file': {
            'class': 'logging.handlers.RotatingFileHandler',
            'formatter': 'file',
            'filename': os.path.join(log_directory, log_file_name),
            'maxBytes': 10485760,
            'backupCount': 5,
            'encoding': 'utf8'
        },
    }
    if console_output:
        handlers['console'] = {
            'class': 'logging.StreamHandler',
            'formatter': 'console',
            'stream': sys.stdout
        }

    logging.config.dictConfig({
        'version': 1,
        'disable_existing_loggers': False,
        'formatters': formatters,
        'handlers': handlers,
        'loggers': {
            BASE_LOGGER_NAME: {'handlers': list(handlers), 'level': level, 'propagate': False},
        },
    })
    logging.getLogger(BASE_LOGGER_NAME).debug(f"Logging configured, level {logging.getLevelName(level)}")
