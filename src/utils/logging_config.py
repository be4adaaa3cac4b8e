"""
Logging configuration
Structured JSON logs on stdout for the whole app
"""

import logging
import sys
from logging import StreamHandler
from typing import Union

from pythonjsonlogger import jsonlogger

LOG_FORMAT = '%(asctime)s %(levelname)s %(name)s %(message)s %(module)s %(lineno)d'

# Libraries that log every parsed object or connection at DEBUG
NOISY_LOGGERS = ("pdfminer", "PIL", "urllib3")


def configure_logging(level: Union[int, str] = logging.INFO) -> None:
    """
    Install a single JSON handler on the root logger

    Safe to call on every Streamlit rerun: existing root handlers are replaced.

    Args:
        level: Logging level, as a number or a name such as "DEBUG"
    """
    root = logging.getLogger()
    root.setLevel(level)

    for handler in list(root.handlers):
        root.removeHandler(handler)

    handler = StreamHandler(stream=sys.stdout)
    handler.setFormatter(jsonlogger.JsonFormatter(LOG_FORMAT))
    handler.setLevel(level)
    root.addHandler(handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
