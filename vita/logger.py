import logging
import sys
from typing import Optional, Union

ROOT_NAME = "vita"


def setup_logging(level: Union[int, str] = logging.INFO) -> logging.Logger:
    logger = logging.getLogger(ROOT_NAME)
    logger.setLevel(level)

    # Evita handlers duplicados si se llama más de una vez (reload, tests)
    logger.handlers.clear()

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(
        "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    ))
    logger.addHandler(handler)
    return logger


def get_logger(name: Optional[str] = None) -> logging.Logger:
    if name:
        return logging.getLogger(f"{ROOT_NAME}.{name}")
    return logging.getLogger(ROOT_NAME)
