import logging
import time
from contextlib import contextmanager
from typing import Union


def make_logger(name: str = "mvgeo", level: Union[int, str] = logging.INFO) -> logging.Logger:
    """
    Configure the package logger once. Library modules log through
    logging.getLogger(__name__), so configuring "mvgeo" covers all of them.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            raise ValueError(f"Unknown log level: {level}")
    logger = logging.getLogger(name)
    if not logger.handlers:
        h = logging.StreamHandler()
        fmt = logging.Formatter("[%(levelname)s] %(message)s")
        h.setFormatter(fmt)
        logger.addHandler(h)
    logger.setLevel(level)
    return logger


@contextmanager
def timed(logger: logging.Logger, msg: str):
    t0 = time.perf_counter()
    logger.info(f"{msg} ...")
    yield
    dt = time.perf_counter() - t0
    logger.info(f"{msg} done in {dt * 1000.0:.2f}ms")
