"""
Logging helpers for the tpmap package.

Modules obtain their logger through :func:`get_logger` so that every logger
lives under the ``tpmap`` namespace and picks up the package configuration.
"""

import functools
import logging
import time
from pathlib import Path
from typing import Callable, Optional, Union

DEFAULT_FORMAT = "%(asctime)s [%(funcName)s] - %(message)s"


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger under the tpmap namespace.

    Parameters
    ----------
    name : str
        Logger name, e.g. ``"tpmap.scoring.flood2d"``.

    Returns
    -------
    logging.Logger
        The logger.
    """
    if not name.startswith("tpmap"):
        name = f"tpmap.{name}"
    return logging.getLogger(name)


def configure_logging(
    level: Union[int, str] = logging.INFO,
    log_file: Optional[Union[str, Path]] = None,
    fmt: str = DEFAULT_FORMAT,
) -> logging.Logger:
    """
    Configure the ``tpmap`` logger with a stream handler and an optional file.

    Parameters
    ----------
    level : int or str
        Logging level.
    log_file : str or Path, optional
        File to write the log to. Parent directories are created.
    fmt : str
        Log record format.

    Returns
    -------
    logging.Logger
        The package root logger.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())

    root = logging.getLogger("tpmap")
    root.setLevel(level)
    formatter = logging.Formatter(fmt)

    for handler in list(root.handlers):
        if not isinstance(handler, logging.NullHandler):
            root.removeHandler(handler)
            handler.close()

    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(formatter)
    stream_handler.setLevel(level)
    root.addHandler(stream_handler)

    if log_file is not None:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        file_handler.setLevel(level)
        root.addHandler(file_handler)

    return root


def log_execution_time(logger: Optional[logging.Logger] = None, level: int = logging.INFO) -> Callable:
    """
    Decorator logging how long the wrapped function took.

    Parameters
    ----------
    logger : logging.Logger, optional
        Logger to use. Defaults to the logger of the wrapped function's module.
    level : int
        Level of the timing message.
    """

    def decorator(fn: Callable) -> Callable:
        log = logger or get_logger(fn.__module__)

        @functools.wraps(fn)
        def wrapper(*args, **kwargs):
            start = time.perf_counter()
            try:
                return fn(*args, **kwargs)
            finally:
                log.log(level, "%s finished in %.3f s", fn.__qualname__, time.perf_counter() - start)

        return wrapper

    return decorator

