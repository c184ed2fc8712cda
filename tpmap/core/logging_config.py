"""
Default logging setup applied when the tpmap package is imported.
"""

import logging


def initialize_logging(level: int = logging.WARNING) -> None:
    """
    Install a ``NullHandler`` on the package logger.

    Library users stay in control of handlers; the CLI replaces this with a
    real configuration.

    Parameters
    ----------
    level : int
        Level of the ``tpmap`` logger.
    """
    root = logging.getLogger("tpmap")
    if not any(isinstance(h, logging.NullHandler) for h in root.handlers):
        root.addHandler(logging.NullHandler())
    if root.level == logging.NOTSET:
        root.setLevel(level)
