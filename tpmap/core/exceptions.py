"""
Exceptions raised by the tpmap package.
"""


class InvalidShapeError(ValueError):
    """Raised when matrices are ragged or do not match the experiment labels."""
