"""
Normalization and experiment type enumerations for the tpmap package.
"""

from enum import Enum, auto


class NormalizationMethod(Enum):
    """
    Enumeration of fold-change normalization methods.

    Attributes
    ----------
    NONE : auto
        Normalized ratios are the raw ratios.
    MEDIAN : auto
        Each cell is divided by the population median at that cell.
    """

    NONE = auto()
    MEDIAN = auto()

    @classmethod
    def from_str(cls, name: str) -> "NormalizationMethod":
        """
        Get the normalization method from a string.

        Parameters
        ----------
        name : str
            The name of the normalization method.

        Returns
        -------
        NormalizationMethod
            The normalization method.

        Raises
        ------
        KeyError
            If the name does not match any normalization method.
        """
        if name is None:
            return cls.NONE
        if isinstance(name, cls):
            return name
        name_ = name.lower()
        for k, v in cls._member_map_.items():
            if k.lower() == name_:
                return v
        raise KeyError(name)


class ExperimentType(Enum):
    """
    Type of thermal profiling experiment.

    Attributes
    ----------
    TP1D : auto
        Temperature series for treatment and vehicle replicates.
    TP2D : auto
        Concentration by temperature grid.
    """

    TP1D = auto()
    TP2D = auto()

    @classmethod
    def from_str(cls, name: str) -> "ExperimentType":
        """Get the experiment type from a string such as ``"2d"`` or ``"TP2D"``."""
        if isinstance(name, cls):
            return name
        name_ = name.lower()
        if not name_.startswith("tp"):
            name_ = f"tp{name_}"
        for k, v in cls._member_map_.items():
            if k.lower() == name_:
                return v
        raise KeyError(name)
