"""
Reader for the generic tab-delimited thermal profiling table.

The table has an ``Accession`` column (plain or ``sp|P12345|NAME``), a
``Description`` column and one abundance column per temperature and
concentration named ``ref_<temperature>_<concentration>``. Header matching
ignores case, quotes and whitespace. For 1D experiments the concentrations are the replicate
labels T1, T2, V1 and V2.
"""

import os
from pathlib import Path
from typing import Dict, Optional, Tuple, Union

import numpy as np
import pandas as pd

from tpmap.core.constants import ABUNDANCE_PREFIX, ABUNDANCE_SEPARATOR, get_accession
from tpmap.core.exceptions import InvalidShapeError
from tpmap.core.logger import get_logger
from tpmap.io.importer import import_proteins, parse_description
from tpmap.model.normalization import ExperimentType
from tpmap.model.proteome import Proteome

logger = get_logger("tpmap.io.table")


def clean_header(name: str) -> str:
    """Lowercase a header and strip quotes and whitespace."""
    return "".join(str(name).strip().strip('"').split()).lower()


def parse_abundance_header(header: str) -> Optional[Tuple[str, str]]:
    """
    Split an abundance column header into temperature and concentration.

    Parameters
    ----------
    header : str
        Cleaned header, e.g. ``"ref_37_0.5"``.

    Returns
    -------
    tuple of str or None
        ``(temperature, concentration)``, or ``None`` for other columns.

    Raises
    ------
    InvalidShapeError
        If the header has the abundance prefix but a malformed body.
    """
    if not header.startswith(f"{ABUNDANCE_PREFIX}{ABUNDANCE_SEPARATOR}"):
        return None
    parts = header.split(ABUNDANCE_SEPARATOR)
    if len(parts) != 3:
        raise InvalidShapeError(f"Invalid abundance header: {header}")
    _, temperature, concentration = parts
    try:
        float(temperature)
    except ValueError:
        raise InvalidShapeError(f"Invalid temperature value in header: {header}") from None
    if not concentration:
        raise InvalidShapeError(f"No concentration specified: {header}")
    return temperature, concentration


def read_table(
    path: Union[str, Path],
    experiment_type: Union[ExperimentType, str] = ExperimentType.TP2D,
    sep: str = "\t",
) -> Proteome:
    """
    Read a generic table into a proteome.

    Parameters
    ----------
    path : str or Path
        Table file.
    experiment_type : ExperimentType or str
        ``TP1D`` or ``TP2D``.
    sep : str
        Column delimiter.

    Returns
    -------
    Proteome
        Imported proteins; non-numeric abundance cells are NaN.

    Raises
    ------
    FileNotFoundError
        If the file does not exist.
    InvalidShapeError
        If required columns are missing, a temperature/concentration pair is
        duplicated or the grid is incomplete.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Table not found: {path}")

    df = pd.read_csv(path, sep=sep, dtype=str, keep_default_na=False)
    headers = {clean_header(c): c for c in df.columns}
    if "accession" not in headers:
        raise InvalidShapeError(f"No Accession column in {path}")

    cells: Dict[Tuple[float, str], str] = {}
    temperatures: Dict[float, str] = {}
    concentrations = []
    for original in df.columns:
        parsed = parse_abundance_header(clean_header(original))
        if parsed is None:
            continue
        temperature, concentration = parsed
        key = (float(temperature), concentration)
        if key in cells:
            raise InvalidShapeError(
                f"Too many columns for temperature {temperature} and concentration {concentration}"
            )
        cells[key] = original
        temperatures.setdefault(float(temperature), temperature)
        if concentration not in concentrations:
            concentrations.append(concentration)

    if not temperatures:
        raise InvalidShapeError("Could not identify temperature values")
    if not concentrations:
        raise InvalidShapeError("Could not identify concentration values")

    temperature_keys = list(temperatures)
    columns = []
    for concentration in concentrations:
        row = []
        for t in temperature_keys:
            if (t, concentration) not in cells:
                raise InvalidShapeError(
                    f"Unable to find column for temperature {temperatures[t]} and concentration {concentration}"
                )
            row.append(cells[(t, concentration)])
        columns.append(row)

    values = np.stack(
        [df[row].apply(pd.to_numeric, errors="coerce").to_numpy(dtype=float) for row in columns],
        axis=1,
    )
    accessions = df[headers["accession"]].str.strip()
    descriptions = df[headers["description"]] if "description" in headers else pd.Series([""] * len(df))

    records = []
    for k, accession in enumerate(accessions):
        if not accession:
            continue
        record = parse_description(descriptions.iloc[k])
        record["accession"] = get_accession(accession)
        record["abundances"] = values[k]
        records.append(record)

    logger.info(f"Read {len(records)} proteins from {path}")
    return import_proteins(
        records,
        [temperatures[t] for t in temperature_keys],
        concentrations,
        experiment_type,
        file_name=os.path.basename(str(path)),
    )
