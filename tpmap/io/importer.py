"""
Build a :class:`Proteome` from in-memory protein records.
"""

import re
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Union

import numpy as np

from tpmap.core.constants import REPLICATE_LABELS, concentration_sort_key
from tpmap.core.exceptions import InvalidShapeError
from tpmap.core.logger import get_logger
from tpmap.model.normalization import ExperimentType
from tpmap.model.protein import Protein1D, Protein2D
from tpmap.model.proteome import Proteome

logger = get_logger("tpmap.io.importer")

ANNOTATION_FIELDS = (
    "description",
    "organism_name",
    "organism_identifier",
    "gene_name",
    "protein_existence",
    "sequence_version",
)

_DESCRIPTION_KEYS = {
    "OS": "organism_name",
    "OX": "organism_identifier",
    "GN": "gene_name",
    "PE": "protein_existence",
    "SV": "sequence_version",
}
_DESCRIPTION_SPLIT = re.compile(r"\s(OS|OX|GN|PE|SV)=")


def parse_description(text: Optional[str]) -> Dict[str, str]:
    """
    Split a UniProt style description into its fields.

    Parameters
    ----------
    text : str
        e.g. ``"Protein kinase OS=Homo sapiens OX=9606 GN=PKA PE=1 SV=2"``.

    Returns
    -------
    dict
        ``description`` plus whichever of ``organism_name``,
        ``organism_identifier``, ``gene_name``, ``protein_existence`` and
        ``sequence_version`` are present; missing fields are empty strings.
    """
    fields = {name: "" for name in ANNOTATION_FIELDS}
    if not text:
        return fields
    text = str(text).strip().strip('"')
    parts = _DESCRIPTION_SPLIT.split(text)
    fields["description"] = parts[0].strip()
    for key, value in zip(parts[1::2], parts[2::2]):
        fields[_DESCRIPTION_KEYS[key]] = value.strip()
    return fields


def _sort_order(labels: Sequence[str], key) -> List[int]:
    return sorted(range(len(labels)), key=lambda i: key(labels[i]))


def _check_unique(labels: Sequence[str], key, kind: str) -> None:
    seen = {}
    for label in labels:
        k = key(label)
        if k in seen:
            raise InvalidShapeError(f"Duplicate {kind} label {label!r} (same as {seen[k]!r})")
        seen[k] = label


def _temperature_key(label: str) -> float:
    try:
        return float(label)
    except ValueError:
        raise InvalidShapeError(f"Temperature label {label!r} is not numeric") from None


def _replicate_order(labels: Sequence[str]) -> List[int]:
    """Map replicate labels onto the fixed T1, T2, V1, V2 row order."""
    normalized = [str(label).strip().upper() for label in labels]
    if sorted(normalized) != sorted(REPLICATE_LABELS):
        raise InvalidShapeError(
            f"1D experiments need the replicate labels {REPLICATE_LABELS}, got {list(labels)}"
        )
    return [normalized.index(label) for label in REPLICATE_LABELS]


def _as_float_matrix(values, accession: str) -> np.ndarray:
    try:
        rows = [[np.nan if v is None else v for v in row] for row in values]
    except TypeError as e:
        raise InvalidShapeError(f"Abundances of {accession} are not a matrix") from e
    widths = {len(row) for row in rows}
    if len(widths) > 1:
        raise InvalidShapeError(f"Abundances of {accession} are ragged (row lengths {sorted(widths)})")
    return np.array(rows, dtype=float)


def import_proteins(
    rows: Iterable[Mapping],
    temperature_labels: Sequence[str],
    concentration_labels: Optional[Sequence[str]],
    experiment_type: Union[ExperimentType, str],
    file_name: Optional[str] = None,
) -> Proteome:
    """
    Create a proteome from protein records.

    Parameters
    ----------
    rows : iterable of mapping
        One record per protein with an ``accession``, an ``abundances``
        matrix laid out in the order of the label lists (concentration or
        replicate rows, temperature columns), an optional ``reference``
        vector and optional annotation fields.
    temperature_labels : sequence of str
        Temperature label of each abundance column.
    concentration_labels : sequence of str
        Concentration label of each abundance row (2D), or replicate labels
        T1, T2, V1, V2 in any order (1D; defaults to that order).
    experiment_type : ExperimentType or str
        ``TP1D`` or ``TP2D``.
    file_name : str, optional
        Recorded on the proteome.

    Returns
    -------
    Proteome
        Proteome with labels sorted (temperatures ascending, concentrations
        numeric-aware) and every matrix reordered to match.

    Raises
    ------
    InvalidShapeError
        If a matrix is ragged or does not match the label lists, or labels
        are duplicated.
    """
    experiment_type = ExperimentType.from_str(experiment_type)
    temperature_labels = [str(t).strip() for t in temperature_labels]
    _check_unique(temperature_labels, _temperature_key, "temperature")
    column_order = _sort_order(temperature_labels, _temperature_key)

    if experiment_type == ExperimentType.TP1D:
        concentration_labels = list(concentration_labels or REPLICATE_LABELS)
        row_order = _replicate_order(concentration_labels)
        protein_cls = Protein1D
    else:
        if not concentration_labels:
            raise InvalidShapeError("A 2D experiment needs concentration labels")
        concentration_labels = [str(c).strip() for c in concentration_labels]
        _check_unique(concentration_labels, concentration_sort_key, "concentration")
        row_order = _sort_order(concentration_labels, concentration_sort_key)
        protein_cls = Protein2D

    proteome = Proteome(
        experiment_type,
        temperature_labels,
        [concentration_labels[i] for i in row_order],
        file_name=file_name,
    )
    expected = (len(concentration_labels), len(temperature_labels))

    for record in rows:
        accession = record["accession"]
        abundances = _as_float_matrix(record["abundances"], accession)
        if abundances.shape != expected:
            raise InvalidShapeError(
                f"Abundances of {accession} have shape {abundances.shape}, expected {expected} "
                f"({expected[0]} rows x {expected[1]} temperatures)"
            )
        abundances = abundances[np.ix_(row_order, column_order)]

        reference = record.get("reference")
        if reference is not None:
            reference = np.array([np.nan if v is None else v for v in reference], dtype=float)
            order = column_order if protein_cls is Protein2D else row_order
            if reference.shape != (len(order),):
                raise InvalidShapeError(f"Reference of {accession} has {reference.size} values, expected {len(order)}")
            reference = reference[order]

        annotations = {name: record.get(name) for name in ANNOTATION_FIELDS if record.get(name) is not None}
        proteome.add_protein(protein_cls(accession, abundances, reference=reference, **annotations))

    logger.info(
        f"Imported {len(proteome)} {experiment_type.name} proteins with "
        f"{len(proteome.temperature_labels)} temperatures and {len(proteome.concentration_labels)} "
        f"{'concentrations' if proteome.is_2d else 'replicates'}"
    )
    return proteome
