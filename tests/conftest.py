"""
Shared fixtures for the tpmap tests.
"""

import numpy as np
import pytest

from tpmap.io import import_proteins
from tpmap.scoring.denaturation import denaturation_curve

TEMPERATURES_1D = ["37", "41", "44", "47", "50", "53", "56", "59", "63", "67"]


def melting_series(tm: float, temperatures=TEMPERATURES_1D, scale: float = 1e6) -> list:
    """Noise-free abundances of a curve melting at ``tm``."""
    t = np.array([float(x) for x in temperatures])
    b = 25.0
    return list(denaturation_curve(t, tm * b, b, 0.0) * scale)


@pytest.fixture(name="melting_series")
def melting_series_fixture():
    """Factory of noise-free melting curves, see :func:`melting_series`."""
    return melting_series


@pytest.fixture
def scenario_proteome():
    """Three 2x2 proteins: unchanged, destabilised and stabilised."""
    records = [
        {"accession": "P1", "abundances": [[1.0, 1.0], [1.0, 1.0]]},
        {"accession": "P2", "abundances": [[2.0, 2.0], [0.5, 0.5]]},
        {"accession": "P3", "abundances": [[0.5, 0.5], [2.0, 2.0]]},
    ]
    return import_proteins(records, ["37", "50"], ["0", "10"], "TP2D")


@pytest.fixture
def random_proteome():
    """Population of 2D proteins with log-normal fold changes."""
    rng = np.random.default_rng(7)
    records = []
    for k in range(20):
        abundances = np.exp(rng.normal(0.0, 0.3, size=(4, 5))) * 1000
        records.append({"accession": f"P{k:02d}", "abundances": abundances.tolist()})
    return import_proteins(records, ["40", "45", "50", "55", "60"], ["0", "0.1", "1", "10"], "TP2D")


@pytest.fixture
def shifted_1d_proteome():
    """1D proteins whose treatment replicates melt ``shift`` degrees above vehicle."""
    records = []
    for k, shift in enumerate([0.0, 2.0, 4.0, 6.0]):
        treated = melting_series(50.0 + shift)
        vehicle = melting_series(50.0)
        records.append(
            {
                "accession": f"S{k}",
                "abundances": [treated, treated, vehicle, vehicle],
            }
        )
    return import_proteins(records, TEMPERATURES_1D, ["T1", "T2", "V1", "V2"], "TP1D")
