"""
CLI command for scoring 1D thermal profiling experiments.
"""

import click

from tpmap.commands.common import NORMALIZATION_CHOICES, build_config, run_analysis
from tpmap.model.normalization import ExperimentType


@click.command("tp1d", short_help="Score a 1D (temperature series) experiment.")
@click.option(
    "-i",
    "--input",
    "input_file",
    help="Generic tab-delimited table with ref_<temperature>_<T1|T2|V1|V2> columns",
    required=True,
    type=click.Path(exists=True),
)
@click.option(
    "-o",
    "--output",
    help="Results file (.tsv, .csv or .parquet)",
    required=True,
    type=click.Path(),
)
@click.option(
    "-c",
    "--config",
    "config_file",
    help="YAML or JSON analysis configuration; command line options take precedence",
    type=click.Path(exists=True),
    default=None,
)
@click.option(
    "--normalization",
    help="Fold-change normalization",
    type=click.Choice(NORMALIZATION_CHOICES, case_sensitive=False),
    default=None,
)
@click.option("-w", "--tm-weight", help="Weight of melting point shifts in the score (0-1)", type=float)
@click.option("--attempts", "curve_fit_attempts", help="Curve fit starts per replicate", type=int)
@click.option("--max-iterations", "curve_fit_max_iterations", help="Evaluation limit per curve fit start", type=int)
@click.option("--seed", help="Random seed", type=int)
@click.option("--threads/--no-threads", "multithreading", help="Use a thread pool", default=None)
@click.option("--n-jobs", help="Number of worker threads", type=int)
@click.option("--save-config", help="Write the effective configuration to this file", type=click.Path())
def tp1d(
    input_file: str,
    output: str,
    config_file: str,
    normalization: str,
    tm_weight: float,
    curve_fit_attempts: int,
    curve_fit_max_iterations: int,
    seed: int,
    multithreading: bool,
    n_jobs: int,
    save_config: str,
) -> None:
    """
    Score a 1D thermal profiling experiment.

    A denaturation curve is fitted to each treatment and vehicle replicate.
    Proteins are ranked on their melting point shifts, fit quality and
    replicate agreement.

    \b
    EXAMPLES:
      tpmap tp1d -i experiment.tsv -o results.tsv
      tpmap tp1d -i experiment.tsv -o results.tsv --tm-weight 0.5 --attempts 20
    """
    config = build_config(
        config_file,
        {
            "normalization": normalization,
            "tm_weight": tm_weight,
            "curve_fit_attempts": curve_fit_attempts,
            "curve_fit_max_iterations": curve_fit_max_iterations,
            "seed": seed,
            "multithreading": multithreading,
            "n_jobs": n_jobs,
        },
    )
    run_analysis(input_file, output, ExperimentType.TP1D, config, save_config=save_config)
