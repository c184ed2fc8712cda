"""
CLI command for scoring 2D thermal profiling experiments.
"""

import click

from tpmap.commands.common import NORMALIZATION_CHOICES, build_config, run_analysis
from tpmap.model.normalization import ExperimentType


@click.command("tp2d", short_help="Score a 2D (concentration x temperature) experiment.")
@click.option(
    "-i",
    "--input",
    "input_file",
    help="Generic tab-delimited table with ref_<temperature>_<concentration> columns",
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
@click.option("--min-percentile", help="Percentile of protein minima for the destabilisation threshold", type=float)
@click.option("--max-percentile", help="Percentile of protein maxima for the stabilisation threshold", type=float)
@click.option(
    "--thresholds",
    help="Fixed minimum and maximum thresholds instead of percentile-derived ones",
    type=(float, float),
    default=None,
)
@click.option("-b", "--bootstrap-iterations", help="Bootstrap iterations for p-values (0 disables)", type=int)
@click.option("--seed", help="Random seed", type=int)
@click.option("--threads/--no-threads", "multithreading", help="Use a thread pool", default=None)
@click.option("--n-jobs", help="Number of worker threads", type=int)
@click.option("--save-config", help="Write the effective configuration to this file", type=click.Path())
def tp2d(
    input_file: str,
    output: str,
    config_file: str,
    normalization: str,
    min_percentile: float,
    max_percentile: float,
    thresholds,
    bootstrap_iterations: int,
    seed: int,
    multithreading: bool,
    n_jobs: int,
    save_config: str,
) -> None:
    """
    Score a 2D thermal profiling experiment.

    Every protein's fold-change matrix is scored by flood fill against
    thresholds taken from the population (or given with --thresholds).
    With --bootstrap-iterations, p-values come from a resampled null
    distribution.

    \b
    EXAMPLES:
      tpmap tp2d -i experiment.tsv -o results.tsv --normalization median -b 1000
      tpmap tp2d -i experiment.tsv -o results.parquet --thresholds 0.8 1.2
    """
    config = build_config(
        config_file,
        {
            "normalization": normalization,
            "min_percentile": min_percentile,
            "max_percentile": max_percentile,
            "bootstrap_iterations": bootstrap_iterations,
            "seed": seed,
            "multithreading": multithreading,
            "n_jobs": n_jobs,
        },
    )
    run_analysis(input_file, output, ExperimentType.TP2D, config, thresholds=thresholds, save_config=save_config)
