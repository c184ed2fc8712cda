"""
Shared helpers of the tpmap CLI commands.
"""

from typing import Optional, Sequence

import click

from tpmap.core.concurrency import RunStatus
from tpmap.core.logger import get_logger
from tpmap.io import load_analysis_config, read_table, save_analysis_config, write_results
from tpmap.model.config import AnalysisConfig
from tpmap.model.normalization import ExperimentType, NormalizationMethod
from tpmap.pipeline.analysis import TPAnalysis

logger = get_logger("tpmap.commands")

NORMALIZATION_CHOICES = [m.name.lower() for m in NormalizationMethod]


def build_config(config_file: Optional[str], overrides: dict) -> AnalysisConfig:
    """
    Load the configuration file, if any, and apply command line overrides.

    Raises
    ------
    click.BadParameter
        If a value is out of range.
    """
    try:
        config = load_analysis_config(config_file) if config_file else AnalysisConfig()
        config.apply_overrides(overrides)
    except (ValueError, KeyError) as e:
        raise click.BadParameter(str(e)) from e
    return config


def run_analysis(
    input_file: str,
    output: str,
    experiment_type: ExperimentType,
    config: AnalysisConfig,
    thresholds: Optional[Sequence[float]] = None,
    save_config: Optional[str] = None,
) -> None:
    """Read the table, score it and write the results."""
    proteome = read_table(input_file, experiment_type)
    analysis = TPAnalysis(proteome, config)

    with click.progressbar(length=100, label="Scoring") as bar:

        def progress(fraction: float) -> None:
            step = int(fraction * 100) - bar.pos
            if step > 0:
                bar.update(step)

        status = analysis.recompute_scores(progress=progress, thresholds=thresholds)

    if status == RunStatus.CANCELLED:
        raise click.ClickException("Analysis was cancelled")

    write_results(proteome, output)
    if save_config:
        save_analysis_config(config, save_config)
    click.echo(f"Results for {len(proteome)} proteins saved to: {output}")
