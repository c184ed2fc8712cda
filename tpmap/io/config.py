"""
Configuration file I/O for analysis settings.
"""

import json
from pathlib import Path
from typing import Optional, Union

import yaml

from tpmap.core.logger import get_logger
from tpmap.model.config import AnalysisConfig

logger = get_logger("tpmap.io.config")


def load_analysis_config(config_path: Union[str, Path]) -> AnalysisConfig:
    """
    Load analysis settings from a YAML or JSON file.

    Parameters
    ----------
    config_path : Union[str, Path]
        Path to configuration file (.yaml, .yml, or .json).

    Returns
    -------
    AnalysisConfig
        Loaded configuration; keys absent from the file keep their defaults.

    Raises
    ------
    ValueError
        If file format is not supported or a value is out of range.
    FileNotFoundError
        If config file does not exist.
    """
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    suffix = config_path.suffix.lower()

    if suffix in (".yaml", ".yml"):
        with open(config_path, "r") as f:
            data = yaml.safe_load(f)
    elif suffix == ".json":
        with open(config_path, "r") as f:
            data = json.load(f)
    else:
        raise ValueError(f"Unsupported config format: {suffix}. Use .yaml, .yml, or .json")

    logger.info("Loaded analysis configuration from %s", config_path)
    return AnalysisConfig.from_dict(data or {})


def save_analysis_config(
    config: AnalysisConfig,
    output_path: Union[str, Path],
    format: Optional[str] = None,
) -> None:
    """
    Save analysis settings to a YAML or JSON file.

    Parameters
    ----------
    config : AnalysisConfig
        Configuration to save.
    output_path : Union[str, Path]
        Output file path.
    format : str, optional
        Output format ('yaml' or 'json'). Inferred from extension if not provided.
    """
    output_path = Path(output_path)

    if format is None:
        format = "json" if output_path.suffix.lower() == ".json" else "yaml"

    output_path.parent.mkdir(parents=True, exist_ok=True)
    data = config.to_dict()

    if format == "yaml":
        with open(output_path, "w") as f:
            yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False)
    elif format == "json":
        with open(output_path, "w") as f:
            json.dump(data, f, indent=2)
    else:
        raise ValueError(f"Unsupported format: {format}. Use 'yaml' or 'json'")

    logger.info("Saved analysis configuration to %s", output_path)
