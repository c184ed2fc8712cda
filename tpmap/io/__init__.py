"""
Input and output for the tpmap package.

This module provides:
- importer: building a proteome from in-memory records
- table: the generic tab-delimited input table
- export: results tables (TSV, CSV, parquet)
- config: analysis settings in YAML or JSON
"""

from tpmap.io.importer import import_proteins, parse_description
from tpmap.io.table import read_table, parse_abundance_header
from tpmap.io.export import proteome_to_dataframe, write_results
from tpmap.io.config import load_analysis_config, save_analysis_config

__all__ = [
    "import_proteins",
    "parse_description",
    "read_table",
    "parse_abundance_header",
    "proteome_to_dataframe",
    "write_results",
    "load_analysis_config",
    "save_analysis_config",
]
