"""PowerShell data file (.psd1) reading and writing."""

from .parse import DataFileError, parse_data_text, read_data_file
from .serialize import format_data, normalize_data_text, render_data_file, write_data_file

__all__ = [
    "DataFileError",
    "format_data",
    "normalize_data_text",
    "parse_data_text",
    "read_data_file",
    "render_data_file",
    "write_data_file",
]
