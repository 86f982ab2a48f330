"""
History export (CSV) and chart series helpers.
"""

from .csv_export import HEADER, DEFAULT_EXPORT_FILENAME, to_table, trend_series, write_csv

__all__ = ["HEADER", "DEFAULT_EXPORT_FILENAME", "to_table", "trend_series", "write_csv"]
