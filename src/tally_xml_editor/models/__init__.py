"""
Data models for columns, rows, filters and cleaning reports.

Pydantic models validate definitions that arrive from the UI layer;
flattened rows are lightweight dataclasses.
"""

from tally_xml_editor.models.cleaning import CleaningReport
from tally_xml_editor.models.columns import (
    ColumnCandidate,
    ColumnDef,
    CompositeColumn,
    column_key,
    parse_column,
    parse_columns,
)
from tally_xml_editor.models.rows import Cell, FlatRow
from tally_xml_editor.models.filters import AdvancedFilter, ColumnFilter, SimpleFilter, parse_filter

__all__ = [
    'CleaningReport',
    'ColumnCandidate',
    'ColumnDef',
    'CompositeColumn',
    'column_key',
    'parse_column',
    'parse_columns',
    'Cell',
    'FlatRow',
    'AdvancedFilter',
    'ColumnFilter',
    'SimpleFilter',
    'parse_filter',
]
