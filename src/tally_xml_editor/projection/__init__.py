"""
Table projection: column discovery, row flattening and filtering.
"""

from tally_xml_editor.projection.columns import (
    collect_headers,
    list_columns,
    merge_nested_columns,
    resolve_table_source,
)
from tally_xml_editor.projection.flatten import flatten
from tally_xml_editor.projection.filtering import apply_filters, column_filter_type, matches_path

__all__ = [
    'collect_headers',
    'list_columns',
    'merge_nested_columns',
    'resolve_table_source',
    'flatten',
    'apply_filters',
    'column_filter_type',
    'matches_path',
]
