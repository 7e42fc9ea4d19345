"""
Service layer for tally-xml-editor.

- DocumentStore: owns a loaded document; the only mutation point
- SessionState: table columns, filters and navigation per session
- export: JSON, DataFrame and CSV output
"""

from tally_xml_editor.services.document_store import DocumentStore
from tally_xml_editor.services.session import ColumnSelection, SessionState
from tally_xml_editor.services.export import rows_to_dataframe, to_json, write_csv

__all__ = [
    'DocumentStore',
    'SessionState',
    'ColumnSelection',
    'rows_to_dataframe',
    'to_json',
    'write_csv',
]
