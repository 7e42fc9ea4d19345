"""
High-level editing interface.

XmlEditor is the one object a UI layer talks to: it loads a file into a
DocumentStore, keeps table state in a SessionState, and turns table paths
into flattened, filtered rows.
"""

import logging
from pathlib import Path
from typing import Any, List, Optional, Sequence, Tuple, Union

import pandas as pd

from tally_xml_editor.models.columns import ColumnCandidate, ColumnDef
from tally_xml_editor.models.filters import ColumnFilter
from tally_xml_editor.models.rows import FlatRow
from tally_xml_editor.projection.columns import list_columns, merge_nested_columns, resolve_table_source
from tally_xml_editor.projection.filtering import column_filter_type, nested_filter_keys
from tally_xml_editor.services.document_store import DocumentStore
from tally_xml_editor.services.export import rows_to_dataframe, write_csv
from tally_xml_editor.services.session import SessionState

logger = logging.getLogger(__name__)


class XmlEditor:
    """
    Load, inspect, edit and save one XML document.

    Example:
        >>> editor = XmlEditor()
        >>> editor.load_bytes(b'<ROOT><ITEM NAME="a">1</ITEM><ITEM NAME="b">2</ITEM></ROOT>')
        >>> table = editor.select_columns(['ROOT'], ['@NAME', '#text'])
        >>> table
        ('ROOT', 'ITEM')
        >>> _ = editor.set_filter(table, '@NAME', 'b')
        >>> [row.value('#text') for row in editor.table(table)]
        ['2']
        >>> editor.delete_row(table, 0)
        True
        >>> editor.to_xml()
        '<?xml version="1.0" encoding="UTF-8"?>\\n<ROOT><ITEM NAME="b">2</ITEM></ROOT>'
    """

    def __init__(self, session: Optional[SessionState] = None):
        self.session = session or SessionState()

    @property
    def store(self) -> DocumentStore:
        """
        The loaded document.

        Raises:
            RuntimeError: If no document has been loaded
        """
        if self.session.store is None:
            raise RuntimeError("No document loaded")
        return self.session.store

    # === Loading ===

    def load_bytes(self, data: bytes, file_name: str = '') -> None:
        """
        Load raw file bytes, replacing the current document and table state.

        Raises:
            DecodeError: If the input is not well-formed XML. The previous
                document stays loaded.
        """
        store = DocumentStore.from_bytes(data, source_name=file_name)
        self.session.load(store, file_name)

    def load_file(self, path: Union[str, Path]) -> None:
        """Load an XML file from disk."""
        store = DocumentStore.from_file(path)
        self.session.load(store)

    @property
    def cleaning_log(self) -> List[str]:
        return self.session.cleaning_log

    # === Reading and editing ===

    def get(self, path: Sequence[Any]) -> Any:
        return self.store.get(path)

    def set(self, path: Sequence[Any], value: Any) -> Tuple[Any, ...]:
        return self.store.set(path, value)

    def delete_row(self, collection_path: Sequence[Any], index: int) -> bool:
        """Delete top-level row ``index`` of the table at ``collection_path``."""
        return self.store.delete_at(collection_path, index)

    # === Columns ===

    def list_columns(
        self,
        path: Sequence[Any],
        drill_down: Optional[bool] = None
    ) -> Tuple[Tuple[Any, ...], List[ColumnCandidate]]:
        """
        Columns offered for the node at ``path``.

        Returns:
            Tuple of (collection_path, candidates). collection_path is where
            the drill-down policy landed; tables are keyed by it.
        """
        source, collection_path = self.store.table_source(path, drill_down)
        return collection_path, list_columns(source)

    def select_columns(
        self,
        path: Sequence[Any],
        columns: Sequence[Any],
        drill_down: Optional[bool] = None
    ) -> Tuple[Any, ...]:
        """
        Open the node at ``path`` as a table with ``columns``.

        Returns:
            Path of the table's collection (after drill-down)
        """
        _, collection_path = self.store.table_source(path, drill_down)
        self.session.set_table_columns(collection_path, columns)
        self.session.set_viewing_path(collection_path)
        self.session.clear_column_selection()
        logger.info(f"Opened table {list(collection_path)} with {len(columns)} column(s)")
        return collection_path

    def merge_columns(
        self,
        parent_path: Sequence[Any],
        clicked_path: Sequence[Any],
        selected: Sequence[str],
        drill_down: bool = False
    ) -> List[ColumnDef]:
        """
        Expand a nested cell of the table at ``parent_path`` into columns.

        Args:
            parent_path: Path of the parent table's collection
            clicked_path: Cell path of the nested value
            selected: Fields of the nested value to add as columns
            drill_down: Descend through wrappers below the clicked value

        Returns:
            The parent table's new column definitions
        """
        _, array_path = resolve_table_source(self.store.get(clicked_path), drill_down)
        columns = merge_nested_columns(
            self.session.get_table_columns(parent_path),
            parent_path,
            clicked_path,
            selected,
            array_path
        )
        self.session.set_table_columns(parent_path, columns)
        self.session.set_viewing_path(parent_path)
        self.session.clear_column_selection()
        return columns

    # === Tables ===

    def table(self, path: Sequence[Any], columns: Optional[Sequence[Any]] = None) -> List[FlatRow]:
        """
        Flattened rows of the table at ``path`` that pass its filters.

        Args:
            path: Collection path of the table
            columns: Column definitions (defaults to the stored selection)
        """
        if columns is None:
            columns = self.session.get_table_columns(path)
        return self.store.rows(path, columns, self.session.get_table_filters(path))

    def set_filter(self, path: Sequence[Any], column: Any, definition: Any) -> Optional[ColumnFilter]:
        """Set (or clear, with an empty query) the filter of one column."""
        return self.session.set_table_filter(path, column, definition)

    def filter_type(self, path: Sequence[Any], column: str) -> str:
        """'simple', 'advanced' or 'none' for column ``column`` of a table."""
        rows = self.store.flatten(path, self.session.get_table_columns(path))
        return column_filter_type(rows, column)

    def filter_keys(
        self,
        path: Sequence[Any],
        column: str,
        drill_path: Sequence[str] = ()
    ) -> List[ColumnCandidate]:
        """Keys available to an advanced filter on ``column``."""
        rows = self.store.flatten(path, self.session.get_table_columns(path))
        return nested_filter_keys(rows, column, drill_path)

    # === Output ===

    def to_xml(self, indent: Optional[int] = None) -> str:
        return self.store.encode(indent)

    def to_json(self, indent: Optional[int] = None) -> str:
        return self.store.to_json(indent)

    def to_dataframe(self, path: Sequence[Any]) -> pd.DataFrame:
        """The filtered table at ``path`` as a DataFrame."""
        columns = self.session.get_table_columns(path)
        return rows_to_dataframe(self.table(path, columns), columns)

    def _write(self, path: Union[str, Path], text: str) -> Path:
        output = Path(path)
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(text, encoding='utf-8')
        logger.info(f"Saved {len(text)} chars to {output}")
        return output

    def save_xml(self, path: Union[str, Path], indent: Optional[int] = None) -> Path:
        """Write the document as UTF-8 XML."""
        return self._write(path, self.to_xml(indent))

    def save_json(self, path: Union[str, Path], indent: Optional[int] = None) -> Path:
        """Write the raw document as JSON."""
        return self._write(path, self.to_json(indent))

    def save_csv(self, table_path: Sequence[Any], path: Union[str, Path]) -> Path:
        """Write the filtered table at ``table_path`` as CSV."""
        columns = self.session.get_table_columns(table_path)
        return write_csv(self.table(table_path, columns), columns, path)

