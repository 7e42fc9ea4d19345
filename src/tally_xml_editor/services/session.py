"""
Editing session state.

Holds what a UI layer needs to keep between renders: the loaded document,
selected columns per table, active filters per table and column, and the
navigation history. Tables are keyed by path_key(path), so state survives
re-rendering a table but not loading another document.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple

from tally_xml_editor.models.columns import ColumnDef, column_key, parse_columns
from tally_xml_editor.models.filters import ColumnFilter, parse_filter
from tally_xml_editor.paths import path_key
from tally_xml_editor.services.document_store import DocumentStore
from tally_xml_editor.validators import validate_path

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ColumnSelection:
    """
    A node waiting for the user to pick columns.

    Attributes:
        path: Path of the node whose columns are being chosen
        parent_path: Path of the table the node was expanded from, or None
            when it was opened from the tree
    """
    path: Tuple[Any, ...]
    parent_path: Optional[Tuple[Any, ...]] = None

    @property
    def is_merge(self) -> bool:
        """True when the selection will be merged into a parent table."""
        return self.parent_path is not None


class SessionState:
    """
    Mutable per-session state, passed explicitly to whoever needs it.

    Example:
        >>> session = SessionState()
        >>> session.load(DocumentStore.from_bytes(b'<ROOT><ITEM>1</ITEM></ROOT>'), 'day.xml')
        >>> session.set_table_columns(['ROOT', 'ITEM'], ['value'])
        >>> session.set_table_filter(['ROOT', 'ITEM'], 'value', '1*')
        >>> session.get_table_filters(['ROOT', 'ITEM'])
        {'value': SimpleFilter(type='simple', query='1*')}
    """

    def __init__(self):
        self.reset()

    def reset(self) -> None:
        """Forget the document and everything keyed to it."""
        self.file_name: str = ''
        self.store: Optional[DocumentStore] = None
        self.table_columns: Dict[str, List[ColumnDef]] = {}
        self.table_filters: Dict[str, Dict[str, ColumnFilter]] = {}
        self.viewing_path: Optional[Tuple[Any, ...]] = None
        self.history: List[Tuple[Any, ...]] = []
        self.pending_selection: Optional[ColumnSelection] = None

    def load(self, store: DocumentStore, file_name: Optional[str] = None) -> None:
        """Install a freshly loaded document, discarding all table state."""
        self.reset()
        self.store = store
        self.file_name = file_name if file_name is not None else store.source_name
        logger.info(f"Session loaded '{self.file_name or store.root_name}'")

    @property
    def is_loaded(self) -> bool:
        return self.store is not None

    @property
    def cleaning_log(self) -> List[str]:
        return self.store.cleaning_log if self.store is not None else []

    # === Columns ===

    def set_table_columns(self, path: Sequence[Any], columns: Sequence[Any]) -> List[ColumnDef]:
        """Store the column definitions of the table at ``path``."""
        definitions = parse_columns(columns)
        self.table_columns[path_key(validate_path(path))] = definitions
        return definitions

    def get_table_columns(self, path: Sequence[Any]) -> List[ColumnDef]:
        """Column definitions of the table at ``path`` (empty if none chosen)."""
        return list(self.table_columns.get(path_key(validate_path(path)), []))

    # === Filters ===

    def set_table_filter(self, path: Sequence[Any], column: Any, definition: Any) -> Optional[ColumnFilter]:
        """
        Set or clear the filter of one column.

        An empty query (or None) removes the filter; a table left with no
        filters is dropped entirely.

        Args:
            path: Table path
            column: Column key or definition
            definition: Query string, filter model or mapping

        Returns:
            The stored filter, or None if it was cleared
        """
        table = path_key(validate_path(path))
        key = column if isinstance(column, str) else column_key(parse_columns([column])[0])
        model = parse_filter(definition)

        if model is not None:
            self.table_filters.setdefault(table, {})[key] = model
            logger.debug(f"Filter on {key} for {table}: {model.query!r}")
            return model

        filters = self.table_filters.get(table)
        if filters is not None:
            filters.pop(key, None)
            if not filters:
                del self.table_filters[table]
        return None

    def get_table_filters(self, path: Sequence[Any]) -> Dict[str, ColumnFilter]:
        """Active filters of the table at ``path`` (column key -> filter)."""
        return dict(self.table_filters.get(path_key(validate_path(path)), {}))

    # === Navigation ===

    def set_viewing_path(self, path: Optional[Sequence[Any]]) -> None:
        """
        Show the node at ``path``. None hides the current view.

        Moving to a different path pushes the current one onto the history.
        """
        if path is None:
            self.viewing_path = None
            return

        new_path = tuple(validate_path(path))
        if new_path == self.viewing_path:
            return
        if self.viewing_path is not None:
            self.history.append(self.viewing_path)
        self.viewing_path = new_path

    def go_back(self) -> Optional[Tuple[Any, ...]]:
        """Return to the previously viewed path, if any."""
        if self.history:
            self.viewing_path = self.history.pop()
        return self.viewing_path

    def request_column_selection(
        self,
        path: Sequence[Any],
        parent_path: Optional[Sequence[Any]] = None
    ) -> ColumnSelection:
        """Mark ``path`` as waiting for a column choice."""
        self.pending_selection = ColumnSelection(
            tuple(validate_path(path)),
            tuple(validate_path(parent_path)) if parent_path is not None else None
        )
        return self.pending_selection

    def clear_column_selection(self) -> None:
        self.pending_selection = None
