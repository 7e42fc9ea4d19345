"""
Path-addressed document store.

DocumentStore owns one loaded document and is the only place it is mutated.
Reads never raise; writes go through set() and delete_at(). Projection
results (columns, rows) are independent snapshots that carry paths, never
live references into the tree.
"""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from tally_xml_editor.exceptions import InvalidPath
from tally_xml_editor.models.cleaning import CleaningReport
from tally_xml_editor.models.columns import ColumnCandidate
from tally_xml_editor.models.rows import FlatRow
from tally_xml_editor.parsers.sanitizer import sanitize
from tally_xml_editor.parsers.xml_codec import decode, encode
from tally_xml_editor.paths import delete_at, get_path, resolve, set_path
from tally_xml_editor.projection.columns import list_columns, resolve_table_source
from tally_xml_editor.projection.filtering import apply_filters
from tally_xml_editor.projection.flatten import flatten
from tally_xml_editor.services.export import to_json
from tally_xml_editor.validators import validate_path

logger = logging.getLogger(__name__)


class DocumentStore:
    """
    A loaded XML document with get/set/delete-by-path access.

    Usage:
        >>> store = DocumentStore.from_bytes(b'<ROOT><ITEM NAME="a">1</ITEM><ITEM NAME="a">2</ITEM></ROOT>')
        >>> store.root_name
        'ROOT'
        >>> store.get(['root', 'item', 1, '#text'])
        '2'
        >>> store.set(['ROOT', 'ITEM', 1, '#text'], '3')
        ('ROOT', 'ITEM', 1, '#text')
        >>> store.delete_at(['ROOT', 'ITEM'], 0)
        True

    Attributes:
        root_name: Tag of the outermost element
        cleaning_report: What the sanitizer removed before parsing
        source_name: File name the document was loaded from ('' if none)
    """

    def __init__(
        self,
        document: Dict[str, Any],
        root_name: str,
        cleaning_report: Optional[CleaningReport] = None,
        source_name: str = ''
    ):
        self._document = document
        self.root_name = root_name
        self.cleaning_report = cleaning_report or CleaningReport(text='')
        self.source_name = source_name

    # === Loading ===

    @classmethod
    def from_text(cls, text: Union[str, bytes], source_name: str = '') -> 'DocumentStore':
        """
        Sanitize and decode XML input.

        Args:
            text: Raw bytes or text
            source_name: Name recorded for the loaded document

        Returns:
            New DocumentStore

        Raises:
            DecodeError: If the sanitized text is not well-formed XML.
                No store is created.
        """
        report = sanitize(text)
        document, root_name = decode(report.text)

        logger.info(
            f"Loaded <{root_name}> document"
            + (f" from {source_name}" if source_name else "")
            + f" ({len(report.text)} chars, {report.removed_count} removed by sanitizer)"
        )
        return cls(document, root_name, report, source_name)

    @classmethod
    def from_bytes(cls, data: bytes, source_name: str = '') -> 'DocumentStore':
        """Load from raw file bytes (any BOM-detectable encoding)."""
        return cls.from_text(bytes(data), source_name)

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> 'DocumentStore':
        """
        Load an XML file.

        Raises:
            FileNotFoundError: If the file does not exist
            DecodeError: If the file is not well-formed XML
        """
        file_path = Path(path)
        return cls.from_bytes(file_path.read_bytes(), source_name=file_path.name)

    # === Reading ===

    @property
    def document(self) -> Dict[str, Any]:
        """The document tree. Mutate it only through set() and delete_at()."""
        return self._document

    @property
    def cleaning_log(self) -> List[str]:
        return list(self.cleaning_report.log)

    def get(self, path: Sequence[Any]) -> Any:
        """Value at ``path`` (case-insensitive), or None on any miss."""
        return get_path(self._document, path)

    def actual_path(self, path: Sequence[Any]) -> Optional[Tuple[Any, ...]]:
        """``path`` with the document's real key spellings, or None on a miss."""
        _, actual = resolve(self._document, path or ())
        return tuple(actual) if actual is not None else None

    # === Writing ===

    def set(self, path: Sequence[Any], value: Any) -> Tuple[Any, ...]:
        """
        Write ``value`` at ``path``.

        Returns:
            The actual path written

        Raises:
            InvalidPath: If the path is malformed, empty or does not resolve.
                The document is not modified.
        """
        try:
            segments = validate_path(path)
        except ValueError as e:
            raise InvalidPath(path if isinstance(path, (list, tuple)) else (), str(e)) from e

        written = set_path(self._document, segments, value)
        logger.debug(f"Set value at {list(written)}")
        return written

    def delete_at(self, collection_path: Sequence[Any], index: int) -> bool:
        """
        Delete row ``index`` from the list at ``collection_path``.

        Later rows shift down by one; re-resolve any paths held across this
        call. A non-list target or a bad index is a logged no-op.

        Returns:
            True if a row was removed
        """
        return delete_at(self._document, collection_path, index)

    # === Projection ===

    def list_columns(self, path: Sequence[Any], sample_size: Optional[int] = None) -> List[ColumnCandidate]:
        """Candidate columns of the collection at ``path``."""
        return list_columns(self.get(path), sample_size)

    def table_source(self, path: Sequence[Any], drill_down: Optional[bool] = None) -> Tuple[Any, Tuple[Any, ...]]:
        """
        Collection a tree node opens as, and its full path.

        Args:
            path: Path of the selected node
            drill_down: Apply the drill-down policy (defaults to config)

        Returns:
            Tuple of (collection, collection_path)
        """
        base = self.actual_path(path) or tuple(path)
        source, subpath = resolve_table_source(self.get(base), drill_down)
        return source, (*base, *subpath)

    def flatten(self, path: Sequence[Any], columns: Sequence[Any]) -> List[FlatRow]:
        """Flatten the collection at ``path`` into table rows."""
        base = self.actual_path(path)
        if base is None:
            return []
        return flatten(self.get(base), columns, base)

    def rows(
        self,
        path: Sequence[Any],
        columns: Sequence[Any],
        filters: Optional[Dict[str, Any]] = None
    ) -> List[FlatRow]:
        """Flattened rows of the collection at ``path`` that pass ``filters``."""
        flat = self.flatten(path, columns)
        if not filters:
            return flat
        return apply_filters(flat, self.get(path), columns, filters)

    # === Output ===

    def encode(self, indent: Optional[int] = None) -> str:
        """
        Serialize the document to XML text.

        Args:
            indent: Indent width. Defaults to config.encode_indent.
        """
        if indent is None:
            from tally_xml_editor.config import get_config
            indent = get_config().encode_indent
        return encode(self._document, self.root_name, indent=indent)

    def encode_bytes(self, indent: Optional[int] = None) -> bytes:
        """UTF-8 bytes of encode()."""
        return self.encode(indent).encode('utf-8')

    def to_json(self, indent: Optional[int] = None) -> str:
        """The raw document as JSON text."""
        return to_json(self._document, indent)

    def __repr__(self) -> str:
        return (
            f"DocumentStore(root_name='{self.root_name}', "
            f"source_name='{self.source_name}', "
            f"removed_count={self.cleaning_report.removed_count})"
        )
