"""
Column discovery for table projection.

Answers "which columns can this collection show" by sampling its items,
picks the collection a tree node should open as (drill-down policy), and
rewrites a parent table's columns when a nested cell is expanded into it.
"""

import logging
from typing import Any, List, Optional, Sequence, Tuple

from tally_xml_editor.models.columns import (
    VALUE_FIELD,
    ColumnCandidate,
    ColumnDef,
    CompositeColumn,
    field_segments,
    is_attribute_field,
    parse_columns,
)
from tally_xml_editor.parsers.xml_codec import ATTRIBUTES_KEY, RESERVED_KEYS, TEXT_KEY
from tally_xml_editor.paths import is_container, resolve

logger = logging.getLogger(__name__)


def as_items(data: Any) -> List[Any]:
    """A collection as a list of items: lists as-is, a single object as one item."""
    if isinstance(data, list):
        return data
    if isinstance(data, dict):
        return [data]
    return []


def _header_sort_key(name: str) -> Tuple[int, str, str]:
    if is_attribute_field(name):
        rank = 0
    elif name in (TEXT_KEY, VALUE_FIELD):
        rank = 1
    else:
        rank = 2
    return rank, name.lower(), name


def collect_headers(data: Any) -> List[str]:
    """
    Union of field names across all items of a collection.

    Child tags are listed as-is, attributes as '@NAME', non-blank text as
    '#text' and scalar items as 'value'. Attributes sort first, then
    '#text'/'value', then the remaining names alphabetically
    (case-insensitive).

    Args:
        data: List of items or a single object

    Returns:
        Sorted, de-duplicated field names

    Example:
        >>> collect_headers([{'@attributes': {'NAME': 'a'}, '#text': '1', 'DATE': '2024'}])
        ['@NAME', '#text', 'DATE']
        >>> collect_headers(['a', 'b'])
        ['value']
    """
    items = as_items(data)
    headers = set()

    for item in items:
        if isinstance(item, dict):
            headers.update(key for key in item if key not in RESERVED_KEYS)
            attributes = item.get(ATTRIBUTES_KEY)
            if isinstance(attributes, dict):
                headers.update(f"@{name}" for name in attributes)
            text = item.get(TEXT_KEY)
            if isinstance(text, str) and text.strip():
                headers.add(TEXT_KEY)
        elif item is not None:
            headers.add(VALUE_FIELD)

    return sorted(headers, key=_header_sort_key)


def list_columns(data: Any, sample_size: Optional[int] = None) -> List[ColumnCandidate]:
    """
    Candidate columns of a collection, flagging fields that hold nested data.

    A field is nested (expandable) when any of the first ``sample_size``
    items has an object or list there.

    Args:
        data: List of items or a single object
        sample_size: Items sampled for the nested flag. Defaults to
            config.column_sample_size.

    Returns:
        List of ColumnCandidate in collect_headers() order
    """
    if sample_size is None:
        from tally_xml_editor.config import get_config
        sample_size = get_config().column_sample_size

    sample = [item for item in as_items(data)[:sample_size] if isinstance(item, dict)]

    candidates = []
    for name in collect_headers(data):
        is_nested = False
        if name not in (TEXT_KEY, VALUE_FIELD):
            for item in sample:
                value, _ = resolve(item, field_segments(name))
                if is_container(value):
                    is_nested = True
                    break
        candidates.append(ColumnCandidate(name=name, is_nested=is_nested))

    logger.debug(
        f"Listed {len(candidates)} column(s), "
        f"{sum(c.is_nested for c in candidates)} nested"
    )
    return candidates


def resolve_table_source(data: Any, drill_down: Optional[bool] = None) -> Tuple[Any, List[str]]:
    """
    Pick the collection a tree node opens as.

    With drill-down on, descends through wrapper objects while exactly one
    non-attribute, non-text child key exists and that child is an object or
    list. Expanding a cell from inside a table passes ``drill_down=False``.

    Args:
        data: Value at the selected tree node
        drill_down: Apply the drill-down policy. Defaults to
            config.smart_drill_down.

    Returns:
        Tuple of (source, subpath) where subpath holds the keys descended

    Example:
        >>> resolve_table_source({'ITEMS': {'ITEM': [{'A': '1'}, {'A': '2'}]}}, True)
        ([{'A': '1'}, {'A': '2'}], ['ITEMS', 'ITEM'])
    """
    if drill_down is None:
        from tally_xml_editor.config import get_config
        drill_down = get_config().smart_drill_down

    current = data
    subpath: List[str] = []
    if not drill_down:
        return current, subpath

    while isinstance(current, dict):
        keys = [key for key in current if key not in RESERVED_KEYS]
        if len(keys) != 1:
            break
        child = current[keys[0]]
        if not is_container(child):
            break
        subpath.append(keys[0])
        current = child

    if subpath:
        logger.debug(f"Drilled down through {subpath}")
    return current, subpath


def _definition_path(column: ColumnDef) -> List[str]:
    if isinstance(column, CompositeColumn):
        return [*column.parent, column.child]
    return [column]


def merge_nested_columns(
    parent_columns: Sequence[Any],
    parent_path: Sequence[Any],
    clicked_path: Sequence[Any],
    selected: Sequence[str],
    array_path: Sequence[str] = ()
) -> List[ColumnDef]:
    """
    Merge fields of an expanded nested cell into its parent table.

    The parent column that pointed at the clicked value is replaced by one
    composite column per selected field. Composite parents are abstract
    (indices stripped) so the new columns apply to every row, not only the
    one clicked.

    Args:
        parent_columns: Current column definitions of the parent table
        parent_path: Path of the parent table's collection
        clicked_path: Full path of the clicked cell (row index included)
        selected: Field names chosen from the nested value
        array_path: Keys descended below the clicked value, if any

    Returns:
        New column definitions for the parent table

    Raises:
        ValueError: If ``clicked_path`` does not point below a row of the
            parent table

    Example:
        >>> merge_nested_columns(
        ...     ['DATE', 'LEDGERENTRIES.LIST'],
        ...     ['ENVELOPE', 'VOUCHER'],
        ...     ['ENVELOPE', 'VOUCHER', 3, 'LEDGERENTRIES.LIST', 0],
        ...     ['AMOUNT'])
        ['DATE', CompositeColumn(parent=['LEDGERENTRIES.LIST'], child='AMOUNT')]
    """
    columns = parse_columns(parent_columns)
    within_row = list(clicked_path)[len(parent_path):]
    abstract = [segment for segment in within_row if not isinstance(segment, int)]
    if not abstract:
        raise ValueError(
            f"Clicked path {list(clicked_path)} is not inside a row of {list(parent_path)}"
        )

    target = [segment.lower() for segment in abstract]
    replaced_at = next(
        (position for position, column in enumerate(columns)
         if [name.lower() for name in _definition_path(column)] == target),
        None
    )
    replaced = columns[replaced_at] if replaced_at is not None else None

    merged = [column for position, column in enumerate(columns) if position != replaced_at]
    new_parent = [*abstract, *array_path]
    merged.extend(CompositeColumn(parent=new_parent, child=name) for name in selected)

    logger.info(
        f"Merged {len(selected)} nested column(s) from {abstract} into table "
        f"{list(parent_path)}"
        + (f", replacing {replaced!r}" if replaced is not None else "")
    )
    return merged
