"""
Row flattening engine.

Turns a nested collection into flat table rows. Each column definition is
one step of a fold over a list of partial rows:

- A plain column adds one cell to every partial row.
- A composite column may fan out: when its parent path reaches a list, each
  partial row is replaced by one partial row per list item (cartesian
  expansion). Composite columns with the same parent path share that fan-out
  level, so sibling columns of one nested list do not multiply each other.
  The same holds for a list crossed part way along a parent path: columns
  whose parents diverge below it stay on the same item.

Every cell records the full document path it was read from, so an edit made
in the table can be written back with set_path().
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Sequence, Tuple

from tally_xml_editor.models.columns import (
    VALUE_FIELD,
    CompositeColumn,
    column_key,
    field_segments,
    parse_columns,
)
from tally_xml_editor.models.rows import EMPTY_CELL, Cell, FlatRow, Path
from tally_xml_editor.parsers.xml_codec import TEXT_KEY
from tally_xml_editor.paths import find_key, resolve

logger = logging.getLogger(__name__)

ContextKey = Tuple[str, ...]


@dataclass(frozen=True)
class _Context:
    """
    Nested item reached for one parent path, with its document path.

    ``crossed`` holds the list items passed on the way, as (number of parent
    segments consumed, context) pairs.
    """
    item: Any
    path: Path
    crossed: Tuple[Tuple[int, '_Context'], ...] = ()


@dataclass
class _PartialRow:
    cells: Dict[str, Cell] = field(default_factory=dict)
    contexts: Dict[ContextKey, _Context] = field(default_factory=dict)

    def with_cell(self, key: str, cell: Cell) -> '_PartialRow':
        return _PartialRow({**self.cells, key: cell}, self.contexts)

    def with_contexts(self, contexts: Dict[ContextKey, _Context], key: str, cell: Cell) -> '_PartialRow':
        return _PartialRow({**self.cells, key: cell}, {**self.contexts, **contexts})


def resolve_field(item: Any, item_path: Path, name: str) -> Cell:
    """
    Read field ``name`` from one row or nested item.

    '@X' reads attribute X, '#text' reads the text slot, anything else reads
    a child key, all case-insensitively. For scalar items, 'value' and
    '#text' both resolve to the item itself.

    Args:
        item: Row or nested item
        item_path: Document path of ``item``
        name: Field name

    Returns:
        Cell with the value and its full path, or EMPTY_CELL on a miss

    Example:
        >>> resolve_field({'@attributes': {'NAME': 'a'}}, ('ROOT', 'ITEM', 0), '@name')
        Cell(value='a', path=('ROOT', 'ITEM', 0, '@attributes', 'NAME'))
    """
    if not isinstance(item, dict):
        if name in (VALUE_FIELD, TEXT_KEY) and item is not None and not isinstance(item, list):
            return Cell(item, tuple(item_path))
        return EMPTY_CELL

    value, actual = resolve(item, field_segments(name))
    if actual is None:
        return EMPTY_CELL
    return Cell(value, (*item_path, *actual))


def expand_branch(
    node: Any,
    node_path: Path,
    segments: Sequence[str],
    consumed: int = 0,
    crossed: Tuple[Tuple[int, _Context], ...] = ()
) -> List[_Context]:
    """
    Follow ``segments`` from ``node``, fanning out through every list met.

    A list reached at the end of the path yields one context per item; a
    single value yields one context; a miss yields none. Lists met part way
    are recorded on each resulting context as ``crossed`` entries, keyed by
    the number of segments consumed to reach them.

    Example:
        >>> [c.path for c in expand_branch({'A': {'B': ['x', 'y']}}, ('R',), ['a', 'b'])]
        [('R', 'A', 'B', 0), ('R', 'A', 'B', 1)]
    """
    if isinstance(node, list):
        contexts: List[_Context] = []
        for index, item in enumerate(node):
            item_path = (*node_path, index)
            item_crossed = crossed
            if consumed and segments:
                item_crossed = (*crossed, (consumed, _Context(item, item_path)))
            contexts.extend(expand_branch(item, item_path, segments, consumed, item_crossed))
        return contexts

    if not segments:
        return [] if node is None else [_Context(node, tuple(node_path), crossed)]

    if not isinstance(node, dict):
        return []
    key = find_key(node, segments[0])
    if key is None:
        return []
    return expand_branch(node[key], (*node_path, key), segments[1:], consumed + 1, crossed)


def _longest_context(partial: _PartialRow, parent: ContextKey) -> Tuple[int, Any]:
    """Length of the longest established context that prefixes ``parent``."""
    best_length, best = 0, None
    for prefix, context in partial.contexts.items():
        if len(prefix) > best_length and parent[:len(prefix)] == prefix:
            best_length, best = len(prefix), context
    return best_length, best


def _apply_plain(rows: List[_PartialRow], row: Any, row_path: Path, name: str) -> List[_PartialRow]:
    cell = resolve_field(row, row_path, name)
    return [partial.with_cell(name, cell) for partial in rows]


def _apply_composite(
    rows: List[_PartialRow],
    row: Any,
    row_path: Path,
    column: CompositeColumn
) -> List[_PartialRow]:
    key = column.key
    parent = tuple(name.lower() for name in column.parent)
    result: List[_PartialRow] = []

    for partial in rows:
        depth, context = _longest_context(partial, parent)

        if context is not None and depth == len(parent):
            # Same parent path as an earlier column: reuse its item
            result.append(partial.with_cell(key, resolve_field(context.item, context.path, column.child)))
            continue

        start_item, start_path = (context.item, context.path) if context is not None else (row, row_path)
        branch = expand_branch(start_item, start_path, column.parent[depth:])

        if not branch:
            result.append(partial.with_cell(key, EMPTY_CELL))
            continue

        for item_context in branch:
            cell = resolve_field(item_context.item, item_context.path, column.child)
            # Lists crossed part way are fan-out levels too
            contexts = {parent[:depth + consumed]: level for consumed, level in item_context.crossed}
            contexts[parent] = item_context
            result.append(partial.with_contexts(contexts, key, cell))

    return result


def flatten_row(row: Any, row_path: Path, original_index: int, columns: Sequence[Any]) -> List[FlatRow]:
    """
    Flatten one top-level row into one or more table rows.

    Args:
        row: Top-level item of the collection
        row_path: Document path of ``row``
        original_index: Index of ``row`` in its collection
        columns: Parsed column definitions

    Returns:
        FlatRows sharing ``original_index``, in fan-out order
    """
    partials = [_PartialRow()]
    for column in columns:
        if isinstance(column, CompositeColumn):
            partials = _apply_composite(partials, row, row_path, column)
        else:
            partials = _apply_plain(partials, row, row_path, column)

    return [
        FlatRow(cells=partial.cells, original_index=original_index, row_path=tuple(row_path))
        for partial in partials
    ]


def iter_rows(collection: Any, base_path: Sequence[Any]) -> Iterable[Tuple[int, Any, Path]]:
    """
    Top-level rows of a collection as (index, row, row_path).

    A list yields its items; a single object yields itself as row 0 at
    ``base_path``; None yields nothing.
    """
    base = tuple(base_path)
    if collection is None:
        return
    if isinstance(collection, list):
        for index, row in enumerate(collection):
            yield index, row, (*base, index)
    else:
        yield 0, collection, base


def flatten(collection: Any, columns: Sequence[Any], base_path: Sequence[Any] = ()) -> List[FlatRow]:
    """
    Flatten a collection into table rows.

    Args:
        collection: Value at ``base_path`` (usually a list of objects)
        columns: Column definitions (names, CompositeColumn or mappings)
        base_path: Document path of ``collection``

    Returns:
        List of FlatRow. Row order follows source order, then fan-out order.

    Example:
        >>> rows = flatten([{'A': {'B': [{'C': '1'}, {'C': '2'}]}}],
        ...                [{'parent': ['A', 'B'], 'child': 'C'}], ['ROOT', 'ITEM'])
        >>> [(r.value('A.B.C'), r.original_index) for r in rows]
        [('1', 0), ('2', 0)]
        >>> rows[1]['A.B.C'].path
        ('ROOT', 'ITEM', 0, 'A', 'B', 1, 'C')
    """
    definitions = parse_columns(columns)

    rows: List[FlatRow] = []
    source_count = 0
    for index, row, row_path in iter_rows(collection, base_path):
        source_count += 1
        rows.extend(flatten_row(row, row_path, index, definitions))

    logger.debug(
        f"Flattened {source_count} source row(s) into {len(rows)} row(s) "
        f"over {len(definitions)} column(s): {[column_key(c) for c in definitions]}"
    )
    return rows
