"""
Filter application over flattened rows.

Filter state is kept per column key. A column of scalar cells takes a simple
filter (tested against each flattened cell). A column whose cells are all
objects or lists takes an advanced filter: a key path into the nested value,
tested existentially against the unflattened value of the original row.

A row is kept only if it passes every active filter.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from tally_xml_editor.models.columns import ColumnCandidate, column_key, field_segments, parse_columns
from tally_xml_editor.models.filters import AdvancedFilter, parse_filter
from tally_xml_editor.models.rows import FlatRow
from tally_xml_editor.parsers.filter_query import Condition, compile_query, value_matches
from tally_xml_editor.paths import find_key, resolve
from tally_xml_editor.projection.columns import list_columns
from tally_xml_editor.projection.flatten import iter_rows

logger = logging.getLogger(__name__)

FILTER_SIMPLE = 'simple'
FILTER_ADVANCED = 'advanced'
FILTER_NONE = 'none'


def column_filter_type(rows: Sequence[FlatRow], key: str, sample_size: Optional[int] = None) -> str:
    """
    Decide which filter a column supports by sampling its cells.

    Args:
        rows: Flattened rows
        key: Column key
        sample_size: Rows sampled. Defaults to config.filter_sample_size.

    Returns:
        'simple' if every sampled non-empty value is a scalar, 'advanced' if
        every one is an object or list, otherwise 'none' (mixed or empty)
    """
    if sample_size is None:
        from tally_xml_editor.config import get_config
        sample_size = get_config().filter_sample_size

    has_scalars = False
    has_containers = False
    for row in rows[:sample_size]:
        value = row.value(key)
        if isinstance(value, (dict, list)):
            has_containers = True
        elif value is not None:
            has_scalars = True

    if has_containers and not has_scalars:
        return FILTER_ADVANCED
    if has_scalars and not has_containers:
        return FILTER_SIMPLE
    return FILTER_NONE


def matches_path(target: Any, key_path: Sequence[str], conditions: Sequence[Condition]) -> bool:
    """
    Existential match of ``conditions`` at ``key_path`` inside ``target``.

    Lists are crossed at every level: the match succeeds if any element
    matches the rest of the path. At the last segment a scalar is tested
    directly and a list is tested element-wise.

    Example:
        >>> entries = {'LIST': [{'NAME': 'Cash'}, {'NAME': 'Sales'}]}
        >>> matches_path(entries, ['list', 'name'], compile_query('sales'))
        True
    """
    if isinstance(target, list):
        return any(matches_path(item, key_path, conditions) for item in target)

    if not isinstance(target, dict) or not key_path:
        return False

    key = find_key(target, key_path[0])
    if key is None:
        return False
    value = target[key]

    if len(key_path) == 1:
        if isinstance(value, list):
            return any(value_matches(item, conditions) for item in value)
        return value_matches(value, conditions)

    return matches_path(value, key_path[1:], conditions)


@dataclass(frozen=True)
class CompiledFilter:
    """A column filter with its query compiled."""
    column: str
    kind: str
    conditions: Tuple[Condition, ...]
    key_path: Tuple[str, ...] = ()


def compile_filters(filters: Optional[Mapping[str, Any]]) -> List[CompiledFilter]:
    """
    Compile stored filter state, dropping filters with no conditions.

    Args:
        filters: Column key -> filter (query string, model or mapping)

    Returns:
        Active compiled filters, in input order
    """
    compiled = []
    for column, definition in (filters or {}).items():
        model = parse_filter(definition)
        if model is None:
            continue
        conditions = tuple(compile_query(model.query))
        if not conditions:
            continue
        if isinstance(model, AdvancedFilter):
            compiled.append(CompiledFilter(column, FILTER_ADVANCED, conditions, tuple(model.key)))
        else:
            compiled.append(CompiledFilter(column, FILTER_SIMPLE, conditions))
    return compiled


def apply_filters(
    rows: Sequence[FlatRow],
    collection: Any,
    columns: Sequence[Any],
    filters: Optional[Mapping[str, Any]]
) -> List[FlatRow]:
    """
    Keep the rows that satisfy every active filter.

    Simple filters test the flattened cell. Advanced filters only apply to
    plain columns: they read the column's unflattened value from the
    original row (a missing value rejects the row) and are evaluated once
    per original row.

    Args:
        rows: Output of flatten() for ``collection``
        collection: The collection the rows were flattened from
        columns: Column definitions used for flattening
        filters: Column key -> filter state

    Returns:
        Filtered rows, order preserved
    """
    active = compile_filters(filters)
    if not active:
        return list(rows)

    definitions = {column_key(c): c for c in parse_columns(columns)}
    originals = {index: row for index, row, _ in iter_rows(collection, ())}
    advanced_results: Dict[Tuple[str, int], bool] = {}

    def passes_advanced(row: FlatRow, compiled: CompiledFilter) -> bool:
        definition = definitions.get(compiled.column)
        if not isinstance(definition, str):
            return True

        memo_key = (compiled.column, row.original_index)
        if memo_key not in advanced_results:
            original = originals.get(row.original_index)
            value, _ = resolve(original, field_segments(definition))
            advanced_results[memo_key] = value is not None and matches_path(
                value, compiled.key_path, compiled.conditions
            )
        return advanced_results[memo_key]

    def passes(row: FlatRow) -> bool:
        for compiled in active:
            if compiled.kind == FILTER_ADVANCED:
                if not passes_advanced(row, compiled):
                    return False
            elif not value_matches(row.value(compiled.column), compiled.conditions):
                return False
        return True

    kept = [row for row in rows if passes(row)]
    logger.debug(
        f"Filters {[f.column for f in active]} kept {len(kept)} of {len(rows)} row(s)"
    )
    return kept


def nested_filter_keys(
    rows: Sequence[FlatRow],
    key: str,
    drill_path: Sequence[str] = (),
    sample_size: Optional[int] = None
) -> List[ColumnCandidate]:
    """
    Keys available for an advanced filter on column ``key``.

    Collects the nested values of the column across rows (lists are opened
    one level), follows ``drill_path`` into them, and lists the fields found
    there, flagging those that can be drilled into further.

    Args:
        rows: Flattened rows
        key: Column key of an advanced-filterable column
        drill_path: Keys already drilled into
        sample_size: Items sampled for the nested flag

    Returns:
        List of ColumnCandidate
    """
    def opened(values: List[Any]) -> List[Any]:
        result = []
        for value in values:
            if value is None:
                continue
            if isinstance(value, list):
                result.extend(value)
            else:
                result.append(value)
        return result

    level = opened([row.value(key) for row in rows])
    if drill_path:
        level = opened([resolve(item, list(drill_path))[0] for item in level])

    return list_columns(level, sample_size)
