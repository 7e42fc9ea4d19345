"""
Path-addressed access to a structured document.

A path is a sequence of segments: tag names (str) resolved case-insensitively
against mapping keys, and list indices (int). These helpers are the only code
that reads or writes the document by path; everything else goes through them.

Key discoveries from real exports:
1. Tag case varies between exports of the same ledger (VOUCHER vs Voucher)
2. The same tag may be a single object in one document and a list in another
3. Absence is normal, so reads never raise
"""

import json
import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple

from tally_xml_editor.exceptions import InvalidPath, NotASequence

logger = logging.getLogger(__name__)

Segment = Any  # str | int
Path = Tuple[Segment, ...]


def is_container(value: Any) -> bool:
    """True for element nodes (dict) and sequences (list)."""
    return isinstance(value, (dict, list))


def find_key(mapping: Dict[str, Any], name: Any) -> Optional[str]:
    """
    Find the key of ``mapping`` matching ``name`` case-insensitively.

    An exact match is preferred; otherwise the first key whose lowercase form
    matches wins. Documents are assumed not to hold two keys differing only
    by case.

    Args:
        mapping: Element node to search
        name: Segment to match (converted to str)

    Returns:
        The actual key, or None if nothing matches

    Example:
        >>> find_key({'VOUCHER': {}}, 'voucher')
        'VOUCHER'
    """
    name = str(name)
    if name in mapping:
        return name
    lowered = name.lower()
    for key in mapping:
        if str(key).lower() == lowered:
            return key
    return None


def resolve(node: Any, segments: Sequence[Segment]) -> Tuple[Any, Optional[List[Segment]]]:
    """
    Resolve ``segments`` below ``node`` and report the actual path taken.

    Args:
        node: Starting value
        segments: Path segments relative to ``node``

    Returns:
        Tuple of (value, actual_path). actual_path carries the real key
        spelling for every string segment. On any miss returns (None, None).

    Example:
        >>> resolve({'A': {'b': '1'}}, ['a', 'B'])
        ('1', ['A', 'b'])
    """
    current = node
    actual: List[Segment] = []
    for segment in segments:
        if isinstance(segment, int) and not isinstance(segment, bool):
            if not isinstance(current, list) or not 0 <= segment < len(current):
                return None, None
            current = current[segment]
            actual.append(segment)
        else:
            if not isinstance(current, dict):
                return None, None
            key = find_key(current, segment)
            if key is None:
                return None, None
            current = current[key]
            actual.append(key)
    return current, actual


def get_path(document: Any, path: Sequence[Segment]) -> Any:
    """
    Read the value at ``path``.

    Args:
        document: Document tree
        path: Full path from the document root

    Returns:
        The value, or None on any resolution miss (never raises)

    Example:
        >>> doc = {'ENVELOPE': {'VOUCHER': ['a', 'b']}}
        >>> get_path(doc, ['envelope', 'Voucher', 1])
        'b'
    """
    value, _ = resolve(document, path or ())
    return value


def set_path(document: Any, path: Sequence[Segment], value: Any) -> Path:
    """
    Write ``value`` at ``path``, mutating the terminal container in place.

    Intermediate segments must already exist. The terminal segment may
    replace an existing key (matched case-insensitively), add a new key to
    a mapping, replace a list item, or append when it equals the list length.

    Args:
        document: Document tree to mutate
        path: Full path from the document root
        value: New value

    Returns:
        The actual path written (real key spellings)

    Raises:
        InvalidPath: If the path is empty or cannot be resolved. Nothing is
            mutated in that case.

    Example:
        >>> doc = {'ROOT': {'ITEM': ['1', '2']}}
        >>> set_path(doc, ['root', 'item', 1], '3')
        ('ROOT', 'ITEM', 1)
        >>> doc
        {'ROOT': {'ITEM': ['1', '3']}}
    """
    if not path:
        raise InvalidPath(path, "path is empty")

    *parent_segments, last = list(path)
    container = document
    actual: List[Segment] = []

    for position, segment in enumerate(parent_segments):
        child, child_path = resolve(container, [segment])
        if child_path is None:
            raise InvalidPath(path, f"segment {position} ({segment!r}) does not resolve")
        if not is_container(child):
            raise InvalidPath(
                path, f"segment {position} ({segment!r}) is a {type(child).__name__}, not a container"
            )
        container = child
        actual.extend(child_path)

    if isinstance(container, dict):
        if isinstance(last, int) and not isinstance(last, bool):
            raise InvalidPath(path, f"index {last} used on a mapping")
        key = find_key(container, last)
        if key is None:
            key = str(last)
        container[key] = value
        actual.append(key)
    elif isinstance(container, list):
        if not isinstance(last, int) or isinstance(last, bool):
            raise InvalidPath(path, f"key {last!r} used on a sequence")
        if 0 <= last < len(container):
            container[last] = value
        elif last == len(container):
            container.append(value)
        else:
            raise InvalidPath(path, f"index {last} out of range for {len(container)} items")
        actual.append(last)
    else:
        raise InvalidPath(path, f"parent is a {type(container).__name__}, not a container")

    return tuple(actual)


def require_sequence(document: Any, path: Sequence[Segment]) -> list:
    """
    Return the list stored at ``path``.

    Raises:
        NotASequence: If the value at ``path`` is not a list
    """
    target = get_path(document, path)
    if not isinstance(target, list):
        raise NotASequence(path, target)
    return target


def delete_at(document: Any, collection_path: Sequence[Segment], index: int) -> bool:
    """
    Remove one item from the list at ``collection_path``.

    Subsequent items shift down by one, so any previously captured path
    through this list must be re-resolved.

    Args:
        document: Document tree to mutate
        collection_path: Path to the list
        index: Top-level row index to remove

    Returns:
        True if an item was removed, False for a logged no-op

    Example:
        >>> doc = {'ROOT': {'ITEM': ['a', 'b', 'c']}}
        >>> delete_at(doc, ['ROOT', 'ITEM'], 1)
        True
        >>> doc['ROOT']['ITEM']
        ['a', 'c']
    """
    try:
        sequence = require_sequence(document, collection_path)
    except NotASequence as e:
        logger.warning(f"Delete of row {index} skipped: {e}")
        return False

    if not 0 <= index < len(sequence):
        logger.warning(
            f"Delete of row {index} skipped: out of range for "
            f"{len(sequence)} items at {list(collection_path)}"
        )
        return False

    del sequence[index]
    logger.debug(f"Deleted row {index} at {list(collection_path)}, {len(sequence)} remain")
    return True


def path_key(path: Sequence[Segment]) -> str:
    """
    JSON-stable string key for a path, used to index session state.

    Example:
        >>> path_key(['ENVELOPE', 'BODY', 0])
        '["ENVELOPE","BODY",0]'
    """
    return json.dumps(list(path), separators=(',', ':'), ensure_ascii=False)
