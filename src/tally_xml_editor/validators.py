"""
Reusable field validators for Pydantic models.

These validators check the plain-data shapes that cross the boundary between
the UI layer and the core: paths, field names and composite parent paths.
They can be attached with Pydantic's @field_validator decorator.
"""

from typing import Any, List


def validate_path(path: Any) -> List[Any]:
    """
    Validate a document path.

    A path is an ordered sequence whose segments are tag names (str) or
    non-negative list indices (int).

    Args:
        path: Sequence of segments (list or tuple)

    Returns:
        The path as a list

    Raises:
        ValueError: If the path is not a sequence or has an invalid segment

    Example:
        >>> validate_path(['ENVELOPE', 'BODY', 0, 'VOUCHER'])
        ['ENVELOPE', 'BODY', 0, 'VOUCHER']
        >>> validate_path(['ENVELOPE', -1])  # Raises ValueError
    """
    if isinstance(path, (str, bytes)) or not isinstance(path, (list, tuple)):
        raise ValueError(
            f"Path must be a list of segments, got: {type(path).__name__}"
        )

    for position, segment in enumerate(path):
        # bool is an int subclass but never a valid index
        if isinstance(segment, bool):
            raise ValueError(f"Path segment {position} is a bool: {segment!r}")
        if isinstance(segment, int):
            if segment < 0:
                raise ValueError(
                    f"Path segment {position} must be a non-negative index, got: {segment}"
                )
        elif not isinstance(segment, str):
            raise ValueError(
                f"Path segment {position} must be str or int, "
                f"got: {type(segment).__name__}"
            )

    return list(path)


def validate_field_name(name: str) -> str:
    """
    Validate a column field name.

    Field names are tag names, ``@``-prefixed attribute names, ``#text`` or
    ``value``. They must not be blank.

    Args:
        name: Field name to validate

    Returns:
        The field name (unchanged if valid)

    Raises:
        ValueError: If the name is empty or whitespace, or a bare ``@``

    Example:
        >>> validate_field_name('@VCHTYPE')
        '@VCHTYPE'
        >>> validate_field_name('  ')  # Raises ValueError
    """
    if not isinstance(name, str) or not name.strip():
        raise ValueError(f"Field name must be a non-empty string, got: {name!r}")
    if name == '@':
        raise ValueError("Attribute field name must follow '@'")
    return name


def validate_parent_path(parent: List[str]) -> List[str]:
    """
    Validate the parent path of a composite column.

    Args:
        parent: Field names leading from a row to a nested branch

    Returns:
        The validated list

    Raises:
        ValueError: If the list is empty or contains a blank name

    Example:
        >>> validate_parent_path(['ALLLEDGERENTRIES.LIST'])
        ['ALLLEDGERENTRIES.LIST']
    """
    if not parent:
        raise ValueError("Composite column parent path cannot be empty")
    return [validate_field_name(name) for name in parent]
