"""
Column definition model for table projection.

A column is one of:
- Plain field name (str): a child tag, '@NAME' for an attribute, '#text' for
  the element's text slot, or 'value' for rows that are bare scalars
- CompositeColumn: a field read from a nested branch of the row, reached by
  following ``parent`` (case-insensitively, through nested lists)

Column keys identify columns in flattened rows and in persisted filter state.
"""

from typing import Any, Iterable, List, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from tally_xml_editor.parsers.xml_codec import ATTRIBUTES_KEY, TEXT_KEY
from tally_xml_editor.validators import validate_field_name, validate_parent_path

VALUE_FIELD = 'value'
ATTRIBUTE_PREFIX = '@'


class CompositeColumn(BaseModel):
    """
    Field merged into a parent table from a nested branch.

    Attributes:
        parent: Field names leading from the row to the branch (no indices)
        child: Field read from each item of the branch

    Example:
        >>> column = CompositeColumn(parent=['ALLLEDGERENTRIES.LIST'], child='AMOUNT')
        >>> column.key
        'ALLLEDGERENTRIES.LIST.AMOUNT'
        >>> CompositeColumn.model_validate({'parentPath': ['A', 'B'], 'childField': 'C'}).key
        'A.B.C'
    """

    parent: List[str] = Field(
        ...,
        validation_alias=AliasChoices('parent', 'parentPath', 'parent_path'),
        description="Field names from the row to the nested branch",
        examples=[["ALLLEDGERENTRIES.LIST", "BILLALLOCATIONS.LIST"]]
    )

    child: str = Field(
        ...,
        validation_alias=AliasChoices('child', 'childField', 'child_field'),
        description="Field read from each item of the branch",
        examples=["AMOUNT", "@TYPE", "#text", "value"]
    )

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    _validate_parent = field_validator('parent')(validate_parent_path)
    _validate_child = field_validator('child')(validate_field_name)

    @property
    def key(self) -> str:
        """Column key: parent names and child joined by '.'."""
        return '.'.join([*self.parent, self.child])

    def __hash__(self) -> int:
        return hash((tuple(self.parent), self.child))


ColumnDef = Union[str, CompositeColumn]


class ColumnCandidate(BaseModel):
    """
    A field offered for selection when building a table.

    Attributes:
        name: Field name (tag, '@attr', '#text' or 'value')
        is_nested: True if sampled items hold an object or list there,
            i.e. the field can be expanded into its own columns
    """

    name: str
    is_nested: bool = False

    model_config = ConfigDict(frozen=True)

    @property
    def display_name(self) -> str:
        return column_display_name(self.name)


def parse_column(definition: Any) -> ColumnDef:
    """
    Normalize one column definition.

    Args:
        definition: str, CompositeColumn, or a mapping with parent/child
            (or parentPath/childField) entries

    Returns:
        str or CompositeColumn

    Raises:
        ValueError: If the definition has no recognizable shape
        pydantic.ValidationError: If a composite definition is invalid
    """
    if isinstance(definition, CompositeColumn):
        return definition
    if isinstance(definition, str):
        return validate_field_name(definition)
    if isinstance(definition, dict):
        return CompositeColumn.model_validate(definition)
    raise ValueError(f"Unsupported column definition: {definition!r}")


def parse_columns(definitions: Iterable[Any]) -> List[ColumnDef]:
    """Normalize a list of column definitions, keeping order."""
    return [parse_column(d) for d in definitions]


def column_key(column: ColumnDef) -> str:
    """
    Key identifying ``column`` in flattened rows and filter state.

    Example:
        >>> column_key('@NAME')
        '@NAME'
        >>> column_key(CompositeColumn(parent=['A', 'B'], child='C'))
        'A.B.C'
    """
    if isinstance(column, CompositeColumn):
        return column.key
    return column


def is_attribute_field(name: str) -> bool:
    return name.startswith(ATTRIBUTE_PREFIX)


def field_segments(name: str) -> List[str]:
    """
    Path segments that read field ``name`` from an element node.

    Example:
        >>> field_segments('@VCHTYPE')
        ['@attributes', 'VCHTYPE']
        >>> field_segments('DATE')
        ['DATE']
    """
    if is_attribute_field(name):
        return [ATTRIBUTES_KEY, name[len(ATTRIBUTE_PREFIX):]]
    return [name]


def column_display_name(name: Union[str, ColumnDef]) -> str:
    """
    Human-readable header for a field name or column.

    Example:
        >>> column_display_name('@NAME')
        'NAME'
        >>> column_display_name('#text')
        'Text Content'
    """
    if isinstance(name, CompositeColumn):
        return name.key
    if not name:
        return ''
    if is_attribute_field(name):
        return name[len(ATTRIBUTE_PREFIX):]
    if name == TEXT_KEY:
        return 'Text Content'
    if name == VALUE_FIELD:
        return 'Value'
    return name


def to_plain(column: ColumnDef) -> Any:
    """JSON-ready form of a column definition, for persisting session state."""
    if isinstance(column, CompositeColumn):
        return {'parent': list(column.parent), 'child': column.child}
    return column
