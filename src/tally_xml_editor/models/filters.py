"""
Pydantic models for per-column filter state.

Two kinds of filter exist:
- SimpleFilter: a query tested against scalar cells of a column
- AdvancedFilter: a query tested at a key path inside the nested value of a
  column whose cells are objects or lists (existential semantics)
"""

from typing import Any, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from tally_xml_editor.validators import validate_field_name


class SimpleFilter(BaseModel):
    """
    Filter over scalar cells.

    Example:
        >>> SimpleFilter(query='Sales* "cash account"').is_active
        True
    """

    type: Literal['simple'] = 'simple'
    query: str = Field(
        default='',
        description="Filter query: words, \"quoted phrases\", * wildcards, ~ escapes"
    )

    model_config = ConfigDict(frozen=True)

    @property
    def is_active(self) -> bool:
        return bool(self.query.strip())


class AdvancedFilter(BaseModel):
    """
    Filter over a nested key path inside object/list cells.

    Attributes:
        key: Field names leading into the nested value
            (e.g. ['LEDGERENTRIES.LIST', 'LEDGERNAME'])
        query: Filter query tested at the end of ``key``

    Example:
        >>> f = AdvancedFilter(key=['LEDGERENTRIES.LIST', 'LEDGERNAME'], query='Cash')
        >>> f.is_active
        True
    """

    type: Literal['advanced'] = 'advanced'
    key: List[str] = Field(
        default_factory=list,
        description="Field names leading into the nested column value"
    )
    query: str = Field(default='')

    model_config = ConfigDict(frozen=True)

    @field_validator('key')
    @classmethod
    def validate_key_names(cls, v: List[str]) -> List[str]:
        return [validate_field_name(name) for name in v]

    @property
    def is_active(self) -> bool:
        return bool(self.key) and bool(self.query.strip())


ColumnFilter = Union[SimpleFilter, AdvancedFilter]


def parse_filter(definition: Any) -> Optional[ColumnFilter]:
    """
    Normalize stored filter state.

    Accepts a filter model, a plain query string (simple filter), or a
    mapping with ``type``/``key``/``query``. An empty query means "no filter".

    Returns:
        SimpleFilter, AdvancedFilter, or None when the query is empty

    Example:
        >>> parse_filter('A*B')
        SimpleFilter(type='simple', query='A*B')
        >>> parse_filter({'type': 'advanced', 'key': ['X'], 'query': 'y'}).key
        ['X']
        >>> parse_filter('') is None
        True
    """
    if definition is None:
        return None
    if isinstance(definition, (SimpleFilter, AdvancedFilter)):
        result = definition
    elif isinstance(definition, str):
        result = SimpleFilter(query=definition)
    elif isinstance(definition, dict):
        if definition.get('type') == 'advanced' or 'key' in definition:
            result = AdvancedFilter.model_validate({**definition, 'type': 'advanced'})
        else:
            result = SimpleFilter.model_validate({**definition, 'type': 'simple'})
    else:
        raise ValueError(f"Unsupported filter definition: {definition!r}")

    return result if result.query.strip() else None
