"""
Flattened row types produced by the projection engine.

Rows are plain snapshots: they hold values and source paths, never live
references into the document. Recompute them after any edit.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, Optional, Tuple

Path = Tuple[Any, ...]


@dataclass(frozen=True)
class Cell:
    """
    One table cell.

    Attributes:
        value: Resolved value (None when the field is absent)
        path: Full document path that resolves to ``value``, or None when
            the field is absent
    """
    value: Any = None
    path: Optional[Path] = None

    @property
    def is_empty(self) -> bool:
        return self.value is None

    @property
    def is_editable(self) -> bool:
        """A cell can be written back only when its source location is known."""
        return self.path is not None


EMPTY_CELL = Cell()


@dataclass
class FlatRow:
    """
    One row of a flattened table.

    Several FlatRows share an ``original_index`` when a nested list was
    expanded; row deletion always targets that top-level index.
    """
    cells: Dict[str, Cell]
    original_index: int
    row_path: Path = field(default_factory=tuple)

    def __getitem__(self, key: str) -> Cell:
        return self.cells.get(key, EMPTY_CELL)

    def __contains__(self, key: str) -> bool:
        return key in self.cells

    def __iter__(self) -> Iterator[str]:
        return iter(self.cells)

    def value(self, key: str) -> Any:
        """Value of column ``key`` (None if absent)."""
        return self[key].value

    def values(self) -> Dict[str, Any]:
        """Column key -> value mapping."""
        return {key: cell.value for key, cell in self.cells.items()}
