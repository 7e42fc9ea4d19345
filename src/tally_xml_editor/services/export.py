"""
Export of documents and flattened tables.

- to_json: the raw document as JSON text
- rows_to_dataframe: flattened rows as a pandas DataFrame
- write_csv: flattened rows to a CSV file via pandas
"""

import json
import logging
from pathlib import Path
from typing import Any, Optional, Sequence, Union

import pandas as pd

from tally_xml_editor.models.columns import column_key, parse_columns
from tally_xml_editor.models.rows import FlatRow

logger = logging.getLogger(__name__)

ORIGINAL_INDEX_COLUMN = 'original_index'


def to_json(document: Any, indent: Optional[int] = None) -> str:
    """
    Serialize the raw document to JSON text.

    Args:
        document: Document tree ({root_name: body})
        indent: Indent width. Defaults to config.json_indent.

    Returns:
        JSON text (non-ASCII characters kept as-is)
    """
    if indent is None:
        from tally_xml_editor.config import get_config
        indent = get_config().json_indent
    return json.dumps(document, indent=indent, ensure_ascii=False)


def _cell_text(value: Any) -> Any:
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False)
    return value


def rows_to_dataframe(rows: Sequence[FlatRow], columns: Sequence[Any]) -> pd.DataFrame:
    """
    Build a DataFrame from flattened rows.

    One DataFrame column per column key, in definition order, plus
    'original_index'. Nested cells are rendered as JSON text; absent cells
    are None.

    Args:
        rows: Flattened (optionally filtered) rows
        columns: Column definitions used for flattening

    Returns:
        pandas DataFrame

    Example:
        >>> df = rows_to_dataframe(rows, ['@NAME', '#text'])
        >>> list(df.columns)
        ['@NAME', '#text', 'original_index']
    """
    keys = [column_key(c) for c in parse_columns(columns)]
    records = [
        {
            **{key: _cell_text(row.value(key)) for key in keys},
            ORIGINAL_INDEX_COLUMN: row.original_index,
        }
        for row in rows
    ]
    return pd.DataFrame(records, columns=[*keys, ORIGINAL_INDEX_COLUMN])


def write_csv(rows: Sequence[FlatRow], columns: Sequence[Any], path: Union[str, Path]) -> Path:
    """
    Write flattened rows to a UTF-8 CSV file.

    Args:
        rows: Flattened rows
        columns: Column definitions used for flattening
        path: Output file (parent directories are created)

    Returns:
        Path of the written file
    """
    output = Path(path)
    output.parent.mkdir(parents=True, exist_ok=True)

    df = rows_to_dataframe(rows, columns)
    df.to_csv(output, index=False, encoding='utf-8')

    logger.info(f"Wrote {len(df)} row(s) to {output}")
    return output
