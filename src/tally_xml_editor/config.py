"""
Configuration management using Pydantic Settings.

Settings are read from environment variables (prefix ``TALLY_XML_``) and an
optional ``.env`` file, layered over defaults from ``config/editor.yaml``
when that file exists. Provides type-safe access to:
- Sampling limits for column discovery and filter eligibility
- The drill-down policy used when opening a table from the tree
- Serialization options for XML and JSON output
"""

from pathlib import Path
from typing import Any, Dict, Optional
import logging

import yaml
from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = 'editor.yaml'


def find_config_file() -> Optional[Path]:
    """
    Locate ``config/editor.yaml``.

    Searches the project root first (src/tally_xml_editor/config.py -> root),
    then the current working directory.

    Returns:
        Path to the YAML file, or None if neither location has one
    """
    project_root = Path(__file__).parent.parent.parent
    for candidate in (
        project_root / 'config' / CONFIG_FILE_NAME,
        Path('config') / CONFIG_FILE_NAME,
    ):
        if candidate.exists():
            return candidate
    return None


def load_yaml_defaults(config_path: Optional[Path] = None) -> Dict[str, Any]:
    """
    Read the ``editor`` mapping from a YAML config file.

    Args:
        config_path: Explicit file to read. Defaults to find_config_file().

    Returns:
        Dictionary of settings (empty if no file was found)

    Raises:
        ValueError: If the file does not contain a mapping
    """
    path = config_path or find_config_file()
    if path is None:
        return {}

    with open(path, 'r', encoding='utf-8') as f:
        yaml_data = yaml.safe_load(f) or {}

    if not isinstance(yaml_data, dict):
        raise ValueError(f"Config file {path} must contain a mapping")

    logger.debug(f"Loaded editor defaults from {path}")
    return dict(yaml_data.get('editor', yaml_data))


class EditorConfig(BaseSettings):
    """
    Runtime settings for the document and projection engine.

    Environment Variables (from .env):
        TALLY_XML_COLUMN_SAMPLE_SIZE: Items sampled when listing columns
        TALLY_XML_FILTER_SAMPLE_SIZE: Rows sampled when choosing a filter type
        TALLY_XML_SMART_DRILL_DOWN: Descend through single-key wrappers
        TALLY_XML_ENCODE_INDENT: Indentation width for XML output
        TALLY_XML_JSON_INDENT: Indentation width for JSON output

    Example:
        >>> config = get_config()
        >>> config.column_sample_size
        20
        >>> config.smart_drill_down
        True
    """

    column_sample_size: int = Field(
        default=20,
        ge=1,
        description="Number of items sampled to flag nested (expandable) columns"
    )

    filter_sample_size: int = Field(
        default=50,
        ge=1,
        description="Number of flattened rows sampled to decide a column's filter type"
    )

    smart_drill_down: bool = Field(
        default=True,
        description="Descend through single-child wrapper objects when opening a table"
    )

    encode_indent: Optional[int] = Field(
        default=None,
        ge=0,
        description="Indent width for encoded XML (None writes a single line)"
    )

    json_indent: Optional[int] = Field(
        default=2,
        ge=0,
        description="Indent width for JSON export"
    )

    xml_declaration: str = Field(
        default='<?xml version="1.0" encoding="UTF-8"?>',
        description="Declaration written at the top of encoded XML"
    )

    model_config = SettingsConfigDict(
        env_prefix='TALLY_XML_',
        env_file='.env',
        env_file_encoding='utf-8',
        case_sensitive=False,
        extra='ignore'
    )

    @model_validator(mode='before')
    @classmethod
    def layer_yaml_defaults(cls, data: Any) -> Any:
        """
        Fill unset fields from config/editor.yaml.

        Values already present (init arguments, environment, .env) win over
        the YAML file.
        """
        if not isinstance(data, dict):
            return data
        defaults = load_yaml_defaults()
        return {**defaults, **data}


# Singleton pattern - loaded once, cached until reset
_config: Optional[EditorConfig] = None


def get_config() -> EditorConfig:
    """
    Get global config instance (lazy-loaded singleton).

    Returns:
        Singleton EditorConfig instance

    Example:
        >>> config = get_config()
        >>> config is get_config()
        True
    """
    global _config
    if _config is None:
        _config = EditorConfig()
    return _config


def reset_config() -> None:
    """Drop the cached config so the next get_config() re-reads the environment."""
    global _config
    _config = None
