"""
Text-level parsing: input sanitization, the XML codec and the filter
query language.
"""

from .xml_codec import decode, encode, encode_bytes, escape_attribute, escape_text, ATTRIBUTES_KEY, TEXT_KEY
from .filter_query import compile_query, value_matches, PhraseCondition, PatternCondition
from .sanitizer import sanitize, detect_encoding

__all__ = [
    # XML Codec
    'decode',
    'encode',
    'encode_bytes',
    'escape_attribute',
    'escape_text',
    'ATTRIBUTES_KEY',
    'TEXT_KEY',
    # Filter Queries
    'compile_query',
    'value_matches',
    'PhraseCondition',
    'PatternCondition',
    # Sanitizer
    'sanitize',
    'detect_encoding',
]
