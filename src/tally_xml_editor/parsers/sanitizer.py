"""
Character sanitization for raw XML input.

Accounting exports routinely carry bytes that XML 1.0 forbids: NUL padding
from fixed-width writers, stray control characters pasted into narrations,
and byte-order marks. This pass removes them before parsing and reports
what it removed.

XML 1.0 Specification (Section 2.2 Characters):
  Char ::= #x9 | #xA | #xD | [#x20-#xD7FF] | [#xE000-#xFFFD] | [#x10000-#x10FFFF]
"""

import logging
import re
from typing import Tuple, Union

from tally_xml_editor.models.cleaning import CleaningReport

logger = logging.getLogger(__name__)

# Checked in order; only UTF-16 marks change the decoder
BOM_ENCODINGS = (
    (b'\xfe\xff', 'utf-16-be'),
    (b'\xff\xfe', 'utf-16-le'),
)
DEFAULT_ENCODING = 'utf-8'

_ILLEGAL_XML_CHARS_RE = re.compile(
    r'[^\t\n\r\u0020-\ud7ff\ue000-\ufffd\U00010000-\U0010ffff]'
)

# Whitespace, BOM and replacement characters before the first markup
_LEADING_JUNK_RE = re.compile(r'\A[\s\ufeff\ufffd]+')


def detect_encoding(data: bytes) -> Tuple[str, bool]:
    """
    Choose a decoder from the byte-order mark.

    Args:
        data: Raw bytes

    Returns:
        Tuple of (encoding, bom_found)

    Example:
        >>> detect_encoding(b'\\xff\\xfe<\\x00')
        ('utf-16-le', True)
        >>> detect_encoding(b'<ROOT/>')
        ('utf-8', False)
    """
    for bom, encoding in BOM_ENCODINGS:
        if data.startswith(bom):
            return encoding, True
    return DEFAULT_ENCODING, False


def format_codepoint(char: str) -> str:
    """Format a character as U+XXXX."""
    return f"U+{ord(char):04X}"


def sanitize(raw: Union[bytes, bytearray, str]) -> CleaningReport:
    """
    Decode raw input and strip everything XML 1.0 does not allow.

    Steps:
    1. Decode via BOM detection (UTF-16 BE/LE, else UTF-8). Undecodable
       bytes become U+FFFD. A str input skips this step.
    2. Remove every U+0000.
    3. Remove codepoints outside the XML 1.0 Char production.
    4. Remove the leading run of whitespace, U+FEFF and U+FFFD left
       in front of the first markup.

    Never raises; the worst case is an empty text with a full log.

    Args:
        raw: File bytes or already-decoded text

    Returns:
        CleaningReport with cleaned text, removal count and log

    Example:
        >>> report = sanitize(b'<A>x\\x01y</A>')
        >>> report.text
        '<A>xy</A>'
        >>> report.log
        ['Removed 1 invalid XML character(s): U+0001']
    """
    log = []
    removed = 0

    if isinstance(raw, str):
        encoding = DEFAULT_ENCODING
        text = raw
    else:
        data = bytes(raw)
        encoding, bom_found = detect_encoding(data)
        if bom_found:
            log.append(f"Detected {encoding.upper()} byte-order mark")
        text = data.decode(encoding, errors='replace')

    nul_count = text.count('\x00')
    if nul_count:
        text = text.replace('\x00', '')
        removed += nul_count
        log.append(f"Removed {nul_count} NUL character(s)")

    offenders = set()

    def _drop(match: 're.Match') -> str:
        offenders.add(match.group(0))
        return ''

    text, invalid_count = _ILLEGAL_XML_CHARS_RE.subn(_drop, text)
    if invalid_count:
        removed += invalid_count
        listed = ', '.join(format_codepoint(c) for c in sorted(offenders))
        log.append(f"Removed {invalid_count} invalid XML character(s): {listed}")

    leading = _LEADING_JUNK_RE.match(text)
    if leading:
        count = len(leading.group(0))
        text = text[count:]
        removed += count
        log.append(f"Removed {count} leading whitespace/BOM character(s)")

    if removed:
        logger.warning(f"Sanitizer removed {removed} character(s) from input")
        for entry in log:
            logger.debug(entry)

    return CleaningReport(
        text=text,
        removed_count=removed,
        encoding=encoding,
        log=log
    )
