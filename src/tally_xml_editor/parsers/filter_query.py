"""
Filter query language for table columns.

Syntax:
- Terms are separated by whitespace; a row matches if ANY term matches
- "quoted phrase"  case-insensitive substring match, spaces kept
- *                matches any run of characters (including none)
- ~*               a literal asterisk
- ~~               a literal tilde
- Everything else is literal; matching is case-insensitive and unanchored

Unquoted terms are lexed into a typed pattern (literal segments and wildcard
markers) and only then turned into a regular expression, so no user text is
ever reinterpreted as pattern syntax.
"""

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Pattern, Sequence, Tuple, Union

logger = logging.getLogger(__name__)

ESCAPE_CHAR = '~'
WILDCARD_CHAR = '*'
QUOTE_CHAR = '"'

# Quoted spans stay whole; everything else splits on whitespace
_TERM_RE = re.compile(r'"[^"]+"|\S+')


class PartKind(Enum):
    """Kinds of pattern parts produced by the lexer."""
    LITERAL = "literal"
    WILDCARD = "wildcard"


@dataclass(frozen=True)
class PatternPart:
    kind: PartKind
    text: str = ''


WILDCARD = PatternPart(PartKind.WILDCARD)


@dataclass(frozen=True)
class PhraseCondition:
    """Case-insensitive substring match for a quoted phrase."""
    phrase: str

    def matches(self, text: str) -> bool:
        return self.phrase in text.lower()


@dataclass(frozen=True)
class PatternCondition:
    """Wildcard pattern compiled from an unquoted term."""
    parts: Tuple[PatternPart, ...]
    regex: Pattern = field(init=False, compare=False, repr=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, 'regex', pattern_to_regex(self.parts))

    def matches(self, text: str) -> bool:
        return self.regex.search(text) is not None


Condition = Union[PhraseCondition, PatternCondition]


def tokenize(query: str) -> List[str]:
    """
    Split a query into terms, keeping quoted spans intact.

    Example:
        >>> tokenize('Sales* "cash account" ~*')
        ['Sales*', '"cash account"', '~*']
    """
    if not query:
        return []
    return _TERM_RE.findall(query)


def lex_pattern(term: str) -> Tuple[PatternPart, ...]:
    """
    Lex an unquoted term into literal segments and wildcard markers.

    Adjacent literals are merged and consecutive wildcards collapse into one.
    A tilde not followed by '*' or '~' is literal.

    Example:
        >>> lex_pattern('A*B')
        (PatternPart(kind=<PartKind.LITERAL: 'literal'>, text='A'), PatternPart(kind=<PartKind.WILDCARD: 'wildcard'>, text=''), PatternPart(kind=<PartKind.LITERAL: 'literal'>, text='B'))
    """
    parts: List[PatternPart] = []
    literal: List[str] = []

    def flush() -> None:
        if literal:
            parts.append(PatternPart(PartKind.LITERAL, ''.join(literal)))
            literal.clear()

    position = 0
    while position < len(term):
        char = term[position]
        following = term[position + 1] if position + 1 < len(term) else ''

        if char == ESCAPE_CHAR and following in (WILDCARD_CHAR, ESCAPE_CHAR):
            literal.append(following)
            position += 2
            continue

        if char == WILDCARD_CHAR:
            flush()
            if not parts or parts[-1].kind is not PartKind.WILDCARD:
                parts.append(WILDCARD)
            position += 1
            continue

        literal.append(char)
        position += 1

    flush()
    return tuple(parts)


def pattern_to_regex(parts: Sequence[PatternPart]) -> Pattern:
    """Compile lexed parts to a case-insensitive, unanchored regex."""
    source = ''.join(
        '.*' if part.kind is PartKind.WILDCARD else re.escape(part.text)
        for part in parts
    )
    return re.compile(source, re.IGNORECASE | re.DOTALL)


def compile_query(query: str) -> List[Condition]:
    """
    Compile a filter query into match conditions.

    Args:
        query: Raw filter text

    Returns:
        List of conditions (empty for a blank query)

    Example:
        >>> conditions = compile_query('A*B')
        >>> value_matches('AxyzB', conditions)
        True
        >>> value_matches('BA', conditions)
        False
    """
    if not query or not query.strip():
        return []

    conditions: List[Condition] = []
    for term in tokenize(query):
        if len(term) >= 2 and term.startswith(QUOTE_CHAR) and term.endswith(QUOTE_CHAR):
            conditions.append(PhraseCondition(term[1:-1].lower()))
        else:
            conditions.append(PatternCondition(lex_pattern(term)))

    logger.debug(f"Compiled filter query {query!r} into {len(conditions)} condition(s)")
    return conditions


def value_matches(value: Any, conditions: Sequence[Condition]) -> bool:
    """
    Test a cell value against compiled conditions (OR across conditions).

    Objects and lists always pass: simple filters only constrain scalar
    cells. None is treated as the empty string.

    Example:
        >>> value_matches('a*b', compile_query('~*'))
        True
        >>> value_matches('ab', compile_query('~*'))
        False
    """
    if not conditions:
        return True
    if isinstance(value, (dict, list)):
        return True

    text = '' if value is None else str(value)
    return any(condition.matches(text) for condition in conditions)
