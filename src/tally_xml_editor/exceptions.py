"""
Error taxonomy for tally-xml-editor.

Only structural and parse-time problems are errors. Resolution misses
(a missing key, an absent column) are not: they surface as ``None`` and
render as empty, still-editable cells.
"""

from typing import Optional


class TallyXmlError(Exception):
    """Base class for all errors raised by this package."""


class DecodeError(TallyXmlError, ValueError):
    """
    The input text is not well-formed XML.

    The message carries the underlying parser message. A failed decode
    never installs a partial document.

    Attributes:
        line: Line reported by the parser (if available)
        column: Column reported by the parser (if available)
    """

    def __init__(self, message: str, line: Optional[int] = None, column: Optional[int] = None):
        super().__init__(message)
        self.line = line
        self.column = column


class InvalidPath(TallyXmlError, LookupError):
    """
    A write was attempted through a path that cannot be resolved.

    Raised for an empty path, an intermediate segment that does not
    resolve to a container, or an index outside the target list.
    The document is left untouched.
    """

    def __init__(self, path, reason: str):
        self.path = tuple(path) if path is not None else ()
        self.reason = reason
        super().__init__(f"Invalid path {list(self.path)}: {reason}")


class NotASequence(TallyXmlError, TypeError):
    """
    A sequence operation targeted a value that is not a list.

    Callers treat this as a logged no-op; it is never fatal.
    """

    def __init__(self, path, actual):
        self.path = tuple(path) if path is not None else ()
        self.actual_type = type(actual).__name__
        super().__init__(
            f"Expected a sequence at {list(self.path)}, found {self.actual_type}"
        )
