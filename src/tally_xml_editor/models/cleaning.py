"""
Pydantic model for the character sanitizer's report.
"""

from typing import List

from pydantic import BaseModel, ConfigDict, Field


class CleaningReport(BaseModel):
    """
    Result of sanitizing raw input before XML parsing.

    Attributes:
        text: Decoded text with illegal codepoints removed
        removed_count: Total number of codepoints removed
        encoding: Encoding chosen from the byte-order mark ('utf-8' by default)
        log: Human-readable cleaning steps, in the order they ran

    Example:
        >>> report = sanitize(b'\\x00<ROOT/>')
        >>> report.removed_count
        1
        >>> report.log
        ['Removed 1 NUL character(s)']
    """

    text: str = Field(
        ...,
        description="Cleaned text, safe to hand to the XML parser"
    )

    removed_count: int = Field(
        default=0,
        ge=0,
        description="Total codepoints removed across all cleaning steps"
    )

    encoding: str = Field(
        default='utf-8',
        description="Encoding used to decode the input bytes",
        examples=['utf-8', 'utf-16-le', 'utf-16-be']
    )

    log: List[str] = Field(
        default_factory=list,
        description="Cleaning steps that changed the input"
    )

    model_config = ConfigDict(frozen=True)

    @property
    def was_modified(self) -> bool:
        """True if any codepoint was removed."""
        return self.removed_count > 0

    def __repr__(self) -> str:
        preview = self.text[:60] + "..." if len(self.text) > 60 else self.text
        return (
            f"CleaningReport(removed_count={self.removed_count}, "
            f"encoding='{self.encoding}', text='{preview}')"
        )
