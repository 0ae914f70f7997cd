"""
Text Cleaner for Bill Processing
=================================
Normalizes raw bill text into the two views the extractor searches:
a whitespace-collapsed document string and a list of trimmed, non-blank lines.
"""

import re
import logging
from typing import Dict, Tuple
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CleaningResult:
    """Result of text cleaning."""
    text: str
    lines: Tuple[str, ...]
    stats: Dict[str, int]


class TextCleaner:
    """
    Cleans raw bill text by:
    1. Dropping carriage returns
    2. Collapsing runs of spaces/tabs (newlines are kept)
    3. Splitting into trimmed lines and discarding blank ones
    """

    _CARRIAGE_RETURN = re.compile(r'\r')
    _HORIZONTAL_SPACE = re.compile(r'[ \t\f\v\u00a0]+')

    def clean(self, text: str) -> CleaningResult:
        """
        Clean raw document text.

        Args:
            text: Raw text from the document-text extraction step (may be None)

        Returns:
            CleaningResult with the collapsed text, its content lines, and stats
        """
        if not text:
            return CleaningResult(
                text="",
                lines=(),
                stats={"original_chars": 0, "final_chars": 0, "lines_kept": 0}
            )

        original_chars = len(text)
        collapsed = self.collapse_whitespace(text)
        lines = self.content_lines(collapsed)

        return CleaningResult(
            text=collapsed,
            lines=lines,
            stats={
                "original_chars": original_chars,
                "final_chars": len(collapsed),
                "lines_kept": len(lines),
            }
        )

    def collapse_whitespace(self, text: str) -> str:
        """Drop carriage returns and collapse horizontal whitespace runs to one space."""
        text = self._CARRIAGE_RETURN.sub('', str(text))
        text = self._HORIZONTAL_SPACE.sub(' ', text)
        return text.strip()

    @staticmethod
    def content_lines(text: str) -> Tuple[str, ...]:
        """Trimmed, non-blank lines in document order."""
        return tuple(line.strip() for line in text.split('\n') if line.strip())
