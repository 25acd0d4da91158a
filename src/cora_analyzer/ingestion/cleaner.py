"""
Cleaner Module - HTML to plain text reduction.
==============================================

Best-effort regex reduction, not a DOM parser:
- Drop <script> and <style> blocks with their contents
- Replace remaining tags with spaces
- Decode a fixed table of common entities
- Collapse whitespace
- Bound the result length
"""

import re
from dataclasses import dataclass
from typing import Optional

from cora_analyzer.shared.logging import get_logger
from cora_analyzer.shared.utils import truncate_text

logger = get_logger(__name__)

# Only these entities are decoded; anything else is left as written.
ENTITY_TABLE: dict[str, str] = {
    "&amp;": "&",
    "&lt;": "<",
    "&gt;": ">",
    "&quot;": '"',
    "&#39;": "'",
    "&nbsp;": " ",
}


@dataclass
class ReducerConfig:
    """Configuration for markup reduction."""

    max_length: int = 5000
    truncation_marker: str = "..."


class MarkupReducer:
    """
    Reduces an HTML document to a single line of bounded plain text.

    Example:
        >>> reducer = MarkupReducer()
        >>> reducer.reduce("<p>Great&nbsp;class &amp; fair grading</p>")
        'Great class & fair grading'
    """

    def __init__(self, config: Optional[ReducerConfig] = None):
        self.config = config or ReducerConfig()

        self._script_pattern = re.compile(r"<script\b[^>]*>.*?</script\s*>", re.IGNORECASE | re.DOTALL)
        self._style_pattern = re.compile(r"<style\b[^>]*>.*?</style\s*>", re.IGNORECASE | re.DOTALL)
        self._html_tag_pattern = re.compile(r"<[^>]+>")
        self._entity_pattern = re.compile("|".join(re.escape(e) for e in ENTITY_TABLE))
        self._whitespace_pattern = re.compile(r"\s+")

    def strip_markup(self, html: Optional[str]) -> str:
        """Remove scripts, styles and tags; decode entities; collapse whitespace."""
        if not html:
            return ""

        text = self._script_pattern.sub("", html)
        text = self._style_pattern.sub("", text)
        text = self._html_tag_pattern.sub(" ", text)
        text = self._entity_pattern.sub(lambda m: ENTITY_TABLE[m.group(0)], text)
        return self._whitespace_pattern.sub(" ", text).strip()

    def reduce(self, html: Optional[str]) -> str:
        """
        Reduce HTML to plain text no longer than max_length plus the marker.

        Args:
            html: Raw HTML (can be None)

        Returns:
            Plain text, truncated with the marker when cut
        """
        text = self.strip_markup(html)
        reduced = truncate_text(text, self.config.max_length, self.config.truncation_marker)
        if len(reduced) != len(text):
            logger.debug(f"Truncated page text from {len(text)} to {self.config.max_length} chars")
        return reduced
