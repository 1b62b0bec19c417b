# --- txpdf_lib/cleaner.py ---
"""
txpdf_lib/cleaner.py: Contains the ArtifactCleaner.

Cleaning runs in two phases. `clean_raw` works on the original line breaks,
before reconstruction, so that hyphenation and lone page numbers are still
line-anchored. `clean_rendered` tidies the reconstructed text.
"""
import html
import logging
import re
from collections import Counter

from .constants import (
    RUNNING_LINE_MIN_PAGES,
    RUNNING_LINE_MIN_RATIO,
    RUNNING_LINE_WINDOW,
)

log_clean = logging.getLogger("txpdf.clean")

_PAGE_OF = re.compile(r"Page\s+\d+\s+of\s+\d+", re.IGNORECASE)
_LONE_NUMBER = re.compile(r"^[ \t]*\d+[ \t]*$", re.MULTILINE)
_CONTROL_CHARS = re.compile(r"[\u0000-\u0008\u000B\u000C\u000E-\u001F\u007F-\u009F]")
_HYPHEN_BREAK = re.compile(r"(\w)-[ \t]*\n[ \t]*(\w)")
_HSPACE = re.compile(r"[ \t\u00A0]+")
_TRAILING_SPACE = re.compile(r"[ \t]+$", re.MULTILINE)
_EXCESS_NEWLINES = re.compile(r"\n{3,}")
_DIGITS = re.compile(r"\d+")


def _running_key(line):
    return _DIGITS.sub("#", line.strip()).lower()


def _edge_indices(lines):
    """Indices of the first and last non-empty lines within the edge window."""
    filled = [i for i, line in enumerate(lines) if line.strip()]
    return set(filled[:RUNNING_LINE_WINDOW]) | set(filled[-RUNNING_LINE_WINDOW:])


class ArtifactCleaner:
    """Strips rendering artifacts from page text in a fixed, ordered set of passes."""

    def clean_raw(self, text):
        """
        Cleans raw page text before reconstruction.

        Passes, in order: HTML entity decoding, form feeds, "Page N of M"
        footers, lone page numbers, control characters, hyphenation breaks and
        runs of horizontal whitespace.
        """
        if not text:
            return ""
        text = html.unescape(text.replace("\r\n", "\n").replace("\r", "\n"))
        text = text.replace("\f", "")
        text = _PAGE_OF.sub("", text)
        text = _LONE_NUMBER.sub("", text)
        text = _CONTROL_CHARS.sub("", text)
        text = _HYPHEN_BREAK.sub(r"\1\2", text)
        return _HSPACE.sub(" ", text)

    def clean_rendered(self, text):
        """Cleans reconstructed text; hyphenation was already handled on raw text."""
        if not text:
            return ""
        text = text.replace("\f", "")
        text = _PAGE_OF.sub("", text)
        text = _LONE_NUMBER.sub("", text)
        text = _CONTROL_CHARS.sub("", text)
        text = _HSPACE.sub(" ", text)
        text = _TRAILING_SPACE.sub("", text)
        return _EXCESS_NEWLINES.sub("\n\n", text).strip()

    def find_running_lines(self, page_texts):
        """
        Finds header/footer lines repeated at the edges of most pages.

        Digits are normalized so "Chapter 3 - 12" and "Chapter 3 - 13" match.

        Args:
            page_texts (Sequence[str]): Raw text of every page, in order.

        Returns:
            set[str]: Normalized keys of the running lines.
        """
        if len(page_texts) < RUNNING_LINE_MIN_PAGES:
            return set()
        counts = Counter()
        for text in page_texts:
            lines = text.split("\n")
            counts.update({_running_key(lines[i]) for i in _edge_indices(lines)})

        needed = RUNNING_LINE_MIN_RATIO * len(page_texts)
        running = {key for key, n in counts.items() if key and n >= needed}
        if running:
            log_clean.info("Running header/footer lines detected: %s", sorted(running))
        return running

    def strip_running_lines(self, text, running):
        """Removes running lines found at the top or bottom edge of a page."""
        if not running or not text:
            return text
        lines = text.split("\n")
        edges = _edge_indices(lines)
        kept = [
            line
            for i, line in enumerate(lines)
            if not (i in edges and _running_key(line) in running)
        ]
        return "\n".join(kept)
