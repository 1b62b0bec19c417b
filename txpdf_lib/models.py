# --- txpdf_lib/models.py ---
"""
txpdf_lib/models.py: Data models for pages, lines, blocks and batch outcomes.
"""
from dataclasses import dataclass, field
from typing import List, Optional

from .constants import (
    HEADER_LEVEL_1_MAX_CHARS,
    HEADER_LEVEL_2_MAX_CHARS,
    HEADER_MARKER,
)


BLOCK_HEADER = "header"
BLOCK_LIST = "list"
BLOCK_PARAGRAPH = "paragraph"


@dataclass(frozen=True)
class Line:
    """A trimmed, non-empty line and its zero-based position on the page."""

    text: str
    index: int

    def __len__(self):
        return len(self.text)


@dataclass(frozen=True)
class DocumentStats:
    """Aggregate statistics over the non-empty lines of a page."""

    median_line_length: float = 0.0
    average_line_length: float = 0.0
    sentence_ending_ratio: float = 0.0
    colon_ending_ratio: float = 0.0
    total_lines: int = 0


@dataclass
class Page:
    """A single page of extracted text."""

    page_number: int
    text: str


@dataclass
class ExtractionResult:
    """The pages of one document and the backend that produced them."""

    method: str
    pages: List[Page] = field(default_factory=list)


@dataclass
class ProcessingOutcome:
    """The result of processing one document: a transcript or an error record."""

    source: str
    artifact_path: str
    succeeded: bool
    method: Optional[str] = None
    page_count: int = 0
    error_type: Optional[str] = None
    error_message: Optional[str] = None
    duration: float = 0.0


@dataclass
class BatchSummary:
    """Counts and outcomes for a full batch run."""

    outcomes: List[ProcessingOutcome] = field(default_factory=list)
    duration: float = 0.0

    @property
    def total(self) -> int:
        return len(self.outcomes)

    @property
    def succeeded(self) -> int:
        return sum(1 for o in self.outcomes if o.succeeded)

    @property
    def failed(self) -> int:
        return self.total - self.succeeded


def header_level_for(text):
    """Maps a header's length to a nesting level of 1, 2 or 3."""
    if len(text) <= HEADER_LEVEL_1_MAX_CHARS:
        return 1
    if len(text) <= HEADER_LEVEL_2_MAX_CHARS:
        return 2
    return 3


class Block:
    """A contiguous run of lines of a single kind: header, list or paragraph."""

    def __init__(self, kind, lines=None, level=None):
        self.kind = kind
        self.lines: list[str] = list(lines or [])
        self.level = level

    @classmethod
    def header(cls, text):
        return cls(BLOCK_HEADER, [text], level=header_level_for(text))

    def add_line(self, text):
        self.lines.append(text)

    @property
    def is_empty(self):
        return not self.lines

    def render(self):
        """Renders the block to text according to its kind."""
        if self.kind == BLOCK_HEADER:
            marker = HEADER_MARKER * self.level
            return f"\n{marker} {' '.join(self.lines).upper()} {marker}\n"
        if self.kind == BLOCK_LIST:
            return "\n".join(self.lines)
        return " ".join(self.lines)

    def __repr__(self):
        return f"Block({self.kind!r}, {self.lines!r}, level={self.level!r})"
