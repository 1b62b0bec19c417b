# --- txpdf_lib/analyzer.py ---
"""
txpdf_lib/analyzer.py: Line statistics and the heuristic LineClassifier.

Header detection is an additive score over a table of named predicates
(`HEADER_RULES`). Each predicate is a pure function of a `LineContext`; the
weights live in `PipelineConfig.header_weights` so they can be tuned without
touching the rules.
"""
import logging
import re
import statistics
from dataclasses import dataclass
from typing import Optional

from .config import PipelineConfig
from .constants import (
    ALL_CAPS_MAX_WORDS,
    ALL_CAPS_MIN_WORDS,
    BULLET_CHARS,
    COLON_MAX_CHARS,
    GLYPH_BULLET_CHARS,
    HEADER_MAX_CHARS,
    HEADER_MIN_CHARS,
    MERGE_SHORT_RATIO,
    MERGE_STOP_CHARS,
    NEIGHBOR_LENGTH_RATIO,
    NO_TERMINAL_MAX_CHARS,
    SENTENCE_END_CHARS,
    SHORT_LINE_RATIO,
    STRUCTURAL_KEYWORDS,
    TERMINAL_PUNCT_CHARS,
    TITLE_CASE_MAX_WORDS,
    TITLE_CASE_MIN_WORDS,
    TITLE_CASE_RATIO,
)
from .models import DocumentStats, Line

log_classify = logging.getLogger("txpdf.classify")

_LIST_MARKER = re.compile(
    r"^(?:\d+[.)]|[A-Za-z][.)]|[" + re.escape(BULLET_CHARS) + r"])\s+"
)
_GLYPH_BULLET = re.compile(r"^[" + re.escape(GLYPH_BULLET_CHARS) + r"]")
_NUMBERED_HEADING = re.compile(
    r"^(?:\d+(?:\.\d+)+\.?|[IVXLCDM]+\.)\s+[A-Z]|^#{1,6}\s+\S"
)
_SIMPLE_NUMBERED = re.compile(r"^\d+[.)]\s+[A-Z]")
_KEYWORD_START = re.compile(
    r"^(?:(?:\d+(?:\.\d+)*|[IVXLCDM]+)[.)]?\s+)?(?:"
    + "|".join(STRUCTURAL_KEYWORDS)
    + r")\b",
    re.IGNORECASE,
)
_ALPHA_WORD = re.compile(r"[^\W\d_][\w'’-]*")
_MERGE_BLOCKERS = re.compile(r"^[A-Z\"'“‘(\[{]")


def split_lines(text):
    """Splits raw text into trimmed, non-empty Lines, numbered from zero."""
    if not text:
        return []
    kept = [raw.strip() for raw in text.splitlines() if raw.strip()]
    return [Line(t, i) for i, t in enumerate(kept)]


def compute_document_stats(lines):
    """
    Computes aggregate statistics over a sequence of lines.

    Args:
        lines (Sequence[str | Line]): Trimmed, non-empty lines.

    Returns:
        DocumentStats: All-zero stats when there are no lines.
    """
    texts = [line.text if isinstance(line, Line) else line for line in lines]
    if not texts:
        return DocumentStats()
    lengths = [len(t) for t in texts]
    total = len(texts)
    return DocumentStats(
        median_line_length=float(statistics.median(lengths)),
        average_line_length=sum(lengths) / total,
        sentence_ending_ratio=sum(1 for t in texts if t[-1] in SENTENCE_END_CHARS) / total,
        colon_ending_ratio=sum(1 for t in texts if t.endswith(":")) / total,
        total_lines=total,
    )


def is_list_item(line):
    """True if the line starts with a numeric, letter or bullet list marker."""
    text = line.strip()
    return bool(_LIST_MARKER.match(text) or _GLYPH_BULLET.match(text))


# --- HEADER RULES ---
@dataclass(frozen=True)
class LineContext:
    """A line together with everything the header rules may look at."""

    text: str
    index: int
    stats: DocumentStats
    prev: Optional[str] = None
    next: Optional[str] = None

    @property
    def words(self):
        return self.text.split()


def _short_line(ctx):
    if is_list_item(ctx.text):
        return False
    return len(ctx.text) < ctx.stats.median_line_length * SHORT_LINE_RATIO


def _all_caps(ctx):
    if is_list_item(ctx.text):
        return False
    text = ctx.text
    has_cased = any(c.isupper() for c in text)
    return (
        has_cased
        and text == text.upper()
        and ALL_CAPS_MIN_WORDS <= len(ctx.words) < ALL_CAPS_MAX_WORDS
    )


def _title_case(ctx):
    if is_list_item(ctx.text) or ctx.text[-1] in SENTENCE_END_CHARS:
        return False
    if not TITLE_CASE_MIN_WORDS <= len(ctx.words) <= TITLE_CASE_MAX_WORDS:
        return False
    alpha = _ALPHA_WORD.findall(ctx.text)
    if not alpha:
        return False
    capitalized = sum(1 for w in alpha if w[0].isupper())
    return capitalized / len(alpha) >= TITLE_CASE_RATIO


def _no_terminal_punct(ctx):
    if is_list_item(ctx.text):
        return False
    return ctx.text[-1] not in TERMINAL_PUNCT_CHARS and len(ctx.text) < NO_TERMINAL_MAX_CHARS


def _colon_ending(ctx):
    return ctx.text.endswith(":") and len(ctx.text) < COLON_MAX_CHARS


def _numbered_heading(ctx):
    return bool(_NUMBERED_HEADING.match(ctx.text))


def _simple_numbered(ctx):
    return bool(_SIMPLE_NUMBERED.match(ctx.text))


def _structural_keyword(ctx):
    return bool(_KEYWORD_START.match(ctx.text))


def _isolated(ctx):
    """A short line followed by much longer text and preceded by a sentence end."""
    if ctx.next is None or is_list_item(ctx.text):
        return False
    prev_closed = ctx.prev is None or ctx.prev[-1] in SENTENCE_END_CHARS
    return prev_closed and len(ctx.next) >= len(ctx.text) * NEIGHBOR_LENGTH_RATIO


def _embedded(ctx):
    """The tail of a wrapped sentence: the longer previous line runs on into it."""
    if ctx.prev is None:
        return False
    return (
        ctx.prev[-1] not in TERMINAL_PUNCT_CHARS
        and len(ctx.prev) >= len(ctx.text) * NEIGHBOR_LENGTH_RATIO
    )


HEADER_RULES = (
    ("short_line", _short_line),
    ("all_caps", _all_caps),
    ("title_case", _title_case),
    ("no_terminal_punct", _no_terminal_punct),
    ("colon_ending", _colon_ending),
    ("numbered_heading", _numbered_heading),
    ("simple_numbered", _simple_numbered),
    ("structural_keyword", _structural_keyword),
    ("isolated", _isolated),
    ("embedded", _embedded),
)


def matching_rules(ctx):
    """Returns the names of all header rules that fire for a context."""
    return [name for name, predicate in HEADER_RULES if predicate(ctx)]


def score_line(ctx, weights):
    """Sums the weights of the header rules that fire for a context."""
    return sum(weights.get(name, 0.0) for name in matching_rules(ctx))


class LineClassifier:
    """
    Classifies the lines of one page as header, list item or plain text.

    Args:
        lines (Sequence[str | Line]): The page's trimmed, non-empty lines.
        config (PipelineConfig | None): Threshold and weights to score with.
    """

    def __init__(self, lines, config=None):
        self.lines = [line.text if isinstance(line, Line) else line for line in lines]
        self.config = config or PipelineConfig()
        self.stats = compute_document_stats(self.lines)
        log_classify.debug(
            "Stats: %d lines, median %.1f, avg %.1f, sentence-end %.2f, colon-end %.2f",
            self.stats.total_lines,
            self.stats.median_line_length,
            self.stats.average_line_length,
            self.stats.sentence_ending_ratio,
            self.stats.colon_ending_ratio,
        )

    def context_for(self, line, index):
        prev = self.lines[index - 1] if index > 0 else None
        nxt = self.lines[index + 1] if index < len(self.lines) - 1 else None
        return LineContext(line, index, self.stats, prev, nxt)

    def header_score(self, line, index):
        """Returns the additive header score of a line, or 0 if it is ineligible."""
        if self.stats.total_lines == 0:
            return 0.0
        if not HEADER_MIN_CHARS <= len(line) <= HEADER_MAX_CHARS:
            return 0.0
        score = score_line(self.context_for(line, index), self.config.header_weights)
        log_classify.debug("Line %d scored %.1f: %r", index, score, line)
        return score

    def is_header_line(self, line, index):
        return self.header_score(line, index) >= self.config.header_threshold

    def is_list_item(self, line):
        return is_list_item(line)

    def should_merge_with_previous(self, prev_line, curr_line):
        """Decides whether a line continues the sentence of the previous line."""
        if not prev_line:
            return False
        if is_list_item(prev_line) or is_list_item(curr_line):
            return False
        if curr_line[:1].islower():
            return True
        if prev_line[-1] not in MERGE_STOP_CHARS:
            return True
        is_short = len(prev_line) < self.stats.median_line_length * MERGE_SHORT_RATIO
        return is_short and not _MERGE_BLOCKERS.match(curr_line)
