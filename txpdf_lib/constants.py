# --- txpdf_lib/constants.py ---
"""
txpdf_lib/constants.py: Named tunables, lexicons and the header weight table.
"""

# --- EXTRACTION STRATEGY ---
MIN_CHARS_PER_PAGE = 50
USABLE_FRACTION_CUTOFF = 0.5

# --- HEADER CLASSIFICATION ---
DEFAULT_HEADER_THRESHOLD = 3.0
HEADER_MIN_CHARS = 3
HEADER_MAX_CHARS = 120

SHORT_LINE_RATIO = 0.7
ALL_CAPS_MIN_WORDS = 2
ALL_CAPS_MAX_WORDS = 11  # exclusive
TITLE_CASE_RATIO = 0.7
TITLE_CASE_MIN_WORDS = 2
TITLE_CASE_MAX_WORDS = 14
NO_TERMINAL_MAX_CHARS = 100
COLON_MAX_CHARS = 50
NEIGHBOR_LENGTH_RATIO = 1.5

DEFAULT_HEADER_WEIGHTS = {
    "short_line": 1.0,
    "all_caps": 2.0,
    "title_case": 1.5,
    "no_terminal_punct": 1.0,
    "colon_ending": 2.0,
    "numbered_heading": 3.0,
    "simple_numbered": 1.5,
    "structural_keyword": 2.0,
    "isolated": 0.5,
    "embedded": -0.5,
}

STRUCTURAL_KEYWORDS = (
    "chapter",
    "section",
    "part",
    "appendix",
    "introduction",
    "conclusion",
    "conclusions",
    "summary",
    "abstract",
    "references",
    "bibliography",
    "contents",
    "preface",
    "acknowledgments",
    "acknowledgements",
    "glossary",
    "index",
    "overview",
    "background",
    "methods",
    "results",
    "discussion",
)

# Header level is chosen by rendered title length.
HEADER_LEVEL_1_MAX_CHARS = 30
HEADER_LEVEL_2_MAX_CHARS = 60
HEADER_MARKER = "#"

# --- MERGE POLICY ---
MERGE_SHORT_RATIO = 0.5
SENTENCE_END_CHARS = ".!?"
MERGE_STOP_CHARS = ".!?;:"
TERMINAL_PUNCT_CHARS = ".!?;:,"

# --- LIST DETECTION ---
BULLET_CHARS = "-*•○§●■□▶▷►▸▹◀◁◂◃▪▫‣⁃"
GLYPH_BULLET_CHARS = "●○■□▶▷►▸▹◀◁◂◃▪▫•"

# --- RUNNING HEADERS / FOOTERS ---
RUNNING_LINE_MIN_PAGES = 3
RUNNING_LINE_MIN_RATIO = 0.7
RUNNING_LINE_WINDOW = 2

# --- REMOTE OCR ---
DEFAULT_OCR_API_VERSION = "2024-11-30"
DEFAULT_OCR_MODEL = "prebuilt-read"
DEFAULT_POLL_INTERVAL_S = 2.0
DEFAULT_MAX_POLLS = 150
DEFAULT_POLL_TIMEOUT_S = 300.0
DEFAULT_REQUEST_TIMEOUT_S = 60.0
OCR_KEY_HEADER = "Ocp-Apim-Subscription-Key"

# --- OUTPUT ---
MANIFEST_RULE = "#" * 40
TRANSCRIPT_SUFFIX = ".txt"
ERROR_SUFFIX = ".error.log"

METHOD_LOCAL = "local"
METHOD_OCR = "ocr"
