# --- txpdf_lib/log_utils.py ---
"""
txpdf_lib/log_utils.py: Logging setup for txpdf.
This module contains:
- setup_logging: Installs console/file handlers and per-topic debug levels.
- DocumentContextFilter: Tags records with the document a worker thread is
  processing.
- RichLogFormatter: A custom logging formatter for colorful console output.
"""

import logging
import threading
from contextlib import contextmanager

PROJECT_NAME = "txpdf"
PROJECT_TOPICS = {"extract", "ocr", "classify", "reconstruct", "clean", "batch", "api", "config"}

_context = threading.local()


@contextmanager
def document_context(name):
    """Tags every record logged by the current thread with a document name."""
    previous = getattr(_context, "document", "")
    _context.document = name
    try:
        yield
    finally:
        _context.document = previous


def setup_logging(level=logging.INFO, color_logs=False, debug_topics=None, log_file=None):
    """Configures logging for the application."""
    root_logger = logging.getLogger()
    if root_logger.hasHandlers():
        for h in root_logger.handlers[:]:
            root_logger.removeHandler(h)
            h.close()

    context_filter = DocumentContextFilter()

    # Console Handler (always enabled)
    console_handler = logging.StreamHandler()
    console_handler.setFormatter(RichLogFormatter(use_color=color_logs))
    console_handler.addFilter(context_filter)
    root_logger.addHandler(console_handler)
    root_logger.setLevel(level)

    # File Handler (optional)
    if log_file:
        try:
            file_handler = logging.FileHandler(log_file, mode="w", encoding="utf-8")
            # File logs should not be colored
            file_handler.setFormatter(RichLogFormatter(use_color=False))
            file_handler.addFilter(context_filter)
            root_logger.addHandler(file_handler)
            logging.getLogger(PROJECT_NAME).info("Logging to file: %s", log_file)
        except IOError as e:
            logging.getLogger(PROJECT_NAME).error(
                "Could not open log file %s: %s", log_file, e
            )

    # Silence noisy libraries
    logging.getLogger("pdfminer").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)

    if debug_topics:
        user_topics = [t.strip() for t in debug_topics.split(",") if t.strip()]
        if "all" in user_topics:
            topics_to_set = PROJECT_TOPICS
        else:
            topics_to_set = {
                full for u in user_topics for full in PROJECT_TOPICS if full.startswith(u)
            }
        for topic in topics_to_set:
            logging.getLogger(f"{PROJECT_NAME}.{topic}").setLevel(logging.DEBUG)


class DocumentContextFilter(logging.Filter):
    """
    A logging filter that injects the current thread's document name into
    log records.
    """

    def filter(self, record):
        record.context = getattr(_context, "document", "")
        return True


# --- CUSTOM LOGGING FORMATTER ---
class RichLogFormatter(logging.Formatter):
    """A custom logging formatter for colorful and aligned console output.
    This formatter uses ANSI escape codes to produce colored and structured log
    messages, making it easier to distinguish between log levels and topics,
    especially when several worker threads log at once.
    Args:
        use_color (bool): If True, ANSI color codes are used. Defaults to False.
    """

    def __init__(self, use_color=False):
        super().__init__()
        if use_color:
            # ANSI escape codes for 256-color terminal
            self.COLORS = {
                logging.DEBUG: "\033[38;5;252m",  # Light Grey
                logging.INFO: "\033[38;5;111m",  # Pastel Blue
                logging.WARNING: "\033[38;5;229m",  # Pale Yellow
                logging.ERROR: "\033[38;5;210m",  # Soft Red
                logging.CRITICAL: "\033[38;5;217m",  # Light Magenta
            }
            self.BOLD = "\033[1m"
            self.RESET = "\033[0m"
        else:
            self.COLORS = {}
            self.BOLD = ""
            self.RESET = ""

    def format(self, record):
        """Formats a log record into a colored, aligned string.
        Each line of the message is prefixed with the level, the topic (the
        logger name after the project name) and, when set, the document being
        processed.
        Args:
            record (logging.LogRecord): The log record to format.
        Returns:
            str: The formatted log message string.
        """
        color = self.COLORS.get(record.levelno, "")
        level_name = record.levelname[:5]

        name_parts = record.name.split(".")
        topic = name_parts[1][:7] if len(name_parts) > 1 else record.name[:7]

        context = getattr(record, "context", "")
        context_str = f"[{context}]" if context else ""

        prefix = (
            f"{color}{level_name:<5}{self.RESET}:"
            f"{self.BOLD}{topic:<7}{self.RESET}{context_str}: "
        )
        message = record.getMessage()
        if record.exc_info:
            message = f"{message}\n{self.formatException(record.exc_info)}"
        lines = message.split("\n")
        return "\n".join(f"{prefix}{line}" for line in lines)
