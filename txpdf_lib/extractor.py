# --- txpdf_lib/extractor.py ---
"""
txpdf_lib/extractor.py: Local PDF text extraction and the ExtractionStrategy.

The strategy tries the local pdfminer parser first and falls back to the
remote OCR backend when too few pages carry enough text.
"""
import logging
import os
from io import BytesIO

from pdfminer.high_level import extract_pages
from pdfminer.layout import LTTextContainer
from pdfminer.psparser import PSException

from .config import OcrSettings, PipelineConfig
from .constants import METHOD_LOCAL, METHOD_OCR
from .exceptions import IOFailure
from .models import ExtractionResult, Page
from .ocr import OcrClient

log_extract = logging.getLogger("txpdf.extract")


def read_document(path):
    """Reads a source document's bytes, raising IOFailure if it is unreadable."""
    try:
        with open(path, "rb") as f:
            return f.read()
    except OSError as e:
        raise IOFailure(f"Cannot read source document {path}: {e}") from e


def usable_fraction(pages, min_chars):
    """Fraction of pages whose stripped text has at least `min_chars` characters."""
    if not pages:
        return 0.0
    meeting = sum(1 for p in pages if len(p.text.strip()) >= min_chars)
    return meeting / len(pages)


def is_usable(pages, config):
    """
    Decides whether locally extracted pages are good enough to keep.

    The cutoff is exclusive: exactly half the pages meeting the threshold is
    not usable. In strict mode a single page meeting the threshold suffices.
    """
    fraction = usable_fraction(pages, config.min_chars_per_page)
    if config.strict_usability:
        return fraction > 0
    return fraction > config.usable_fraction_cutoff


class LocalPdfExtractor:
    """Extracts per-page text with pdfminer."""

    def extract(self, document_bytes, source="document"):
        """
        Returns one Page per PDF page, numbered by pdfminer's page id.

        A document pdfminer cannot parse (a syntax error or a broken object
        stream) yields no pages, which sends it to the OCR backend.
        """
        pages = []
        try:
            for layout in extract_pages(BytesIO(document_bytes)):
                text = "".join(
                    element.get_text()
                    for element in layout
                    if isinstance(element, LTTextContainer)
                )
                pages.append(Page(layout.pageid, text))
        except (PSException, KeyError, TypeError, ValueError) as e:
            log_extract.warning(
                "Local parser could not read %s: %s: %s", source, type(e).__name__, e
            )
            return []
        log_extract.debug("Local parser read %d pages from %s", len(pages), source)
        return pages


class ExtractionStrategy:
    """
    Chooses between local extraction and OCR for each document.

    Args:
        config (PipelineConfig | None): Usability thresholds and force-OCR flag.
        ocr_settings (OcrSettings | None): Used to build the default OCR client.
        local_extractor (LocalPdfExtractor | None): Local backend override.
        ocr_client (OcrClient | None): Remote backend override.
    """

    def __init__(self, config=None, ocr_settings=None, local_extractor=None, ocr_client=None):
        self.config = config or PipelineConfig()
        self.local_extractor = local_extractor or LocalPdfExtractor()
        self.ocr_client = ocr_client or OcrClient(ocr_settings or OcrSettings())

    def extract(self, path):
        """Extracts a document's pages, returning an ExtractionResult."""
        source = os.path.basename(path)
        document_bytes = read_document(path)

        if self.config.force_ocr:
            log_extract.info("%s: OCR forced by configuration.", source)
            return self._extract_with_ocr(document_bytes, source)

        pages = self.local_extractor.extract(document_bytes, source)
        fraction = usable_fraction(pages, self.config.min_chars_per_page)
        if is_usable(pages, self.config):
            log_extract.info(
                "%s: local text usable (%d pages, %.0f%% with text).",
                source,
                len(pages),
                fraction * 100,
            )
            return ExtractionResult(METHOD_LOCAL, sorted(pages, key=lambda p: p.page_number))

        log_extract.info(
            "%s: low local yield (%d pages, %.0f%% with text). Falling back to OCR.",
            source,
            len(pages),
            fraction * 100,
        )
        return self._extract_with_ocr(document_bytes, source)

    def _extract_with_ocr(self, document_bytes, source):
        pages = self.ocr_client.analyze(document_bytes, source)
        return ExtractionResult(METHOD_OCR, pages)
