# --- txpdf_lib/api.py ---
"""
txpdf_lib/api.py: Public entry points for cleaning, reconstructing and
rendering document text.
"""
import logging
import os
from datetime import datetime, timezone

from .cleaner import ArtifactCleaner
from .config import PipelineConfig
from .constants import MANIFEST_RULE
from .extractor import ExtractionStrategy
from .models import Page
from .reconstructor import DocumentReconstructor

log = logging.getLogger("txpdf.api")


def reconstruct_text(raw_text, config=None, cleaner=None):
    """
    Cleans and reconstructs the raw text of a single page.

    Args:
        raw_text (str): Text as produced by an extraction backend.
        config (PipelineConfig | None): Classification settings.
        cleaner (ArtifactCleaner | None): Cleaner to use.

    Returns:
        str: The rendered, artifact-free text.
    """
    cleaner = cleaner or ArtifactCleaner()
    reconstructor = DocumentReconstructor(config)
    rendered = reconstructor.reconstruct(cleaner.clean_raw(raw_text))
    return cleaner.clean_rendered(rendered)


def process_pages(pages, config=None):
    """
    Cleans and reconstructs every page of a document, in page-number order.

    Pages whose cleaned text is shorter than `min_chars_per_page` are dropped.
    """
    config = config or PipelineConfig()
    cleaner = ArtifactCleaner()
    ordered = sorted(pages, key=lambda p: p.page_number)
    raw_texts = [cleaner.clean_raw(p.text) for p in ordered]

    running = cleaner.find_running_lines(raw_texts) if config.strip_running_lines else set()
    reconstructor = DocumentReconstructor(config)

    processed = []
    for page, raw in zip(ordered, raw_texts):
        raw = cleaner.strip_running_lines(raw, running)
        text = cleaner.clean_rendered(reconstructor.reconstruct(raw))
        if len(text) < config.min_chars_per_page:
            log.debug(
                "Dropping page %d: %d chars after cleanup", page.page_number, len(text)
            )
            continue
        processed.append(Page(page.page_number, text))
    return processed


def render_transcript(source, method, pages, timestamp=None):
    """Renders the manifest header followed by one section per page."""
    timestamp = timestamp or datetime.now(timezone.utc)
    date = timestamp.isoformat(timespec="milliseconds").replace("+00:00", "Z")
    parts = [
        "# MANIFEST",
        f"SOURCE: {source}",
        f"ENGINE: {method}",
        f"DATE: {date}",
        f"PAGES_EXTRACTED: {len(pages)}",
        f"\n{MANIFEST_RULE}\n",
    ]
    parts.extend(f"[PAGE {p.page_number}]\n{p.text}\n" for p in pages)
    return "\n".join(parts)


def process_document(pdf_path, config=None, strategy=None):
    """
    Extracts, cleans and reconstructs one PDF.

    Returns:
        tuple[str, list[Page]]: The extraction method used and the final pages.
    """
    config = config or PipelineConfig()
    strategy = strategy or ExtractionStrategy(config)
    result = strategy.extract(pdf_path)
    pages = process_pages(result.pages, config)
    if not pages:
        log.warning(
            "%s: no page reached %d characters after cleanup.",
            os.path.basename(pdf_path),
            config.min_chars_per_page,
        )
    return result.method, pages
