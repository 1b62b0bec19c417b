# --- txpdf_lib/ocr.py ---
"""
txpdf_lib/ocr.py: Client for the remote OCR backend.

The backend follows an asynchronous submit/poll contract:

    POST {endpoint}/documentintelligence/documentModels/{model}:analyze
        -> 202, header "Operation-Location: <url>"
    GET <url>
        -> {"status": "notStarted" | "running" | "succeeded" | "failed", ...}

Polling is bounded by both an attempt count and a wall-clock deadline.
"""
import logging
import time

import requests

from .config import OcrSettings
from .constants import OCR_KEY_HEADER
from .exceptions import MalformedResult, RemoteServiceFailure
from .models import Page

log_ocr = logging.getLogger("txpdf.ocr")

STATUS_NOT_STARTED = "notStarted"
STATUS_RUNNING = "running"
STATUS_SUCCEEDED = "succeeded"
STATUS_FAILED = "failed"
PENDING_STATUSES = {STATUS_NOT_STARTED, STATUS_RUNNING}


def _retry_after(response, default):
    """Reads a Retry-After header in seconds, falling back to a default."""
    try:
        return max(0.0, float(response.headers.get("Retry-After", default)))
    except (TypeError, ValueError):
        return default


def _fragment_text(fragments, kind, page_number):
    texts = []
    for fragment in fragments:
        content = fragment.get("content") if isinstance(fragment, dict) else None
        if not isinstance(content, str):
            raise MalformedResult(
                f"OCR page {page_number} has a {kind} entry without text content"
            )
        texts.append(content)
    return texts


def normalize_pages(payload):
    """
    Converts a succeeded OCR payload into Pages sorted by page number.

    Paragraph fragments are preferred and joined by blank lines; otherwise
    line fragments are joined by newlines. Page numbers come from the
    backend's `pageNumber`, never from array position.

    Raises:
        MalformedResult: If the payload does not have the expected shape.
    """
    analyze = payload.get("analyzeResult") if isinstance(payload, dict) else None
    if not isinstance(analyze, dict):
        raise MalformedResult("OCR result is missing 'analyzeResult'")
    raw_pages = analyze.get("pages")
    if not isinstance(raw_pages, list):
        raise MalformedResult("OCR result is missing the 'pages' array")

    pages = []
    for raw in raw_pages:
        if not isinstance(raw, dict):
            raise MalformedResult("OCR page entry is not an object")
        number = raw.get("pageNumber")
        if not isinstance(number, int) or isinstance(number, bool):
            raise MalformedResult(f"OCR page has an invalid pageNumber: {number!r}")
        if isinstance(raw.get("paragraphs"), list):
            text = "\n\n".join(_fragment_text(raw["paragraphs"], "paragraph", number))
        elif isinstance(raw.get("lines"), list):
            text = "\n".join(_fragment_text(raw["lines"], "line", number))
        else:
            raise MalformedResult(f"OCR page {number} has neither lines nor paragraphs")
        pages.append(Page(number, text))
    return sorted(pages, key=lambda p: p.page_number)


class OcrClient:
    """
    Submits documents to the OCR backend and polls until a terminal status.

    Args:
        settings (OcrSettings): Endpoint, key, API version and polling bounds.
    """

    def __init__(self, settings=None):
        self.settings = settings or OcrSettings()

    @property
    def analyze_url(self):
        s = self.settings
        return f"{s.endpoint}/documentintelligence/documentModels/{s.model_id}:analyze"

    def analyze(self, document_bytes, source="document"):
        """Runs the full submit/poll cycle and returns the normalized pages."""
        start_time = time.monotonic()
        operation_url = self.submit(document_bytes)
        payload = self.poll(operation_url)
        pages = normalize_pages(payload)
        log_ocr.info(
            "OCR finished for %s: %d pages in %.1fs",
            source,
            len(pages),
            time.monotonic() - start_time,
        )
        return pages

    def submit(self, document_bytes):
        """
        Submits a document for analysis.

        Returns:
            str: The operation URL to poll.

        Raises:
            RemoteServiceFailure: If the backend is not configured, unreachable,
                rejects the request or omits the Operation-Location header.
        """
        if not self.settings.is_configured:
            raise RemoteServiceFailure(
                "OCR backend is not configured (set TXPDF_OCR_ENDPOINT and TXPDF_OCR_KEY)"
            )
        log_ocr.debug(
            "Submitting %d bytes to %s (api-version %s)",
            len(document_bytes),
            self.analyze_url,
            self.settings.api_version,
        )
        try:
            response = requests.post(
                self.analyze_url,
                params={"api-version": self.settings.api_version},
                data=document_bytes,
                headers={
                    OCR_KEY_HEADER: self.settings.api_key,
                    "Content-Type": "application/pdf",
                },
                timeout=self.settings.request_timeout,
            )
        except requests.exceptions.RequestException as e:
            raise RemoteServiceFailure(f"OCR submit request failed: {e}") from e

        if not response.ok:
            raise RemoteServiceFailure(
                f"OCR submit returned HTTP {response.status_code}: {response.text[:200]}"
            )
        operation_url = response.headers.get("Operation-Location")
        if not operation_url:
            raise RemoteServiceFailure("OCR submit response has no Operation-Location header")
        log_ocr.debug("OCR operation accepted: %s", operation_url)
        return operation_url

    def poll(self, operation_url):
        """
        Polls an operation until it succeeds, fails or the polling bounds run out.

        Returns:
            dict: The succeeded payload.

        Raises:
            RemoteServiceFailure: On a failed status, an unknown status, a
                transport error, or when `max_polls` / `poll_timeout` is exhausted.
            MalformedResult: If a poll response is not JSON.
        """
        s = self.settings
        deadline = time.monotonic() + s.poll_timeout
        attempts = 0
        while attempts < s.max_polls:
            attempts += 1
            delay = s.poll_interval
            try:
                response = requests.get(
                    operation_url,
                    headers={OCR_KEY_HEADER: s.api_key},
                    timeout=s.request_timeout,
                )
            except requests.exceptions.RequestException as e:
                raise RemoteServiceFailure(f"OCR poll request failed: {e}") from e

            if response.status_code == 429:
                delay = _retry_after(response, s.poll_interval)
                log_ocr.warning("OCR poll throttled; retrying in %.1fs", delay)
            elif not response.ok:
                raise RemoteServiceFailure(f"OCR poll returned HTTP {response.status_code}")
            else:
                try:
                    payload = response.json()
                except ValueError as e:
                    raise MalformedResult(f"OCR poll response is not JSON: {e}") from e
                status = payload.get("status") if isinstance(payload, dict) else None
                log_ocr.debug("Poll %d/%d: status=%s", attempts, s.max_polls, status)
                if status == STATUS_SUCCEEDED:
                    return payload
                if status == STATUS_FAILED:
                    error = payload.get("error") or {}
                    message = error.get("message", "no detail") if isinstance(error, dict) else error
                    raise RemoteServiceFailure(f"OCR operation failed: {message}")
                if status not in PENDING_STATUSES:
                    raise RemoteServiceFailure(f"OCR operation returned unknown status {status!r}")

            if attempts >= s.max_polls:
                break
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                raise RemoteServiceFailure(
                    f"OCR operation did not finish within {s.poll_timeout:.0f}s "
                    f"({attempts} polls)"
                )
            time.sleep(min(delay, remaining))

        raise RemoteServiceFailure(f"OCR operation did not finish after {attempts} polls")
