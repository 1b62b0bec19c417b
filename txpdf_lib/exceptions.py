# --- txpdf_lib/exceptions.py ---
"""
txpdf_lib/exceptions.py: Failure taxonomy for document processing.

Every error here is fatal for the document that raised it and is caught at the
single-document boundary by the batch orchestrator. A low local text yield is
not an error: it only switches the extraction backend.
"""


class ExtractionError(Exception):
    """Base class for per-document processing failures."""

    pass


class RemoteServiceFailure(ExtractionError):
    """The OCR backend failed, timed out, or is not configured."""

    pass


class IOFailure(ExtractionError):
    """A source document could not be read or an artifact could not be written."""

    pass


class MalformedResult(ExtractionError):
    """A backend returned a payload the page normalizer cannot interpret."""

    pass
