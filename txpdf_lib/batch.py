# --- txpdf_lib/batch.py ---
"""
txpdf_lib/batch.py: Contains the BatchOrchestrator.

A fixed pool of worker threads drains a shared queue of documents. Each worker
runs one document end to end (extraction, cleanup, reconstruction, write)
before taking the next. A failure is caught at the document boundary and
written as an error artifact; it never stops the other workers.

Output names come from each document's base name. When two inputs share a base
name (e.g. "a.pdf" and "a.PDF") the last write wins. Base names are compared
case-sensitively, so "a.pdf" and "A.pdf" write separate artifacts.
"""
import logging
import os
import queue
import threading
import time
import traceback
from collections import defaultdict

from .api import process_document, render_transcript
from .config import OcrSettings, PipelineConfig
from .constants import ERROR_SUFFIX, TRANSCRIPT_SUFFIX
from .exceptions import IOFailure
from .extractor import ExtractionStrategy
from .log_utils import document_context
from .models import BatchSummary, ProcessingOutcome

log_batch = logging.getLogger("txpdf.batch")


def default_worker_count():
    """Available parallelism minus one, never less than one."""
    return max(1, (os.cpu_count() or 1) - 1)


def list_documents(input_dir):
    """Lists the PDF files of a directory, sorted by name."""
    try:
        names = os.listdir(input_dir)
    except OSError as e:
        raise IOFailure(f"Cannot list input directory {input_dir}: {e}") from e
    return sorted(
        os.path.join(input_dir, name)
        for name in names
        if name.lower().endswith(".pdf") and os.path.isfile(os.path.join(input_dir, name))
    )


class BatchOrchestrator:
    """
    Runs the extraction pipeline over a directory of PDFs with bounded parallelism.

    Args:
        input_dir (str): Directory holding the source PDFs.
        output_dir (str): Directory receiving transcripts and error logs.
        config (PipelineConfig | None): Pipeline settings shared by all workers.
        ocr_settings (OcrSettings | None): Remote OCR settings.
        strategy (ExtractionStrategy | None): Extraction backend override.
        workers (int | None): Pool size; defaults to `default_worker_count()`.
    """

    def __init__(
        self,
        input_dir,
        output_dir,
        config=None,
        ocr_settings=None,
        strategy=None,
        workers=None,
    ):
        self.input_dir = input_dir
        self.output_dir = output_dir
        self.config = config or PipelineConfig()
        self.strategy = strategy or ExtractionStrategy(
            self.config, ocr_settings or OcrSettings()
        )
        self.workers = max(1, workers or default_worker_count())
        self._lock = threading.Lock()

    def run(self, documents=None):
        """
        Processes every document and returns the batch summary.

        Raises:
            IOFailure: If the input directory cannot be listed or the output
                directory cannot be created. Per-document failures never raise.
        """
        start_time = time.monotonic()
        documents = list_documents(self.input_dir) if documents is None else list(documents)
        try:
            os.makedirs(self.output_dir, exist_ok=True)
        except OSError as e:
            raise IOFailure(f"Cannot create output directory {self.output_dir}: {e}") from e
        self._warn_on_collisions(documents)

        summary = BatchSummary()
        work = queue.Queue()
        for path in documents:
            work.put(path)

        pool_size = min(self.workers, len(documents))
        log_batch.info("INIT: %d files | %d threads", len(documents), pool_size)
        threads = [
            threading.Thread(
                target=self._drain,
                args=(work, summary.outcomes),
                name=f"txpdf-worker-{i + 1}",
                daemon=True,
            )
            for i in range(pool_size)
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        summary.duration = time.monotonic() - start_time
        log_batch.info(
            "Batch finished: %d succeeded, %d failed, %d total in %.1fs",
            summary.succeeded,
            summary.failed,
            summary.total,
            summary.duration,
        )
        return summary

    def _drain(self, work, outcomes):
        """Worker loop: takes documents off the queue until it is empty."""
        while True:
            try:
                path = work.get_nowait()
            except queue.Empty:
                return
            try:
                outcome = self.process_one(path)
                with self._lock:
                    outcomes.append(outcome)
            finally:
                work.task_done()

    def process_one(self, path):
        """Processes one document and writes its transcript or error artifact."""
        source = os.path.basename(path)
        base = os.path.splitext(source)[0]
        start_time = time.monotonic()
        with document_context(source):
            try:
                method, pages = process_document(path, self.config, self.strategy)
                artifact = self._write(
                    base + TRANSCRIPT_SUFFIX, render_transcript(source, method, pages)
                )
                self._discard(base + ERROR_SUFFIX)
            except Exception as e:
                duration = time.monotonic() - start_time
                log_batch.error("[FAILURE] %s | %s: %s", source, type(e).__name__, e)
                return self._record_failure(source, base, e, traceback.format_exc(), duration)

            duration = time.monotonic() - start_time
            log_batch.info(
                "[SUCCESS] %s | %s | %d pages | %dms",
                source,
                method,
                len(pages),
                duration * 1000,
            )
            return ProcessingOutcome(
                source=source,
                artifact_path=artifact,
                succeeded=True,
                method=method,
                page_count=len(pages),
                duration=duration,
            )

    def _record_failure(self, source, base, error, trace, duration):
        detail = (
            f"SOURCE: {source}\n"
            f"ERROR: {type(error).__name__}: {error}\n\n"
            f"{trace}"
        )
        artifact = ""
        try:
            artifact = self._write(base + ERROR_SUFFIX, detail)
            self._discard(base + TRANSCRIPT_SUFFIX)
        except IOFailure as e:
            log_batch.error("Could not write error artifact for %s: %s", source, e)
        return ProcessingOutcome(
            source=source,
            artifact_path=artifact,
            succeeded=False,
            error_type=type(error).__name__,
            error_message=str(error),
            duration=duration,
        )

    def _write(self, name, content):
        path = os.path.join(self.output_dir, name)
        try:
            with open(path, "w", encoding="utf-8") as f:
                f.write(content)
        except OSError as e:
            raise IOFailure(f"Cannot write {path}: {e}") from e
        return path

    def _discard(self, name):
        """Removes a stale artifact of the other kind left by an earlier run."""
        try:
            os.remove(os.path.join(self.output_dir, name))
        except FileNotFoundError:
            pass
        except OSError as e:
            log_batch.warning("Could not remove stale artifact %s: %s", name, e)

    def _warn_on_collisions(self, documents):
        by_base = defaultdict(list)
        for path in documents:
            base = os.path.splitext(os.path.basename(path))[0]
            by_base[base].append(os.path.basename(path))
        for names in by_base.values():
            if len(names) > 1:
                log_batch.warning(
                    "Output name collision between %s; the last one written wins.",
                    ", ".join(names),
                )
