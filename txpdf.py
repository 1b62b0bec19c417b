#!/usr/bin/env python3
"""
txpdf: Batch PDF-to-text transcription with document structure reconstruction.

This script converts a directory of PDFs into clean, logically segmented text
transcripts. Each document is read with a local parser, or sent to a remote OCR
backend when the local text yield is too low. Its lines are then rebuilt into
headers, lists and paragraphs and stripped of rendering artifacts.
"""

import argparse
import dataclasses
import logging
import os
import sys

from rich.console import Console
from rich.table import Table
from rich.theme import Theme

from txpdf_lib.batch import BatchOrchestrator, default_worker_count
from txpdf_lib.config import load_settings
from txpdf_lib.exceptions import IOFailure
from txpdf_lib.log_utils import setup_logging

log = logging.getLogger("txpdf")


# --- CUSTOM ARGPARSE FORMATTER ---
class CustomHelpFormatter(
    argparse.ArgumentDefaultsHelpFormatter, argparse.RawTextHelpFormatter
):
    """
    A custom argparse formatter that combines showing default values with
    preserving newline formatting in help text.
    """

    pass


class Application:
    """Orchestrates the batch workflow based on command-line arguments."""

    def __init__(self, args, console=None):
        self.args = args
        self.console = console or Console(
            theme=Theme(
                {
                    "table.header": "bold sky_blue2",
                    "ok": "green",
                    "failed": "bold red",
                }
            )
        )

    def run(self):
        """Main entry point for the application logic. Returns the exit status."""
        setup_logging(
            level=logging.INFO if self.args.verbose else logging.WARNING,
            color_logs=self.args.color_logs,
            debug_topics=self.args.debug_topics,
            log_file=self.args.log_file,
        )
        if not os.path.isdir(self.args.input_dir):
            log.critical("Input directory not found: %s", self.args.input_dir)
            return 1

        try:
            pipeline, ocr = self._resolve_settings()
        except ValueError as e:
            log.critical("Invalid configuration: %s", e)
            return 1

        orchestrator = BatchOrchestrator(
            self.args.input_dir,
            self.args.output_dir,
            config=pipeline,
            ocr_settings=ocr,
            workers=self.args.workers,
        )
        try:
            summary = orchestrator.run()
        except IOFailure as e:
            log.critical("%s", e)
            return 1

        self._display_summary(summary)
        return 0

    def _resolve_settings(self):
        """Layers command-line overrides on top of file and environment settings."""
        pipeline, ocr = load_settings(self.args.config)
        pipeline_overrides = {
            "header_threshold": self.args.header_threshold,
            "min_chars_per_page": self.args.min_chars,
            "usable_fraction_cutoff": self.args.usable_fraction,
        }
        pipeline = dataclasses.replace(
            pipeline,
            **{k: v for k, v in pipeline_overrides.items() if v is not None},
        )
        if self.args.force_ocr:
            pipeline = dataclasses.replace(pipeline, force_ocr=True)
        if self.args.strict_usability:
            pipeline = dataclasses.replace(pipeline, strict_usability=True)
        if self.args.keep_running_lines:
            pipeline = dataclasses.replace(pipeline, strip_running_lines=False)

        ocr_overrides = {
            "poll_interval": self.args.poll_interval,
            "max_polls": self.args.max_polls,
            "poll_timeout": self.args.poll_timeout,
        }
        ocr = dataclasses.replace(
            ocr, **{k: v for k, v in ocr_overrides.items() if v is not None}
        )
        log.info("Pipeline settings: %s", pipeline)
        log.info("OCR settings: %s", ocr)
        return pipeline, ocr

    def _display_summary(self, summary):
        """Prints a per-document table and the batch totals."""
        table = Table(title="txpdf batch summary")
        table.add_column("Document")
        table.add_column("Result")
        table.add_column("Engine")
        table.add_column("Pages", justify="right")
        table.add_column("Time", justify="right")
        table.add_column("Artifact / Error")
        for o in sorted(summary.outcomes, key=lambda o: o.source):
            if o.succeeded:
                result, detail = "[ok]OK[/ok]", o.artifact_path
            else:
                result, detail = "[failed]FAILED[/failed]", f"{o.error_type}: {o.error_message}"
            table.add_row(
                o.source,
                result,
                o.method or "-",
                str(o.page_count) if o.succeeded else "-",
                f"{o.duration:.1f}s",
                detail,
            )
        self.console.print(table)
        self.console.print(
            f"{summary.succeeded} succeeded, {summary.failed} failed, "
            f"{summary.total} total in {summary.duration:.1f}s"
        )

    @staticmethod
    def parse_arguments(args=None):
        """Parses command-line arguments for the script."""
        examples = [
            "\nExamples:",
            "  python txpdf.py ./input_pdfs -o ./output",
            "  python txpdf.py ./scans --force-ocr -w 2 -v",
            "  python txpdf.py ./input_pdfs --config txpdf.cfg -d classify,reconstruct",
            "\nEnvironment:",
            "  TXPDF_OCR_ENDPOINT / AZURE_ENDPOINT   OCR endpoint base URL",
            "  TXPDF_OCR_KEY / AZURE_KEY             OCR API key",
        ]
        parser = argparse.ArgumentParser(
            description="Batch PDF-to-text transcription with structure reconstruction.",
            formatter_class=CustomHelpFormatter,
            add_help=False,
            epilog="\n".join(examples),
        )

        g_opts = parser.add_argument_group("Main Options")
        g_opts.add_argument(
            "input_dir",
            nargs="?",
            default="./input_pdfs",
            help="Directory of PDF files to process.",
        )
        g_opts.add_argument(
            "-o",
            "--output-dir",
            default="./output",
            metavar="DIR",
            help="Directory for transcripts and error logs.",
        )
        g_opts.add_argument(
            "-h",
            "--help",
            action="help",
            help="Show this help message and exit.",
        )

        g_proc = parser.add_argument_group("Processing Control")
        g_proc.add_argument(
            "-w",
            "--workers",
            type=int,
            default=default_worker_count(),
            metavar="COUNT",
            help="Number of documents processed in parallel.",
        )
        g_proc.add_argument(
            "--force-ocr",
            action="store_true",
            help="Send every document to the OCR backend.",
        )
        g_proc.add_argument(
            "--strict-usability",
            action="store_true",
            help="Keep local text if any page has enough characters.",
        )
        g_proc.add_argument(
            "--keep-running-lines",
            action="store_true",
            help="Do not strip repeated page headers/footers.",
        )
        g_proc.add_argument(
            "--header-threshold",
            type=float,
            default=None,
            metavar="SCORE",
            help="Minimum header score (default: from config, 3.0).",
        )
        g_proc.add_argument(
            "--min-chars",
            type=int,
            default=None,
            metavar="N",
            help="Minimum characters for a page to count as usable (default: 50).",
        )
        g_proc.add_argument(
            "--usable-fraction",
            type=float,
            default=None,
            metavar="RATIO",
            help="Local text is kept only above this usable-page fraction (default: 0.5).",
        )

        g_ocr = parser.add_argument_group("OCR Backend")
        g_ocr.add_argument(
            "--config",
            metavar="FILE",
            default=None,
            help="Optional .cfg file with [OCR] and [Pipeline] sections.",
        )
        g_ocr.add_argument(
            "--poll-interval",
            type=float,
            default=None,
            metavar="SECONDS",
            help="Seconds between OCR status polls (default: 2).",
        )
        g_ocr.add_argument(
            "--max-polls",
            type=int,
            default=None,
            metavar="N",
            help="Maximum OCR status polls per document (default: 150).",
        )
        g_ocr.add_argument(
            "--poll-timeout",
            type=float,
            default=None,
            metavar="SECONDS",
            help="Maximum seconds to wait for one OCR operation (default: 300).",
        )

        g_out = parser.add_argument_group("Logging")
        g_out.add_argument(
            "--log-file",
            metavar="FILE",
            default=None,
            help="Also write all logging output to a file.",
        )
        g_out.add_argument(
            "--color-logs",
            action="store_true",
            help="Enable colored logging output.",
        )
        g_out.add_argument(
            "-v",
            "--verbose",
            action="store_true",
            help="Enable INFO logging for detailed progress.",
        )
        g_out.add_argument(
            "-d",
            "--debug",
            nargs="?",
            const="all",
            dest="debug_topics",
            metavar="TOPICS",
            help="Enable DEBUG logging (all,extract,ocr,classify,reconstruct,clean,batch).",
        )

        return parser.parse_args(args)


def main(argv=None):
    """Main entry point for the script."""
    # Basic logging config for early errors before full setup
    logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")

    try:
        args = Application.parse_arguments(sys.argv[1:] if argv is None else argv)
        return Application(args).run()
    except KeyboardInterrupt:
        log.info("\nProcess interrupted by user. Exiting.")
        return 130
    except Exception as e:
        log.critical("\nAn unexpected error occurred: %s", e, exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
