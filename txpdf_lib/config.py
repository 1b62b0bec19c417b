# --- txpdf_lib/config.py ---
"""
txpdf_lib/config.py: Immutable pipeline and OCR settings, and their loader.

Settings are resolved in three layers: defaults, an optional .cfg file, then
the environment. Command-line overrides are applied by the caller with
`dataclasses.replace`.
"""
import configparser
import logging
import os
from dataclasses import dataclass, field

from .constants import (
    DEFAULT_HEADER_THRESHOLD,
    DEFAULT_HEADER_WEIGHTS,
    DEFAULT_MAX_POLLS,
    DEFAULT_OCR_API_VERSION,
    DEFAULT_OCR_MODEL,
    DEFAULT_POLL_INTERVAL_S,
    DEFAULT_POLL_TIMEOUT_S,
    DEFAULT_REQUEST_TIMEOUT_S,
    MIN_CHARS_PER_PAGE,
    USABLE_FRACTION_CUTOFF,
)

log = logging.getLogger("txpdf.config")

ENV_ENDPOINT = ("TXPDF_OCR_ENDPOINT", "AZURE_ENDPOINT")
ENV_KEY = ("TXPDF_OCR_KEY", "AZURE_KEY")
ENV_API_VERSION = ("TXPDF_OCR_API_VERSION",)
ENV_MODEL = ("TXPDF_OCR_MODEL",)


@dataclass(frozen=True)
class PipelineConfig:
    """Tunables for classification, extraction strategy and page filtering."""

    header_threshold: float = DEFAULT_HEADER_THRESHOLD
    header_weights: dict = field(default_factory=lambda: dict(DEFAULT_HEADER_WEIGHTS))
    min_chars_per_page: int = MIN_CHARS_PER_PAGE
    usable_fraction_cutoff: float = USABLE_FRACTION_CUTOFF
    strict_usability: bool = False
    force_ocr: bool = False
    strip_running_lines: bool = True


@dataclass(frozen=True)
class OcrSettings:
    """Connection and polling settings for the remote OCR backend."""

    endpoint: str = ""
    api_key: str = ""
    api_version: str = DEFAULT_OCR_API_VERSION
    model_id: str = DEFAULT_OCR_MODEL
    poll_interval: float = DEFAULT_POLL_INTERVAL_S
    max_polls: int = DEFAULT_MAX_POLLS
    poll_timeout: float = DEFAULT_POLL_TIMEOUT_S
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT_S

    @property
    def is_configured(self) -> bool:
        return bool(self.endpoint and self.api_key)

    def __repr__(self):
        masked = "***" if self.api_key else ""
        return (
            f"OcrSettings(endpoint={self.endpoint!r}, api_key={masked!r}, "
            f"api_version={self.api_version!r}, model_id={self.model_id!r}, "
            f"poll_interval={self.poll_interval}, max_polls={self.max_polls}, "
            f"poll_timeout={self.poll_timeout})"
        )


def _first_env(names, environ):
    for name in names:
        value = environ.get(name)
        if value:
            return value.strip()
    return None


def _read_config_file(config_path):
    """Reads a .cfg file into a nested dict, or returns {} if it is missing."""
    if not config_path:
        return {}
    config = configparser.ConfigParser()
    if not config.read(config_path):
        log.warning("Config file not found at %s. Using defaults.", config_path)
        return {}
    log.info("Loaded settings from %s", config_path)
    return {s: dict(config.items(s)) for s in config.sections()}


def load_settings(config_path=None, environ=None):
    """
    Resolves the pipeline and OCR settings.

    Args:
        config_path (str | None): Optional path to a .cfg file with [OCR] and
            [Pipeline] sections.
        environ (Mapping | None): Environment to read; defaults to os.environ.

    Returns:
        tuple[PipelineConfig, OcrSettings]: The resolved settings.

    Raises:
        ValueError: If a numeric setting cannot be parsed.
    """
    environ = os.environ if environ is None else environ
    file_values = _read_config_file(config_path)
    ocr_file = file_values.get("OCR", {})
    pipe_file = file_values.get("Pipeline", {})

    ocr_defaults = OcrSettings()
    ocr = OcrSettings(
        endpoint=(
            _first_env(ENV_ENDPOINT, environ) or ocr_file.get("endpoint", "")
        ).rstrip("/"),
        api_key=_first_env(ENV_KEY, environ) or ocr_file.get("api_key", ""),
        api_version=_first_env(ENV_API_VERSION, environ)
        or ocr_file.get("api_version", ocr_defaults.api_version),
        model_id=_first_env(ENV_MODEL, environ)
        or ocr_file.get("model_id", ocr_defaults.model_id),
        poll_interval=float(ocr_file.get("poll_interval", ocr_defaults.poll_interval)),
        max_polls=int(ocr_file.get("max_polls", ocr_defaults.max_polls)),
        poll_timeout=float(ocr_file.get("poll_timeout", ocr_defaults.poll_timeout)),
        request_timeout=float(
            ocr_file.get("request_timeout", ocr_defaults.request_timeout)
        ),
    )

    pipe_defaults = PipelineConfig()
    pipeline = PipelineConfig(
        header_threshold=float(
            pipe_file.get("header_threshold", pipe_defaults.header_threshold)
        ),
        min_chars_per_page=int(
            pipe_file.get("min_chars_per_page", pipe_defaults.min_chars_per_page)
        ),
        usable_fraction_cutoff=float(
            pipe_file.get("usable_fraction_cutoff", pipe_defaults.usable_fraction_cutoff)
        ),
        strict_usability=_as_bool(pipe_file.get("strict_usability"), False),
        force_ocr=_as_bool(pipe_file.get("force_ocr"), False),
        strip_running_lines=_as_bool(pipe_file.get("strip_running_lines"), True),
    )
    log.debug("Resolved settings: %s, %s", pipeline, ocr)
    return pipeline, ocr


def _as_bool(value, default):
    if value is None:
        return default
    return str(value).strip().lower() in ("1", "true", "yes", "on")
