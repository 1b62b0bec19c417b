from unittest.mock import MagicMock

import pytest

from txpdf_lib.config import PipelineConfig
from txpdf_lib.exceptions import IOFailure
from txpdf_lib.extractor import (
    ExtractionStrategy,
    LocalPdfExtractor,
    is_usable,
    read_document,
    usable_fraction,
)
from txpdf_lib.models import Page

FULL = "x" * 60
THIN = "x" * 10


@pytest.fixture
def pdf_file(tmp_path):
    path = tmp_path / "doc.pdf"
    path.write_bytes(b"%PDF-1.4 test")
    return str(path)


def _pages(full, thin):
    texts = [FULL] * full + [THIN] * thin
    return [Page(i + 1, t) for i, t in enumerate(texts)]


def test_usable_fraction():
    assert usable_fraction(_pages(5, 5), 50) == 0.5
    assert usable_fraction([], 50) == 0.0


def test_half_usable_pages_is_not_usable():
    assert not is_usable(_pages(5, 5), PipelineConfig())
    assert is_usable(_pages(6, 4), PipelineConfig())


def test_strict_usability_accepts_any_usable_page():
    config = PipelineConfig(strict_usability=True)
    assert is_usable(_pages(1, 9), config)
    assert not is_usable(_pages(0, 3), config)


def test_strategy_falls_back_to_ocr_at_exact_half(pdf_file):
    local = MagicMock()
    local.extract.return_value = _pages(5, 5)
    ocr = MagicMock()
    ocr.analyze.return_value = [Page(1, "from ocr")]

    result = ExtractionStrategy(local_extractor=local, ocr_client=ocr).extract(pdf_file)

    assert result.method == "ocr"
    assert result.pages == [Page(1, "from ocr")]
    ocr.analyze.assert_called_once_with(b"%PDF-1.4 test", "doc.pdf")


def test_strategy_keeps_usable_local_text_in_page_order(pdf_file):
    local = MagicMock()
    local.extract.return_value = [Page(2, FULL), Page(1, FULL)]
    ocr = MagicMock()

    result = ExtractionStrategy(local_extractor=local, ocr_client=ocr).extract(pdf_file)

    assert result.method == "local"
    assert [p.page_number for p in result.pages] == [1, 2]
    ocr.analyze.assert_not_called()


def test_force_ocr_skips_local_parser(pdf_file):
    local = MagicMock()
    ocr = MagicMock()
    ocr.analyze.return_value = []
    strategy = ExtractionStrategy(
        PipelineConfig(force_ocr=True), local_extractor=local, ocr_client=ocr
    )

    assert strategy.extract(pdf_file).method == "ocr"
    local.extract.assert_not_called()


def test_missing_document_is_io_failure(tmp_path):
    with pytest.raises(IOFailure):
        read_document(str(tmp_path / "absent.pdf"))


def test_local_extractor_reads_text_containers(mocker):
    from pdfminer.layout import LTTextContainer

    element = MagicMock(spec=LTTextContainer)
    element.get_text.return_value = "Hello page\n"
    layout = MagicMock()
    layout.pageid = 1
    layout.__iter__.return_value = iter([element, object()])
    mocker.patch("txpdf_lib.extractor.extract_pages", return_value=[layout])

    pages = LocalPdfExtractor().extract(b"%PDF", "doc.pdf")

    assert pages == [Page(1, "Hello page\n")]


def test_unparseable_pdf_yields_no_pages():
    assert LocalPdfExtractor().extract(b"this is not a pdf", "junk.pdf") == []


def test_broken_object_stream_yields_no_pages(mocker):
    mocker.patch("txpdf_lib.extractor.extract_pages", side_effect=KeyError("Length"))
    assert LocalPdfExtractor().extract(b"%PDF", "broken.pdf") == []


def test_broken_local_parse_falls_back_to_ocr(pdf_file, mocker):
    mocker.patch("txpdf_lib.extractor.extract_pages", side_effect=TypeError("bad stream"))
    ocr = MagicMock()
    ocr.analyze.return_value = [Page(1, "recovered by ocr")]

    result = ExtractionStrategy(ocr_client=ocr).extract(pdf_file)

    assert result.method == "ocr"
    assert result.pages == [Page(1, "recovered by ocr")]
