import os
from unittest.mock import MagicMock

import pytest

from txpdf_lib.batch import BatchOrchestrator, list_documents
from txpdf_lib.config import OcrSettings, PipelineConfig
from txpdf_lib.exceptions import IOFailure
from txpdf_lib.extractor import ExtractionStrategy
from txpdf_lib.models import Page
from txpdf_lib.ocr import OcrClient

BODY = "The quarterly figures were reviewed and approved by the full board."


@pytest.fixture
def input_dir(tmp_path):
    source = tmp_path / "in"
    source.mkdir()
    for name in ("doc1.pdf", "doc2.pdf", "doc3.pdf"):
        (source / name).write_bytes(b"%PDF-1.4 " + name.encode())
    (source / "notes.txt").write_text("not a pdf")
    return source


def test_list_documents_only_returns_pdfs(input_dir):
    names = [os.path.basename(p) for p in list_documents(str(input_dir))]
    assert names == ["doc1.pdf", "doc2.pdf", "doc3.pdf"]


def test_list_documents_missing_directory(tmp_path):
    with pytest.raises(IOFailure):
        list_documents(str(tmp_path / "absent"))


def test_failed_ocr_poll_only_fails_its_own_document(input_dir, tmp_path, mocker):
    """Document 2 goes to OCR and its poll returns 'failed'; 1 and 3 still succeed."""
    out = tmp_path / "out"

    def local_pages(document_bytes, source):
        if source == "doc2.pdf":
            return [Page(1, "")]
        return [Page(1, BODY)]

    local = MagicMock()
    local.extract.side_effect = local_pages

    accepted = MagicMock(
        status_code=202, ok=True, headers={"Operation-Location": "https://op/2"}
    )
    post = mocker.patch("txpdf_lib.ocr.requests.post", return_value=accepted)
    failed_status = MagicMock(status_code=200, ok=True)
    failed_status.json.return_value = {"status": "failed", "error": {"message": "bad scan"}}
    get = mocker.patch("txpdf_lib.ocr.requests.get", return_value=failed_status)
    mocker.patch("txpdf_lib.ocr.time.sleep")

    ocr = OcrClient(OcrSettings(endpoint="https://ocr.example.test", api_key="secret"))
    strategy = ExtractionStrategy(PipelineConfig(), local_extractor=local, ocr_client=ocr)
    summary = BatchOrchestrator(str(input_dir), str(out), strategy=strategy, workers=2).run()

    assert (summary.total, summary.succeeded, summary.failed) == (3, 2, 1)
    assert sorted(os.listdir(out)) == ["doc1.txt", "doc2.error.log", "doc3.txt"]

    transcript = (out / "doc1.txt").read_text(encoding="utf-8")
    assert transcript.startswith("# MANIFEST\nSOURCE: doc1.pdf\nENGINE: local\n")
    assert "[PAGE 1]\n" + BODY in transcript

    error_log = (out / "doc2.error.log").read_text(encoding="utf-8")
    assert "SOURCE: doc2.pdf" in error_log
    assert "RemoteServiceFailure: OCR operation failed: bad scan" in error_log

    failed = [o for o in summary.outcomes if not o.succeeded]
    assert failed[0].source == "doc2.pdf"
    assert failed[0].error_type == "RemoteServiceFailure"
    post.assert_called_once()
    get.assert_called_once_with(
        "https://op/2", headers={"Ocp-Apim-Subscription-Key": "secret"}, timeout=60.0
    )


def test_success_replaces_stale_error_artifact(input_dir, tmp_path):
    out = tmp_path / "out"
    out.mkdir()
    (out / "doc1.error.log").write_text("old failure")
    strategy = MagicMock()
    strategy.extract.return_value = MagicMock(method="local", pages=[Page(1, BODY)])

    orchestrator = BatchOrchestrator(str(input_dir), str(out), strategy=strategy, workers=1)
    outcome = orchestrator.process_one(str(input_dir / "doc1.pdf"))

    assert outcome.succeeded
    assert outcome.page_count == 1
    assert not (out / "doc1.error.log").exists()
    assert (out / "doc1.txt").exists()


def test_unexpected_error_is_contained(input_dir, tmp_path):
    strategy = MagicMock()
    strategy.extract.side_effect = ValueError("boom")

    orchestrator = BatchOrchestrator(
        str(input_dir), str(tmp_path / "out"), strategy=strategy, workers=3
    )
    summary = orchestrator.run()

    assert summary.failed == 3
    assert {o.error_type for o in summary.outcomes} == {"ValueError"}


def test_empty_directory_produces_empty_summary(tmp_path):
    empty = tmp_path / "empty"
    empty.mkdir()
    summary = BatchOrchestrator(
        str(empty), str(tmp_path / "out"), ocr_settings=OcrSettings(), workers=4
    ).run()
    assert summary.total == 0


def test_name_collision_is_reported(tmp_path, caplog):
    source = tmp_path / "in"
    source.mkdir()
    for name in ("a.pdf", "a.PDF"):
        (source / name).write_bytes(b"%PDF")
    strategy = MagicMock()
    strategy.extract.return_value = MagicMock(method="local", pages=[Page(1, BODY)])

    BatchOrchestrator(str(source), str(tmp_path / "out"), strategy=strategy, workers=1).run()

    assert "Output name collision" in caplog.text


def test_names_differing_only_in_case_do_not_collide(tmp_path, caplog):
    source = tmp_path / "in"
    source.mkdir()
    for name in ("a.pdf", "A.pdf"):
        (source / name).write_bytes(b"%PDF")
    strategy = MagicMock()
    strategy.extract.return_value = MagicMock(method="local", pages=[Page(1, BODY)])

    BatchOrchestrator(str(source), str(tmp_path / "out"), strategy=strategy, workers=1).run()

    assert "Output name collision" not in caplog.text
    assert sorted(os.listdir(tmp_path / "out")) == ["A.txt", "a.txt"]
