from txpdf import Application, main
from txpdf_lib.models import BatchSummary, ProcessingOutcome


def test_parse_arguments_defaults():
    args = Application.parse_arguments([])
    assert args.input_dir == "./input_pdfs"
    assert args.output_dir == "./output"
    assert args.workers >= 1
    assert args.header_threshold is None
    assert not args.force_ocr


def test_cli_overrides_are_applied(mocker, tmp_path):
    mocker.patch.dict("os.environ", {}, clear=True)
    args = Application.parse_arguments(
        [str(tmp_path), "--force-ocr", "--header-threshold", "5", "--max-polls", "7"]
    )
    pipeline, ocr = Application(args)._resolve_settings()
    assert pipeline.force_ocr
    assert pipeline.header_threshold == 5.0
    assert pipeline.min_chars_per_page == 50
    assert ocr.max_polls == 7


def test_missing_input_directory_exits_nonzero(tmp_path):
    assert main([str(tmp_path / "absent"), "-o", str(tmp_path / "out")]) == 1


def test_batch_with_failures_still_exits_zero(mocker, tmp_path):
    summary = BatchSummary(
        outcomes=[
            ProcessingOutcome("a.pdf", "out/a.txt", True, method="local", page_count=2),
            ProcessingOutcome(
                "b.pdf",
                "out/b.error.log",
                False,
                error_type="RemoteServiceFailure",
                error_message="failed",
            ),
        ]
    )
    run = mocker.patch("txpdf.BatchOrchestrator.run", return_value=summary)

    assert main([str(tmp_path), "-o", str(tmp_path / "out"), "-w", "2"]) == 0
    run.assert_called_once()
