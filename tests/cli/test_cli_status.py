from capturesys.cli import main

from cli_utils import logger_to_stderr, write_config


def test_status_reports_sections(capsys, tmp_path):
    config_file = write_config(
        tmp_path,
        extra='\n[enrichment.duckduckgo]\nenabled = true\n',
    )
    main(["--config", str(config_file), "enqueue", "https://example.com/pending"])
    capsys.readouterr()

    with logger_to_stderr():
        exit_code = main(["--config", str(config_file), "status"])

    assert exit_code == 0

    captured = capsys.readouterr()
    assert "=== General Configuration ===" in captured.err
    assert "=== Links ===" in captured.err
    assert "Base URL: https://links.example.org" in captured.err
    assert "Pending captures: 1" in captured.err
    assert "No processed items" in captured.err
    assert "duckduckgo: enabled" in captured.err
    assert "foursquare: disabled" in captured.err
