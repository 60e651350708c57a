import json

from capturesys.cli import main

from cli_utils import logger_to_stderr


def test_config_check_json_success(capsys, tmp_path):
    config_text = """
logging_level = "INFO"

[links]
secret = "env:CAPTURESYS_LINK_SECRET"

[queue]
directory = "queue"

[enrichment.web_metadata]
enabled = true
"""
    config_file = tmp_path / "config.toml"
    config_file.write_text(config_text)

    with logger_to_stderr():
        exit_code = main(["--config", str(config_file), "config", "check", "--format", "json"])

    assert exit_code == 0

    captured = capsys.readouterr()
    payload = json.loads(captured.out)
    assert payload["status"] == "ok"
    assert payload["warnings"] == []
    assert payload["config_path"].endswith("config.toml")


def test_config_check_missing_file(capsys, tmp_path):
    missing_path = tmp_path / "absent.toml"

    with logger_to_stderr():
        exit_code = main(["--config", str(missing_path), "config", "check"])

    assert exit_code == 2

    captured = capsys.readouterr()
    assert "Configuration error (missing_file" in captured.err
    assert str(missing_path) in captured.err


def test_config_check_validation_error(capsys, tmp_path):
    config_file = tmp_path / "config.toml"
    config_file.write_text("unknown_field = 42\n")

    with logger_to_stderr():
        exit_code = main(["--config", str(config_file), "config", "check"])

    assert exit_code == 3

    captured = capsys.readouterr()
    assert "validation_error" in captured.err


def test_config_explain_json(capsys):
    exit_code = main(["config", "explain", "--format", "json"])

    assert exit_code == 0
    fields = json.loads(capsys.readouterr().out)["fields"]
    assert any(field["name"] == "links.secret" and field["required"] for field in fields)
