"""
Unit tests for the command-line interface.
"""

import json
import logging

import pytest

from tiered_routing.cli.main import handle_error, main, setup_argument_parser
from tiered_routing.utils.error_handlers import ProviderError


@pytest.fixture
def cli_args(tmp_path):
    """Common arguments: a missing config file falls back to defaults."""
    return ["--config", str(tmp_path / "absent.yaml"), "--log-level", "ERROR"]


@pytest.mark.unit
class TestCli:
    """Tests for CLI commands without configured vendors."""

    def test_version(self, capsys):
        assert main(["--version"]) == 0
        assert "Tiered Routing Engine v" in capsys.readouterr().out

    def test_no_command_prints_help(self, capsys):
        assert main(["--log-level", "ERROR"]) == 1

    def test_status(self, cli_args, capsys):
        assert main(cli_args + ["status"]) == 0

        out = capsys.readouterr().out
        assert "✗ openai (OPENAI_API_KEY not configured)" in out

    def test_models_json(self, cli_args, capsys):
        assert main(cli_args + ["models", "--json"]) == 0

        data = json.loads(capsys.readouterr().out)
        assert [t["plan_name"] for t in data["tiers"]] == ["free", "basic", "pro", "unlimited"]
        assert any(m["id"] == "llama-3.1-small" for m in data["models"])

    def test_metrics_empty(self, cli_args, capsys):
        assert main(cli_args + ["metrics"]) == 0
        assert "No requests recorded" in capsys.readouterr().out

    def test_suggest_name_falls_back(self, cli_args, tmp_path, capsys):
        source = tmp_path / "meeting notes.txt"
        source.write_text("Agenda for the quarterly review", encoding="utf-8")

        assert main(cli_args + ["suggest-name", str(source), "--json"]) == 0

        data = json.loads(capsys.readouterr().out)
        assert data["suggested_name"] == "meeting notes"
        assert data["provider"] == "fallback"

    def test_suggest_name_missing_file(self, cli_args, tmp_path):
        assert main(cli_args + ["suggest-name", str(tmp_path / "nope.txt")]) == 1

    def test_ocr_method_choices(self):
        parser = setup_argument_parser()

        with pytest.raises(SystemExit):
            parser.parse_args(["ocr", "scan.png", "--method", "bogus"])

    def test_handle_routing_error_logs_context(self, caplog):
        error = ProviderError("quota exhausted", provider="google")

        with caplog.at_level(logging.DEBUG):
            assert handle_error("Command execution failed", error) == 1

        assert "Error with provider google" in caplog.text
        assert "operation: Command execution failed" in caplog.text
        assert '"error_type": "ProviderError"' in caplog.text
