"""Tests for the CLI commands that need no network."""

from typer.testing import CliRunner

from event_scraper.cli import app
from event_scraper.processing.ledger import JsonFileLedger

runner = CliRunner()


class TestLedgerCommands:
    def test_stats(self, tmp_path):
        path = tmp_path / "processed.json"
        ledger = JsonFileLedger(path)
        ledger.mark_processed("a", "nightly")
        ledger.mark_processed("b", "nightly")

        result = runner.invoke(app, ["ledger-stats", "--ledger", str(path)])
        assert result.exit_code == 0
        assert "nightly" in result.output

    def test_stats_empty(self, tmp_path):
        result = runner.invoke(app, ["ledger-stats", "--ledger", str(tmp_path / "none.json")])
        assert result.exit_code == 0
        assert "Ledger is empty" in result.output

    def test_clear_one_flow(self, tmp_path):
        path = tmp_path / "processed.json"
        ledger = JsonFileLedger(path)
        ledger.mark_processed("a", "nightly")
        ledger.mark_processed("a", "weekly")

        result = runner.invoke(app, ["ledger-clear", "--flow", "nightly", "--ledger", str(path), "--yes"])
        assert result.exit_code == 0
        assert "Cleared 1 entries" in result.output
        assert JsonFileLedger(path).stats() == {"weekly": 1}

    def test_clear_aborted(self, tmp_path):
        path = tmp_path / "processed.json"
        JsonFileLedger(path).mark_processed("a", "nightly")
        result = runner.invoke(app, ["ledger-clear", "--ledger", str(path)], input="n\n")
        assert result.exit_code == 1
        assert len(JsonFileLedger(path)) == 1


class TestPull:
    def test_blank_url_is_an_error(self, tmp_path, monkeypatch):
        monkeypatch.delenv("EVENT_SCRAPER_SOURCE_URL", raising=False)
        result = runner.invoke(app, ["next", " ", "--ledger", str(tmp_path / "processed.json")])
        assert result.exit_code == 1
        assert "No source URL configured" in result.output
