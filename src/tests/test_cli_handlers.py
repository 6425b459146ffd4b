"""Unit tests for CLI handlers and the click commands.

Handlers return a Result, so they are tested without going through click.
"""

import json

import pytest
from click.testing import CliRunner

from cli.handlers import handle_cleanup, handle_reconcile, handle_show_config, handle_validate
from cli.main import cli
from config.schema import ReconcileConfig
from config.settings import PipelineSettings
from fakes import FakeCodec, FakeSource, fake_image


@pytest.fixture
def settings(tmp_path):
    return PipelineSettings(
        project_root=tmp_path, cards_root=tmp_path / "cards", log_to_file=False
    )


@pytest.fixture
def config():
    return ReconcileConfig(
        set_id="9", languages="IT", card_range="1-2", primary_language="IT", dry_run=False
    )


class TestReconcileHandler:
    def test_returns_report(self, settings, config):
        result = handle_reconcile(
            config,
            settings,
            source=FakeSource(default=fake_image(734, 1024)),
            codec=FakeCodec(),
        )

        assert result["ok"] is True
        report = result["value"]
        assert report.ok
        assert report.per_language["IT"].recovered == 12
        assert (settings.cards_root / "IT" / "009" / "001.webp").is_file()
        assert (settings.cards_root / "009" / "art_only" / "002.avif").is_file()

    def test_failures_are_reported_not_raised(self, settings, config):
        result = handle_reconcile(config, settings, source=FakeSource(), codec=FakeCodec())

        assert result["ok"] is True
        assert not result["value"].ok
        assert result["value"].per_language["IT"].failed == 6

    def test_validate_forces_dry_run(self, settings, config):
        result = handle_validate(config, settings, codec=FakeCodec())

        assert result["ok"] is True
        report = result["value"]
        assert report.dry_run
        assert report.total_issues == 12
        assert not settings.cards_root.exists()

    def test_broken_setup_becomes_failed_result(self, tmp_path, config):
        bad = PipelineSettings(project_root=tmp_path, providers=["nowhere"], log_to_file=False)
        result = handle_reconcile(config, bad, codec=FakeCodec())

        assert result["ok"] is False
        assert "ConfigurationError" in result["error"]


class TestCleanupHandler:
    def test_removes_converted_sources_and_staging(self, settings):
        directory = settings.cards_root / "IT" / "009"
        directory.mkdir(parents=True)
        for name in ("001.jpg", "001.webp", "001.avif", "002.png", "002.webp", "003.webp.part"):
            (directory / name).write_bytes(b"x")

        result = handle_cleanup("009", ["IT"], settings)

        assert result["ok"] is True
        summary = result["value"]
        assert sorted(path.name for path in summary.removed) == ["001.jpg", "003.webp.part"]
        assert [path.name for path in summary.kept] == ["002.png"]
        assert not (directory / "001.jpg").exists()
        assert (directory / "002.png").exists()

    def test_dry_run_deletes_nothing(self, settings):
        directory = settings.cards_root / "IT" / "009"
        directory.mkdir(parents=True)
        for name in ("001.jpg", "001.webp", "001.avif"):
            (directory / name).write_bytes(b"x")

        summary = handle_cleanup("009", ["IT"], settings, dry_run=True)["value"]

        assert [path.name for path in summary.removed] == ["001.jpg"]
        assert (directory / "001.jpg").exists()


def test_show_config(settings):
    result = handle_show_config(settings)
    assert result["ok"] is True
    assert result["value"]["providers"] == ["ravensburger", "lorcast", "dreamborn"]


class TestCommands:
    @pytest.fixture(autouse=True)
    def isolated_env(self, monkeypatch, tmp_path):
        monkeypatch.setenv("CIP_PROJECT_ROOT", str(tmp_path))
        monkeypatch.setenv("CIP_LOG_TO_FILE", "false")
        monkeypatch.delenv("CIP_LOG", raising=False)

    def test_validate_reports_issues(self, tmp_path):
        report_path = tmp_path / "report.json"
        result = CliRunner().invoke(
            cli,
            [
                "--cards-root",
                str(tmp_path / "cards"),
                "validate",
                "--set",
                "9",
                "--languages",
                "EN,IT",
                "--range",
                "1-2",
                "--report",
                str(report_path),
            ],
        )

        assert result.exit_code == 2, result.output
        data = json.loads(report_path.read_text(encoding="utf-8"))
        assert data["per_language"]["EN"]["issues_found"] == 12
        assert data["per_language"]["IT"]["issues_found"] == 8
        assert "EN: checked=2" in result.output

    def test_validate_json_output(self, tmp_path):
        cards = tmp_path / "cards"
        result = CliRunner().invoke(
            cli,
            [
                "--cards-root",
                str(cards),
                "validate",
                "--set",
                "9",
                "--languages",
                "IT",
                "--range",
                "1",
                "--no-variants",
                "--json",
                "--report",
                str(tmp_path / "r.json"),
            ],
        )
        assert result.exit_code == 2
        assert '"per_language"' in result.output

    def test_reconcile_defaults_to_dry_run(self, tmp_path):
        result = CliRunner().invoke(
            cli,
            [
                "--cards-root",
                str(tmp_path / "cards"),
                "reconcile",
                "--set",
                "9",
                "--languages",
                "IT",
                "--range",
                "1",
                "--report",
                str(tmp_path / "r.json"),
            ],
        )

        assert "Dry run" in result.output
        assert result.exit_code == 2
        assert not (tmp_path / "cards").exists()

    def test_missing_range_is_a_usage_error(self, tmp_path):
        result = CliRunner().invoke(cli, ["validate", "--set", "9"])
        assert result.exit_code == 2
        assert "--range" in result.output

    def test_invalid_language(self, tmp_path):
        result = CliRunner().invoke(
            cli, ["validate", "--set", "9", "--range", "1-3", "--languages", "XX"]
        )
        assert result.exit_code == 1
        assert "Invalid language" in result.output

    def test_config_file(self, tmp_path):
        config_path = tmp_path / "run.yaml"
        result = CliRunner().invoke(
            cli, ["config", "--write", str(config_path), "--set", "9", "--range", "1-5"]
        )
        assert result.exit_code == 0, result.output

        result = CliRunner().invoke(
            cli,
            [
                "--cards-root",
                str(tmp_path / "cards"),
                "validate",
                "--config",
                str(config_path),
                "--languages",
                "DE",
                "--no-variants",
                "--json",
                "--report",
                str(tmp_path / "r.json"),
            ],
        )
        data = json.loads((tmp_path / "r.json").read_text(encoding="utf-8"))
        assert list(data["per_language"]) == ["DE"]
        assert data["per_language"]["DE"]["checked"] == 5

    def test_cleanup_command(self, tmp_path):
        directory = tmp_path / "cards" / "EN" / "009"
        directory.mkdir(parents=True)
        for name in ("004.jpg", "004.webp", "004.avif"):
            (directory / name).write_bytes(b"x")

        result = CliRunner().invoke(
            cli, ["--cards-root", str(tmp_path / "cards"), "cleanup", "--set", "9"]
        )

        assert result.exit_code == 0, result.output
        assert "Removed 1 file(s)" in result.output
        assert not (directory / "004.jpg").exists()
