"""Tests for asciiloop.cli module."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from click.testing import CliRunner
from conftest import RED_GREEN_FRAMES

from asciiloop import __version__
from asciiloop.cli import main


@pytest.fixture
def cli_runner() -> CliRunner:
    """Create a CLI runner."""
    return CliRunner()


@pytest.fixture
def frames_project(temp_project: Path) -> Path:
    """Project directory holding a two-frame output.data."""
    (temp_project / "output.data").write_text(RED_GREEN_FRAMES, encoding="utf-8")
    return temp_project


class TestMain:
    """Tests for the command group."""

    def test_help_without_command(self, cli_runner: CliRunner, temp_project: Path) -> None:
        """Running with no subcommand prints help."""
        result = cli_runner.invoke(main, [])
        assert result.exit_code == 0
        assert "play" in result.output
        assert "inspect" in result.output

    def test_version(self, cli_runner: CliRunner) -> None:
        """--version prints the package version."""
        result = cli_runner.invoke(main, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output


class TestInspect:
    """Tests for the inspect command."""

    def test_inspect_lists_frames(self, cli_runner: CliRunner, frames_project: Path) -> None:
        """Each frame gets a row and the total is reported."""
        result = cli_runner.invoke(main, ["inspect", "output.data"])
        assert result.exit_code == 0
        assert "2 frame(s)" in result.output
        assert "ok" in result.output

    def test_inspect_reports_anomalies(self, cli_runner: CliRunner, temp_project: Path) -> None:
        """Unsupported sequences are listed per frame."""
        (temp_project / "odd.data").write_text("@FRAME@\x1b[99mA@FRAME@")
        result = cli_runner.invoke(main, ["inspect", "odd.data"])
        assert result.exit_code == 0
        assert "1 anomalies" in result.output
        assert "unsupported SGR parameter" in result.output

    def test_inspect_empty_file_fails(self, cli_runner: CliRunner, temp_project: Path) -> None:
        """A file without frames exits non-zero."""
        (temp_project / "empty.data").write_text("")
        result = cli_runner.invoke(main, ["inspect", "empty.data"])
        assert result.exit_code == 1
        assert "Cannot decode" in result.output

    def test_inspect_missing_file(self, cli_runner: CliRunner, temp_project: Path) -> None:
        """Click rejects a path that does not exist."""
        result = cli_runner.invoke(main, ["inspect", "nope.data"])
        assert result.exit_code == 2


class TestConfigCommands:
    """Tests for the config command group."""

    def test_show_defaults(self, cli_runner: CliRunner, temp_project: Path) -> None:
        """config show prints the effective configuration as JSON."""
        result = cli_runner.invoke(main, ["config", "show"])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["watch"]["frame_file"] == "output.data"
        assert data["playback"]["interval_ms"] == 83

    def test_set_frame_file(self, cli_runner: CliRunner, temp_project: Path) -> None:
        """set-frame-file persists the path."""
        result = cli_runner.invoke(main, ["config", "set-frame-file", "art/anim.data"])
        assert result.exit_code == 0

        saved = json.loads((temp_project / ".asciiloop" / "config.json").read_text())
        assert saved["watch"]["frame_file"] == "art/anim.data"

        result = cli_runner.invoke(main, ["config", "show"])
        assert json.loads(result.output)["watch"]["frame_file"] == "art/anim.data"


class TestPlay:
    """Tests for the play command."""

    def test_play_to_html(self, cli_runner: CliRunner, frames_project: Path) -> None:
        """Frames are written to the HTML file while playing."""
        result = cli_runner.invoke(
            main,
            ["play", "output.data", "--html-out", "view.html", "--interval", "20", "-d", "0.3"],
        )
        assert result.exit_code == 0, result.output

        content = (frames_project / "view.html").read_text(encoding="utf-8")
        assert "<pre><style>body { background-color: #333333; }</style>" in content
        assert "A</span>" in content or "B</span>" in content

    def test_play_uses_configured_frame_file(
        self, cli_runner: CliRunner, frames_project: Path
    ) -> None:
        """Without an argument the configured frame file is played."""
        result = cli_runner.invoke(main, ["play", "--html-out", "view.html", "-d", "0.3"])
        assert result.exit_code == 0, result.output
        assert (frames_project / "view.html").exists()

    def test_play_waits_for_missing_file(
        self, cli_runner: CliRunner, temp_project: Path
    ) -> None:
        """A missing frame file is announced, not an error."""
        result = cli_runner.invoke(
            main, ["play", "later.data", "--html-out", "view.html", "-d", "0.1"]
        )
        assert result.exit_code == 0
        assert "Waiting for" in result.output
        assert not (temp_project / "view.html").exists()

    def test_play_missing_directory(self, cli_runner: CliRunner, temp_project: Path) -> None:
        """A frame file in a directory that does not exist is refused."""
        result = cli_runner.invoke(main, ["play", "nowhere/output.data", "-d", "0.1"])
        assert result.exit_code == 1
        assert "Directory not found" in result.output

    def test_play_missing_html_directory(
        self, cli_runner: CliRunner, frames_project: Path
    ) -> None:
        """An HTML target in a missing directory is refused up front."""
        result = cli_runner.invoke(
            main, ["play", "--html-out", "missing_dir/x.html", "-d", "0.1"]
        )
        assert result.exit_code == 1
        assert "Directory not found" in result.output
        assert "missing_dir" in result.output
        assert not (frames_project / "missing_dir").exists()

    def test_play_rejects_bad_interval(self, cli_runner: CliRunner, frames_project: Path) -> None:
        """Intervals below one millisecond are refused by click."""
        result = cli_runner.invoke(main, ["play", "--interval", "0", "-d", "0.1"])
        assert result.exit_code == 2
