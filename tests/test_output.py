"""Tests for the output system.

Covers:
- OutputFormat resolution (auto -> rich/plain based on TTY)
- NO_COLOR / TERM=dumb colour disabling
- stdout vs stderr discipline
- Quiet and verbose modes
- print_table in JSON and plain modes
- Global instance management
"""

from __future__ import annotations

import json

import pytest

from urloauth import output as output_module
from urloauth.output import (
    OutputFormat,
    OutputManager,
    _should_disable_color,
    get_output,
    reset_output,
    set_output,
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("NO_COLOR", raising=False)
    monkeypatch.delenv("TERM", raising=False)


class TestFormatResolution:
    def test_auto_is_plain_without_tty(self) -> None:
        # pytest captures stdout, so it is never a TTY here
        assert OutputManager().format == OutputFormat.PLAIN

    def test_auto_is_rich_on_tty(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(output_module, "_is_tty", lambda: True)
        assert OutputManager().format == OutputFormat.RICH

    def test_auto_is_plain_on_tty_without_color(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(output_module, "_is_tty", lambda: True)
        assert OutputManager(no_color=True).format == OutputFormat.PLAIN

    def test_explicit_format(self) -> None:
        assert OutputManager(format=OutputFormat.JSON).format == OutputFormat.JSON


class TestColorDisabling:
    def test_no_color_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("NO_COLOR", "")
        assert _should_disable_color() is True

    def test_term_dumb(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("TERM", "dumb")
        assert _should_disable_color() is True

    def test_default_enabled(self) -> None:
        assert _should_disable_color() is False


class TestStreams:
    def test_data_goes_to_stdout(self, capsys: pytest.CaptureFixture[str]) -> None:
        OutputManager(no_color=True).print_data("tok123")
        captured = capsys.readouterr()
        assert captured.out == "tok123\n"
        assert captured.err == ""

    def test_diagnostics_go_to_stderr(self, capsys: pytest.CaptureFixture[str]) -> None:
        out = OutputManager(no_color=True)
        out.info("visit this URL")
        out.warning("careful")
        out.error("failed")
        captured = capsys.readouterr()
        assert captured.out == ""
        assert "visit this URL" in captured.err
        assert "Warning: careful" in captured.err
        assert "Error: failed" in captured.err

    def test_quiet_suppresses_info_not_errors(self, capsys: pytest.CaptureFixture[str]) -> None:
        out = OutputManager(no_color=True, quiet=True)
        out.info("hidden")
        out.success("hidden too")
        out.error("shown")
        err = capsys.readouterr().err
        assert "hidden" not in err
        assert "Error: shown" in err

    def test_debug_needs_verbose(self, capsys: pytest.CaptureFixture[str]) -> None:
        OutputManager(no_color=True).debug("quiet")
        OutputManager(no_color=True, verbose=True).debug("loud")
        err = capsys.readouterr().err
        assert "quiet" not in err
        assert "[debug] loud" in err

    def test_markup_in_message_is_not_interpreted(self, capsys: pytest.CaptureFixture[str]) -> None:
        OutputManager().info("scope [bold]read[/bold]")
        assert "[bold]read[/bold]" in capsys.readouterr().err


class TestPrintTable:
    def test_json(self, capsys: pytest.CaptureFixture[str]) -> None:
        OutputManager(format=OutputFormat.JSON).print_table(["URL", "Scope"], [["https://a", "read"]])
        assert json.loads(capsys.readouterr().out) == [{"URL": "https://a", "Scope": "read"}]

    def test_plain(self, capsys: pytest.CaptureFixture[str]) -> None:
        OutputManager(format=OutputFormat.PLAIN).print_table(["URL", "Scope"], [["https://a", "read"]])
        assert capsys.readouterr().out == "URL\tScope\nhttps://a\tread\n"

    def test_rich_contains_cells(self, capsys: pytest.CaptureFixture[str]) -> None:
        OutputManager(format=OutputFormat.RICH, no_color=True).print_table(
            ["URL"], [["https://a"]], title="Endpoints"
        )
        out = capsys.readouterr().out
        assert "Endpoints" in out
        assert "https://a" in out


class TestGlobalInstance:
    def test_lazy_default(self) -> None:
        reset_output()
        assert get_output() is get_output()

    def test_set_and_convenience_functions(self, capsys: pytest.CaptureFixture[str]) -> None:
        set_output(OutputManager(no_color=True))
        output_module.print_data("data")
        output_module.info("note")
        captured = capsys.readouterr()
        assert captured.out == "data\n"
        assert "note" in captured.err
