"""Tests for psmb.output.console module."""

from __future__ import annotations

import pytest

from psmb.output.console import ConsoleProtocol, MockConsole, RichConsole, Style


class TestStyle:
    def test_str_conversion(self) -> None:
        assert str(Style.SUCCESS) == "success"
        assert str(Style.DIM) == "dim"

    def test_all_styles_exist(self) -> None:
        expected = {"DEFAULT", "SUCCESS", "ERROR", "WARNING", "INFO", "DIM"}
        assert {s.name for s in Style} == expected


class TestMockConsole:
    def test_print_captures_message(self) -> None:
        console = MockConsole()
        console.print("hello")
        assert console.outputs[0].message == "hello"
        assert console.outputs[0].style == Style.DEFAULT

    def test_prefixes(self) -> None:
        console = MockConsole()
        console.success("done")
        console.error("failed")
        console.warning("careful")
        console.info("fyi")
        assert console.messages == ["OK done", "error: failed", "warning: careful", "info: fyi"]

    def test_has_error_and_warning(self) -> None:
        console = MockConsole()
        assert not console.has_error()
        console.warning("w")
        assert console.has_warning()
        assert not console.has_error()
        console.error("e")
        assert console.has_error()

    def test_find_and_text(self) -> None:
        console = MockConsole()
        console.info("installing Pester [5.0,)")
        console.info("installing PSReadLine")
        assert len(console.find("installing")) == 2
        assert "Pester [5.0,)" in console.text

    def test_satisfies_protocol(self) -> None:
        mock = MockConsole()
        console: ConsoleProtocol = mock
        console.info("Build")
        assert mock.find("Build")


class TestRichConsole:
    def test_brackets_are_not_markup(self, capsys: pytest.CaptureFixture[str]) -> None:
        console = RichConsole()
        console.info("installing Pester [5.0,)")
        console.print("[bold]literal[/bold]", Style.DIM)
        out = capsys.readouterr().out
        assert "[5.0,)" in out
        assert "[bold]literal[/bold]" in out
