from __future__ import annotations

from pathlib import Path

import pytest

from psmb.datafile.serialize import (
    format_data,
    format_scalar,
    normalize_data_text,
    render_data_file,
    write_data_file,
)


class TestFormatScalar:
    def test_literals(self) -> None:
        assert format_scalar(None) == "$null"
        assert format_scalar(True) == "$true"
        assert format_scalar(False) == "$false"
        assert format_scalar(3) == "3"
        assert format_scalar(1.5) == "1.5"

    def test_strings_are_single_quoted(self) -> None:
        assert format_scalar("Example") == "'Example'"
        assert format_scalar("it's") == "'it''s'"
        assert format_scalar("$env:HOME") == "'$env:HOME'"

    def test_unsupported_type(self) -> None:
        with pytest.raises(TypeError):
            format_scalar(object())

    @pytest.mark.parametrize("value", [float("inf"), float("-inf"), float("nan")])
    def test_non_finite_float(self, value: float) -> None:
        with pytest.raises(ValueError, match="non-finite"):
            render_data_file({"A": value})


class TestFormatData:
    def test_empty_map(self) -> None:
        assert format_data({}) == "@{}"

    def test_keys_are_aligned(self) -> None:
        text = format_data({"RootModule": "Example.psm1", "GUID": "abc"})
        assert text == (
            "@{\n"
            "    RootModule = 'Example.psm1'\n"
            "    GUID       = 'abc'\n"
            "}"
        )

    def test_nested_map_and_lists(self) -> None:
        text = format_data(
            {
                "Tags": ["ci", "build"],
                "Empty": [],
                "PrivateData": {"PSData": {"Prerelease": "beta001"}},
            }
        )
        assert text == (
            "@{\n"
            "    Tags        = @(\n"
            "        'ci'\n"
            "        'build'\n"
            "    )\n"
            "    Empty       = @()\n"
            "    PrivateData = @{\n"
            "        PSData = @{\n"
            "            Prerelease = 'beta001'\n"
            "        }\n"
            "    }\n"
            "}"
        )

    def test_maps_inside_list(self) -> None:
        text = format_data(
            {"RequiredModules": ["PSReadLine", {"ModuleName": "Pester", "ModuleVersion": "5.0"}]}
        )
        assert text == (
            "@{\n"
            "    RequiredModules = @(\n"
            "        'PSReadLine'\n"
            "        @{\n"
            "            ModuleName    = 'Pester'\n"
            "            ModuleVersion = '5.0'\n"
            "        }\n"
            "    )\n"
            "}"
        )

    def test_non_identifier_keys_are_quoted(self) -> None:
        assert format_data({"my key": 1}) == "@{\n    'my key' = 1\n}"

    def test_insertion_order_is_kept(self) -> None:
        text = format_data({"b": 1, "a": 2})
        assert text.index("b =") < text.index("a =")


class TestNormalize:
    def test_strips_comments_and_blank_lines(self) -> None:
        text = "# header\n@{\n\n    A = 1 # trailing\n    <# block\n    comment #>\n    B = 2   \n}\n\n\n"
        assert normalize_data_text(text) == "@{\n    A = 1\n    B = 2\n}\n"

    def test_hash_inside_string_is_kept(self) -> None:
        text = "@{\n    A = 'C# rocks'\n    B = \"#1\"\n}"
        assert normalize_data_text(text) == "@{\n    A = 'C# rocks'\n    B = \"#1\"\n}\n"

    def test_doubled_quote_does_not_end_string(self) -> None:
        text = "@{\n    A = 'it''s # here'\n}"
        assert normalize_data_text(text) == "@{\n    A = 'it''s # here'\n}\n"

    def test_blank_line_inside_string_is_kept(self) -> None:
        text = "@{\n    A = 'one\n\ntwo'\n}"
        assert normalize_data_text(text) == "@{\n    A = 'one\n\ntwo'\n}\n"

    def test_idempotent(self) -> None:
        once = normalize_data_text("@{ # c\n\n  A = 1\n}\n")
        assert normalize_data_text(once) == once


def test_render_ends_with_single_newline() -> None:
    text = render_data_file({"A": "x"})
    assert text.endswith("}\n")
    assert not text.endswith("\n\n")


def test_write_data_file(tmp_path: Path) -> None:
    target = tmp_path / "out" / "Example" / "Example.psd1"
    write_data_file(target, {"ModuleVersion": "1.0.0"})
    assert target.read_bytes() == b"@{\n    ModuleVersion = '1.0.0'\n}\n"


def test_equals_signs_share_a_column() -> None:
    lines = format_data({"a": 1, "bbbb": 2}).splitlines()[1:-1]
    assert len({line.index("=") for line in lines}) == 1
