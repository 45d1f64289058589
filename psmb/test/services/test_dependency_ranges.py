from __future__ import annotations

import pytest

from psmb.services.dependencies.ranges import convert_version_spec


@pytest.mark.parametrize(
    ("minimum", "maximum", "exact", "expected"),
    [
        ("1.0.0", "2.0.0", None, "[1.0.0,2.0.0]"),
        ("1.0.0", None, None, "[1.0.0,)"),
        (None, "2.0.0", None, "(,2.0.0]"),
        (None, None, None, None),
        ("  ", "", None, None),
    ],
)
def test_bounds(minimum: str | None, maximum: str | None, exact: str | None, expected: str | None) -> None:
    assert convert_version_spec(minimum=minimum, maximum=maximum, exact=exact) == expected


@pytest.mark.parametrize(
    ("minimum", "maximum"),
    [(None, None), ("0.5", None), (None, "9.9"), ("0.5", "9.9"), ("3.0", "1.0")],
)
def test_exact_wins_over_everything(minimum: str | None, maximum: str | None) -> None:
    assert convert_version_spec(minimum=minimum, maximum=maximum, exact="1.2.3") == "[1.2.3]"
