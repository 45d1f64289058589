from __future__ import annotations


def _present(value: str | None) -> str | None:
    if value is None:
        return None
    v = value.strip()
    return v or None


def convert_version_spec(
    minimum: str | None = None,
    maximum: str | None = None,
    exact: str | None = None,
) -> str | None:
    """Convert legacy version bounds into a NuGet version range.

    This is the syntax `Install-PSResource -Version` accepts:

        exact            -> [1.0.0]
        minimum, maximum -> [1.0.0,2.0.0]
        minimum          -> [1.0.0,)
        maximum          -> (,2.0.0]
        nothing          -> None (no constraint)

    An exact version wins over any other bound.
    """
    exact = _present(exact)
    if exact is not None:
        return f"[{exact}]"

    minimum = _present(minimum)
    maximum = _present(maximum)
    if minimum is not None and maximum is not None:
        return f"[{minimum},{maximum}]"
    if minimum is not None:
        return f"[{minimum},)"
    if maximum is not None:
        return f"(,{maximum}]"
    return None
