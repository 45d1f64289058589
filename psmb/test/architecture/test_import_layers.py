from __future__ import annotations

import pytest

from psmb.test.architecture._utils import iter_python_files, matches_prefix, parse_imports, psmb_root


def _offenders(package: str, forbidden: tuple[str, ...]) -> list[str]:
    root = psmb_root()
    offenders: list[str] = []
    for file_path in iter_python_files(root / package):
        rel = file_path.relative_to(root)
        for item in parse_imports(file_path):
            if any(matches_prefix(item.module, prefix) for prefix in forbidden):
                offenders.append(f"{rel}:{item.line}: forbidden import '{item.module}'")
    return offenders


def test_services_do_not_import_cli_modules() -> None:
    offenders = _offenders("services", ("psmb.cli", "typer"))
    assert not offenders, "services -> cli dependency violations:\n" + "\n".join(offenders)


@pytest.mark.parametrize("package", ["core", "datafile", "platform"])
def test_lower_layers_do_not_import_services(package: str) -> None:
    offenders = _offenders(package, ("psmb.services", "psmb.cli", "psmb.output"))
    assert not offenders, f"{package} -> upper layer violations:\n" + "\n".join(offenders)


def test_rich_only_in_output() -> None:
    root = psmb_root()
    offenders: list[str] = []
    for file_path in iter_python_files(root):
        rel = file_path.relative_to(root)
        if rel.parts[0] == "output":
            continue
        for item in parse_imports(file_path):
            if matches_prefix(item.module, "rich"):
                offenders.append(f"{rel}:{item.line}: '{item.module}' outside psmb.output")
    assert not offenders, "\n".join(offenders)


def test_subprocess_only_in_platform() -> None:
    root = psmb_root()
    offenders: list[str] = []
    for file_path in iter_python_files(root):
        rel = file_path.relative_to(root)
        if rel.parts[0] == "platform":
            continue
        for item in parse_imports(file_path):
            if item.module == "subprocess":
                offenders.append(f"{rel}:{item.line}: subprocess outside psmb.platform")
    assert not offenders, "\n".join(offenders)
