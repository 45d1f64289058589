"""Build command - stage a module and write its manifest."""

from __future__ import annotations

import shutil
from pathlib import Path

import typer

from psmb.cli.commands._helpers import exit_on_error, fail, module_name, resolve_path
from psmb.cli.context import build_context
from psmb.core.errors import ErrorCode
from psmb.core.result import Err, Ok
from psmb.datafile.serialize import render_data_file
from psmb.output.console import Style
from psmb.services.dependencies.install import ModuleSearchPath, PwshInstaller, install_dependencies
from psmb.services.dependencies.model import DeclKind, decl_from_value, install_range
from psmb.services.manifest.build import (
    build_manifest,
    manifest_compatibility,
    manifest_path,
    write_manifest,
)
from psmb.services.manifest.source import SOURCE_MANIFEST, read_module_source

DEPENDENCY_DIR = "modules"


def _manifest_dependencies(manifest: dict[str, object]) -> list[DeclKind]:
    raw = manifest.get("RequiredModules")
    if not isinstance(raw, list):
        return []
    decls: list[DeclKind] = []
    for item in raw:  # pyright: ignore[reportUnknownVariableType]
        decl = decl_from_value(item)
        if decl is not None:
            decls.append(decl)
    return decls


def build(
    name: str | None = typer.Option(None, "--name", help="Module name (default: [module].name)"),
    source: Path | None = typer.Option(None, "--source", help="Source directory", show_default=False),
    output: Path | None = typer.Option(None, "--output", help="Output directory", show_default=False),
    install: bool = typer.Option(False, "--install", help="Install required modules after the build"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Print the manifest without writing"),
) -> None:
    """Build the module: merge requirements, write the manifest."""
    ctx = build_context()
    settings = ctx.config.module
    mod_name = module_name(ctx, name)

    source_root = resolve_path(ctx, source or settings.source)
    output_root = resolve_path(ctx, output or settings.output)

    src = exit_on_error(read_module_source(source_root, name=mod_name), ctx)
    compat, declared = manifest_compatibility(settings, src)
    if not declared:
        ctx.console.print(
            f"CompatiblePSEditions not declared, using {', '.join(compat.editions)} "
            f"(PowerShellVersion {compat.powershell_version})",
            Style.DIM,
        )

    manifest = exit_on_error(build_manifest(src, settings), ctx)
    target = manifest_path(output_root, mod_name)

    if dry_run:
        ctx.console.print(render_data_file(manifest))
        return

    module_dir = target.parent
    if module_dir.exists():
        shutil.rmtree(module_dir)
    shutil.copytree(
        source_root,
        module_dir,
        ignore=shutil.ignore_patterns(".*", SOURCE_MANIFEST),
    )
    write_manifest(target, manifest)
    ctx.console.success(f"manifest: {target}")

    if not install:
        return

    decls = _manifest_dependencies(manifest)
    if not decls:
        ctx.console.info("no required modules")
        return

    for decl in decls:
        ctx.console.print(f"  {decl.name} {install_range(decl) or '(any version)'}", Style.DIM)

    result = install_dependencies(
        decls,
        installer=PwshInstaller(cwd=ctx.root),
        destination=output_root / DEPENDENCY_DIR,
        search_path=ModuleSearchPath(),
        console=ctx.console,
    )
    match result:
        case Ok(installed):
            ctx.console.success(f"installed {len(installed)} module(s)")
        case Err(error):
            fail(ctx, error.pretty(), code=ErrorCode.NETWORK_ERROR)
