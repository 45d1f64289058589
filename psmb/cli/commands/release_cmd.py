from __future__ import annotations

import dataclasses
import os
from pathlib import Path

import typer

from psmb.cli.commands._helpers import exit_on_error, fail, module_name, resolve_path
from psmb.cli.context import CLIContext, build_context
from psmb.core.config import ReleaseSettings
from psmb.core.errors import ErrorCode
from psmb.core.result import Err, Ok
from psmb.datafile.parse import read_data_file
from psmb.output.console import Style
from psmb.services.manifest.build import read_manifest_version
from psmb.services.manifest.compat import Compatibility
from psmb.services.release.context import Release, Skip
from psmb.services.release.event import read_event
from psmb.services.release.gallery import API_KEY_VAR, DEFAULT_REPOSITORY, GalleryChannel, ensure_pwsh_available
from psmb.services.release.gather import gather_context
from psmb.services.release.gh import GhReleaseChannel, ensure_gh_available
from psmb.services.release.publish import cleanup_prereleases, publish_release
from psmb.services.release.resolver import resolve


release_app = typer.Typer(add_completion=False, no_args_is_help=True)

OUTPUT_VAR = "GITHUB_OUTPUT"


def _settings(ctx: CLIContext, *, whatif: bool | None) -> ReleaseSettings:
    settings = ctx.config.release
    if whatif is not None:
        settings = dataclasses.replace(settings, whatif=whatif)
    return settings


def _compatibility(manifest: Path) -> Compatibility | None:
    """Editions and PowerShellVersion of a built manifest, if readable."""
    parsed = read_data_file(manifest)
    if isinstance(parsed, Err):
        return None
    data = parsed.value
    raw = data.get("CompatiblePSEditions")
    editions: list[str] = []
    if isinstance(raw, str):
        editions = [raw]
    elif isinstance(raw, list):
        editions = [e for e in raw if isinstance(e, str)]  # pyright: ignore[reportUnknownVariableType]
    version = data.get("PowerShellVersion")
    return Compatibility(
        editions=tuple(editions),
        powershell_version=version if isinstance(version, str) else None,
    )


def _write_outputs(values: dict[str, str]) -> None:
    """Append ``key=value`` lines to the workflow output file, when set."""
    target = os.environ.get(OUTPUT_VAR)
    if not target:
        return
    with Path(target).open("a", encoding="utf-8") as f:
        for key, value in values.items():
            f.write(f"{key}={value}\n")


def _resolve(
    ctx: CLIContext,
    *,
    name: str,
    event_path: Path | None,
    module_dir: Path,
    settings: ReleaseSettings,
    repository: str,
    repo: str | None,
) -> tuple[Skip | Release, GalleryChannel, GhReleaseChannel]:
    exit_on_error(ensure_gh_available(), ctx)
    exit_on_error(ensure_pwsh_available(), ctx)

    event = exit_on_error(read_event(event_path), ctx)
    ctx.console.print(
        f"PR #{event.number} {event.head_ref} -> {event.base_ref} "
        f"(merged={event.merged}, closed={event.closed}, labels={', '.join(event.labels) or '-'})",
        Style.DIM,
    )

    manifest = module_dir / f"{name}.psd1"
    manifest_version: str | None = None
    compatibility: Compatibility | None = None
    if manifest.exists():
        match read_manifest_version(manifest):
            case Ok(version):
                manifest_version = version
            case Err(error):
                ctx.console.warning(error.pretty())
        compatibility = _compatibility(manifest)

    registry = GalleryChannel(workspace_root=ctx.root, repository=repository)
    vcs = GhReleaseChannel(workspace_root=ctx.root, repo=repo)
    release_ctx = gather_context(
        module_name=name,
        event=event,
        settings=settings,
        registry=registry,
        vcs=vcs,
        console=ctx.console,
        manifest_version=manifest_version,
        compatibility=compatibility,
    )
    resolution = exit_on_error(resolve(release_ctx), ctx)
    return resolution, registry, vcs


def _report(ctx: CLIContext, resolution: Skip | Release) -> None:
    match resolution:
        case Skip(reason=reason):
            ctx.console.info(f"no release: {reason}")
            _write_outputs({"release": "false", "version": "", "prerelease": "false"})
        case Release(version=version, is_prerelease=is_prerelease, bump=bump, latest=latest):
            kind = "prerelease" if is_prerelease else "release"
            ctx.console.success(f"{kind} {version} ({bump} bump from {latest})")
            _write_outputs(
                {
                    "release": "true",
                    "version": str(version),
                    "prerelease": str(is_prerelease).lower(),
                }
            )


def _module_dir(ctx: CLIContext, name: str, module_path: Path | None) -> Path:
    if module_path is not None:
        return resolve_path(ctx, module_path)
    return resolve_path(ctx, ctx.config.module.output) / name


@release_app.command("resolve")
def resolve_cmd(
    name: str | None = typer.Option(None, "--name", help="Module name (default: [module].name)"),
    event: Path | None = typer.Option(None, "--event", help="Pull request event JSON (default: $GITHUB_EVENT_PATH)"),
    module_path: Path | None = typer.Option(None, "--module-path", help="Built module directory"),
    repository: str = typer.Option(DEFAULT_REPOSITORY, "--repository", help="PSResourceGet repository"),
    repo: str | None = typer.Option(None, "--repo", help="GitHub repository (owner/name)"),
) -> None:
    """Compute the next version for a pull request event without publishing."""
    ctx = build_context()
    mod_name = module_name(ctx, name)
    resolution, _, _ = _resolve(
        ctx,
        name=mod_name,
        event_path=event,
        module_dir=_module_dir(ctx, mod_name, module_path),
        settings=_settings(ctx, whatif=None),
        repository=repository,
        repo=repo,
    )
    _report(ctx, resolution)


@release_app.command("publish")
def publish_cmd(
    name: str | None = typer.Option(None, "--name", help="Module name (default: [module].name)"),
    event: Path | None = typer.Option(None, "--event", help="Pull request event JSON (default: $GITHUB_EVENT_PATH)"),
    module_path: Path | None = typer.Option(None, "--module-path", help="Built module directory"),
    api_key: str | None = typer.Option(None, "--api-key", envvar=API_KEY_VAR, help="Registry API key"),
    whatif: bool | None = typer.Option(None, "--whatif/--no-whatif", help="Print actions instead of running them"),
    repository: str = typer.Option(DEFAULT_REPOSITORY, "--repository", help="PSResourceGet repository"),
    repo: str | None = typer.Option(None, "--repo", help="GitHub repository (owner/name)"),
) -> None:
    """Resolve, then publish to the registry and create the GitHub release."""
    ctx = build_context()
    mod_name = module_name(ctx, name)
    settings = _settings(ctx, whatif=whatif)
    module_dir = _module_dir(ctx, mod_name, module_path)

    resolution, registry, vcs = _resolve(
        ctx,
        name=mod_name,
        event_path=event,
        module_dir=module_dir,
        settings=settings,
        repository=repository,
        repo=repo,
    )
    _report(ctx, resolution)

    match resolution:
        case Skip(cleanup=True, prerelease_name=str() as branch) if branch:
            exit_on_error(
                cleanup_prereleases(
                    vcs=vcs,
                    prerelease_name=branch,
                    prefix=settings.version_prefix,
                    console=ctx.console,
                    whatif=settings.whatif,
                ),
                ctx,
            )
        case Skip():
            return
        case Release() as release:
            if not module_dir.is_dir():
                fail(ctx, f"module directory not found: {module_dir}", code=ErrorCode.IO_ERROR)
            url = exit_on_error(
                publish_release(
                    release=release,
                    module_name=mod_name,
                    module_dir=module_dir,
                    registry=registry,
                    vcs=vcs,
                    api_key=api_key,
                    console=ctx.console,
                    whatif=settings.whatif,
                ),
                ctx,
            )
            if url:
                _write_outputs({"release_url": url})
