from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

import typer

from psmb.core.config import CONFIG_FILE_NAME, Config, load_config
from psmb.core.errors import ErrorCode
from psmb.core.result import Err
from psmb.output.console import ConsoleProtocol, RichConsole

ROOT_ENV_VAR = "PSMB_ROOT"


@dataclass(frozen=True, slots=True)
class CLIContext:
    root: Path
    config: Config
    console: ConsoleProtocol


def project_root() -> Path:
    env = os.environ.get(ROOT_ENV_VAR)
    if env:
        return Path(env).expanduser().resolve()

    cwd = Path.cwd().resolve()
    for parent in (cwd, *cwd.parents):
        if (parent / CONFIG_FILE_NAME).is_file():
            return parent
    return cwd


def build_context() -> CLIContext:
    root = project_root()
    console = RichConsole()

    config = Config()
    config_path = root / CONFIG_FILE_NAME
    if config_path.exists():
        loaded = load_config(config_path)
        if isinstance(loaded, Err):
            typer.echo(f"error: {loaded.error.message}", err=True)
            raise typer.Exit(code=int(ErrorCode.USER_ERROR))
        config = loaded.value

    return CLIContext(root=root, config=config, console=console)
