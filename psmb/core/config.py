"""Typed configuration loading and access.

psmb reads a `psmb.toml` file with two tables:

    [module]
    name = "MyModule"
    source = "src"
    output = "outputs/module"
    powershell_version = "7.4"

    [release]
    major_labels = ["major", "breaking"]
    date_prerelease_format = "%Y%m%d%H%M"

Every key is optional; missing keys fall back to the defaults below.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from .result import Err, Ok, Result
from .structured import StrDict, as_str_dict, get_bool, get_str, get_str_list, get_table

__all__ = [
    "Config",
    "ConfigError",
    "ModuleSettings",
    "ReleaseSettings",
    "CONFIG_FILE_NAME",
    "load_config",
]

CONFIG_FILE_NAME = "psmb.toml"

DEFAULT_IGNORE_LABELS = ("NoRelease",)
DEFAULT_MAJOR_LABELS = ("major", "breaking")
DEFAULT_MINOR_LABELS = ("minor", "feature")
DEFAULT_PATCH_LABELS = ("patch", "fix")
DEFAULT_VERSION_PREFIX = "v"


@dataclass(frozen=True, slots=True)
class ConfigError:
    """Error when config cannot be loaded or parsed."""

    message: str
    path: Path | None = None


@dataclass(frozen=True, slots=True)
class ModuleSettings:
    """Author-provided manifest metadata.

    Values here seed the manifest; values discovered in the sources
    (`#Requires` statements, exported functions) are merged on top.
    """

    name: str | None = None
    source: str = "src"
    output: str = "outputs/module"
    guid: str | None = None
    author: str | None = None
    company_name: str | None = None
    copyright: str | None = None
    description: str | None = None
    powershell_version: str | None = None
    compatible_ps_editions: tuple[str, ...] = ()
    required_assemblies: tuple[str, ...] = ()
    tags: tuple[str, ...] = ()
    license_uri: str | None = None
    project_uri: str | None = None
    icon_uri: str | None = None
    release_notes: str | None = None


@dataclass(frozen=True, slots=True)
class ReleaseSettings:
    """Options steering version resolution and publishing."""

    auto_cleanup: bool = True
    auto_patching: bool = True
    date_prerelease_format: str = ""
    incremental_prerelease: bool = True
    version_prefix: str = DEFAULT_VERSION_PREFIX
    whatif: bool = False
    ignore_labels: tuple[str, ...] = DEFAULT_IGNORE_LABELS
    major_labels: tuple[str, ...] = DEFAULT_MAJOR_LABELS
    minor_labels: tuple[str, ...] = DEFAULT_MINOR_LABELS
    patch_labels: tuple[str, ...] = DEFAULT_PATCH_LABELS


def _labels(table: Mapping[str, object], key: str, default: tuple[str, ...]) -> tuple[str, ...]:
    value = get_str_list(table, key)
    if value is None:
        return default
    return tuple(value)


def _bool(table: Mapping[str, object], key: str, default: bool) -> bool:
    value = get_bool(table, key)
    return default if value is None else value


@dataclass(frozen=True, slots=True)
class Config:
    """Main configuration container."""

    module: ModuleSettings = field(default_factory=ModuleSettings)
    release: ReleaseSettings = field(default_factory=ReleaseSettings)

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> Config:
        """Create Config from a mapping (parsed TOML)."""
        module: StrDict = get_table(data, "module") or {}
        release: StrDict = get_table(data, "release") or {}

        # An explicitly empty prefix is meaningful, so only a missing key
        # falls back to the default.
        prefix = release.get("version_prefix")
        version_prefix = prefix.strip() if isinstance(prefix, str) else DEFAULT_VERSION_PREFIX

        date_format = release.get("date_prerelease_format")

        return cls(
            module=ModuleSettings(
                name=get_str(module, "name"),
                source=get_str(module, "source") or "src",
                output=get_str(module, "output") or "outputs/module",
                guid=get_str(module, "guid"),
                author=get_str(module, "author"),
                company_name=get_str(module, "company_name"),
                copyright=get_str(module, "copyright"),
                description=get_str(module, "description"),
                powershell_version=get_str(module, "powershell_version"),
                compatible_ps_editions=_labels(module, "compatible_ps_editions", ()),
                required_assemblies=_labels(module, "required_assemblies", ()),
                tags=_labels(module, "tags", ()),
                license_uri=get_str(module, "license_uri"),
                project_uri=get_str(module, "project_uri"),
                icon_uri=get_str(module, "icon_uri"),
                release_notes=get_str(module, "release_notes"),
            ),
            release=ReleaseSettings(
                auto_cleanup=_bool(release, "auto_cleanup", True),
                auto_patching=_bool(release, "auto_patching", True),
                date_prerelease_format=date_format if isinstance(date_format, str) else "",
                incremental_prerelease=_bool(release, "incremental_prerelease", True),
                version_prefix=version_prefix,
                whatif=_bool(release, "whatif", False),
                ignore_labels=_labels(release, "ignore_labels", DEFAULT_IGNORE_LABELS),
                major_labels=_labels(release, "major_labels", DEFAULT_MAJOR_LABELS),
                minor_labels=_labels(release, "minor_labels", DEFAULT_MINOR_LABELS),
                patch_labels=_labels(release, "patch_labels", DEFAULT_PATCH_LABELS),
            ),
        )


def _parse_toml(path: Path) -> Result[StrDict, ConfigError]:
    """Parse a TOML file, handling IO and syntax errors."""
    import tomllib

    try:
        content = path.read_bytes()
        data_obj: object = tomllib.loads(content.decode("utf-8"))
        data = as_str_dict(data_obj)
        if data is None:
            return Err(ConfigError("Config root must be a TOML table", path=path))
        return Ok(data)
    except FileNotFoundError:
        return Err(ConfigError(f"Config file not found: {path}", path=path))
    except PermissionError:
        return Err(ConfigError(f"Permission denied reading: {path}", path=path))
    except tomllib.TOMLDecodeError as e:
        return Err(ConfigError(f"Invalid TOML syntax: {e}", path=path))
    except UnicodeDecodeError as e:
        return Err(ConfigError(f"Error reading config: {e}", path=path))


def load_config(path: Path) -> Result[Config, ConfigError]:
    """Load and parse configuration from a TOML file.

    Args:
        path: Path to psmb.toml

    Returns:
        Ok(Config) on success, Err(ConfigError) on failure
    """
    result = _parse_toml(path)
    if isinstance(result, Err):
        return result

    try:
        return Ok(Config.from_dict(result.value))
    except (KeyError, TypeError, ValueError) as e:
        return Err(ConfigError(f"Invalid config structure: {e}", path=path))
