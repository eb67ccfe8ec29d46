"""
Project configuration loaded from ``beanparse.toml``.

Example:

    [parser]
    source_name = "main.beancount"
    modules = ["core-beancount", "transactions", "custom-reporting"]

    [balancing]
    enabled = true

Every section is optional; missing values fall back to the defaults below.
"""

import tomllib
from dataclasses import dataclass, field
from pathlib import Path

from . import ir
from .errors import ConfigurationError

MANIFEST_NAME = "beanparse.toml"
DEFAULT_MODULES = ["core-beancount", "transactions", "custom-reporting"]


@dataclass
class ParserSettings:
    """Parser section."""

    source_name: str | None = None  # None: use the file name being parsed
    modules: list[str] = field(default_factory=lambda: list(DEFAULT_MODULES))


@dataclass
class BalancingSettings:
    """Balancing post-pass section."""

    enabled: bool = True


@dataclass
class ProjectManifest:
    parser: ParserSettings = field(default_factory=ParserSettings)
    balancing: BalancingSettings = field(default_factory=BalancingSettings)
    path: Path | None = None

    def build_config(self) -> ir.ParserConfig:
        """
        Parser configuration for the configured builtin modules.

        Raises:
            ConfigurationError: If a module name is not a builtin module
        """
        from ..ledger import builtin_modules

        return ir.create_parser_config(builtin_modules(self.parser.modules))

    def source_name_for(self, file: Path | None) -> str:
        if self.parser.source_name:
            return self.parser.source_name
        return file.name if file is not None else "stdin"


def load_manifest(path: Path) -> ProjectManifest:
    """
    Load ``beanparse.toml``.

    Raises:
        ConfigurationError: If the file is not valid TOML or has wrongly typed values
    """
    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as e:
        raise ConfigurationError(f"Invalid {path.name}: {e}") from e

    parser_data = data.get("parser", {})
    balancing_data = data.get("balancing", {})

    modules = parser_data.get("modules", DEFAULT_MODULES)
    if not isinstance(modules, list) or not all(isinstance(m, str) for m in modules):
        raise ConfigurationError(f"{path.name}: parser.modules must be a list of module names")

    enabled = balancing_data.get("enabled", True)
    if not isinstance(enabled, bool):
        raise ConfigurationError(f"{path.name}: balancing.enabled must be true or false")

    return ProjectManifest(
        parser=ParserSettings(
            source_name=parser_data.get("source_name"),
            modules=list(modules),
        ),
        balancing=BalancingSettings(enabled=enabled),
        path=path,
    )


def find_manifest(start: Path) -> Path | None:
    """Look for ``beanparse.toml`` in ``start`` and its parents."""
    start = start.resolve()
    directory = start if start.is_dir() else start.parent
    for candidate in [directory, *directory.parents]:
        manifest = candidate / MANIFEST_NAME
        if manifest.exists():
            return manifest
    return None
