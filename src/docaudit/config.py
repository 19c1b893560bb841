"""Application configuration defaults."""

from __future__ import annotations

import logging
from dataclasses import dataclass, fields
from pathlib import Path

import yaml

LOGGER = logging.getLogger(__name__)

CONFIG_FILENAME = ".docaudit.yml"

DEFAULT_EXCLUDES = (
    ".git",
    "node_modules",
    "temp",
    ".cache",
    "__pycache__",
    ".venv",
    "build",
    "dist",
)

REQUIRED_FIELDS = (
    "document_type",
    "domain",
    "audience",
    "complexity",
    "tags",
    "last_updated",
)

COMPLEXITY_LEVELS = ("beginner", "intermediate", "advanced", "reference")


@dataclass(slots=True)
class AppConfig:
    root: Path | None = None
    extension: str = ".md"
    exclude: tuple[str, ...] = DEFAULT_EXCLUDES
    entry_points: tuple[str, ...] = ("index.md",)
    stale_after_days: int = 90
    max_age_days: int = 1
    check_local_anchors: bool = False
    required_fields: tuple[str, ...] = REQUIRED_FIELDS
    complexity_levels: tuple[str, ...] = COMPLEXITY_LEVELS
    list_fields: tuple[str, ...] = ("tags", "audience")

    def __post_init__(self) -> None:
        if self.root is None:
            self.root = Path(".")

    def resolve_root(self, base_dir: Path | None = None) -> Path:
        if self.root is None:
            self.root = Path(".")
        if Path(self.root).is_absolute() or base_dir is None:
            return Path(self.root)
        return base_dir / self.root

    @classmethod
    def load(cls, root: Path, **overrides: object) -> "AppConfig":
        """Build a config for ``root``, applying ``.docaudit.yml`` when present.

        Keyword overrides (typically CLI options) win over the file.
        """
        values: dict[str, object] = {}
        config_path = Path(root) / CONFIG_FILENAME
        if config_path.is_file():
            values.update(_read_config_file(config_path))
        values.update({key: value for key, value in overrides.items() if value is not None})
        values["root"] = Path(root)
        return cls(**values)


def _read_config_file(path: Path) -> dict[str, object]:
    """Read known keys from a YAML config file, ignoring anything else."""
    with path.open("r", encoding="utf-8") as handle:
        raw = yaml.safe_load(handle) or {}
    if not isinstance(raw, dict):
        LOGGER.warning("Ignoring %s: expected a mapping at top level", path)
        return {}

    known = {item.name for item in fields(AppConfig)} - {"root"}
    values: dict[str, object] = {}
    for key, value in raw.items():
        if key not in known:
            LOGGER.warning("Ignoring unknown config key %r in %s", key, path)
            continue
        values[key] = tuple(value) if isinstance(value, list) else value
    return values
