"""Configuration models for the WPT sync tool."""

import json
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Any

import yaml

from ..errors import ConfigError

YAML_SUFFIXES = (".yaml", ".yml")


@dataclass
class FileEntry:
    """A single file to sync from the WPT repository."""

    src: str  # Path within the WPT repository
    dst: str  # Path relative to target_dir
    enabled: bool | None = None  # None means "not set", treated as enabled
    patch: str | None = None  # Patch file applied after download

    @property
    def is_enabled(self) -> bool:
        """Entries are active unless explicitly disabled."""
        return self.enabled is not False

    @property
    def normalized_src(self) -> str:
        """Source path without leading separators."""
        return self.src.lstrip("/")

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result: dict[str, Any] = {
            "src": self.src,
            "dst": self.dst,
        }

        # Optional fields are omitted when unset
        if self.enabled is not None:
            result["enabled"] = self.enabled
        if self.patch:
            result["patch"] = self.patch

        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "FileEntry":
        """Create from dictionary."""
        if not isinstance(data, dict):
            raise ConfigError(f"file entry must be an object, got {type(data).__name__}")

        for key in ("src", "dst"):
            if not isinstance(data.get(key), str) or not data[key]:
                raise ConfigError(f"file entry is missing {key!r}: {data}")

        enabled = data.get("enabled")
        if enabled is not None and not isinstance(enabled, bool):
            raise ConfigError(f"file entry {data['src']!r}: enabled must be true or false")

        patch = data.get("patch")
        if patch is not None and not isinstance(patch, str):
            raise ConfigError(f"file entry {data['src']!r}: patch must be a string")

        return cls(
            src=data["src"],
            dst=data["dst"],
            enabled=enabled,
            patch=patch or None,
        )


@dataclass
class WptConfig:
    """Pinned sync state stored in wpt.json."""

    commit: str = ""
    target_dir: str = ""
    files: list[FileEntry] = field(default_factory=list)

    def validate(self) -> None:
        """Check that the config can drive a sync.

        Raises:
            ConfigError: If commit or target_dir is empty
        """
        if not self.commit:
            raise ConfigError("config: commit hash must be provided")
        if not self.target_dir:
            raise ConfigError("config: target_dir must be provided")

    def has_source(self, src: str) -> bool:
        """Check if an entry for the given WPT path already exists."""
        return any(f.src == src for f in self.files)

    def destination(self, root: Path, entry: FileEntry) -> Path:
        """Resolve where an entry is written.

        dst is always relative to target_dir, even when written with a
        leading slash.

        Args:
            root: Directory containing the config file
            entry: File entry to resolve

        Returns:
            Absolute destination path

        Raises:
            ConfigError: If dst escapes target_dir
        """
        target = Path(root) / self.target_dir
        relative = PurePosixPath(entry.dst.lstrip("/"))
        if ".." in relative.parts:
            raise ConfigError(f"dst {entry.dst!r} escapes target_dir {self.target_dir!r}")
        return target.joinpath(*relative.parts)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "commit": self.commit,
            "target_dir": self.target_dir,
            "files": [f.to_dict() for f in self.files],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "WptConfig":
        """Create from dictionary."""
        if not isinstance(data, dict):
            raise ConfigError("config must be a JSON object")

        files_data = data.get("files") or []
        if not isinstance(files_data, list):
            raise ConfigError("config: files must be a list")

        for key in ("commit", "target_dir"):
            value = data.get(key)
            if value is not None and not isinstance(value, str):
                raise ConfigError(f"config: {key} must be a string")

        return cls(
            commit=data.get("commit") or "",
            target_dir=data.get("target_dir") or "",
            files=[FileEntry.from_dict(f) for f in files_data],
        )

    @classmethod
    def load(cls, config_path: Path) -> "WptConfig":
        """Load configuration from a JSON (or YAML) file.

        Raises:
            ConfigError: If the file is missing or malformed
        """
        config_path = Path(config_path)
        try:
            with open(config_path) as f:
                if config_path.suffix in YAML_SUFFIXES:
                    data = yaml.safe_load(f) or {}
                else:
                    data = json.load(f)
        except FileNotFoundError as e:
            raise ConfigError(f"open config {str(config_path)!r}: file not found") from e
        except OSError as e:
            raise ConfigError(f"open config {str(config_path)!r}: {e}") from e
        except (json.JSONDecodeError, yaml.YAMLError) as e:
            raise ConfigError(f"decode config {str(config_path)!r}: {e}") from e

        try:
            return cls.from_dict(data)
        except ConfigError as e:
            raise e.add_context(f"decode config {str(config_path)!r}")

    def save(self, config_path: Path) -> None:
        """Save configuration, overwriting the file."""
        config_path = Path(config_path)
        with open(config_path, "w") as f:
            if config_path.suffix in YAML_SUFFIXES:
                yaml.dump(self.to_dict(), f, default_flow_style=False, sort_keys=False)
            else:
                json.dump(self.to_dict(), f, indent=2)
                f.write("\n")
