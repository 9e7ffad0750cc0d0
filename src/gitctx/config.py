"""Configuration schema for gitctx."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from gitctx.exceptions import ConfigError
from gitctx.models import Flag, StatusPolicy

CONFIG_FILENAME = "gitctx.yaml"


class GitCtxConfig(BaseModel):
    """Complete gitctx configuration.

    Attributes:
        git_binary: Name or path of the git executable.
        flags: Behavior flags for every RepositoryContext built from this.
        remote: Remote whose branch counts as "the" upstream.
        default_branch: Branch on ``remote`` a clean copy must be contained in.
        status_policy: Which classifier decides Status.
        metadata_dir: Name of the metadata entry that marks a top level.

    Example:
        >>> config = GitCtxConfig(flags=[Flag.WARN])
        >>> config.status_policy
        <StatusPolicy.REMOTE_CONTAINMENT: 'remote_containment'>
    """

    git_binary: str = "git"
    flags: list[Flag] = Field(default_factory=list)
    remote: str = "origin"
    default_branch: str = "master"
    status_policy: StatusPolicy = StatusPolicy.REMOTE_CONTAINMENT
    metadata_dir: str = ".git"

    @field_validator("flags")
    @classmethod
    def dedupe_flags(cls, v: list[Flag]) -> list[Flag]:
        """Drop repeated flags, keeping first-seen order."""
        return list(dict.fromkeys(v))

    @field_validator("git_binary", "remote", "default_branch", "metadata_dir")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            msg = "must not be empty"
            raise ValueError(msg)
        return v

    def to_yaml(self) -> str:
        """Serialize the config to YAML.

        Returns:
            YAML string representation.
        """
        data = self.model_dump(mode="json")
        return yaml.dump(data, default_flow_style=False, sort_keys=False)

    def save(self, path: Path) -> None:
        path.write_text(self.to_yaml())

    @classmethod
    def from_yaml(cls, yaml_content: str) -> GitCtxConfig:
        """Parse config from YAML content.

        An empty document yields the defaults.

        Raises:
            ValueError: If the YAML is invalid or is not a mapping.
        """
        try:
            data: Any = yaml.safe_load(yaml_content)
        except yaml.YAMLError as e:
            msg = f"Invalid YAML: {e}"
            raise ValueError(msg) from e

        if data is None:
            data = {}
        if not isinstance(data, dict):
            msg = "Config YAML must be a mapping"
            raise ValueError(msg)

        return cls.model_validate(data)

    @classmethod
    def load(cls, path: Path) -> GitCtxConfig:
        """Load config from a YAML file.

        Raises:
            FileNotFoundError: If the file doesn't exist.
            ConfigError: If the content is invalid.
        """
        if not path.exists():
            msg = f"Config file not found: {path}"
            raise FileNotFoundError(msg)
        try:
            return cls.from_yaml(path.read_text())
        except ValidationError as e:
            field = ".".join(str(p) for p in e.errors()[0]["loc"]) if e.errors() else ""
            msg = f"Invalid config {path}: {e}"
            raise ConfigError(msg, config_path=path, field=field) from e
        except ValueError as e:
            raise ConfigError(str(e), config_path=path) from e

    @classmethod
    def default(cls) -> GitCtxConfig:
        return cls()
