"""
Interface to configuration as persisted in .yaml file.
"""
from __future__ import annotations

from logging import Logger
from pathlib import Path
from typing import Any, Self

from pydantic import (
    BaseModel,
    field_serializer,
    field_validator,
    model_validator,
)

from ..core.note import DEFAULT_BRANCH, RepoConfig
from ..sync.backend import DirectBackend, HttpBackend, SyncBackend
from .yaml_model import BaseYamlModel

__all__ = [
    "Config",
    "InstanceConfig",
]


class Config(BaseYamlModel):
    """
    Encapsulates configuration for use in tools.
    """

    root_cache_dir: Path | None = None
    """
    Root folder for per-instance local caches.
    """

    instances: dict[str, InstanceConfig]
    """
    Mapping of instance names to configs.
    """

    @field_serializer("root_cache_dir")
    def serialize_root_cache_dir(self, value: Path | None) -> str | None:
        return str(value) if isinstance(value, Path) else value

    @model_validator(mode="after")
    def validate_instances(self) -> Self:
        # propagate cache dir to instances if applicable
        if self.root_cache_dir:
            for instance_name, instance in self.instances.items():
                if not instance.cache_dir:
                    instance.cache_dir = self.root_cache_dir / instance_name
        return self


class InstanceConfig(BaseModel):
    """
    Encapsulates info for a mirrored repository.
    """

    owner: str
    repo: str
    branch: str = DEFAULT_BRANCH
    token: str | None = None
    cache_dir: Path | None = None

    server_url: str | None = None
    """
    Base URL of a sync server; if not set, the repository is accessed
    directly.
    """

    @field_validator("cache_dir", mode="before")
    def validate_cache_dir(cls, value: Any) -> Any:
        return _validate_dir(value)

    @field_serializer("cache_dir")
    def serialize_cache_dir(self, value: Path | None) -> str | None:
        return str(value) if isinstance(value, Path) else value

    @model_validator(mode="after")
    def validate_repo(self) -> Self:
        if not self.repo_config.is_complete:
            raise ValueError("owner and repo must not be empty")
        return self

    @property
    def repo_config(self) -> RepoConfig:
        return RepoConfig(owner=self.owner, repo=self.repo, branch=self.branch)

    def create_backend(self, token: str, *, logger: Logger) -> SyncBackend:
        """
        Get backend from this instance's fields.
        """
        if self.server_url:
            return HttpBackend(self.server_url, token)
        return DirectBackend(token, logger=logger)


def _validate_dir(value: Any) -> Any:
    """
    Coerce to path and ensure it isn't an existing file.
    """
    if not isinstance(value, (str, Path)):
        # let pydantic handle type error
        return value

    path = Path(value).expanduser()

    if path.exists() and not path.is_dir():
        raise ValueError(f"not a folder: '{path}'")

    return path
