"""Repository configuration."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Optional, Union

from ravesql.cache import DEFAULT_ENCODING
from ravesql.exceptions import ImproperConfigurationError
from ravesql.parameters.styles import ParameterStyle
from ravesql.storage.backends.local import FileSystemResourceStore
from ravesql.storage.backends.package import PackageResourceStore

if TYPE_CHECKING:
    from ravesql.storage.protocol import ResourceStore

__all__ = ("RepositoryConfig",)


@dataclass
class RepositoryConfig:
    """Configuration for a :class:`~ravesql.repository.RaveRepository`."""

    resource_root: "Optional[Union[str, Path]]" = None
    """Directory SQL paths are resolved against. Defaults to the current working directory."""

    resource_package: "Optional[str]" = None
    """Package whose bundled resources hold the SQL files. Takes precedence over ``resource_root``."""

    encoding: str = DEFAULT_ENCODING
    """Text encoding of the SQL files."""

    parameter_style: "Optional[Union[ParameterStyle, str]]" = None
    """Paramstyle of the database driver. None reads it from the driver module."""

    preload_paths: "list[str]" = field(default_factory=list)
    """SQL paths loaded into the cache when the repository is created."""

    def __post_init__(self) -> None:
        if self.parameter_style is not None:
            try:
                self.parameter_style = ParameterStyle(self.parameter_style)
            except ValueError as e:
                msg = f"Unsupported parameter_style {self.parameter_style!r}"
                raise ImproperConfigurationError(msg) from e
        if isinstance(self.preload_paths, str):
            msg = "preload_paths must be a list of paths, not a single string"
            raise ImproperConfigurationError(msg)

    def create_store(self) -> "ResourceStore":
        """Build the resource store this configuration describes."""
        if self.resource_package:
            return PackageResourceStore(self.resource_package)
        return FileSystemResourceStore(self.resource_root)
