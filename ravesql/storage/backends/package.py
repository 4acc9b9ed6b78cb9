"""Packaged resource store built on :mod:`importlib.resources`."""

from importlib import resources
from types import ModuleType
from typing import TYPE_CHECKING, Union

from ravesql.exceptions import ResourceNotFoundError

if TYPE_CHECKING:
    from importlib.abc import Traversable

__all__ = ("PackageResourceStore",)


class PackageResourceStore:
    """Serve SQL resources shipped inside an importable package.

    Example:
        ```python
        store = PackageResourceStore("myapp")
        store.fetch("sql/select_by_id.sql")  # myapp/sql/select_by_id.sql
        ```
    """

    __slots__ = ("package",)

    def __init__(self, package: "Union[str, ModuleType]") -> None:
        self.package = package

    def __repr__(self) -> str:
        name = self.package if isinstance(self.package, str) else self.package.__name__
        return f"{type(self).__name__}(package={name!r})"

    def _traversable(self, path: str) -> "Traversable":
        parts = [part for part in path.split("/") if part]
        if not parts or ".." in parts:
            raise ResourceNotFoundError(path)
        try:
            resource = resources.files(self.package)
        except ModuleNotFoundError as error:
            raise ResourceNotFoundError(path) from error
        for part in parts:
            resource = resource.joinpath(part)
        return resource

    def exists(self, path: str) -> bool:
        try:
            return self._traversable(path).is_file()
        except ResourceNotFoundError:
            return False

    def fetch(self, path: str) -> bytes:
        """Read the packaged resource at ``path``.

        Raises:
            ResourceNotFoundError: If the package or the resource does not exist.
            OSError: If the resource exists but cannot be read.
        """
        resource = self._traversable(path)
        if not resource.is_file():
            raise ResourceNotFoundError(path)
        return resource.read_bytes()
