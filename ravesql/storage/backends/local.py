"""Local file system resource store.

A zero-dependency store for SQL files kept in a directory tree.
"""

from pathlib import Path, PurePosixPath
from typing import Union
from urllib.parse import unquote, urlparse

from ravesql.exceptions import ResourceNotFoundError

__all__ = ("FileSystemResourceStore",)


class FileSystemResourceStore:
    """Serve SQL resources from a directory.

    Logical paths are always relative to ``root`` and use ``/`` as separator, so
    ``"sql/select_by_id.sql"`` resolves to ``<root>/sql/select_by_id.sql`` on every
    platform. Paths that would escape the root are reported as not found.
    """

    __slots__ = ("root",)

    def __init__(self, root: "Union[str, Path, None]" = None) -> None:
        """Initialize the store.

        Args:
            root: Directory, path string or ``file://`` URI. Defaults to the current working directory.
        """
        if root is None:
            self.root = Path.cwd().resolve()
        elif isinstance(root, str) and root.startswith("file://"):
            self.root = Path(unquote(urlparse(root).path)).resolve()
        else:
            self.root = Path(root).resolve()

    def __repr__(self) -> str:
        return f"{type(self).__name__}(root={str(self.root)!r})"

    def _resolve_path(self, path: str) -> Path:
        logical = PurePosixPath(path)
        if logical.is_absolute() or ".." in logical.parts:
            raise ResourceNotFoundError(path)
        return self.root.joinpath(*logical.parts)

    def exists(self, path: str) -> bool:
        try:
            return self._resolve_path(path).is_file()
        except ResourceNotFoundError:
            return False

    def fetch(self, path: str) -> bytes:
        """Read the file stored at ``path``.

        Raises:
            ResourceNotFoundError: If no regular file exists at ``path``.
            OSError: If the file exists but cannot be read.
        """
        resolved = self._resolve_path(path)
        if not resolved.is_file():
            raise ResourceNotFoundError(path)
        try:
            return resolved.read_bytes()
        except FileNotFoundError as error:
            raise ResourceNotFoundError(path) from error
