"""Resource stores that serve raw SQL text by logical path."""

from ravesql.storage.backends import FileSystemResourceStore, PackageResourceStore
from ravesql.storage.protocol import ResourceStore

__all__ = ("FileSystemResourceStore", "PackageResourceStore", "ResourceStore")
