from ravesql.storage.backends.local import FileSystemResourceStore
from ravesql.storage.backends.package import PackageResourceStore

__all__ = ("FileSystemResourceStore", "PackageResourceStore")
