from typing import Protocol, runtime_checkable

__all__ = ("ResourceStore",)


@runtime_checkable
class ResourceStore(Protocol):
    """Read-only source of raw SQL resources addressed by logical path.

    Implementations raise :class:`~ravesql.exceptions.ResourceNotFoundError` when
    nothing exists at ``path``. Any other exception is treated as a read fault by
    the resource cache.
    """

    def fetch(self, path: str) -> bytes:
        """Return the raw bytes stored at ``path``."""
        ...

    def exists(self, path: str) -> bool:
        """Check if a resource exists at ``path``."""
        ...
