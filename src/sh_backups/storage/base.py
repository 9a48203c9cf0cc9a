"""Abstract base class for object storage lookups."""

from __future__ import annotations

import abc


class BaseStorage(abc.ABC):
    """Read-only view of the remote object store."""

    @abc.abstractmethod
    def exists(self, remote_key: str) -> bool:
        """Check if an object with ``remote_key`` is already stored."""
