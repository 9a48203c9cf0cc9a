"""Abstract base class for the backend gateway."""

from __future__ import annotations

import abc
from pathlib import Path

from sh_backups.core.models import (
    Account,
    CompanyRegistration,
    FileEvent,
    FolderInfo,
    UsageQuotaUpdate,
)


class BaseGateway(abc.ABC):
    """Operations the backup agent needs from the backend."""

    @abc.abstractmethod
    def find_account(self, api_key: str) -> Account:
        """Resolve the company account owning ``api_key``."""

    @abc.abstractmethod
    def register_company(self, registration: CompanyRegistration) -> Account:
        """Create a company account and return it with its API key."""

    @abc.abstractmethod
    def get_folder_size(self, api_key: str, tag: str) -> FolderInfo:
        """Return the total size of the objects stored under ``tag``."""

    @abc.abstractmethod
    def delete_files(self, api_key: str, tag: str) -> None:
        """Delete every object stored under ``tag``."""

    @abc.abstractmethod
    def upload_file(self, api_key: str, local_path: Path) -> None:
        """Upload a local file through a pre-authorized upload target."""

    @abc.abstractmethod
    def record_file_event(self, event: FileEvent) -> None:
        """Store an upload or delete metadata record."""

    @abc.abstractmethod
    def update_quota(self, update: UsageQuotaUpdate) -> None:
        """Apply a used-quota delta to the account."""
