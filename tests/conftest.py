"""Shared pytest fixtures."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from pathlib import Path

import pytest
import structlog

from sh_backups.core.exceptions import GatewayError
from sh_backups.core.models import (
    Account,
    CompanyRegistration,
    FileEvent,
    FolderInfo,
    UsageQuotaUpdate,
)
from sh_backups.gateway.base import BaseGateway
from sh_backups.storage.base import BaseStorage


class FakeGateway(BaseGateway):
    """In-memory gateway that records every call.

    Set ``fail`` to a set of operation names to make those calls raise.
    """

    def __init__(self, account: Account, folder_size: int = 0) -> None:
        self.account = account
        self.folder_size = folder_size
        self.fail: set[str] = set()
        self.uploaded: list[Path] = []
        self.deleted_tags: list[str] = []
        self.events: list[FileEvent] = []
        self.quota_updates: list[UsageQuotaUpdate] = []
        self.registrations: list[CompanyRegistration] = []

    def _maybe_fail(self, op: str) -> None:
        if op in self.fail:
            raise GatewayError(f"{op} failed", status_code=500)

    def find_account(self, api_key: str) -> Account:
        self._maybe_fail("find_account")
        return self.account

    def register_company(self, registration: CompanyRegistration) -> Account:
        self._maybe_fail("register_company")
        self.registrations.append(registration)
        return self.account

    def get_folder_size(self, api_key: str, tag: str) -> FolderInfo:
        self._maybe_fail("get_folder_size")
        return FolderInfo(total_size=self.folder_size)

    def delete_files(self, api_key: str, tag: str) -> None:
        self._maybe_fail("delete_files")
        self.deleted_tags.append(tag)
        self.folder_size = 0

    def upload_file(self, api_key: str, local_path: Path) -> None:
        self._maybe_fail("upload_file")
        self.uploaded.append(local_path)

    def record_file_event(self, event: FileEvent) -> None:
        self._maybe_fail("record_file_event")
        self.events.append(event)

    def update_quota(self, update: UsageQuotaUpdate) -> None:
        self._maybe_fail("update_quota")
        self.quota_updates.append(update)


class FakeStorage(BaseStorage):
    """Object store view backed by a set of keys."""

    def __init__(self, keys: set[str] | None = None) -> None:
        self.keys = keys if keys is not None else set()

    def exists(self, remote_key: str) -> bool:
        return remote_key in self.keys


@pytest.fixture()
def account() -> Account:
    """A company account with a 1000 byte quota, half used."""
    return Account(
        id="company-1",
        company_name="Acme Traders Pvt. Ltd.",
        local_folder_path="",
        total_usage_quota=1000,
        used_quota=500,
    )


@pytest.fixture()
def gateway(account: Account) -> FakeGateway:
    return FakeGateway(account)


@pytest.fixture()
def backup_dir(tmp_path: Path) -> Path:
    """Return an empty directory to drop archives into."""
    d = tmp_path / "tally"
    d.mkdir()
    return d


def _write_archive(folder: Path, name: str, content: bytes = b"PK\x03\x04data") -> Path:
    path = folder / name
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(content)
    return path


@pytest.fixture()
def make_archive() -> Callable[..., Path]:
    """Return a helper writing an archive (creating parent dirs) and returning its path."""
    return _write_archive


@pytest.fixture()
def storage() -> FakeStorage:
    return FakeStorage()


@pytest.fixture(autouse=True)
def reset_logging() -> Iterator[None]:
    """Drop handlers installed by setup_logging so they never outlive a test."""
    yield
    structlog.reset_defaults()
    root = logging.getLogger()
    for handler in root.handlers[:]:
        if isinstance(handler, logging.FileHandler):
            handler.close()
        root.removeHandler(handler)
