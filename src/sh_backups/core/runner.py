"""Upload and delete runs for a single company account."""

from __future__ import annotations

from pathlib import Path

import structlog

from sh_backups.core.exceptions import GatewayError, StorageError
from sh_backups.core.models import (
    Account,
    BackupConfig,
    FileEvent,
    FileTxnType,
    RunOutcome,
    UsageQuotaUpdate,
    human_size,
)
from sh_backups.core.quota import should_delete
from sh_backups.core.selector import select_latest
from sh_backups.gateway.base import BaseGateway
from sh_backups.logging import get_logger
from sh_backups.storage.base import BaseStorage


class BackupRunner:
    """Carry out one upload or delete run end to end.

    The primary operation (upload or delete) decides the outcome. The
    metadata record and quota update that follow it are best effort: their
    failures are logged and never undo the primary operation.
    """

    def __init__(
            self,
            gateway: BaseGateway,
            account: Account,
            api_key: str,
            settings: BackupConfig | None = None,
            storage: BaseStorage | None = None,
            log: structlog.stdlib.BoundLogger | None = None,
    ) -> None:
        self.gateway = gateway
        self.account = account
        self.api_key = api_key
        self.settings = settings or BackupConfig()
        self.storage = storage
        self.log = log or get_logger(__name__)

    @property
    def local_folder(self) -> Path | None:
        if self.settings.local_folder_path is not None:
            return self.settings.local_folder_path
        if self.account.local_folder_path:
            return Path(self.account.local_folder_path)
        return None

    # ──────────────────── upload ──────────────────────────

    def upload(self) -> RunOutcome:
        """Ship the latest archive unless it is already stored remotely."""
        folder = self.local_folder
        if folder is None:
            self.log.error("no_local_folder", company=self.account.company_name)
            return RunOutcome.NOTHING_TO_DO

        selection = select_latest(folder, prefix=self.settings.archive_prefix)
        if selection is None or selection.is_empty:
            self.log.error(
                "archive_not_found",
                folder=str(folder),
                found=str(selection.path) if selection else None,
            )
            return RunOutcome.NOTHING_TO_DO

        file_name = selection.path.name
        remote_key = f"{self.account.folder}/{file_name}"
        if self._already_stored(remote_key):
            self.log.info("archive_already_uploaded", key=remote_key)
            return RunOutcome.ALREADY_UPLOADED

        try:
            self.gateway.upload_file(self.api_key, selection.path)
        except GatewayError as exc:
            self.log.error("upload_failed", file=file_name, error=str(exc))
            return RunOutcome.FAILED
        self.log.info("archive_uploaded", file=file_name, key=remote_key)

        try:
            size = selection.path.stat().st_size
        except OSError as exc:
            self.log.error("uploaded_file_stat_failed", file=file_name, error=str(exc))
            return RunOutcome.UPLOADED

        self._record(
            FileEvent(
                file_name=file_name,
                file_size=size,
                file_key=file_name,
                company_id=self.account.id,
                file_txn_type=FileTxnType.UPLOAD,
                file_txn_meta="Uploaded to S3",
            )
        )
        self._update_quota(size, FileTxnType.UPLOAD)
        return RunOutcome.UPLOADED

    def _already_stored(self, remote_key: str) -> bool:
        if self.storage is None:
            self.log.warning("existence_check_skipped", key=remote_key)
            return False
        try:
            return self.storage.exists(remote_key)
        except StorageError as exc:
            self.log.warning("existence_check_failed", key=remote_key, error=str(exc))
            return False

    # ──────────────────── delete ──────────────────────────

    def delete(self, force: bool = False) -> RunOutcome:
        """Purge the stored archives when over quota, or unconditionally with ``force``.

        Raises:
            QuotaError: If ``force`` is off and the account quota is unknown.
        """
        tag = self.settings.loc_tag
        try:
            content_size = self.gateway.get_folder_size(self.api_key, tag).total_size
        except GatewayError as exc:
            self.log.error("folder_size_failed", tag=tag, error=str(exc))
            return RunOutcome.FAILED

        if content_size == 0:
            self.log.info("no_stored_files", tag=tag)
            return RunOutcome.NOTHING_TO_DO

        if not should_delete(content_size, self.account.total_usage_quota, force=force):
            self.log.info("under_quota", size=human_size(content_size))
            return RunOutcome.UNDER_QUOTA

        try:
            self.gateway.delete_files(self.api_key, tag)
        except GatewayError as exc:
            self.log.error("delete_failed", tag=tag, error=str(exc))
            return RunOutcome.FAILED

        folder = self.account.folder
        self._record(
            FileEvent(
                file_name=folder,
                file_size=content_size,
                file_key=f"{folder}/",
                company_id=self.account.id,
                file_txn_type=FileTxnType.DELETE,
                file_txn_meta="Deleted files in S3",
            )
        )
        self._update_quota(content_size, FileTxnType.DELETE)
        self.log.info("stored_files_deleted", tag=tag, size=human_size(content_size), forced=force)
        return RunOutcome.DELETED

    # ──────────────────── bookkeeping ─────────────────────

    def _record(self, event: FileEvent) -> None:
        try:
            self.gateway.record_file_event(event)
        except GatewayError as exc:
            self.log.error(
                "file_metadata_failed",
                file_txn_type=event.file_txn_type.name.lower(),
                error=str(exc),
            )

    def _update_quota(self, used: int, txn_type: FileTxnType) -> None:
        try:
            self.gateway.update_quota(UsageQuotaUpdate(used_quota=used, file_txn_type=txn_type))
        except GatewayError as exc:
            self.log.error("quota_update_failed", error=str(exc))
