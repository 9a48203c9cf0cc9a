"""Pydantic models for sh-backups configuration and backend records."""

from __future__ import annotations

import enum
import re
import uuid
from datetime import datetime
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, SecretStr, field_validator

# ──────────────────────── Enums ──────────────────────────


class Mode(enum.StrEnum):
    """Operation selected for a single run."""

    REGISTER = "register"
    UPLOAD = "upload"
    DELETE = "delete"
    FORCE_DELETE = "force-delete"


class FileTxnType(enum.IntEnum):
    """Transaction type understood by the backend metadata and quota APIs."""

    UPLOAD = 1
    DELETE = 2


class RunOutcome(enum.StrEnum):
    """How an upload or delete run ended."""

    UPLOADED = "uploaded"
    ALREADY_UPLOADED = "already_uploaded"
    NOTHING_TO_DO = "nothing_to_do"
    DELETED = "deleted"
    UNDER_QUOTA = "under_quota"
    FAILED = "failed"


class LogFormat(enum.StrEnum):
    """Structured log output format."""

    CONSOLE = "console"
    JSON = "json"


# ──────────────────── Config Models ──────────────────────

DEFAULT_ARCHIVE_PREFIX = "Tallybackupason"
DEFAULT_LOC_TAG = "TallyBackups"


class ApiConfig(BaseModel):
    """Backend API connection settings."""

    api_key: SecretStr | None = None
    base_url: str | None = None
    timeout: float = 30.0

    @field_validator("base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str | None) -> str | None:
        return v.rstrip("/") if v else v


class BackupConfig(BaseModel):
    """What to look for locally and where it lands remotely."""

    archive_prefix: str = DEFAULT_ARCHIVE_PREFIX
    loc_tag: str = DEFAULT_LOC_TAG
    local_folder_path: Path | None = None


class LoggingConfig(BaseModel):
    """Logging settings."""

    level: str = "INFO"
    log_dir: Path | None = Path("logs")
    format: LogFormat = LogFormat.CONSOLE


class AppConfig(BaseModel):
    """Top-level application configuration."""

    api: ApiConfig = ApiConfig()
    backup: BackupConfig = BackupConfig()
    logging: LoggingConfig = LoggingConfig()


# ──────────────────── Backend Records ────────────────────

BACKEND_TIME_FORMAT = "%Y-%m-%dT%H:%M:%S"


class Account(BaseModel):
    """Company account as returned by the backend."""

    id: str
    created_at: datetime | None = None
    company_name: str = ""
    company_api_key: SecretStr | None = None
    local_folder_path: str = ""
    start_date: datetime | None = None
    end_date: datetime | None = None
    total_usage_quota: int | None = None
    used_quota: int | None = None
    aws_bucket_name: str = ""
    aws_bucket_region: str = ""
    aws_access_key: SecretStr | None = None
    aws_secret_key: SecretStr | None = None
    api_base_url: str = ""

    @field_validator("created_at", "start_date", "end_date", mode="before")
    @classmethod
    def parse_backend_time(cls, v: Any) -> Any:
        if v is None or v == "":
            return None
        if isinstance(v, str):
            return datetime.strptime(v[:19], BACKEND_TIME_FORMAT)
        return v

    @property
    def folder(self) -> str:
        """Remote folder name derived from the company name."""
        return slugify(self.company_name)


def _now_rfc3339() -> str:
    return datetime.now().astimezone().isoformat(timespec="seconds")


class FileEvent(BaseModel):
    """Metadata record written after every upload or delete."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    created_at: str = Field(default_factory=_now_rfc3339)
    file_name: str
    file_size: int | None = None
    file_key: str
    company_id: str
    file_txn_type: FileTxnType
    file_txn_meta: str = ""


class UsageQuotaUpdate(BaseModel):
    """Quota delta applied by the backend in the direction of ``file_txn_type``."""

    used_quota: int
    file_txn_type: FileTxnType


class CompanyRegistration(BaseModel):
    """Payload for registering a new company account."""

    company_name: str
    local_folder_path: str
    aws_bucket_name: str = ""
    aws_bucket_region: str = ""
    aws_access_key: str = ""
    aws_secret_key: str = ""


class PresignUploadRequest(BaseModel):
    file_name: str
    content_size: int
    loc_tag: str


class FileDeleteRequest(BaseModel):
    loc_tag: str


# Order matters: the storage service expects the policy fields before the file.
PRESIGNED_FORM_FIELDS = (
    "key",
    "x-amz-algorithm",
    "x-amz-credential",
    "x-amz-date",
    "policy",
    "x-amz-signature",
    "Content-Type",
)
PRESIGNED_FILE_FIELD = "file"


class PresignedUpload(BaseModel):
    """Pre-authorized upload target handed out by the backend."""

    url: str
    fields: dict[str, str] = Field(default_factory=dict)

    def form_fields(self) -> list[tuple[str, str]]:
        """Return the form fields to send ahead of the file part."""
        return [
            (name, self.fields[name])
            for name in PRESIGNED_FORM_FIELDS
            if self.fields.get(name)
        ]


class FolderInfo(BaseModel):
    """Total size of the stored objects under a location tag."""

    total_size: int = 0
    file_count: int | None = None


class ArchiveSelection(BaseModel):
    """The archive picked for upload by the selector."""

    path: Path
    size: int = Field(ge=0)

    @property
    def is_empty(self) -> bool:
        return self.size == 0


# ──────────────────── Helpers ────────────────────────────

_NON_ALNUM = re.compile(r"[^a-zA-Z0-9]+")


def slugify(value: str) -> str:
    """Lowercase ``value`` and collapse every non-alphanumeric run into a hyphen."""
    return _NON_ALNUM.sub("-", value.lower()).strip("-")


def human_size(nbytes: int) -> str:
    """Convert bytes to human-readable string."""
    for unit in ("B", "KB", "MB", "GB", "TB"):
        if abs(nbytes) < 1024:
            return f"{nbytes:.1f} {unit}"
        nbytes /= 1024  # type: ignore[assignment]
    return f"{nbytes:.1f} PB"
