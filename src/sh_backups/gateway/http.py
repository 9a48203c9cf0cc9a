"""HTTP implementation of the backend gateway."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import httpx
import structlog
from pydantic import ValidationError

from sh_backups.core.exceptions import GatewayError
from sh_backups.core.models import (
    DEFAULT_LOC_TAG,
    PRESIGNED_FILE_FIELD,
    Account,
    CompanyRegistration,
    FileDeleteRequest,
    FileEvent,
    FolderInfo,
    PresignedUpload,
    PresignUploadRequest,
    UsageQuotaUpdate,
)
from sh_backups.gateway.base import BaseGateway
from sh_backups.gateway.errors import format_error_body
from sh_backups.logging import get_logger

API_KEY_HEADER = "X-Company-Api-Key"

_OK = frozenset({200})
_OK_OR_CREATED = frozenset({200, 201})
_OK_OR_NO_CONTENT = frozenset({200, 204})


class BackendGateway(BaseGateway):
    """Talk to the backup backend over its REST API."""

    def __init__(
            self,
            base_url: str,
            api_key: str = "",
            loc_tag: str = DEFAULT_LOC_TAG,
            timeout: float = 30.0,
            client: httpx.Client | None = None,
            log: structlog.stdlib.BoundLogger | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.loc_tag = loc_tag
        self._client = client or httpx.Client(timeout=timeout)
        self._log = log or get_logger(__name__)

    def __enter__(self) -> BackendGateway:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    # ──────────────────── plumbing ────────────────────────

    def _url(self, path: str) -> str:
        return f"{self.base_url}{path}"

    def _headers(self, api_key: str | None = None) -> dict[str, str]:
        return {API_KEY_HEADER: api_key if api_key is not None else self.api_key}

    def _request(
            self,
            method: str,
            url: str,
            action: str,
            expected: frozenset[int] = _OK,
            **kwargs: Any,
    ) -> httpx.Response:
        """Send a request and raise GatewayError unless the status is expected."""
        try:
            response = self._client.request(method, url, **kwargs)
        except httpx.HTTPError as exc:
            self._log.error("gateway_transport_error", action=action, error=str(exc))
            raise GatewayError(f"Failed to {action}: {exc}") from exc

        if response.status_code not in expected:
            detail = format_error_body(response.status_code, response.content)
            self._log.error(
                "gateway_unexpected_status",
                action=action,
                status=response.status_code,
                detail=detail,
            )
            raise GatewayError(
                f"Unexpected status {response.status_code} when trying to {action}",
                status_code=response.status_code,
                detail=detail,
            )
        return response

    @staticmethod
    def _decode(response: httpx.Response, model: type, action: str) -> Any:
        try:
            return model.model_validate_json(response.content)
        except ValidationError as exc:
            raise GatewayError(f"Failed to decode response to {action}: {exc}") from exc

    # ──────────────────── operations ──────────────────────

    def find_account(self, api_key: str) -> Account:
        action = "fetch company by API key"
        response = self._request(
            "GET", self._url("/api/companies/by-api-key"), action, headers=self._headers(api_key)
        )
        return self._decode(response, Account, action)

    def register_company(self, registration: CompanyRegistration) -> Account:
        action = "register company"
        self._log.info("register_company", company_name=registration.company_name)
        response = self._request(
            "POST",
            self._url("/api/companies"),
            action,
            expected=_OK_OR_CREATED,
            json=registration.model_dump(mode="json"),
        )
        return self._decode(response, Account, action)

    def get_folder_size(self, api_key: str, tag: str) -> FolderInfo:
        action = "get folder size"
        response = self._request(
            "GET",
            self._url("/api/filemeta/folder/size"),
            action,
            headers=self._headers(api_key),
            params={"loc_tag": tag},
        )
        info = self._decode(response, FolderInfo, action)
        self._log.info("folder_size_fetched", tag=tag, total_size=info.total_size)
        return info

    def delete_files(self, api_key: str, tag: str) -> None:
        self._request(
            "POST",
            self._url("/api/companies/delete/files"),
            "delete files",
            headers=self._headers(api_key),
            json=FileDeleteRequest(loc_tag=tag).model_dump(),
        )
        self._log.info("files_deleted", tag=tag)

    def _presign_upload(self, api_key: str, local_path: Path) -> PresignedUpload:
        action = "fetch presigned upload url"
        try:
            content_size = local_path.stat().st_size
        except OSError as exc:
            raise GatewayError(f"Cannot stat {local_path}: {exc}") from exc
        body = PresignUploadRequest(
            file_name=local_path.name,
            content_size=content_size,
            loc_tag=self.loc_tag,
        )
        response = self._request(
            "POST",
            self._url("/api/companies/generate/presigned/url/upload"),
            action,
            headers=self._headers(api_key),
            json=body.model_dump(),
        )
        return self._decode(response, PresignedUpload, action)

    def upload_file(self, api_key: str, local_path: Path) -> None:
        target = self._presign_upload(api_key, local_path)
        self._log.info("upload_start", file=local_path.name)

        try:
            with open(local_path, "rb") as fh:
                self._request(
                    "POST",
                    target.url,
                    "upload file",
                    expected=_OK_OR_NO_CONTENT,
                    data=dict(target.form_fields()),
                    files={PRESIGNED_FILE_FIELD: (local_path.name, fh, "application/zip")},
                )
        except OSError as exc:
            raise GatewayError(f"Failed to open {local_path}: {exc}") from exc

        self._log.info("upload_complete", file=local_path.name)

    def record_file_event(self, event: FileEvent) -> None:
        self._request(
            "POST",
            self._url("/api/filemeta"),
            "insert file metadata",
            expected=_OK_OR_CREATED,
            headers=self._headers(),
            json=event.model_dump(mode="json"),
        )

    def update_quota(self, update: UsageQuotaUpdate) -> None:
        self._request(
            "PATCH",
            self._url("/api/companies/quota"),
            "update company quota",
            headers=self._headers(),
            json=update.model_dump(mode="json"),
        )
