"""AWS S3 lookups against the account's bucket."""

from __future__ import annotations

from typing import Any

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

from sh_backups.core.exceptions import StorageError
from sh_backups.logging import get_logger
from sh_backups.storage.base import BaseStorage

log = get_logger(__name__)

_MISSING_CODES = frozenset({"404", "NoSuchKey", "NotFound"})


class S3Storage(BaseStorage):
    """Query an S3 bucket with static credentials."""

    def __init__(
            self,
            bucket: str,
            region: str,
            access_key: str,
            secret_key: str,
            client: Any = None,
    ) -> None:
        self.bucket = bucket
        self.region = region

        if client is None:
            boto_config = BotoConfig(region_name=region)
            session = boto3.Session(
                aws_access_key_id=access_key,
                aws_secret_access_key=secret_key,
                region_name=region,
            )
            client = session.client("s3", config=boto_config)
        self._client = client

    def exists(self, remote_key: str) -> bool:
        """Check if an object exists in S3.

        Raises:
            StorageError: On failures other than the object being absent.
        """
        try:
            self._client.head_object(Bucket=self.bucket, Key=remote_key)
        except ClientError as exc:
            code = str(exc.response.get("Error", {}).get("Code", ""))
            if code in _MISSING_CODES:
                log.info("s3_object_missing", bucket=self.bucket, key=remote_key)
                return False
            raise StorageError(f"Failed to get S3 object metadata: {exc}") from exc
        except BotoCoreError as exc:
            raise StorageError(f"Failed to reach S3: {exc}") from exc
        log.info("s3_object_found", bucket=self.bucket, key=remote_key)
        return True
