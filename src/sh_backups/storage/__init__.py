"""Object storage registry."""

from __future__ import annotations

from sh_backups.core.models import Account
from sh_backups.storage.base import BaseStorage


def get_storage(account: Account) -> BaseStorage | None:
    """Build a storage view from the account's bucket settings.

    Returns None when the account does not carry a bucket and credentials.
    """
    if not (
            account.aws_bucket_name
            and account.aws_bucket_region
            and account.aws_access_key
            and account.aws_secret_key
    ):
        return None

    from sh_backups.storage.s3 import S3Storage

    return S3Storage(
        bucket=account.aws_bucket_name,
        region=account.aws_bucket_region,
        access_key=account.aws_access_key.get_secret_value(),
        secret_key=account.aws_secret_key.get_secret_value(),
    )


__all__ = ["BaseStorage", "get_storage"]
