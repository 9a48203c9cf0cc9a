"""Quota rules deciding whether stored backups get purged."""

from __future__ import annotations

from sh_backups.core.exceptions import QuotaError
from sh_backups.core.models import Account


def should_delete(current_usage: int, total_quota: int | None, force: bool = False) -> bool:
    """Decide whether the stored backups should be deleted.

    Args:
        current_usage: Bytes currently stored remotely.
        total_quota: The account's quota in bytes. Must be known unless ``force``.
        force: Skip the quota comparison.

    Raises:
        QuotaError: If ``force`` is off and ``total_quota`` is unknown.
    """
    if current_usage <= 0:
        return False
    if force:
        return True
    if total_quota is None:
        raise QuotaError("Total usage quota is unknown; refusing to evaluate deletion")
    return current_usage >= total_quota


def is_quota_exhausted(account: Account) -> bool:
    """Return True when the account has used up its whole quota."""
    if account.total_usage_quota is None or account.used_quota is None:
        return False
    return account.used_quota >= account.total_usage_quota
