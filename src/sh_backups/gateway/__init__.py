"""Backend gateway: account, metadata, quota and transfer operations."""

from __future__ import annotations

from sh_backups.gateway.base import BaseGateway
from sh_backups.gateway.http import BackendGateway

__all__ = ["BackendGateway", "BaseGateway"]
