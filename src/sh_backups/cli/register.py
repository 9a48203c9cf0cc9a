"""Interactive one-time company registration."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console

from sh_backups.core.config import write_license_file
from sh_backups.core.exceptions import GatewayError
from sh_backups.core.models import CompanyRegistration
from sh_backups.gateway.base import BaseGateway
from sh_backups.logging import get_logger

console = Console()
log = get_logger(__name__)


def run_registration(gateway: BaseGateway, base_url: str, license_path: Path | None = None) -> Path:
    """Register a company and write its credential file.

    Returns the path of the written credential file.
    """
    company_name = typer.prompt("Enter Company Name").strip()
    local_folder = typer.prompt("Enter Local Folder Path").strip()

    registration = CompanyRegistration(company_name=company_name, local_folder_path=local_folder)
    log.info("registering_company", company_name=company_name, local_folder=local_folder)

    account = gateway.register_company(registration)
    if account.company_api_key is None:
        raise GatewayError("Backend did not return an API key for the new company")

    path = write_license_file(
        account.company_api_key.get_secret_value(),
        account.api_base_url or base_url,
        license_path,
    )
    log.info("company_registered", company_name=account.company_name, license_file=str(path))
    console.print(f"[green]✓[/green] Company registered, credentials saved to {path}")
    return path
