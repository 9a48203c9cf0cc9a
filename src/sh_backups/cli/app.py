"""Main Typer application entry point for sh-backups CLI."""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime
from pathlib import Path

import typer
from rich.console import Console

from sh_backups import __version__
from sh_backups.cli.register import run_registration
from sh_backups.core.config import load_config, require_credentials
from sh_backups.core.exceptions import ConfigError, GatewayError, QuotaError
from sh_backups.core.models import LogFormat, Mode, RunOutcome
from sh_backups.core.quota import is_quota_exhausted
from sh_backups.core.runner import BackupRunner
from sh_backups.gateway.http import BackendGateway
from sh_backups.logging import get_logger, setup_logging
from sh_backups.storage import get_storage

app = typer.Typer(
    name="sh-backups",
    help="Ship the latest dated backup archive to cloud storage and keep usage under quota.",
    rich_markup_mode="rich",
    add_completion=False,
)
console = Console()

_MODE_KEY = "sh_backups.mode"


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"sh-backups {__version__}")
        raise typer.Exit()


def _mode_callback(mode: Mode) -> Callable[[typer.Context, bool], bool]:
    """Remember the first mode flag seen on the command line.

    Click processes parameters in command-line order, so the first flag
    given wins when several are passed.
    """

    def _callback(ctx: typer.Context, value: bool) -> bool:
        if value:
            ctx.meta.setdefault(_MODE_KEY, mode)
        return value

    return _callback


def _now() -> str:
    return datetime.now().astimezone().isoformat(timespec="seconds")


@app.command()
def run(
        ctx: typer.Context,
        register: bool = typer.Option(
            False, "--register", "-R", help="Register a new company and save its API key.",
            callback=_mode_callback(Mode.REGISTER),
        ),
        upload: bool = typer.Option(
            False, "--upload", "-U", help="Upload the latest archive (default).",
            callback=_mode_callback(Mode.UPLOAD),
        ),
        delete: bool = typer.Option(
            False, "--delete", "-D", help="Delete stored archives once the quota is reached.",
            callback=_mode_callback(Mode.DELETE),
        ),
        force_delete: bool = typer.Option(
            False, "--force-delete", "-FD", help="Delete stored archives regardless of quota.",
            callback=_mode_callback(Mode.FORCE_DELETE),
        ),
        config_path: Path | None = typer.Option(
            None, "--config", "-c", help="Path to a TOML config file."
        ),
        verbose: bool = typer.Option(
            False, "--verbose", "-v", help="Enable verbose (DEBUG) logging."
        ),
        log_json: bool = typer.Option(False, "--log-json", help="Output logs in JSON format."),
        version: bool = typer.Option(
            False,
            "--version",
            "-V",
            help="Show version and exit.",
            callback=_version_callback,
            is_eager=True,
        ),
) -> None:
    """Upload, delete or force-delete backup archives for one company."""
    mode: Mode = ctx.meta.get(_MODE_KEY, Mode.UPLOAD)
    log = get_logger("sh_backups")

    try:
        config = load_config(config_path)
    except ConfigError as exc:
        setup_logging(level="DEBUG" if verbose else "INFO")
        log.error("config_invalid", error=str(exc))
        raise typer.Exit(code=1) from exc

    level = "DEBUG" if verbose else config.logging.level
    fmt = LogFormat.JSON if log_json else config.logging.format
    setup_logging(level=level, log_dir=config.logging.log_dir, log_format=fmt)

    try:
        api_key, base_url = require_credentials(config, need_key=mode != Mode.REGISTER)
    except ConfigError as exc:
        log.error("config_invalid", error=str(exc))
        raise typer.Exit(code=1) from exc

    with BackendGateway(
            base_url,
            api_key,
            loc_tag=config.backup.loc_tag,
            timeout=config.api.timeout,
            log=log,
    ) as gateway:
        if mode == Mode.REGISTER:
            log.info("registration_started", at=_now())
            try:
                run_registration(gateway, base_url)
            except GatewayError as exc:
                log.error("registration_failed", error=str(exc))
                raise typer.Exit(code=1) from exc
            log.info("registration_completed", at=_now())
            return

        try:
            account = gateway.find_account(api_key)
        except GatewayError as exc:
            log.error("account_lookup_failed", error=str(exc))
            raise typer.Exit(code=1) from exc

        if is_quota_exhausted(account):
            log.error(
                "quota_exhausted",
                company=account.company_name,
                used_quota=account.used_quota,
                total_usage_quota=account.total_usage_quota,
            )
            raise typer.Exit(code=1)

        runner = BackupRunner(
            gateway,
            account,
            api_key,
            settings=config.backup,
            storage=get_storage(account),
            log=log,
        )

        log.info("operation_started", mode=mode.value, at=_now())
        try:
            if mode == Mode.UPLOAD:
                outcome = runner.upload()
            else:
                outcome = runner.delete(force=mode == Mode.FORCE_DELETE)
        except QuotaError as exc:
            log.error("quota_unknown", error=str(exc))
            raise typer.Exit(code=1) from exc
        log.info("operation_completed", mode=mode.value, outcome=outcome.value, at=_now())

    style = "red" if outcome == RunOutcome.FAILED else "green"
    console.print(f"[{style}]{mode.value}: {outcome.value}[/{style}]")


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
