# ABOUTME: click entry point of the aio-app CLI
# ABOUTME: Defines use, delete service, and list commands and maps errors to exit codes

"""aio-app command line interface."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any, TypeVar

import click
import httpx
import structlog
from pydantic import ValidationError

from app_console import __version__
from app_console.config import ConsoleSettings, load_settings
from app_console.context import CommandContext
from app_console.deletion import ServiceDeletion
from app_console.errors import AppError
from app_console.importer import (
    PROJECT_CONFIG_KEY,
    download_console_config,
    get_project_credential_type,
    import_console_config,
)
from app_console.selector import (
    ConfigSelector,
    UseOptions,
    load_current_configuration,
    load_global_configuration,
    validate_use_options,
)
from app_console.sync import ServiceSynchronizer
from app_console.utils.client import ConsoleError
from app_console.utils.logging import configure_logging, set_correlation_id

if TYPE_CHECKING:
    from collections.abc import Coroutine

    from app_console.models import ServiceProperty

logger = structlog.get_logger(__name__)

T = TypeVar("T")


def _run(coro: Coroutine[Any, Any, T]) -> T:
    """Run a command coroutine, turning expected failures into a clean exit 1."""
    try:
        return asyncio.run(coro)
    except (AppError, ConsoleError) as e:
        logger.debug("Command failed", error=str(e), error_type=type(e).__name__)
        raise click.ClickException(str(e)) from e
    except httpx.HTTPError as e:
        raise click.ClickException(f"Cannot reach the Adobe Developer Console: {e}") from e


# =============================================================================
# COMMAND BODIES
# =============================================================================


async def run_use(settings: ConsoleSettings, options: UseOptions) -> dict[str, Any]:
    """
    Body of `aio-app use`.

    Returns:
        The imported Console configuration
    """
    options = validate_use_options(options)
    logger.debug("use", options=options.model_dump())

    ctx = CommandContext.create(settings, interactive=not options.no_input)
    current = load_current_configuration(ctx)
    ctx.terminal.log(f"You are currently in:\n{current.describe()}\n")

    if options.config_file_path:
        return import_console_config(ctx, options.config_file_path, options.overwrite, options.merge)

    global_config = load_global_configuration(ctx)

    async with ctx.console_client() as client:
        target = await ConfigSelector(ctx, client).resolve(current, global_config, options)

        supported_services = await client.get_enabled_services_for_org(target.org.id)

        # Nothing to compare against without a complete current selection
        if current.is_complete:
            credential_type = get_project_credential_type(ctx.store.get(PROJECT_CONFIG_KEY), options.use_jwt)
            await ServiceSynchronizer(ctx, client).sync(
                current,
                target,
                supported_services,
                credential_type,
                no_service_sync=options.no_service_sync,
                confirm_service_sync=options.confirm_service_sync,
            )

        config = await download_console_config(client, target, supported_services)

    return import_console_config(ctx, config, options.overwrite, options.merge)


async def run_delete_service(settings: ConsoleSettings, use_jwt: bool = False) -> list[ServiceProperty] | None:
    """Body of `aio-app delete service`."""
    ctx = CommandContext.create(settings)
    async with ctx.console_client() as client:
        return await ServiceDeletion(ctx, client).run(use_jwt=use_jwt)


# =============================================================================
# CLICK COMMANDS
# =============================================================================


@click.group()
@click.version_option(__version__, prog_name="aio-app")
@click.option("--verbose", "-v", is_flag=True, default=False, help="Show debug logs on stderr.")
@click.option("--json-logs", is_flag=True, default=False, help="Render logs as JSON lines.")
@click.pass_context
def main(ctx: click.Context, verbose: bool, json_logs: bool) -> None:
    """Manage the Adobe Developer Console configuration of an app."""
    try:
        settings = load_settings()
    except ValidationError as e:
        raise click.ClickException(f"Invalid configuration: {e}") from e

    configure_logging(
        level="DEBUG" if verbose else settings.log_level,
        json_output=json_logs or settings.json_logs,
    )
    set_correlation_id("")
    ctx.obj = settings


@main.command()
@click.argument("config_file_path", required=False)
@click.option(
    "--overwrite",
    is_flag=True,
    default=False,
    help="Overwrite any .aio and .env files during import of the Adobe Developer Console configuration file",
)
@click.option(
    "--merge",
    is_flag=True,
    default=False,
    help="Merge any .aio and .env files during import of the Adobe Developer Console configuration file",
)
@click.option(
    "--global",
    "-g",
    "use_global",
    is_flag=True,
    default=False,
    help="Use the global Adobe Developer Console Org / Project / Workspace configuration, "
    "which can be set via `aio console` commands",
)
@click.option(
    "--workspace",
    "-w",
    default="",
    help="Specify the Adobe Developer Console Workspace name or Workspace id to import the configuration from",
)
@click.option("--workspace-name", default="", help="[DEPRECATED]: please use --workspace instead")
@click.option(
    "--confirm-new-workspace",
    is_flag=True,
    default=False,
    help="Skip and confirm prompt for creating a new workspace",
)
@click.option(
    "--no-service-sync",
    is_flag=True,
    default=False,
    help="Skip the Service sync prompt and do not attach current Service subscriptions to the new Workspace",
)
@click.option(
    "--confirm-service-sync",
    is_flag=True,
    default=False,
    help="Skip the Service sync prompt and overwrite Service subscriptions in the new Workspace "
    "with current subscriptions",
)
@click.option(
    "--no-input",
    is_flag=True,
    default=False,
    help="Skip user prompts by setting --no-service-sync and --merge. "
    "Requires one of config_file_path or --global or --workspace",
)
@click.option(
    "--use-jwt",
    is_flag=True,
    default=False,
    help="If the config has both JWT and OAuth Server to Server credentials (while migrating), "
    "prefer the JWT credentials",
)
@click.pass_obj
def use(settings: ConsoleSettings, config_file_path: str | None, **flags: Any) -> dict[str, Any]:
    """Import an Adobe Developer Console configuration file.

    If the optional configuration file is not set, this command will retrieve
    the console org, project, and workspace settings from the global config,
    or switch to another Workspace of the current Project.

    To download the configuration file for your project, select the 'Download'
    button in the toolbar of your project's page in https://developer.adobe.com/console
    """
    options = UseOptions(config_file_path=config_file_path, **flags)
    return _run(run_use(settings, options))


@main.group()
def delete() -> None:
    """Delete components of the app configuration."""


@delete.command(name="service")
@click.option(
    "--use-jwt",
    is_flag=True,
    default=False,
    help="If the config has both JWT and OAuth Server to Server credentials (while migrating), "
    "prefer the JWT credentials",
)
@click.pass_obj
def delete_service(settings: ConsoleSettings, use_jwt: bool) -> list[ServiceProperty] | None:
    """Delete Services in the current Workspace."""
    return _run(run_delete_service(settings, use_jwt=use_jwt))


delete.add_command(delete_service, name="services")


@main.command(name="list")
@click.pass_context
def list_components(ctx: click.Context) -> None:
    """List components for the app."""
    click.echo(ctx.get_help())


if __name__ == "__main__":
    main()
