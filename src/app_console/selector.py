# ABOUTME: Resolution of the target Org/Project/Workspace for `aio-app use`
# ABOUTME: Validates flags, reads current and global selections, picks or creates a Workspace

"""Config Selector.

Decides which Org / Project / Workspace ``aio-app use`` switches to:

- the global selection made with ``aio console`` (--global),
- another Workspace of the current Project (--workspace, or a prompt),
- or a Console configuration file (handled by the importer, see cli.py).
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

import structlog
from pydantic import BaseModel, Field

from app_console.errors import ConfigurationError, FlagConflictError, OperationAborted
from app_console.importer import CONSOLE_CONFIG_KEY, PROJECT_CONFIG_KEY
from app_console.models import ConfigTuple, WorkspaceRef

if TYPE_CHECKING:
    from app_console.context import CommandContext
    from app_console.utils.client import ConsoleClient

logger = structlog.get_logger(__name__)

WORKSPACE_NAME_PATTERN = re.compile(r"^[a-zA-Z0-9]+$")
WORKSPACE_NAME_MAX_LENGTH = 45

USE_GLOBAL = "global"
USE_WORKSPACE = "workspace"
CREATE_WORKSPACE = object()


class UseOptions(BaseModel):
    """Flags and argument of `aio-app use`."""

    config_file_path: str | None = Field(default=None, description="Console configuration file to import")
    overwrite: bool = Field(default=False, description="Overwrite .aio and .env on import")
    merge: bool = Field(default=False, description="Merge into .aio and .env on import")
    use_global: bool = Field(default=False, description="Use the global Org/Project/Workspace")
    workspace: str = Field(default="", description="Workspace name or id in the current Project")
    workspace_name: str = Field(default="", description="Deprecated alias of workspace")
    confirm_new_workspace: bool = Field(default=False, description="Create a missing Workspace without asking")
    no_service_sync: bool = Field(default=False, description="Skip the Service sync")
    confirm_service_sync: bool = Field(default=False, description="Sync Services without asking")
    no_input: bool = Field(default=False, description="Never prompt")
    use_jwt: bool = Field(default=False, description="Prefer JWT credentials over OAuth server-to-server")


def validate_use_options(options: UseOptions) -> UseOptions:
    """
    Check flag combinations and derive the --no-input defaults.

    Runs before anything touches the network.

    Returns:
        The options with workspace_name folded into workspace and, under
        --no-input, no_service_sync and merge filled in.

    Raises:
        FlagConflictError: On mutually exclusive flags or arguments
    """
    workspace = options.workspace
    if options.workspace_name:
        logger.warning("--workspace-name is deprecated, use --workspace")
        if workspace and workspace != options.workspace_name:
            raise FlagConflictError("Flags '--workspace' and '--workspace-name' cannot be used together.")
        workspace = options.workspace_name

    if options.config_file_path and (workspace or options.use_global):
        raise FlagConflictError(
            "Flags '--workspace' and '--global' cannot be used together with arg 'config_file_path'."
        )
    if options.use_global and workspace:
        raise FlagConflictError("Flags '--global' and '--workspace' cannot be used together.")
    if options.overwrite and options.merge:
        raise FlagConflictError("Flags '--overwrite' and '--merge' cannot be used together.")
    if options.no_service_sync and options.confirm_service_sync:
        raise FlagConflictError(
            "Flags '--no-service-sync' and '--confirm-service-sync' cannot be used together."
        )

    update: dict[str, object] = {"workspace": workspace, "workspace_name": ""}
    if options.no_input:
        if not (options.config_file_path or workspace or options.use_global):
            raise FlagConflictError(
                "Flag '--no-input', requires one of: arg 'config_file_path', "
                "flag '--workspace' or flag '--global'"
            )
        update["no_service_sync"] = not options.confirm_service_sync
        update["merge"] = not options.overwrite

    return options.model_copy(update=update)


def load_current_configuration(ctx: CommandContext) -> ConfigTuple:
    """Selection recorded in the local .aio (the "project" key)."""
    return ConfigTuple.from_project_config(ctx.store.get(PROJECT_CONFIG_KEY))


def load_global_configuration(ctx: CommandContext) -> ConfigTuple:
    """Selection made with the aio console commands (the global "console" key)."""
    return ConfigTuple.from_console_config(ctx.store.get(CONSOLE_CONFIG_KEY))


def _validate_workspace_name(name: str) -> str | None:
    if not name:
        return "Workspace name is required"
    if len(name) > WORKSPACE_NAME_MAX_LENGTH:
        return f"Workspace name must be at most {WORKSPACE_NAME_MAX_LENGTH} characters"
    if not WORKSPACE_NAME_PATTERN.match(name):
        return "Workspace name may only contain letters and digits"
    return None


class ConfigSelector:
    """Resolves the target ConfigTuple of `aio-app use`."""

    def __init__(self, ctx: CommandContext, client: ConsoleClient) -> None:
        self._ctx = ctx
        self._client = client

    def _prompt_for_use_operation(self, global_config: ConfigTuple) -> str:
        return self._ctx.terminal.select(
            "Switch to a new Adobe Developer Console configuration:",
            [
                (
                    "A. Use the global Org / Project / Workspace configuration:\n"
                    + global_config.describe(4),
                    USE_GLOBAL,
                ),
                ("B. Switch to another Workspace in the current Project", USE_WORKSPACE),
            ],
        )

    async def resolve(
        self,
        current: ConfigTuple,
        global_config: ConfigTuple,
        options: UseOptions,
    ) -> ConfigTuple:
        """
        Target selection for the given flags.

        Raises:
            ConfigurationError: The selection to start from is incomplete
            OperationAborted: The user declined to create a missing Workspace
        """
        if options.use_global:
            operation = USE_GLOBAL
        elif options.workspace:
            operation = USE_WORKSPACE
        else:
            operation = self._prompt_for_use_operation(global_config)

        if operation == USE_GLOBAL:
            if not global_config.is_complete:
                raise ConfigurationError(
                    "Your global Console configuration is incomplete.\n"
                    "Use the `aio console` commands to select your Organization, Project, and Workspace."
                )
            return global_config

        if not current.is_complete:
            raise ConfigurationError(
                "Incomplete .aio configuration. Cannot select a new Workspace in same Project.\n"
                "Please import a valid Adobe Developer Console configuration file via "
                "`aio-app use <config>.json`."
            )
        workspace = await self.select_target_workspace(current, options)
        return current.with_workspace(workspace)

    async def select_target_workspace(self, current: ConfigTuple, options: UseOptions) -> WorkspaceRef:
        """
        Workspace of the current Project to switch to, created if needed.

        With --workspace the flag value is matched against ids and names and
        nothing is prompted unless the Workspace is missing.
        """
        org, project = current.org, current.project
        name_or_id = options.workspace

        workspaces = await self._client.get_workspaces(org.id, project.id)

        selected: WorkspaceRef | None
        if name_or_id:
            selected = next(
                (w for w in workspaces if name_or_id in (w.id, w.name)),
                None,
            )
        else:
            choice = self._ctx.terminal.select(
                f"Select a Workspace in Project '{project.name}':",
                [(w.name, w) for w in workspaces] + [("+ Create new Workspace", CREATE_WORKSPACE)],
            )
            selected = None if choice is CREATE_WORKSPACE else choice

        if selected is not None:
            return WorkspaceRef(id=selected.id, name=selected.name)

        if name_or_id:
            logger.debug("Workspace not found in project", workspace=name_or_id, project=project.name)
            if not options.confirm_new_workspace:
                create = self._ctx.terminal.confirm(
                    f"Workspace '{name_or_id}' does not exist \n > Do you wish to create a new workspace?"
                )
                if not create:
                    raise OperationAborted("Workspace creation aborted")
            name, title = name_or_id, ""
        else:
            name, title = self._prompt_for_workspace_details()

        logger.debug("Creating workspace", workspace=name)
        workspace = await self._client.create_workspace(org.id, project.id, name, title)
        self._ctx.audit.log_write(
            "create_workspace",
            f"{org.id}/{project.id}/{workspace.id}",
            {"name": name},
        )
        self._ctx.terminal.info(f"✔ Created Workspace '{workspace.name}' in Project '{project.name}'.")
        return WorkspaceRef(id=workspace.id, name=workspace.name)

    def _prompt_for_workspace_details(self) -> tuple[str, str]:
        name = self._ctx.terminal.text("Name of the new Workspace", validate=_validate_workspace_name)
        title = self._ctx.terminal.text("Title of the new Workspace (optional)", default="")
        return name, title
