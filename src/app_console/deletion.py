# ABOUTME: Deletion of Service subscriptions from the current Workspace
# ABOUTME: Prompts for Services to remove, confirms, and republishes the reduced list

"""Service Deletion Flow for ``aio-app delete service``."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from app_console.errors import ConfigurationError, NoServicesError
from app_console.importer import (
    PROJECT_CONFIG_KEY,
    get_project_credential_type,
    set_org_services_config,
    set_workspace_services_config,
)
from app_console.models import ConfigTuple
from app_console.utils.client import ConsoleError

if TYPE_CHECKING:
    from app_console.context import CommandContext
    from app_console.models import ServiceProperty
    from app_console.utils.client import ConsoleClient

logger = structlog.get_logger(__name__)


class ServiceDeletion:
    """Removes selected Service subscriptions from the Workspace in .aio."""

    def __init__(self, ctx: CommandContext, client: ConsoleClient) -> None:
        self._ctx = ctx
        self._client = client

    def _prompt_for_remaining_services(
        self,
        workspace_name: str,
        current: list[ServiceProperty],
    ) -> list[ServiceProperty] | None:
        """
        Ask which subscriptions to delete and return the ones that stay.

        None when nothing was selected, or when everything was: a Workspace
        left with no subscriptions is not something this command produces.
        """
        to_remove = self._ctx.terminal.select_many(
            f"Select Service subscriptions to delete in Workspace {workspace_name}",
            [(f"{s.name} ({s.sdk_code})", s.sdk_code) for s in current],
        )
        if not to_remove:
            self._ctx.terminal.log("No Services selected, nothing to be done")
            return None

        remaining = [s for s in current if s.sdk_code not in to_remove]
        if not remaining:
            self._ctx.terminal.log(
                "All Services selected, a Workspace cannot be left without Service subscriptions. "
                "Nothing to be done"
            )
            return None
        return remaining

    async def run(self, use_jwt: bool = False) -> list[ServiceProperty] | None:
        """
        Run the deletion flow.

        Returns:
            The new subscription list, or None if nothing was changed

        Raises:
            ConfigurationError: .aio does not hold a complete selection
            NoServicesError: The Workspace has no subscriptions
            ConsoleError: Any remote failure, unmodified
        """
        ctx = self._ctx
        project_config = ctx.store.get(PROJECT_CONFIG_KEY)
        selection = ConfigTuple.from_project_config(project_config)
        if not selection.is_complete:
            raise ConfigurationError(
                "Incomplete .aio configuration, please import a valid Adobe Developer Console "
                "configuration via `aio-app use` first."
            )

        org_id = selection.org.id
        project, workspace = selection.project, selection.workspace
        target_path = f"{org_id}/{project.id}/{workspace.id}"

        supported_services = await self._client.get_enabled_services_for_org(org_id)
        credential_type = get_project_credential_type(project_config, use_jwt)
        logger.debug("Deleting services", workspace=workspace.name, credential_type=credential_type.value)

        current = await self._client.get_service_properties(
            org_id,
            project.id,
            workspace,
            supported_services,
            credential_type,
        )

        set_org_services_config(ctx, supported_services)
        set_workspace_services_config(ctx, current)
        ctx.store.save()

        if not current:
            raise NoServicesError(f"No Services are attached to Workspace {workspace.name}")

        remaining = self._prompt_for_remaining_services(workspace.name, current)
        if remaining is None:
            return None

        warning = ctx.guard.production_warning(project.name, workspace.name)
        if warning:
            ctx.terminal.warn(warning)

        summary = ctx.guard.confirmation(
            "delete_services",
            f"Workspace '{workspace.name}' in Project '{project.name}'",
            f"Confirm new Service subscriptions for Workspace {workspace.name}?",
            {
                "Services to keep": [s.name for s in remaining],
                "Services to delete": [s.name for s in current if s not in remaining],
            },
        )
        ctx.terminal.info(summary.format_message())
        if not ctx.terminal.confirm(summary.question):
            ctx.audit.log_skipped("subscribe_services", target_path, "declined by user")
            return None

        # The credential exists: current subscriptions were read through it
        try:
            await self._client.subscribe_to_services(
                org_id,
                project,
                workspace,
                None,
                remaining,
                credential_type,
            )
        except ConsoleError as e:
            ctx.audit.log_error("subscribe_services", target_path, str(e))
            raise
        ctx.audit.log_write(
            "subscribe_services",
            target_path,
            {"services": [s.sdk_code for s in remaining]},
        )

        set_workspace_services_config(ctx, remaining)
        ctx.store.save()
        ctx.terminal.success(f"Successfully deleted selected Service Subscriptions in Workspace {workspace.name}")
        return remaining
