# ABOUTME: Service subscription synchronisation between two Workspaces
# ABOUTME: Compares sdk codes, refuses cross-org syncs, confirms and republishes

"""
Service Synchronizer.

=============================================================================
WHAT IS THIS FILE?
=============================================================================

After ``aio-app use`` has picked a target Workspace, the app code in the
checkout still expects the Services (APIs) of the Workspace it came from.
This module compares both subscription lists and, when they differ, offers
to copy the current subscriptions onto the target.

=============================================================================
ONE PASS, FIVE ENDINGS
=============================================================================

    START ─┬─ --no-service-sync ─────────────────────────────> NO_SYNC
           ├─ same sdk codes ───────────────────────────────> EQUAL
           ├─ different Orgs ───────────────────────────────> CROSS_ORG_REFUSED
           └─ confirm? ─┬─ no ──────────────────────────────> DECLINED
                        └─ yes / --confirm-service-sync ───> SYNCED

Only SYNCED touches the Console. It replaces the target's subscriptions
wholesale; nothing is rolled back if a later step of the command fails.

KNOWN LIMITATION:
-----------------
Comparison is by sdk code only. Two Workspaces subscribed to the same
Service with different product profiles count as equal.
"""

from __future__ import annotations

import json
from collections.abc import Hashable, Set
from enum import Enum
from typing import TYPE_CHECKING

import structlog

from app_console.utils.client import ConsoleError

if TYPE_CHECKING:
    from app_console.context import CommandContext
    from app_console.models import ConfigTuple, CredentialType, ServiceProperty
    from app_console.utils.client import ConsoleClient

logger = structlog.get_logger(__name__)


class SyncOutcome(str, Enum):
    """Terminal state of one synchronisation pass."""

    NO_SYNC = "no_sync"
    EQUAL = "equal"
    CROSS_ORG_REFUSED = "cross_org_refused"
    DECLINED = "declined"
    SYNCED = "synced"


def equal_sets(set_a: Set[Hashable], set_b: Set[Hashable]) -> bool:
    """True iff both sets have the same size and every element of set_a is in set_b."""
    if len(set_a) != len(set_b):
        return False
    return all(a in set_b for a in set_a)


def _names(services: list[ServiceProperty]) -> str:
    return json.dumps([s.name for s in services], indent=2)


class ServiceSynchronizer:
    """Reconciles the Services of a target Workspace with the current one."""

    def __init__(self, ctx: CommandContext, client: ConsoleClient) -> None:
        self._ctx = ctx
        self._client = client

    async def sync(
        self,
        current: ConfigTuple,
        target: ConfigTuple,
        supported_services: list[ServiceProperty],
        credential_type: CredentialType,
        no_service_sync: bool = False,
        confirm_service_sync: bool = False,
    ) -> SyncOutcome:
        """
        Run one synchronisation pass.

        Args:
            current: Complete selection the user is leaving
            target: Complete selection the user is switching to
            supported_services: Services enabled for the target Org
            credential_type: Credential the subscriptions go through
            no_service_sync: Skip everything (--no-service-sync)
            confirm_service_sync: Do not ask before overwriting (--confirm-service-sync)

        Raises:
            ConsoleError: Any remote failure, unmodified
        """
        terminal = self._ctx.terminal
        target_path = f"{target.org.id}/{target.project.id}/{target.workspace.id}"

        if no_service_sync:
            terminal.info("Skipping Services sync as '--no-service-sync=true'")
            terminal.info(
                "Please verify Service subscriptions manually for the new Org/Project/Workspace configuration."
            )
            return SyncOutcome.NO_SYNC

        current_services = await self._client.get_service_properties(
            current.org.id,
            current.project.id,
            current.workspace,
            supported_services,
            credential_type,
        )
        target_services = await self._client.get_service_properties(
            target.org.id,
            target.project.id,
            target.workspace,
            supported_services,
            credential_type,
        )

        if equal_sets(
            {s.sdk_code for s in current_services},
            {s.sdk_code for s in target_services},
        ):
            logger.debug("Service subscriptions already match", workspace=target.workspace.name)
            return SyncOutcome.EQUAL

        workspace_name = target.workspace.name
        project_name = target.project.name

        terminal.warn(
            "⚠ Services attached to the target Workspace do not match Service subscriptions "
            "in the current Workspace."
        )

        blocked = self._ctx.guard.check_cross_org(current, target)
        if blocked:
            terminal.warn(blocked.format_message())
            self._ctx.audit.log_skipped("subscribe_services", target_path, blocked.reason)
            return SyncOutcome.CROSS_ORG_REFUSED

        terminal.info(
            f"The '{workspace_name}' Workspace in Project '{project_name}' subscribes to the "
            f"following Services:\n{_names(target_services)}"
        )
        terminal.info(
            "Your project requires the following Services based on your current Project / "
            f"Workspace configuration:\n{_names(current_services)}"
        )

        warning = self._ctx.guard.production_warning(project_name, workspace_name)
        if warning:
            terminal.warn(warning)

        if not confirm_service_sync:
            confirmed = terminal.confirm(
                f"\nDo you want to sync and update Services for Workspace '{workspace_name}' "
                f"in Project '{project_name}' now ?"
            )
            if not confirmed:
                terminal.info(
                    "Service will not be synced, make sure to manually add missing Services "
                    "from the Developer Console."
                )
                self._ctx.audit.log_skipped("subscribe_services", target_path, "declined by user")
                return SyncOutcome.DECLINED

        try:
            await self._client.subscribe_to_services(
                target.org.id,
                target.project,
                target.workspace,
                self._ctx.settings.cert_dir,
                current_services,
                credential_type,
            )
        except ConsoleError as e:
            self._ctx.audit.log_error("subscribe_services", target_path, str(e))
            raise
        self._ctx.audit.log_write(
            "subscribe_services",
            target_path,
            {"services": [s.sdk_code for s in current_services]},
        )
        terminal.info(
            f"✔ Successfully updated Services in Project {project_name} and Workspace {workspace_name}."
        )
        return SyncOutcome.SYNCED
