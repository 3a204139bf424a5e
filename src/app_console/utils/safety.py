# ABOUTME: Safety utilities for the aio-app CLI
# ABOUTME: Production Workspace guard, cross-org refusal, and confirmation messages

"""Safety checks around Service subscription overwrites."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import structlog

if TYPE_CHECKING:
    from app_console.config import SafetySettings
    from app_console.models import ConfigTuple

logger = structlog.get_logger(__name__)


@dataclass
class ConfirmationRequired:
    """Summary shown before a destructive operation is confirmed."""

    operation: str
    target: str
    impact: str
    question: str
    details: dict[str, Any] = field(default_factory=dict)

    def format_message(self) -> str:
        """Format the summary for the terminal (the question is asked separately)."""
        lines = [
            f"{self.operation}",
            f"Target: {self.target}",
            f"Impact: {self.impact}",
        ]

        if self.details:
            lines.append("")
            for key, value in self.details.items():
                if isinstance(value, list):
                    lines.append(f"{key}:")
                    lines.extend(f"  - {item}" for item in value)
                    if not value:
                        lines.append("  (none)")
                else:
                    lines.append(f"{key}: {value}")

        return "\n".join(lines)


@dataclass
class OperationBlocked:
    """An operation the CLI refuses to perform, and what to do instead."""

    operation: str
    reason: str
    remedy: str

    def format_message(self) -> str:
        return f"⚠ {self.reason}\n⚠ {self.remedy}"


class SafetyGuard:
    """Guards for operations that overwrite Service subscriptions."""

    def __init__(self, settings: SafetySettings) -> None:
        self._settings = settings
        self._production = re.compile(settings.production_workspace_pattern, re.IGNORECASE)

    def is_production_workspace(self, workspace_name: str) -> bool:
        return bool(workspace_name) and self._production.search(workspace_name) is not None

    def production_warning(self, project_name: str, workspace_name: str) -> str | None:
        """Warning text when Services of a production Workspace are about to be overwritten.

        Returns:
            The warning, or None for non-production Workspaces
        """
        if not self.is_production_workspace(workspace_name):
            return None
        logger.debug("Production workspace targeted", project=project_name, workspace=workspace_name)
        return (
            f"⚠ Warning: you are authorizing to overwrite Services in your *{workspace_name}* "
            f"Workspace in Project '{project_name}'. This may break any Applications that "
            f"currently use existing Service subscriptions in this {workspace_name} Workspace."
        )

    def check_cross_org(self, current: ConfigTuple, target: ConfigTuple) -> OperationBlocked | None:
        """Refuse Service sync between Orgs.

        The target Org may not support every Service of the current one, and
        nothing here verifies that, so the user subscribes by hand.
        """
        if current.org.id == target.org.id:
            return None
        return OperationBlocked(
            operation="sync_services",
            reason=(
                f"Target Project '{target.project.name}' is in a different Org than the "
                f"current Project '{current.project.name}'."
            ),
            remedy=(
                "Services cannot be synced across Orgs, please make sure to subscribe to "
                "missing Services manually in the Adobe Developer Console."
            ),
        )

    def confirmation(
        self,
        operation: str,
        target: str,
        question: str,
        details: dict[str, Any] | None = None,
    ) -> ConfirmationRequired:
        return ConfirmationRequired(
            operation=operation,
            target=target,
            impact=self._get_impact_description(operation),
            question=question,
            details=details or {},
        )

    @staticmethod
    def _get_impact_description(operation: str) -> str:
        """Get human-readable impact description for operation."""
        impacts = {
            "delete_services": "Selected Service subscriptions will be REMOVED from the Workspace",
        }
        return impacts.get(operation, "This operation may have significant impact")
