# ABOUTME: Typed records for Console organizations, projects, workspaces and services
# ABOUTME: Built from API responses and local configuration at the boundary

"""
Typed records for the Console hierarchy.

Console API responses and the .aio files are loosely shaped JSON. Everything
past the client/store boundary works on these frozen dataclasses instead,
so a missing field shows up as an empty string (and an incomplete
ConfigTuple) rather than a KeyError three calls later.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

NO_SELECTION = {
    "org": "<no org selected>",
    "project": "<no project selected>",
    "workspace": "<no workspace selected>",
}


class CredentialType(str, Enum):
    """Authentication scheme of the Workspace credential holding the Services."""

    JWT = "jwt"
    OAUTH_SERVER_TO_SERVER = "oauth_server_to_server"

    @property
    def integration_type(self) -> str:
        """Value of ``integration_type`` in Console credential payloads."""
        return "service" if self is CredentialType.JWT else "oauth_server_to_server"

    @property
    def api_kind(self) -> str:
        """Credential kind used in Console API paths."""
        return "entp" if self is CredentialType.JWT else "oauth_server_to_server"


def _str(value: Any) -> str:
    return "" if value is None else str(value)


@dataclass(frozen=True)
class OrgRef:
    id: str = ""
    name: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> OrgRef:
        data = data or {}
        return cls(id=_str(data.get("id")), name=_str(data.get("name")))


@dataclass(frozen=True)
class ProjectRef:
    id: str = ""
    name: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> ProjectRef:
        data = data or {}
        return cls(id=_str(data.get("id")), name=_str(data.get("name")))


@dataclass(frozen=True)
class WorkspaceRef:
    id: str = ""
    name: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> WorkspaceRef:
        data = data or {}
        return cls(id=_str(data.get("id")), name=_str(data.get("name")))

    def as_dict(self) -> dict[str, str]:
        return {"id": self.id, "name": self.name}


@dataclass(frozen=True)
class ServiceProperty:
    """
    A Service subscription (or an org-enabled Service).

    Identity is ``sdk_code``: two properties with the same code are the same
    Service even if their product profiles (license_configs) differ.
    """

    name: str
    sdk_code: str
    roles: list[dict[str, Any]] | None = field(default=None, compare=False)
    license_configs: list[dict[str, Any]] | None = field(default=None, compare=False)
    type: str | None = field(default=None, compare=False)

    @classmethod
    def from_api_response(cls, data: dict[str, Any]) -> ServiceProperty:
        """Build from a credential's ``serviceProperties`` entry."""
        return cls(
            name=_str(data.get("name")),
            sdk_code=_str(data.get("sdkCode") or data.get("code")),
            roles=data.get("roles"),
            license_configs=data.get("licenseConfigs"),
            type=data.get("type"),
        )

    @classmethod
    def from_org_service(cls, data: dict[str, Any]) -> ServiceProperty:
        """Build from an entry of the org services listing."""
        properties = data.get("properties") or {}
        return cls(
            name=_str(data.get("name")),
            sdk_code=_str(data.get("code")),
            roles=properties.get("roles"),
            license_configs=properties.get("licenseConfigs"),
            type=data.get("type"),
        )

    def to_subscription(self) -> dict[str, Any]:
        """Payload entry for a subscribe request."""
        return {
            "sdkCode": self.sdk_code,
            "roles": self.roles,
            "licenseConfigs": self.license_configs,
        }

    def to_config(self) -> dict[str, Any]:
        """Entry recorded in local configuration."""
        entry: dict[str, Any] = {"name": self.name, "code": self.sdk_code}
        if self.type:
            entry["type"] = self.type
        return entry


@dataclass(frozen=True)
class ConfigTuple:
    """
    The current selection: one Org, one Project, one Workspace.

    Only a complete tuple (all six id/name fields set) may be acted on or
    persisted.
    """

    org: OrgRef = field(default_factory=OrgRef)
    project: ProjectRef = field(default_factory=ProjectRef)
    workspace: WorkspaceRef = field(default_factory=WorkspaceRef)

    @property
    def is_complete(self) -> bool:
        return all(
            (
                self.org.id,
                self.org.name,
                self.project.id,
                self.project.name,
                self.workspace.id,
                self.workspace.name,
            )
        )

    @classmethod
    def from_project_config(cls, project: dict[str, Any] | None) -> ConfigTuple:
        """
        Build from the ``project`` key of a local .aio file.

        That shape nests org and workspace inside the project:
            {"id": ..., "name": ..., "org": {...}, "workspace": {...}}
        """
        project = project or {}
        return cls(
            org=OrgRef.from_dict(project.get("org")),
            project=ProjectRef.from_dict(project),
            workspace=WorkspaceRef.from_dict(project.get("workspace")),
        )

    @classmethod
    def from_console_config(cls, console: dict[str, Any] | None) -> ConfigTuple:
        """Build from the global ``console`` key ({org, project, workspace} side by side)."""
        console = console or {}
        return cls(
            org=OrgRef.from_dict(console.get("org")),
            project=ProjectRef.from_dict(console.get("project")),
            workspace=WorkspaceRef.from_dict(console.get("workspace")),
        )

    def with_workspace(self, workspace: WorkspaceRef) -> ConfigTuple:
        return ConfigTuple(org=self.org, project=self.project, workspace=workspace)

    def describe(self, indent: int = 0) -> str:
        """Three numbered lines naming the selection, for terminal output."""
        pad = " " * indent
        lines = [
            f"1. Org: {self.org.name or NO_SELECTION['org']}",
            f"2. Project: {self.project.name or NO_SELECTION['project']}",
            f"3. Workspace: {self.workspace.name or NO_SELECTION['workspace']}",
        ]
        return "\n".join(pad + line for line in lines)
