# ABOUTME: Pytest fixtures and configuration for aio-app tests
# ABOUTME: Provides settings on temporary files, command contexts, and Console client doubles

import copy
import json
import os
from pathlib import Path
from typing import Any, AsyncIterator, Iterator
from unittest.mock import AsyncMock, MagicMock

import pytest
import structlog
from pydantic import SecretStr

from app_console.config import ConsoleSettings, SafetySettings
from app_console.context import CommandContext
from app_console.models import ConfigTuple, OrgRef, ProjectRef, ServiceProperty, WorkspaceRef
from app_console.utils.client import ConsoleClient
from app_console.utils.logging import AuditLogger
from app_console.utils.safety import SafetyGuard
from app_console.utils.store import ConfigStore
from app_console.utils.terminal import Terminal

PROJECT_CONFIG: dict[str, Any] = {
    "id": "proj-1",
    "name": "myproject",
    "title": "My Project",
    "org": {"id": "org-1", "name": "My Org", "ims_org_id": "ABC123@AdobeOrg"},
    "workspace": {
        "id": "ws-stage",
        "name": "Stage",
        "details": {
            "credentials": [
                {
                    "id": "cred-1",
                    "name": "aio-ws-stage",
                    "integration_type": "oauth_server_to_server",
                }
            ],
            "services": [],
            "runtime": {"namespaces": [{"name": "123-myproject-stage", "auth": "runtime-secret"}]},
        },
    },
}


@pytest.fixture(autouse=True)
def reset_structlog() -> Iterator[None]:
    """Undo configure_logging calls; CliRunner streams are closed after invoke."""
    yield
    structlog.reset_defaults()


def write_json(path: Path, data: dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data), encoding="utf-8")


@pytest.fixture
def project_config() -> dict[str, Any]:
    """A complete "project" key of a local .aio file."""
    return copy.deepcopy(PROJECT_CONFIG)


@pytest.fixture
def console_config(project_config: dict[str, Any]) -> dict[str, Any]:
    """A Console configuration as downloaded from a Workspace."""
    return {"project": project_config}


@pytest.fixture
def safety_settings(tmp_path: Path) -> SafetySettings:
    """Safety settings with the audit trail in a temporary file."""
    return SafetySettings(
        production_workspace_pattern=r"^Production$",
        mask_secrets=True,
        audit_log=tmp_path / "audit.log",
    )


@pytest.fixture
def settings(tmp_path: Path, safety_settings: SafetySettings) -> ConsoleSettings:
    """Settings pointing every file at a temporary directory."""
    return ConsoleSettings(
        console_url="https://console.example.com/console",
        access_token=SecretStr("test-token"),
        api_key="test-api-key",
        global_config_file=tmp_path / "config" / "aio",
        local_config_file=tmp_path / "app" / ".aio",
        env_file_path=tmp_path / "app" / ".env",
        data_dir=tmp_path / "data",
        safety=safety_settings,
    )


@pytest.fixture
def write_local(settings: ConsoleSettings):
    """Write the local .aio file."""

    def _write(data: dict[str, Any]) -> None:
        write_json(settings.local_config_file, data)

    return _write


@pytest.fixture
def write_global(settings: ConsoleSettings):
    """Write the global aio config file."""

    def _write(data: dict[str, Any]) -> None:
        write_json(settings.global_config_file, data)

    return _write


@pytest.fixture
def mock_terminal() -> MagicMock:
    """Terminal double; prompts answer with whatever the test configures."""
    terminal = MagicMock(spec=Terminal)
    terminal.confirm.return_value = True
    return terminal


@pytest.fixture
def command_context(settings: ConsoleSettings, mock_terminal: MagicMock) -> CommandContext:
    """Command context over temporary files, with a terminal double."""
    return CommandContext(
        settings=settings,
        store=ConfigStore(settings.global_config_file, settings.local_config_file),
        terminal=mock_terminal,
        audit=AuditLogger(settings.safety.audit_log),
        guard=SafetyGuard(settings.safety),
    )


@pytest.fixture
def read_audit(settings: ConsoleSettings):
    """Entries written to the audit file so far."""

    def _read() -> list[dict[str, Any]]:
        path = settings.safety.audit_log
        if path is None or not path.exists():
            return []
        return [json.loads(line) for line in path.read_text().splitlines() if line]

    return _read


@pytest.fixture
def supported_services() -> list[ServiceProperty]:
    """Services enabled for the Org."""
    return [
        ServiceProperty(name="Adobe Analytics", sdk_code="AdobeAnalyticsSDK", type="entp"),
        ServiceProperty(name="Adobe Target", sdk_code="AdobeTargetSDK", type="entp"),
        ServiceProperty(name="I/O Management API", sdk_code="AdobeIOManagementAPISDK", type="entp"),
    ]


@pytest.fixture
def current_tuple() -> ConfigTuple:
    """The selection the user is leaving."""
    return ConfigTuple(
        org=OrgRef(id="org-1", name="My Org"),
        project=ProjectRef(id="proj-1", name="myproject"),
        workspace=WorkspaceRef(id="ws-stage", name="Stage"),
    )


@pytest.fixture
def target_tuple() -> ConfigTuple:
    """A Workspace of the same Project."""
    return ConfigTuple(
        org=OrgRef(id="org-1", name="My Org"),
        project=ProjectRef(id="proj-1", name="myproject"),
        workspace=WorkspaceRef(id="ws-dev", name="Dev"),
    )


@pytest.fixture
def mock_console_client() -> AsyncMock:
    """Console client double usable with `async with`."""
    client = AsyncMock(spec=ConsoleClient)
    client.__aenter__.return_value = client
    client.__aexit__.return_value = None
    client.get_enabled_services_for_org.return_value = []
    client.get_workspaces.return_value = []
    client.get_service_properties.return_value = []
    client.subscribe_to_services.return_value = {}
    return client


# Integration test fixtures


@pytest.fixture
def console_token() -> str | None:
    """Get a Console access token from environment."""
    return os.environ.get("AIO_CONSOLE_ACCESS_TOKEN")


@pytest.fixture
def console_org_id() -> str | None:
    """Get the Org used by integration tests from environment."""
    return os.environ.get("AIO_TEST_ORG_ID")


@pytest.fixture
async def live_console_client(
    console_token: str | None,
    tmp_path: Path,
) -> AsyncIterator[ConsoleClient | None]:
    """Create a live Console client for integration tests."""
    if not console_token:
        yield None
        return

    live_settings = ConsoleSettings(
        access_token=SecretStr(console_token),
        console_url=os.environ.get("AIO_APP_CONSOLE_URL", "https://developers.adobe.io/console"),
        data_dir=tmp_path / "data",
    )
    async with ConsoleClient(live_settings, live_settings.access_token) as client:
        yield client
