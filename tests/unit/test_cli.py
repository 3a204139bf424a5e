# ABOUTME: Unit tests for the aio-app command line interface
# ABOUTME: Tests use, delete service, and list end to end with a Console client double

import json
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, patch

import pytest
from click.testing import CliRunner

from app_console import __version__
from app_console.cli import main
from app_console.config import ConsoleSettings
from app_console.context import CommandContext
from app_console.models import ServiceProperty, WorkspaceRef
from app_console.utils.client import ConsoleError

A = ServiceProperty(name="Service A", sdk_code="A")
B = ServiceProperty(name="Service B", sdk_code="B")

GLOBAL_CONSOLE = {
    "console": {
        "org": {"id": "org-2", "name": "Global Org"},
        "project": {"id": "proj-2", "name": "globalproject"},
        "workspace": {"id": "ws-g", "name": "Stage"},
    }
}


def _download(project_config: dict[str, Any], **overrides: Any) -> dict[str, Any]:
    project = json.loads(json.dumps(project_config))
    for key, value in overrides.items():
        if key in ("org", "workspace"):
            project[key].update(value)
        else:
            project[key] = value
    return {"project": project}


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def invoke(runner: CliRunner, settings: ConsoleSettings, mock_console_client: AsyncMock):
    """Run the CLI with test settings and the Console client double."""

    def _invoke(*args: str, input: str | None = None):
        with (
            patch("app_console.cli.load_settings", return_value=settings),
            patch.object(CommandContext, "console_client", return_value=mock_console_client) as factory,
        ):
            result = runner.invoke(main, list(args), input=input)
        result.client_factory = factory
        return result

    return _invoke


def _local(settings: ConsoleSettings) -> dict[str, Any]:
    return json.loads(settings.local_config_file.read_text())


@pytest.mark.unit
class TestMainGroup:
    """Tests for the command group."""

    def test_version(self, invoke):
        """Test --version prints the package version."""
        result = invoke("--version")

        assert result.exit_code == 0
        assert __version__ in result.output

    def test_list(self, invoke):
        """Test list prints its help."""
        result = invoke("list")

        assert result.exit_code == 0
        assert "List components for the app." in result.output

    def test_verbose_configures_debug_logging(self, invoke):
        """Test -v switches logging to DEBUG."""
        with patch("app_console.cli.configure_logging") as configure:
            invoke("-v", "list")

        configure.assert_called_once_with(level="DEBUG", json_output=False)


@pytest.mark.unit
class TestUseCommand:
    """Tests for `aio-app use`."""

    def test_config_file_with_workspace_conflict(self, invoke, tmp_path: Path, console_config: dict):
        """Test a config file plus --workspace fails before any remote call."""
        path = tmp_path / "console.json"
        path.write_text(json.dumps(console_config))

        result = invoke("use", str(path), "--workspace", "Dev")

        assert result.exit_code == 1
        assert "cannot be used together" in result.output
        result.client_factory.assert_not_called()

    def test_overwrite_with_merge_conflict(self, invoke):
        """Test --overwrite and --merge are exclusive."""
        result = invoke("use", "--global", "--overwrite", "--merge")

        assert result.exit_code == 1
        assert "'--overwrite' and '--merge'" in result.output

    def test_no_input_requires_target(self, invoke):
        """Test --no-input alone is rejected."""
        result = invoke("use", "--no-input")

        assert result.exit_code == 1
        assert "requires one of" in result.output

    def test_import_config_file(
        self,
        invoke,
        settings: ConsoleSettings,
        tmp_path: Path,
        console_config: dict,
    ):
        """Test importing a file writes .aio and .env without the Console."""
        path = tmp_path / "console.json"
        path.write_text(json.dumps(console_config))

        result = invoke("use", str(path))

        assert result.exit_code == 0, result.output
        assert "You are currently in:" in result.output
        assert "Successfully imported configuration" in result.output
        assert _local(settings)["project"]["id"] == "proj-1"
        assert "AIO_RUNTIME_AUTH" in settings.env_file_path.read_text()
        result.client_factory.assert_not_called()

    def test_import_missing_file(self, invoke, tmp_path: Path):
        """Test a missing config file is a clean error."""
        result = invoke("use", str(tmp_path / "nope.json"))

        assert result.exit_code == 1
        assert "Cannot find Console configuration file" in result.output

    def test_global_no_input(
        self,
        invoke,
        settings: ConsoleSettings,
        write_local,
        write_global,
        project_config: dict,
        mock_console_client: AsyncMock,
    ):
        """Test --global --no-input switches without prompts or sync."""
        write_local({"project": project_config, "app": {"keep": True}})
        write_global(GLOBAL_CONSOLE)
        mock_console_client.download_workspace_config.return_value = _download(
            project_config,
            id="proj-2",
            name="globalproject",
            org={"id": "org-2", "name": "Global Org"},
            workspace={"id": "ws-g"},
        )

        result = invoke("use", "--global", "--no-input")

        assert result.exit_code == 0, result.output
        mock_console_client.get_service_properties.assert_not_awaited()
        mock_console_client.subscribe_to_services.assert_not_awaited()
        mock_console_client.download_workspace_config.assert_awaited_once_with("org-2", "proj-2", "ws-g")
        local = _local(settings)
        assert local["project"]["id"] == "proj-2"
        # --no-input implies --merge
        assert local["app"] == {"keep": True}

    def test_switch_workspace_and_sync(
        self,
        invoke,
        settings: ConsoleSettings,
        write_local,
        project_config: dict,
        mock_console_client: AsyncMock,
    ):
        """Test switching Workspace syncs the current Services onto the target."""
        write_local({"project": project_config})
        mock_console_client.get_workspaces.return_value = [
            WorkspaceRef(id="ws-stage", name="Stage"),
            WorkspaceRef(id="ws-prod", name="Production"),
        ]
        mock_console_client.get_enabled_services_for_org.return_value = [A, B]
        mock_console_client.get_service_properties.side_effect = [[A, B], [A]]
        mock_console_client.download_workspace_config.return_value = _download(
            project_config, workspace={"id": "ws-prod", "name": "Production"}
        )

        result = invoke("use", "-w", "Production", "--confirm-service-sync", "--overwrite")

        assert result.exit_code == 0, result.output
        assert "*Production*" in result.output
        subscribe = mock_console_client.subscribe_to_services.await_args
        assert subscribe.args[2] == WorkspaceRef(id="ws-prod", name="Production")
        assert subscribe.args[4] == [A, B]
        assert _local(settings)["project"]["workspace"]["name"] == "Production"

    def test_deprecated_workspace_name(
        self,
        invoke,
        write_local,
        project_config: dict,
        mock_console_client: AsyncMock,
    ):
        """Test --workspace-name still selects a Workspace."""
        write_local({"project": project_config})
        mock_console_client.get_workspaces.return_value = [WorkspaceRef(id="ws-stage", name="Stage")]
        mock_console_client.download_workspace_config.return_value = _download(project_config)

        result = invoke("use", "--workspace-name", "Stage", "--no-service-sync", "--merge")

        assert result.exit_code == 0, result.output
        mock_console_client.create_workspace.assert_not_awaited()

    def test_decline_new_workspace(
        self,
        invoke,
        write_local,
        project_config: dict,
        mock_console_client: AsyncMock,
    ):
        """Test declining Workspace creation exits non-zero."""
        write_local({"project": project_config})

        result = invoke("use", "-w", "Feature1", "--no-service-sync", input="n\n")

        assert result.exit_code == 1
        assert "Workspace creation aborted" in result.output
        mock_console_client.create_workspace.assert_not_awaited()

    def test_console_error(
        self,
        invoke,
        write_local,
        project_config: dict,
        mock_console_client: AsyncMock,
    ):
        """Test Console failures end the command with their message."""
        write_local({"project": project_config})
        mock_console_client.get_workspaces.side_effect = ConsoleError(code=403, message="Forbidden")

        result = invoke("use", "-w", "Stage")

        assert result.exit_code == 1
        assert "Console API error (403): Forbidden" in result.output


@pytest.mark.unit
class TestDeleteServiceCommand:
    """Tests for `aio-app delete service`."""

    @pytest.mark.parametrize("name", ["service", "services"])
    def test_delete_one_service(
        self,
        invoke,
        name: str,
        write_local,
        project_config: dict,
        mock_console_client: AsyncMock,
    ):
        """Test both command names run the deletion flow."""
        write_local({"project": project_config})
        mock_console_client.get_enabled_services_for_org.return_value = [A, B]
        mock_console_client.get_service_properties.return_value = [A, B]

        result = invoke("delete", name, input="2\ny\n")

        assert result.exit_code == 0, result.output
        assert mock_console_client.subscribe_to_services.await_args.args[4] == [A]
        assert "Successfully deleted selected Service Subscriptions in Workspace Stage" in result.output

    def test_no_services(
        self,
        invoke,
        write_local,
        project_config: dict,
        mock_console_client: AsyncMock,
    ):
        """Test an empty Workspace is an error."""
        write_local({"project": project_config})

        result = invoke("delete", "service")

        assert result.exit_code == 1
        assert "No Services are attached to Workspace Stage" in result.output
