# ABOUTME: Import of Adobe Developer Console configuration into .aio and .env
# ABOUTME: Validates config files, writes project config, and records service lists

"""
Console configuration import.

=============================================================================
WHAT GETS WRITTEN WHERE
=============================================================================

A Console configuration (the JSON behind the "Download" button of a
Workspace, or the same document fetched through the API) looks like:

    {"project": {"id": ..., "name": ..., "org": {...},
                 "workspace": {"id": ..., "name": ...,
                               "details": {"credentials": [...],
                                           "services": [...],
                                           "runtime": {"namespaces": [
                                               {"name": ..., "auth": ...}]}}}}}

- .aio gets the whole "project" object, minus the runtime auth key and the
  credential client secrets
- .env gets AIO_RUNTIME_NAMESPACE and AIO_RUNTIME_AUTH, plus IMS_OAUTH_S2S_*
  for the first OAuth server-to-server credential and IMS_JWT_* for the
  first JWT credential

Secrets stay out of .aio because .aio is commonly committed; .env is not.

=============================================================================
OVERWRITE VS MERGE
=============================================================================

overwrite: .aio and .env are replaced by the imported values only.
merge:     other keys in .aio and other variables in .env are kept; the
           "project" key is still replaced as a whole, never mixed with the
           previous selection.
neither:   ask, if there is anything to lose.
"""

from __future__ import annotations

import copy
import json
from pathlib import Path
from typing import TYPE_CHECKING, Any

import structlog
from dotenv import set_key

from app_console.errors import ConfigurationError, OperationAborted
from app_console.models import ConfigTuple, CredentialType

if TYPE_CHECKING:
    from app_console.context import CommandContext
    from app_console.models import ServiceProperty
    from app_console.utils.client import ConsoleClient

logger = structlog.get_logger(__name__)

CONSOLE_CONFIG_KEY = "console"
PROJECT_CONFIG_KEY = "project"

ENV_RUNTIME_NAMESPACE = "AIO_RUNTIME_NAMESPACE"
ENV_RUNTIME_AUTH = "AIO_RUNTIME_AUTH"

ENV_OAUTH_CLIENT_ID = "IMS_OAUTH_S2S_CLIENT_ID"
ENV_OAUTH_CLIENT_SECRET = "IMS_OAUTH_S2S_CLIENT_SECRET"
ENV_OAUTH_ORG_ID = "IMS_OAUTH_S2S_ORG_ID"
ENV_OAUTH_SCOPES = "IMS_OAUTH_S2S_SCOPES"
ENV_JWT_CLIENT_ID = "IMS_JWT_CLIENT_ID"
ENV_JWT_CLIENT_SECRET = "IMS_JWT_CLIENT_SECRET"

# Keys of a credential block that must never reach .aio
CREDENTIAL_SECRET_KEYS = ("client_secret", "client_secrets")


# =============================================================================
# LOADING AND VALIDATION
# =============================================================================


def load_console_config(source: str | Path | bytes | dict[str, Any]) -> dict[str, Any]:
    """
    Parse and validate a Console configuration.

    Args:
        source: File path, raw JSON bytes, or an already parsed document

    Raises:
        ConfigurationError: Unreadable JSON or an incomplete Org/Project/Workspace
    """
    if isinstance(source, dict):
        data = copy.deepcopy(source)
    else:
        try:
            if isinstance(source, bytes):
                data = json.loads(source.decode("utf-8"))
            else:
                data = json.loads(Path(source).read_text(encoding="utf-8"))
        except FileNotFoundError as e:
            raise ConfigurationError(f"Cannot find Console configuration file '{source}'") from e
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise ConfigurationError(f"Console configuration is not valid JSON: {e}") from e

    if not isinstance(data, dict) or not isinstance(data.get(PROJECT_CONFIG_KEY), dict):
        raise ConfigurationError("Console configuration is missing the 'project' object")

    selection = ConfigTuple.from_project_config(data[PROJECT_CONFIG_KEY])
    if not selection.is_complete:
        raise ConfigurationError(
            "Console configuration is incomplete, it must name an Org, a Project and a Workspace "
            "(id and name for each):\n" + selection.describe(2)
        )
    return data


def get_project_credential_type(
    project_config: dict[str, Any] | None,
    use_jwt: bool = False,
) -> CredentialType:
    """
    Credential type the project's Services are attached through.

    JWT when the Workspace only has a JWT ("service") credential, or has both
    kinds and --use-jwt was passed (projects migrating to OAuth
    server-to-server carry both for a while). OAuth server-to-server otherwise.
    """
    workspace = (project_config or {}).get("workspace") or {}
    credentials = (workspace.get("details") or {}).get("credentials") or []
    integration_types = {c.get("integration_type") for c in credentials if isinstance(c, dict)}

    has_jwt = CredentialType.JWT.integration_type in integration_types
    has_oauth = CredentialType.OAUTH_SERVER_TO_SERVER.integration_type in integration_types

    if has_jwt and (not has_oauth or use_jwt):
        return CredentialType.JWT
    return CredentialType.OAUTH_SERVER_TO_SERVER


# =============================================================================
# DOWNLOAD
# =============================================================================


async def download_console_config(
    client: ConsoleClient,
    target: ConfigTuple,
    supported_services: list[ServiceProperty],
) -> dict[str, Any]:
    """Fetch the Console configuration of target, with the Org's Services filled in."""
    config = await client.download_workspace_config(target.org.id, target.project.id, target.workspace.id)
    project = config.setdefault(PROJECT_CONFIG_KEY, {})
    org = project.setdefault("org", {})
    org.setdefault("details", {})["services"] = [s.to_config() for s in supported_services]
    return config


# =============================================================================
# SERVICE LISTS IN LOCAL CONFIG
# =============================================================================


def set_org_services_config(ctx: CommandContext, services: list[ServiceProperty]) -> None:
    """Record the Org's enabled Services in local config (staged, see ConfigStore.save)."""
    ctx.store.set(f"{PROJECT_CONFIG_KEY}.org.details.services", [s.to_config() for s in services])


def set_workspace_services_config(ctx: CommandContext, services: list[ServiceProperty]) -> None:
    """Record the Workspace's subscriptions in local config (staged)."""
    ctx.store.set(
        f"{PROJECT_CONFIG_KEY}.workspace.details.services",
        [{"name": s.name, "code": s.sdk_code} for s in services],
    )


# =============================================================================
# IMPORT
# =============================================================================


def _split_runtime_secrets(project: dict[str, Any]) -> dict[str, str]:
    """Pull the first runtime namespace out of project into env variables; strip auth keys."""
    details = (project.get("workspace") or {}).get("details") or {}
    namespaces = (details.get("runtime") or {}).get("namespaces") or []

    env_values: dict[str, str] = {}
    if namespaces and isinstance(namespaces[0], dict):
        first = namespaces[0]
        if first.get("name"):
            env_values[ENV_RUNTIME_NAMESPACE] = str(first["name"])
        if first.get("auth"):
            env_values[ENV_RUNTIME_AUTH] = str(first["auth"])

    for namespace in namespaces:
        if isinstance(namespace, dict):
            namespace.pop("auth", None)
    return env_values


def _split_credential_secrets(project: dict[str, Any]) -> dict[str, str]:
    """
    Pull credential client ids and secrets out of project into env variables.

    Credential blocks sit under the key named by their CredentialType value
    ("oauth_server_to_server" or "jwt"). Only the first credential of each
    kind is exported; secrets of every credential are stripped.
    """
    details = (project.get("workspace") or {}).get("details") or {}
    credentials = details.get("credentials") or []

    env_values: dict[str, str] = {}
    for credential in credentials:
        if not isinstance(credential, dict):
            continue
        for kind in CredentialType:
            block = credential.get(kind.value)
            if not isinstance(block, dict):
                continue

            if kind is CredentialType.OAUTH_SERVER_TO_SERVER and ENV_OAUTH_CLIENT_ID not in env_values:
                env_values[ENV_OAUTH_CLIENT_ID] = str(block.get("client_id", ""))
                secrets = block.get("client_secrets") or []
                if secrets:
                    env_values[ENV_OAUTH_CLIENT_SECRET] = str(secrets[0])
                org_id = (project.get("org") or {}).get("ims_org_id")
                if org_id:
                    env_values[ENV_OAUTH_ORG_ID] = str(org_id)
                env_values[ENV_OAUTH_SCOPES] = json.dumps(block.get("scopes") or [])
            elif kind is CredentialType.JWT and ENV_JWT_CLIENT_ID not in env_values:
                env_values[ENV_JWT_CLIENT_ID] = str(block.get("client_id", ""))
                if block.get("client_secret"):
                    env_values[ENV_JWT_CLIENT_SECRET] = str(block["client_secret"])

            for key in CREDENTIAL_SECRET_KEYS:
                block.pop(key, None)
    return env_values


def _resolve_write_mode(ctx: CommandContext, overwrite: bool, merge: bool) -> str:
    if overwrite:
        return "overwrite"
    if merge:
        return "merge"

    existing = [
        path
        for path in (ctx.store.path("local"), ctx.settings.env_file_path)
        if path.is_file() and path.stat().st_size > 0
    ]
    if not existing:
        return "overwrite"

    names = ", ".join(p.name for p in existing)
    mode = ctx.terminal.select(
        f"The file(s) {names} already exist. How do you want to import the configuration?",
        [
            ("Overwrite", "overwrite"),
            ("Merge", "merge"),
            ("Abort", "abort"),
        ],
    )
    if mode == "abort":
        raise OperationAborted("Import of the Console configuration aborted")
    return mode


def _write_env(path: Path, values: dict[str, str], overwrite: bool) -> None:
    if overwrite or not path.exists():
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("", encoding="utf-8")
    for key, value in values.items():
        set_key(str(path), key, value)


def import_console_config(
    ctx: CommandContext,
    source: str | Path | bytes | dict[str, Any],
    overwrite: bool = False,
    merge: bool = False,
) -> dict[str, Any]:
    """
    Write a Console configuration into the local .aio and .env files.

    Both files are written at the end, after validation and the
    overwrite/merge decision. .env goes first: .aio names the selection, so
    a failed .env write leaves the previous selection in place.

    Returns:
        The imported configuration, as written to .aio (secrets removed)
    """
    config = load_console_config(source)
    project = copy.deepcopy(config[PROJECT_CONFIG_KEY])
    env_values = _split_runtime_secrets(project)
    env_values.update(_split_credential_secrets(project))

    mode = _resolve_write_mode(ctx, overwrite, merge)
    logger.debug("Importing console configuration", mode=mode, env_keys=sorted(env_values))

    if mode == "overwrite":
        ctx.store.replace({PROJECT_CONFIG_KEY: project})
    else:
        ctx.store.set(PROJECT_CONFIG_KEY, project)
    _write_env(ctx.settings.env_file_path, env_values, overwrite=mode == "overwrite")
    ctx.store.save()

    selection = ConfigTuple.from_project_config(project)
    ctx.audit.log_write(
        "import_config",
        f"{selection.org.id}/{selection.project.id}/{selection.workspace.id}",
        {"mode": mode, "workspace": selection.workspace.name},
    )

    imported = {**config, PROJECT_CONFIG_KEY: project}
    final_log_message(ctx, imported)
    return imported


def final_log_message(ctx: CommandContext, config: dict[str, Any]) -> None:
    selection = ConfigTuple.from_project_config(config.get(PROJECT_CONFIG_KEY))
    ctx.terminal.success(f"\n✔ Successfully imported configuration for:\n{selection.describe()}.")
