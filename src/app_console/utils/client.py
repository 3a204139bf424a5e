# ABOUTME: Adobe Developer Console API client with retry logic and error handling
# ABOUTME: Provides async interface to the Console REST API with typed records

"""
Console API client with retry logic and structured error handling.

=============================================================================
WHAT IS THIS FILE?
=============================================================================

This module provides the HTTP client for the Adobe Developer Console API.
It handles:

1. HTTP COMMUNICATION: Making requests to Console endpoints
2. AUTHENTICATION: Bearer token plus the x-api-key client id
3. ERROR HANDLING: Converting HTTP errors to ConsoleError
4. RETRY LOGIC: Retrying requests that time out
5. SECRET MASKING: Hiding client secrets and runtime keys in responses

=============================================================================
CONSOLE API OVERVIEW
=============================================================================

Endpoints used by the CLI, all under the Console base URL:

    GET  /organizations/{org}/services
    GET  /organizations/{org}/projects/{project}/workspaces
    POST /organizations/{org}/projects/{project}/workspaces
    GET  /organizations/{org}/projects/{project}/workspaces/{ws}/credentials
    POST /organizations/{org}/projects/{project}/workspaces/{ws}/credentials/{kind}
    PUT  /organizations/{org}/projects/{project}/workspaces/{ws}/credentials/{kind}/{id}/services
    GET  /organizations/{org}/projects/{project}/workspaces/{ws}/download
    GET  /organizations/{org}/integrations/{credential}

Service subscriptions do not hang off the Workspace directly. They belong
to the Workspace's enterprise credential (a JWT "service" integration or an
OAuth server-to-server one), so reading or writing them always starts with
finding that credential.

Errors come back as JSON:
    {"error_code": ..., "message": "description", "reason": "details"}

=============================================================================
USAGE
=============================================================================

    async with ConsoleClient(settings, token) as client:
        workspaces = await client.get_workspaces(org_id, project_id)
"""

# =============================================================================
# IMPORTS
# =============================================================================

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Any

import httpx
import structlog
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from app_console.errors import ConfigurationError
from app_console.models import CredentialType, ServiceProperty, WorkspaceRef
from app_console.utils.logging import get_correlation_id

if TYPE_CHECKING:
    from pathlib import Path

    from pydantic import SecretStr

    from app_console.config import ConsoleSettings
    from app_console.models import ProjectRef

logger = structlog.get_logger(__name__)

# File name of the public certificate uploaded when creating a JWT credential
CERTIFICATE_FILE = "certificate_pub.crt"

# =============================================================================
# SECRET MASKING PATTERNS
# =============================================================================

SECRET_PATTERNS = [
    (re.compile(r"(token[\"']?\s*[:=]\s*[\"']?)[^\"'\s,}]+", re.I), r"\1***MASKED***"),
    (re.compile(r"(password[\"']?\s*[:=]\s*[\"']?)[^\"'\s,}]+", re.I), r"\1***MASKED***"),
    (re.compile(r"(secret[\"']?\s*[:=]\s*[\"']?)[^\"'\s,}]+", re.I), r"\1***MASKED***"),
    (re.compile(r"(api[_-]?key[\"']?\s*[:=]\s*[\"']?)[^\"'\s,}]+", re.I), r"\1***MASKED***"),
    (re.compile(r"(bearer\s+)[^\s\"']+", re.I), r"\1***MASKED***"),
]

# Keys whose values are masked wherever they appear in a response.
# "auth" covers the runtime namespace key inside Workspace downloads.
SENSITIVE_KEYS = frozenset(
    [
        "token",
        "password",
        "secret",
        "client_secret",
        "client_secrets",
        "api_key",
        "apikey",
        "api-key",
        "authorization",
        "auth",
        "private_key",
    ]
)


# =============================================================================
# CONSOLE ERROR CLASS
# =============================================================================


class ConsoleError(Exception):
    """
    Structured Console API error.

    Carries the HTTP status plus whatever message the Console sent so the
    CLI can show something more useful than "HTTP 403".

    USAGE:
    ------
    try:
        await client.get_workspaces(org_id, project_id)
    except ConsoleError as e:
        print(e.code, e.message)
    """

    def __init__(self, code: int, message: str, details: str | None = None) -> None:
        self.code = code
        self.message = message
        self.details = details
        super().__init__(str(self))

    def __str__(self) -> str:
        base = f"Console API error ({self.code}): {self.message}"
        if self.details:
            base += f" - {self.details}"
        return base


# =============================================================================
# CONSOLE CLIENT
# =============================================================================


class ConsoleClient:
    """
    Async Console API client with retry logic.

    LIFECYCLE:
    ----------
    1. Create client: client = ConsoleClient(settings, token)
    2. Enter context: async with client: ...
    3. Use client: await client.get_workspaces(...)
    4. Exit context: HTTP connections cleaned up

    RETRY LOGIC:
    ------------
    Only timeouts are retried (3 attempts, exponential back-off). A 4xx or
    5xx answer is raised as ConsoleError straight away; the CLI never
    retries a rejected mutation on its own.
    """

    def __init__(
        self,
        settings: ConsoleSettings,
        access_token: SecretStr,
    ) -> None:
        """
        Initialize Console client.

        NOTE: This only creates the client object. The HTTP connection
        pool is created in __aenter__.

        Args:
            settings: CLI settings (base URL, API key, timeout, masking)
            access_token: Bearer token for the Console API
        """
        self._base_url = settings.console_url
        self._api_key = settings.api_key
        self._access_token = access_token
        self._timeout = settings.request_timeout
        self._mask_secrets = settings.safety.mask_secrets
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> ConsoleClient:
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            headers={
                "Authorization": f"Bearer {self._access_token.get_secret_value()}",
                "x-api-key": self._api_key,
                "Accept": "application/json",
            },
            timeout=self._timeout,
        )
        return self

    async def __aexit__(self, *args: object) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    def _mask_response(self, data: Any) -> Any:
        """
        Mask sensitive values in response data.

        Recurses through dicts and lists. Keys in SENSITIVE_KEYS lose their
        value entirely; strings are scrubbed with SECRET_PATTERNS.
        """
        if not self._mask_secrets:
            return data

        if isinstance(data, str):
            masked_str = data
            for pattern, replacement in SECRET_PATTERNS:
                masked_str = pattern.sub(replacement, masked_str)
            return masked_str

        if isinstance(data, dict):
            masked_dict: dict[str, Any] = {}
            for k, v in data.items():
                if k.lower() in SENSITIVE_KEYS:
                    masked_dict[k] = "***MASKED***"
                else:
                    masked_dict[k] = self._mask_response(v)
            return masked_dict

        if isinstance(data, list):
            return [self._mask_response(item) for item in data]

        return data

    @retry(
        retry=retry_if_exception_type(httpx.TimeoutException),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=10),
        reraise=True,
    )
    async def _request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        json_data: Any = None,
        files: dict[str, Any] | None = None,
        mask: bool = True,
    ) -> Any:
        """
        Make HTTP request to the Console API.

        Args:
            method: HTTP method ("GET", "POST", "PUT")
            path: API path (e.g., "/organizations/123/services")
            params: URL query parameters (optional)
            json_data: JSON request body (optional)
            files: Multipart upload (optional, certificate upload)
            mask: Apply secret masking to the parsed response

        Returns:
            Parsed JSON response (dict or list), {} for empty bodies

        Raises:
            ConsoleError: On API error (4xx, 5xx)
            httpx.TimeoutException: On request timeout (after retries)
            RuntimeError: If client not initialized (forgot async with)
        """
        if not self._client:
            raise RuntimeError("Client not initialized. Use 'async with' context manager.")

        log = logger.bind(method=method, path=path)
        log.debug("Making Console API request")

        headers = {"x-request-id": get_correlation_id()}
        if files is not None:
            response = await self._client.request(
                method, path, params=params, files=files, headers=headers
            )
        else:
            response = await self._client.request(
                method, path, params=params, json=json_data, headers=headers
            )

        if response.status_code >= 400:
            error_body = response.text
            log.warning("Console API error", status=response.status_code, body=error_body[:200])

            message = f"HTTP {response.status_code}"
            details = None
            try:
                error_json = response.json()
                message = error_json.get("message", message)
                details = error_json.get("reason") or error_json.get("error")
            except ValueError:
                details = error_body[:200] if error_body else None

            raise ConsoleError(
                code=response.status_code,
                message=message,
                details=details,
            )

        result = response.json() if response.content else {}
        return self._mask_response(result) if mask else result

    @staticmethod
    def _workspace_path(org_id: str, project_id: str, workspace_id: str) -> str:
        return f"/organizations/{org_id}/projects/{project_id}/workspaces/{workspace_id}"

    # =========================================================================
    # ORGANIZATION
    # =========================================================================

    async def get_enabled_services_for_org(self, org_id: str) -> list[ServiceProperty]:
        """
        List the Services enabled for an Org.

        Console API: GET /organizations/{org}/services

        Disabled Services are dropped; they cannot be subscribed to anyway.
        """
        data = await self._request("GET", f"/organizations/{org_id}/services")
        items = data if isinstance(data, list) else []
        return [ServiceProperty.from_org_service(s) for s in items if s.get("enabled", False)]

    # =========================================================================
    # WORKSPACES
    # =========================================================================

    async def get_workspaces(self, org_id: str, project_id: str) -> list[WorkspaceRef]:
        """
        List Workspaces of a Project.

        Console API: GET /organizations/{org}/projects/{project}/workspaces
        """
        data = await self._request("GET", f"/organizations/{org_id}/projects/{project_id}/workspaces")
        items = data if isinstance(data, list) else []
        return [WorkspaceRef.from_dict(w) for w in items]

    async def create_workspace(
        self,
        org_id: str,
        project_id: str,
        name: str,
        title: str = "",
    ) -> WorkspaceRef:
        """
        Create a Workspace in a Project.

        Console API: POST /organizations/{org}/projects/{project}/workspaces

        The Console answers with the new ids only ({"workspaceId": ...}),
        so the name is taken from the request.
        """
        body = {"name": name, "title": title or name}
        data = await self._request(
            "POST",
            f"/organizations/{org_id}/projects/{project_id}/workspaces",
            json_data=body,
        )
        return WorkspaceRef(id=str(data.get("workspaceId") or data.get("id") or ""), name=name)

    async def download_workspace_config(
        self,
        org_id: str,
        project_id: str,
        workspace_id: str,
    ) -> dict[str, Any]:
        """
        Download the Console configuration JSON of a Workspace.

        Console API: GET .../workspaces/{ws}/download

        Not masked: this is the document written to .aio and .env, and the
        runtime auth key in it is what the app needs to deploy.
        """
        data = await self._request(
            "GET",
            f"{self._workspace_path(org_id, project_id, workspace_id)}/download",
            mask=False,
        )
        return data if isinstance(data, dict) else {}

    # =========================================================================
    # CREDENTIALS AND SERVICES
    # =========================================================================

    async def get_workspace_credentials(
        self,
        org_id: str,
        project_id: str,
        workspace_id: str,
    ) -> list[dict[str, Any]]:
        """
        List credentials attached to a Workspace.

        Console API: GET .../workspaces/{ws}/credentials

        Each entry looks like:
            {"id_integration": "...", "flow_type": "entp",
             "integration_type": "service" | "oauth_server_to_server", ...}
        """
        data = await self._request(
            "GET",
            f"{self._workspace_path(org_id, project_id, workspace_id)}/credentials",
        )
        return list(data) if isinstance(data, list) else []

    async def _find_credential(
        self,
        org_id: str,
        project_id: str,
        workspace_id: str,
        credential_type: CredentialType,
    ) -> dict[str, Any] | None:
        credentials = await self.get_workspace_credentials(org_id, project_id, workspace_id)
        for credential in credentials:
            if (
                credential.get("flow_type") == "entp"
                and credential.get("integration_type") == credential_type.integration_type
            ):
                return credential
        return None

    async def get_service_properties(
        self,
        org_id: str,
        project_id: str,
        workspace: WorkspaceRef,
        supported_services: list[ServiceProperty],
        credential_type: CredentialType,
    ) -> list[ServiceProperty]:
        """
        Service subscriptions of a Workspace for the given credential type.

        Console API: credentials listing, then
        GET /organizations/{org}/integrations/{credential}

        A Workspace without a matching credential has no subscriptions.
        Subscriptions to Services the Org no longer supports are left out,
        and names are taken from the Org listing when the integration lacks
        them.
        """
        credential = await self._find_credential(org_id, project_id, workspace.id, credential_type)
        if credential is None:
            logger.debug(
                "No credential in workspace",
                workspace=workspace.name,
                credential_type=credential_type.value,
            )
            return []

        credential_id = credential.get("id_integration") or credential.get("id")
        data = await self._request("GET", f"/organizations/{org_id}/integrations/{credential_id}")
        items = data.get("serviceProperties", []) if isinstance(data, dict) else []

        supported = {s.sdk_code: s for s in supported_services}
        properties: list[ServiceProperty] = []
        for item in items:
            prop = ServiceProperty.from_api_response(item)
            known = supported.get(prop.sdk_code)
            if known is None:
                continue
            if not prop.name:
                prop = ServiceProperty(
                    name=known.name,
                    sdk_code=prop.sdk_code,
                    roles=prop.roles,
                    license_configs=prop.license_configs,
                    type=prop.type or known.type,
                )
            properties.append(prop)
        return properties

    async def _create_credential(
        self,
        org_id: str,
        project: ProjectRef,
        workspace: WorkspaceRef,
        cert_dir: Path | None,
        credential_type: CredentialType,
    ) -> dict[str, Any]:
        """
        Create the enterprise credential that will hold the subscriptions.

        OAuth server-to-server credentials need nothing but a name. JWT
        credentials need the public certificate from cert_dir.
        """
        path = f"{self._workspace_path(org_id, project.id, workspace.id)}/credentials/{credential_type.api_kind}"
        name = f"aio-{workspace.id}"
        description = f"Credential for Workspace {workspace.name} in Project {project.name}"

        if credential_type is CredentialType.JWT:
            if cert_dir is None:
                raise ConfigurationError("A certificate directory is required to create a JWT credential")
            certificate = cert_dir / CERTIFICATE_FILE
            if not certificate.is_file():
                raise ConfigurationError(
                    f"Missing certificate for JWT credential, expected the public certificate at {certificate}"
                )
            files = {
                "certificate": (CERTIFICATE_FILE, certificate.read_bytes(), "application/x-x509-ca-cert"),
                "name": (None, name),
                "description": (None, description),
            }
            data = await self._request("POST", path, files=files)
        else:
            data = await self._request("POST", path, json_data={"name": name, "description": description})

        logger.info("Created workspace credential", workspace=workspace.name, kind=credential_type.api_kind)
        return {
            "id_integration": data.get("id") or data.get("id_integration"),
            "flow_type": "entp",
            "integration_type": credential_type.integration_type,
        }

    async def subscribe_to_services(
        self,
        org_id: str,
        project: ProjectRef,
        workspace: WorkspaceRef,
        cert_dir: Path | None,
        service_properties: list[ServiceProperty],
        credential_type: CredentialType,
    ) -> dict[str, Any]:
        """
        Replace the Service subscriptions of a Workspace.

        Console API: PUT .../credentials/{kind}/{credential}/services

        OVERWRITES: whatever the Workspace subscribed to before is replaced
        by service_properties. Creates the credential first if the Workspace
        has none of the requested type.

        Args:
            org_id: Org of the Workspace
            project: Project of the Workspace
            workspace: Target Workspace
            cert_dir: Certificate directory for JWT credential creation,
                      None when a credential is known to exist
            service_properties: The complete new subscription list
            credential_type: Credential type the subscriptions go through
        """
        credential = await self._find_credential(org_id, project.id, workspace.id, credential_type)
        if credential is None:
            credential = await self._create_credential(org_id, project, workspace, cert_dir, credential_type)

        credential_id = credential.get("id_integration") or credential.get("id")
        body = [prop.to_subscription() for prop in service_properties]
        return await self._request(
            "PUT",
            f"{self._workspace_path(org_id, project.id, workspace.id)}"
            f"/credentials/{credential_type.api_kind}/{credential_id}/services",
            json_data=body,
        )
