# ABOUTME: Configuration management for the aio-app CLI
# ABOUTME: Handles environment variables, file locations, and safety settings

"""
Configuration management using pydantic-settings.

=============================================================================
WHAT IS THIS FILE?
=============================================================================

This module holds every knob the CLI reads from its environment:

1. WHERE the Console API lives and how to authenticate against it
2. WHERE the local (.aio, .env) and global (~/.config/aio) files are
3. HOW careful to be (production Workspace pattern, secret masking, audit)
4. HOW to log (level, JSON or console rendering)

Nothing here talks to the network or reads the .aio files; that is the job
of utils/client.py and utils/store.py.

=============================================================================
ARCHITECTURE: TWO CONFIGURATION CLASSES
=============================================================================

1. SafetySettings: guards around destructive Service operations
   - Production Workspace pattern, secret masking, audit log path

2. ConsoleSettings: Main configuration container
   - Console URL, token, API key, timeouts
   - Local/global configuration file locations
   - Log level and format
   - Contains SafetySettings as nested object

=============================================================================
ENVIRONMENT VARIABLE MAPPING
=============================================================================

    AIO_CONSOLE_ACCESS_TOKEN          -> Bearer token for the Console API
    AIO_APP_CONSOLE_URL               -> Console API base URL
    AIO_APP_API_KEY                   -> x-api-key header value
    AIO_APP_GLOBAL_CONFIG_FILE        -> Global aio config (JSON)
    AIO_APP_LOCAL_CONFIG_FILE         -> Project .aio file
    AIO_APP_ENV_FILE_PATH             -> Project .env file
    AIO_APP_LOG_LEVEL                 -> DEBUG / INFO / WARNING / ERROR
    AIO_APP_PRODUCTION_WORKSPACE_PATTERN -> Regex for production Workspaces
    AIO_APP_AUDIT_LOG                 -> JSON lines audit file
"""

# =============================================================================
# IMPORTS
# =============================================================================

from __future__ import annotations

import os
import re
from pathlib import Path  # noqa: TC003 - Required at runtime for Pydantic
from typing import Annotated

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_CONSOLE_URL = "https://developers.adobe.io/console"

# Subfolder of the data dir holding JWT integration certificates
ENTP_INT_CERTS_FOLDER = "entp-int-certs"


def _default_global_config_file() -> Path:
    # Same location the aio CLI family uses for its global config
    base = os.environ.get("XDG_CONFIG_HOME") or str(Path.home() / ".config")
    return Path(base) / "aio"


def _default_data_dir() -> Path:
    base = os.environ.get("XDG_DATA_HOME") or str(Path.home() / ".local" / "share")
    return Path(base) / "aio-app"


# =============================================================================
# SAFETY SETTINGS
# =============================================================================


class SafetySettings(BaseSettings):
    """
    Settings for destructive Service operations.

    Overwriting Service subscriptions is the only destructive thing this CLI
    does, and it is worst in a Production Workspace: running apps lose the
    APIs they were calling. The pattern below decides which Workspaces get
    the extra warning before the confirmation prompt.
    """

    model_config = SettingsConfigDict(env_prefix="AIO_APP_")

    production_workspace_pattern: str = Field(
        default=r"^Production$",
        description="Regex matched (case-insensitive) against Workspace names",
    )
    # The Console creates a "Production" Workspace in every App Builder
    # project. Teams with their own naming can widen this, e.g. "^(prod|live)".

    mask_secrets: bool = Field(
        default=True,
        description="Mask sensitive values in Console API responses",
    )
    # Workspace downloads carry client secrets and runtime auth keys.

    audit_log: Path | None = Field(
        default=None,
        description="Path to audit log file",
    )
    # When None, audit events go through structlog like every other log line.

    @field_validator("production_workspace_pattern")
    @classmethod
    def validate_pattern(cls, v: str) -> str:
        """Reject patterns that do not compile so the error shows at startup."""
        try:
            re.compile(v)
        except re.error as e:
            raise ValueError(f"invalid production workspace pattern: {e}") from e
        return v


# =============================================================================
# MAIN SETTINGS
# =============================================================================


class ConsoleSettings(BaseSettings):
    """
    Main CLI configuration.

    USAGE:
    ------
        settings = load_settings()
        settings.console_url        # https://developers.adobe.io/console
        settings.safety.mask_secrets
        settings.cert_dir           # where JWT certificates are looked up
    """

    model_config = SettingsConfigDict(
        env_prefix="AIO_APP_",
        env_nested_delimiter="__",
        extra="ignore",
        populate_by_name=True,
    )

    # -------------------------------------------------------------------------
    # CONSOLE API
    # -------------------------------------------------------------------------

    console_url: str = Field(
        default=DEFAULT_CONSOLE_URL,
        description="Adobe Developer Console API base URL",
    )

    access_token: SecretStr = Field(
        default=SecretStr(""),
        validation_alias="AIO_CONSOLE_ACCESS_TOKEN",
        description="Console API bearer token",
    )
    # Empty means "use the token of an existing aio CLI login", which lives
    # in the global config under ims.contexts.cli.access_token.

    api_key: str = Field(
        default="aio-cli-console-auth",
        description="Client id sent as x-api-key",
    )

    request_timeout: float = Field(
        default=30.0,
        description="HTTP request timeout in seconds",
    )

    # -------------------------------------------------------------------------
    # LOCAL FILES
    # -------------------------------------------------------------------------

    global_config_file: Path = Field(
        default_factory=_default_global_config_file,
        description="Global aio configuration file",
    )

    local_config_file: Path = Field(
        default=Path(".aio"),
        description="Project-scoped aio configuration file",
    )

    env_file_path: Path = Field(
        default=Path(".env"),
        description="Project-scoped dotenv file",
    )

    data_dir: Path = Field(
        default_factory=_default_data_dir,
        description="Directory for CLI data such as integration certificates",
    )

    # -------------------------------------------------------------------------
    # LOGGING
    # -------------------------------------------------------------------------

    log_level: Annotated[str, Field(pattern=r"^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$")] = Field(
        default="WARNING",
        description="Logging level",
    )
    # WARNING by default: log lines share stderr with the prompts.

    json_logs: bool = Field(
        default=False,
        description="Render log lines as JSON",
    )

    safety: SafetySettings = Field(default_factory=SafetySettings)

    @field_validator("console_url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        """Ensure URL has a scheme and no trailing slash."""
        if not v.startswith(("http://", "https://")):
            v = f"https://{v}"
        return v.rstrip("/")

    @property
    def cert_dir(self) -> Path:
        """Directory holding certificates for JWT integrations."""
        return self.data_dir / ENTP_INT_CERTS_FOLDER


# =============================================================================
# SETTINGS LOADER
# =============================================================================


def load_settings() -> ConsoleSettings:
    """
    Load settings from environment with validation.

    If AIO_APP_ENV_FILE is set, additional variables are read from that
    file (handy for pointing the CLI at a stage Console during development).

    Raises:
        pydantic.ValidationError: If configuration is invalid.
    """
    return ConsoleSettings(
        _env_file=os.environ.get("AIO_APP_ENV_FILE"),
    )
