# ABOUTME: Per-command context shared by the aio-app flows
# ABOUTME: Bundles settings, configuration store, terminal, audit logger and safety guard

"""Explicit command context.

Every flow receives one of these instead of reaching for module globals, so
tests can build a context around temporary files and doubles.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import TYPE_CHECKING

import structlog
from pydantic import SecretStr

from app_console.errors import ConfigurationError
from app_console.utils.client import ConsoleClient
from app_console.utils.logging import AuditLogger
from app_console.utils.safety import SafetyGuard
from app_console.utils.store import ConfigStore
from app_console.utils.terminal import Terminal

if TYPE_CHECKING:
    from app_console.config import ConsoleSettings

logger = structlog.get_logger(__name__)

# Where an aio CLI login keeps its token in the global config
CLI_ACCESS_TOKEN_KEY = "ims.contexts.cli.access_token"


def _is_expired(expiry: object) -> bool:
    """expiry is epoch milliseconds; a value that is not a number counts as expired."""
    if not expiry:
        return False
    try:
        return int(expiry) <= time.time() * 1000
    except (TypeError, ValueError):
        logger.debug("Ignoring CLI login token with unreadable expiry", expiry=expiry)
        return True


@dataclass
class CommandContext:
    settings: ConsoleSettings
    store: ConfigStore
    terminal: Terminal
    audit: AuditLogger
    guard: SafetyGuard

    @classmethod
    def create(cls, settings: ConsoleSettings, interactive: bool = True) -> CommandContext:
        return cls(
            settings=settings,
            store=ConfigStore(settings.global_config_file, settings.local_config_file),
            terminal=Terminal(interactive=interactive),
            audit=AuditLogger(settings.safety.audit_log),
            guard=SafetyGuard(settings.safety),
        )

    def access_token(self) -> SecretStr:
        """
        Bearer token for the Console API.

        The explicit setting wins; otherwise the token of an existing CLI
        login is used if it has not expired.

        Raises:
            ConfigurationError: No usable token.
        """
        if self.settings.access_token.get_secret_value():
            return self.settings.access_token

        stored = self.store.get(CLI_ACCESS_TOKEN_KEY, source="global")
        if isinstance(stored, dict):
            token = stored.get("token")
            expiry = stored.get("expiry")
            if token and not _is_expired(expiry):
                logger.debug("Using access token from CLI login context")
                return SecretStr(token)
        elif isinstance(stored, str) and stored:
            return SecretStr(stored)

        raise ConfigurationError(
            "You are not logged in to the Adobe Developer Console. "
            "Run `aio login` or set AIO_CONSOLE_ACCESS_TOKEN."
        )

    def console_client(self) -> ConsoleClient:
        """A new (not yet entered) Console client."""
        return ConsoleClient(self.settings, self.access_token())
