# ABOUTME: Error types raised by aio-app commands
# ABOUTME: Configuration, flag conflict, and aborted-operation errors

"""User-facing errors.

Each of these ends the command with a non-zero exit status and its message.
Remote failures are not listed here; they surface as
``app_console.utils.client.ConsoleError`` and propagate unchanged.
"""

from __future__ import annotations


class AppError(Exception):
    """Base class for errors that terminate a command."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ConfigurationError(AppError):
    """Local or global Org/Project/Workspace configuration is missing or incomplete."""


class FlagConflictError(AppError):
    """Mutually exclusive flags or arguments were supplied together."""


class NoServicesError(AppError):
    """The Workspace has no Service subscriptions to operate on."""


class OperationAborted(AppError):
    """The user declined a step the command cannot continue without."""


class PromptDisabledError(AppError):
    """A prompt was required while running with --no-input."""
