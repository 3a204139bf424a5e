# ABOUTME: Structured logging and audit trail for the aio-app CLI
# ABOUTME: Provides correlation IDs, structlog configuration, and audit logging

"""
Structured logging with correlation IDs and audit trails.

=============================================================================
WHAT IS THIS FILE?
=============================================================================

1. STRUCTURED LOGGING: structlog, rendered to stderr so log lines never mix
   with the command output on stdout.

2. CORRELATION IDs: one short id per CLI invocation, attached to every log
   line and sent to the Console as x-request-id, so a failing run can be
   matched with what the server saw.

3. AUDIT LOGGING: a record of every remote mutation the CLI performed
   (Workspace created, Services overwritten, configuration imported).

=============================================================================
WHY AUDIT A CLI?
=============================================================================

Mutations are not rolled back. If a sync overwrote the Services of the
wrong Workspace, the audit file says which Workspace, when, and with which
subscriptions, which is what you need to put them back by hand.
"""

# =============================================================================
# IMPORTS
# =============================================================================

from __future__ import annotations

import json
import logging
import sys
import uuid
from contextvars import ContextVar
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

import structlog

if TYPE_CHECKING:
    from collections.abc import MutableMapping
    from pathlib import Path


# =============================================================================
# CORRELATION ID MANAGEMENT
# =============================================================================

correlation_id: ContextVar[str] = ContextVar("correlation_id", default="")


def get_correlation_id() -> str:
    """
    Get current correlation ID or generate new one.

    Returns:
        8-character correlation ID string.
    """
    cid = correlation_id.get()
    if not cid:
        cid = str(uuid.uuid4())[:8]
        correlation_id.set(cid)
    return cid


def set_correlation_id(cid: str) -> None:
    """Set correlation ID for current context ("" regenerates on next access)."""
    correlation_id.set(cid)


def add_correlation_id(
    logger: structlog.types.WrappedLogger,  # noqa: ARG001 - Required by structlog Processor API
    method_name: str,  # noqa: ARG001 - Required by structlog Processor API
    event_dict: MutableMapping[str, Any],
) -> MutableMapping[str, Any]:
    """structlog processor adding the correlation ID to every event."""
    event_dict["correlation_id"] = get_correlation_id()
    return event_dict


# =============================================================================
# LOGGING CONFIGURATION
# =============================================================================


def configure_logging(
    level: str = "WARNING",
    json_output: bool = False,
) -> None:
    """
    Configure structured logging.

    Call once per invocation, from the CLI group callback.

    PROCESSOR PIPELINE:
    -------------------
    1. merge_contextvars: Adds any bound context variables
    2. add_log_level: Adds "level"
    3. TimeStamper: ISO timestamp
    4. add_correlation_id: Our per-invocation id
    5. Renderer: JSON or colored console text

    Args:
        level: "DEBUG", "INFO", "WARNING", "ERROR" or "CRITICAL"
        json_output: JSON lines instead of console rendering
    """
    processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        add_correlation_id,
    ]

    if json_output:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, level.upper(), logging.WARNING)
        ),
        context_class=dict,
        # stdout belongs to command output
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )


# =============================================================================
# AUDIT LOGGER
# =============================================================================


class AuditLogger:
    """
    Audit logger for remote mutations.

    Every entry records:
    - timestamp: When it happened (UTC ISO 8601)
    - correlation_id: Invocation identifier
    - action: "create_workspace", "subscribe_services", "import_config", ...
    - target: "org/project/workspace" path of the affected Workspace
    - result: "success", "skipped", "error"
    - details: Additional context (service codes, error messages)

    With a log path, entries are appended as JSON lines. Without one, they
    are emitted as a structlog "audit" event.
    """

    def __init__(self, log_path: Path | None = None) -> None:
        self._log_path = log_path
        self._logger = structlog.get_logger("audit")

    def log(
        self,
        action: str,
        target: str,
        result: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Log an auditable action."""
        entry: dict[str, Any] = {
            "timestamp": datetime.now(UTC).isoformat(),
            "correlation_id": get_correlation_id(),
            "action": action,
            "target": target,
            "result": result,
        }

        if details:
            entry["details"] = details

        if self._log_path:
            with self._log_path.open("a") as f:
                f.write(json.dumps(entry) + "\n")
        else:
            self._logger.info(
                "audit",
                action=action,
                target=target,
                result=result,
                details=details,
            )

    def log_write(
        self,
        action: str,
        target: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Log a successful mutation."""
        self.log(action, target, "success", details)

    def log_skipped(
        self,
        action: str,
        target: str,
        reason: str,
    ) -> None:
        """Log a mutation that was not performed (declined, refused, no-op)."""
        self.log(action, target, "skipped", {"reason": reason})

    def log_error(
        self,
        action: str,
        target: str,
        error: str,
    ) -> None:
        """Log a mutation that failed."""
        self.log(action, target, "error", {"error": error})
