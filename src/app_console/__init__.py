# ABOUTME: app-console package initialization
# ABOUTME: Exposes version information for the aio-app command line tool

"""
app-console - Adobe Developer Console configuration from the command line.

=============================================================================
WHAT IS THIS PACKAGE?
=============================================================================

A small CLI (`aio-app`) that keeps a local app checkout in step with the
Adobe Developer Console. The Console organises deployment targets in a
three-level hierarchy:

    Organization
    └── Project
        └── Workspace          (e.g. "Stage", "Production")
            └── Services       (APIs subscribed through a credential)

The commands:

- `aio-app use`             switch to another Workspace, the global
                            selection, or import a downloaded config file
- `aio-app delete service`  remove Service subscriptions from the Workspace
- `aio-app list`            print the list command help

=============================================================================
PACKAGE STRUCTURE OVERVIEW
=============================================================================

app_console/
├── __init__.py          <- YOU ARE HERE: Package entry point
├── cli.py               <- click commands and exit-code mapping
├── config.py            <- Settings (env vars, file locations, safety)
├── context.py           <- Per-command context object
├── errors.py            <- User-facing error taxonomy
├── models.py            <- Org/Project/Workspace/Service records
├── selector.py          <- Resolves the target Org/Project/Workspace
├── sync.py              <- Service subscription synchronisation
├── deletion.py          <- Service subscription deletion
├── importer.py          <- Console config import into .aio and .env
└── utils/
    ├── client.py        <- Async HTTP client for the Console API
    ├── logging.py       <- Structured logging and audit trail
    ├── safety.py        <- Production guard and confirmation messages
    ├── store.py         <- Local/global JSON configuration store
    └── terminal.py      <- Prompts and user-facing output
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
