# ABOUTME: Utilities package initialization for the aio-app CLI
# ABOUTME: Contains shared utilities for client, store, terminal, safety, and logging

"""
aio-app Utilities Package

Shared utilities:
    - client.py: Console API client wrapper with retry logic
    - store.py: Local and global aio configuration files
    - terminal.py: Prompts and user-facing output
    - safety.py: Production Workspace guard and confirmation messages
    - logging.py: Structured logging with correlation IDs and audit trail
"""
