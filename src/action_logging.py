"""
Action Logging - Routes stdlib logging through GitHub Actions workflow commands.

Warnings and errors become ::warning:: / ::error:: annotations on the run,
debug records are only shown when the runner has debug logging enabled.
"""

import logging
import sys
from typing import TextIO

LOG_FORMAT = "%(message)s"

_COMMANDS = {
    logging.DEBUG: "debug",
    logging.WARNING: "warning",
    logging.ERROR: "error",
    logging.CRITICAL: "error",
}


def escape_data(value: str) -> str:
    """Escape a message so a workflow command keeps it on one line."""
    return value.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")


class GitHubActionsFormatter(logging.Formatter):
    """Formats records as workflow commands where the level has one."""

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        command = _COMMANDS.get(record.levelno)
        if command is None:
            return message
        return f"::{command}::{escape_data(message)}"


def configure_logging(debug: bool = False, stream: TextIO | None = None) -> logging.Handler:
    """
    Install a single workflow-command handler on the root logger.

    Args:
        debug: Emit debug records as well (RUNNER_DEBUG=1)
        stream: Output stream, defaults to stdout where the runner reads commands

    Returns:
        The installed handler
    """
    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(GitHubActionsFormatter(LOG_FORMAT))

    root = logging.getLogger()
    for existing in list(root.handlers):
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(logging.DEBUG if debug else logging.INFO)
    return handler
