"""
Config - Reads action inputs and GitHub runner variables.
"""

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

from errors import ConfigError

DEFAULT_GITHUB_LOGIN = "dependabot[bot]"


def _get_input(environ: Mapping[str, str], name: str, default: str = "") -> str:
    """Read an action input, falling back to the bare variable name."""
    value = environ.get(f"INPUT_{name}") or environ.get(name) or default
    return value.strip()


@dataclass(frozen=True)
class ActionConfig:
    """Configuration for one action run."""
    github_token: str
    github_login: str
    event_name: str
    event_path: str | None
    repository: str
    actor: str
    debug: bool = False

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "ActionConfig":
        """
        Build the configuration from the process environment.

        Raises:
            ConfigError: GITHUB_TOKEN is not set
        """
        env = os.environ if environ is None else environ

        token = _get_input(env, "GITHUB_TOKEN")
        if not token:
            raise ConfigError("Input GITHUB_TOKEN is required.")

        return cls(
            github_token=token,
            github_login=_get_input(env, "GITHUB_LOGIN", DEFAULT_GITHUB_LOGIN),
            event_name=env.get("GITHUB_EVENT_NAME", ""),
            event_path=env.get("GITHUB_EVENT_PATH") or None,
            repository=env.get("GITHUB_REPOSITORY", ""),
            actor=env.get("GITHUB_ACTOR", ""),
            debug=env.get("RUNNER_DEBUG") == "1",
        )

    def load_event(self) -> dict[str, Any]:
        """Load the triggering event payload, empty when the runner gave none."""
        if not self.event_path:
            return {}
        path = Path(self.event_path)
        if not path.exists():
            return {}
        with open(path, "r", encoding="utf-8") as f:
            payload = json.load(f)
        if not isinstance(payload, dict):
            raise ConfigError(f"Event payload at {path} is not a JSON object.")
        return payload

    def repository_parts(self, payload: Mapping[str, Any] | None = None) -> tuple[str, str]:
        """
        Split the repository into (owner, name).

        Falls back to the payload's repository block when GITHUB_REPOSITORY
        is unset.
        """
        if self.repository:
            owner, _, name = self.repository.partition("/")
            if not owner or not name or "/" in name:
                raise ConfigError(f"Malformed GITHUB_REPOSITORY: {self.repository!r}")
            return owner, name

        repository = (payload or {}).get("repository") or {}
        owner = (repository.get("owner") or {}).get("login")
        name = repository.get("name")
        if not owner or not name:
            raise ConfigError("Unable to determine the repository owner and name.")
        return owner, name
