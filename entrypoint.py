"""
Auto-Merge Action - GitHub Action entrypoint.

Reads the action inputs and the triggering event, runs the matching event
handler and reports whether a pull request was merged. Handler failures are
logged and end the run successfully; only an unexpected error escaping main
fails the run.
"""

import logging
import os
import sys
import traceback

from action_logging import configure_logging, escape_data
from config import ActionConfig
from event_handlers import EventContext, handle_event
from graphql_client import GraphQLClient
from merge_engine import MergeDecisionEngine, Merged, MergeOutcome
from pr_info_fetcher import PullRequestInfoFetcher

logger = logging.getLogger("entrypoint")


def set_output(name: str, value: str) -> None:
    """Write a step output for later workflow steps."""
    output_path = os.environ.get("GITHUB_OUTPUT")
    if output_path:
        with open(output_path, "a", encoding="utf-8") as f:
            f.write(f"{name}={value}\n")
    else:
        logger.debug("GITHUB_OUTPUT is not set, dropping output %s=%s.", name, value)


def run(config: ActionConfig, client: GraphQLClient | None = None) -> list[MergeOutcome]:
    """Handle the configured event and return the outcomes."""
    logger.info("Automatic merges enabled for GitHub login: %s.", config.github_login)

    context = EventContext.from_config(config)
    client = client or GraphQLClient.from_token(config.github_token)
    outcomes = handle_event(
        context,
        PullRequestInfoFetcher(client),
        MergeDecisionEngine(client),
        config.github_login,
    )

    merged = any(isinstance(outcome, Merged) for outcome in outcomes)
    set_output("merged", "true" if merged else "false")
    return outcomes


def main() -> int:
    try:
        config = ActionConfig.from_env()
        configure_logging(debug=config.debug)
        run(config)
    except Exception as e:
        stack = "".join(traceback.format_exception(type(e), e, e.__traceback__))
        message = f"An unexpected error occurred: {e}, {stack or 'no stack trace'}."
        print(f"::error::{escape_data(message)}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
