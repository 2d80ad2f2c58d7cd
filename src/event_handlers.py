"""
Event Handlers - Per-event drivers that feed the merge engine.

Each handler gathers what the engine needs for its event kind (branch,
pull request number, commit headline), fetches the pull request and asks
the engine to merge it. Handlers run inside an error boundary: failures are
logged and returned as Failed outcomes, never raised to the entrypoint.
"""

import functools
import logging
from dataclasses import dataclass, field
from typing import Any, Callable

from config import ActionConfig
from errors import ParseError
from merge_engine import Failed, MergeDecisionEngine, MergeOutcome, Skipped, SkipReason
from pr_info_fetcher import (
    BranchQuery,
    FetchResult,
    Found,
    NumberQuery,
    PullRequestInfoFetcher,
    PullRequestInformation,
)
from ref_parser import parse_commit_headline, parse_reference_name

logger = logging.getLogger(__name__)

PULL_REQUEST_ACTIONS = frozenset({
    "opened",
    "reopened",
    "synchronize",
    "edited",
    "ready_for_review",
})


@dataclass(frozen=True)
class EventContext:
    """The triggering event, threaded explicitly through the handlers."""
    event_name: str
    actor: str
    repository_owner: str
    repository_name: str
    payload: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_config(cls, config: ActionConfig) -> "EventContext":
        payload = config.load_event()
        owner, name = config.repository_parts(payload)
        return cls(
            event_name=config.event_name,
            actor=config.actor,
            repository_owner=owner,
            repository_name=name,
            payload=payload,
        )


def logins_match(login: str | None, github_login: str) -> bool:
    """Compare a REST payload login with the configured login, ignoring case."""
    if not login:
        return False
    return login.lower() == github_login.lower()


def author_matches(information: PullRequestInformation, github_login: str) -> bool:
    """Compare a graph API author with the configured login.

    The graph API reports bot apps without the "[bot]" suffix the REST
    payloads carry, so it is added back for Bot authors only.
    """
    login = information.author_login
    if login and information.author_is_bot:
        login = f"{login}[bot]"
    return logins_match(login, github_login)


def _report_failure(handler: Callable, error: Exception) -> Failed:
    logger.error("%s failed: %s", handler.__name__, error, exc_info=error)
    return Failed(cause=error)


def guarded(handler: Callable[..., MergeOutcome]) -> Callable[..., MergeOutcome]:
    """Error boundary for a handler producing one outcome."""
    @functools.wraps(handler)
    def wrapper(*args, **kwargs) -> MergeOutcome:
        try:
            return handler(*args, **kwargs)
        except Exception as e:
            return _report_failure(handler, e)
    return wrapper


def guarded_all(handler: Callable[..., list[MergeOutcome]]) -> Callable[..., list[MergeOutcome]]:
    """Error boundary for a handler producing one outcome per pull request."""
    @functools.wraps(handler)
    def wrapper(*args, **kwargs) -> list[MergeOutcome]:
        try:
            return handler(*args, **kwargs)
        except Exception as e:
            return [_report_failure(handler, e)]
    return wrapper


def _merge_found(
    result: FetchResult,
    engine: MergeDecisionEngine,
    commit_headline: str | Callable[[Found], str],
) -> MergeOutcome:
    if not isinstance(result, Found):
        logger.warning("Unable to fetch pull request information: %s", result.reason)
        return Skipped(SkipReason.NOT_FOUND, result.reason)

    if callable(commit_headline):
        commit_headline = commit_headline(result)
    return engine.try_merge(result.information, commit_headline)


def _push_commit_message(payload: dict[str, Any]) -> str | None:
    head_commit = payload.get("head_commit")
    if head_commit:
        return head_commit.get("message")
    commits = payload.get("commits") or []
    return commits[0].get("message") if commits else None


@guarded
def handle_push(
    context: EventContext,
    fetcher: PullRequestInfoFetcher,
    engine: MergeDecisionEngine,
    github_login: str,
) -> MergeOutcome:
    """Merge the pull request for a branch the automation identity pushed to."""
    payload = context.payload
    pusher = (payload.get("pusher") or {}).get("name")
    if not logins_match(pusher, github_login):
        logger.info("Push not made by %s, skipping.", github_login)
        return Skipped(SkipReason.UNAUTHORIZED_ACTOR, pusher)

    reference_name = parse_reference_name(payload.get("ref"))
    commit_headline = parse_commit_headline(_push_commit_message(payload))

    result = fetcher.fetch(BranchQuery(
        reference_name=reference_name,
        repository_owner=context.repository_owner,
        repository_name=context.repository_name,
    ))
    return _merge_found(result, engine, commit_headline)


@guarded
def handle_pull_request(
    context: EventContext,
    fetcher: PullRequestInfoFetcher,
    engine: MergeDecisionEngine,
    github_login: str,
) -> MergeOutcome:
    """Merge an updated pull request opened by the automation identity."""
    payload = context.payload
    action = payload.get("action")
    if action not in PULL_REQUEST_ACTIONS:
        logger.info("Pull request action %s is not handled, skipping.", action)
        return Skipped(SkipReason.UNSUPPORTED_ACTION, action)

    pull_request = payload.get("pull_request") or {}
    author = (pull_request.get("user") or {}).get("login")
    if not logins_match(author, github_login):
        logger.info("Pull request not created by %s, skipping.", github_login)
        return Skipped(SkipReason.UNAUTHORIZED_ACTOR, author)

    number = pull_request.get("number", payload.get("number"))
    if not isinstance(number, int):
        raise ParseError("Pull request payload has no number.")

    result = fetcher.fetch(NumberQuery(
        pull_request_number=number,
        repository_owner=context.repository_owner,
        repository_name=context.repository_name,
    ))
    return _merge_found(
        result,
        engine,
        lambda found: found.information.commit_headline
        or parse_commit_headline(pull_request.get("title")),
    )


@guarded
def _merge_check_suite_pull_request(
    context: EventContext,
    fetcher: PullRequestInfoFetcher,
    engine: MergeDecisionEngine,
    github_login: str,
    number: Any,
    head_commit_message: str | None,
) -> MergeOutcome:
    if not isinstance(number, int):
        raise ParseError("Check suite pull request has no number.")

    result = fetcher.fetch(NumberQuery(
        pull_request_number=number,
        repository_owner=context.repository_owner,
        repository_name=context.repository_name,
    ))
    if isinstance(result, Found) and not author_matches(result.information, github_login):
        logger.info("Pull request #%s not created by %s, skipping.", number, github_login)
        return Skipped(SkipReason.UNAUTHORIZED_ACTOR, result.information.author_login)

    return _merge_found(
        result,
        engine,
        lambda found: found.information.commit_headline
        or parse_commit_headline(head_commit_message),
    )


@guarded_all
def handle_check_suite(
    context: EventContext,
    fetcher: PullRequestInfoFetcher,
    engine: MergeDecisionEngine,
    github_login: str,
) -> list[MergeOutcome]:
    """Try to merge every pull request attached to a successful check suite."""
    payload = context.payload
    check_suite = payload.get("check_suite") or {}
    conclusion = check_suite.get("conclusion")
    if payload.get("action") != "completed" or conclusion != "success":
        logger.info("Check suite did not complete successfully (%s), skipping.", conclusion)
        return [Skipped(SkipReason.CHECK_SUITE_NOT_SUCCESSFUL, conclusion)]

    pull_requests = check_suite.get("pull_requests") or []
    if not pull_requests:
        logger.info("Check suite has no associated pull requests, skipping.")
        return [Skipped(SkipReason.NO_PULL_REQUESTS)]

    head_commit_message = (check_suite.get("head_commit") or {}).get("message")
    return [
        _merge_check_suite_pull_request(
            context,
            fetcher,
            engine,
            github_login,
            pull_request.get("number"),
            head_commit_message,
        )
        for pull_request in pull_requests
    ]


HANDLERS = {
    "check_suite": handle_check_suite,
    "pull_request": handle_pull_request,
    "push": handle_push,
}


def classify_event(event_name: str) -> Callable | None:
    """Return the handler for an event kind, or None if it is not handled."""
    return HANDLERS.get(event_name)


def handle_event(
    context: EventContext,
    fetcher: PullRequestInfoFetcher,
    engine: MergeDecisionEngine,
    github_login: str,
) -> list[MergeOutcome]:
    """Dispatch the event to its handler and collect the outcomes."""
    handler = classify_event(context.event_name)
    if handler is None:
        logger.warning("Unknown event %s, skipping.", context.event_name)
        return []

    outcome = handler(context, fetcher, engine, github_login)
    return outcome if isinstance(outcome, list) else [outcome]
