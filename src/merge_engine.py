"""
Merge Engine - Decides whether a pull request is eligible and merges it.

The checks run in a fixed order: mergeability first, so a conflicting
pull request reports the conflict even if it transiently also looks merged,
then merged status, then open status. Only a pull request passing all three
gets a mutation, and it gets exactly one.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Union

from errors import GraphQLError, MutationError
from graphql_client import GraphQLClient
from mutation_selector import MergeStrategy, mutation_for, select_mutation
from pr_info_fetcher import MergeableState, PullRequestInformation, PullRequestState

logger = logging.getLogger(__name__)


class SkipReason(str, Enum):
    """Why an event ended without a merge."""
    NOT_MERGEABLE = "not_mergeable"
    ALREADY_MERGED = "already_merged"
    NOT_OPEN = "not_open"
    UNAUTHORIZED_ACTOR = "unauthorized_actor"
    NOT_FOUND = "not_found"
    UNSUPPORTED_ACTION = "unsupported_action"
    CHECK_SUITE_NOT_SUCCESSFUL = "check_suite_not_successful"
    NO_PULL_REQUESTS = "no_pull_requests"


@dataclass(frozen=True)
class Merged:
    strategy: MergeStrategy
    pull_request_id: str


@dataclass(frozen=True)
class Skipped:
    reason: SkipReason
    detail: str | None = None


@dataclass(frozen=True)
class Failed:
    cause: Exception


MergeOutcome = Union[Merged, Skipped, Failed]


class MergeDecisionEngine:
    """Applies the merge eligibility rules and issues the merge mutation."""

    def __init__(self, client: GraphQLClient):
        self.client = client

    def try_merge(self, info: PullRequestInformation, commit_headline: str) -> MergeOutcome:
        """
        Merge the pull request if it is mergeable, unmerged and open.

        Args:
            info: Freshly fetched pull request information
            commit_headline: Headline for the resulting merge commit

        Returns:
            Merged, Skipped with the first failing rule, or Failed when the
            mutation was rejected
        """
        if info.mergeable_state is not MergeableState.MERGEABLE:
            state = info.mergeable_state.value
            logger.info("Pull request is not in a mergeable state: %s.", state)
            return Skipped(SkipReason.NOT_MERGEABLE, state)

        if info.merged:
            logger.info("Pull request is already merged.")
            return Skipped(SkipReason.ALREADY_MERGED)

        if info.pull_request_state is not PullRequestState.OPEN:
            state = info.pull_request_state.value
            logger.info("Pull request is not open: %s.", state)
            return Skipped(SkipReason.NOT_OPEN, state)

        strategy = select_mutation(info.latest_review)
        try:
            self.client.execute(
                mutation_for(strategy),
                {
                    "commitHeadline": commit_headline,
                    "pullRequestId": info.pull_request_id,
                },
            )
        except GraphQLError as e:
            error = MutationError(f"Merge with strategy {strategy.name} failed: {e}")
            error.__cause__ = e
            logger.error("%s", error, exc_info=e)
            return Failed(cause=error)

        logger.info(
            "Merged pull request %s using strategy %s.",
            info.pull_request_id,
            strategy.name,
        )
        return Merged(strategy=strategy, pull_request_id=info.pull_request_id)
