"""
PR Info Fetcher - Reads a pull request's merge, review and lifecycle state.

One graph API read per fetch. The nested response is decoded here, once,
into PullRequestInformation; nothing downstream looks at raw response data.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Union

from errors import FetchError, GraphQLError
from graphql_client import GraphQLClient

logger = logging.getLogger(__name__)

_PULL_REQUEST_FIELDS = """
fragment PullRequestFields on PullRequest {
  id
  number
  mergeable
  merged
  state
  author {
    __typename
    login
  }
  commits(last: 1) {
    edges {
      node {
        commit {
          messageHeadline
        }
      }
    }
  }
  reviews(last: 100) {
    edges {
      node {
        state
      }
    }
  }
}
"""

FIND_PULL_REQUEST_BY_BRANCH = """
query FindPullRequestByBranch(
  $referenceName: String!
  $repositoryName: String!
  $repositoryOwner: String!
) {
  repository(name: $repositoryName, owner: $repositoryOwner) {
    pullRequests(
      headRefName: $referenceName
      first: 1
      orderBy: {field: CREATED_AT, direction: DESC}
    ) {
      nodes {
        ...PullRequestFields
      }
    }
  }
}
""" + _PULL_REQUEST_FIELDS

FIND_PULL_REQUEST_BY_NUMBER = """
query FindPullRequestByNumber(
  $pullRequestNumber: Int!
  $repositoryName: String!
  $repositoryOwner: String!
) {
  repository(name: $repositoryName, owner: $repositoryOwner) {
    pullRequest(number: $pullRequestNumber) {
      ...PullRequestFields
    }
  }
}
""" + _PULL_REQUEST_FIELDS


class MergeableState(str, Enum):
    CONFLICTING = "CONFLICTING"
    MERGEABLE = "MERGEABLE"
    UNKNOWN = "UNKNOWN"


class PullRequestState(str, Enum):
    OPEN = "OPEN"
    CLOSED = "CLOSED"
    MERGED = "MERGED"


class ReviewState(str, Enum):
    PENDING = "PENDING"
    COMMENTED = "COMMENTED"
    APPROVED = "APPROVED"
    CHANGES_REQUESTED = "CHANGES_REQUESTED"
    DISMISSED = "DISMISSED"


@dataclass(frozen=True)
class ReviewEdge:
    """One submitted review."""
    state: ReviewState


@dataclass(frozen=True)
class PullRequestInformation:
    """Snapshot of a pull request taken for a single merge decision."""
    pull_request_id: str
    mergeable_state: MergeableState
    merged: bool
    pull_request_state: PullRequestState
    review_edges: tuple[ReviewEdge, ...] = ()
    pull_request_number: int | None = None
    author_login: str | None = None
    author_is_bot: bool = False
    commit_headline: str | None = None

    @property
    def latest_review(self) -> ReviewEdge | None:
        return self.review_edges[-1] if self.review_edges else None


@dataclass(frozen=True)
class BranchQuery:
    """Look up the newest pull request whose head is a branch."""
    reference_name: str
    repository_owner: str
    repository_name: str

    def variables(self) -> dict[str, Any]:
        return {
            "referenceName": self.reference_name,
            "repositoryName": self.repository_name,
            "repositoryOwner": self.repository_owner,
        }


@dataclass(frozen=True)
class NumberQuery:
    """Look up a pull request by number."""
    pull_request_number: int
    repository_owner: str
    repository_name: str

    def variables(self) -> dict[str, Any]:
        return {
            "pullRequestNumber": self.pull_request_number,
            "repositoryName": self.repository_name,
            "repositoryOwner": self.repository_owner,
        }


@dataclass(frozen=True)
class Found:
    information: PullRequestInformation


@dataclass(frozen=True)
class NotFound:
    reason: str


FetchResult = Union[Found, NotFound]
PullRequestQuery = Union[BranchQuery, NumberQuery]


class PullRequestInfoFetcher:
    """Fetches PullRequestInformation for a branch or a pull request number."""

    def __init__(self, client: GraphQLClient):
        self.client = client

    def fetch(self, query: PullRequestQuery) -> FetchResult:
        """
        Execute the query matching the lookup kind and decode the result.

        Returns:
            Found with the decoded information, or NotFound when the provider
            has no matching pull request

        Raises:
            FetchError: The read failed or returned an unexpected shape
        """
        if isinstance(query, BranchQuery):
            document = FIND_PULL_REQUEST_BY_BRANCH
        else:
            document = FIND_PULL_REQUEST_BY_NUMBER

        try:
            data = self.client.execute(document, query.variables())
        except GraphQLError as e:
            if e.not_found:
                return NotFound(reason=str(e))
            raise FetchError(f"Unable to fetch pull request information: {e}") from e

        node = _select_node(data, query)
        if node is None:
            return NotFound(reason=f"No pull request matches {_describe_query(query)}.")

        information = _decode(node)
        logger.debug("Decoded pull request information: %s", information)
        return Found(information=information)


def _describe_query(query: PullRequestQuery) -> str:
    repository = f"{query.repository_owner}/{query.repository_name}"
    if isinstance(query, BranchQuery):
        return f"branch {query.reference_name!r} in {repository}"
    return f"#{query.pull_request_number} in {repository}"


def _select_node(data: dict[str, Any] | None, query: PullRequestQuery) -> dict[str, Any] | None:
    """Walk down to the single pull request node, or None if there is none."""
    if not data:
        return None
    repository = data.get("repository")
    if not repository:
        return None

    if isinstance(query, NumberQuery):
        return repository.get("pullRequest")

    nodes = (repository.get("pullRequests") or {}).get("nodes") or []
    return nodes[0] if nodes else None


def _decode(node: dict[str, Any]) -> PullRequestInformation:
    try:
        review_edges = tuple(
            ReviewEdge(state=ReviewState(edge["node"]["state"]))
            for edge in (node.get("reviews") or {}).get("edges") or []
            if edge and edge.get("node")
        )

        author = node.get("author") or {}
        commit_edges = (node.get("commits") or {}).get("edges") or []
        commit_headline = None
        if commit_edges and commit_edges[-1]:
            commit_headline = commit_edges[-1]["node"]["commit"]["messageHeadline"]

        return PullRequestInformation(
            pull_request_id=node["id"],
            mergeable_state=MergeableState(node["mergeable"]),
            merged=bool(node["merged"]),
            pull_request_state=PullRequestState(node["state"]),
            review_edges=review_edges,
            pull_request_number=node.get("number"),
            author_login=author.get("login"),
            author_is_bot=author.get("__typename") == "Bot",
            commit_headline=commit_headline,
        )
    except (KeyError, TypeError, ValueError) as e:
        raise FetchError(f"Unexpected pull request response shape: {e!r}") from e
