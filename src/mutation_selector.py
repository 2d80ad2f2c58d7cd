"""
Mutation Selector - Chooses the merge strategy from the latest review.

APPROVED keeps the full history with a merge commit; anything else
squashes the automation's commits into one.
"""

from enum import Enum

from pr_info_fetcher import ReviewEdge, ReviewState


class MergeStrategy(str, Enum):
    """Merge strategies, valued by the GraphQL PullRequestMergeMethod."""
    MERGE_COMMIT = "MERGE"
    SQUASH = "SQUASH"
    REBASE = "REBASE"


# Every review state is listed. REBASE is reserved and no state maps to it yet.
REVIEW_STRATEGIES = {
    ReviewState.APPROVED: MergeStrategy.MERGE_COMMIT,
    ReviewState.CHANGES_REQUESTED: MergeStrategy.SQUASH,
    ReviewState.COMMENTED: MergeStrategy.SQUASH,
    ReviewState.DISMISSED: MergeStrategy.SQUASH,
    ReviewState.PENDING: MergeStrategy.SQUASH,
}
NO_REVIEW_STRATEGY = MergeStrategy.SQUASH

_MUTATION_TEMPLATE = """
mutation {name}($commitHeadline: String!, $pullRequestId: ID!) {{
  mergePullRequest(
    input: {{
      commitHeadline: $commitHeadline
      mergeMethod: {method}
      pullRequestId: $pullRequestId
    }}
  ) {{
    pullRequest {{
      id
      merged
    }}
  }}
}}
"""

MUTATIONS = {
    MergeStrategy.MERGE_COMMIT: _MUTATION_TEMPLATE.format(
        name="MergePullRequest", method=MergeStrategy.MERGE_COMMIT.value
    ),
    MergeStrategy.SQUASH: _MUTATION_TEMPLATE.format(
        name="SquashPullRequest", method=MergeStrategy.SQUASH.value
    ),
    MergeStrategy.REBASE: _MUTATION_TEMPLATE.format(
        name="RebasePullRequest", method=MergeStrategy.REBASE.value
    ),
}


def select_mutation(latest_review_edge: ReviewEdge | None) -> MergeStrategy:
    """Pick the merge strategy for the most recent review, if any."""
    if latest_review_edge is None:
        return NO_REVIEW_STRATEGY
    return REVIEW_STRATEGIES[latest_review_edge.state]


def mutation_for(strategy: MergeStrategy) -> str:
    """Return the mutation document that merges with the given strategy."""
    return MUTATIONS[strategy]
