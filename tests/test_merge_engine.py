"""
Tests for MergeDecisionEngine.try_merge.

Covers:
  1. No mutation for any state outside MERGEABLE / unmerged / OPEN
  2. Exactly one mutation, with the review-selected strategy, otherwise
  3. Rule order: conflict is reported before merged and open status
  4. Rejected mutation becomes a Failed outcome
"""

import itertools
import sys
import unittest
from pathlib import Path
from unittest.mock import MagicMock

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT / "src"))

from errors import GraphQLError, MutationError
from merge_engine import Failed, MergeDecisionEngine, Merged, Skipped, SkipReason
from mutation_selector import MergeStrategy, mutation_for
from pr_info_fetcher import (
    MergeableState,
    PullRequestInformation,
    PullRequestState,
    ReviewEdge,
    ReviewState,
)


def _make_info(
    mergeable=MergeableState.MERGEABLE,
    merged=False,
    state=PullRequestState.OPEN,
    reviews=(),
):
    return PullRequestInformation(
        pull_request_id="PR_kwDOA1",
        mergeable_state=mergeable,
        merged=merged,
        pull_request_state=state,
        review_edges=tuple(ReviewEdge(state=s) for s in reviews),
    )


class TestTryMerge(unittest.TestCase):

    def setUp(self):
        self.client = MagicMock()
        self.engine = MergeDecisionEngine(self.client)

    def test_mutation_only_for_eligible_state(self):
        for mergeable, merged, state in itertools.product(
            MergeableState, (True, False), PullRequestState
        ):
            with self.subTest(mergeable=mergeable, merged=merged, state=state):
                self.client.reset_mock()
                outcome = self.engine.try_merge(
                    _make_info(mergeable, merged, state), "Bump lodash"
                )
                eligible = (
                    mergeable is MergeableState.MERGEABLE
                    and not merged
                    and state is PullRequestState.OPEN
                )
                if eligible:
                    self.client.execute.assert_called_once()
                    self.assertIsInstance(outcome, Merged)
                else:
                    self.client.execute.assert_not_called()
                    self.assertIsInstance(outcome, Skipped)

    def test_approved_review_merges_with_merge_commit(self):
        info = _make_info(reviews=(ReviewState.APPROVED,))
        outcome = self.engine.try_merge(info, "Bump lodash")

        self.assertEqual(outcome, Merged(MergeStrategy.MERGE_COMMIT, "PR_kwDOA1"))
        self.client.execute.assert_called_once_with(
            mutation_for(MergeStrategy.MERGE_COMMIT),
            {"commitHeadline": "Bump lodash", "pullRequestId": "PR_kwDOA1"},
        )

    def test_no_review_squashes(self):
        outcome = self.engine.try_merge(_make_info(), "Bump lodash")

        self.assertEqual(outcome.strategy, MergeStrategy.SQUASH)
        document = self.client.execute.call_args.args[0]
        self.assertEqual(document, mutation_for(MergeStrategy.SQUASH))

    def test_latest_review_decides(self):
        approved_then_changes = _make_info(
            reviews=(ReviewState.APPROVED, ReviewState.CHANGES_REQUESTED)
        )
        changes_then_approved = _make_info(
            reviews=(ReviewState.CHANGES_REQUESTED, ReviewState.APPROVED)
        )

        self.assertEqual(
            self.engine.try_merge(approved_then_changes, "x").strategy, MergeStrategy.SQUASH
        )
        self.assertEqual(
            self.engine.try_merge(changes_then_approved, "x").strategy,
            MergeStrategy.MERGE_COMMIT,
        )

    def test_conflict_reported_before_merged_status(self):
        info = _make_info(
            mergeable=MergeableState.CONFLICTING, merged=True, state=PullRequestState.MERGED
        )
        with self.assertLogs("merge_engine", level="INFO") as logs:
            outcome = self.engine.try_merge(info, "x")

        self.assertEqual(outcome, Skipped(SkipReason.NOT_MERGEABLE, "CONFLICTING"))
        self.assertIn("CONFLICTING", logs.output[0])

    def test_merged_reported_before_state(self):
        info = _make_info(merged=True, state=PullRequestState.MERGED)
        self.assertEqual(self.engine.try_merge(info, "x"), Skipped(SkipReason.ALREADY_MERGED))

    def test_closed_pull_request_is_not_open(self):
        info = _make_info(state=PullRequestState.CLOSED)
        self.assertEqual(self.engine.try_merge(info, "x"), Skipped(SkipReason.NOT_OPEN, "CLOSED"))

    def test_rejected_mutation_fails(self):
        self.client.execute.side_effect = GraphQLError("Base branch was modified", status=400)

        with self.assertLogs("merge_engine", level="ERROR") as logs:
            outcome = self.engine.try_merge(_make_info(), "x")

        self.assertIsInstance(outcome, Failed)
        self.assertIsInstance(outcome.cause, MutationError)
        self.assertIn("Base branch was modified", str(outcome.cause))
        self.assertIsInstance(outcome.cause.__cause__, GraphQLError)
        self.assertIs(logs.records[0].exc_info[1], outcome.cause.__cause__)
        self.client.execute.assert_called_once()


if __name__ == "__main__":
    unittest.main()
