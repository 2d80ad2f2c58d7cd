"""
GraphQL Client - Executes graph API documents through PyGithub's requester.
"""

import logging
from typing import Any

from github import Auth, Github, GithubException

from errors import GraphQLError

logger = logging.getLogger(__name__)


class GraphQLClient:
    """Thin wrapper so the rest of the action never touches PyGithub directly."""

    def __init__(self, gh: Github):
        """Initialize client with an authenticated Github object."""
        self.gh = gh

    @classmethod
    def from_token(cls, token: str) -> "GraphQLClient":
        return cls(Github(auth=Auth.Token(token)))

    def execute(self, document: str, variables: dict[str, Any]) -> dict[str, Any] | None:
        """
        Run a query or mutation.

        Args:
            document: GraphQL query or mutation text
            variables: Values for the document's variables

        Returns:
            The response's "data" member, which may be None

        Raises:
            GraphQLError: Transport failure or errors reported by the API
        """
        logger.debug("Executing GraphQL document with variables %s", variables)
        try:
            _, response = self.gh.requester.graphql_query(document, variables)
        except GithubException as e:
            raise GraphQLError(_describe(e), status=e.status) from e
        return (response or {}).get("data")


def _describe(error: GithubException) -> str:
    """Pull the provider's own message out of a PyGithub exception."""
    data = error.data
    if isinstance(data, dict):
        errors = data.get("errors")
        if isinstance(errors, list) and errors:
            messages = [e.get("message", "") for e in errors if isinstance(e, dict)]
            return "; ".join(m for m in messages if m) or str(error)
        if data.get("message"):
            return str(data["message"])
    return str(error)
