"""
Ref Parser - Extracts branch names and commit headlines from push payloads.
"""

import re

from errors import ParseError

SHORT_REFERENCE_PATTERN = re.compile(r"refs/heads/(?P<name>[^\r\n]*)")
LINE_BREAK_PATTERN = re.compile(r"\r\n|\r|\n")


def parse_reference_name(ref: str) -> str:
    """
    Strip the refs/heads/ prefix from a full git reference.

    A bare "refs/heads/" yields an empty name. Names spanning a line break
    are not branch references.

    Raises:
        ParseError: The reference is not a branch reference
    """
    if not isinstance(ref, str):
        raise ParseError(f"Expected a git reference string, got {type(ref).__name__}.")

    match = SHORT_REFERENCE_PATTERN.fullmatch(ref)
    if match is None:
        raise ParseError(f"Reference {ref!r} is not a branch reference.")
    return match.group("name")


def parse_commit_headline(message: str) -> str:
    """
    Return the first line of a commit message.

    Raises:
        ParseError: No commit message was supplied
    """
    if not isinstance(message, str):
        raise ParseError("Commit message is missing.")
    return LINE_BREAK_PATTERN.split(message, maxsplit=1)[0]
