"""Revision resolution for the WebRTC repository.

Turns what the user asked for (a branch, an explicit sha, or nothing) into a
concrete git sha, and looks up the Chromium commit-position number that
release labels use.
"""

import base64
import binascii
import logging
import re
from dataclasses import dataclass, replace
from typing import Optional

import requests

from ..command_runner import CommandError, CommandRunner

logger = logging.getLogger(__name__)

COMMIT_POSITION_RE = re.compile(r"\{#(\d+)\}")
SHA_RE = re.compile(r"^[0-9a-f]{7,40}$")


class ResolutionError(Exception):
    """Raised when a branch or revision cannot be resolved."""

    pass


@dataclass(frozen=True)
class RevisionSpec:
    """A resolved revision.

    kind is 'explicit', 'branch' or 'latest'. Once resolved, sha never changes.
    """

    kind: str
    sha: str
    number: Optional[int] = None
    branch: Optional[str] = None

    @property
    def short_sha(self) -> str:
        return short_rev(self.sha)

    @property
    def branch_number(self) -> Optional[str]:
        return branch_number(self.branch) if self.branch else None

    def with_number(self, number: int) -> "RevisionSpec":
        return replace(self, number=number)


def short_rev(revision: str) -> str:
    """Return the 7 character abbreviation of a sha."""
    return revision[:7]


def branch_number(branch: str) -> str:
    """Return the last path component of a branch name.

    'branch-heads/72' -> '72'
    """
    return branch.rstrip("/").rsplit("/", 1)[-1]


def parse_commit_position(commit_text: str) -> Optional[int]:
    """Extract the commit position from a commit message.

    Chromium-hosted repos end their commit messages with a trailer such as
    ``Cr-Commit-Position: refs/heads/main@{#41234}``. The last match wins.

    Returns:
        The position, or None if the message has no trailer
    """
    matches = COMMIT_POSITION_RE.findall(commit_text)
    if not matches:
        return None
    return int(matches[-1])


class RevisionResolver:
    """Resolves branches and revisions against a remote git repository."""

    def __init__(
        self,
        runner: CommandRunner,
        repo_url: str,
        timeout: float = 120.0,
        session: Optional[requests.Session] = None,
    ):
        """Initialize resolver.

        Args:
            runner: Command runner used for git ls-remote
            repo_url: Remote repository URL (a gitiles host for number lookup)
            timeout: Seconds allowed per remote query
            session: HTTP session for the revision number lookup
        """
        self.runner = runner
        self.repo_url = repo_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def resolve(self, branch: Optional[str] = None, revision: Optional[str] = None) -> RevisionSpec:
        """Resolve the requested revision.

        A branch wins over an explicit revision; with neither, the remote HEAD
        is used.

        Raises:
            ResolutionError: If the branch or HEAD cannot be resolved
        """
        if branch:
            sha = self._ls_remote(branch)
            if not sha:
                raise ResolutionError(f"Could not get revision of branch '{branch}'")
            return RevisionSpec(kind="branch", sha=sha, branch=branch)

        if revision:
            return RevisionSpec(kind="explicit", sha=revision.strip())

        sha = self._ls_remote("HEAD")
        if not sha:
            raise ResolutionError(f"Could not get latest revision of {self.repo_url}")
        return RevisionSpec(kind="latest", sha=sha)

    def lookup_revision_number(self, sha: str) -> int:
        """Look up the commit position of a revision.

        Fetches the raw commit from gitiles (``?format=TEXT`` returns it base64
        encoded) and reads the commit-position trailer.

        Raises:
            ResolutionError: If the request fails or the commit has no trailer
        """
        url = f"{self.repo_url}/+/{sha}?format=TEXT"
        try:
            response = self.session.get(url, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            raise ResolutionError(f"Could not get revision number for {sha}: {e}") from e

        try:
            commit_text = base64.b64decode(response.text.strip()).decode("utf-8", errors="replace")
        except (binascii.Error, ValueError) as e:
            raise ResolutionError(f"Malformed commit data for {sha}: {e}") from e

        number = parse_commit_position(commit_text)
        if number is None:
            raise ResolutionError(f"Commit {sha} has no commit position")
        return number

    def _ls_remote(self, ref: str) -> Optional[str]:
        """Return the sha of the first ref matching ``ref`` on the remote."""
        try:
            result = self.runner.run(
                ["git", "ls-remote", self.repo_url, ref],
                capture=True,
                timeout=self.timeout,
            )
        except CommandError as e:
            raise ResolutionError(f"Could not query {self.repo_url}: {e}") from e

        if not result.ok:
            raise ResolutionError(
                f"git ls-remote failed for '{ref}': {result.stderr.strip() or result.returncode}"
            )

        for line in result.stdout.splitlines():
            fields = line.split()
            if fields and SHA_RE.match(fields[0]):
                logger.debug("Resolved %s to %s (%s)", ref, fields[0], fields[-1])
                return fields[0]
        return None
