"""
GitHub clients.

GitHubAPI talks to the REST API directly with requests; GitHubCLI shells out
to an authenticated `gh`. Both are small so tests can swap in doubles.
"""
import logging
import os
import re
from typing import List, Optional

import requests

from gitcontrol.errors import CommandError, PrerequisiteError
from gitcontrol.git.git_utils import command_exists, run

logger = logging.getLogger(__name__)

SHA_PATTERN = re.compile(r'^[0-9a-f]{40}$')


def is_commit_sha(value: Optional[str]) -> bool:
    """True only for a full, lower-case, 40 character hex commit hash."""
    return isinstance(value, str) and SHA_PATTERN.match(value) is not None


class GitHubAPI:
    """Minimal REST client for the calls gitcontrol needs."""

    def __init__(self, token: Optional[str] = None, base_url: str = "https://api.github.com",
                 timeout: int = 10, session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({
            "Accept": "application/vnd.github+json",
            "User-Agent": "gitcontrol",
        })
        if token:
            self.session.headers["Authorization"] = f"Bearer {token}"

    def resolve_ref(self, owner: str, repo: str, ref: str) -> Optional[str]:
        """
        Resolve a branch or tag to the commit SHA it currently points at.

        Returns:
            The 40 character SHA, or None when the lookup fails or the
            response does not carry a well-formed hash
        """
        url = f"{self.base_url}/repos/{owner}/{repo}/commits/{ref}"
        try:
            response = self.session.get(url, timeout=self.timeout)
            response.raise_for_status()
            sha = response.json().get('sha', '')
        except (requests.RequestException, ValueError, AttributeError) as e:
            logger.warning("Could not resolve %s/%s@%s: %s", owner, repo, ref, e)
            return None

        sha = str(sha or '')[:40]
        if not is_commit_sha(sha):
            logger.warning("Rejected non-SHA response for %s/%s@%s: %r", owner, repo, ref, sha)
            return None
        return sha


class GitHubCLI:
    """Operations performed through the `gh` command-line tool."""

    def __init__(self, cwd: Optional[str] = None, token: Optional[str] = None):
        self.cwd = cwd
        self.token = token

    def _env(self) -> Optional[dict]:
        if not self.token:
            return None
        env = dict(os.environ)
        env["GH_TOKEN"] = self.token
        return env

    def _gh(self, *args: str, check: bool = True):
        return run(["gh", *args], cwd=self.cwd, check=check, env=self._env())

    def is_installed(self) -> bool:
        return command_exists("gh")

    def is_authenticated(self) -> bool:
        return self._gh("auth", "status", check=False).returncode == 0

    def require_ready(self):
        """Raise PrerequisiteError unless gh is installed and logged in."""
        if not self.is_installed():
            raise PrerequisiteError(
                "GitHub CLI (gh) is not installed.",
                hint="Install with: sudo apt install gh or brew install gh, then run: gh auth login"
            )
        if not self.is_authenticated():
            raise PrerequisiteError(
                "GitHub CLI is not authenticated.",
                hint="Run: gh auth login"
            )

    def auth_token(self) -> str:
        if not self.is_installed():
            return ""
        result = self._gh("auth", "token", check=False)
        return result.stdout.strip() if result.returncode == 0 else ""

    def user_login(self) -> str:
        if not self.is_installed():
            return ""
        result = self._gh("api", "user", "--jq", ".login", check=False)
        return result.stdout.strip() if result.returncode == 0 else ""

    def create_pr(self, args: List[str]) -> str:
        """Run `gh pr create` and return its stdout (normally the PR URL)."""
        return self._gh(*args).stdout.strip()

    def add_label(self, branch: str, label: str) -> bool:
        try:
            self._gh("pr", "edit", branch, "--add-label", label)
        except CommandError as e:
            logger.debug("Label %s not applied: %s", label, e)
            return False
        return True

    def pr_url(self, branch: str) -> str:
        result = self._gh("pr", "view", branch, "--json", "url", "--jq", ".url", check=False)
        return result.stdout.strip() if result.returncode == 0 else ""

    def repo_license(self, owner: str, repo: str) -> str:
        """SPDX id GitHub reports for a repository, or empty string."""
        if not self.is_installed():
            return ""
        result = self._gh("repo", "view", f"{owner}/{repo}", "--json", "licenseInfo",
                          "--jq", ".licenseInfo.spdxId", check=False)
        spdx = result.stdout.strip() if result.returncode == 0 else ""
        return "" if spdx in ("", "null") else spdx
