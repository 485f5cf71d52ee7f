"""
Git utilities.

Thin wrappers around the git executable: each query is one subprocess call
whose exit code or output is interpreted here.
"""
import logging
import re
import shutil
import subprocess
from pathlib import Path
from typing import List, Optional, Tuple

from gitcontrol.errors import CommandError, PrerequisiteError

logger = logging.getLogger(__name__)

GITHUB_URL_PATTERN = re.compile(r'github\.com[:/]([^/]+)/([^/\s]+?)(?:\.git)?/?$')


def run(command: List[str], cwd: Optional[str] = None, check: bool = True,
        input_text: Optional[str] = None,
        env: Optional[dict] = None) -> subprocess.CompletedProcess:
    """
    Run a command and capture its output as text.

    Raises:
        PrerequisiteError: If the executable is not installed
        CommandError: If check is set and the command exits non-zero
    """
    logger.debug("RUN: %s (cwd=%s)", " ".join(command), cwd or ".")
    try:
        result = subprocess.run(
            command,
            cwd=cwd,
            capture_output=True,
            text=True,
            input=input_text,
            env=env,
        )
    except FileNotFoundError:
        raise PrerequisiteError(f"'{command[0]}' command not found. Is it installed and in your PATH?")

    if check and result.returncode != 0:
        raise CommandError(command, result.returncode, result.stderr)
    return result


def command_exists(name: str) -> bool:
    return shutil.which(name) is not None


def require_tool(name: str, hint: Optional[str] = None):
    """Raise PrerequisiteError unless `name` is on PATH."""
    if not command_exists(name):
        raise PrerequisiteError(f"{name} is not installed.", hint=hint)


def parse_github_url(url: str) -> Tuple[str, str]:
    """
    Parse owner and repository name from a GitHub remote URL.

    Returns:
        (owner, repo), both empty strings when the URL is not a GitHub URL
    """
    match = GITHUB_URL_PATTERN.search(url.strip()) if url else None
    if not match:
        return "", ""
    return match.group(1), match.group(2)


def is_git_repo(directory: str = ".") -> bool:
    # .git is a file inside submodules and linked worktrees
    return (Path(directory) / ".git").exists()


class GitClient:
    """Git operations rooted at a working directory."""

    def __init__(self, cwd: Optional[str] = None):
        self.cwd = cwd

    def _git(self, *args: str, check: bool = True) -> subprocess.CompletedProcess:
        return run(["git", *args], cwd=self.cwd, check=check)

    def _output(self, *args: str) -> str:
        result = self._git(*args, check=False)
        if result.returncode != 0:
            return ""
        return result.stdout.strip()

    def in_worktree(self) -> bool:
        return self._git("rev-parse", "--is-inside-work-tree", check=False).returncode == 0

    def root(self) -> str:
        return self._output("rev-parse", "--show-toplevel")

    def current_branch(self) -> str:
        return self._output("rev-parse", "--abbrev-ref", "HEAD")

    def remote_url(self, remote: str = "origin") -> str:
        return self.config_get(f"remote.{remote}.url")

    def repo_owner_and_name(self) -> Tuple[str, str]:
        return parse_github_url(self.remote_url())

    def has_unstaged_changes(self) -> bool:
        return self._git("diff", "--quiet", check=False).returncode != 0

    def has_uncommitted_changes(self) -> bool:
        return self._git("diff-index", "--quiet", "HEAD", "--", check=False).returncode != 0

    def has_untracked_files(self) -> bool:
        return bool(self._output("ls-files", "--others", "--exclude-standard"))

    def is_dirty(self) -> bool:
        return self.has_uncommitted_changes() or self.has_untracked_files()

    def remote_branch_exists(self, branch: str, remote: str = "origin") -> bool:
        probe = self._git("rev-parse", "--verify", f"{remote}/{branch}", check=False)
        return probe.returncode == 0

    def changed_files(self) -> List[str]:
        """Paths reported by `git diff --name-only`, empty outside a work tree."""
        output = self._output("diff", "--name-only")
        return [line for line in output.splitlines() if line.strip()]

    def commit_all(self, message: str):
        self._git("add", ".")
        self._git("commit", "-m", message)

    def push(self, branch: str, remote: str = "origin"):
        self._git("push", "-u", remote, branch)

    def config_get(self, key: str, local: bool = False) -> str:
        if local:
            return self._output("config", "--local", "--get", key)
        return self._output("config", "--get", key)

    def submodule_paths(self, gitmodules: str) -> List[str]:
        """Submodule paths declared in a .gitmodules file."""
        output = self._output("config", "--file", gitmodules, "--get-regexp", r"submodule\..*\.path")
        paths = []
        for line in output.splitlines():
            parts = line.split(None, 1)
            if len(parts) == 2:
                paths.append(parts[1].strip())
        return paths
