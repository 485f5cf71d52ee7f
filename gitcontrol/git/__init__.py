"""
Git and GitHub collaborators.

GitClient wraps local git, GitHubAPI resolves refs over REST and GitHubCLI
drives `gh` for pull requests and account queries.
"""

from .git_utils import (
    GitClient,
    command_exists,
    is_git_repo,
    parse_github_url,
    require_tool,
    run,
)

from .github import (
    GitHubAPI,
    GitHubCLI,
    is_commit_sha,
)

__all__ = [
    'GitClient',
    'command_exists',
    'is_git_repo',
    'parse_github_url',
    'require_tool',
    'run',
    'GitHubAPI',
    'GitHubCLI',
    'is_commit_sha',
]
