"""
Shared pytest fixtures for the gitcontrol test suite.

Workflow fixtures, alert files, a fake GitHub resolver and a throwaway git
repository used by the end-to-end autofix tests.
"""
import json
import shutil
import subprocess
import textwrap

import pytest
from click.testing import CliRunner

from helpers import FakeGitHubAPI

INJECTION_WORKFLOW = textwrap.dedent("""\
    name: CI
    on: push
    jobs:
      build:
        runs-on: ubuntu-latest
        steps:
          - uses: actions/checkout@v4
          - name: Show commit
            run: echo ${{ github.event.head_commit.message }}
""")

UNPINNED_WORKFLOW = textwrap.dedent("""\
    name: Build
    on: [push, pull_request]
    jobs:
      test:
        runs-on: ubuntu-latest
        steps:
          - uses: actions/checkout@v4
          - uses: actions/setup-python@v5.1.0
            with:
              python-version: "3.12"
          - uses: "octo-org/tools/lint@main"
          - uses: ./.github/actions/local@main
          - uses: actions/checkout@v4
""")


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture
def runner():
    """Create a Click CLI test runner"""
    return CliRunner()


@pytest.fixture
def fake_api():
    return FakeGitHubAPI()


@pytest.fixture
def injection_workflow(tmp_path):
    """Workflow whose run step interpolates the head commit message"""
    path = tmp_path / "ci.yml"
    path.write_text(INJECTION_WORKFLOW)
    return path


@pytest.fixture
def unpinned_workflow(tmp_path):
    """Workflow with tag and branch action references"""
    path = tmp_path / "build.yml"
    path.write_text(UNPINNED_WORKFLOW)
    return path


@pytest.fixture
def write_alerts(tmp_path):
    """Factory writing a list of alert records to alerts.json"""

    def _write(alerts, name="alerts.json"):
        path = tmp_path / name
        path.write_text(json.dumps(alerts))
        return path

    return _write


def _git(cwd, *args):
    subprocess.run(
        ["git", "-c", "user.name=Test", "-c", "user.email=test@example.com", *args],
        cwd=cwd, check=True, capture_output=True, text=True
    )


@pytest.fixture
def git_repo(tmp_path):
    """
    Committed repository with one vulnerable and one unpinned workflow.

    Layout:
        repo/.github/workflows/ci.yml
        repo/.github/workflows/build.yml
    """
    if shutil.which("git") is None:
        pytest.skip("git is not installed")

    repo = tmp_path / "repo"
    workflows = repo / ".github" / "workflows"
    workflows.mkdir(parents=True)
    (workflows / "ci.yml").write_text(INJECTION_WORKFLOW)
    (workflows / "build.yml").write_text(UNPINNED_WORKFLOW)

    _git(repo, "init", "-q")
    _git(repo, "checkout", "-q", "-b", "feature/autofix")
    _git(repo, "add", ".")
    _git(repo, "commit", "-q", "-m", "Add workflows")
    return repo
