import subprocess
from unittest.mock import Mock, patch

import pytest
import requests

from gitcontrol.errors import CommandError, PrerequisiteError
from gitcontrol.git import GitHubAPI, GitHubCLI, is_commit_sha
from helpers import SHA_CHECKOUT


def completed(stdout="", returncode=0):
    return subprocess.CompletedProcess(args=["gh"], returncode=returncode, stdout=stdout, stderr="")


@pytest.fixture
def session():
    session = Mock()
    session.headers = {}
    return session


def json_response(payload):
    response = Mock()
    response.json.return_value = payload
    response.raise_for_status.return_value = None
    return response


class TestIsCommitSha:

    def test_valid(self):
        assert is_commit_sha(SHA_CHECKOUT)

    @pytest.mark.parametrize("value", [None, "", "v4", SHA_CHECKOUT[:39], SHA_CHECKOUT.upper(), 42])
    def test_invalid(self, value):
        assert not is_commit_sha(value)


class TestGitHubAPI:
    """Tests for ref resolution over REST"""

    def test_headers(self, session):
        GitHubAPI(token="secret", session=session)
        assert session.headers["Authorization"] == "Bearer secret"
        assert session.headers["Accept"] == "application/vnd.github+json"

    def test_no_token_no_auth_header(self, session):
        GitHubAPI(session=session)
        assert "Authorization" not in session.headers

    def test_resolve_ref(self, session):
        session.get.return_value = json_response({"sha": SHA_CHECKOUT})
        api = GitHubAPI(token="t", base_url="https://ghe.example.com/api/v3/", timeout=3, session=session)

        assert api.resolve_ref("actions", "checkout", "v4") == SHA_CHECKOUT
        session.get.assert_called_once_with(
            "https://ghe.example.com/api/v3/repos/actions/checkout/commits/v4", timeout=3
        )

    def test_http_error(self, session):
        response = json_response({})
        response.raise_for_status.side_effect = requests.HTTPError("404 Not Found")
        session.get.return_value = response
        assert GitHubAPI(session=session).resolve_ref("actions", "checkout", "v99") is None

    def test_network_error(self, session):
        session.get.side_effect = requests.ConnectionError("offline")
        assert GitHubAPI(session=session).resolve_ref("actions", "checkout", "v4") is None

    def test_invalid_json(self, session):
        response = json_response(None)
        response.json.side_effect = ValueError("not json")
        session.get.return_value = response
        assert GitHubAPI(session=session).resolve_ref("actions", "checkout", "v4") is None

    @pytest.mark.parametrize("payload", [{}, {"sha": None}, {"sha": "abc"}, {"message": "Not Found"}])
    def test_malformed_sha(self, session, payload):
        session.get.return_value = json_response(payload)
        assert GitHubAPI(session=session).resolve_ref("actions", "checkout", "v4") is None

    def test_long_sha_is_truncated(self, session):
        session.get.return_value = json_response({"sha": SHA_CHECKOUT + "ffff"})
        assert GitHubAPI(session=session).resolve_ref("actions", "checkout", "v4") == SHA_CHECKOUT


class TestGitHubCLI:
    """Tests for gh wrappers with the subprocess layer mocked"""

    @patch('gitcontrol.git.github.command_exists', return_value=False)
    def test_require_ready_not_installed(self, mock_exists):
        with pytest.raises(PrerequisiteError) as exc_info:
            GitHubCLI().require_ready()
        assert "gh auth login" in exc_info.value.hint

    @patch('gitcontrol.git.github.run', return_value=completed(returncode=1))
    @patch('gitcontrol.git.github.command_exists', return_value=True)
    def test_require_ready_not_authenticated(self, mock_exists, mock_run):
        with pytest.raises(PrerequisiteError, match="not authenticated"):
            GitHubCLI().require_ready()

    @patch('gitcontrol.git.github.run', return_value=completed("gho_abc123\n"))
    @patch('gitcontrol.git.github.command_exists', return_value=True)
    def test_auth_token(self, mock_exists, mock_run):
        assert GitHubCLI().auth_token() == "gho_abc123"

    @patch('gitcontrol.git.github.command_exists', return_value=False)
    def test_auth_token_without_gh(self, mock_exists):
        assert GitHubCLI().auth_token() == ""

    @patch('gitcontrol.git.github.run')
    def test_token_passed_as_gh_token(self, mock_run):
        mock_run.return_value = completed("https://github.com/o/r/pull/1\n")
        GitHubCLI(token="secret").create_pr(["pr", "create", "--title", "t"])

        args, kwargs = mock_run.call_args
        assert args[0] == ["gh", "pr", "create", "--title", "t"]
        assert kwargs["env"]["GH_TOKEN"] == "secret"

    @patch('gitcontrol.git.github.run', side_effect=CommandError(["gh"], 1, "label not found"))
    def test_add_label_failure(self, mock_run):
        assert GitHubCLI().add_label("feature/x", "bug") is False

    @patch('gitcontrol.git.github.run', return_value=completed())
    def test_add_label(self, mock_run):
        assert GitHubCLI().add_label("feature/x", "bug") is True
        assert mock_run.call_args[0][0] == ["gh", "pr", "edit", "feature/x", "--add-label", "bug"]

    @pytest.mark.parametrize("stdout,expected", [("MIT\n", "MIT"), ("null\n", ""), ("", "")])
    def test_repo_license(self, stdout, expected):
        with patch('gitcontrol.git.github.command_exists', return_value=True), \
                patch('gitcontrol.git.github.run', return_value=completed(stdout)):
            assert GitHubCLI().repo_license("octo-org", "app") == expected
