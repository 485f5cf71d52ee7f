import json
from unittest.mock import Mock, patch

import pytest
import requests

from gitcontrol.errors import InputError, PrerequisiteError
from gitcontrol.git import GitClient, GitHubCLI
from gitcontrol.mcp_setup import (
    build_mcp_config,
    check_mcp_connection,
    create_mcp_config,
    detect_config_dir,
    get_github_token,
    load_mcp_config,
    mask_token,
    probe_endpoint,
    run_mcp_setup,
    show_token_info,
)


@pytest.fixture
def repo_git(tmp_path):
    git = Mock(spec=GitClient)
    git.in_worktree.return_value = True
    git.root.return_value = str(tmp_path / "repo")
    return git


@pytest.fixture
def no_repo_git():
    git = Mock(spec=GitClient)
    git.in_worktree.return_value = False
    return git


@pytest.fixture
def ready_gh():
    gh = Mock(spec=GitHubCLI)
    gh.is_installed.return_value = True
    gh.auth_token.return_value = "gho_1234567890abcdef"
    gh.user_login.return_value = "octocat"
    return gh


class TestDetectConfigDir:
    """Tests for choosing where mcp.json goes"""

    def test_workspace_directory(self, repo_git, tmp_path, capsys):
        config_dir = detect_config_dir(repo_git, user_config_dir=str(tmp_path / "user"))

        assert config_dir == tmp_path / "repo" / ".vscode"
        assert config_dir.is_dir()
        assert "Created workspace .vscode directory" in capsys.readouterr().out

    def test_user_directory_outside_repo(self, no_repo_git, tmp_path):
        user_dir = tmp_path / "Code" / "User"
        config_dir = detect_config_dir(no_repo_git, user_config_dir=str(user_dir))

        assert config_dir == user_dir
        assert user_dir.is_dir()


class TestMcpConfig:
    """Tests for the generated configuration"""

    def test_template(self):
        config = build_mcp_config("https://mcp.example.com/")

        assert [i["id"] for i in config["inputs"]] == ["github_mcp_pat", "firecrawlApiKey"]
        assert all(i["password"] is True for i in config["inputs"])
        assert config["servers"]["github"] == {
            "type": "http",
            "url": "https://mcp.example.com/",
            "headers": {"Authorization": "Bearer ${input:github_mcp_pat}"},
        }
        assert config["servers"]["stackoverflow"]["type"] == "http"
        assert config["servers"]["firecrawl"]["command"] == "npx"
        assert config["servers"]["firecrawl"]["args"] == ["-y", "firecrawl-mcp"]
        assert config["servers"]["firecrawl"]["type"] == "stdio"

    @patch('gitcontrol.mcp_setup.command_exists', return_value=True)
    def test_create_writes_json(self, mock_exists, tmp_path):
        config_file = create_mcp_config(tmp_path / ".vscode" / "mcp.json", "https://mcp.example.com/")

        data = json.loads(config_file.read_text())
        assert data == build_mcp_config("https://mcp.example.com/")
        assert "gho_" not in config_file.read_text()

    @patch('gitcontrol.mcp_setup.command_exists', return_value=False)
    def test_create_warns_without_gh(self, mock_exists, tmp_path, capsys):
        create_mcp_config(tmp_path / "mcp.json")
        assert "GitHub CLI (gh) not found" in capsys.readouterr().out

    def test_load_missing(self, tmp_path):
        with pytest.raises(InputError, match="MCP config not found"):
            load_mcp_config(tmp_path / "mcp.json")

    def test_load_invalid(self, tmp_path):
        path = tmp_path / "mcp.json"
        path.write_text("{broken")
        with pytest.raises(InputError, match="Invalid JSON"):
            load_mcp_config(path)


class TestProbeEndpoint:
    """Tests for the reachability check"""

    @pytest.mark.parametrize("status,expected", [(200, True), (301, True), (401, True), (404, True),
                                                 (500, False), (503, False)])
    @patch('gitcontrol.mcp_setup.requests.get')
    def test_status_codes(self, mock_get, status, expected):
        mock_get.return_value = Mock(status_code=status)
        assert probe_endpoint("https://api.example.com", timeout=5) is expected
        mock_get.assert_called_once_with("https://api.example.com", timeout=5, allow_redirects=True)

    @patch('gitcontrol.mcp_setup.requests.get', side_effect=requests.ConnectionError("offline"))
    def test_network_failure(self, mock_get):
        assert probe_endpoint("https://api.example.com", timeout=5) is False


class TestCheckConnection:

    @patch('gitcontrol.mcp_setup.command_exists', return_value=False)
    @patch('gitcontrol.mcp_setup.probe_endpoint', return_value=False)
    def test_only_warns_on_environment(self, mock_probe, mock_exists, tmp_path, capsys):
        path = tmp_path / "mcp.json"
        path.write_text(json.dumps(build_mcp_config()))

        assert check_mcp_connection(path) is True
        out = capsys.readouterr().out
        assert "MCP config is valid JSON" in out
        assert "endpoint test inconclusive" in out
        assert "npx not found" in out


class TestToken:
    """Tests for token lookup and display"""

    def test_mask_token(self):
        assert mask_token("ghp_abcdefghijklmnop") == "ghp_...mnop"
        assert mask_token("short") == "*****"

    def test_prefers_gh(self, ready_gh, monkeypatch):
        monkeypatch.setenv("GITHUB_TOKEN", "env-token")
        assert get_github_token(ready_gh) == "gho_1234567890abcdef"

    def test_falls_back_to_env(self, ready_gh, monkeypatch):
        ready_gh.auth_token.return_value = ""
        monkeypatch.setenv("GITHUB_TOKEN", "env-token-123456")
        assert get_github_token(ready_gh) == "env-token-123456"

    def test_no_token(self, ready_gh, monkeypatch):
        ready_gh.auth_token.return_value = ""
        monkeypatch.delenv("GITHUB_TOKEN", raising=False)
        assert get_github_token(ready_gh) is None

    def test_show_token_info(self, ready_gh, capsys):
        assert show_token_info(ready_gh) is True
        out = capsys.readouterr().out
        assert "gho_...cdef" in out
        assert "gho_1234567890abcdef" not in out
        assert "Authenticated as: octocat" in out


class TestRunMcpSetup:
    """Tests for the setup modes"""

    @patch('gitcontrol.mcp_setup.command_exists', return_value=True)
    def test_config_mode(self, mock_exists, repo_git, ready_gh, tmp_path):
        assert run_mcp_setup("config", git=repo_git, gh=ready_gh) is True
        ready_gh.require_ready.assert_called_once()
        assert (tmp_path / "repo" / ".vscode" / "mcp.json").is_file()

    @patch('gitcontrol.mcp_setup.probe_endpoint', return_value=True)
    @patch('gitcontrol.mcp_setup.command_exists', return_value=True)
    def test_full_mode(self, mock_exists, mock_probe, repo_git, ready_gh, capsys):
        assert run_mcp_setup("full", git=repo_git, gh=ready_gh) is True
        out = capsys.readouterr().out
        assert "MCP Setup Complete!" in out
        assert "Next Steps:" in out

    def test_test_mode_without_config(self, repo_git, ready_gh):
        with pytest.raises(InputError):
            run_mcp_setup("test", git=repo_git, gh=ready_gh)

    def test_requires_gh(self, repo_git, ready_gh):
        ready_gh.require_ready.side_effect = PrerequisiteError("GitHub CLI is not authenticated.")
        with pytest.raises(PrerequisiteError):
            run_mcp_setup("full", git=repo_git, gh=ready_gh)

    def test_token_mode_skips_gh_check(self, ready_gh):
        assert run_mcp_setup("token", gh=ready_gh) is True
        ready_gh.require_ready.assert_not_called()
