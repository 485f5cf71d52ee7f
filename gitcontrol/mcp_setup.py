"""
MCP (Model Context Protocol) configuration for VS Code.

Writes an mcp.json declaring the GitHub, Stack Overflow and Firecrawl servers.
Secrets are never written: VS Code prompts for them through the `inputs`
entries the first time a server is used.
"""
import json
import logging
import os
from pathlib import Path
from typing import Optional

import click
import requests

from gitcontrol.config import app_config
from gitcontrol.errors import InputError
from gitcontrol.git import GitClient, GitHubCLI, command_exists
from gitcontrol.output import (
    print_header,
    print_header_success,
    print_info,
    print_list_item,
    print_section,
    print_step,
    print_success,
    print_warning,
)

logger = logging.getLogger(__name__)

MCP_CONFIG_NAME = "mcp.json"
TOKEN_SCOPES = "repo,workflow,read:user"

CONFIGURED_SERVERS = [
    "GitHub MCP - Repository and PR management",
    "Stack Overflow - Q&A search",
    "Firecrawl - Web scraping",
]


def detect_config_dir(git: Optional[GitClient] = None, user_config_dir: Optional[str] = None) -> Path:
    """
    Directory that should hold mcp.json.

    Inside a git work tree this is <root>/.vscode; otherwise the VS Code user
    settings directory. Either directory is created when missing.
    """
    git = git or GitClient()
    user_config_dir = user_config_dir or app_config.mcp.user_config_dir

    if git.in_worktree():
        root = git.root()
        if root:
            vscode_dir = Path(root) / ".vscode"
            if not vscode_dir.is_dir():
                vscode_dir.mkdir(parents=True, exist_ok=True)
                print_info("Created workspace .vscode directory")
            return vscode_dir

    user_dir = Path(user_config_dir)
    user_dir.mkdir(parents=True, exist_ok=True)
    return user_dir


def build_mcp_config(endpoint: Optional[str] = None) -> dict:
    endpoint = endpoint or app_config.mcp.endpoint
    return {
        "inputs": [
            {
                "type": "promptString",
                "id": "github_mcp_pat",
                "description": "GitHub Personal Access Token",
                "password": True
            },
            {
                "type": "promptString",
                "id": "firecrawlApiKey",
                "description": "Firecrawl API Key (optional)",
                "password": True
            }
        ],
        "servers": {
            "github": {
                "type": "http",
                "url": endpoint,
                "headers": {
                    "Authorization": "Bearer ${input:github_mcp_pat}"
                }
            },
            "stackoverflow": {
                "type": "http",
                "url": "https://mcp.stackoverflow.com"
            },
            "firecrawl": {
                "command": "npx",
                "args": ["-y", "firecrawl-mcp"],
                "env": {
                    "FIRECRAWL_API_KEY": "${input:firecrawlApiKey}"
                },
                "type": "stdio"
            }
        }
    }


def create_mcp_config(config_file: Path, endpoint: Optional[str] = None) -> Path:
    print_step("Creating MCP configuration...")

    if not command_exists("gh"):
        print_warning("GitHub CLI (gh) not found - token validation skipped")
        print_info("Install with: sudo apt install gh")

    config_file = Path(config_file)
    config_file.parent.mkdir(parents=True, exist_ok=True)
    with open(config_file, 'w', encoding='utf-8') as f:
        json.dump(build_mcp_config(endpoint), f, indent=2)
        f.write("\n")

    print_success(f"Created: {config_file}")
    print_info("VS Code will prompt for tokens on first use")
    return config_file


def get_github_token(gh: Optional[GitHubCLI] = None) -> Optional[str]:
    """Token from `gh auth token`, falling back to GITHUB_TOKEN."""
    gh = gh or GitHubCLI()
    token = gh.auth_token()
    if token:
        return token
    return os.getenv("GITHUB_TOKEN") or None


def mask_token(token: str) -> str:
    if len(token) <= 8:
        return "*" * len(token)
    return f"{token[:4]}...{token[-4:]}"


def show_token_info(gh: Optional[GitHubCLI] = None) -> bool:
    gh = gh or GitHubCLI()
    token = get_github_token(gh)
    if not token:
        print_warning("No GitHub token found")
        print_info("Run: gh auth login")
        return False

    print_info(f"GitHub token: {mask_token(token)}")
    if gh.is_installed():
        username = gh.user_login() or "unknown"
        print_info(f"Authenticated as: {username}")
    return True


def load_mcp_config(config_file: Path) -> dict:
    """
    Raises:
        InputError: If the config is missing or not valid JSON
    """
    config_file = Path(config_file)
    if not config_file.is_file():
        raise InputError(f"MCP config not found: {config_file}")
    try:
        with open(config_file, 'r', encoding='utf-8') as f:
            return json.load(f)
    except json.JSONDecodeError as e:
        raise InputError(f"Invalid JSON in MCP config: {e}")


def probe_endpoint(url: Optional[str] = None, timeout: Optional[int] = None) -> bool:
    """True when the endpoint answers with any 2xx-4xx status."""
    url = url or app_config.mcp.probe_url
    timeout = timeout or app_config.mcp.probe_timeout
    try:
        response = requests.get(url, timeout=timeout, allow_redirects=True)
    except requests.RequestException as e:
        logger.debug("Probe of %s failed: %s", url, e)
        return False
    return 200 <= response.status_code < 500


def check_mcp_connection(config_file: Path) -> bool:
    """
    Validate the config file and check the environment it relies on.

    Network and npx checks only warn; a missing or broken config raises.
    """
    print_step("Testing MCP configuration...")

    load_mcp_config(config_file)
    print_success("MCP config is valid JSON")

    if probe_endpoint():
        print_success("GitHub MCP endpoint is reachable")
    else:
        print_warning("GitHub MCP endpoint test inconclusive (check network)")

    if command_exists("npx"):
        print_success("npx available for Firecrawl integration")
    else:
        print_warning("npx not found - Firecrawl MCP will not work (install Node.js if needed)")
    return True


def print_next_steps():
    print_section("Configured Servers:")
    for server in CONFIGURED_SERVERS:
        print_list_item(server)

    print_section("Next Steps:")
    click.echo(f"  1. Reload VS Code window ({click.style('Ctrl+Shift+P', fg='cyan')} -> "
               f"{click.style('Reload Window', fg='cyan')})")
    click.echo("  2. VS Code will prompt for your GitHub PAT when you first use MCP")
    click.echo(f"  3. Generate PAT at: {click.style('https://github.com/settings/tokens', fg='cyan')}")
    click.echo(f"     Required scopes: {click.style(TOKEN_SCOPES.replace(',', ', '), fg='cyan')}")
    click.echo("  4. Start using MCP tools in Copilot Chat")
    click.echo()


def run_mcp_setup(mode: str = "full", git: Optional[GitClient] = None,
                  gh: Optional[GitHubCLI] = None) -> bool:
    """
    Run one of the setup modes: full, config, test or token.

    Raises:
        PrerequisiteError: If gh is required and not ready
        InputError: If the test finds no valid config
    """
    gh = gh or GitHubCLI()
    print_header("Git-Control MCP Setup")

    if mode == "token":
        return show_token_info(gh)

    gh.require_ready()
    config_file = detect_config_dir(git) / MCP_CONFIG_NAME

    if mode == "test":
        return check_mcp_connection(config_file)

    create_mcp_config(config_file)
    if mode == "config":
        return True

    check_mcp_connection(config_file)
    print_header_success("MCP Setup Complete!")
    print_next_steps()
    return True
