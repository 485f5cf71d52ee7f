import os
from dataclasses import dataclass
from typing import Optional
from dotenv import load_dotenv

load_dotenv()

DEFAULT_ALERTS_FILE = "/tmp/alerts.json"


@dataclass
class GitHubConfig:
    token: Optional[str] = None
    api_url: str = "https://api.github.com"
    api_timeout: int = 10

    @classmethod
    def from_env(cls) -> "GitHubConfig":
        return cls(
            token=os.getenv("GITHUB_TOKEN"),
            api_url=os.getenv("GITHUB_API_URL", "https://api.github.com"),
            api_timeout=int(os.getenv("GITHUB_API_TIMEOUT", 10))
        )


@dataclass
class MCPConfig:
    endpoint: str = "https://api.githubcopilot.com/mcp/"
    probe_url: str = "https://api.githubcopilot.com"
    probe_timeout: int = 5
    user_config_dir: str = os.path.join(os.path.expanduser("~"), ".config", "Code", "User")

    @classmethod
    def from_env(cls) -> "MCPConfig":
        return cls(
            endpoint=os.getenv("MCP_ENDPOINT", "https://api.githubcopilot.com/mcp/"),
            probe_url=os.getenv("MCP_PROBE_URL", "https://api.githubcopilot.com"),
            probe_timeout=int(os.getenv("MCP_PROBE_TIMEOUT", 5)),
            user_config_dir=os.getenv(
                "VSCODE_USER_CONFIG",
                os.path.join(os.path.expanduser("~"), ".config", "Code", "User")
            )
        )


@dataclass
class AutofixConfig:
    alerts_file: str = DEFAULT_ALERTS_FILE

    @classmethod
    def from_env(cls) -> "AutofixConfig":
        return cls(
            alerts_file=os.getenv("AUTOFIX_ALERTS_FILE", DEFAULT_ALERTS_FILE)
        )


@dataclass
class AppConfig:
    """Main configuration class that combines all config sections"""
    github: GitHubConfig
    mcp: MCPConfig
    autofix: AutofixConfig
    debug: bool = False

    @classmethod
    def from_env(cls) -> "AppConfig":
        return cls(
            github=GitHubConfig.from_env(),
            mcp=MCPConfig.from_env(),
            autofix=AutofixConfig.from_env(),
            debug=os.getenv("DEBUG", "false").lower() in ("1", "true", "yes")
        )


app_config = AppConfig.from_env()
