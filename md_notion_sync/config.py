"""
Configuration management for Markdown → Notion sync.

Loads settings from environment variables (and GitHub Action inputs)
and provides structured configuration for all sync components.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from .errors import ConfigError

NOTION_VERSION = "2022-06-28"

DEFAULT_SUBSCRIPTION_URL = (
    "https://agent.api.stepsecurity.io/v1/github/{repository}/actions/subscription"
)

DISCOVERY_STRATEGIES = ("git", "github")


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes")


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from None


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigError(f"{name} must be a number, got {raw!r}") from None


@dataclass
class Config:
    """
    Central configuration for the sync system.

    Loads from environment variables and provides defaults.
    The Notion token is always passed in explicitly - never hardcoded
    and never read from ambient state by the sync components.
    """

    # Notion settings
    notion_token: str
    notion_version: str = NOTION_VERSION
    timeout_ms: int = 10_000
    max_retries: int = 3
    retry_delay: float = 1.0
    chunk_size: int = 100
    page_size: int = 100
    rate_limit_calls: int = 3

    # GitHub / commit discovery
    github_repository: Optional[str] = None
    github_sha: Optional[str] = None
    github_token: Optional[str] = None
    github_api_url: str = "https://api.github.com"
    discovery: str = "git"

    # Paths
    repo_root: Path = field(default_factory=lambda: Path.cwd())

    # Pre-flight check
    subscription_check: bool = True
    subscription_url: str = DEFAULT_SUBSCRIPTION_URL
    subscription_timeout: float = 3.0

    debug: bool = False

    @classmethod
    def from_env(cls, env_file: Optional[Path] = None) -> "Config":
        """
        Load configuration from environment variables.

        GitHub Actions exposes the ``notion-token`` input as
        ``INPUT_NOTION-TOKEN``; ``NOTION_TOKEN`` is accepted for local runs.

        Args:
            env_file: Optional path to .env file. If not provided,
                     looks for .env in current directory.

        Returns:
            Configured Config instance.

        Raises:
            ConfigError: If required environment variables are missing
                or malformed.
        """
        if env_file:
            load_dotenv(env_file)
        else:
            load_dotenv()

        notion_token = (
            os.getenv("INPUT_NOTION-TOKEN", "").strip()
            or os.getenv("NOTION_TOKEN", "").strip()
        )
        if not notion_token:
            raise ConfigError(
                "Input required and not supplied: notion-token\n"
                "Set the action input or the NOTION_TOKEN environment variable."
            )

        discovery = os.getenv("DISCOVERY", "git").strip().lower()
        if discovery not in DISCOVERY_STRATEGIES:
            raise ConfigError(
                f"DISCOVERY must be one of {', '.join(DISCOVERY_STRATEGIES)}, "
                f"got {discovery!r}"
            )

        github_repository = os.getenv("GITHUB_REPOSITORY") or None
        github_sha = os.getenv("GITHUB_SHA") or None
        github_token = os.getenv("GITHUB_TOKEN") or None

        if discovery == "github" and not (github_repository and github_sha):
            raise ConfigError(
                "GITHUB_REPOSITORY and GITHUB_SHA are required "
                "when DISCOVERY=github."
            )

        repo_root_str = os.getenv("REPO_ROOT")
        repo_root = Path(repo_root_str) if repo_root_str else Path.cwd()

        debug = _env_flag("DEBUG") or os.getenv("RUNNER_DEBUG") == "1"

        return cls(
            notion_token=notion_token,
            timeout_ms=_env_int("NOTION_TIMEOUT_MS", 10_000),
            max_retries=_env_int("NOTION_MAX_RETRIES", 3),
            retry_delay=_env_float("NOTION_RETRY_DELAY", 1.0),
            chunk_size=_env_int("NOTION_CHUNK_SIZE", 100),
            page_size=_env_int("NOTION_PAGE_SIZE", 100),
            rate_limit_calls=_env_int("NOTION_RATE_LIMIT", 3),
            github_repository=github_repository,
            github_sha=github_sha,
            github_token=github_token,
            github_api_url=os.getenv("GITHUB_API_URL", "https://api.github.com"),
            discovery=discovery,
            repo_root=repo_root,
            subscription_check=_env_flag("SUBSCRIPTION_CHECK", "true"),
            debug=debug,
        )

    def __post_init__(self):
        """Validate configuration after initialization."""
        if isinstance(self.repo_root, str):
            self.repo_root = Path(self.repo_root)

        if not 1 <= self.chunk_size <= 100:
            raise ConfigError(
                f"chunk_size must be between 1 and 100, got {self.chunk_size}"
            )
        if not 1 <= self.page_size <= 100:
            raise ConfigError(
                f"page_size must be between 1 and 100, got {self.page_size}"
            )
        if self.max_retries < 0:
            raise ConfigError("max_retries cannot be negative")
        if self.rate_limit_calls < 1:
            raise ConfigError("rate_limit_calls must be at least 1")

    @property
    def subscription_endpoint(self) -> Optional[str]:
        """Subscription validation URL for this repository, if one is known."""
        if not self.github_repository:
            return None
        return self.subscription_url.format(repository=self.github_repository)
