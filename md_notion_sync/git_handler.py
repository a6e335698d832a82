"""
Changed-file discovery for the sync system.

Two interchangeable strategies produce the Markdown files touched by
the triggering commit:
- GitShowSource asks the local checkout (``git show``)
- GitHubCommitSource asks the GitHub commits API
"""

import subprocess
from pathlib import Path
from typing import Optional, Protocol

import requests

from .actions import ActionsOutput
from .config import Config

MARKDOWN_SUFFIX = ".md"


def is_markdown(path: str) -> bool:
    return path.endswith(MARKDOWN_SUFFIX)


class ChangedFileSource(Protocol):
    """Anything that can list the Markdown files changed by a commit."""

    def list_changed_markdown_files(self) -> list[Path]:
        ...


class GitShowSource:
    """
    Lists changed files from the local repository.

    Runs ``git show --name-only`` on the commit, leaving out deleted
    files since there is nothing left to read.
    """

    def __init__(self, config: Config, output: Optional[ActionsOutput] = None, rev: str = "HEAD"):
        self.config = config
        self.repo_root = config.repo_root
        self.output = output or ActionsOutput(debug=config.debug)
        self.rev = rev

    def _run_git(self, *args: str) -> subprocess.CompletedProcess:
        """Run a git command."""
        cmd = ["git", "-C", str(self.repo_root)] + list(args)

        self.output.debug(f"Running: {' '.join(cmd)}")

        return subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            encoding="utf-8",
            check=True,
        )

    def list_changed_markdown_files(self) -> list[Path]:
        result = self._run_git(
            "-c", "core.quotePath=false",
            "show", "--name-only", "--diff-filter=d", "--pretty=format:", self.rev,
        )

        return [
            self.repo_root / line.strip()
            for line in result.stdout.splitlines()
            if line.strip() and is_markdown(line.strip())
        ]


class GitHubCommitSource:
    """
    Lists changed files through the GitHub REST API.

    Useful when the checkout is shallow and has no parent commit to
    diff against. Files with status ``removed`` are left out.
    """

    def __init__(
        self,
        config: Config,
        output: Optional[ActionsOutput] = None,
        session: Optional[requests.Session] = None,
    ):
        if not (config.github_repository and config.github_sha):
            raise ValueError("GitHub commit lookup needs a repository and a commit SHA")
        self.config = config
        self.output = output or ActionsOutput(debug=config.debug)
        self.session = session or requests.Session()

    @property
    def commit_url(self) -> str:
        base = self.config.github_api_url.rstrip("/")
        return f"{base}/repos/{self.config.github_repository}/commits/{self.config.github_sha}"

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/vnd.github+json"}
        if self.config.github_token:
            headers["Authorization"] = f"Bearer {self.config.github_token}"
        return headers

    def list_changed_markdown_files(self) -> list[Path]:
        self.output.debug(f"Fetching commit metadata from {self.commit_url}")

        response = self.session.get(
            self.commit_url,
            headers=self._headers(),
            timeout=self.config.timeout_ms / 1000,
        )
        response.raise_for_status()

        files = response.json().get("files", [])
        return [
            self.config.repo_root / f["filename"]
            for f in files
            if is_markdown(f["filename"]) and f.get("status") != "removed"
        ]


def create_source(config: Config, output: Optional[ActionsOutput] = None) -> ChangedFileSource:
    """Build the discovery strategy named by ``config.discovery``."""
    if config.discovery == "github":
        return GitHubCommitSource(config, output)
    return GitShowSource(config, output)
