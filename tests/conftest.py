"""Shared pytest fixtures."""

import io

import pytest
from rich.console import Console

from md_notion_sync.actions import ActionsOutput
from md_notion_sync.config import Config
from tests.helpers import FakeNotionClient


@pytest.fixture
def config(tmp_path):
    return Config(
        notion_token="secret_test_token",
        retry_delay=0,
        rate_limit_calls=10_000,
        repo_root=tmp_path,
        subscription_check=False,
    )


@pytest.fixture
def output():
    console = Console(file=io.StringIO(), width=200)
    return ActionsOutput(console=console, debug=True, annotations=False)


@pytest.fixture
def fake_client():
    return FakeNotionClient()
