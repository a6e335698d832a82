"""
Markdown → Notion Sync CLI

Usage:
    md-notion-sync                           # Run sync for the current commit
    md-notion-sync --debug                   # Verbose output
    md-notion-sync --no-subscription-check   # Skip the pre-flight check
    md-notion-sync version                   # Show version
"""

import json
import traceback
from typing import Optional

import click
import httpx
import requests
from notion_client.errors import HTTPResponseError, RequestTimeoutError
from rich.console import Console

from . import __version__
from .actions import ActionsOutput
from .config import Config
from .errors import ConfigError, SubscriptionError
from .git_handler import create_source
from .subscription import validate_subscription
from .sync_engine import SyncEngine

console = Console()

FAILURE_MESSAGE = "Markdown-to-Notion sync failed."

TRANSPORT_ERRORS = (
    HTTPResponseError,
    RequestTimeoutError,
    httpx.HTTPError,
    requests.RequestException,
)


def _format_body(body: Optional[str]) -> str:
    if not body:
        return "No response body"
    try:
        return json.dumps(json.loads(body), indent=2)
    except ValueError:
        return body


def _response_details(error: Exception) -> tuple[str, Optional[str]]:
    """Status code and raw body of a transport error, where available."""
    if isinstance(error, HTTPResponseError):
        return str(error.status), error.body
    response = getattr(error, "response", None)
    if response is not None:
        status = getattr(response, "status_code", None)
        try:
            body = response.text
        except (AttributeError, httpx.ResponseNotRead):
            body = None
        return str(status or "unknown"), body
    return "unknown", None


def report_failure(output: ActionsOutput, error: BaseException) -> None:
    """Log an uncaught failure, with response details for transport errors."""
    stack = "".join(traceback.format_exception(type(error), error, error.__traceback__))

    if isinstance(error, TRANSPORT_ERRORS):
        status, body = _response_details(error)
        output.error("\n".join([
            f"❌ {type(error).__name__}:",
            f"Status: {status}",
            f"Message: {error}",
            f"Response: {_format_body(body)}",
            f"Stack: {stack or 'No stack trace'}",
        ]))
    else:
        output.error(f"❌ Unexpected error: {error}")
        output.error(stack)


def run_sync(
    debug: bool = False,
    subscription_check: bool = True,
    output: Optional[ActionsOutput] = None,
) -> int:
    """
    Run one sync for the triggering commit.

    Returns:
        Process exit code: 0 on success, 1 on failure.
    """
    output = output or ActionsOutput(console=console, debug=debug)

    try:
        config = Config.from_env()
        if debug:
            config.debug = True
        if not subscription_check:
            config.subscription_check = False
        output.debug_enabled = output.debug_enabled or config.debug

        validate_subscription(config, output)

        changed_files = create_source(config, output).list_changed_markdown_files()

        engine = SyncEngine(config, output)
        result = engine.push_files(changed_files)

        output.info("✅ Pushed all markdown files to notion")
        if config.debug:
            engine.print_summary(result)
        return 0

    except ConfigError as e:
        output.error(f"Configuration error: {e}")
    except SubscriptionError as e:
        output.error(str(e))
    except KeyboardInterrupt:
        output.warning("Sync cancelled.")
        return 130
    except Exception as e:
        report_failure(output, e)

    output.set_failed(FAILURE_MESSAGE)
    return 1


@click.group(invoke_without_command=True)
@click.option("--debug", is_flag=True, help="Enable debug output")
@click.option("--no-subscription-check", is_flag=True, help="Skip the pre-flight subscription check")
@click.pass_context
def cli(ctx, debug: bool, no_subscription_check: bool):
    """
    Markdown → Notion Sync

    Pushes the Markdown files changed in the current commit to the
    Notion pages named in their front matter.
    """
    ctx.ensure_object(dict)
    ctx.obj["debug"] = debug
    ctx.obj["subscription_check"] = not no_subscription_check

    # If no subcommand, run sync
    if ctx.invoked_subcommand is None:
        ctx.invoke(sync)


@cli.command()
@click.pass_context
def sync(ctx):
    """Push changed Markdown files to Notion."""
    code = run_sync(
        debug=ctx.obj.get("debug", False),
        subscription_check=ctx.obj.get("subscription_check", True),
    )
    ctx.exit(code)


@cli.command()
def version():
    """Show version information."""
    console.print(f"Markdown → Notion Sync v{__version__}")


def main():
    """Main entry point."""
    cli(obj={})


if __name__ == "__main__":
    main()
