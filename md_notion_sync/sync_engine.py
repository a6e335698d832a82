"""
Main sync engine for Markdown → Notion synchronization.

For every changed Markdown file with Notion front matter:
- Rename the target page (when a title is given)
- Delete every existing child block
- Convert the Markdown body to Notion blocks
- Append the blocks in API-sized chunks
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Optional, Sequence

from rich.table import Table

from .actions import ActionsOutput
from .config import Config
from .frontmatter import extract_page_id, parse_frontmatter, read_sync_metadata
from .markdown_converter import markdown_to_blocks
from .notion_api import NotionAPI

BlockConverter = Callable[[str], list[dict[str, Any]]]


@dataclass
class SyncResult:
    """Result of a sync run."""

    files_pushed: list[Path] = field(default_factory=list)
    files_skipped: list[Path] = field(default_factory=list)
    blocks_deleted: int = 0
    blocks_appended: int = 0
    titles_updated: int = 0


class SyncEngine:
    """
    Orchestrator for Markdown → Notion synchronization.

    Each page is replaced wholesale: its children are cleared before
    the new content is appended. This corrects any previous remote
    state but is not atomic; a failure between delete and append leaves
    the page empty until the next successful run.

    Errors are not caught here. The first failing remote call or file
    read aborts the remaining files.
    """

    def __init__(
        self,
        config: Config,
        output: Optional[ActionsOutput] = None,
        notion_api: Optional[NotionAPI] = None,
        converter: BlockConverter = markdown_to_blocks,
    ):
        """
        Initialize sync engine.

        Args:
            config: Configuration instance holding the Notion token.
            output: Log sink.
            notion_api: Notion wrapper. Built from config if omitted.
            converter: Markdown body to Notion blocks converter.
        """
        self.config = config
        self.output = output or ActionsOutput(debug=config.debug)
        self.notion_api = notion_api or NotionAPI(config, self.output)
        self.converter = converter

    def push_files(self, changed_files: Sequence[Path]) -> SyncResult:
        """
        Push every changed Markdown file to its Notion page, in order.

        Args:
            changed_files: Markdown files changed by the commit.

        Returns:
            SyncResult with details of the run.
        """
        result = SyncResult()

        if not changed_files:
            self.output.info("No markdown files with changes detected for current commit")
            return result

        self.output.debug("\n".join(str(f) for f in changed_files))

        for path in changed_files:
            if self._push_file(Path(path), result):
                result.files_pushed.append(Path(path))
            else:
                result.files_skipped.append(Path(path))

        return result

    def _push_file(self, path: Path, result: SyncResult) -> bool:
        """
        Sync a single file.

        Returns:
            True if the file was pushed, False if it was skipped.
        """
        content = path.read_text(encoding="utf-8-sig")
        parsed = parse_frontmatter(content)

        metadata = read_sync_metadata(parsed.frontmatter)
        if metadata is None:
            self.output.info(f"no notion frontmatter found for {path}")
            return False

        self.output.info(f"notion frontmatter found for {path}")

        page_id = extract_page_id(metadata.page_ref)
        if not page_id:
            self.output.info(
                f"Could not extract block ID from {metadata.page_ref}. "
                f"Skipping this file: {path}"
            )
            return False

        if metadata.title:
            self.output.info("Updating page title")
            self.notion_api.rename_title(page_id, metadata.title)
            result.titles_updated += 1

        self.output.info("Fetching current page from notion as blocks")
        for block_id in self.notion_api.fetch_all_children(page_id):
            self.notion_api.delete_block(block_id)
            result.blocks_deleted += 1

        blocks = self.converter(parsed.body)

        self.output.info("Uploading blocks to notion page")
        self.notion_api.append_blocks_chunked(page_id, blocks, self.config.chunk_size)
        result.blocks_appended += len(blocks)

        self.output.info(f"✅ Pushed file {path} to notion")
        return True

    def print_summary(self, result: SyncResult) -> None:
        """Print sync summary."""
        table = Table(title="Sync Summary", show_header=False, box=None)
        table.add_column("Metric", style="cyan")
        table.add_column("Value", style="white")

        table.add_row("Files pushed", str(len(result.files_pushed)))
        table.add_row("Files skipped", str(len(result.files_skipped)))
        table.add_row("Titles updated", str(result.titles_updated))
        table.add_row("Blocks deleted", str(result.blocks_deleted))
        table.add_row("Blocks appended", str(result.blocks_appended))
        table.add_row("API requests", str(self.notion_api.request_count))

        self.output.console.print(table)
