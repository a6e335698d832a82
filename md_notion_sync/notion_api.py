"""
Notion API wrapper for the sync system.

Provides the remote operations the sync needs with:
- Rate limiting compliance
- Retries with exponential backoff
- Cursor-based pagination of page children
- Chunked block uploads
"""

import time
from typing import Any, Callable, Optional, Sequence, TypeVar

import httpx
from notion_client import Client
from notion_client.errors import HTTPResponseError, RequestTimeoutError
from ratelimit import limits, sleep_and_retry

from .actions import ActionsOutput
from .config import Config

T = TypeVar("T")

# Notion API rate limit period; the call budget comes from Config
RATE_LIMIT_PERIOD = 1  # second

# Maximum number of block objects Notion accepts per append request
MAX_BLOCKS_PER_REQUEST = 100

NativeBlock = dict[str, Any]


def chunk_blocks(blocks: Sequence[T], size: int = MAX_BLOCKS_PER_REQUEST) -> list[list[T]]:
    """
    Split blocks into contiguous chunks of at most ``size`` items.

    Order is preserved within and across chunks. An empty input yields
    no chunks at all.
    """
    if size < 1:
        raise ValueError(f"chunk size must be positive, got {size}")
    return [list(blocks[i:i + size]) for i in range(0, len(blocks), size)]


def is_retryable(error: Exception) -> bool:
    """Check if a failed request is worth retrying."""
    if isinstance(error, (RequestTimeoutError, httpx.TransportError)):
        return True
    if isinstance(error, HTTPResponseError):
        return error.status == 429 or error.status >= 500
    return False


def is_not_found(error: Exception) -> bool:
    return isinstance(error, HTTPResponseError) and error.status == 404


class NotionAPI:
    """
    Wrapper around Notion API with rate limiting and retries.

    Handles:
    - Authentication
    - Rate limiting (3 req/sec by default)
    - Retrying timeouts, 429 and 5xx responses
    - Paginated child listing
    - Title updates, block deletion and chunked appends
    """

    def __init__(
        self,
        config: Config,
        output: Optional[ActionsOutput] = None,
        client: Optional[Client] = None,
    ):
        """
        Initialize the Notion API client.

        Args:
            config: Configuration instance with Notion token.
            output: Log sink. Defaults to a plain ActionsOutput.
            client: Pre-built client, mainly for tests.
        """
        self.config = config
        self.output = output or ActionsOutput(debug=config.debug)
        self.client = client or Client(
            auth=config.notion_token,
            timeout_ms=config.timeout_ms,
            notion_version=config.notion_version,
        )
        self._request_count = 0
        self._rate_limited_call = sleep_and_retry(
            limits(calls=config.rate_limit_calls, period=RATE_LIMIT_PERIOD)(self._invoke)
        )

    def _invoke(self, func: Callable[..., T], *args, **kwargs) -> T:
        self._request_count += 1
        return func(*args, **kwargs)

    def _request(self, func: Callable[..., T], *args, **kwargs) -> T:
        """
        Execute a rate-limited API call with exponential backoff.

        Every request goes through here, destructive ones included.
        Non-retryable errors and the last failed attempt propagate.
        """
        max_retries = self.config.max_retries

        for attempt in range(max_retries + 1):
            try:
                return self._rate_limited_call(func, *args, **kwargs)
            except Exception as e:
                if not is_retryable(e) or attempt >= max_retries:
                    raise

                wait_time = self.config.retry_delay * (2 ** attempt)
                self.output.debug(
                    f"Request failed ({e}), retrying in {wait_time:g}s "
                    f"(retry {attempt + 1}/{max_retries})"
                )
                time.sleep(wait_time)

        raise AssertionError("unreachable")

    # =========================================================================
    # Reading
    # =========================================================================

    def fetch_all_children(self, page_id: str) -> list[str]:
        """
        Get the ids of every direct child block of a page.

        Follows ``next_cursor`` until ``has_more`` is false. The first
        request carries no cursor, so a page without children costs
        exactly one request.

        Args:
            page_id: The Notion page (or block) ID.

        Returns:
            Child block ids in the order the server returned them.
        """
        block_ids: list[str] = []
        has_more = True
        start_cursor: Optional[str] = None

        formatted_id = self._format_page_id(page_id)

        while has_more:
            params: dict[str, Any] = {
                "block_id": formatted_id,
                "page_size": self.config.page_size,
            }
            if start_cursor:
                params["start_cursor"] = start_cursor

            response = self._request(self.client.blocks.children.list, **params)

            block_ids.extend(block["id"] for block in response.get("results", []))

            has_more = bool(response.get("has_more", False))
            start_cursor = response.get("next_cursor")

            if has_more and not start_cursor:
                raise ValueError(
                    f"Notion reported more children for {page_id} without a next_cursor"
                )

        return block_ids

    # =========================================================================
    # Writing
    # =========================================================================

    def rename_title(self, page_id: str, new_title: str) -> None:
        """
        Overwrite a page title with a single plain-text run.

        Args:
            page_id: The Notion page ID.
            new_title: The new title text.
        """
        self._request(
            self.client.pages.update,
            page_id=self._format_page_id(page_id),
            properties={
                "title": {
                    "title": [
                        {
                            "type": "text",
                            "text": {"content": new_title},
                        }
                    ]
                }
            },
        )

        self.output.info(f'✅ Updated title to "{new_title}" for page {page_id}')

    def delete_block(self, block_id: str) -> None:
        """
        Delete a single block.

        A 404 is treated as success: the block is already gone, which
        happens when a timed-out delete is retried after the server
        completed it.
        """
        try:
            self._request(
                self.client.blocks.delete,
                block_id=self._format_page_id(block_id),
            )
        except HTTPResponseError as e:
            if not is_not_found(e):
                raise
            self.output.debug(f"Block {block_id} already deleted")

    def append_blocks_chunked(
        self,
        page_id: str,
        blocks: Sequence[NativeBlock],
        chunk_size: Optional[int] = None,
    ) -> int:
        """
        Append blocks to a page in sequential batches.

        Args:
            page_id: The Notion page ID.
            blocks: Blocks in document order. Never inspected here.
            chunk_size: Blocks per request. Defaults to the configured size.

        Returns:
            Number of append requests issued.
        """
        size = self.config.chunk_size if chunk_size is None else chunk_size
        if not 1 <= size <= MAX_BLOCKS_PER_REQUEST:
            raise ValueError(
                f"chunk size must be between 1 and {MAX_BLOCKS_PER_REQUEST}, got {size}"
            )

        if not blocks:
            return 0

        formatted_id = self._format_page_id(page_id)
        chunks = chunk_blocks(blocks, size)

        for index, chunk in enumerate(chunks, start=1):
            self.output.debug(
                f"Appending chunk {index}/{len(chunks)} ({len(chunk)} blocks) to {page_id}"
            )
            self._request(
                self.client.blocks.children.append,
                block_id=formatted_id,
                children=chunk,
            )

        return len(chunks)

    def _format_page_id(self, page_id: str) -> str:
        """
        Format a page ID for API calls.

        Notion accepts ids with or without dashes; 32-character ids are
        normalised to the dashed UUID form, anything else is passed as is.
        """
        clean_id = page_id.replace("-", "")

        if len(clean_id) == 32:
            return f"{clean_id[:8]}-{clean_id[8:12]}-{clean_id[12:16]}-{clean_id[16:20]}-{clean_id[20:]}"

        return page_id

    @property
    def request_count(self) -> int:
        """Number of API requests made."""
        return self._request_count
