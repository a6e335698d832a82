"""Test helpers: a fake in-memory Notion client and error builders."""

import json
from types import SimpleNamespace
from typing import Optional

from notion_client.errors import APIResponseError


def make_api_error(status: int, code: str = "object_not_found", message: str = "error") -> APIResponseError:
    """Build a Notion API error without going through an HTTP response."""
    error = APIResponseError.__new__(APIResponseError)
    Exception.__init__(error, message)
    error.status = status
    error.code = code
    error.headers = {}
    error.body = json.dumps({"object": "error", "status": status, "code": code, "message": message})
    return error


class FakeNotionClient:
    """
    In-memory stand-in for ``notion_client.Client``.

    Pages map to lists of child blocks. Every call is recorded in
    ``calls`` as a tuple so tests can assert on request order.
    """

    def __init__(self, children: Optional[dict] = None):
        self.children = {page: list(blocks) for page, blocks in (children or {}).items()}
        self.titles: dict = {}
        self.calls: list = []
        self.delete_errors: dict = {}
        self._next_id = 0

        self.blocks = SimpleNamespace(
            children=SimpleNamespace(list=self._list_children, append=self._append_children),
            delete=self._delete_block,
        )
        self.pages = SimpleNamespace(update=self._update_page)

    def add_blocks(self, page_id: str, count: int) -> list:
        ids = []
        for _ in range(count):
            self._next_id += 1
            block_id = f"block-{self._next_id:05d}"
            self.children.setdefault(page_id, []).append({"id": block_id, "type": "paragraph"})
            ids.append(block_id)
        return ids

    def content(self, page_id: str) -> list:
        """Children of a page without their server-assigned ids."""
        return [{k: v for k, v in block.items() if k != "id"} for block in self.children.get(page_id, [])]

    def _list_children(self, block_id, start_cursor=None, page_size=100):
        self.calls.append(("list", block_id, start_cursor))
        blocks = self.children.get(block_id, [])
        start = int(start_cursor) if start_cursor else 0
        end = start + page_size
        has_more = end < len(blocks)
        return {
            "object": "list",
            "results": blocks[start:end],
            "has_more": has_more,
            "next_cursor": str(end) if has_more else None,
        }

    def _append_children(self, block_id, children):
        self.calls.append(("append", block_id, len(children)))
        for block in children:
            self._next_id += 1
            self.children.setdefault(block_id, []).append({"id": f"block-{self._next_id:05d}", **block})
        return {"object": "list", "results": []}

    def _delete_block(self, block_id):
        self.calls.append(("delete", block_id))
        if block_id in self.delete_errors:
            raise self.delete_errors[block_id]
        for blocks in self.children.values():
            for block in blocks:
                if block["id"] == block_id:
                    blocks.remove(block)
                    return {"id": block_id, "archived": True}
        raise make_api_error(404)

    def _update_page(self, page_id, properties):
        self.calls.append(("update", page_id))
        self.titles[page_id] = properties["title"]["title"][0]["text"]["content"]
        return {"id": page_id}


def output_text(output) -> str:
    return output.console.file.getvalue()
