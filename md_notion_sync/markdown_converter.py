"""
Markdown to Notion blocks converter.

Converts a Markdown document into the block objects accepted by
Notion's append-children endpoint. Handles:
- Text blocks (paragraphs, headings, quotes)
- Lists (bulleted, numbered, to-do) with nesting
- Code blocks (with language mapping)
- Images with absolute URLs
- Tables
- Dividers
"""

from typing import Any, Callable, Optional

from markdown_it import MarkdownIt
from markdown_it.tree import SyntaxTreeNode

Block = dict[str, Any]
RichText = list[dict[str, Any]]

# Notion rejects rich text runs longer than this
MAX_TEXT_LENGTH = 2000

# Longest rich text, children or table row array Notion accepts
MAX_ARRAY_LENGTH = 100

DEFAULT_ANNOTATIONS = {
    "bold": False,
    "italic": False,
    "strikethrough": False,
    "underline": False,
    "code": False,
    "color": "default",
}

NOTION_LANGUAGES = {
    "abap", "arduino", "bash", "basic", "c", "clojure", "coffeescript", "c++",
    "c#", "css", "dart", "diff", "docker", "elixir", "elm", "erlang", "flow",
    "fortran", "f#", "gherkin", "glsl", "go", "graphql", "groovy", "haskell",
    "html", "java", "javascript", "json", "julia", "kotlin", "latex", "less",
    "lisp", "livescript", "lua", "makefile", "markdown", "markup", "matlab",
    "mermaid", "nix", "objective-c", "ocaml", "pascal", "perl", "php",
    "plain text", "powershell", "prolog", "protobuf", "python", "r", "reason",
    "ruby", "rust", "sass", "scala", "scheme", "scss", "shell", "sql", "swift",
    "typescript", "vb.net", "verilog", "vhdl", "visual basic", "webassembly",
    "xml", "yaml",
}

# Fence info strings that differ from Notion's language names
LANGUAGE_ALIASES = {
    "js": "javascript",
    "jsx": "javascript",
    "ts": "typescript",
    "tsx": "typescript",
    "py": "python",
    "rb": "ruby",
    "sh": "shell",
    "zsh": "shell",
    "console": "shell",
    "ps1": "powershell",
    "yml": "yaml",
    "md": "markdown",
    "cpp": "c++",
    "cxx": "c++",
    "csharp": "c#",
    "cs": "c#",
    "fsharp": "f#",
    "dockerfile": "docker",
    "make": "makefile",
    "objc": "objective-c",
    "kt": "kotlin",
    "rs": "rust",
    "tex": "latex",
    "proto": "protobuf",
    "text": "plain text",
    "txt": "plain text",
    "plaintext": "plain text",
    "": "plain text",
}

TASK_MARKERS = {"[ ] ": False, "[x] ": True, "[X] ": True}

LINK_SCHEMES = ("http://", "https://", "mailto:")


def notion_language(info: str) -> str:
    """Map a fence info string to a Notion code language."""
    words = info.strip().split()
    lang = words[0].lower() if words else ""
    lang = LANGUAGE_ALIASES.get(lang, lang)
    return lang if lang in NOTION_LANGUAGES else "plain text"


def is_absolute_url(url: Optional[str]) -> bool:
    return bool(url) and url.startswith(LINK_SCHEMES)


def text_runs(
    content: str,
    annotations: Optional[dict[str, Any]] = None,
    link: Optional[str] = None,
) -> RichText:
    """Build rich text runs for a piece of text, split at the length limit."""
    runs = []
    for start in range(0, len(content), MAX_TEXT_LENGTH):
        text: dict[str, Any] = {"content": content[start:start + MAX_TEXT_LENGTH]}
        if link:
            text["link"] = {"url": link}
        runs.append({
            "type": "text",
            "text": text,
            "annotations": {**DEFAULT_ANNOTATIONS, **(annotations or {})},
        })
    return runs


def split_rich_text(rich_text: RichText, size: int = MAX_ARRAY_LENGTH) -> list[RichText]:
    """Split a rich text array into pieces that each fit in one block."""
    return [rich_text[i:i + size] for i in range(0, len(rich_text), size)] or [[]]


def _block(block_type: str, payload: dict[str, Any]) -> Block:
    return {"object": "block", "type": block_type, block_type: payload}


def _with_children(block_type: str, payload: dict[str, Any], children: list[Block]) -> list[Block]:
    """Nest children under a block; those past the limit follow it as siblings."""
    if children:
        payload["children"] = children[:MAX_ARRAY_LENGTH]
    return [_block(block_type, payload)] + children[MAX_ARRAY_LENGTH:]


def _paragraphs(rich_text_parts: list[RichText]) -> list[Block]:
    return [_block("paragraph", {"rich_text": part}) for part in rich_text_parts]


class MarkdownConverter:
    """
    Converts Markdown to Notion blocks.

    Parses with markdown-it (GFM-like preset, so tables and
    strikethrough are recognised) and walks the syntax tree.
    """

    def __init__(self, preset: str = "gfm-like"):
        self.md = MarkdownIt(preset, options_update={"linkify": False})

        # Block node handlers
        self._handlers: dict[str, Callable[[SyntaxTreeNode], list[Block]]] = {
            "heading": self._convert_heading,
            "paragraph": self._convert_paragraph,
            "bullet_list": self._convert_bullet_list,
            "ordered_list": self._convert_ordered_list,
            "blockquote": self._convert_blockquote,
            "fence": self._convert_code,
            "code_block": self._convert_code,
            "hr": self._convert_divider,
            "table": self._convert_table,
            "html_block": self._convert_html_block,
        }

    def convert(self, markdown_text: str) -> list[Block]:
        """
        Convert a Markdown document body to Notion blocks.

        Args:
            markdown_text: Markdown without front matter.

        Returns:
            Top-level blocks in document order.
        """
        root = SyntaxTreeNode(self.md.parse(markdown_text))
        return self._convert_nodes(root.children)

    def _convert_nodes(self, nodes: list[SyntaxTreeNode]) -> list[Block]:
        blocks: list[Block] = []
        for node in nodes:
            handler = self._handlers.get(node.type)
            if handler:
                blocks.extend(handler(node))
            else:
                # Unknown container, keep whatever it holds
                blocks.extend(self._convert_nodes(node.children))
        return blocks

    # =========================================================================
    # Rich text handling
    # =========================================================================

    def _rich_text(
        self,
        node: SyntaxTreeNode,
        annotations: Optional[dict[str, Any]] = None,
        link: Optional[str] = None,
    ) -> RichText:
        """Convert the inline children of a node to a rich text array."""
        annotations = annotations or {}
        runs: RichText = []

        for child in node.children:
            kind = child.type

            if kind == "text":
                runs.extend(text_runs(child.content, annotations, link))
            elif kind == "code_inline":
                runs.extend(text_runs(child.content, {**annotations, "code": True}, link))
            elif kind == "strong":
                runs.extend(self._rich_text(child, {**annotations, "bold": True}, link))
            elif kind == "em":
                runs.extend(self._rich_text(child, {**annotations, "italic": True}, link))
            elif kind == "s":
                runs.extend(self._rich_text(child, {**annotations, "strikethrough": True}, link))
            elif kind == "link":
                href = child.attrs.get("href")
                # Notion only accepts absolute URLs in links
                runs.extend(self._rich_text(
                    child, annotations, str(href) if is_absolute_url(href) else link
                ))
            elif kind == "softbreak":
                runs.extend(text_runs(" ", annotations, link))
            elif kind == "hardbreak":
                runs.extend(text_runs("\n", annotations, link))
            elif kind == "image":
                src = child.attrs.get("src")
                alt = child.content or str(src or "")
                runs.extend(text_runs(
                    alt, annotations, str(src) if is_absolute_url(src) else link
                ))
            elif kind == "html_inline":
                runs.extend(text_runs(child.content, annotations, link))
            else:
                runs.extend(self._rich_text(child, annotations, link))

        return runs

    def _inline_text(self, node: SyntaxTreeNode) -> RichText:
        """Rich text of a block whose single child is an inline node."""
        if not node.children:
            return []
        return self._rich_text(node.children[0])

    # =========================================================================
    # Block node handlers
    # =========================================================================

    def _convert_heading(self, node: SyntaxTreeNode) -> list[Block]:
        """Convert heading; Notion stops at level 3."""
        level = min(int(node.tag[1]), 3)
        first, *rest = split_rich_text(self._inline_text(node))
        return [_block(f"heading_{level}", {"rich_text": first})] + _paragraphs(rest)

    def _convert_paragraph(self, node: SyntaxTreeNode) -> list[Block]:
        """Convert paragraph, or an image block if the image stands alone."""
        inline = node.children[0] if node.children else None
        if inline is not None and len(inline.children) == 1 and inline.children[0].type == "image":
            image = inline.children[0]
            src = image.attrs.get("src")
            if is_absolute_url(src):
                payload: dict[str, Any] = {"type": "external", "external": {"url": str(src)}}
                if image.content:
                    payload["caption"] = text_runs(image.content)[:MAX_ARRAY_LENGTH]
                return [_block("image", payload)]

        return _paragraphs(split_rich_text(self._inline_text(node)))

    def _convert_bullet_list(self, node: SyntaxTreeNode) -> list[Block]:
        return self._convert_list(node, "bulleted_list_item")

    def _convert_ordered_list(self, node: SyntaxTreeNode) -> list[Block]:
        return self._convert_list(node, "numbered_list_item")

    def _convert_list(self, node: SyntaxTreeNode, block_type: str) -> list[Block]:
        blocks: list[Block] = []
        for item in node.children:
            blocks.extend(self._convert_list_item(item, block_type))
        return blocks

    def _convert_list_item(self, item: SyntaxTreeNode, block_type: str) -> list[Block]:
        """
        Convert one list item.

        The first paragraph becomes the item text; anything after it
        (nested lists, further paragraphs, code) becomes its children.
        Bulleted items starting with ``[ ]`` or ``[x]`` become to-dos.
        """
        nodes = list(item.children)
        rich_text: RichText = []
        if nodes and nodes[0].type == "paragraph":
            rich_text = self._inline_text(nodes[0])
            nodes = nodes[1:]

        payload: dict[str, Any] = {}

        if block_type == "bulleted_list_item" and rich_text:
            first = rich_text[0]["text"]
            for marker, checked in TASK_MARKERS.items():
                if first["content"].startswith(marker):
                    first["content"] = first["content"][len(marker):]
                    if not first["content"]:
                        rich_text.pop(0)
                    block_type = "to_do"
                    payload["checked"] = checked
                    break

        text, *overflow = split_rich_text(rich_text)
        payload["rich_text"] = text
        children = _paragraphs(overflow) + self._convert_nodes(nodes)

        return _with_children(block_type, payload, children)

    def _convert_blockquote(self, node: SyntaxTreeNode) -> list[Block]:
        """Convert quote; the first paragraph is the quote text."""
        nodes = list(node.children)
        rich_text: RichText = []
        if nodes and nodes[0].type == "paragraph":
            rich_text = self._inline_text(nodes[0])
            nodes = nodes[1:]

        text, *overflow = split_rich_text(rich_text)
        children = _paragraphs(overflow) + self._convert_nodes(nodes)

        return _with_children("quote", {"rich_text": text}, children)

    def _convert_code(self, node: SyntaxTreeNode) -> list[Block]:
        """Convert fenced or indented code; very long code spans several blocks."""
        language = notion_language(node.info) if node.type == "fence" else "plain text"
        code = node.content.rstrip("\n")
        return [
            _block("code", {"rich_text": part, "language": language})
            for part in split_rich_text(text_runs(code))
        ]

    def _convert_divider(self, node: SyntaxTreeNode) -> list[Block]:
        return [_block("divider", {})]

    def _convert_table(self, node: SyntaxTreeNode) -> list[Block]:
        """
        Convert a GFM table to table blocks with row children.

        Tables longer than Notion's row limit are split into consecutive
        tables, each repeating the header row.
        """
        rows: list[list[RichText]] = []
        has_header = False

        for section in node.children:
            if section.type == "thead":
                has_header = True
            for row in section.children:
                rows.append([self._inline_text(cell)[:MAX_ARRAY_LENGTH] for cell in row.children])

        if not rows:
            return []

        width = max(len(cells) for cells in rows)
        table_rows = [
            _block("table_row", {"cells": cells + [[] for _ in range(width - len(cells))]})
            for cells in rows
        ]

        header = table_rows[:1] if has_header else []
        body = table_rows[len(header):]
        per_table = MAX_ARRAY_LENGTH - len(header)

        return [
            _block("table", {
                "table_width": width,
                "has_column_header": has_header,
                "has_row_header": False,
                "children": header + body[start:start + per_table],
            })
            for start in range(0, max(len(body), 1), per_table)
        ]

    def _convert_html_block(self, node: SyntaxTreeNode) -> list[Block]:
        """Raw HTML has no Notion equivalent; keep its text."""
        content = node.content.strip()
        if not content:
            return []
        return _paragraphs(split_rich_text(text_runs(content)))


def markdown_to_blocks(markdown_text: str) -> list[Block]:
    """Convert a Markdown body to Notion blocks with the default converter."""
    return MarkdownConverter().convert(markdown_text)
