"""Unit tests for the Markdown to Notion blocks converter."""

import pytest

from md_notion_sync.markdown_converter import (
    MAX_ARRAY_LENGTH,
    MAX_TEXT_LENGTH,
    MarkdownConverter,
    markdown_to_blocks,
    notion_language,
)


def plain(rich_text):
    return "".join(run["text"]["content"] for run in rich_text)


def payload(block):
    return block[block["type"]]


class TestHeadings:
    """Test cases for heading conversion."""

    def test_single_heading(self):
        assert markdown_to_blocks("# Hi") == [{
            "object": "block",
            "type": "heading_1",
            "heading_1": {"rich_text": [{
                "type": "text",
                "text": {"content": "Hi"},
                "annotations": {
                    "bold": False,
                    "italic": False,
                    "strikethrough": False,
                    "underline": False,
                    "code": False,
                    "color": "default",
                },
            }]},
        }]

    @pytest.mark.parametrize("markdown,block_type", [
        ("## Two", "heading_2"),
        ("### Three", "heading_3"),
        ("#### Four", "heading_3"),
        ("###### Six", "heading_3"),
    ])
    def test_levels(self, markdown, block_type):
        (block,) = markdown_to_blocks(markdown)
        assert block["type"] == block_type


class TestParagraphs:
    """Test cases for paragraphs and inline formatting."""

    def test_inline_annotations(self):
        (block,) = markdown_to_blocks("Some **bold** and *it* and `code` and ~~gone~~")
        runs = payload(block)["rich_text"]

        assert block["type"] == "paragraph"
        assert plain(runs) == "Some bold and it and code and gone"
        by_text = {run["text"]["content"]: run["annotations"] for run in runs}
        assert by_text["bold"]["bold"] is True
        assert by_text["it"]["italic"] is True
        assert by_text["code"]["code"] is True
        assert by_text["gone"]["strikethrough"] is True
        assert by_text["Some "]["bold"] is False

    def test_nested_emphasis(self):
        (block,) = markdown_to_blocks("***both***")
        (run,) = payload(block)["rich_text"]
        assert run["annotations"]["bold"] is True
        assert run["annotations"]["italic"] is True

    def test_absolute_link(self):
        (block,) = markdown_to_blocks("see [site](https://example.com)")
        runs = payload(block)["rich_text"]
        link_run = runs[-1]
        assert link_run["text"] == {"content": "site", "link": {"url": "https://example.com"}}
        assert "link" not in runs[0]["text"]

    def test_relative_link_is_plain_text(self):
        (block,) = markdown_to_blocks("see [doc](./other.md)")
        runs = payload(block)["rich_text"]
        assert plain(runs) == "see doc"
        assert all("link" not in run["text"] for run in runs)

    def test_soft_break_becomes_space(self):
        (block,) = markdown_to_blocks("line one\nline two")
        assert plain(payload(block)["rich_text"]) == "line one line two"

    def test_hard_break_becomes_newline(self):
        (block,) = markdown_to_blocks("line one  \nline two")
        assert plain(payload(block)["rich_text"]) == "line one\nline two"

    def test_long_text_is_split(self):
        (block,) = markdown_to_blocks("a" * (MAX_TEXT_LENGTH * 2 + 500))
        runs = payload(block)["rich_text"]
        assert [len(run["text"]["content"]) for run in runs] == [MAX_TEXT_LENGTH, MAX_TEXT_LENGTH, 500]

    def test_multiple_paragraphs_keep_order(self):
        blocks = markdown_to_blocks("first\n\nsecond\n\nthird")
        assert [plain(payload(b)["rich_text"]) for b in blocks] == ["first", "second", "third"]

    def test_empty_body(self):
        assert markdown_to_blocks("") == []


class TestImages:
    """Test cases for image handling."""

    def test_standalone_image(self):
        (block,) = markdown_to_blocks("![logo](https://example.com/logo.png)")
        assert block["type"] == "image"
        assert payload(block)["type"] == "external"
        assert payload(block)["external"] == {"url": "https://example.com/logo.png"}
        assert plain(payload(block)["caption"]) == "logo"

    def test_relative_image_falls_back_to_text(self):
        (block,) = markdown_to_blocks("![logo](images/logo.png)")
        assert block["type"] == "paragraph"
        assert plain(payload(block)["rich_text"]) == "logo"


class TestLists:
    """Test cases for list conversion."""

    def test_bulleted_list(self):
        blocks = markdown_to_blocks("- a\n- b")
        assert [b["type"] for b in blocks] == ["bulleted_list_item", "bulleted_list_item"]
        assert [plain(payload(b)["rich_text"]) for b in blocks] == ["a", "b"]

    def test_numbered_list(self):
        blocks = markdown_to_blocks("1. one\n2. two")
        assert [b["type"] for b in blocks] == ["numbered_list_item", "numbered_list_item"]

    def test_nested_list_becomes_children(self):
        blocks = markdown_to_blocks("- a\n- b\n  - c\n  - d")
        assert len(blocks) == 2
        assert "children" not in payload(blocks[0])
        children = payload(blocks[1])["children"]
        assert [plain(payload(c)["rich_text"]) for c in children] == ["c", "d"]
        assert children[0]["type"] == "bulleted_list_item"

    def test_task_items(self):
        blocks = markdown_to_blocks("- [ ] todo\n- [x] done")
        assert [b["type"] for b in blocks] == ["to_do", "to_do"]
        assert payload(blocks[0])["checked"] is False
        assert payload(blocks[1])["checked"] is True
        assert plain(payload(blocks[0])["rich_text"]) == "todo"
        assert plain(payload(blocks[1])["rich_text"]) == "done"


class TestOtherBlocks:
    """Test cases for quotes, code, dividers, tables and HTML."""

    def test_blockquote(self):
        (block,) = markdown_to_blocks("> quoted text")
        assert block["type"] == "quote"
        assert plain(payload(block)["rich_text"]) == "quoted text"

    def test_blockquote_extra_paragraphs_are_children(self):
        (block,) = markdown_to_blocks("> first\n>\n> second")
        assert plain(payload(block)["rich_text"]) == "first"
        (child,) = payload(block)["children"]
        assert plain(payload(child)["rich_text"]) == "second"

    def test_fenced_code(self):
        (block,) = markdown_to_blocks("```py\nprint(1)\nprint(2)\n```")
        assert block["type"] == "code"
        assert payload(block)["language"] == "python"
        assert plain(payload(block)["rich_text"]) == "print(1)\nprint(2)"

    def test_code_without_language(self):
        (block,) = markdown_to_blocks("```\nx = 1\n```")
        assert payload(block)["language"] == "plain text"

    def test_indented_code(self):
        (block,) = markdown_to_blocks("    indented")
        assert block["type"] == "code"
        assert plain(payload(block)["rich_text"]) == "indented"

    def test_divider(self):
        blocks = markdown_to_blocks("above\n\n---\n\nbelow")
        assert [b["type"] for b in blocks] == ["paragraph", "divider", "paragraph"]
        assert blocks[1]["divider"] == {}

    def test_table(self):
        (block,) = markdown_to_blocks("| A | B |\n|---|---|\n| 1 | 2 |\n| 3 | 4 |")
        table = payload(block)
        assert block["type"] == "table"
        assert table["table_width"] == 2
        assert table["has_column_header"] is True
        rows = [[plain(cell) for cell in payload(row)["cells"]] for row in table["children"]]
        assert rows == [["A", "B"], ["1", "2"], ["3", "4"]]

    def test_html_block_keeps_text(self):
        (block,) = markdown_to_blocks("<div>raw</div>")
        assert block["type"] == "paragraph"
        assert plain(payload(block)["rich_text"]) == "<div>raw</div>"

    def test_mixed_document_order(self):
        body = "# Title\n\nIntro\n\n- item\n\n```sh\nls\n```\n"
        blocks = MarkdownConverter().convert(body)
        assert [b["type"] for b in blocks] == ["heading_1", "paragraph", "bulleted_list_item", "code"]
        assert payload(blocks[3])["language"] == "shell"


class TestNotionLanguage:
    """Test cases for fence language mapping."""

    @pytest.mark.parametrize("info,expected", [
        ("python", "python"),
        ("py", "python"),
        ("JS", "javascript"),
        ("yml", "yaml"),
        ("c++", "c++"),
        ("cpp", "c++"),
        ("python title=x.py", "python"),
        ("", "plain text"),
        ("brainfuck", "plain text"),
    ])
    def test_mapping(self, info, expected):
        assert notion_language(info) == expected


class TestNotionArrayLimits:
    """Nested arrays stay within what Notion accepts in one request."""

    def test_long_table_is_split_with_repeated_header(self):
        rows = "\n".join(f"| {i} | v{i} |" for i in range(150))
        blocks = markdown_to_blocks(f"| A | B |\n|---|---|\n{rows}")

        assert [b["type"] for b in blocks] == ["table", "table"]
        tables = [payload(b) for b in blocks]
        assert [len(t["children"]) for t in tables] == [100, 52]
        for table in tables:
            assert table["has_column_header"] is True
            assert [plain(c) for c in payload(table["children"][0])["cells"]] == ["A", "B"]
        body = [plain(payload(row)["cells"][0]) for t in tables for row in t["children"][1:]]
        assert body == [str(i) for i in range(150)]

    def test_table_without_overflow_stays_whole(self):
        rows = "\n".join(f"| {i} |" for i in range(99))
        (block,) = markdown_to_blocks(f"| A |\n|---|\n{rows}")
        assert len(payload(block)["children"]) == 100

    def test_paragraph_with_many_runs_spills_into_paragraphs(self):
        text = " ".join(f"**b{i}** n{i}" for i in range(80))
        blocks = markdown_to_blocks(text)

        assert [b["type"] for b in blocks] == ["paragraph", "paragraph"]
        runs = [payload(b)["rich_text"] for b in blocks]
        assert all(len(r) <= MAX_ARRAY_LENGTH for r in runs)
        assert plain(runs[0] + runs[1]).startswith("b0 n0 b1")
        assert sum(len(r) for r in runs) == 160

    def test_heading_overflow_follows_as_paragraph(self):
        text = " ".join(f"*e{i}* x" for i in range(60))
        blocks = markdown_to_blocks(f"# {text}")

        assert [b["type"] for b in blocks] == ["heading_1", "paragraph"]
        assert len(payload(blocks[0])["rich_text"]) == MAX_ARRAY_LENGTH

    def test_huge_code_block_spans_several_blocks(self):
        code = "x" * (MAX_TEXT_LENGTH * 125)
        blocks = markdown_to_blocks(f"```py\n{code}\n```")

        assert [b["type"] for b in blocks] == ["code", "code"]
        assert [len(payload(b)["rich_text"]) for b in blocks] == [100, 25]
        assert all(payload(b)["language"] == "python" for b in blocks)
        assert "".join(plain(payload(b)["rich_text"]) for b in blocks) == code

    def test_list_item_children_are_capped(self):
        nested = "\n".join(f"  - c{i}" for i in range(120))
        blocks = markdown_to_blocks(f"- parent\n{nested}\n- after")

        parent = blocks[0]
        assert len(payload(parent)["children"]) == MAX_ARRAY_LENGTH
        assert [plain(payload(b)["rich_text"]) for b in blocks[1:21]] == [f"c{i}" for i in range(100, 120)]
        assert plain(payload(blocks[-1])["rich_text"]) == "after"
        assert len(blocks) == 22

    def test_quote_children_are_capped(self):
        paragraphs = "\n>\n".join(f"> p{i}" for i in range(102))
        blocks = markdown_to_blocks(paragraphs)

        assert blocks[0]["type"] == "quote"
        assert plain(payload(blocks[0])["rich_text"]) == "p0"
        assert len(payload(blocks[0])["children"]) == MAX_ARRAY_LENGTH
        assert [plain(payload(b)["rich_text"]) for b in blocks[1:]] == ["p101"]
