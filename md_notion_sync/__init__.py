"""
Markdown → Notion Sync

A CI step that mirrors Markdown files changed in a commit into
their linked Notion pages.
"""

__version__ = "1.0.0"
