#!/usr/bin/env python3
"""
Markdown → Notion Sync entry point for workflow steps.

Usage:
    python sync.py                          # Push changed files for HEAD
    python sync.py --debug                  # Verbose output
    python sync.py --no-subscription-check  # Skip the pre-flight check
    python sync.py version                  # Show version
"""

from md_notion_sync.cli import main

if __name__ == "__main__":
    main()
