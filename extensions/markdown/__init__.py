"""Markdown Support"""

id = "markdown-support"
name = "Markdown Support"
version = "1.0.0"
description = "Adds Markdown language support"
author = "CodeLab Team"

contributes = {
    "languages": [{
        "id": "markdown",
        "name": "Markdown",
        "extensions": ["md", "markdown"],
        "tokenizer": {
            "headings": r"^#+\s.+$",
            "bold": r"\*\*([^*]+)\*\*",
            "italic": r"\*([^*]+)\*",
            "code": r"`([^`]+)`",
            "links": r"\[([^\]]+)\]\(([^)]+)\)",
            "lists": r"^[\s]*[-*+]\s",
        },
        "autocomplete": ["# ", "## ", "### ", "**bold**", "*italic*", "[link](url)", "- list item"],
    }],
}


def activate(api):
    api.register_command({
        "id": "md-preview",
        "name": "Preview Markdown",
        "description": "Open Markdown preview",
        "keybinding": "Ctrl+Shift+V",
        "handler": lambda: api.show_notification("Markdown preview would open here", "info"),
    })
