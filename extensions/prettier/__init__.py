"""Prettier Formatter

Formats the active document: JSON is pretty-printed, JavaScript, TypeScript
and CSS are re-indented by brace depth.
"""

from .formatter import format_code


id = "prettier-formatter"
name = "Prettier Formatter"
version = "1.0.0"
description = "Advanced code formatting"
author = "Built-in"

_api = None


def activate(api):
    global _api
    _api = api
    api.register_command({
        "id": "format-document-advanced",
        "name": "Format Document (Advanced)",
        "description": "Format code with advanced rules",
        "keybinding": "Ctrl+Shift+F",
        "handler": format_active_document,
    })


def deactivate():
    global _api
    _api = None


def format_active_document() -> None:
    if _api is None:
        return
    document = _api.get_active_document()
    if document is None:
        _api.show_notification("No active editor", "error")
        return
    try:
        formatted = format_code(document.content, document.language)
    except ValueError:
        _api.show_notification("Invalid JSON", "error")
        return
    _api.update_active_document(formatted)
    _api.show_notification("Advanced formatting applied", "success")
