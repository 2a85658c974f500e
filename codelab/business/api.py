"""Capability API handed to extensions on activation.

Each extension receives its own :class:`ExtensionAPI`, bound to its id, so
that every contribution is attributed to its owner. All of them write into
the same tables: contributions are global, any extension may override a
language or theme registered by another one.
"""

__all__ = [
    "ExtensionAPI",
]

import logging
import typing
from typing import Optional as Opt
from .contribution import ContributionTables
from .workspace import Workspace, NotificationCenter
from ..schemas.contribution import (
    LanguageDefinition, ThemeDefinition, CommandDefinition, StatusBarItem,
)
from ..schemas.document import DocumentState, Severity
from ..schemas.extension import ExtensionID, ExtensionContributes


logger = logging.getLogger(__name__)


class ExtensionAPI:

    def __init__(
        self, ext_id: ExtensionID,
        tables: ContributionTables,
        workspace: Workspace,
        notifications: NotificationCenter,
    ):
        self._ext_id = ext_id
        self._tables = tables
        self._workspace = workspace
        self._notifications = notifications
        self._pending: Opt[list[tuple[typing.Callable, typing.Any]]] = None
        self._closed = False

    @property
    def extension_id(self) -> ExtensionID:
        return self._ext_id

    @property
    def closed(self) -> bool:
        return self._closed

    # contributions

    def register_language(self, definition: LanguageDefinition | dict) -> LanguageDefinition:
        language = LanguageDefinition.model_validate(definition)
        self._apply(self._tables.add_language, language)
        return language

    def register_theme(self, definition: ThemeDefinition | dict) -> ThemeDefinition:
        theme = ThemeDefinition.model_validate(definition)
        self._apply(self._tables.add_theme, theme)
        return theme

    def register_command(self, definition: CommandDefinition | dict) -> CommandDefinition:
        command = CommandDefinition.model_validate(definition)
        self._apply(self._tables.add_command, command)
        return command

    def register_status_bar_item(self, definition: StatusBarItem | dict) -> StatusBarItem:
        item = StatusBarItem.model_validate(definition)
        self._apply(self._tables.add_status_bar_item, item)
        return item

    # editor

    def show_notification(self, message: str, severity: Severity | str = Severity.INFO) -> None:
        self._notifications.notify(message, severity, extension_id=self._ext_id)

    def get_active_document(self) -> Opt[DocumentState]:
        return self._workspace.get_active()

    def update_active_document(self, content: str) -> bool:
        return self._workspace.update_active(content)

    # activation transaction

    def begin(self) -> None:
        """Start buffering contributions.

        Until :meth:`commit` or :meth:`rollback`, ``register_*`` calls are
        held back instead of written to the tables. Notifications and
        document updates are never buffered.
        """
        if self._pending is not None:
            raise RuntimeError(f"Activation of {self._ext_id} is already in progress.")
        self._pending = []

    def commit(self) -> int:
        """Write buffered contributions to the tables, in call order.

        :return: Number of contributions written.
        """
        pending, self._pending = self._pending or [], None
        for add, definition in pending:
            add(definition, owner=self._ext_id)
        return len(pending)

    def rollback(self) -> int:
        """Drop buffered contributions.

        :return: Number of contributions dropped.
        """
        pending, self._pending = self._pending or [], None
        return len(pending)

    def apply_contributes(self, contributes: ExtensionContributes) -> None:
        """Register a manifest's static ``contributes`` block."""
        for language in contributes.languages:
            self.register_language(language)
        for theme in contributes.themes:
            self.register_theme(theme)
        for command in contributes.commands:
            self.register_command(command)
        for item in contributes.status_bar_items:
            self.register_status_bar_item(item)

    def close(self) -> None:
        """Stop accepting contributions.

        Called once the extension is removed or its activation failed. Later
        ``register_*`` calls from references the extension kept are dropped
        with a warning, so nothing is written under an owner that will not be
        retracted again.
        """
        self._pending = None
        self._closed = True

    def _apply(self, add: typing.Callable, definition) -> None:
        if self._closed:
            logger.warning(
                "Ignoring %s %r from extension %s, which is no longer active",
                type(definition).__name__, definition.id, self._ext_id,
                extra={"extension_id": self._ext_id},
            )
            return
        if self._pending is None:
            add(definition, owner=self._ext_id)
        else:
            self._pending.append((add, definition))
