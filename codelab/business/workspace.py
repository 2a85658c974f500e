"""Editor-side collaborators of the capability API.

The real text surface and notification toasts live in the front end, these
hold the state they render.
"""

__all__ = [
    "Workspace",
    "NotificationCenter",
]

import collections
import logging
from typing import Optional as Opt
from ..schemas.document import DocumentID, DocumentState, Notification, Severity


logger = logging.getLogger(__name__)

_SEVERITY_LOG_LEVELS = {
    Severity.INFO: logging.INFO,
    Severity.SUCCESS: logging.INFO,
    Severity.WARNING: logging.WARNING,
    Severity.ERROR: logging.ERROR,
}


class NotificationCenter:
    """Keeps the most recent notifications, oldest first."""

    def __init__(self, max_history: int = 100):
        self._history: collections.deque[Notification] = collections.deque(maxlen=max_history)

    def notify(
        self, message: str,
        severity: Severity | str = Severity.INFO,
        kind: Opt[str] = None,
        extension_id: Opt[str] = None,
    ) -> Notification:
        notification = Notification(
            message=message, severity=Severity(severity),
            kind=kind, extension_id=extension_id,
        )
        self._history.append(notification)
        logger.log(
            _SEVERITY_LOG_LEVELS[notification.severity],
            "[%s] %s", kind or notification.severity.value, message,
            extra={"extension_id": extension_id},
        )
        return notification

    @property
    def history(self) -> tuple[Notification, ...]:
        return tuple(self._history)

    @property
    def last(self) -> Opt[Notification]:
        return self._history[-1] if self._history else None

    def of_kind(self, kind: str) -> tuple[Notification, ...]:
        return tuple(n for n in self._history if n.kind == kind)


class Workspace:
    """Open documents and the focused one."""

    def __init__(self):
        self._documents: dict[DocumentID, DocumentState] = {}
        self._active_id: Opt[DocumentID] = None
        self._next_id: DocumentID = 1

    def open(self, name: str, content: str = "", language: str = "javascript") -> DocumentState:
        """Open a document and focus it."""
        document = DocumentState(id=self._next_id, name=name, content=content, language=language)
        self._next_id += 1
        self._documents[document.id] = document
        self._active_id = document.id
        return document.model_copy()

    def focus(self, document_id: DocumentID) -> None:
        if document_id not in self._documents:
            raise KeyError(f"Document {document_id} is not open.")
        self._active_id = document_id

    def close(self, document_id: DocumentID) -> None:
        self._documents.pop(document_id, None)
        if self._active_id == document_id:
            self._active_id = next(reversed(tuple(self._documents)), None)

    def get(self, document_id: DocumentID) -> Opt[DocumentState]:
        document = self._documents.get(document_id)
        return document.model_copy() if document else None

    @property
    def documents(self) -> tuple[DocumentState, ...]:
        return tuple(document.model_copy() for document in self._documents.values())

    def get_active(self) -> Opt[DocumentState]:
        """A copy of the focused document, None if nothing is focused."""
        if self._active_id is None:
            return None
        return self._documents[self._active_id].model_copy()

    def update_active(self, content: str) -> bool:
        """Replace the focused document's content and mark it modified.

        :return: False if no document is focused.
        """
        if self._active_id is None:
            return False
        document = self._documents[self._active_id]
        document.content = content
        document.has_unsaved_changes = True
        return True

