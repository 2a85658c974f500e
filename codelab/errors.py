"""Errors raised by the extension host.

Every install-time error is caught at the install boundary of
:class:`codelab.business.extension.ExtensionManager` and reported as a
notification whose kind is the class name.
"""

from typing import Optional as Opt


class ExtensionError(Exception):

    def __init__(self, message: str, extension_id: Opt[str] = None):
        super().__init__(message)
        self.message = message
        self.extension_id = extension_id

    @property
    def kind(self) -> str:
        return self.__class__.__name__


class InvalidManifest(ExtensionError):
    """Candidate lacks a string ``id`` or a callable ``activate``."""


class FetchFailure(ExtensionError):
    """Remote or registry source could not be retrieved."""

    def __init__(self, message: str, url: Opt[str] = None, status: Opt[int] = None):
        super().__init__(message)
        self.url = url
        self.status = status


class EvaluationFailure(ExtensionError):
    """Source failed to compile or raised while running its module body."""


class ActivationException(ExtensionError):
    """``activate`` raised."""


class CorruptStore(ExtensionError):
    """The persisted installation document cannot be decoded."""


class InvalidTransition(ExtensionError):
    """A lifecycle transition not allowed by the state machine."""
