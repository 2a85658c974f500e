import datetime
import enum
import typing
import pydantic
from typing import Optional as Opt
from ..utils.base import enum_serializer
from .contribution import (
    LanguageDefinition, ThemeDefinition, CommandDefinition, StatusBarItem,
)


ExtensionID: typing.TypeAlias = str


class ExtensionState(enum.Enum):
    """Lifecycle state of an extension record.

    ``LOADED -> ACTIVATING -> ACTIVE -> DEACTIVATING -> REMOVED``, with
    ``FAILED`` reachable from ``LOADED`` and ``ACTIVATING``.
    """
    LOADED = "loaded"
    ACTIVATING = "activating"
    ACTIVE = "active"
    DEACTIVATING = "deactivating"
    REMOVED = "removed"
    FAILED = "failed"


class ExtensionContributes(pydantic.BaseModel):
    """Contributions declared statically instead of through API calls."""

    languages: tuple[LanguageDefinition, ...] = ()
    themes: tuple[ThemeDefinition, ...] = ()
    commands: tuple[CommandDefinition, ...] = ()
    status_bar_items: tuple[StatusBarItem, ...] = pydantic.Field(
        default=(), validation_alias=pydantic.AliasChoices("status_bar_items", "statusBarItems"),
    )


class ExtensionManifest(pydantic.BaseModel):
    """Validated shape of a loaded extension.

    Globally, every extension has a unique ID which stays the same across
    reinstalls.
    """
    model_config = pydantic.ConfigDict(frozen=True)

    id: ExtensionID = pydantic.Field(min_length=1)
    activate: typing.Callable[..., typing.Any]
    deactivate: Opt[typing.Callable[[], typing.Any]] = None
    name: str = ""
    version: str = "0.0.0"
    description: str = ""
    author: str = ""
    contributes: Opt[ExtensionContributes] = None


class InstallationRecord(pydantic.BaseModel):
    """Persisted installation of one extension, keyed by its id.

    Serialized as ``{"code", "enabled", "installedAt"}``.
    """
    model_config = pydantic.ConfigDict(populate_by_name=True)

    code: str
    enabled: bool = True
    installed_at: datetime.datetime = pydantic.Field(
        default_factory=lambda: datetime.datetime.now(datetime.timezone.utc),
        alias="installedAt",
    )


class ExtensionInfo(pydantic.BaseModel):
    """Public view of an extension record."""

    id: ExtensionID
    name: str
    version: str
    description: str
    author: str
    state: typing.Annotated[ExtensionState, enum_serializer]
    builtin: bool
    error: Opt[str] = None
