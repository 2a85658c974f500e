import datetime
import enum
import typing
import pydantic
from typing import Optional as Opt
from ..utils.base import enum_serializer


DocumentID: typing.TypeAlias = int


class DocumentState(pydantic.BaseModel):
    """An open document in the editor."""

    id: DocumentID
    name: str
    content: str = ""
    language: str = "javascript"
    has_unsaved_changes: bool = False


class Severity(enum.Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


class Notification(pydantic.BaseModel):
    message: str
    severity: typing.Annotated[Severity, enum_serializer] = Severity.INFO
    kind: Opt[str] = None
    """Error class name for failure reports, e.g. ``ActivationException``.
    """
    extension_id: Opt[str] = None
    created_at: datetime.datetime = pydantic.Field(
        default_factory=lambda: datetime.datetime.now(datetime.timezone.utc)
    )
