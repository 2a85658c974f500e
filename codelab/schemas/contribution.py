import enum
import typing
import pydantic
from typing import Optional as Opt
from ..utils.base import enum_serializer


class ThemeType(enum.Enum):
    LIGHT = "light"
    DARK = "dark"


class Alignment(enum.Enum):
    LEFT = "left"
    RIGHT = "right"


class LanguageDefinition(pydantic.BaseModel):
    id: str = pydantic.Field(min_length=1)
    name: str
    extensions: tuple[str, ...] = ()
    """File extensions without the leading dot.
    """
    tokenizer: dict[str, str] = {}
    """Token class name to regular expression source.
    """
    autocomplete: tuple[str, ...] = ()


class ThemeDefinition(pydantic.BaseModel):
    id: str = pydantic.Field(min_length=1)
    name: str
    type: typing.Annotated[ThemeType, enum_serializer] = ThemeType.DARK
    colors: dict[str, str] = {}


class CommandDefinition(pydantic.BaseModel):
    id: str = pydantic.Field(min_length=1)
    name: str = ""
    description: str = ""
    keybinding: Opt[str] = None
    handler: Opt[typing.Callable[[], typing.Any]] = pydantic.Field(default=None, exclude=True)


class StatusBarItem(pydantic.BaseModel):
    model_config = pydantic.ConfigDict(populate_by_name=True)

    id: str = pydantic.Field(min_length=1)
    text: str
    tooltip: Opt[str] = None
    alignment: typing.Annotated[Alignment, enum_serializer] = Alignment.LEFT
    priority: int = 0
    on_click: Opt[typing.Callable[[], typing.Any]] = pydantic.Field(
        default=None, exclude=True, alias="onClick",
    )
