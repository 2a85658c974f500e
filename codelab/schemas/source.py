import typing
import pydantic


class LocalSource(pydantic.BaseModel):
    """Source text supplied directly, e.g. the content of a picked file."""
    kind: typing.Literal["local"] = "local"
    code: str


class RemoteSource(pydantic.BaseModel):
    """A URL whose response body is the source text."""
    kind: typing.Literal["remote"] = "remote"
    url: str = pydantic.Field(min_length=1)


class RegistrySource(pydantic.BaseModel):
    """A package name resolved against the package registry endpoint."""
    kind: typing.Literal["registry"] = "registry"
    name: str = pydantic.Field(min_length=1)


ExtensionSource: typing.TypeAlias = typing.Annotated[
    typing.Union[LocalSource, RemoteSource, RegistrySource],
    pydantic.Field(discriminator="kind"),
]
