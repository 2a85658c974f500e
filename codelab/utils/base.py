import collections.abc
import enum
import aiohttp
import ssl
import certifi
import pydantic


enum_serializer = pydantic.PlainSerializer(
    lambda value: value.value if isinstance(value, enum.Enum) else value,
    return_type=str,
)

def AIOHTTP_CONNECTOR_GETTER():
    return aiohttp.TCPConnector(ssl=ssl.create_default_context(cafile=certifi.where()))

def get_attr_or_key(obj: object, name: str, default=None):
    """Read ``name`` from a mapping key or an object attribute."""
    if isinstance(obj, collections.abc.Mapping):
        return obj.get(name, default)
    return getattr(obj, name, default)
