__all__ = [
    "validate_manifest",
]

import pydantic
from ..errors import InvalidManifest
from ..schemas.extension import ExtensionManifest
from ..utils.base import get_attr_or_key


_MANIFEST_FIELDS = (
    "id", "activate", "deactivate",
    "name", "version", "description", "author",
    "contributes",
)


def validate_manifest(candidate: object) -> ExtensionManifest:
    """Check a loaded candidate against the extension contract.

    The candidate may be a mapping or any object exposing the fields as
    attributes. Only ``id`` (a non-empty string) and ``activate`` (a
    callable) are required. Nothing is registered or stored here.

    :raise InvalidManifest:
    """
    ext_id = get_attr_or_key(candidate, "id")
    if not isinstance(ext_id, str) or not ext_id.strip():
        raise InvalidManifest("Extension must declare a non-empty string `id`.")

    if not callable(get_attr_or_key(candidate, "activate")):
        raise InvalidManifest(
            f"Extension {ext_id!r} must declare a callable `activate`.", extension_id=ext_id
        )

    deactivate = get_attr_or_key(candidate, "deactivate")
    if deactivate is not None and not callable(deactivate):
        raise InvalidManifest(
            f"`deactivate` of extension {ext_id!r} must be callable.", extension_id=ext_id
        )

    payload = {}
    for field in _MANIFEST_FIELDS:
        value = get_attr_or_key(candidate, field)
        if value is not None:
            payload[field] = value

    try:
        return ExtensionManifest.model_validate(payload)
    except pydantic.ValidationError as exc:
        error = exc.errors()[0]
        location = ".".join(str(part) for part in error["loc"])
        raise InvalidManifest(
            f"Extension {ext_id!r} has an invalid `{location}`: {error['msg']}",
            extension_id=ext_id,
        ) from exc
