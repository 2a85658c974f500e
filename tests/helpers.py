"""Extension sources and builders shared by the tests."""

import textwrap

import sqlmodel

from codelab.business.validator import validate_manifest
from codelab.schemas.storage import StorageItemModel


DEMO_LANG_SOURCE = textwrap.dedent('''
    id = "demo-lang-plugin"
    name = "DemoLang Support"
    version = "1.0.0"

    def activate(api):
        api.register_language({"id": "demo-lang", "name": "DemoLang", "extensions": ["dl"]})
''')


def write_raw(engine, key: str, value: str) -> None:
    """Put a raw document in storage, bypassing the store."""
    with sqlmodel.Session(engine) as db:
        item = db.get(StorageItemModel, key)
        if item is None:
            item = StorageItemModel(key=key, value=value)
        else:
            item.value = value
        db.add(item)
        db.commit()


def make_manifest(ext_id: str, activate=lambda api: None, **fields):
    return validate_manifest({"id": ext_id, "activate": activate, **fields})


def extension_source(ext_id: str, body: str = "pass") -> str:
    """Source text of an extension whose activate runs ``body``."""
    return f"id = {ext_id!r}\n\ndef activate(api):\n    {body}\n"
