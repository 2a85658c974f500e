"""Persistence store of installed extensions.

All installations live in one JSON document under a single storage key::

    {"<extension id>": {"code": "...", "enabled": true, "installedAt": "..."}}
"""

__all__ = [
    "ExtensionStore",
]

import datetime
import json
import logging
import pydantic
import sqlmodel
from typing import Optional as Opt
from ..engine import SessionLocal, STORAGE_KEY
from ..errors import CorruptStore
from ..schemas.extension import ExtensionID, InstallationRecord
from ..schemas.storage import StorageItemModel


logger = logging.getLogger(__name__)

_RECORDS_ADAPTER = pydantic.TypeAdapter(dict[ExtensionID, InstallationRecord])


class ExtensionStore:

    def __init__(self, storage_key: str = STORAGE_KEY, engine=None):
        self.storage_key = storage_key
        self._engine = engine

    def raw(self) -> Opt[str]:
        """The stored document text, None if never written."""
        with SessionLocal(self._engine) as db:
            item = db.exec(
                sqlmodel.select(StorageItemModel).where(StorageItemModel.key == self.storage_key)
            ).one_or_none()
            return item.value if item else None

    def load_all(self) -> dict[ExtensionID, InstallationRecord]:
        """Decode every installation record, in stored key order.

        :raise CorruptStore: If the document is not valid JSON or does not
            match the record schema. Decoding is all-or-nothing.
        """
        raw = self.raw()
        if raw is None:
            return {}
        try:
            return _RECORDS_ADAPTER.validate_json(raw)
        except pydantic.ValidationError as exc:
            raise CorruptStore(
                f"Stored extensions under {self.storage_key!r} cannot be decoded: "
                f"{exc.error_count()} error(s), first: {exc.errors()[0]['msg']}"
            ) from exc

    def save(self, ext_id: ExtensionID, record: InstallationRecord) -> None:
        records = self._load_for_write()
        records[ext_id] = record
        self._write(records)
        logger.debug("Saved installation record of %s", ext_id)

    def delete(self, ext_id: ExtensionID) -> bool:
        """Delete a record.

        :return: Whether a record was deleted.
        """
        records = self._load_for_write()
        if records.pop(ext_id, None) is None:
            return False
        self._write(records)
        logger.debug("Deleted installation record of %s", ext_id)
        return True

    def get(self, ext_id: ExtensionID) -> Opt[InstallationRecord]:
        return self.load_all().get(ext_id)

    def set_enabled(self, ext_id: ExtensionID, enabled: bool) -> Opt[InstallationRecord]:
        """Toggle the ``enabled`` flag of a stored record.

        :return: The updated record, None if the id is not stored.
        """
        records = self._load_for_write()
        record = records.get(ext_id)
        if record is None:
            return None
        records[ext_id] = record.model_copy(update={"enabled": enabled})
        self._write(records)
        return records[ext_id]

    def _load_for_write(self) -> dict[ExtensionID, InstallationRecord]:
        try:
            return self.load_all()
        except CorruptStore as exc:
            # a corrupt document counts as empty and is replaced on write
            logger.warning("Overwriting corrupt extension store: %s", exc.message)
            return {}

    def _write(self, records: dict[ExtensionID, InstallationRecord]) -> None:
        document = json.dumps({
            ext_id: record.model_dump(mode="json", by_alias=True)
            for ext_id, record in records.items()
        })
        with SessionLocal(self._engine) as db:
            item = db.get(StorageItemModel, self.storage_key)
            if item is None:
                item = StorageItemModel(key=self.storage_key, value=document)
            else:
                item.value = document
                item.updated_at = datetime.datetime.now(datetime.timezone.utc)
            db.add(item)
            db.commit()
