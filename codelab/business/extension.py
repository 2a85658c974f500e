__all__ = [
    "Extension",
    "ExtensionManager",
    "InstallOutcome",
    "EXTENSION_ROUTER",
    "get_extension_manager",
]

import dataclasses
import inspect
import logging
import typing
import fastapi
import pydantic
from typing import Optional as Opt
from .api import ExtensionAPI
from .contribution import ContributionTables
from .loader import ExtensionLoader
from .store import ExtensionStore
from .validator import validate_manifest
from .workspace import Workspace, NotificationCenter
from ..engine import BUILTIN_EXTENSIONS
from ..errors import (
    ExtensionError, InvalidManifest, EvaluationFailure, ActivationException,
    CorruptStore, InvalidTransition,
)
from ..schemas.document import Notification, Severity
from ..schemas.extension import (
    ExtensionID, ExtensionInfo, ExtensionManifest, ExtensionState, InstallationRecord,
)
from ..schemas.source import ExtensionSource, LocalSource, RemoteSource, RegistrySource
from ..utils.base import get_attr_or_key


logger = logging.getLogger(__name__)

_TRANSITIONS: dict[ExtensionState, frozenset[ExtensionState]] = {
    ExtensionState.LOADED: frozenset({ExtensionState.ACTIVATING, ExtensionState.FAILED}),
    ExtensionState.ACTIVATING: frozenset({ExtensionState.ACTIVE, ExtensionState.FAILED}),
    ExtensionState.ACTIVE: frozenset({ExtensionState.DEACTIVATING}),
    ExtensionState.DEACTIVATING: frozenset({ExtensionState.REMOVED}),
    ExtensionState.REMOVED: frozenset(),
    ExtensionState.FAILED: frozenset(),
}


@dataclasses.dataclass(eq=False)
class Extension:
    """An extension known to the registry.

    ``manifest`` is None only for a candidate that failed validation.
    """

    id: ExtensionID
    manifest: Opt[ExtensionManifest] = None
    state: ExtensionState = ExtensionState.LOADED
    builtin: bool = False
    error: Opt[str] = None
    name: str = ""
    failure: Opt[Notification] = dataclasses.field(default=None, repr=False)
    """The error notification reported when this record failed."""
    api: Opt[ExtensionAPI] = dataclasses.field(default=None, repr=False)

    def transition(self, target: ExtensionState) -> None:
        if target not in _TRANSITIONS[self.state]:
            raise InvalidTransition(
                f"Extension {self.id!r} cannot go from {self.state.value} to {target.value}.",
                extension_id=self.id,
            )
        logger.debug("Extension %s: %s -> %s", self.id, self.state.value, target.value)
        self.state = target

    def info(self) -> ExtensionInfo:
        manifest = self.manifest
        return ExtensionInfo(
            id=self.id,
            name=(manifest.name if manifest else self.name) or self.id,
            version=manifest.version if manifest else "",
            description=manifest.description if manifest else "",
            author=manifest.author if manifest else "",
            state=self.state,
            builtin=self.builtin,
            error=self.error,
        )


class InstallOutcome(typing.NamedTuple):
    """Result of one install attempt.

    ``failure`` is the notification reported by this attempt, None on
    success. ``record`` is None if the attempt failed before an extension
    id was known.
    """
    record: Opt[Extension]
    failure: Opt[Notification] = None


class ExtensionManager:
    """Registry and lifecycle manager of extensions.

    - Install extensions from local code, a URL or the package registry
    - Activate them with their own capability API
    - Uninstall, enable and disable them
    - Restore the installed set on startup

    Callers serialize install, uninstall and reload; the only suspension
    point is the network fetch in :meth:`install_from`.
    """

    SINGLETON: Opt["ExtensionManager"] = None

    @classmethod
    def new(cls) -> "ExtensionManager":
        """The process-wide manager, created on first use."""
        if cls.SINGLETON is None:
            cls.SINGLETON = cls()
        return cls.SINGLETON

    def __init__(
        self,
        store: Opt[ExtensionStore] = None,
        loader: Opt[ExtensionLoader] = None,
        tables: Opt[ContributionTables] = None,
        workspace: Opt[Workspace] = None,
        notifications: Opt[NotificationCenter] = None,
        builtins: tuple[str, ...] = BUILTIN_EXTENSIONS,
    ):
        self.store = store or ExtensionStore()
        self.loader = loader or ExtensionLoader()
        self.tables = tables or ContributionTables()
        self.workspace = workspace or Workspace()
        self.notifications = notifications or NotificationCenter()
        self.builtins = builtins
        self._records: dict[ExtensionID, Extension] = {}

    # queries

    def get(self, ext_id: ExtensionID) -> Opt[Extension]:
        return self._records.get(ext_id)

    @property
    def records(self) -> tuple[Extension, ...]:
        return tuple(self._records.values())

    def list_active(self) -> tuple[Extension, ...]:
        """Active extensions in activation order.

        Built-ins come first in declaration order, then restored and newly
        installed extensions. A reinstalled extension moves to the end.
        """
        return tuple(
            record for record in self._records.values()
            if record.state == ExtensionState.ACTIVE
        )

    # lifecycle

    def install(
        self, manifest: ExtensionManifest,
        code: Opt[str] = None,
        builtin: bool = False,
        persist: bool = True,
    ) -> Extension:
        """Activate a validated extension.

        Contributions made during ``activate``, plus the static
        ``contributes`` block, are committed only when ``activate`` returns.
        If it raises, they are dropped, the record ends ``FAILED`` and an
        ``ActivationException`` is reported; nothing is stored.
        This departs from a plain activation call, where whatever was
        registered before the exception would stay in the tables. Once the
        record fails or is removed, its API is closed.

        Installing an id that is already active replaces it once the new
        activation has succeeded.

        :param code: Source text to persist, None for built-ins and
            extensions installed programmatically.
        :param persist: Write the installation through to the store.
        """
        record = Extension(id=manifest.id, manifest=manifest, builtin=builtin)
        record.transition(ExtensionState.ACTIVATING)

        api = ExtensionAPI(manifest.id, self.tables, self.workspace, self.notifications)
        record.api = api
        api.begin()
        try:
            result = manifest.activate(api)
            if inspect.iscoroutine(result):
                result.close()
                raise TypeError("activate() must be a plain function, not a coroutine function")
            if manifest.contributes is not None:
                api.apply_contributes(manifest.contributes)
        except (Exception, SystemExit) as exc:
            dropped = api.rollback()
            api.close()
            record.transition(ExtensionState.FAILED)
            record.error = f"{exc.__class__.__name__}: {exc}"
            self._keep_failed(record)
            record.failure = self._report(ActivationException(
                f"Activating extension {manifest.id!r} failed: {record.error}"
                + (f" ({dropped} contribution(s) discarded)" if dropped else ""),
                extension_id=manifest.id,
            ), cause=exc)
            return record

        previous = self._records.pop(manifest.id, None)
        if previous is not None and previous.state == ExtensionState.ACTIVE:
            logger.info("Replacing active extension %s", manifest.id)
            self._deactivate(previous)

        committed = api.commit()
        record.transition(ExtensionState.ACTIVE)
        self._records[manifest.id] = record
        logger.info(
            "Activated extension %s (%d contribution(s))", manifest.id, committed,
            extra={"extension_id": manifest.id},
        )

        if code is not None and persist:
            self.store.save(manifest.id, InstallationRecord(code=code, enabled=True))
        return record

    async def install_from(self, source: ExtensionSource) -> Opt[Extension]:
        """Load, validate and install an extension from a source.

        Every failure is reported as a notification and leaves the store
        unchanged.

        :return: The record, ``ACTIVE`` or ``FAILED``. None if the source
            failed before an extension id was known.
        """
        return (await self.install_source(source)).record

    async def install_source(self, source: ExtensionSource) -> InstallOutcome:
        """Same as :meth:`install_from`, also returning the failure this
        attempt reported.
        """
        try:
            loaded = await self.loader.load(source)
        except ExtensionError as exc:
            return InstallOutcome(None, self._report(exc, cause=exc.__cause__))

        outcome = self._validate_and_install(loaded.candidate, code=loaded.code)
        record = outcome.record
        if record is not None and record.state == ExtensionState.ACTIVE:
            self.notifications.notify(
                f"Extension {record.info().name} installed.", Severity.SUCCESS,
                extension_id=record.id,
            )
        return outcome

    def uninstall(self, ext_id: ExtensionID) -> bool:
        """Deactivate and forget an extension, and drop its stored record.

        Its contributions are retracted. Unknown ids are a no-op.

        :return: Whether anything was removed.
        """
        record = self._records.pop(ext_id, None)
        if record is not None and record.state == ExtensionState.ACTIVE:
            self._deactivate(record)
        removed_from_store = self.store.delete(ext_id)

        if record is None and not removed_from_store:
            logger.debug("Uninstall of unknown extension %s ignored", ext_id)
            return False
        logger.info("Uninstalled extension %s", ext_id, extra={"extension_id": ext_id})
        return True

    def set_enabled(self, ext_id: ExtensionID, enabled: bool) -> Opt[InstallationRecord]:
        """Toggle whether a stored extension is restored on startup.

        Disabling also deactivates it now; enabling installs it from its
        stored code now.

        :return: The updated stored record, None if ``ext_id`` is not stored.
        """
        stored = self.store.set_enabled(ext_id, enabled)
        if stored is None:
            return None

        record = self._records.get(ext_id)
        is_active = record is not None and record.state == ExtensionState.ACTIVE
        if not enabled and is_active:
            del self._records[ext_id]
            self._deactivate(record)
        elif enabled and not is_active:
            self._validate_and_install(
                self._evaluate_stored(ext_id, stored), code=stored.code,
                persist=False, expected_id=ext_id,
            )
        return stored

    def start(self) -> tuple[Extension, ...]:
        """Activate the built-ins in declaration order, then :meth:`reload`."""
        for name in self.builtins:
            try:
                manifest = validate_manifest(self.loader.load_builtin(name))
            except ExtensionError as exc:
                self._report(exc, cause=exc.__cause__)
                continue
            self.install(manifest, builtin=True)
        return self.reload()

    def reload(self) -> tuple[Extension, ...]:
        """Restore every enabled extension from the store.

        Entries are installed in stored key order without rewriting them.
        Disabled entries stay in the store and are not loaded. A corrupt
        store is reported and counts as empty.

        :return: The active extensions afterwards.
        """
        try:
            stored = self.store.load_all()
        except CorruptStore as exc:
            self._report(exc, cause=exc.__cause__)
            return self.list_active()

        for ext_id, installation in stored.items():
            if not installation.enabled:
                logger.debug("Skipping disabled extension %s", ext_id)
                continue
            self._validate_and_install(
                self._evaluate_stored(ext_id, installation), code=installation.code,
                persist=False, expected_id=ext_id,
            )
        return self.list_active()

    def close_all(self) -> None:
        """Deactivate everything on shutdown, newest first. The store is kept."""
        for record in reversed(self.list_active()):
            del self._records[record.id]
            self._deactivate(record)

    # internals

    def _evaluate_stored(self, ext_id: ExtensionID, installation: InstallationRecord) -> object:
        try:
            return self.loader.evaluate(installation.code)
        except EvaluationFailure as exc:
            exc.extension_id = ext_id
            self._report(exc, cause=exc.__cause__)
            return None

    def _validate_and_install(
        self, candidate: object,
        code: str,
        persist: bool = True,
        expected_id: Opt[ExtensionID] = None,
    ) -> InstallOutcome:
        if candidate is None:
            return InstallOutcome(None)
        try:
            manifest = validate_manifest(candidate)
            if expected_id is not None and manifest.id != expected_id:
                raise InvalidManifest(
                    f"Stored extension {expected_id!r} declares id {manifest.id!r}.",
                    extension_id=expected_id,
                )
        except InvalidManifest as exc:
            failure = self._report(exc, cause=exc.__cause__)
            if exc.extension_id is None:
                return InstallOutcome(None, failure)
            record = Extension(id=exc.extension_id, error=exc.message, failure=failure)
            name = get_attr_or_key(candidate, "name")
            record.name = name if isinstance(name, str) else ""
            record.transition(ExtensionState.FAILED)
            self._keep_failed(record)
            return InstallOutcome(record, failure)
        record = self.install(manifest, code=code, persist=persist)
        return InstallOutcome(record, record.failure)

    def _keep_failed(self, record: Extension) -> None:
        """Track a failed record unless an active one holds its id."""
        current = self._records.get(record.id)
        if current is None or current.state != ExtensionState.ACTIVE:
            self._records.pop(record.id, None)
            self._records[record.id] = record

    def _deactivate(self, record: Extension) -> None:
        record.transition(ExtensionState.DEACTIVATING)
        deactivate = record.manifest.deactivate if record.manifest else None
        if deactivate is not None:
            try:
                deactivate()
            except (Exception, SystemExit) as exc:
                logger.warning(
                    "deactivate() of extension %s raised, removing it anyway", record.id,
                    exc_info=exc, extra={"extension_id": record.id},
                )
                self.notifications.notify(
                    f"Extension {record.id!r} failed to deactivate cleanly: "
                    f"{exc.__class__.__name__}: {exc}",
                    Severity.WARNING, extension_id=record.id,
                )
        self.tables.retract(record.id)
        if record.api is not None:
            record.api.close()
        record.transition(ExtensionState.REMOVED)

    def _report(self, error: ExtensionError, cause: Opt[BaseException] = None) -> Notification:
        logger.error(
            "%s: %s", error.kind, error.message,
            exc_info=cause, extra={"extension_id": error.extension_id},
        )
        return self.notifications.notify(
            error.message, Severity.ERROR, kind=error.kind, extension_id=error.extension_id,
        )


EXTENSION_ROUTER = fastapi.APIRouter(
    prefix="/extensions"
)


async def get_extension_manager() -> ExtensionManager:
    """A fastapi dependency to get the extension manager.

    Every route using it is a coroutine, so the registry is only touched
    from the event loop.
    """
    return ExtensionManager.new()


@EXTENSION_ROUTER.get("")
async def list_extensions(
    active_only: bool = False,
    manager: ExtensionManager = fastapi.Depends(get_extension_manager),
) -> list[ExtensionInfo]:
    records = manager.list_active() if active_only else manager.records
    return [record.info() for record in records]


@EXTENSION_ROUTER.get("/contributions")
async def get_contributions(
    manager: ExtensionManager = fastapi.Depends(get_extension_manager),
) -> dict[str, list[dict]]:
    """Current contents of the contribution tables."""
    tables = manager.tables
    return {
        "languages": [i.model_dump(mode="json") for i in tables.languages.values()],
        "themes": [i.model_dump(mode="json") for i in tables.themes.values()],
        "commands": [i.model_dump(mode="json") for i in tables.commands],
        "status_bar_items": [i.model_dump(mode="json") for i in tables.status_bar_items],
    }


@EXTENSION_ROUTER.get("/notifications")
async def get_notifications(
    manager: ExtensionManager = fastapi.Depends(get_extension_manager),
) -> list[Notification]:
    return list(manager.notifications.history)


@EXTENSION_ROUTER.get("/{ext_id}")
async def get_extension(
    ext_id: str,
    manager: ExtensionManager = fastapi.Depends(get_extension_manager),
) -> ExtensionInfo:
    record = manager.get(ext_id)
    if record is None:
        raise fastapi.HTTPException(
            status_code=fastapi.status.HTTP_404_NOT_FOUND,
            detail=f"Extension {ext_id} not found."
        )
    return record.info()


async def _install(
    manager: ExtensionManager, source: ExtensionSource, response: fastapi.Response,
) -> ExtensionInfo:
    record, failure = await manager.install_source(source)
    if record is None or record.state != ExtensionState.ACTIVE:
        raise fastapi.HTTPException(
            status_code=(
                fastapi.status.HTTP_502_BAD_GATEWAY
                if failure and failure.kind == "FetchFailure"
                else fastapi.status.HTTP_422_UNPROCESSABLE_CONTENT
            ),
            detail={
                "kind": failure.kind if failure else None,
                "message": failure.message if failure else "Install failed.",
            },
        )
    response.status_code = 201
    return record.info()


@EXTENSION_ROUTER.post("/local")
async def install_local(
    body: LocalSource,
    response: fastapi.Response,
    manager: ExtensionManager = fastapi.Depends(get_extension_manager),
) -> ExtensionInfo:
    return await _install(manager, body, response)


@EXTENSION_ROUTER.post("/remote")
async def install_remote(
    body: RemoteSource,
    response: fastapi.Response,
    manager: ExtensionManager = fastapi.Depends(get_extension_manager),
) -> ExtensionInfo:
    return await _install(manager, body, response)


@EXTENSION_ROUTER.post("/registry")
async def install_registry(
    body: RegistrySource,
    response: fastapi.Response,
    manager: ExtensionManager = fastapi.Depends(get_extension_manager),
) -> ExtensionInfo:
    return await _install(manager, body, response)


@EXTENSION_ROUTER.delete("/{ext_id}", status_code=fastapi.status.HTTP_204_NO_CONTENT)
async def uninstall_extension(
    ext_id: str,
    manager: ExtensionManager = fastapi.Depends(get_extension_manager),
) -> None:
    manager.uninstall(ext_id)


class EnabledBody(pydantic.BaseModel):
    enabled: bool


@EXTENSION_ROUTER.put("/{ext_id}/enabled")
async def set_extension_enabled(
    ext_id: str,
    body: EnabledBody,
    manager: ExtensionManager = fastapi.Depends(get_extension_manager),
) -> InstallationRecord:
    stored = manager.set_enabled(ext_id, body.enabled)
    if stored is None:
        raise fastapi.HTTPException(
            status_code=fastapi.status.HTTP_404_NOT_FOUND,
            detail=f"Extension {ext_id} is not installed."
        )
    return stored
