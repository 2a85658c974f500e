"""Turn an extension source into a candidate manifest.

Source text is evaluated as the body of a fresh module. The candidate is
the module's ``default`` if set, else its ``exports`` if set, else the
module itself::

    id = "hello"

    def activate(api):
        api.show_notification("Hello!")

Evaluation goes through a :class:`ModuleEvaluator` so that a stricter
backend can replace the in-process one.
"""

__all__ = [
    "ExtensionLoader",
    "ModuleEvaluator",
    "InProcessEvaluator",
    "LoadedSource",
    "extract_candidate",
]

import abc
import asyncio
import importlib
import itertools
import logging
import types
import typing
import urllib.parse
import aiohttp
from typing import Optional as Opt
from ..engine import (
    REGISTRY_URL, FETCH_TIMEOUT, ALLOW_REMOTE_EXTENSIONS, TRUSTED_DOMAINS,
)
from ..errors import EvaluationFailure, FetchFailure
from ..schemas.source import ExtensionSource, LocalSource, RemoteSource, RegistrySource
from ..utils.base import AIOHTTP_CONNECTOR_GETTER


logger = logging.getLogger(__name__)

BUILTIN_PACKAGE = "extensions"


class LoadedSource(typing.NamedTuple):
    code: str
    candidate: object


def extract_candidate(module: types.ModuleType) -> object:
    for export_name in ("default", "exports"):
        candidate = getattr(module, export_name, None)
        if candidate is not None:
            return candidate
    return module


class ModuleEvaluator(abc.ABC):

    @abc.abstractmethod
    def evaluate(self, source: str, module_name: str) -> types.ModuleType:
        """Run ``source`` as a module body.

        :raise EvaluationFailure: If the source does not compile or its body raises.
        """
        ...


class InProcessEvaluator(ModuleEvaluator):
    """Executes extension code in the host interpreter.

    The code runs with the host's privileges, there is no isolation.
    """

    def evaluate(self, source: str, module_name: str) -> types.ModuleType:
        module = types.ModuleType(module_name)
        module.__file__ = f"<extension {module_name}>"
        try:
            code = compile(source, module.__file__, "exec")
            exec(code, module.__dict__)
        except (Exception, SystemExit) as exc:
            raise EvaluationFailure(
                f"Evaluating extension source failed: {exc.__class__.__name__}: {exc}"
            ) from exc
        return module


class ExtensionLoader:
    """Fetch and evaluate extension sources. Nothing is cached."""

    _counter = itertools.count(1)

    def __init__(
        self,
        evaluator: Opt[ModuleEvaluator] = None,
        registry_url: str = REGISTRY_URL,
        timeout: float = FETCH_TIMEOUT,
        allow_remote: bool = ALLOW_REMOTE_EXTENSIONS,
        trusted_domains: typing.Iterable[str] = TRUSTED_DOMAINS,
    ):
        self.evaluator = evaluator or InProcessEvaluator()
        self.registry_url = registry_url
        self.timeout = timeout
        self.allow_remote = allow_remote
        self.trusted_domains = tuple(domain.lower() for domain in trusted_domains)

    async def load(self, source: ExtensionSource) -> LoadedSource:
        """Fetch if needed, then evaluate.

        :raise FetchFailure:
        :raise EvaluationFailure:
        """
        code = await self.read_source(source)
        return LoadedSource(code=code, candidate=self.evaluate(code))

    async def read_source(self, source: ExtensionSource) -> str:
        if isinstance(source, LocalSource):
            return source.code
        return await self.fetch(self.resolve_url(source))

    def resolve_url(self, source: RemoteSource | RegistrySource) -> str:
        if isinstance(source, RegistrySource):
            return self.registry_url.format(
                name=urllib.parse.quote(source.name.strip(), safe="@/")
            )
        return source.url

    def evaluate(self, code: str, module_name: Opt[str] = None) -> object:
        """Evaluate source text and return its candidate manifest."""
        module_name = module_name or f"codelab_extension_{next(self._counter)}"
        return extract_candidate(self.evaluator.evaluate(code, module_name))

    def load_builtin(self, name: str) -> object:
        """Import a built-in extension from the ``extensions`` package.

        :raise EvaluationFailure: If the package cannot be imported.
        """
        try:
            module = importlib.import_module(f"{BUILTIN_PACKAGE}.{name}")
        except Exception as exc:
            raise EvaluationFailure(
                f"Importing built-in extension {name!r} failed: {exc.__class__.__name__}: {exc}"
            ) from exc
        return extract_candidate(module)

    async def fetch(self, url: str) -> str:
        """GET ``url`` and return the body as text.

        :raise FetchFailure: On refused URLs, network errors, timeouts and
            non-success statuses.
        """
        self._check_url(url)
        logger.info("Fetching extension source from %s", url)
        try:
            async with aiohttp.ClientSession(
                connector=AIOHTTP_CONNECTOR_GETTER(),
                timeout=aiohttp.ClientTimeout(total=self.timeout),
            ) as session:
                async with session.get(url) as response:
                    response.raise_for_status()
                    return await response.text()
        except aiohttp.ClientResponseError as exc:
            raise FetchFailure(
                f"Fetching {url} failed with HTTP {exc.status}", url=url, status=exc.status
            ) from exc
        except (aiohttp.ClientError, asyncio.TimeoutError, UnicodeDecodeError) as exc:
            raise FetchFailure(
                f"Fetching {url} failed: {exc.__class__.__name__}: {exc}", url=url
            ) from exc

    def _check_url(self, url: str) -> None:
        if not self.allow_remote:
            raise FetchFailure("Loading extensions from the network is disabled.", url=url)
        parts = urllib.parse.urlsplit(url)
        if parts.scheme not in ("http", "https") or not parts.hostname:
            raise FetchFailure(f"Not an http(s) URL: {url}", url=url)
        if self.trusted_domains and not any(
            parts.hostname == domain or parts.hostname.endswith(f".{domain}")
            for domain in self.trusted_domains
        ):
            raise FetchFailure(f"{parts.hostname} is not a trusted domain.", url=url)
