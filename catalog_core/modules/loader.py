"""
Namespace Loader

Loads system module definitions into the catalog, one namespace per unit of
work. A namespace is all-or-nothing: the first failing module rolls back every
module of that namespace. Namespaces are independent of each other; a failed
namespace is reported and the run moves on to the next one.
"""

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional, Union

from django.utils import timezone

from .definitions import ModuleDefinition, decode_module
from .exceptions import (
    CatalogLoadError, DecodeError, LoadCancelledError, ModuleValidationError,
    NamespaceLoadError
)
from .models import StoredModuleVersion
from .services import ModuleLoadService
from .signals import namespace_load_failed, namespace_loaded
from .store import DjangoVersionStore

logger = logging.getLogger(__name__)

DEFINITION_SUFFIXES = ('.yaml', '.yml')


@dataclass(frozen=True)
class ModuleSource:
    """Raw module definition and the name it was found under."""

    name: str
    data: bytes

    def decode(self) -> ModuleDefinition:
        return decode_module(self.data, self.name)


@dataclass
class NamespaceOutcome:
    """Result of loading one namespace."""

    namespace: str
    modules: List[StoredModuleVersion] = field(default_factory=list)
    error: Optional[NamespaceLoadError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class LoadReport:
    """Per-namespace outcomes of a load run, in the order namespaces were processed."""

    version: str
    dev_mode: bool = False
    outcomes: List[NamespaceOutcome] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return all(outcome.ok for outcome in self.outcomes)

    @property
    def succeeded(self) -> List[NamespaceOutcome]:
        return [outcome for outcome in self.outcomes if outcome.ok]

    @property
    def failed(self) -> List[NamespaceOutcome]:
        return [outcome for outcome in self.outcomes if not outcome.ok]

    def get(self, namespace: str) -> Optional[NamespaceOutcome]:
        for outcome in self.outcomes:
            if outcome.namespace == namespace:
                return outcome
        return None

    def raise_for_errors(self) -> None:
        """Raise CatalogLoadError if any namespace failed."""
        if not self.ok:
            raise CatalogLoadError(self.failed)


def discover_sources(root: Union[str, Path]) -> Dict[str, List[ModuleSource]]:
    """
    Find module definitions under ``root``.

    Every direct subdirectory of ``root`` is a namespace; its YAML files
    (searched recursively) are the namespace's module definitions.

    Returns:
        Mapping of namespace to its sources, both sorted by name
    """
    root = Path(root)
    if not root.is_dir():
        logger.warning(f"Module definition root does not exist: {root}")
        return {}

    discovered = {}
    for directory in sorted(root.iterdir()):
        if not directory.is_dir() or directory.name.startswith('.'):
            continue

        paths = sorted(
            path for path in directory.rglob('*')
            if path.is_file() and path.suffix.lower() in DEFINITION_SUFFIXES
        )
        discovered[directory.name] = [
            ModuleSource(name=path.relative_to(root).as_posix(), data=path.read_bytes())
            for path in paths
        ]
        logger.debug(f"Discovered {len(paths)} definition(s) in namespace {directory.name}")

    return discovered


def _is_cancelled(cancel_event: Optional[threading.Event], deadline: Optional[datetime]) -> bool:
    if cancel_event is not None and cancel_event.is_set():
        return True
    return deadline is not None and timezone.now() >= deadline


def _check_cancelled(cancel_event: Optional[threading.Event], deadline: Optional[datetime]) -> None:
    if _is_cancelled(cancel_event, deadline):
        raise LoadCancelledError("Module load cancelled")


class NamespaceLoader:
    """
    Drives module loads for whole namespaces.

    Usage:
        loader = NamespaceLoader.default()
        report = loader.load_all(discover_sources(root), version='1.0.0')
        report.raise_for_errors()
    """

    def __init__(self, service: Optional[ModuleLoadService] = None):
        self.service = service or ModuleLoadService()

    @classmethod
    def default(cls) -> 'NamespaceLoader':
        return cls(ModuleLoadService(DjangoVersionStore()))

    @property
    def store(self):
        return self.service.store

    def load_namespace(self,
                       namespace: str,
                       definitions: Iterable[ModuleDefinition],
                       version: str,
                       dev_mode: bool = False,
                       cancel_event: Optional[threading.Event] = None,
                       deadline: Optional[datetime] = None) -> List[StoredModuleVersion]:
        """
        Load every definition of a namespace in a single unit of work.

        Definitions are loaded in the order given. If any of them fails, or
        the run is cancelled before the unit of work commits, nothing from
        this namespace is persisted.

        Returns:
            The stored module versions, in load order

        Raises:
            NamespaceLoadError: Wrapping the failure and naming the failing module
        """
        stored = []
        current = None

        try:
            with self.store.atomic():
                for definition in definitions:
                    current = definition.module_id
                    _check_cancelled(cancel_event, deadline)

                    if definition.namespace != namespace:
                        raise ModuleValidationError(
                            f"Module {definition} does not belong to namespace {namespace}"
                        )

                    stored.append(self.service.load(definition, version, dev_mode))

                current = None
                _check_cancelled(cancel_event, deadline)
        except Exception as e:
            # Any failure, receiver errors included, rolls the namespace back.
            raise NamespaceLoadError(namespace, current, version, e) from e

        return stored

    def load_sources(self,
                     namespace: str,
                     sources: Iterable[Union[ModuleSource, bytes, str]],
                     version: str,
                     dev_mode: bool = False,
                     cancel_event: Optional[threading.Event] = None,
                     deadline: Optional[datetime] = None) -> List[StoredModuleVersion]:
        """
        Decode raw definitions and load them as one namespace.

        Every source is decoded before the unit of work opens, so an
        undecodable definition fails the namespace without any write.
        """
        definitions = []
        for index, source in enumerate(sources):
            if not isinstance(source, ModuleSource):
                source = ModuleSource(name=f"{namespace}[{index}]", data=source)
            try:
                definitions.append(source.decode())
            except DecodeError as e:
                raise NamespaceLoadError(namespace, None, version, e) from e

        if not definitions:
            logger.info(f"No modules found in namespace {namespace}")
            return []

        return self.load_namespace(
            namespace, definitions, version,
            dev_mode=dev_mode,
            cancel_event=cancel_event,
            deadline=deadline,
        )

    def load_all(self,
                 sources_by_namespace: Mapping[str, Iterable[Union[ModuleSource, bytes, str]]],
                 version: str,
                 dev_mode: bool = False,
                 cancel_event: Optional[threading.Event] = None,
                 deadline: Optional[datetime] = None) -> LoadReport:
        """
        Load several namespaces, each in its own unit of work.

        A failing namespace does not stop the others. Once the run is
        cancelled, the namespaces not yet started are reported as cancelled.

        Returns:
            LoadReport with one outcome per namespace
        """
        report = LoadReport(version=version, dev_mode=dev_mode)

        for namespace, sources in sources_by_namespace.items():
            outcome = NamespaceOutcome(namespace=namespace)
            report.outcomes.append(outcome)

            if _is_cancelled(cancel_event, deadline):
                outcome.error = NamespaceLoadError(
                    namespace, None, version, LoadCancelledError("Module load cancelled")
                )
                logger.error(f"Skipping namespace {namespace}: load cancelled")
                continue

            logger.info(f"Processing namespace: {namespace}")
            try:
                outcome.modules = self.load_sources(
                    namespace, sources, version,
                    dev_mode=dev_mode,
                    cancel_event=cancel_event,
                    deadline=deadline,
                )
            except NamespaceLoadError as e:
                outcome.error = e
                logger.warning(str(e))
                self._notify(namespace_load_failed, namespace=namespace, error=e)
            else:
                self._notify(namespace_loaded, namespace=namespace, modules=outcome.modules)

        if report.ok:
            logger.info("All namespaces processed successfully")
        else:
            logger.warning(f"Completed with errors in {len(report.failed)} namespace(s)")

        return report

    def _notify(self, signal, **kwargs):
        # The namespace outcome is final here; a failing receiver must not end the run.
        for receiver, response in signal.send_robust(sender=self.__class__, **kwargs):
            if isinstance(response, Exception):
                logger.error(f"Signal receiver {receiver!r} failed: {response}")
