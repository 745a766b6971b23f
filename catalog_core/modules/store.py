"""
Module version store.

The load orchestrator only needs four operations on the persisted catalog
(insert, delete, select and list versions) plus a unit of work to run them
in. ``VersionStore`` describes that capability; ``DjangoVersionStore``
implements it on top of the ``SystemModule`` model.
"""

import logging
from datetime import datetime
from typing import ContextManager, List, Optional, Protocol, runtime_checkable

from django.db import IntegrityError, transaction
from django.utils import timezone

from .definitions import ModuleDefinition
from .exceptions import ModuleAlreadyExistsError, ModuleVersionNotFoundError
from .models import StoredModuleVersion, SystemModule

logger = logging.getLogger(__name__)


@runtime_checkable
class VersionStore(Protocol):
    """Protocol that every module version store must implement."""

    def atomic(self) -> ContextManager:
        """Return a unit of work; leaving it with an exception rolls it back."""
        ...

    def insert(self, definition: ModuleDefinition, version: str,
               now: Optional[datetime] = None) -> StoredModuleVersion:
        """Create the row for (namespace, id, version); raise ModuleAlreadyExistsError if present."""
        ...

    def delete(self, namespace: str, module_id: str, version: str) -> int:
        """Remove the row for the exact triple. Absent rows are not an error."""
        ...

    def select(self, namespace: str, module_id: str, version: str) -> StoredModuleVersion:
        """Point lookup; raise ModuleVersionNotFoundError on a miss."""
        ...

    def list_versions(self, namespace: str, module_id: str) -> List[str]:
        """Return every stored version label of the module, oldest first."""
        ...


class DjangoVersionStore:
    """
    Version store backed by the Django ORM.

    All operations run on the connection named by ``using`` and join the
    transaction opened by ``atomic()`` when called inside it.
    """

    def __init__(self, using: Optional[str] = None):
        self.using = using

    def atomic(self):
        return transaction.atomic(using=self.using)

    def _queryset(self, namespace: str, module_id: str):
        return SystemModule.objects.using(self.using).filter(
            namespace=namespace,
            module_id=module_id,
        )

    def insert(self, definition: ModuleDefinition, version: str,
               now: Optional[datetime] = None) -> StoredModuleVersion:
        row = SystemModule(
            namespace=definition.namespace,
            module_id=definition.module_id,
            version=version,
            description=definition.description,
            schema=definition.schema.to_json(),
            ui=definition.ui.to_json(),
            created_at=now or timezone.now(),
        )

        try:
            # Savepoint, so a uniqueness violation leaves the outer transaction usable.
            with transaction.atomic(using=self.using):
                row.save(using=self.using, force_insert=True)
        except IntegrityError as e:
            # Only a clash on (namespace, module_id, version) is a version conflict.
            if not self._queryset(definition.namespace, definition.module_id).filter(version=version).exists():
                raise
            raise ModuleAlreadyExistsError(
                definition.namespace, definition.module_id, version
            ) from e

        logger.debug(f"Inserted module row {row}")
        return row.to_stored()

    def delete(self, namespace: str, module_id: str, version: str) -> int:
        deleted, _ = self._queryset(namespace, module_id).filter(version=version).delete()
        if deleted:
            logger.debug(f"Deleted module row {namespace}:{module_id}@v{version}")
        return deleted

    def select(self, namespace: str, module_id: str, version: str) -> StoredModuleVersion:
        try:
            row = self._queryset(namespace, module_id).get(version=version)
        except SystemModule.DoesNotExist:
            raise ModuleVersionNotFoundError(namespace, module_id, version)
        return row.to_stored()

    def list_versions(self, namespace: str, module_id: str) -> List[str]:
        return list(
            self._queryset(namespace, module_id)
            .order_by('created_at', 'pk')
            .values_list('version', flat=True)
        )
