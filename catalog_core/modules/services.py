"""
Module load and lookup services.
"""

import logging
from typing import List, Optional

from .definitions import ModuleDefinition
from .exceptions import ModuleValidationError, VersionConflictError
from .identifiers import ModuleReference, validate_version
from .models import StoredModuleVersion
from .signals import module_version_loaded
from .store import DjangoVersionStore, VersionStore

logger = logging.getLogger(__name__)


class ModuleLoadService:
    """
    Loads system modules into the version store.

    System module versions are tied to the deployment that ships them, so a
    released version is never published twice. During local development the
    same working version is reused on every start: its row is replaced
    instead of requiring a version bump per edit.
    """

    def __init__(self, store: Optional[VersionStore] = None):
        self.store = store or DjangoVersionStore()

    def load(self, definition: ModuleDefinition, version: str,
             dev_mode: bool = False) -> StoredModuleVersion:
        """
        Store ``definition`` under ``version``.

        Must be called inside the store's unit of work: in development mode
        the delete and the insert are only atomic together through it.

        Args:
            definition: Decoded module definition
            version: Release label to store the definition under
            dev_mode: Replace an existing row for the same version instead of failing

        Returns:
            The stored module version

        Raises:
            ModuleValidationError: If the version label is invalid
            VersionConflictError: If the version already exists outside development mode
        """
        validate_version(version)

        existing = self.store.list_versions(definition.namespace, definition.module_id)
        replaced = version in existing

        if replaced:
            if not dev_mode:
                raise VersionConflictError(definition.namespace, definition.module_id, version)

            self.store.delete(definition.namespace, definition.module_id, version)
            logger.info(f"Replacing development version {definition}@v{version}")

        stored = self.store.insert(definition, version)

        if not definition.target_is_declared():
            logger.warning(
                f"Module {stored.reference} targets field {definition.ui.target!r}, "
                f"which is not a top-level property of its schema"
            )

        module_version_loaded.send(
            sender=self.__class__,
            stored=stored,
            replaced=replaced,
            dev_mode=dev_mode,
        )
        logger.info(f"Loaded module: {stored.reference}")
        return stored


class ModuleCatalogService:
    """Read access to the stored module catalog."""

    def __init__(self, store: Optional[VersionStore] = None):
        self.store = store or DjangoVersionStore()

    def get(self, reference: str) -> StoredModuleVersion:
        """
        Look up a module version by reference (e.g., ``agora:summary@v1.0.0``).

        Raises:
            ModuleValidationError: If the reference is malformed or has no version
            ModuleVersionNotFoundError: If the version is not stored
        """
        parsed = ModuleReference.parse(reference)
        if not parsed.is_versioned:
            raise ModuleValidationError(f"Module reference {reference!r} has no version")
        return self.store.select(parsed.namespace, parsed.module_id, parsed.version)

    def list_versions(self, namespace: str, module_id: str) -> List[str]:
        return self.store.list_versions(namespace, module_id)
