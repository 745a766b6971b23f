"""
Module Catalog Models

Defines the persisted catalog of system modules:
- SystemModule: one row per released (namespace, module, version)
- StoredModuleVersion: immutable view of a row handed back to callers
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict

from django.db import models
from django.utils import timezone

from .definitions import ModuleUi
from .identifiers import ModuleReference
from .schema import JsonSchema


class SystemModule(models.Model):
    """
    A single version of a system module.

    Rows are never updated in place: a new version is a new row. Only
    development-mode loads delete and re-create a row for the same version.
    """
    # Namespace to which the module belongs.
    namespace = models.CharField(max_length=200)
    # ID of the module, as an uri-safe string.
    module_id = models.CharField(max_length=200)
    version = models.CharField(max_length=64, help_text="Release label (e.g., 1.0.0)")

    description = models.TextField(blank=True)

    # Canonical JSON form of the content schema.
    schema = models.JSONField(default=dict)
    # UI descriptor: {component, params, target}.
    ui = models.JSONField(default=dict)

    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = 'system_modules'
        constraints = [
            models.UniqueConstraint(
                fields=['namespace', 'module_id', 'version'],
                name='uq_system_module_version',
            ),
        ]
        indexes = [
            models.Index(fields=['namespace', 'module_id', 'created_at'], name='system_module_lookup_idx'),
        ]
        ordering = ['namespace', 'module_id', 'created_at']

    def __str__(self):
        return f"{self.namespace}:{self.module_id}@v{self.version}"

    def to_stored(self) -> 'StoredModuleVersion':
        return StoredModuleVersion(
            namespace=self.namespace,
            module_id=self.module_id,
            version=self.version,
            description=self.description,
            schema=JsonSchema.from_json(self.schema),
            ui=ModuleUi.from_json(self.ui),
            created_at=self.created_at,
        )


@dataclass(frozen=True)
class StoredModuleVersion:
    """Persisted module version, as returned by the version store."""

    namespace: str
    module_id: str
    version: str
    description: str
    schema: JsonSchema
    ui: ModuleUi
    created_at: datetime

    @property
    def reference(self) -> ModuleReference:
        return ModuleReference(self.namespace, self.module_id, self.version)

    def to_json(self) -> Dict[str, Any]:
        return {
            'namespace': self.namespace,
            'id': self.module_id,
            'version': self.version,
            'description': self.description,
            'schema': self.schema.to_json(),
            'ui': self.ui.to_json(),
            'created_at': self.created_at.isoformat(),
        }
