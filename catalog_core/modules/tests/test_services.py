"""
Tests for the module load and catalog services
"""

from unittest.mock import Mock

from django.db import DatabaseError
from django.test import SimpleTestCase

from catalog_core.modules.definitions import ModuleDefinition, ModuleUi
from catalog_core.modules.exceptions import (
    ModuleAlreadyExistsError, ModuleValidationError, ModuleVersionNotFoundError,
    VersionConflictError
)
from catalog_core.modules.schema import JsonSchema
from catalog_core.modules.services import ModuleCatalogService, ModuleLoadService
from catalog_core.modules.signals import module_version_loaded

from .fakes import InMemoryVersionStore, make_definition


class ModuleLoadServiceTestCase(SimpleTestCase):
    """Test version resolution of ModuleLoadService"""

    def setUp(self):
        self.store = InMemoryVersionStore()
        self.service = ModuleLoadService(self.store)
        self.definition = make_definition()

    def test_first_load_inserts(self):
        """Test a new version is inserted"""
        stored = self.service.load(self.definition, '1.0.0')

        self.assertEqual(str(stored.reference), 'n:x@v1.0.0')
        self.assertEqual(stored.description, 'A test module')
        self.assertEqual(list(self.store.rows), [('n', 'x', '1.0.0')])
        self.assertEqual(self.store.calls, ['list_versions', 'insert'])

    def test_new_version_is_appended(self):
        self.service.load(self.definition, '1.0.0')
        self.service.load(self.definition, '1.1.0')

        self.assertEqual(self.store.list_versions('n', 'x'), ['1.0.0', '1.1.0'])

    def test_same_version_conflicts_outside_dev_mode(self):
        """Test re-publishing a released version fails and keeps the first row"""
        first = self.service.load(self.definition, '1.0.0')
        changed = make_definition(description='Changed')

        with self.assertRaises(VersionConflictError) as cm:
            self.service.load(changed, '1.0.0')

        self.assertEqual((cm.exception.namespace, cm.exception.module_id, cm.exception.version), ('n', 'x', '1.0.0'))
        self.assertEqual(self.store.select('n', 'x', '1.0.0'), first)
        self.assertEqual(len(self.store.rows), 1)

    def test_same_version_is_replaced_in_dev_mode(self):
        """Test a dev load replaces the row of the same version"""
        self.service.load(self.definition, '1.0.0', dev_mode=True)
        changed = make_definition(
            description='Changed',
            properties={'title': JsonSchema(type='string', max_length=10)},
            required=('title',),
        )
        self.store.calls.clear()

        stored = self.service.load(changed, '1.0.0', dev_mode=True)

        self.assertEqual(self.store.calls, ['list_versions', 'delete', 'insert'])
        self.assertEqual(len(self.store.rows), 1)
        self.assertEqual(self.store.select('n', 'x', '1.0.0'), stored)
        self.assertEqual(stored.description, 'Changed')
        self.assertEqual(stored.schema.required, ('title',))

    def test_dev_mode_first_load_inserts(self):
        self.service.load(self.definition, '1.0.0', dev_mode=True)

        self.assertEqual(self.store.calls, ['list_versions', 'insert'])

    def test_modules_do_not_collide_across_namespaces(self):
        self.service.load(make_definition(namespace='a'), '1.0.0')
        self.service.load(make_definition(namespace='b'), '1.0.0')

        self.assertEqual(len(self.store.rows), 2)

    def test_invalid_version_never_reaches_store(self):
        with self.assertRaises(ModuleValidationError):
            self.service.load(self.definition, 'latest')

        self.assertEqual(self.store.calls, [])

    def test_storage_conflict_is_a_version_conflict(self):
        """Test a uniqueness violation from the store surfaces as a conflict"""
        store = Mock()
        store.list_versions.return_value = []
        store.insert.side_effect = ModuleAlreadyExistsError('n', 'x', '1.0.0')

        with self.assertRaises(VersionConflictError):
            ModuleLoadService(store).load(self.definition, '1.0.0')

    def test_storage_errors_propagate(self):
        store = Mock()
        store.list_versions.side_effect = DatabaseError('connection lost')

        with self.assertRaises(DatabaseError):
            ModuleLoadService(store).load(self.definition, '1.0.0')

        store.insert.assert_not_called()

    def test_delete_failure_stops_the_load(self):
        store = Mock()
        store.list_versions.return_value = ['1.0.0']
        store.delete.side_effect = DatabaseError('lock timeout')

        with self.assertRaises(DatabaseError):
            ModuleLoadService(store).load(self.definition, '1.0.0', dev_mode=True)

        store.insert.assert_not_called()

    def test_undeclared_target_is_logged(self):
        """Test an undeclared ui target is loaded with a warning"""
        definition = ModuleDefinition(
            module_id='x', namespace='n', schema=make_definition().schema,
            ui=ModuleUi(component='text-editor', target='missing'),
        )

        with self.assertLogs('catalog_core.modules.services', level='WARNING') as logs:
            self.service.load(definition, '1.0.0')

        self.assertIn("'missing'", logs.output[0])
        self.assertIn(('n', 'x', '1.0.0'), self.store.rows)


class ModuleLoadSignalTestCase(SimpleTestCase):
    """Test module_version_loaded is sent for every stored version"""

    def setUp(self):
        self.received = []
        module_version_loaded.connect(self.receiver)
        self.addCleanup(module_version_loaded.disconnect, self.receiver)
        self.service = ModuleLoadService(InMemoryVersionStore())

    def receiver(self, sender, **kwargs):
        self.received.append(kwargs)

    def test_signal_reports_replacement(self):
        definition = make_definition()

        self.service.load(definition, '1.0.0', dev_mode=True)
        self.service.load(definition, '1.0.0', dev_mode=True)

        self.assertEqual([event['replaced'] for event in self.received], [False, True])
        self.assertTrue(all(event['dev_mode'] for event in self.received))
        self.assertEqual(self.received[1]['stored'].version, '1.0.0')

    def test_no_signal_on_conflict(self):
        definition = make_definition()
        self.service.load(definition, '1.0.0')

        with self.assertRaises(VersionConflictError):
            self.service.load(definition, '1.0.0')

        self.assertEqual(len(self.received), 1)


class ModuleCatalogServiceTestCase(SimpleTestCase):
    """Test module lookups by reference"""

    def setUp(self):
        self.store = InMemoryVersionStore()
        ModuleLoadService(self.store).load(make_definition(module_id='summary', namespace='agora'), '1.0.0')
        self.catalog = ModuleCatalogService(self.store)

    def test_get_by_reference(self):
        stored = self.catalog.get('agora:summary@v1.0.0')

        self.assertEqual(stored.module_id, 'summary')
        self.assertEqual(stored.version, '1.0.0')

    def test_get_missing_version(self):
        with self.assertRaises(ModuleVersionNotFoundError):
            self.catalog.get('agora:summary@v2.0.0')

    def test_get_requires_version(self):
        with self.assertRaises(ModuleValidationError):
            self.catalog.get('agora:summary')

    def test_list_versions(self):
        self.assertEqual(self.catalog.list_versions('agora', 'summary'), ['1.0.0'])
        self.assertEqual(self.catalog.list_versions('agora', 'outline'), [])
