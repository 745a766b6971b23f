"""
Django management command for loading system modules.

Stores every module definition found under the module root in the catalog,
one transaction per namespace.
"""

from django.conf import settings
from django.core.management.base import BaseCommand, CommandError

from catalog_core.modules.exceptions import CatalogLoadError
from catalog_core.modules.loader import NamespaceLoader, discover_sources


class Command(BaseCommand):
    help = 'Load system module definitions into the module catalog'

    def add_arguments(self, parser):
        parser.add_argument(
            '--module-version',
            default=None,
            help='Version label to store the modules under (default: VERSION setting)'
        )
        parser.add_argument(
            '--dev',
            action='store_true',
            default=None,
            help='Development mode: replace existing rows of the same version'
        )
        parser.add_argument(
            '--source-dir',
            default=None,
            help='Directory holding one subdirectory of YAML definitions per namespace'
        )
        parser.add_argument(
            '--namespace',
            nargs='+',
            help='Only load these namespaces'
        )

    def handle(self, *args, **options):
        version = options['module_version'] or getattr(settings, 'CATALOG_MODULE_VERSION', '')
        if not version:
            raise CommandError('A module version is required: pass --module-version or set VERSION')

        dev_mode = options['dev']
        if dev_mode is None:
            dev_mode = getattr(settings, 'CATALOG_DEV_MODE', False)

        source_dir = options['source_dir'] or getattr(settings, 'CATALOG_MODULE_ROOT', None)
        if not source_dir:
            raise CommandError('No module source directory configured')

        sources = discover_sources(source_dir)
        if options.get('namespace'):
            missing = sorted(set(options['namespace']) - set(sources))
            if missing:
                raise CommandError(f"Unknown namespace(s): {', '.join(missing)}")
            sources = {name: sources[name] for name in options['namespace']}

        if not sources:
            self.stdout.write(self.style.WARNING(f"No namespaces found in {source_dir}"))
            return

        mode = ' (dev mode)' if dev_mode else ''
        self.stdout.write(f"Loading {len(sources)} namespace(s) at version {version}{mode}")

        report = NamespaceLoader.default().load_all(sources, version, dev_mode=dev_mode)

        for outcome in report.outcomes:
            if outcome.ok:
                self.stdout.write(
                    self.style.SUCCESS(f"  {outcome.namespace}: {len(outcome.modules)} module(s) loaded")
                )
            else:
                self.stdout.write(self.style.ERROR(f"  {outcome.namespace}: {outcome.error}"))

        try:
            report.raise_for_errors()
        except CatalogLoadError as e:
            raise CommandError(str(e))

        self.stdout.write(self.style.SUCCESS('All namespaces processed successfully'))
