"""
Module Catalog

This package stores versioned system module definitions for the platform.

Key components:
- decode_module: Decodes a YAML module definition into a ModuleDefinition
- ModuleLoadService: Decides whether a version is inserted, replaced or rejected
- NamespaceLoader: Loads whole namespaces, one transaction each

Usage:
    from catalog_core.modules.loader import NamespaceLoader, discover_sources

    report = NamespaceLoader.default().load_all(
        discover_sources(settings.CATALOG_MODULE_ROOT),
        version='1.0.0',
    )
    report.raise_for_errors()
"""
