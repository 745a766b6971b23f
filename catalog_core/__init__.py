"""
Module Catalog Core Package

Provides the versioned catalog of system modules:
- Decoding of declarative module definitions (YAML sources)
- Version resolution for module releases and development drafts
- Transactional, per-namespace loading into the relational store
"""

__version__ = '1.0.0'


# Lazy import functions to avoid Django app registry issues
def get_namespace_loader():
    """Lazy import the default namespace loader to avoid early Django model loading"""
    from .modules.loader import NamespaceLoader
    return NamespaceLoader.default()


# Don't import anything at module level that requires Django apps to be ready
__all__ = [
    'get_namespace_loader',
]
