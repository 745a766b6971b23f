"""
Module Catalog Signals

Django signals for module load events.
"""

from django.dispatch import Signal

# Module signals
module_version_loaded = Signal()  # A module version was stored (kwargs: stored, replaced, dev_mode)

# Namespace signals
namespace_loaded = Signal()       # A namespace committed (kwargs: namespace, modules)
namespace_load_failed = Signal()  # A namespace rolled back (kwargs: namespace, error)
