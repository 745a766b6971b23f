"""
Module Catalog Exceptions

Custom exceptions for the module catalog. Every failure raised while loading
a module can be attributed to a (namespace, module, version) triple.
"""


class ModuleError(Exception):
    """Base exception for module catalog errors"""
    pass


class ModuleValidationError(ModuleError):
    """Raised when a load request or module identity is invalid"""
    pass


class SchemaFormatError(ModuleError, ValueError):
    """Raised when a module schema does not follow the canonical schema form"""

    def __init__(self, path: str, message: str):
        self.path = path
        super().__init__(f"{path}: {message}")


class DecodeError(ModuleError):
    """
    Raised when a module definition cannot be decoded.

    ``stage`` names the decoding step that failed (see ``DecodeStage``) and
    ``cause`` holds the underlying exception.
    """

    def __init__(self, stage: str, cause: Exception, source: str = None):
        self.stage = stage
        self.cause = cause
        self.source = source
        location = f" in {source}" if source else ""
        super().__init__(f"Failed to decode module definition{location} ({stage}): {cause}")


class VersionConflictError(ModuleError):
    """Raised when a version is already registered for a module outside development mode"""

    def __init__(self, namespace: str, module_id: str, version: str, message: str = None):
        self.namespace = namespace
        self.module_id = module_id
        self.version = version
        super().__init__(
            message or f"Module {namespace}:{module_id} already has a release for version {version}"
        )


class ModuleAlreadyExistsError(VersionConflictError):
    """Raised by the store when the (namespace, module, version) row already exists"""

    def __init__(self, namespace: str, module_id: str, version: str):
        super().__init__(
            namespace, module_id, version,
            message=f"Module {namespace}:{module_id}@v{version} already exists",
        )


class ModuleVersionNotFoundError(ModuleError):
    """Raised when a module version cannot be found"""

    def __init__(self, namespace: str, module_id: str, version: str):
        self.namespace = namespace
        self.module_id = module_id
        self.version = version
        super().__init__(f"Module {namespace}:{module_id}@v{version} not found")


class LoadCancelledError(ModuleError):
    """Raised when a load run is cancelled or exceeds its deadline"""
    pass


class NamespaceLoadError(ModuleError):
    """
    Raised when a namespace fails to load. The namespace's unit of work has
    been rolled back when this is raised.
    """

    def __init__(self, namespace: str, module_id: str, version: str, cause: Exception):
        self.namespace = namespace
        self.module_id = module_id
        self.version = version
        self.cause = cause
        target = f"module {module_id}" if module_id else "definitions"
        super().__init__(f"Failed to load namespace {namespace}: {target}: {cause}")


class CatalogLoadError(ModuleError):
    """Raised when one or more namespaces of a load run failed"""

    def __init__(self, failures):
        self.failures = list(failures)
        details = '; '.join(str(outcome.error) for outcome in self.failures)
        super().__init__(f"{len(self.failures)} namespace(s) failed to load: {details}")
