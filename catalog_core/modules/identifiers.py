"""
Module identity strings.

A module is addressed as ``namespace:module`` and a specific release as
``namespace:module@v1.2.0`` (optionally followed by a pre-release suffix such
as ``-rc-1``).
"""

import re
from dataclasses import dataclass

from .exceptions import ModuleValidationError

NAMESPACE_SEPARATOR = ':'
VERSION_SEPARATOR = '@'

SLUG_PATTERN = r'[a-z0-9]+(?:-[a-z0-9]+)*'
VERSION_PATTERN = r'[0-9]+\.[0-9]+\.[0-9]+(?:-[a-z0-9]+)*'

SLUG_RE = re.compile(rf'^{SLUG_PATTERN}$')
VERSION_RE = re.compile(rf'^{VERSION_PATTERN}$')
REFERENCE_RE = re.compile(
    rf'^(?P<namespace>{SLUG_PATTERN}){NAMESPACE_SEPARATOR}(?P<module>{SLUG_PATTERN})'
    rf'(?:{VERSION_SEPARATOR}v(?P<version>{VERSION_PATTERN}))?$'
)


def validate_slug(value: str, field: str = 'id') -> str:
    """Check that a namespace or module id is a lowercase, uri-safe slug."""
    if not isinstance(value, str) or not SLUG_RE.match(value):
        raise ModuleValidationError(
            f"Invalid {field} {value!r}: expected lowercase letters, digits and single hyphens"
        )
    return value


def validate_version(version: str) -> str:
    """Check that a version label looks like MAJOR.MINOR.PATCH[-suffix]."""
    if not isinstance(version, str) or not VERSION_RE.match(version):
        raise ModuleValidationError(
            f"Invalid version {version!r}: expected MAJOR.MINOR.PATCH (e.g., 1.0.0)"
        )
    return version


@dataclass(frozen=True)
class ModuleReference:
    """Parsed ``namespace:module[@vVERSION]`` string."""

    namespace: str
    module_id: str
    version: str = ''

    @classmethod
    def parse(cls, value: str) -> 'ModuleReference':
        match = REFERENCE_RE.match(value or '')
        if not match:
            raise ModuleValidationError(f"Invalid module reference: {value!r}")
        return cls(
            namespace=match.group('namespace'),
            module_id=match.group('module'),
            version=match.group('version') or '',
        )

    @property
    def is_versioned(self) -> bool:
        return bool(self.version)

    def without_version(self) -> 'ModuleReference':
        return ModuleReference(self.namespace, self.module_id)

    def matches(self, other: 'ModuleReference') -> bool:
        """
        Compare against another reference.

        A version-less reference matches every version of the same module.
        """
        if not self.is_versioned:
            return self == other.without_version()
        return self == other

    def __str__(self) -> str:
        value = f"{self.namespace}{NAMESPACE_SEPARATOR}{self.module_id}"
        if self.version:
            value += f"{VERSION_SEPARATOR}v{self.version}"
        return value
