"""
Descriptor validator - structural and security checks run at registration.
"""

from typing import Any, Collection, Iterable, List, Optional
from pathlib import Path
import keyword
import os
import re

from ..faults import (
    InvalidConstructionTarget,
    InvalidDescriptor,
    InvalidPath,
    ReservedId,
)
from .descriptor import ComponentDescriptor, Locator


ID_PATTERN = re.compile(r"^[a-zA-Z0-9_-]{2,50}$")


class DescriptorValidator:
    """
    Validates component descriptors.

    Checks, in order:
    - Locator stays inside the trusted directory and exists
    - Required fields
    - Id format and reserved words
    - Dependency and priority types
    - Construction target shape

    The locator check runs first so a path-traversal attempt is always
    reported as InvalidPath, whatever else is wrong with the descriptor.
    """

    REQUIRED_FIELDS = ("id", "name", "locator", "construction_target")

    def __init__(self, trusted_dir: Any, reserved_ids: Iterable[str] = ()):
        self.trusted_root = Path(trusted_dir).expanduser().resolve()
        self.reserved_ids = frozenset(r.lower() for r in reserved_ids)

    def validate(self, descriptor: ComponentDescriptor) -> List[str]:
        """
        Run every check.

        Args:
            descriptor: Descriptor to validate

        Returns:
            Non-fatal warnings (e.g. non-semver version)

        Raises:
            InvalidPath, InvalidDescriptor, ReservedId, InvalidConstructionTarget
        """
        component_id = descriptor.id if isinstance(descriptor.id, str) else None

        locator = Locator.coerce(descriptor.locator)
        if isinstance(locator, Locator):
            self.validate_locator(component_id, locator)

        self.validate_structure(descriptor)
        self.validate_construction_target(descriptor)

        warnings: List[str] = []
        if not self._validate_semver(descriptor.version):
            warnings.append(
                f"Component '{component_id}': version '{descriptor.version}' "
                "is not valid semver (expected X.Y.Z)"
            )
        return warnings

    def validate_structure(self, descriptor: ComponentDescriptor) -> None:
        """
        Validate required fields, id format and field types.

        Raises:
            InvalidDescriptor: Missing fields or wrong types
            ReservedId: Id collides with a reserved word
        """
        errors: List[str] = []
        component_id = descriptor.id if isinstance(descriptor.id, str) else None

        for field_name in self.REQUIRED_FIELDS:
            value = getattr(descriptor, field_name, None)
            if value is None or (isinstance(value, str) and not value.strip()):
                errors.append(f"Missing required field: {field_name}")

        if descriptor.id is not None and not isinstance(descriptor.id, str):
            errors.append("Field 'id' must be a string")
        elif component_id and not ID_PATTERN.match(component_id):
            errors.append(
                f"Invalid id '{component_id}': must match [a-zA-Z0-9_-]{{2,50}}"
            )

        if descriptor.name is not None and not isinstance(descriptor.name, str):
            errors.append("Field 'name' must be a string")

        locator = Locator.coerce(descriptor.locator)
        if descriptor.locator is not None and not isinstance(locator, Locator):
            errors.append("Field 'locator' must be a (path, entry_file) pair")
        elif isinstance(locator, Locator) and (not locator.path or not locator.entry_file):
            errors.append("Field 'locator' needs both path and entry_file")

        errors.extend(self._validate_dependencies(descriptor.dependencies))

        if descriptor.priority is not None and (
            isinstance(descriptor.priority, bool) or not isinstance(descriptor.priority, int)
        ):
            errors.append("Field 'priority' must be an integer")

        if not isinstance(descriptor.enabled, bool):
            errors.append("Field 'enabled' must be a boolean")

        if errors:
            raise InvalidDescriptor(component_id, errors)

        if component_id.lower() in self.reserved_ids:
            raise ReservedId(component_id, self.reserved_ids)

    def _validate_dependencies(self, dependencies: Any) -> List[str]:
        if isinstance(dependencies, (str, bytes)) or not isinstance(dependencies, Collection):
            return ["Field 'dependencies' must be a collection of component ids"]

        errors = []
        for i, dep in enumerate(dependencies):
            if not isinstance(dep, str) or not dep:
                errors.append(f"dependencies[{i}] must be a non-empty string id")
        return errors

    def validate_construction_target(self, descriptor: ComponentDescriptor) -> None:
        """
        Construction target must be a callable or a dotted attribute path.

        Raises:
            InvalidConstructionTarget
        """
        target = descriptor.construction_target
        if callable(target):
            return
        if isinstance(target, str) and self._validate_attribute_path(target):
            return
        raise InvalidConstructionTarget(descriptor.id, target)

    def validate_locator(self, component_id: Optional[str], locator: Locator) -> Path:
        """
        Resolve the entry file and check it lies inside the trusted root.

        Args:
            component_id: Id used in error messages
            locator: Locator to check

        Returns:
            Resolved entry file path

        Raises:
            InvalidPath: Outside the trusted directory, missing or unreadable
        """
        if "\x00" in locator.path or "\x00" in locator.entry_file:
            raise InvalidPath(component_id, locator, "path contains a null byte")

        if Path(locator.entry_file).is_absolute():
            raise InvalidPath(component_id, locator.entry_file, "entry file must be relative to its directory")

        try:
            directory = self.resolve_directory(locator)
            entry = (directory / locator.entry_file).resolve()
        except (OSError, ValueError, RuntimeError) as e:
            raise InvalidPath(component_id, locator, f"unresolvable path ({e})") from e

        if not self.is_trusted(directory) or not self.is_trusted(entry):
            raise InvalidPath(component_id, locator, "outside trusted directory")

        if not directory.is_dir():
            raise InvalidPath(component_id, directory, "directory does not exist")

        if not entry.is_file():
            raise InvalidPath(component_id, entry, "entry file does not exist")

        if not os.access(entry, os.R_OK):
            raise InvalidPath(component_id, entry, "entry file is not readable")

        return entry

    def resolve_directory(self, locator: Locator) -> Path:
        path = Path(locator.path).expanduser()
        if not path.is_absolute():
            path = self.trusted_root / path
        return path.resolve()

    def resolve_entry(self, locator: Locator) -> Path:
        return (self.resolve_directory(locator) / locator.entry_file).resolve()

    def is_trusted(self, path: Path) -> bool:
        """True when path (already resolved) is the trusted root or inside it."""
        return path == self.trusted_root or path.is_relative_to(self.trusted_root)

    def _validate_attribute_path(self, path: str) -> bool:
        """
        Validate dotted attribute path format (e.g. "gateways.PaystackGateway").
        """
        if not path or path.startswith(".") or path.endswith("."):
            return False

        for part in path.split("."):
            if not part.isidentifier() or keyword.iskeyword(part):
                return False

        return True

    def _validate_semver(self, version: Any) -> bool:
        if not isinstance(version, str):
            return False

        parts = version.split(".")
        if len(parts) != 3:
            return False

        try:
            for part in parts:
                int(part)
            return True
        except ValueError:
            return False
