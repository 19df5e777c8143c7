"""
Component descriptors - the declarative (not yet instantiated) unit.
"""

from typing import Any, Callable, Dict, Mapping, Optional, Tuple, Union
from dataclasses import dataclass, field, replace
from datetime import datetime
from pathlib import Path


ConstructionTarget = Union[str, Callable[[], Any]]


@dataclass(frozen=True)
class Locator:
    """Where a component's code lives: a directory plus an entry file."""

    path: str
    entry_file: str

    def entry_path(self, root: Path) -> Path:
        """Entry file path anchored at root (relative paths only)."""
        return Path(root, self.path, self.entry_file)

    def directory(self, root: Path) -> Path:
        return Path(root, self.path)

    @classmethod
    def coerce(cls, value: Any) -> Any:
        """
        Build a Locator from a Locator, mapping or (path, entry) pair.

        Anything else is returned unchanged so validation can report it.
        """
        if isinstance(value, Locator):
            return value
        if isinstance(value, Mapping):
            path = value.get("path")
            entry = value.get("entry_file", value.get("main_file"))
            if path is not None and entry is not None:
                return cls(path=str(path), entry_file=str(entry))
            return value
        if isinstance(value, (list, tuple)) and len(value) == 2:
            return cls(path=str(value[0]), entry_file=str(value[1]))
        return value

    def __str__(self) -> str:
        return str(Path(self.path, self.entry_file))


@dataclass(frozen=True)
class ComponentDescriptor:
    """
    Declarative metadata for one component.

    Descriptors are immutable; the registry hands out copies with the
    current enabled flag merged in.
    """

    id: str
    name: str
    locator: Any
    construction_target: ConstructionTarget
    description: str = ""
    dependencies: Tuple[str, ...] = ()
    version: str = "1.0.0"
    author: str = ""
    enabled: bool = True
    priority: Optional[int] = None
    registered_at: Optional[datetime] = None
    extra: Dict[str, Any] = field(default_factory=dict, compare=False, hash=False)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ComponentDescriptor":
        """
        Build a descriptor from a plain mapping.

        Accepts ``locator`` as a mapping/pair or the flat ``path`` +
        ``main_file`` form, and ``class_name`` as an alias of
        ``construction_target``. Values are not type-checked here; the
        validator reports problems.
        """
        known = {
            "id", "name", "description", "locator", "path", "main_file",
            "entry_file", "construction_target", "class_name", "dependencies",
            "version", "author", "enabled", "priority",
        }

        locator = data.get("locator")
        if locator is None and data.get("path") is not None:
            locator = {
                "path": data.get("path"),
                "entry_file": data.get("entry_file", data.get("main_file")),
            }

        target = data.get("construction_target", data.get("class_name"))

        dependencies = data.get("dependencies", ())
        if dependencies is None:
            dependencies = ()

        return cls(
            id=data.get("id"),
            name=data.get("name"),
            locator=Locator.coerce(locator),
            construction_target=target,
            description=data.get("description") or "",
            dependencies=dependencies,
            version=data.get("version") or "1.0.0",
            author=data.get("author") or "",
            enabled=data.get("enabled", True),
            priority=data.get("priority"),
            extra={k: v for k, v in data.items() if k not in known},
        )

    def normalized(self, default_priority: int) -> "ComponentDescriptor":
        """Copy with defaults merged and dependencies de-duplicated in order."""
        seen = []
        for dep in self.dependencies:
            if dep not in seen:
                seen.append(dep)

        return replace(
            self,
            locator=Locator.coerce(self.locator),
            dependencies=tuple(seen),
            priority=default_priority if self.priority is None else self.priority,
            enabled=bool(self.enabled),
        )

    def with_state(
        self,
        *,
        enabled: bool,
        registered_at: Optional[datetime] = None,
    ) -> "ComponentDescriptor":
        return replace(
            self,
            enabled=enabled,
            registered_at=registered_at or self.registered_at,
        )

    @property
    def target_name(self) -> str:
        """Printable name of the construction target."""
        target = self.construction_target
        if isinstance(target, str):
            return target
        module = getattr(target, "__module__", None)
        qualname = getattr(target, "__qualname__", repr(target))
        return f"{module}.{qualname}" if module else qualname

    def to_dict(self) -> Dict[str, Any]:
        """Serialize descriptor (construction target as its printable name)."""
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "locator": str(self.locator),
            "construction_target": self.target_name,
            "dependencies": list(self.dependencies),
            "version": self.version,
            "author": self.author,
            "enabled": self.enabled,
            "priority": self.priority,
            "registered_at": self.registered_at.isoformat() if self.registered_at else None,
        }
