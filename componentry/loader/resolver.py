"""
Entry resolver - turns a descriptor's locator and construction target into
a zero-argument factory.
"""

from typing import Any, Callable, Dict
from pathlib import Path
import importlib.util
import os
import re
import sys

from ..faults import ConstructionFailed, EntryFileMissing
from ..registry.descriptor import ComponentDescriptor, Locator
from ..registry.validator import DescriptorValidator


class EntryResolver:
    """
    Resolves entry files and construction targets.

    Entry modules are executed at most once per resolved path and cached,
    so re-enabling a component constructs a fresh instance from the same
    module object.
    """

    def __init__(self, validator: DescriptorValidator):
        self.validator = validator
        self._modules: Dict[Path, Any] = {}

    def entry_path(self, descriptor: ComponentDescriptor) -> Path:
        """
        Resolve and check the entry file.

        Raises:
            EntryFileMissing: File gone, unreadable or no longer trusted
        """
        locator = Locator.coerce(descriptor.locator)
        entry = self.validator.resolve_entry(locator)

        if not self.validator.is_trusted(entry):
            raise EntryFileMissing(descriptor.id, entry, "outside trusted directory")
        if not entry.is_file():
            raise EntryFileMissing(descriptor.id, entry, "not found")
        if not os.access(entry, os.R_OK):
            raise EntryFileMissing(descriptor.id, entry, "not readable")

        return entry

    def resolve(self, descriptor: ComponentDescriptor) -> Callable[[], Any]:
        """
        Produce the factory for a descriptor.

        Callable targets are returned as-is once the entry file checks out.
        String targets load the entry module and look the attribute up.

        Raises:
            EntryFileMissing, ConstructionFailed
        """
        entry = self.entry_path(descriptor)
        target = descriptor.construction_target

        if callable(target):
            return target

        module = self.load_module(descriptor.id, entry)

        obj: Any = module
        for part in target.split("."):
            try:
                obj = getattr(obj, part)
            except AttributeError as e:
                raise ConstructionFailed(
                    descriptor.id,
                    f"'{target}' not found in {entry.name}",
                    e,
                ) from e

        if not callable(obj):
            raise ConstructionFailed(descriptor.id, f"'{target}' is not callable")

        return obj

    def load_module(self, component_id: str, entry: Path) -> Any:
        """
        Execute an entry file as an isolated module (once per path).

        Raises:
            ConstructionFailed: Any error raised while executing the file
        """
        if entry in self._modules:
            return self._modules[entry]

        module_name = f"componentry_component_{re.sub(r'[^0-9a-zA-Z_]', '_', component_id)}"

        spec = importlib.util.spec_from_file_location(module_name, entry)
        if spec is None or spec.loader is None:
            raise ConstructionFailed(component_id, f"cannot load module from {entry}")

        module = importlib.util.module_from_spec(spec)
        sys.modules[module_name] = module

        try:
            spec.loader.exec_module(module)
        except Exception as e:
            sys.modules.pop(module_name, None)
            raise ConstructionFailed(
                component_id,
                f"error executing {entry.name}: {type(e).__name__}: {e}",
                e,
            ) from e

        self._modules[entry] = module
        return module
