"""
Component registry - descriptors, validation, persisted toggles and the
dependency graph.
"""

from .core import ComponentRegistry
from .descriptor import ComponentDescriptor, Locator
from .graph import DependencyGraph, GraphNode, SortResult
from .manifest import load_manifest, register_manifest
from .validator import DescriptorValidator

__all__ = [
    "ComponentRegistry",
    "ComponentDescriptor",
    "Locator",
    "DependencyGraph",
    "GraphNode",
    "SortResult",
    "DescriptorValidator",
    "load_manifest",
    "register_manifest",
]
