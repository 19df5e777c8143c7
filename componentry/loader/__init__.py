"""
Component loader - dependency-ordered instantiation and runtime toggles.
"""

from .component import Component
from .core import ComponentLoader
from .report import ComponentState, ComponentStatus, LoadReport
from .resolver import EntryResolver

__all__ = [
    "Component",
    "ComponentLoader",
    "ComponentState",
    "ComponentStatus",
    "LoadReport",
    "EntryResolver",
]
