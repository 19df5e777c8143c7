"""
Diagnostics - plain-data status snapshots for health pages and tooling.
"""

from typing import Any, Dict
import logging

from .loader.core import ComponentLoader
from .loader.report import ComponentState
from .registry.core import ComponentRegistry


logger = logging.getLogger("componentry.diagnostics")


def snapshot(registry: ComponentRegistry, loader: ComponentLoader) -> Dict[str, Any]:
    """
    Collect registry and loader state into one JSON-serializable dict.

    Keys:
        summary: registered, enabled and loaded counts plus counts per state
        components: one row per registered component (priority order)
        loading_order: ids of live components, in construction order
        loading_errors: failed id -> reason
        cycles: cycles among all registered components
        validation: whole-registry ValidationReport as a dict
        last_report: last LoadReport as a dict, or None
    """
    components = loader.get_all_components()

    counts = {state.value: 0 for state in ComponentState}
    for row in components:
        counts[row["state"]] += 1

    validation = registry.validate()
    report = loader.last_report

    data = {
        "summary": {
            "registered": registry.count(),
            "enabled": len(registry.get_enabled()),
            "loaded": loader.get_loaded_count(),
            "states": counts,
        },
        "components": components,
        "loading_order": loader.get_loading_order(),
        "loading_errors": loader.get_loading_errors(),
        "cycles": [list(c) for c in registry.graph().find_cycles()],
        "validation": validation.to_dict(),
        "last_report": report.to_dict() if report is not None else None,
    }

    logger.debug(
        f"Diagnostics snapshot: {data['summary']['loaded']}/{data['summary']['registered']} loaded"
    )
    return data
