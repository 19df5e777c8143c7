"""
Descriptor manifests - component definitions kept in YAML or JSON files.

A manifest is either a list of descriptor mappings or a mapping with a
``components`` list:

    components:
      - id: payment
        name: Payment System
        locator: {path: payment, entry_file: manager.py}
        construction_target: PaymentManager
        priority: 1
"""

from typing import Any, Dict, List, Union
from pathlib import Path
import json
import logging

from ..faults import ManifestError, ValidationReport


logger = logging.getLogger("componentry.manifest")


def load_manifest(path: Union[str, Path]) -> List[Dict[str, Any]]:
    """
    Parse a manifest file into descriptor mappings.

    Args:
        path: .yaml/.yml/.json file

    Returns:
        List of descriptor mappings (not yet validated)

    Raises:
        ManifestError: Unreadable file, bad syntax or wrong shape
    """
    path = Path(path)

    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ManifestError(path, str(e)) from e

    if path.suffix == ".json":
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise ManifestError(path, f"invalid JSON: {e}") from e
    elif path.suffix in (".yaml", ".yml"):
        import yaml
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise ManifestError(path, f"invalid YAML: {e}") from e
    else:
        raise ManifestError(path, f"unsupported format '{path.suffix}'")

    if data is None:
        return []

    if isinstance(data, dict):
        data = data.get("components", [])

    if not isinstance(data, list):
        raise ManifestError(path, "expected a list of components")

    for i, entry in enumerate(data):
        if not isinstance(entry, dict):
            raise ManifestError(path, f"components[{i}] must be a mapping")

    return data


def register_manifest(registry: Any, path: Union[str, Path]) -> ValidationReport:
    """
    Load a manifest and register every entry, collecting errors.
    """
    descriptors = load_manifest(path)
    report = registry.register_many(descriptors)

    logger.info(
        f"Manifest {path}: {len(descriptors) - len(report.errors)}/{len(descriptors)} "
        "component(s) registered"
    )
    return report
