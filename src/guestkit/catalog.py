"""
Catalog loader for guests and guest capabilities.

Reads a YAML catalog mapping guest names to detector entrypoints (and
optional parents) and guest names to capability entrypoints, and turns it into
the registries consumed by ``guestkit.guest.Guest``.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List

import yaml  # type: ignore[import-untyped]

from guestkit.errors import CatalogError
from guestkit.registry import (
    CapabilityImpl,
    CapabilityRegistry,
    GuestDefinition,
    GuestRegistry,
    resolve_entrypoint,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Catalog:
    """Registries loaded from a catalog file."""

    guests: GuestRegistry
    capabilities: CapabilityRegistry


def _parse_guest(name: str, value: Any, source: Path) -> GuestDefinition:
    if isinstance(value, str):
        value = {"detector": value}
    if not isinstance(value, Mapping):
        raise CatalogError(f"Guest '{name}' must be a mapping or entrypoint string in {source}")

    entrypoint = value.get("detector")
    if not isinstance(entrypoint, str) or not entrypoint:
        raise CatalogError(f"Guest '{name}' is missing a 'detector' entrypoint in {source}")

    parent = value.get("parent")
    if parent is not None and not isinstance(parent, str):
        raise CatalogError(f"Guest '{name}' parent must be a string in {source}")

    try:
        factory = resolve_entrypoint(entrypoint)
    except (ImportError, AttributeError, TypeError, ValueError) as exc:
        raise CatalogError(f"Cannot load detector for guest '{name}': {exc}") from exc

    return GuestDefinition(name=name, detector_factory=factory, parent=parent)


def _parse_capabilities(value: Any, source: Path) -> Dict[str, Dict[str, CapabilityImpl]]:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise CatalogError(f"'capabilities' must be a mapping in {source}")

    tables: Dict[str, Dict[str, CapabilityImpl]] = {}
    for guest, caps in value.items():
        if caps is None:
            caps = {}
        if not isinstance(caps, Mapping):
            raise CatalogError(f"Capabilities for guest '{guest}' must be a mapping in {source}")
        table: Dict[str, CapabilityImpl] = {}
        for cap_name, entrypoint in caps.items():
            if not isinstance(entrypoint, str):
                raise CatalogError(
                    f"Capability '{cap_name}' of guest '{guest}' must be an entrypoint string"
                )
            table[str(cap_name)] = entrypoint
        tables[str(guest)] = table
    return tables


def load_catalog(yaml_path: Path) -> Catalog:
    """
    Load guest and capability registries from a YAML catalog.

    Args:
        yaml_path: Path to catalog YAML

    Returns:
        Catalog with guests in file order and lazily resolved capabilities

    Raises:
        FileNotFoundError: If catalog file not found
        CatalogError: If the catalog is malformed or a detector cannot be loaded
    """
    if not yaml_path.exists():
        raise FileNotFoundError(f"Guest catalog not found: {yaml_path}")

    try:
        with open(yaml_path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f)
    except yaml.YAMLError as exc:
        raise CatalogError(f"Guest catalog is not valid YAML: {yaml_path}: {exc}") from exc

    if raw is None:
        raw = {}
    if not isinstance(raw, Mapping):
        raise CatalogError(f"Guest catalog must be a mapping in {yaml_path}")

    guests_data = raw.get("guests") or {}
    if not isinstance(guests_data, Mapping):
        raise CatalogError(f"'guests' must be a mapping in {yaml_path}")

    definitions: List[GuestDefinition] = [
        _parse_guest(str(name), value, yaml_path) for name, value in guests_data.items()
    ]
    tables = _parse_capabilities(raw.get("capabilities"), yaml_path)

    for guest in tables:
        if guest not in guests_data:
            logger.warning("Capabilities registered for unknown guest '%s' in %s", guest, yaml_path)

    logger.debug("Loaded %d guests from %s", len(definitions), yaml_path)
    return Catalog(guests=GuestRegistry(definitions), capabilities=CapabilityRegistry(tables))
