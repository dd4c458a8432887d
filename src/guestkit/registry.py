"""
Guest and capability registries.

Guests are registered as plain data: a name, a detector factory and an
optional parent name. Parents form a forest that the resolver walks to
emulate capability inheritance. Both registries are immutable once built so
they can be shared between resolvers for different machines.
"""

from __future__ import annotations

import importlib
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Callable, Dict, List, Optional, Protocol, Tuple, Union, runtime_checkable

from guestkit.errors import GuestParentCycle


@runtime_checkable
class Detector(Protocol):
    """Check answering whether a machine runs a particular guest OS."""

    def detect(self, machine: Any) -> bool:  # pragma: no cover - interface contract
        ...


DetectorFactory = Callable[[], Detector]
CapabilityImpl = Union[Callable[..., Any], str]


@dataclass(frozen=True)
class GuestDefinition:
    """
    Registered guest.

    Attributes:
        name: Guest identifier (e.g., "ubuntu")
        detector_factory: Zero-argument callable returning a Detector
        parent: Identifier of the more general guest, if any
    """

    name: str
    detector_factory: DetectorFactory
    parent: Optional[str] = None

    def new_detector(self) -> Detector:
        return self.detector_factory()


class GuestRegistry(Mapping[str, GuestDefinition]):
    """Read-only mapping of guest name to definition, in registration order."""

    def __init__(self, definitions: Iterable[GuestDefinition] = ()):
        guests: Dict[str, GuestDefinition] = {}
        for definition in definitions:
            guests[definition.name] = definition
        self._guests = MappingProxyType(guests)

    @classmethod
    def from_mapping(
        cls, raw: Mapping[str, Tuple[DetectorFactory, Optional[str]]]
    ) -> GuestRegistry:
        """
        Build a registry from a ``name -> (detector_factory, parent)`` mapping.

        Args:
            raw: Mapping in registration order

        Returns:
            GuestRegistry preserving the mapping's order
        """
        return cls(
            GuestDefinition(name=name, detector_factory=factory, parent=parent)
            for name, (factory, parent) in raw.items()
        )

    @classmethod
    def coerce(cls, value: Any) -> GuestRegistry:
        """
        Accept an existing registry, definitions keyed by name, or raw tuples.

        Raises:
            TypeError: If ``value`` is not a mapping
            ValueError: If a definition is keyed under a name other than its own
        """
        if isinstance(value, GuestRegistry):
            return value
        if not isinstance(value, Mapping):
            raise TypeError(f"Guest registry must be a mapping, got {type(value).__name__}")
        if all(isinstance(item, GuestDefinition) for item in value.values()):
            for key, definition in value.items():
                if key != definition.name:
                    raise ValueError(
                        f"Guest registered as '{key}' is defined with name '{definition.name}'"
                    )
            return cls(value.values())
        return cls.from_mapping(value)

    def __getitem__(self, name: str) -> GuestDefinition:
        return self._guests[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._guests)

    def __len__(self) -> int:
        return len(self._guests)

    def __repr__(self) -> str:
        return f"GuestRegistry({list(self._guests)!r})"

    def ancestry(self, name: str) -> List[str]:
        """
        Return ``name`` followed by its registered ancestors, most general last.

        The walk stops at a guest without a parent or at a parent that is not
        registered.

        Raises:
            KeyError: If ``name`` is not registered
            GuestParentCycle: If the parent relation loops
        """
        lineage = [self._guests[name].name]
        parent = self._guests[name].parent
        while parent is not None and parent in self._guests:
            if parent in lineage:
                raise GuestParentCycle(lineage + [parent])
            lineage.append(parent)
            parent = self._guests[parent].parent
        return lineage

    def depth(self, name: str) -> int:
        """
        Count parent hops from ``name`` to a guest without a parent.

        A parent reference to an unregistered guest counts as a final hop.

        Raises:
            KeyError: If ``name`` is not registered
            GuestParentCycle: If the parent relation loops
        """
        seen = [name]
        count = 0
        parent = self._guests[name].parent
        while parent is not None:
            if parent in seen:
                raise GuestParentCycle(seen + [parent])
            count += 1
            definition = self._guests.get(parent)
            if definition is None:
                break
            seen.append(parent)
            parent = definition.parent
        return count


class CapabilityRegistry(Mapping[str, Mapping[str, CapabilityImpl]]):
    """Read-only mapping of guest name to its capability table."""

    def __init__(self, tables: Optional[Mapping[str, Mapping[str, CapabilityImpl]]] = None):
        frozen: Dict[str, Mapping[str, CapabilityImpl]] = {}
        for guest, table in (tables or {}).items():
            frozen[guest] = MappingProxyType(dict(table))
        self._tables = MappingProxyType(frozen)

    @classmethod
    def coerce(cls, value: Any) -> CapabilityRegistry:
        if isinstance(value, CapabilityRegistry):
            return value
        if value is None:
            return cls()
        if not isinstance(value, Mapping):
            raise TypeError(f"Capability registry must be a mapping, got {type(value).__name__}")
        return cls(value)

    def __getitem__(self, guest: str) -> Mapping[str, CapabilityImpl]:
        return self._tables[guest]

    def __iter__(self) -> Iterator[str]:
        return iter(self._tables)

    def __len__(self) -> int:
        return len(self._tables)

    def __repr__(self) -> str:
        return f"CapabilityRegistry({ {guest: list(t) for guest, t in self._tables.items()}!r})"


def resolve_entrypoint(entrypoint: str) -> Callable[..., Any]:
    """
    Resolve an entrypoint string to a callable.

    Args:
        entrypoint: Format "package.module:attribute" (dotted attributes allowed)

    Returns:
        The referenced callable

    Raises:
        ValueError: If entrypoint format is invalid
        ImportError: If module cannot be imported
        AttributeError: If attribute not found in module
        TypeError: If the attribute is not callable
    """
    if ":" not in entrypoint:
        raise ValueError(f"Invalid entrypoint format: {entrypoint} (expected 'module:callable')")

    module_name, attr_path = entrypoint.rsplit(":", 1)
    if not module_name or not attr_path:
        raise ValueError(f"Invalid entrypoint format: {entrypoint} (expected 'module:callable')")

    attr: Any = importlib.import_module(module_name)
    for part in attr_path.split("."):
        if not hasattr(attr, part):
            raise AttributeError(f"'{attr_path}' not found in module {module_name}")
        attr = getattr(attr, part)

    if not callable(attr):
        raise TypeError(f"Entrypoint '{attr_path}' in {module_name} is not callable")
    return attr


__all__ = [
    "CapabilityImpl",
    "CapabilityRegistry",
    "Detector",
    "DetectorFactory",
    "GuestDefinition",
    "GuestRegistry",
    "resolve_entrypoint",
]
