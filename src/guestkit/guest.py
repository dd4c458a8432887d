"""
Guest OS detection and capability dispatch for a single machine.

Many operations need guest OS specific knowledge. Plugins register "guests",
each with a detector deciding whether a machine runs that OS, and "guest
capabilities" register implementations for one or more guests. This module
picks the guest for a machine and routes capability calls to it.

Guests may name a parent guest. A capability missing on the detected guest is
looked up on its parent, then the grandparent, and so on, which lets a
specific distribution override only what differs from its family.

Example:
    ```python
    guest = Guest(machine, guests, capabilities)
    guest.detect()
    if guest.has_capability("configure_networks"):
        guest.capability("configure_networks", networks)
    ```
"""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Any, Dict, List, Mapping, NamedTuple, Optional, Tuple

from guestkit.errors import (
    GuestCapabilityInvalid,
    GuestCapabilityNotFound,
    GuestExplicitNotDetected,
    GuestNotDetected,
    GuestNotReady,
)
from guestkit.machine import Machine
from guestkit.registry import (
    CapabilityImpl,
    CapabilityRegistry,
    Detector,
    GuestRegistry,
    resolve_entrypoint,
)

logger = logging.getLogger(__name__)


class ChainLink(NamedTuple):
    """One step of the capability lookup chain."""

    name: str
    detector: Detector


class Guest:
    """Detects the guest OS of a machine and delegates capabilities to it."""

    def __init__(
        self,
        machine: Machine,
        guests: Mapping[str, Any],
        capabilities: Optional[Mapping[str, Mapping[str, CapabilityImpl]]] = None,
    ):
        self._machine = machine
        self._guests = GuestRegistry.coerce(guests)
        self._capabilities = CapabilityRegistry.coerce(capabilities)
        self._name: Optional[str] = None
        self._chain: Tuple[ChainLink, ...] = ()

    @property
    def name(self) -> Optional[str]:
        """Name of the detected guest, or None until detect() succeeds."""
        return self._name

    @property
    def chain(self) -> Tuple[ChainLink, ...]:
        """Detected guest followed by its ancestors, most general last."""
        return self._chain

    def detect(self) -> str:
        """
        Detect the guest OS of the machine and build the capability chain.

        An explicit ``machine.config.guest`` wins over autodetection.

        Returns:
            Name of the detected guest

        Raises:
            GuestExplicitNotDetected: If the configured guest is not registered
            GuestNotDetected: If no registered guest matches the machine
            GuestParentCycle: If guest parents form a loop
        """
        logger.info("Detect guest for machine: %s", self._machine)
        self._name = None
        self._chain = ()

        guest_name = getattr(self._machine.config, "guest", None)
        if guest_name:
            logger.info("Using explicit guest config value: %s", guest_name)
            if guest_name not in self._guests:
                raise GuestExplicitNotDetected(str(guest_name))
        else:
            guest_name = self._autodetect()

        chain = self._build_chain(guest_name)
        self._name = guest_name
        self._chain = chain
        return guest_name

    def ready(self) -> bool:
        """Whether detect() has succeeded and capabilities can be executed."""
        return bool(self._chain)

    def has_capability(self, cap_name: str) -> bool:
        """Test whether the detected guest or an ancestor provides a capability."""
        return self.capability_module(cap_name) is not None

    def capability(self, cap_name: str, *args: Any, **kwargs: Any) -> Any:
        """
        Execute a capability, passing the machine and any extra arguments.

        Args:
            cap_name: Capability name (e.g., "mount_shared_folder")
            *args: Positional arguments forwarded after the machine
            **kwargs: Keyword arguments forwarded unchanged

        Returns:
            Whatever the capability implementation returns

        Raises:
            GuestNotReady: If detect() has not succeeded
            GuestCapabilityNotFound: If no guest in the chain provides it
            GuestCapabilityInvalid: If the registered implementation cannot be called
        """
        guest_name = self._require_chain()[0].name
        logger.info("Execute capability: %s (%s)", cap_name, guest_name)

        found = self.capability_module(cap_name)
        if found is None:
            raise GuestCapabilityNotFound(cap_name, guest_name)

        impl = self._resolve_impl(cap_name, found[1])
        return impl(self._machine, *args, **kwargs)

    def capability_module(self, cap_name: str) -> Optional[Tuple[str, Optional[CapabilityImpl]]]:
        """
        Find the closest registration of a capability along the chain.

        Returns:
            ``(guest name, implementation)`` of the first match, or None
        """
        logger.debug("Searching for cap: %s", cap_name)
        for link in self._require_chain():
            logger.debug("Checking in: %s", link.name)
            table = self._capabilities.get(link.name)
            if table is not None and cap_name in table:
                logger.debug("Found cap: %s in %s", cap_name, link.name)
                return link.name, table[cap_name]
        return None

    def capabilities(self) -> Dict[str, str]:
        """Map every capability reachable through the chain to the guest serving it."""
        served: Dict[str, str] = {}
        for link in self._require_chain():
            for cap_name in self._capabilities.get(link.name, {}):
                served.setdefault(cap_name, link.name)
        return served

    def _require_chain(self) -> Tuple[ChainLink, ...]:
        if not self._chain:
            raise GuestNotReady()
        return self._chain

    def _resolve_impl(self, cap_name: str, impl: Optional[CapabilityImpl]) -> Any:
        guest_name = self._chain[0].name
        if isinstance(impl, str):
            try:
                return resolve_entrypoint(impl)
            except (ImportError, AttributeError, TypeError, ValueError) as exc:
                logger.debug("Cannot resolve cap %s from %s: %s", cap_name, impl, exc)
                raise GuestCapabilityInvalid(cap_name, guest_name) from exc
        if not callable(impl):
            raise GuestCapabilityInvalid(cap_name, guest_name)
        return impl

    def _autodetect(self) -> str:
        """Try registered guests, those with the most ancestors first."""
        logger.info("Autodetecting guest for machine: %s", self._machine)

        by_depth: Dict[int, List[str]] = defaultdict(list)
        for name in self._guests:
            by_depth[self._guests.depth(name)].append(name)

        for depth in sorted(by_depth, reverse=True):
            for name in by_depth[depth]:
                logger.debug("Trying: %s", name)
                detector = self._guests[name].new_detector()
                if detector.detect(self._machine):
                    logger.info("Detected: %s!", name)
                    return name

        raise GuestNotDetected()

    def _build_chain(self, name: str) -> Tuple[ChainLink, ...]:
        return tuple(
            ChainLink(guest_name, self._guests[guest_name].new_detector())
            for guest_name in self._guests.ancestry(name)
        )


__all__ = ["ChainLink", "Guest"]
