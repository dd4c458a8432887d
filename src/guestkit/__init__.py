"""Guest OS detection and capability dispatch.

Plugins register guests (an OS family with a detector and an optional parent)
and capabilities (named operations implemented per guest). ``Guest`` picks the
guest for a machine and routes capability calls along the guest's ancestry.

Example:
    ```python
    from guestkit import Guest

    guest = Guest(machine, guests, capabilities)
    guest.detect()
    guest.capability("halt")
    ```
"""

from __future__ import annotations

from guestkit.errors import (
    CatalogError,
    GuestCapabilityInvalid,
    GuestCapabilityNotFound,
    GuestError,
    GuestExplicitNotDetected,
    GuestNotDetected,
    GuestNotReady,
    GuestParentCycle,
)
from guestkit.guest import ChainLink, Guest
from guestkit.registry import (
    CapabilityRegistry,
    Detector,
    GuestDefinition,
    GuestRegistry,
)

__all__ = [
    # Resolver
    "Guest",
    "ChainLink",
    # Registries
    "Detector",
    "GuestDefinition",
    "GuestRegistry",
    "CapabilityRegistry",
    # Exceptions
    "GuestError",
    "GuestNotDetected",
    "GuestExplicitNotDetected",
    "GuestNotReady",
    "GuestParentCycle",
    "GuestCapabilityNotFound",
    "GuestCapabilityInvalid",
    "CatalogError",
]
