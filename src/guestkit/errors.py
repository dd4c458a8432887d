"""Custom exceptions for guest detection and capability dispatch."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence


class GuestError(RuntimeError):
    """Base exception for guest resolution failures."""


class GuestNotDetected(GuestError):
    """Raised when autodetection finds no matching guest."""

    def __str__(self) -> str:
        return "guest OS could not be detected; set an explicit guest in the machine config"


@dataclass(slots=True)
class GuestExplicitNotDetected(GuestError):
    """Raised when the explicitly configured guest is not registered."""

    value: str

    def __post_init__(self) -> None:
        self.args = (self.value,)

    def __str__(self) -> str:
        return f"configured guest '{self.value}' is not a registered guest"


class GuestNotReady(GuestError):
    """Raised when capabilities are requested before a guest was detected."""

    def __str__(self) -> str:
        return "guest has not been detected yet; call detect() first"


@dataclass(slots=True)
class GuestParentCycle(GuestError):
    """Raised when guest parents loop back onto themselves."""

    chain: Sequence[str]

    def __post_init__(self) -> None:
        self.args = (self.chain,)

    def __str__(self) -> str:
        return f"guest parent cycle: {' -> '.join(self.chain)}"


@dataclass(slots=True)
class GuestCapabilityNotFound(GuestError):
    """Raised when no guest in the chain provides a capability."""

    cap: str
    guest: str

    def __post_init__(self) -> None:
        self.args = (self.cap, self.guest)

    def __str__(self) -> str:
        return f"guest '{self.guest}' does not support capability '{self.cap}'"


@dataclass(slots=True)
class GuestCapabilityInvalid(GuestError):
    """Raised when a registered capability cannot be invoked."""

    cap: str
    guest: str

    def __post_init__(self) -> None:
        self.args = (self.cap, self.guest)

    def __str__(self) -> str:
        return (
            f"capability '{self.cap}' registered for guest '{self.guest}' "
            "cannot be resolved to a callable"
        )


class CatalogError(ValueError):
    """Raised when a guest catalog is malformed or references missing code."""


__all__ = [
    "CatalogError",
    "GuestCapabilityInvalid",
    "GuestCapabilityNotFound",
    "GuestError",
    "GuestExplicitNotDetected",
    "GuestNotDetected",
    "GuestNotReady",
    "GuestParentCycle",
]
