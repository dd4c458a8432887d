"""Unit tests for guestkit.registry module"""

from __future__ import annotations

from typing import Callable

import pytest

from guestkit.errors import GuestParentCycle
from guestkit.registry import (
    CapabilityRegistry,
    GuestDefinition,
    GuestRegistry,
    resolve_entrypoint,
)


class TestGuestRegistry:
    """Test suite for GuestRegistry class"""

    def test_registration_order_preserved(self, family: GuestRegistry) -> None:
        assert list(family) == ["linux", "debian", "ubuntu", "windows"]
        assert len(family) == 4

    def test_from_mapping(self) -> None:
        """Test building from the raw name -> (factory, parent) shape"""
        registry = GuestRegistry.from_mapping({"linux": (object, None), "arch": (object, "linux")})

        assert registry["arch"].parent == "linux"
        assert registry["linux"].parent is None
        assert list(registry) == ["linux", "arch"]

    def test_coerce_keeps_existing(self, family: GuestRegistry) -> None:
        assert GuestRegistry.coerce(family) is family

    def test_coerce_definitions(self, make_guest: Callable[..., GuestDefinition]) -> None:
        registry = GuestRegistry.coerce({"linux": make_guest("linux")})

        assert isinstance(registry, GuestRegistry)
        assert "linux" in registry

    def test_coerce_rejects_mismatched_key(
        self, make_guest: Callable[..., GuestDefinition]
    ) -> None:
        """Test that a definition keyed under another name is refused"""
        with pytest.raises(ValueError, match="registered as 'ubuntu' is defined with name 'linux'"):
            GuestRegistry.coerce({"ubuntu": make_guest("linux")})

    def test_coerce_rejects_non_mapping(self) -> None:
        with pytest.raises(TypeError, match="must be a mapping"):
            GuestRegistry.coerce([("linux", object, None)])

    def test_depth(self, family: GuestRegistry) -> None:
        assert family.depth("linux") == 0
        assert family.depth("debian") == 1
        assert family.depth("ubuntu") == 2
        assert family.depth("windows") == 0

    def test_depth_counts_dangling_parent(self, make_guest: Callable[..., GuestDefinition]) -> None:
        """Test that a parent missing from the registry still counts as a hop"""
        registry = GuestRegistry([make_guest("b", parent="a")])

        assert registry.depth("b") == 1

    def test_ancestry(self, family: GuestRegistry) -> None:
        assert family.ancestry("ubuntu") == ["ubuntu", "debian", "linux"]
        assert family.ancestry("windows") == ["windows"]

    def test_unknown_guest(self, family: GuestRegistry) -> None:
        with pytest.raises(KeyError):
            family.ancestry("plan9")

    def test_cycle(self, make_guest: Callable[..., GuestDefinition]) -> None:
        registry = GuestRegistry(
            [make_guest("a", parent="c"), make_guest("b", parent="a"), make_guest("c", parent="b")]
        )

        with pytest.raises(GuestParentCycle, match="a -> c -> b -> a"):
            registry.ancestry("a")
        with pytest.raises(GuestParentCycle):
            registry.depth("b")

    def test_cycle_above_guest(self, make_guest: Callable[..., GuestDefinition]) -> None:
        """Test a loop among ancestors that does not include the guest itself"""
        registry = GuestRegistry(
            [make_guest("x", parent="a"), make_guest("a", parent="b"), make_guest("b", parent="a")]
        )

        with pytest.raises(GuestParentCycle):
            registry.depth("x")

    def test_read_only(self, family: GuestRegistry) -> None:
        with pytest.raises(TypeError):
            family["linux"] = family["windows"]  # type: ignore[index]


class TestCapabilityRegistry:
    """Test suite for CapabilityRegistry class"""

    def test_tables_are_frozen(self) -> None:
        source = {"linux": {"halt": "mod:halt"}}
        registry = CapabilityRegistry(source)
        source["linux"]["reboot"] = "mod:reboot"

        assert "reboot" not in registry["linux"]
        with pytest.raises(TypeError):
            registry["linux"]["halt"] = "mod:other"  # type: ignore[index]

    def test_coerce(self) -> None:
        assert len(CapabilityRegistry.coerce(None)) == 0
        registry = CapabilityRegistry({"linux": {}})
        assert CapabilityRegistry.coerce(registry) is registry

    def test_coerce_rejects_non_mapping(self) -> None:
        with pytest.raises(TypeError, match="must be a mapping"):
            CapabilityRegistry.coerce(["halt"])


class TestResolveEntrypoint:
    """Test suite for resolve_entrypoint"""

    def test_resolve(self) -> None:
        assert resolve_entrypoint("os.path:join") is __import__("os").path.join

    def test_resolve_dotted_attribute(self) -> None:
        assert resolve_entrypoint("pathlib:Path.cwd") == __import__("pathlib").Path.cwd

    def test_invalid_format(self) -> None:
        with pytest.raises(ValueError, match="Invalid entrypoint format"):
            resolve_entrypoint("no_colon_separator")

    def test_missing_module(self) -> None:
        with pytest.raises(ImportError):
            resolve_entrypoint("guestkit_tests_nonexistent:run")

    def test_missing_attribute(self) -> None:
        with pytest.raises(AttributeError, match="not found"):
            resolve_entrypoint("os.path:nonexistent")

    def test_not_callable(self) -> None:
        with pytest.raises(TypeError, match="is not callable"):
            resolve_entrypoint("os:sep")
