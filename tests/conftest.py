"""Pytest configuration helpers."""

from __future__ import annotations

import textwrap
import uuid
from pathlib import Path
from typing import Any, Callable, Iterator, List

import pytest

from guestkit.config import get_settings
from guestkit.machine import StaticMachine, StaticMachineConfig
from guestkit.registry import GuestDefinition, GuestRegistry

PLUGIN_SOURCE = textwrap.dedent(
    """
    class LinuxDetector:
        def detect(self, machine):
            return machine.fact("kernel") == "Linux"


    class UbuntuDetector:
        def detect(self, machine):
            return machine.fact("distro") == "ubuntu"


    def halt(machine):
        return f"halt {machine.name}"


    def change_host_name(machine, name):
        return f"hostnamectl set-hostname {name}"
    """
)


class RecordingDetector:
    """Detector appending its name to a shared log on every call."""

    def __init__(self, name: str, matches: bool, log: List[str]):
        self.name = name
        self.matches = matches
        self.log = log

    def detect(self, machine: Any) -> bool:
        self.log.append(self.name)
        return self.matches


@pytest.fixture
def detect_log() -> List[str]:
    """Names of guests whose detectors were called, in call order."""
    return []


@pytest.fixture
def make_guest(detect_log: List[str]) -> Callable[..., GuestDefinition]:
    """Build a guest definition whose detector answers ``matches``."""

    def factory(name: str, parent: str | None = None, matches: bool = False) -> GuestDefinition:
        return GuestDefinition(
            name=name,
            detector_factory=lambda: RecordingDetector(name, matches, detect_log),
            parent=parent,
        )

    return factory


@pytest.fixture
def plugin_module(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> str:
    """Write an importable guest plugin module and return its name."""
    name = f"guestkit_plugin_{uuid.uuid4().hex}"
    (tmp_path / f"{name}.py").write_text(PLUGIN_SOURCE, encoding="utf-8")
    monkeypatch.syspath_prepend(str(tmp_path))
    return name


@pytest.fixture
def machine() -> StaticMachine:
    return StaticMachine(name="test-vm")


@pytest.fixture
def explicit_machine() -> Callable[[str], StaticMachine]:
    def factory(guest: str) -> StaticMachine:
        return StaticMachine(name="test-vm", config=StaticMachineConfig(guest=guest))

    return factory


@pytest.fixture
def family(make_guest: Callable[..., GuestDefinition]) -> GuestRegistry:
    """linux <- debian <- ubuntu, plus an unrelated windows root."""
    return GuestRegistry(
        [
            make_guest("linux"),
            make_guest("debian", parent="linux"),
            make_guest("ubuntu", parent="debian"),
            make_guest("windows"),
        ]
    )


@pytest.fixture(autouse=True)
def clear_settings_cache() -> Iterator[None]:
    """Settings are cached per process; reset them around every test."""
    get_settings.cache_clear()
    try:
        yield
    finally:
        get_settings.cache_clear()
