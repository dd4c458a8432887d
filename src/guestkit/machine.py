"""Machine collaborator used by guest detection and capabilities.

The resolver only needs ``machine.config.guest``; detectors and capabilities
may need anything else. ``StaticMachine`` is a fact-driven implementation used
by the CLI and in tests, where detectors inspect ``machine.facts`` instead of
talking to a live host.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional, Protocol

import yaml  # type: ignore[import-untyped]
from pydantic import BaseModel, Field


class MachineConfig(Protocol):
    guest: Optional[str]


class Machine(Protocol):
    """Minimal interface the resolver requires of a machine."""

    @property
    def config(self) -> MachineConfig:  # pragma: no cover - interface contract
        ...


class StaticMachineConfig(BaseModel):
    """Per-machine configuration."""

    guest: Optional[str] = Field(
        default=None, description="Explicit guest identifier; skips autodetection when set"
    )


class StaticMachine(BaseModel):
    """Machine described entirely by data."""

    name: str = Field(default="default", description="Machine name used in log messages")
    config: StaticMachineConfig = Field(default_factory=StaticMachineConfig)
    facts: dict[str, Any] = Field(
        default_factory=dict, description="Free-form facts read by detectors"
    )

    def __str__(self) -> str:
        return self.name

    def fact(self, key: str, default: Any = None) -> Any:
        return self.facts.get(key, default)

    @classmethod
    def from_yaml(cls, yaml_path: Path) -> StaticMachine:
        """
        Load a machine description from YAML.

        Args:
            yaml_path: Path to YAML file with optional ``name``, ``config`` and ``facts``

        Returns:
            StaticMachine instance

        Raises:
            FileNotFoundError: If YAML file not found
            ValueError: If the file is not valid YAML or its structure is invalid
        """
        if not yaml_path.exists():
            raise FileNotFoundError(f"Machine description not found: {yaml_path}")

        try:
            with open(yaml_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as exc:
            raise ValueError(f"Machine description is not valid YAML: {yaml_path}: {exc}") from exc

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ValueError(f"Machine description must be a mapping in {yaml_path}")

        data.setdefault("name", yaml_path.stem)
        return cls.model_validate(data)
