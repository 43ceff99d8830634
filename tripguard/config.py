"""Runtime configuration for the moderation pipeline.

Defaults live on :class:`GuardConfig`.  ``TRIPGUARD_*`` environment
variables override them via :meth:`GuardConfig.from_env`, and a YAML file
can override them via :func:`load_config`.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Mapping, Optional

import yaml

from tripguard.llm.client import DEFAULT_MODEL

ENV_PREFIX = "TRIPGUARD_"


@dataclass(frozen=True)
class GuardConfig:
    """Tunables for the validators, the orchestrator and the incident log."""

    model: str = DEFAULT_MODEL
    temperature: float = 0.1
    max_tokens: int = 500
    classifier_timeout: float = 8.0
    # Accepts below this confidence are logged as soft warnings.
    soft_watch_threshold: int = 70
    # Classifier rejections below this confidence are soft warnings.
    severity_floor: int = 50
    min_notes_length: int = 0
    max_notes_length: int = 500
    reason_max_length: int = 200
    incident_dir: str = ""

    def __post_init__(self) -> None:
        for name in ("soft_watch_threshold", "severity_floor"):
            value = getattr(self, name)
            if not 0 <= value <= 100:
                raise ValueError(f"{name} must be between 0 and 100, got {value}")
        if self.classifier_timeout <= 0:
            raise ValueError("classifier_timeout must be positive")
        if self.min_notes_length < 0 or self.max_notes_length < self.min_notes_length:
            raise ValueError("notes length bounds are inconsistent")

    @property
    def incident_path(self) -> Path:
        if self.incident_dir:
            return Path(self.incident_dir).expanduser()
        return Path.home() / ".tripguard" / "incidents"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> GuardConfig:
        """Build a config from ``TRIPGUARD_*`` environment variables."""
        env = os.environ if environ is None else environ
        overrides: dict[str, Any] = {}
        for f in fields(cls):
            raw = env.get(ENV_PREFIX + f.name.upper())
            if raw is not None and raw != "":
                overrides[f.name] = _coerce(f.name, raw)
        return cls(**overrides)

    def merged(self, overrides: Mapping[str, Any]) -> GuardConfig:
        known = {f.name for f in fields(self)}
        unknown = sorted(set(overrides) - known)
        if unknown:
            raise ValueError(f"Unknown config keys: {', '.join(unknown)}")
        return replace(self, **{k: _coerce(k, v) for k, v in overrides.items()})


_FIELD_TYPES = {
    "temperature": float,
    "classifier_timeout": float,
    "max_tokens": int,
    "soft_watch_threshold": int,
    "severity_floor": int,
    "min_notes_length": int,
    "max_notes_length": int,
    "reason_max_length": int,
}


def _coerce(name: str, value: Any) -> Any:
    caster = _FIELD_TYPES.get(name, str)
    try:
        return caster(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Invalid value for {name}: {value!r}") from exc


def load_config(path: str | Path, base: Optional[GuardConfig] = None) -> GuardConfig:
    """Load overrides from a YAML file on top of *base* (or the env config)."""
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a mapping at the top level")
    section = data.get("tripguard", data)
    return (base or GuardConfig.from_env()).merged(section)
