"""Editable copy of the backend simulation configuration."""

from __future__ import annotations

import copy
from typing import Any, Mapping

from core.errors import InvalidPathError

LOAD_PATTERNS: dict[str, str] = {
    "linear": "Linear (Steady increase)",
    "sine": "Sinusoidal (Smooth waves)",
    "spike": "Spike (Sudden bursts)",
    "sawtooth": "Sawtooth (Gradual increase, sharp drop)",
    "square": "Square (On/Off pattern)",
    "random": "Random (Unpredictable)",
    "daily": "Daily (Business hours)",
}

DEFAULT_SIMULATION_CONFIG: dict[str, Any] = {
    "podResources": {
        "requests": {"cpu": "1000m", "memory": "4Gi"},
        "limits": {"cpu": "4000m", "memory": "5Gi"},
    },
    "minReplicas": 1,
    "maxReplicas": 10,
    "cpuThreshold": 60,
    "memoryThreshold": 60,
    "userResources": {"cpu": 0.5, "memory": 1.0},
    "defaultLoadProfile": {
        "pattern": "random",
        "maxUsers": 1000,
        "baseLoad": 100,
        "amplitude": 200,
        "period": 10,
        "userGrowthRate": 200,
    },
}


def _leaf_paths(tree: Mapping[str, Any], prefix: tuple[str, ...] = ()) -> list[tuple[str, ...]]:
    paths: list[tuple[str, ...]] = []
    for key, value in tree.items():
        if isinstance(value, Mapping):
            paths.extend(_leaf_paths(value, prefix + (key,)))
        else:
            paths.append(prefix + (key,))
    return paths


CONFIG_PATHS: frozenset[str] = frozenset(
    ".".join(path) for path in _leaf_paths(DEFAULT_SIMULATION_CONFIG)
)


def _with_defaults(raw: Mapping[str, Any], defaults: Mapping[str, Any]) -> dict[str, Any]:
    merged = copy.deepcopy(dict(raw))
    for key, default in defaults.items():
        value = merged.get(key)
        if isinstance(default, Mapping):
            merged[key] = _with_defaults(value if isinstance(value, Mapping) else {}, default)
        elif value is None:
            merged[key] = copy.deepcopy(default)
    return merged


class ConfigModel:
    """Holds an edited copy of the simulation config until it is committed."""

    def __init__(self, config: dict[str, Any]) -> None:
        self._config = config

    @classmethod
    def initialize(cls, raw: Mapping[str, Any] | None) -> "ConfigModel":
        """Return a model whose every recognised field is populated.

        Provided values win; missing or ``None`` leaves take the documented
        default. Unrecognised keys in ``raw`` are carried through untouched.
        """

        return cls(_with_defaults(raw or {}, DEFAULT_SIMULATION_CONFIG))

    @property
    def config(self) -> dict[str, Any]:
        return copy.deepcopy(self._config)

    def _resolve_parent(self, path: str) -> tuple[dict[str, Any], str]:
        if path not in CONFIG_PATHS:
            raise InvalidPathError(path)
        *parents, leaf = path.split(".")
        current: Any = self._config
        for segment in parents:
            current = current.get(segment)
            if not isinstance(current, dict):
                raise InvalidPathError(path, f"{segment!r} in {path!r} is not a nested object")
        return current, leaf

    def get(self, path: str) -> Any:
        parent, leaf = self._resolve_parent(path)
        return parent.get(leaf)

    def set_field(self, path: str, value: Any) -> None:
        """Replace the single leaf addressed by the dotted ``path``."""

        parent, leaf = self._resolve_parent(path)
        parent[leaf] = value

    def commit(self) -> dict[str, Any]:
        return copy.deepcopy(self._config)


def _in_range(value: Any, low: float, high: float, *, low_inclusive: bool = True) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    above = value >= low if low_inclusive else value > low
    return above and value <= high


def validate_config(config: Mapping[str, Any]) -> list[str]:
    """Return human-readable problems with an edited config; empty when valid."""

    problems: list[str] = []
    model = ConfigModel.initialize(config)

    min_replicas = model.get("minReplicas")
    max_replicas = model.get("maxReplicas")
    if not _in_range(min_replicas, 1, float("inf")):
        problems.append("minReplicas must be at least 1")
    elif not _in_range(max_replicas, min_replicas, float("inf")):
        problems.append("maxReplicas must be greater than or equal to minReplicas")

    for path in ("cpuThreshold", "memoryThreshold"):
        if not _in_range(model.get(path), 1, 100):
            problems.append(f"{path} must be between 1 and 100")

    for path in ("userResources.cpu", "userResources.memory"):
        if not _in_range(model.get(path), 0, 100, low_inclusive=False):
            problems.append(f"{path} must be greater than 0 and at most 100")

    pattern = model.get("defaultLoadProfile.pattern")
    if pattern not in LOAD_PATTERNS:
        problems.append(f"defaultLoadProfile.pattern must be one of {', '.join(LOAD_PATTERNS)}")

    for field_name in ("maxUsers", "baseLoad", "amplitude", "period", "userGrowthRate"):
        if not _in_range(model.get(f"defaultLoadProfile.{field_name}"), 1, float("inf")):
            problems.append(f"defaultLoadProfile.{field_name} must be at least 1")

    return problems
