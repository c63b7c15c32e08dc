"""Simulation configuration: program settings, environment and sources."""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from guacs.geometry import Body, Ray, Reflection, Ssp


def _get(data: Mapping[str, Any], key: str, owner: str) -> Any:
    try:
        return data[key]
    except KeyError:
        raise ValueError(f"{owner}: missing field {key!r}") from None


def _mapping(value: Any, owner: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise ValueError(f"{owner}: expected an object, got {type(value).__name__}")
    return value


def _float(data: Mapping[str, Any], key: str, owner: str) -> float:
    value = _get(data, key, owner)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"{owner}: field {key!r} must be a number")
    return float(value)


def _count(data: Mapping[str, Any], key: str, owner: str) -> int:
    value = _get(data, key, owner)
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ValueError(f"{owner}: field {key!r} must be a non-negative integer")
    return value


def _string(data: Mapping[str, Any], key: str, owner: str) -> str:
    value = _get(data, key, owner)
    if not isinstance(value, str):
        raise ValueError(f"{owner}: field {key!r} must be a string")
    return value


def _floats(data: Mapping[str, Any], key: str, owner: str) -> list[float]:
    value = _get(data, key, owner)
    if isinstance(value, (str, bytes)) or not isinstance(value, (list, tuple)):
        raise ValueError(f"{owner}: field {key!r} must be a list of numbers")
    result = []
    for item in value:
        if isinstance(item, bool) or not isinstance(item, (int, float)):
            raise ValueError(f"{owner}: field {key!r} must be a list of numbers")
        result.append(float(item))
    return result


@dataclass
class ProgConfig:
    """Programmatic settings that are not part of the physics of the simulation."""

    max_it: int
    depth_step: float
    max_range: float
    min_range: float
    output_path: str
    pq_solver: str

    @classmethod
    def _from_dict(cls, data: Any) -> ProgConfig:
        owner = "prog_config"
        data = _mapping(data, owner)
        return cls(
            max_it=_count(data, "max_it", owner),
            depth_step=_float(data, "depth_step", owner),
            max_range=_float(data, "max_range", owner),
            min_range=_float(data, "min_range", owner),
            output_path=_string(data, "output_path", owner),
            pq_solver=_string(data, "pq_solver", owner),
        )


@dataclass
class EnvConfig:
    """Environment of the simulation: sound speed profile and reflecting bodies."""

    ssp: Ssp
    swell_height: float
    bodies: list[Body] = field(default_factory=list)

    def check_reflections(self, ray: Ray) -> Reflection | None:
        """Reflection off the first body the ray's current step hits, if any."""
        for body in self.bodies:
            reflection = body.reflect(ray)
            if reflection is not None:
                return reflection
        return None

    @classmethod
    def _from_dict(cls, data: Any) -> EnvConfig:
        owner = "env_config"
        data = _mapping(data, owner)
        ssp_data = _mapping(_get(data, "ssp", owner), "ssp")
        ssp = Ssp(
            knots=_floats(ssp_data, "ssp_knots", "ssp"),
            coefs=_floats(ssp_data, "ssp_coefs", "ssp"),
            degree=_count(ssp_data, "ssp_degree", "ssp"),
        )
        raw_bodies = _get(data, "bodies", owner)
        if not isinstance(raw_bodies, (list, tuple)):
            raise ValueError(f"{owner}: field 'bodies' must be a list")
        bodies = []
        for raw in raw_bodies:
            body_data = _mapping(raw, "body")
            bodies.append(
                Body(
                    range_vals=_floats(body_data, "range_vals", "body"),
                    depth_vals=_floats(body_data, "depth_vals", "body"),
                )
            )
        return cls(ssp=ssp, swell_height=_float(data, "swell_height", owner), bodies=bodies)


@dataclass
class SourceConfig:
    """A single sound source and the fan of rays it emits."""

    range_pos: float
    depth_pos: float
    ray_fan_limits: tuple[float, float]
    n_rays: int
    source_level: float
    frequency: float

    def __post_init__(self) -> None:
        limits = tuple(self.ray_fan_limits)
        if len(limits) != 2:
            raise ValueError("ray_fan_limits must hold exactly two angles")
        self.ray_fan_limits = (float(limits[0]), float(limits[1]))

    @classmethod
    def _from_dict(cls, data: Any) -> SourceConfig:
        owner = "source"
        data = _mapping(data, owner)
        limits = _floats(data, "ray_fan_limits", owner)
        if len(limits) != 2:
            raise ValueError(f"{owner}: field 'ray_fan_limits' must hold exactly two angles")
        return cls(
            range_pos=_float(data, "range_pos", owner),
            depth_pos=_float(data, "depth_pos", owner),
            ray_fan_limits=(limits[0], limits[1]),
            n_rays=_count(data, "n_rays", owner),
            source_level=_float(data, "source_level", owner),
            frequency=_float(data, "frequency", owner),
        )


@dataclass
class Config:
    """Complete description of a simulation run."""

    prog_config: ProgConfig
    env_config: EnvConfig
    sources: list[SourceConfig] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Any) -> Config:
        """Build a configuration from a decoded JSON document."""
        data = _mapping(data, "config")
        raw_sources = _get(data, "sources", "config")
        if not isinstance(raw_sources, (list, tuple)):
            raise ValueError("config: field 'sources' must be a list")
        return cls(
            prog_config=ProgConfig._from_dict(_get(data, "prog_config", "config")),
            env_config=EnvConfig._from_dict(_get(data, "env_config", "config")),
            sources=[SourceConfig._from_dict(source) for source in raw_sources],
        )


def load_config(path: str | Path) -> Config:
    """Read a configuration from a JSON file."""
    with Path(path).open(encoding="utf-8") as handle:
        data = json.load(handle)
    return Config.from_dict(data)