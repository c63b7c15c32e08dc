"""Geometric ray tracing through a layered sound speed profile."""

from __future__ import annotations

import math
from dataclasses import dataclass

from guacs.config import Config, EnvConfig, ProgConfig, SourceConfig
from guacs.geometry import DirChange, Ray


def _signum(x: float) -> float:
    return math.copysign(1.0, x) if not math.isnan(x) else math.nan


@dataclass(frozen=True)
class RayInit:
    """Starting state of a single ray."""

    range_pos: float
    depth_pos: float
    init_time: float
    init_ang: float
    init_iter: int
    init_sound_speed: float
    min_range: float
    max_range: float
    frequency: float

    @classmethod
    def from_source(
        cls,
        source: SourceConfig,
        ray_index: int,
        init_sound_speed: float,
        prog_config: ProgConfig,
    ) -> RayInit:
        """Starting state of ray number ``ray_index`` of a source's fan."""
        low, high = source.ray_fan_limits
        if source.n_rays > 1:
            angle = low + ray_index * (high - low) / (source.n_rays - 1.0)
        else:
            angle = low
        return cls(
            range_pos=source.range_pos,
            depth_pos=source.depth_pos,
            init_time=0.0,
            init_ang=angle,
            init_iter=0,
            init_sound_speed=init_sound_speed,
            min_range=prog_config.min_range,
            max_range=prog_config.max_range,
            frequency=source.frequency,
        )


def init_ray(init: RayInit, prog_config: ProgConfig) -> Ray:
    """Fresh ray with room for ``max_it + 1`` points, placed at the source."""
    size = prog_config.max_it + 1
    ray = Ray(
        range_vals=[0.0] * size,
        depth_vals=[0.0] * size,
        time_vals=[0.0] * size,
        ray_param=math.cos(init.init_ang) / init.init_sound_speed,
    )
    ray.range_vals[0] = init.range_pos
    ray.depth_vals[0] = init.depth_pos
    ray.time_vals[0] = init.init_time
    return ray


def trace_ray(init: RayInit, prog_config: ProgConfig, env_config: EnvConfig) -> Ray:
    """Trace one ray until it leaves the range limits or runs out of iterations."""
    limit = prog_config.max_it - init.init_iter
    if limit < 0:
        raise ValueError("Initial iteration exceeds the maximum iteration count")
    ssp = env_config.ssp
    step = prog_config.depth_step
    depth_dir = _signum(math.sin(init.init_ang))
    ray = init_ray(init, prog_config)
    c_i = ssp.sound_speed(ray.depth_vals[0])

    while ray.ray_iter < limit and init.min_range <= ray.range_vals[ray.ray_iter] <= init.max_range:
        c_i1 = ssp.sound_speed(ray.depth_vals[ray.ray_iter] + depth_dir * step)
        g_i = (c_i1 - c_i) / step
        if ray.update_iteration(c_i, c_i1, g_i, depth_dir, step) is DirChange.KEEP_DIR:
            c_i = c_i1
        else:
            depth_dir = -depth_dir

        reflection = env_config.check_reflections(ray)
        if reflection is not None:
            ray.apply_reflection(reflection, ssp)
            depth_dir = _signum(math.sin(reflection.angle))
            c_i = ssp.sound_speed(reflection.depth)
        ray.ray_iter += 1

    ray.truncate()
    return ray


def ray_inits(config: Config) -> list[RayInit]:
    """Starting states of every ray of every source, in source order."""
    inits: list[RayInit] = []
    for source in config.sources:
        sound_speed = config.env_config.ssp.sound_speed(source.depth_pos)
        inits.extend(
            RayInit.from_source(source, index, sound_speed, config.prog_config)
            for index in range(source.n_rays)
        )
    return inits


def trace_rays(config: Config) -> list[Ray]:
    """Trace every ray described by the configuration."""
    return [
        trace_ray(init, config.prog_config, config.env_config) for init in ray_inits(config)
    ]