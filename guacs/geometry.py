"""Sound speed profiles, reflecting bodies and ray state."""

from __future__ import annotations

import csv
import enum
import math
import uuid
from dataclasses import dataclass, field
from decimal import Decimal
from pathlib import Path

from guacs.splines import deboor

REFLECT_OFFSET = 0.1
"""Distance a reflected ray is pushed off a body so that it does not get caught inside."""


def _div(a: float, b: float) -> float:
    """Floating point division with IEEE semantics for a zero divisor."""
    if b == 0.0:
        if a == 0.0 or math.isnan(a):
            return math.nan
        return math.copysign(math.inf, a) * math.copysign(1.0, b)
    return a / b


def _sqrt(x: float) -> float:
    if math.isnan(x) or x < 0.0:
        return math.nan
    return math.sqrt(x)


def _ln(x: float) -> float:
    if math.isnan(x) or x < 0.0:
        return math.nan
    if x == 0.0:
        return -math.inf
    return math.log(x)


def _sign(x: float) -> float:
    return math.copysign(1.0, x) if not math.isnan(x) else math.nan


def _total_key(x: float) -> tuple[int, float]:
    if math.isnan(x):
        return (1, 0.0) if math.copysign(1.0, x) > 0 else (-1, 0.0)
    return (0, x)


def _in_unit_interval(x: float) -> bool:
    return 0.0 <= x <= 1.0


def _format_number(x: float) -> str:
    if math.isnan(x):
        return "NaN"
    if math.isinf(x):
        return "inf" if x > 0 else "-inf"
    text = format(Decimal(repr(x)), "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


@dataclass
class Ssp:
    """Sound speed profile described by a B-spline over depth."""

    knots: list[float]
    coefs: list[float]
    degree: int

    def sound_speed(self, depth: float) -> float:
        """Sound speed at the given depth."""
        return deboor(depth, self.knots, self.coefs, self.degree)


@dataclass(frozen=True)
class Intersection:
    """Point where a ray step crosses an edge of a body."""

    range: float
    depth: float
    time: float
    edge_id: int


@dataclass(frozen=True)
class Reflection:
    """Reflection point of a ray and the angle it leaves at."""

    range: float
    depth: float
    time: float
    angle: float


class DirChange(enum.Enum):
    """Whether a ray keeps or reverses its vertical direction after a step."""

    CHANGE_DIR = enum.auto()
    KEEP_DIR = enum.auto()


@dataclass
class Ray:
    """Propagation history of a single ray."""

    range_vals: list[float]
    depth_vals: list[float]
    time_vals: list[float]
    ray_param: float
    ray_iter: int = 0
    ray_id: str = field(default_factory=lambda: str(uuid.uuid4()))

    def update_iteration(
        self, c_i: float, c_i1: float, g_i: float, depth_dir: float, depth_step: float
    ) -> DirChange:
        """Advance the ray by one depth layer and report whether it turned."""
        p = self.ray_param
        n = self.ray_iter
        cos_term_i = _sqrt(1.0 - (p * c_i) * (p * c_i))
        if abs(p * c_i1) < 1.0:
            cos_term_i1 = _sqrt(1.0 - (p * c_i1) * (p * c_i1))
            self.range_vals[n + 1] = self.range_vals[n] + _div(1.0, p * g_i) * (
                cos_term_i - cos_term_i1
            )
            ratio = _div(_div(c_i1, c_i) * (1.0 + cos_term_i), 1.0 + cos_term_i1)
            self.time_vals[n + 1] = self.time_vals[n] + abs(_div(_ln(ratio), g_i))
            self.depth_vals[n + 1] = self.depth_vals[n] + depth_dir * depth_step
            return DirChange.KEEP_DIR

        self.depth_vals[n + 1] = self.depth_vals[n]
        self.range_vals[n + 1] = self.range_vals[n] + _div(2.0 * cos_term_i, p * g_i)
        self.time_vals[n + 1] = self.time_vals[n] + _div(
            2.0 * _ln(_div(1.0 + cos_term_i, p * c_i)), abs(g_i)
        )
        return DirChange.CHANGE_DIR

    def truncate(self) -> None:
        """Drop the unused tail of the preallocated value lists."""
        keep = self.ray_iter + 1
        del self.depth_vals[keep:]
        del self.range_vals[keep:]
        del self.time_vals[keep:]

    def apply_reflection(self, reflection: Reflection, ssp: Ssp) -> None:
        """Record a reflection and restart the ray just off the body."""
        self.range_vals[self.ray_iter + 1] = reflection.range
        self.depth_vals[self.ray_iter + 1] = reflection.depth
        self.ray_param = math.cos(reflection.angle) / ssp.sound_speed(reflection.depth)
        self.ray_iter += 1
        self.range_vals[self.ray_iter + 1] = reflection.range + REFLECT_OFFSET * math.cos(
            reflection.angle
        )
        self.depth_vals[self.ray_iter + 1] = reflection.depth + REFLECT_OFFSET * math.sin(
            reflection.angle
        )
        self.time_vals[self.ray_iter + 1] = reflection.time

    def write_csv(self, output_dir: str | Path) -> Path:
        """Write range, depth and time rows to ``<output_dir>/<ray_id>.csv``."""
        path = Path(f"{output_dir}/{self.ray_id}.csv")
        rows = zip(
            self.range_vals[: self.ray_iter],
            self.depth_vals[: self.ray_iter],
            self.time_vals[: self.ray_iter],
        )
        with path.open("w", newline="") as handle:
            writer = csv.writer(handle, lineterminator="\n")
            writer.writerows([_format_number(v) for v in row] for row in rows)
        return path


def _ray_dist_param(
    edge_dist: float, edge_step: float, ray_step: float, edge_point: float, ray_point: float
) -> float | None:
    dist = _div((edge_point - ray_point) + edge_dist * edge_step, ray_step)
    return dist if math.copysign(1.0, dist) > 0 else None


@dataclass
class Body:
    """Polygonal body that reflects rays."""

    range_vals: list[float]
    depth_vals: list[float]

    def find_intersection(self, ray: Ray) -> Intersection | None:
        """Nearest crossing of the ray's current step with an edge of the body."""
        if not self.range_vals:
            raise ValueError("Body has no vertices")
        n = ray.ray_iter
        ray_range_step = ray.range_vals[n + 1] - ray.range_vals[n]
        ray_depth_step = ray.depth_vals[n + 1] - ray.depth_vals[n]
        ray_time_step = ray.time_vals[n + 1] - ray.time_vals[n]
        ray_slope = _div(ray_range_step, ray_depth_step)

        distances: list[float] = []
        edges = zip(
            zip(self.range_vals, self.depth_vals),
            zip(self.range_vals[1:], self.depth_vals[1:]),
        )
        for (r0, d0), (r1, d1) in edges:
            edge_depth_step = d1 - d0
            edge_range_step = r1 - r0
            dist: float | None = None
            if _div(edge_range_step, edge_depth_step) != ray_slope:
                edge_dist = _div(
                    (r0 - ray.range_vals[n]) * ray_depth_step
                    - (d0 - ray.depth_vals[n]) * ray_range_step,
                    edge_depth_step * ray_range_step - edge_range_step * ray_depth_step,
                )
                if _in_unit_interval(edge_dist):
                    if ray_range_step != 0.0:
                        dist = _ray_dist_param(
                            edge_dist, edge_range_step, ray_range_step, r0, ray.range_vals[n]
                        )
                    else:
                        dist = _ray_dist_param(
                            edge_dist, edge_depth_step, ray_depth_step, d0, ray.depth_vals[n]
                        )
            distances.append(math.inf if dist is None else dist)

        if not distances:
            return None
        edge_id = min(range(len(distances)), key=lambda i: _total_key(distances[i]))
        best = distances[edge_id]
        if not _in_unit_interval(best):
            return None
        return Intersection(
            range=ray.range_vals[n] + best * ray_range_step,
            depth=ray.depth_vals[n] + best * ray_depth_step,
            time=ray.time_vals[n] + best * ray_time_step,
            edge_id=edge_id,
        )

    def reflect(self, ray: Ray) -> Reflection | None:
        """Reflection of the ray's current step off this body, if it hits."""
        hit = self.find_intersection(ray)
        if hit is None:
            return None
        n = ray.ray_iter
        ray_angle = math.atan2(
            ray.depth_vals[n + 1] - ray.depth_vals[n],
            ray.range_vals[n + 1] - ray.range_vals[n],
        )
        side_angle = self.edge_angle(hit.edge_id)
        return Reflection(
            range=hit.range,
            depth=hit.depth,
            time=hit.time,
            angle=2.0 * side_angle - ray_angle,
        )

    def edge_angle(self, edge_id: int) -> float:
        """Angle of an edge, folded into the interval (-pi/2, pi/2]."""
        angle = math.fmod(
            math.atan2(
                self.depth_vals[edge_id + 1] - self.depth_vals[edge_id],
                self.range_vals[edge_id + 1] - self.range_vals[edge_id],
            ),
            math.pi,
        )
        angle = math.fmod(angle + math.pi, math.pi)
        return angle - math.pi if angle > math.pi / 2.0 else angle