"""Gaussian beam tracing: central rays with their p-q dynamic ray equations."""

from __future__ import annotations

import enum
import math
from dataclasses import dataclass

from guacs.config import Config, EnvConfig, ProgConfig
from guacs.geometry import DirChange, Ray
from guacs.rays import RayInit, init_ray, ray_inits


def _div(a: float, b: float) -> float:
    """Real division that yields inf or nan for a zero divisor instead of raising."""
    if b == 0.0:
        if a == 0.0 or math.isnan(a):
            return math.nan
        return math.copysign(math.inf, a) * math.copysign(1.0, b)
    return a / b


def _cdiv(z: complex, s: float) -> complex:
    """Divide a complex value by a real scalar, component by component."""
    return complex(_div(z.real, s), _div(z.imag, s))


def _ln(x: float) -> float:
    if math.isnan(x) or x < 0.0:
        return math.nan
    if x == 0.0:
        return -math.inf
    return math.log(x)


def _signum(x: float) -> float:
    return math.copysign(1.0, x) if not math.isnan(x) else math.nan


class SolverMethod(enum.Enum):
    """Integration scheme used for the p-q equations."""

    RUNGE_KUTTA_4 = "RungeKutta4"
    RADAU_3IA = "Radau3IA"
    BACKWARD_EULER = "BackwardEuler"

    @classmethod
    def from_name(cls, name: str) -> SolverMethod:
        """Solver for a configuration name such as ``"RungeKutta4"``."""
        try:
            return cls(name)
        except ValueError:
            raise ValueError(f"Unknown p-q solver {name!r}") from None


@dataclass
class Beam:
    """A central ray and the p and q values carried along it."""

    central_ray: Ray
    p_vals: list[complex]
    q_vals: list[complex]

    @classmethod
    def from_init(cls, init: RayInit, prog_config: ProgConfig) -> Beam:
        """Fresh beam at the source with room for ``max_it + 1`` points."""
        size = prog_config.max_it + 1
        beam = cls(
            central_ray=init_ray(init, prog_config),
            p_vals=[0j] * size,
            q_vals=[0j] * size,
        )
        beam.q_vals[0] = complex(0.0, 1.0 / init.init_sound_speed)
        beam.p_vals[0] = complex(1.0, 0.0)
        return beam

    def _arc_step(self, c_i: float, c_i1: float, g_i: float) -> float:
        p = self.central_ray.ray_param
        ratio = _div((p * c_i1 + 1.0) * (p * c_i - 1.0), (p * c_i1 - 1.0) * (p * c_i + 1.0))
        return _div(_ln(abs(ratio)), 2.0 * g_i * p)

    def _c_nn(self, c_centre: float, c_next: float, c_prev: float, depth_step: float) -> float:
        p = self.central_ray.ray_param
        return _div(-p * c_centre * (c_next - 2.0 * c_centre + c_prev), depth_step * depth_step)

    def update_pq(
        self,
        c_i: float,
        c_i1: float,
        c_im1: float,
        c_i2: float,
        g_i: float,
        depth_step: float,
        method: SolverMethod,
    ) -> None:
        """Advance p and q from the current iteration to the next one."""
        if method is SolverMethod.RUNGE_KUTTA_4:
            self._update_rk4(c_i, c_i1, c_im1, c_i2, g_i, depth_step)
        elif method is SolverMethod.RADAU_3IA:
            self._update_radau3_ia(c_i, c_i1, c_im1, c_i2, g_i, depth_step)
        elif method is SolverMethod.BACKWARD_EULER:
            self._update_back_euler(c_i, c_i1, c_i2, g_i, depth_step)
        else:
            raise ValueError(f"Unsupported solver {method!r}")

    def _update_rk4(
        self, c_i: float, c_i1: float, c_im1: float, c_i2: float, g_i: float, depth_step: float
    ) -> None:
        n = self.central_ray.ray_iter
        p_param = self.central_ray.ray_param
        c_half = (c_i1 + c_i) / 2.0
        arc_step = self._arc_step(c_i, c_i1, g_i)
        h2 = depth_step * depth_step
        c_nn_j = self._c_nn(c_i, c_i1, c_im1, depth_step)
        c_nn_half = _div(-p_param * c_i * (c_i2 - c_i1 - c_i + c_im1), h2)
        c_nn_j1 = self._c_nn(c_i1, c_i2, c_i, depth_step)

        q = self.q_vals[n]
        p = self.p_vals[n]
        k1 = (c_i * p, _cdiv(-c_nn_j * q, c_i * c_i))
        k2 = (
            c_half * (p + 0.5 * k1[0]),
            _cdiv(-c_nn_half * (q + 0.5 * k1[1]), c_half * c_half),
        )
        k3 = (
            c_half * (p + 0.5 * k2[0]),
            _cdiv(-c_nn_half * (q + 0.5 * k2[1]), c_half * c_half),
        )
        k4 = (c_i1 * (p + k3[0]), _cdiv(-c_nn_j1 * (q + k3[1]), c_i1 * c_i1))

        self.q_vals[n + 1] = q + _cdiv(arc_step * (k1[0] + 2.0 * (k2[0] + k3[0]) + k4[0]), 6.0)
        self.p_vals[n + 1] = p + _cdiv(arc_step * (k1[1] + 2.0 * (k2[1] + k3[1]) + k4[1]), 6.0)

    def _update_radau3_ia(
        self, c_i: float, c_i1: float, c_im1: float, c_i2: float, g_i: float, depth_step: float
    ) -> None:
        n = self.central_ray.ray_iter
        arc_step = self._arc_step(c_i, c_i1, g_i)
        c_23 = (c_i1 + c_i1 + c_i) / 3.0
        c_nn_i = self._c_nn(c_i, c_i1, c_im1, depth_step)
        c_nn_i1 = self._c_nn(c_i1, c_i2, c_i, depth_step)
        c_nn_23 = (c_nn_i1 + c_nn_i1 + c_nn_i) / 3.0
        denom = 25.0 * c_nn_23 + c_23

        cmat_11 = 1.0 + _div(15.0 * c_nn_23, denom)
        cmat_12 = _div(4.0 * c_i * c_i, arc_step * c_nn_i1) - _div(3.0 * c_23 * c_23, denom)
        cmat_21 = _div(4.0, arc_step * c_i) + _div(3.0 * c_nn_23, c_23 * denom)
        cmat_22 = 1.0 + _div(15.0 * c_nn_23, denom)
        dmat_11 = -1.0 - _div(15.0 * c_nn_23, denom)
        dmat_12 = _div(3.0 * c_23 * c_23, denom)
        dmat_21 = _div(-3.0 * c_nn_23, c_23 * denom)
        dmat_22 = -1.0 - _div(15.0 * c_nn_23, denom)
        coeff = _div(4.0, arc_step * (cmat_11 * cmat_22 - cmat_12 * cmat_21))

        q = self.q_vals[n]
        p = self.p_vals[n]
        kn1_1 = coeff * (
            q * (cmat_22 * dmat_11 - cmat_12 * dmat_21)
            + p * (cmat_22 * dmat_12 - cmat_12 * dmat_22)
        )
        kn1_2 = coeff * (
            q * (-cmat_21 * dmat_11 + cmat_11 * dmat_21)
            + p * (-cmat_21 * dmat_12 + cmat_11 * dmat_22)
        )
        q_term = _cdiv(12.0 * q, arc_step) + 3.0 * kn1_1
        p_term = _cdiv(12.0 * p, arc_step) + 3.0 * kn1_2
        kn2_1 = _cdiv(-5.0 * c_nn_23 * q_term + c_23 * c_23 * p_term, denom)
        kn2_2 = _cdiv(_cdiv(-c_nn_23 * q_term, c_23) - 5.0 * c_23 * c_23 * p_term, denom)

        self.q_vals[n + 1] = q + _cdiv(arc_step * (kn1_1 + 3.0 * kn2_1), 4.0)
        self.p_vals[n + 1] = p + _cdiv(arc_step * (kn1_2 + 3.0 * kn2_2), 4.0)

    def _update_back_euler(
        self, c_i: float, c_i1: float, c_i2: float, g_i: float, depth_step: float
    ) -> None:
        n = self.central_ray.ray_iter
        arc_step = self._arc_step(c_i, c_i1, g_i)
        c_nn_i1 = self._c_nn(c_i1, c_i2, c_i, depth_step)
        coeff = _div(c_i1, 1.0 - arc_step * arc_step * c_nn_i1)
        q = self.q_vals[n]
        p = self.p_vals[n]
        self.q_vals[n + 1] = coeff * (q + arc_step * c_i1 * p)
        self.p_vals[n + 1] = _cdiv(coeff * (p - arc_step * c_nn_i1 * q), c_i1 * c_i1)

    def truncate(self) -> None:
        """Drop the unused tail of the central ray and of the p and q lists."""
        self.central_ray.truncate()
        keep = self.central_ray.ray_iter + 1
        del self.q_vals[keep:]
        del self.p_vals[keep:]


def trace_beam(init: RayInit, prog_config: ProgConfig, env_config: EnvConfig) -> Beam:
    """Trace one beam until it leaves the range limits or runs out of iterations."""
    limit = prog_config.max_it - init.init_iter
    if limit < 0:
        raise ValueError("Initial iteration exceeds the maximum iteration count")
    beam = Beam.from_init(init, prog_config)
    method = SolverMethod.from_name(prog_config.pq_solver)
    ssp = env_config.ssp
    step = prog_config.depth_step
    ray = beam.central_ray

    depth_dir = _signum(math.sin(init.init_ang))
    start = ray.depth_vals[0]
    c_im1 = ssp.sound_speed(start - depth_dir * step)
    c_i = ssp.sound_speed(start)
    c_i1 = ssp.sound_speed(start + depth_dir * step)
    c_i2 = ssp.sound_speed(start + 2.0 * depth_dir * step)

    while ray.ray_iter < limit and init.min_range <= ray.range_vals[ray.ray_iter] <= init.max_range:
        g_i = (c_i1 - c_i) / step
        beam.update_pq(c_i, c_i1, c_im1, c_i2, g_i, step, method)
        if ray.update_iteration(c_i, c_i1, g_i, depth_dir, step) is DirChange.KEEP_DIR:
            c_im1, c_i, c_i1 = c_i, c_i1, c_i2
        else:
            c_im1, c_i1 = c_i1, c_im1
            depth_dir = -depth_dir
        c_i2 = ssp.sound_speed(ray.depth_vals[ray.ray_iter + 1] + 2.0 * depth_dir * step)

        reflection = env_config.check_reflections(ray)
        if reflection is not None:
            ray.apply_reflection(reflection, ssp)
            depth_dir = _signum(math.sin(reflection.angle))
            depth = reflection.depth
            c_i = ssp.sound_speed(depth)
            c_im1 = ssp.sound_speed(depth - depth_dir * step)
            c_i1 = ssp.sound_speed(depth + depth_dir * step)
            c_i2 = ssp.sound_speed(depth + 2.0 * depth_dir * step)
        ray.ray_iter += 1

    beam.truncate()
    return beam


def trace_beams(config: Config) -> list[Beam]:
    """Trace a beam for every ray described by the configuration."""
    return [
        trace_beam(init, config.prog_config, config.env_config) for init in ray_inits(config)
    ]