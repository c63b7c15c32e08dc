import math

import pytest

from guacs.config import Config, EnvConfig, ProgConfig, SourceConfig
from guacs.geometry import Body, Ssp
from guacs.rays import RayInit, init_ray, ray_inits, trace_ray, trace_rays


def _ssp():
    return Ssp(knots=[0.0, 0.0, 2000.0, 2000.0], coefs=[1500.0, 1600.0, 0.0, 0.0], degree=1)


def _prog(max_it=50, max_range=1e9, min_range=0.0):
    return ProgConfig(max_it=max_it, depth_step=10.0, max_range=max_range,
                      min_range=min_range, output_path="out", pq_solver="RungeKutta4")


def _env(bodies=()):
    return EnvConfig(ssp=_ssp(), swell_height=0.0, bodies=list(bodies))


def _source(n_rays=1, limits=(0.3, 0.3), depth=100.0, range_pos=0.0):
    return SourceConfig(range_pos=range_pos, depth_pos=depth, ray_fan_limits=limits,
                        n_rays=n_rays, source_level=180.0, frequency=50.0)


def _init(angle=0.3, depth=100.0, range_pos=0.0, prog=None):
    prog = prog or _prog()
    return RayInit.from_source(_source(limits=(angle, angle), depth=depth, range_pos=range_pos),
                               0, _ssp().sound_speed(depth), prog)


def test_from_source_spreads_fan_evenly():
    source = _source(n_rays=3, limits=(-0.5, 0.5))
    angles = [RayInit.from_source(source, i, 1500.0, _prog()).init_ang for i in range(3)]
    assert angles[0] == -0.5
    assert angles[2] == 0.5
    assert angles[1] == pytest.approx(0.0)


def test_from_source_single_ray_uses_lower_limit():
    init = RayInit.from_source(_source(n_rays=1, limits=(0.2, 0.9)), 0, 1500.0, _prog())
    assert init.init_ang == 0.2
    assert init.init_time == 0.0
    assert init.init_iter == 0
    assert (init.min_range, init.max_range) == (0.0, 1e9)


def test_init_ray_preallocates_and_places_source():
    prog = _prog(max_it=7)
    init = _init(range_pos=3.0)
    ray = init_ray(init, prog)
    assert len(ray.range_vals) == len(ray.depth_vals) == len(ray.time_vals) == 8
    assert ray.range_vals[0] == 3.0
    assert ray.depth_vals[0] == 100.0
    assert ray.ray_param == pytest.approx(math.cos(0.3) / init.init_sound_speed)
    assert ray.ray_iter == 0


def test_trace_ray_runs_to_iteration_limit():
    prog = _prog(max_it=50)
    ray = trace_ray(_init(prog=prog), prog, _env())
    assert ray.ray_iter == 50
    assert len(ray.depth_vals) == 51
    steps = [b - a for a, b in zip(ray.depth_vals, ray.depth_vals[1:])]
    assert all(s == pytest.approx(prog.depth_step) for s in steps)
    assert all(b > a for a, b in zip(ray.range_vals, ray.range_vals[1:]))
    assert all(b >= a for a, b in zip(ray.time_vals, ray.time_vals[1:]))


def test_trace_ray_stops_outside_range_limits():
    prog = _prog(max_it=50, max_range=50.0)
    ray = trace_ray(_init(prog=prog), prog, _env())
    assert ray.ray_iter < prog.max_it
    assert len(ray.range_vals) == ray.ray_iter + 1
    assert ray.range_vals[-1] > prog.max_range
    assert all(r <= prog.max_range for r in ray.range_vals[:-1])


def test_trace_ray_starting_outside_limits_does_not_move():
    prog = _prog(min_range=0.0)
    ray = trace_ray(_init(range_pos=-5.0, prog=prog), prog, _env())
    assert ray.range_vals == [-5.0]
    assert ray.depth_vals == [100.0]


def test_trace_ray_turns_in_increasing_sound_speed():
    prog = _prog(max_it=200)
    ray = trace_ray(_init(prog=prog), prog, _env())
    deepest = max(ray.depth_vals)
    assert any(a == b for a, b in zip(ray.depth_vals, ray.depth_vals[1:]))
    assert ray.depth_vals[-1] < deepest
    assert all(b > a for a, b in zip(ray.range_vals, ray.range_vals[1:]))


def test_trace_ray_reflects_off_body():
    prog = _prog(max_it=40)
    floor = Body(range_vals=[-1e6, 1e6], depth_vals=[305.0, 305.0])
    ray = trace_ray(_init(prog=prog), prog, _env([floor]))
    assert max(ray.depth_vals) == pytest.approx(305.0)
    assert all(d <= 305.0 + 1e-9 for d in ray.depth_vals)
    assert ray.depth_vals[-1] < 305.0


def test_trace_ray_rejects_bad_initial_iteration():
    prog = _prog(max_it=3)
    init = RayInit(range_pos=0.0, depth_pos=100.0, init_time=0.0, init_ang=0.3, init_iter=5,
                   init_sound_speed=1505.0, min_range=0.0, max_range=1e9, frequency=50.0)
    with pytest.raises(ValueError):
        trace_ray(init, prog, _env())


def _config():
    return Config(
        prog_config=_prog(max_it=5),
        env_config=_env(),
        sources=[
            _source(n_rays=2, limits=(0.2, 0.4), depth=100.0),
            _source(n_rays=1, limits=(0.3, 0.3), depth=200.0),
        ],
    )


def test_ray_inits_follow_source_order():
    cfg = _config()
    inits = ray_inits(cfg)
    assert [i.depth_pos for i in inits] == [100.0, 100.0, 200.0]
    assert [i.init_ang for i in inits] == pytest.approx([0.2, 0.4, 0.3])
    assert inits[2].init_sound_speed == cfg.env_config.ssp.sound_speed(200.0)


def test_trace_rays_traces_every_ray():
    cfg = _config()
    rays = trace_rays(cfg)
    assert len(rays) == 3
    assert [r.depth_vals[0] for r in rays] == [100.0, 100.0, 200.0]
    assert len({r.ray_id for r in rays}) == 3
    assert all(len(r.range_vals) == r.ray_iter + 1 for r in rays)