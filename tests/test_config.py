import json

import pytest

from guacs.config import Config, EnvConfig, ProgConfig, SourceConfig, load_config
from guacs.geometry import Body, Ray, Ssp


def _config_dict():
    return {
        "prog_config": {
            "max_it": 100,
            "depth_step": 10.0,
            "max_range": 5000.0,
            "min_range": 0.0,
            "output_path": "out",
            "pq_solver": "RungeKutta4",
        },
        "env_config": {
            "ssp": {
                "ssp_knots": [0.0, 0.0, 2000.0, 2000.0],
                "ssp_coefs": [1500.0, 1600.0, 0.0, 0.0],
                "ssp_degree": 1,
            },
            "swell_height": 1.5,
            "bodies": [
                {"range_vals": [0.0, 100.0], "depth_vals": [500.0, 500.0]},
            ],
        },
        "sources": [
            {
                "range_pos": 0.0,
                "depth_pos": 100.0,
                "ray_fan_limits": [-0.5, 0.5],
                "n_rays": 5,
                "source_level": 180.0,
                "frequency": 50.0,
            }
        ],
    }


def _square():
    return Body(
        range_vals=[-1.0, 1.0, 1.0, -1.0, -1.0],
        depth_vals=[-1.0, -1.0, 1.0, 1.0, -1.0],
    )


def _crossing_ray():
    return Ray(
        range_vals=[-10.0, 10.0],
        depth_vals=[-1.0, 1.0],
        time_vals=[0.0, 1.0],
        ray_param=1.0,
    )


def _env(bodies):
    return EnvConfig(ssp=Ssp(knots=[0.0, 0.0, 1.0, 1.0], coefs=[1.0, 1.0], degree=1),
                     swell_height=0.0, bodies=bodies)


def test_from_dict_reads_all_sections():
    data = _config_dict()
    cfg = Config.from_dict(data)
    assert cfg.prog_config.max_it == 100
    assert cfg.prog_config.depth_step == 10.0
    assert cfg.prog_config.pq_solver == "RungeKutta4"
    assert cfg.env_config.ssp.knots == data["env_config"]["ssp"]["ssp_knots"]
    assert cfg.env_config.ssp.degree == 1
    assert cfg.env_config.swell_height == 1.5
    assert cfg.env_config.bodies == [Body(range_vals=[0.0, 100.0], depth_vals=[500.0, 500.0])]
    assert cfg.sources[0].ray_fan_limits == (-0.5, 0.5)
    assert cfg.sources[0].n_rays == 5


def test_from_dict_ignores_unknown_fields():
    data = _config_dict()
    data["extra"] = {"anything": 1}
    cfg = Config.from_dict(data)
    assert cfg.prog_config.output_path == "out"


def test_missing_field_raises():
    data = _config_dict()
    del data["prog_config"]["depth_step"]
    with pytest.raises(ValueError, match="depth_step"):
        Config.from_dict(data)


def test_wrong_fan_limit_length_raises():
    data = _config_dict()
    data["sources"][0]["ray_fan_limits"] = [0.1, 0.2, 0.3]
    with pytest.raises(ValueError, match="ray_fan_limits"):
        Config.from_dict(data)


def test_negative_iteration_count_raises():
    data = _config_dict()
    data["prog_config"]["max_it"] = -1
    with pytest.raises(ValueError, match="max_it"):
        Config.from_dict(data)


def test_non_numeric_field_raises():
    data = _config_dict()
    data["env_config"]["swell_height"] = "tall"
    with pytest.raises(ValueError, match="swell_height"):
        Config.from_dict(data)


def test_source_config_rejects_bad_limits():
    with pytest.raises(ValueError):
        SourceConfig(range_pos=0.0, depth_pos=0.0, ray_fan_limits=(0.1,), n_rays=1,
                     source_level=0.0, frequency=1.0)


def test_load_config_round_trip(tmp_path):
    data = _config_dict()
    path = tmp_path / "config.json"
    path.write_text(json.dumps(data), encoding="utf-8")
    cfg = load_config(path)
    assert cfg == Config.from_dict(data)
    assert cfg.prog_config == ProgConfig(**data["prog_config"])


def test_load_config_invalid_json(tmp_path):
    path = tmp_path / "broken.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(ValueError):
        load_config(path)


def test_check_reflections_without_bodies():
    assert _env([]).check_reflections(_crossing_ray()) is None


def test_check_reflections_returns_first_hit():
    first = _square()
    second = Body(range_vals=[0.0, 0.0], depth_vals=[-5.0, 5.0])
    ray = _crossing_ray()
    result = _env([first, second]).check_reflections(ray)
    assert result == first.reflect(ray)


def test_check_reflections_skips_missed_bodies():
    missed = Body(range_vals=[100.0, 200.0], depth_vals=[100.0, 100.0])
    hit = _square()
    ray = _crossing_ray()
    result = _env([missed, hit]).check_reflections(ray)
    assert result == hit.reflect(ray)