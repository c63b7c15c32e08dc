# guacs

Geometric ray tracing and Gaussian beam tracing of sound through a layered
ocean. The sound speed profile is a B-spline in depth, and obstacles such as
the sea floor or the sea surface are polygonal bodies that rays reflect off.
The package is pure Python with no dependencies outside the standard library.

## Installation

```
pip install .
```

To run the tests:

```
pip install .[test]
pytest
```

## Modules

- `guacs.splines`: `deboor(x, knots, coeffs, order)` evaluates a B-spline
  with de Boor's algorithm.
- `guacs.geometry`: `Ssp`, `Body`, `Ray`, `Intersection`, `Reflection`,
  `DirChange` and the constant `REFLECT_OFFSET`.
- `guacs.config`: `ProgConfig`, `EnvConfig`, `SourceConfig`, `Config` and
  `load_config(path)`.
- `guacs.rays`: `RayInit`, `init_ray`, `trace_ray`, `ray_inits` and
  `trace_rays`.
- `guacs.beams`: `SolverMethod`, `Beam`, `trace_beam` and `trace_beams`.

## Describing a scene

A scene is a `Config` made of three parts:

- `ProgConfig`: the iteration limit `max_it`, the `depth_step`, the range
  window `min_range`/`max_range` that a ray must stay inside, an
  `output_path`, and the name of the p-q solver used for beams in `pq_solver`
  (`"RungeKutta4"`, `"Radau3IA"` or `"BackwardEuler"`).
- `EnvConfig`: the sound speed profile `ssp`, a `swell_height` and a list of
  `bodies`. An `Ssp` holds B-spline `knots`, `coefs` and `degree`; a `Body`
  is a polygon given by its `range_vals` and `depth_vals`, one edge between
  each pair of consecutive vertices.
- `sources`: a list of `SourceConfig`, each with `range_pos`, `depth_pos`,
  `ray_fan_limits` (two launch angles in radians), `n_rays`, `source_level`
  and `frequency`. The rays of a source are spread evenly between the two
  launch angles; a source with one ray launches it at the first angle.

`Config.from_dict(data)` builds a configuration from a decoded JSON document
and `load_config(path)` reads one from a JSON file. A missing field, a value
of the wrong type, a negative count or a fan that does not hold exactly two
angles raises `ValueError`. The document looks like this:

```json
{
  "prog_config": {
    "max_it": 2000,
    "depth_step": 1.0,
    "min_range": 0.0,
    "max_range": 5000.0,
    "output_path": "out",
    "pq_solver": "RungeKutta4"
  },
  "env_config": {
    "ssp": {
      "ssp_knots": [0.0, 0.0, 1000.0, 1000.0],
      "ssp_coefs": [1500.0, 1520.0],
      "ssp_degree": 1
    },
    "swell_height": 0.0,
    "bodies": [
      {
        "range_vals": [-10.0, 6000.0, 6000.0, -10.0, -10.0],
        "depth_vals": [900.0, 900.0, 950.0, 950.0, 900.0]
      }
    ]
  },
  "sources": [
    {
      "range_pos": 0.0,
      "depth_pos": 100.0,
      "ray_fan_limits": [-0.2, 0.2],
      "n_rays": 5,
      "source_level": 180.0,
      "frequency": 50.0
    }
  ]
}
```

The sound speed profile is evaluated only where the spline is fully defined:
a depth at or before the start of the first full knot interval, or beyond the
last knot, raises `ValueError`. Beam tracing also evaluates the profile one
and two depth steps above and below the current depth, so sources and rays
must keep clear of the ends of the profile by that much.

## Tracing

```python
from pathlib import Path

from guacs.config import load_config
from guacs.rays import trace_rays
from guacs.beams import trace_beams

config = load_config("scene.json")
Path(config.prog_config.output_path).mkdir(exist_ok=True)

for ray in trace_rays(config):
    print(ray.ray_id, ray.range_vals[-1], ray.depth_vals[-1], ray.time_vals[-1])
    ray.write_csv(config.prog_config.output_path)

for beam in trace_beams(config):
    print(beam.central_ray.ray_id, beam.q_vals[-1], beam.p_vals[-1])
```

Each ray is traced one depth step at a time. When the ray turns inside a
layer it keeps its depth and reverses its vertical direction. After every
step the bodies are checked in order, and the first one the step crosses
reflects the ray about the crossed edge; the ray is then restarted
`REFLECT_OFFSET` away from the body along its new direction. Tracing stops
when the iteration limit is reached or the ray's range leaves the range
window, and the value lists are then cut down to the points actually traced.
Every ray gets a random UUID as its `ray_id`. Rays are traced one after
another, in source order.

`Ray.write_csv(output_dir)` writes `<output_dir>/<ray_id>.csv` with one
`range,depth,time` row per step and returns the path. The directory must
already exist, and the last traced point is not written.

`trace_beams` follows the same central rays and also integrates the complex
`p_vals` and `q_vals` along them with the solver named in `pq_solver`
(`SolverMethod.from_name`); an unknown solver name raises `ValueError`.
`q` starts at `1j / c` for the sound speed `c` at the source and `p` at `1`.

## Building blocks

- `deboor(x, knots, coeffs, order)` evaluates a B-spline; knots must be in
  increasing order.
- `Ssp.sound_speed(depth)` gives the sound speed at a depth.
- `Body.find_intersection(ray)` returns the nearest `Intersection` of the
  ray's current step with an edge of the polygon, or `None`.
- `Body.reflect(ray)` returns a `Reflection` (point, time and outgoing
  angle), or `None` when the step does not hit the body.
- `Body.edge_angle(edge_id)` gives an edge's angle folded into
  (-pi/2, pi/2].
- `EnvConfig.check_reflections(ray)` returns the reflection off the first
  body that is hit.
- `Ray.update_iteration(...)`, `Ray.apply_reflection(...)` and
  `Ray.truncate()` are the single steps the tracers are built from, and
  `Beam.update_pq(...)` and `Beam.truncate()` their beam counterparts.

## What it does not do

There is no command-line program: scenes are traced by calling the
functions above from Python. The package computes ray paths, travel times
and beam p-q values only; it does not compute transmission loss or pressure
fields, does not use `source_level`, `frequency` or `swell_height` in any
calculation, and does not plot results. Bodies only reflect rays; there is
no transmission into them.