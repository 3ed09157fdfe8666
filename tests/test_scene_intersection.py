"""Unit tests for scene-level intersection.

Tests cover:
- Uploading a Scene into Taichi fields
- Closest-hit selection across multiple spheres
- Material ids carried on hit records
- Bounding-box culling giving the same results as the plain scan
- Moving spheres and shutter-interval bounds
"""

import pytest
import taichi as ti


def _intersect(origin, direction, time=0.0, use_bounds=0, min_distance=0.001, max_distance=1e6):
    from pathtracer.core.ray import make_ray, vec3
    from pathtracer.scene.intersection import intersect_scene

    hit = ti.field(dtype=ti.i32, shape=())
    t_val = ti.field(dtype=ti.f64, shape=())
    material_id = ti.field(dtype=ti.i32, shape=())

    @ti.kernel
    def test_kernel(o: vec3, d: vec3, time: ti.f64, bounds: ti.i32, t_min: ti.f64, t_max: ti.f64):
        rec = intersect_scene(make_ray(o, d, time), t_min, t_max, bounds)
        hit[None] = rec.hit
        t_val[None] = rec.t
        material_id[None] = rec.material_id

    test_kernel(
        ti.math.vec3(*origin),
        ti.math.vec3(*direction),
        time,
        use_bounds,
        min_distance,
        max_distance,
    )
    return hit[None], t_val[None], material_id[None]


@pytest.fixture
def two_sphere_scene():
    """A red sphere in front of a blue sphere along -z."""
    from pathtracer.scene.intersection import load_scene
    from pathtracer.scene.manager import Scene

    scene = Scene()
    red = scene.add_lambertian_material((1.0, 0.0, 0.0))
    blue = scene.add_specular_material((0.0, 0.0, 1.0))
    scene.add_sphere((0.0, 0.0, -10.0), 1.0, blue)
    scene.add_sphere((0.0, 0.0, -5.0), 1.0, red)
    load_scene(scene)
    return scene


class TestLoadScene:
    """Tests for load_scene."""

    def test_counts(self, two_sphere_scene):
        from pathtracer.materials.registry import get_material_count
        from pathtracer.scene.intersection import get_sphere_count

        assert get_sphere_count() == 2
        assert get_material_count() == 2

    def test_reload_replaces_scene(self, two_sphere_scene):
        from pathtracer.scene.intersection import get_sphere_count, load_scene
        from pathtracer.scene.manager import Scene

        scene = Scene()
        scene.add_lambertian_sphere((0, 0, 0), 1.0, (0.5, 0.5, 0.5))
        load_scene(scene)
        assert get_sphere_count() == 1

    def test_clear_scene(self, two_sphere_scene):
        from pathtracer.scene.intersection import clear_scene, get_sphere_count

        clear_scene()
        assert get_sphere_count() == 0
        hit, _, _ = _intersect((0, 0, 0), (0, 0, -1))
        assert hit == 0

    def test_capacity_overflow(self, monkeypatch):
        from pathtracer.scene import intersection
        from pathtracer.scene.manager import Scene

        monkeypatch.setattr(intersection, "MAX_SPHERES", 2)
        scene = Scene()
        mat = scene.add_lambertian_material((0.5, 0.5, 0.5))
        for i in range(3):
            scene.add_sphere((float(i), 0.0, 0.0), 0.1, mat)
        with pytest.raises(RuntimeError, match="Maximum number of spheres"):
            intersection.load_scene(scene)


class TestIntersectScene:
    """Tests for intersect_scene."""

    def test_closest_hit_wins(self, two_sphere_scene):
        hit, t, material_id = _intersect((0, 0, 0), (0, 0, -1))
        assert hit == 1
        assert t == pytest.approx(4.0, abs=1e-5)
        assert material_id == 0

    def test_far_sphere_from_behind(self, two_sphere_scene):
        """Test a ray between the spheres pointing away from the red one."""
        hit, t, material_id = _intersect((0, 0, -7), (0, 0, -1))
        assert hit == 1
        assert t == pytest.approx(2.0, abs=1e-5)
        assert material_id == 1

    def test_miss(self, two_sphere_scene):
        hit, _, material_id = _intersect((0, 5, 0), (0, 0, -1))
        assert hit == 0
        assert material_id == -1

    def test_max_distance_limits_search(self, two_sphere_scene):
        hit, _, _ = _intersect((0, 0, 0), (0, 0, -1), max_distance=3.0)
        assert hit == 0

    @pytest.mark.parametrize(
        "origin, direction",
        [
            ((0, 0, 0), (0, 0, -1)),
            ((0, 0, -7), (0, 0, -1)),
            ((0, 0, -7), (0, 0, 1)),
            ((0.5, 0.5, 0), (0, 0, -1)),
            ((3, 0, -5), (-1, 0, 0)),
            ((0, 5, 0), (0, 0, -1)),
        ],
    )
    def test_bounds_do_not_change_results(self, two_sphere_scene, origin, direction):
        plain = _intersect(origin, direction, use_bounds=0)
        culled = _intersect(origin, direction, use_bounds=1)
        assert plain[0] == culled[0]
        assert plain[2] == culled[2]
        assert plain[1] == pytest.approx(culled[1])


class TestMovingSpheres:
    """Tests for moving spheres in the scene."""

    def test_moving_sphere_hit_follows_time(self):
        from pathtracer.scene.intersection import load_scene
        from pathtracer.scene.manager import Scene

        scene = Scene()
        mat = scene.add_lambertian_material((0.5, 0.5, 0.5))
        scene.add_moving_sphere((0, 0, -5), (0, 3, -5), 0.0, 1.0, 1.0, mat)
        load_scene(scene, 0.0, 1.0)

        for use_bounds in (0, 1):
            assert _intersect((0, 0, 0), (0, 0, -1), time=0.0, use_bounds=use_bounds)[0] == 1
            assert _intersect((0, 0, 0), (0, 0, -1), time=1.0, use_bounds=use_bounds)[0] == 0
            assert _intersect((0, 3, 0), (0, 0, -1), time=1.0, use_bounds=use_bounds)[0] == 1
