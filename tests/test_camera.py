"""Unit tests for the thin-lens camera.

Tests cover:
- Camera parameter validation
- Viewport basis (orientation, field of view, roll)
- Ray generation through the viewport (pinhole and thin lens)
- Shutter time sampling
"""

import math

import numpy as np
import pytest
import taichi as ti


def _generate_rays(u, v, n):
    """Generate n rays through (u, v) with independent streams."""
    from pathtracer.camera.thin_lens import get_ray
    from pathtracer.core.sampler import seed_stream

    origins = ti.Vector.field(3, dtype=ti.f64, shape=n)
    directions = ti.Vector.field(3, dtype=ti.f64, shape=n)
    times = ti.field(dtype=ti.f64, shape=n)

    @ti.kernel
    def test_kernel(pu: ti.f64, pv: ti.f64):
        for i in range(n):
            s = seed_stream(ti.cast(17, ti.u32), ti.cast(i, ti.u32), ti.cast(0, ti.u32))
            _, ray = get_ray(pu, pv, s)
            origins[i] = ray.origin
            directions[i] = ray.direction
            times[i] = ray.time

    test_kernel(u, v)
    return origins.to_numpy(), directions.to_numpy(), times.to_numpy()


class TestCameraValidation:
    """Tests for Camera construction errors."""

    def _camera(self, **kwargs):
        from pathtracer.camera.thin_lens import Camera

        params = dict(origin=(0.0, 0.0, 0.0), target=(0.0, 0.0, -1.0), aspect_ratio=1.0, fov=90.0)
        params.update(kwargs)
        return Camera(**params)

    def test_valid_camera(self):
        camera = self._camera(aperture=0.5, focal_distance=3.0, shutter_close=1.0)
        assert camera.aperture == 0.5

    @pytest.mark.parametrize(
        "kwargs, message",
        [
            ({"aspect_ratio": 0.0}, "Aspect ratio"),
            ({"fov": 0.0}, "Field of view"),
            ({"fov": 180.0}, "Field of view"),
            ({"aperture": -0.1}, "Aperture"),
            ({"focal_distance": 0.0}, "Focal distance"),
            ({"shutter_open": 1.0, "shutter_close": 0.5}, "Shutter"),
            ({"target": (0.0, 0.0, 0.0)}, "must differ"),
            ({"target": (0.0, 5.0, 0.0)}, "parallel to world up"),
            ({"fov": float("nan")}, "finite"),
        ],
    )
    def test_invalid_camera(self, kwargs, message):
        with pytest.raises(ValueError, match=message):
            self._camera(**kwargs)


class TestCameraBasis:
    """Tests for compute_camera_basis."""

    def test_basis_looking_down_negative_z(self):
        """Test right is +x, down is -y and the viewport spans the field of view."""
        from pathtracer.camera.thin_lens import Camera, compute_camera_basis

        camera = Camera(origin=(0, 0, 0), target=(0, 0, -1), aspect_ratio=2.0, fov=90.0)
        basis = compute_camera_basis(camera)

        np.testing.assert_allclose(basis.horizontal_unit, [1.0, 0.0, 0.0], atol=1e-9)
        np.testing.assert_allclose(basis.vertical_unit, [0.0, -1.0, 0.0], atol=1e-9)
        # width = 2 * tan(45 deg) = 2, height = width / aspect = 1
        np.testing.assert_allclose(basis.horizontal, [2.0, 0.0, 0.0], atol=1e-9)
        np.testing.assert_allclose(basis.vertical, [0.0, -1.0, 0.0], atol=1e-9)
        np.testing.assert_allclose(basis.upper_left, [-1.0, 0.5, -1.0], atol=1e-9)
        assert basis.lens_radius == 0.0

    def test_focal_distance_scales_viewport(self):
        from pathtracer.camera.thin_lens import Camera, compute_camera_basis

        camera = Camera(
            origin=(0, 0, 0),
            target=(0, 0, -1),
            aspect_ratio=1.0,
            fov=90.0,
            aperture=1.0,
            focal_distance=4.0,
        )
        basis = compute_camera_basis(camera)
        np.testing.assert_allclose(basis.horizontal, [8.0, 0.0, 0.0], atol=1e-9)
        np.testing.assert_allclose(basis.upper_left, [-4.0, 4.0, -4.0], atol=1e-9)
        assert basis.lens_radius == 0.5

    def test_roll_rotates_clockwise(self):
        """Test a 90 degree roll turns image-right into world-down."""
        from pathtracer.camera.thin_lens import Camera, compute_camera_basis

        camera = Camera(origin=(0, 0, 0), target=(0, 0, -1), aspect_ratio=1.0, fov=90.0, roll=90.0)
        basis = compute_camera_basis(camera)
        np.testing.assert_allclose(basis.horizontal_unit, [0.0, -1.0, 0.0], atol=1e-9)
        np.testing.assert_allclose(basis.vertical_unit, [-1.0, 0.0, 0.0], atol=1e-9)

    def test_basis_is_orthonormal_without_roll(self):
        from pathtracer.camera.thin_lens import Camera, compute_camera_basis

        camera = Camera(origin=(13, 2, 3), target=(0, 0, 0), aspect_ratio=1.5, fov=30.0)
        basis = compute_camera_basis(camera)
        direction = -np.array(camera.origin, dtype=np.float64)
        direction /= np.linalg.norm(direction)

        assert np.linalg.norm(basis.horizontal_unit) == pytest.approx(1.0)
        assert np.linalg.norm(basis.vertical_unit) == pytest.approx(1.0)
        assert np.dot(basis.horizontal_unit, basis.vertical_unit) == pytest.approx(0.0, abs=1e-9)
        assert np.dot(basis.horizontal_unit, direction) == pytest.approx(0.0, abs=1e-9)
        assert np.dot(basis.vertical_unit, direction) == pytest.approx(0.0, abs=1e-9)

    def test_rolled_basis_on_tilted_view(self):
        """Test the rolled basis when the view direction is not horizontal.

        Roll mixes world-up into the horizontal axis, so it tilts toward the
        view direction by -sin(roll) * direction.y and the vertical axis is
        the plain cross product rather than a unit vector.
        """
        from pathtracer.camera.thin_lens import Camera, compute_camera_basis

        camera = Camera(origin=(13, 2, 3), target=(0, 0, 0), aspect_ratio=1.5, fov=30.0, roll=17.0)
        basis = compute_camera_basis(camera)
        direction = -np.array(camera.origin, dtype=np.float64)
        direction /= np.linalg.norm(direction)
        roll = math.radians(17.0)

        assert np.linalg.norm(basis.horizontal_unit) == pytest.approx(1.0)
        np.testing.assert_allclose(
            basis.vertical_unit, np.cross(direction, basis.horizontal_unit), atol=1e-12
        )
        assert np.dot(basis.horizontal_unit, direction) == pytest.approx(
            -math.sin(roll) * direction[1], abs=1e-12
        )


class TestGetRay:
    """Tests for ray generation."""

    def test_center_ray_points_at_target(self):
        from pathtracer.camera.thin_lens import Camera, setup_camera

        setup_camera(Camera(origin=(1, 2, 3), target=(1, 2, -7), aspect_ratio=1.0, fov=60.0))
        origins, directions, _ = _generate_rays(0.5, 0.5, 8)

        np.testing.assert_allclose(origins, np.tile([1.0, 2.0, 3.0], (8, 1)), atol=1e-6)
        np.testing.assert_allclose(directions, np.tile([0.0, 0.0, -1.0], (8, 1)), atol=1e-6)

    def test_corner_ray(self):
        """Test (0, 0) maps to the upper-left corner of the viewport."""
        from pathtracer.camera.thin_lens import Camera, setup_camera

        setup_camera(Camera(origin=(0, 0, 0), target=(0, 0, -1), aspect_ratio=2.0, fov=90.0))
        _, directions, _ = _generate_rays(0.0, 0.0, 1)

        expected = np.array([-1.0, 0.5, -1.0]) / 1.5
        np.testing.assert_allclose(directions[0], expected, atol=1e-6)

    def test_directions_are_unit_length(self):
        from pathtracer.camera.thin_lens import Camera, setup_camera

        setup_camera(
            Camera(
                origin=(0, 0, 0),
                target=(0, 0, -1),
                aspect_ratio=1.0,
                fov=90.0,
                aperture=0.5,
                focal_distance=2.0,
            )
        )
        _, directions, _ = _generate_rays(0.2, 0.9, 256)
        np.testing.assert_allclose(np.linalg.norm(directions, axis=1), 1.0, atol=1e-5)

    def test_thin_lens_rays_converge_at_focal_plane(self):
        """Test lens rays through the same (u, v) meet at the focal distance."""
        from pathtracer.camera.thin_lens import Camera, setup_camera

        focal_distance = 5.0
        setup_camera(
            Camera(
                origin=(0, 0, 0),
                target=(0, 0, -1),
                aspect_ratio=1.0,
                fov=90.0,
                aperture=1.0,
                focal_distance=focal_distance,
            )
        )
        origins, directions, _ = _generate_rays(0.5, 0.5, 256)

        # Origins spread over the lens disk in the z = 0 plane
        radii = np.linalg.norm(origins[:, :2], axis=1)
        assert radii.max() <= 0.5 + 1e-5
        assert radii.max() > 0.1
        np.testing.assert_allclose(origins[:, 2], 0.0, atol=1e-6)

        # Every ray passes through the focal point (0, 0, -5)
        t = -focal_distance / directions[:, 2]
        points = origins + directions * t[:, None]
        np.testing.assert_allclose(points[:, :2], 0.0, atol=1e-4)


class TestShutter:
    """Tests for ray time sampling."""

    def test_instantaneous_shutter(self):
        from pathtracer.camera.thin_lens import Camera, setup_camera

        setup_camera(
            Camera(
                origin=(0, 0, 0),
                target=(0, 0, -1),
                aspect_ratio=1.0,
                fov=90.0,
                shutter_open=0.25,
                shutter_close=0.25,
            )
        )
        _, _, times = _generate_rays(0.5, 0.5, 32)
        np.testing.assert_allclose(times, 0.25)

    def test_open_shutter_samples_interval(self):
        from pathtracer.camera.thin_lens import Camera, setup_camera

        setup_camera(
            Camera(
                origin=(0, 0, 0),
                target=(0, 0, -1),
                aspect_ratio=1.0,
                fov=90.0,
                shutter_open=1.0,
                shutter_close=3.0,
            )
        )
        _, _, times = _generate_rays(0.5, 0.5, 2048)
        assert times.min() >= 1.0
        assert times.max() < 3.0 + 1e-6
        assert abs(times.mean() - 2.0) < 0.1


class TestCameraInfo:
    """Tests for get_camera_info."""

    def test_info_reflects_setup(self):
        from pathtracer.camera.thin_lens import Camera, get_camera_info, setup_camera

        setup_camera(
            Camera(
                origin=(0, 1, 0),
                target=(0, 1, -1),
                aspect_ratio=1.0,
                fov=90.0,
                aperture=0.2,
                shutter_close=1.0,
            )
        )
        info = get_camera_info()
        assert info["origin"] == pytest.approx((0.0, 1.0, 0.0))
        assert info["horizontal_unit"] == pytest.approx((1.0, 0.0, 0.0), abs=1e-6)
        assert info["lens_radius"] == pytest.approx(0.1)
        assert info["shutter_open"] == 0.0
        assert info["shutter_close"] == 1.0
        assert math.isclose(info["horizontal"][0], 2.0, rel_tol=1e-6)
