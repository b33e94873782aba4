"""Unit tests for the infinite plane primitive.

Tests cover:
- Parallel and coplanar rays never hit
- Rays from above and below
- Constant normal
"""

import math

import pytest
import taichi as ti


def _intersect(origin, direction):
    from whitted.geometry.plane import intersect_plane

    ray = ti.Vector.field(3, dtype=ti.f32, shape=2)
    count = ti.field(dtype=ti.i32, shape=())
    t_val = ti.field(dtype=ti.f32, shape=())
    ray[0] = list(origin)
    ray[1] = list(direction)

    @ti.kernel
    def test_kernel():
        n, t = intersect_plane(ray[0], ray[1])
        count[None] = n
        t_val[None] = t

    test_kernel()
    return count[None], t_val[None]


class TestPlaneIntersection:
    """Tests for ray-plane intersection in object space."""

    def test_parallel_ray_misses(self):
        count, _ = _intersect((0.0, 10.0, 0.0), (0.0, 0.0, 1.0))
        assert count == 0

    def test_coplanar_ray_misses(self):
        count, _ = _intersect((0.0, 0.0, 0.0), (0.0, 0.0, 1.0))
        assert count == 0

    def test_ray_from_above(self):
        count, t = _intersect((0.0, 1.0, 0.0), (0.0, -1.0, 0.0))
        assert count == 1
        assert abs(t - 1.0) < 1e-6

    def test_ray_from_below(self):
        count, t = _intersect((0.0, -1.0, 0.0), (0.0, 1.0, 0.0))
        assert count == 1
        assert abs(t - 1.0) < 1e-6

    def test_plane_behind_ray(self):
        """Negative roots are reported; the scene intersector filters them."""
        count, t = _intersect((0.0, 1.0, 0.0), (0.0, 1.0, 0.0))
        assert count == 1
        assert abs(t + 1.0) < 1e-6

    def test_oblique_ray(self):
        s = math.sqrt(2.0) / 2.0
        count, t = _intersect((0.0, 1.0, -1.0), (0.0, -s, s))
        assert count == 1
        assert abs(t - math.sqrt(2.0)) < 1e-5


class TestPlaneNormal:
    """The plane normal is +y everywhere."""

    def test_constant_normal(self):
        from whitted.geometry.plane import plane_normal

        points = ti.Vector.field(3, dtype=ti.f32, shape=3)
        normals = ti.Vector.field(3, dtype=ti.f32, shape=3)
        points[0] = [0.0, 0.0, 0.0]
        points[1] = [10.0, 0.0, -10.0]
        points[2] = [-5.0, 0.0, 150.0]

        @ti.kernel
        def test_kernel():
            for i in range(3):
                normals[i] = plane_normal(points[i])

        test_kernel()
        for i in range(3):
            n = normals[i]
            assert abs(n[0]) < 1e-6
            assert abs(n[1] - 1.0) < 1e-6
            assert abs(n[2]) < 1e-6


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
