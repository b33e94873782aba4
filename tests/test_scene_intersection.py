"""Unit tests for scene-level intersection queries.

Tests cover:
- Collecting every root along a ray, sorted by t
- Nearest hit selection and the EPSILON threshold
- Shadow queries
- Shading context: eye vector, normals, inside flag, offset points
- Refractive indices on either side of each intersection
"""

import math

import pytest

SQRT2_2 = math.sqrt(2.0) / 2.0


def _close(a, b, tol=1e-4):
    return all(abs(x - y) < tol for x, y in zip(a, b))


class TestIntersectAll:
    """Tests for collecting every root."""

    def test_default_world_roots(self, default_world):
        """Both spheres contribute two sorted roots."""
        from whitted.scene.intersection import intersect_all

        roots = intersect_all((0, 0, -5), (0, 0, 1))
        ts = [t for t, _ in roots]
        assert len(ts) == 4
        for actual, expected in zip(ts, [4.0, 4.5, 5.5, 6.0]):
            assert abs(actual - expected) < 1e-4
        assert [shape for _, shape in roots] == [0, 1, 1, 0]

    def test_translated_sphere_miss(self):
        from whitted.scene.intersection import intersect_all
        from whitted.scene.manager import SceneManager

        scene = SceneManager()
        scene.add_sphere(transform=[("translate", 5, 0, 0)])
        assert intersect_all((0, 0, -5), (0, 0, 1)) == []

    def test_scaled_sphere(self):
        """t-values stay in world units through a scaled shape."""
        from whitted.scene.intersection import intersect_all
        from whitted.scene.manager import SceneManager

        scene = SceneManager()
        scene.add_sphere(transform=[("scale", 2, 2, 2)])
        roots = intersect_all((0, 0, -5), (0, 0, 1))
        assert abs(roots[0][0] - 3.0) < 1e-4
        assert abs(roots[1][0] - 7.0) < 1e-4


class TestNearestHit:
    """Tests for choosing the visible intersection."""

    def test_nearest_in_front(self, default_world):
        from whitted.scene.intersection import nearest_hit

        t, shape = nearest_hit((0, 0, -5), (0, 0, 1))
        assert abs(t - 4.0) < 1e-4
        assert shape == 0

    def test_origin_inside_skips_negative_roots(self, default_world):
        from whitted.scene.intersection import nearest_hit

        t, shape = nearest_hit((0, 0, 0), (0, 0, 1))
        assert abs(t - 0.5) < 1e-4
        assert shape == 1

    def test_miss(self, default_world):
        from whitted.scene.intersection import nearest_hit

        assert nearest_hit((0, 0, -5), (0, 1, 0)) is None

    def test_hits_at_origin_are_ignored(self):
        """A root within EPSILON of the origin does not count."""
        from whitted.scene.intersection import nearest_hit
        from whitted.scene.manager import SceneManager

        scene = SceneManager()
        scene.add_plane()
        assert nearest_hit((0, 0, 0), (0, -1, 0)) is None
        t, _ = nearest_hit((0, 1, 0), (0, -1, 0))
        assert abs(t - 1.0) < 1e-5


class TestShadows:
    """Tests for point-to-light occlusion."""

    @pytest.mark.parametrize(
        "point,expected",
        [
            ((0, 10, 0), False),
            ((10, -10, 10), True),
            ((-20, 20, -20), False),
            ((-2, 2, -2), False),
        ],
    )
    def test_default_world(self, default_world, point, expected):
        from whitted.scene.intersection import point_is_shadowed

        assert point_is_shadowed(point) is expected


class TestComputations:
    """Tests for the shading context at an intersection."""

    def test_outside_hit(self):
        from whitted.scene.intersection import compute_hit
        from whitted.scene.manager import SceneManager

        scene = SceneManager()
        scene.add_sphere()
        comps = compute_hit((0, 0, -5), (0, 0, 1), 4.0, 0)
        assert _close(comps["point"], (0, 0, -1))
        assert _close(comps["eyev"], (0, 0, -1))
        assert _close(comps["normalv"], (0, 0, -1))
        assert comps["inside"] is False

    def test_inside_hit_flips_normal(self):
        from whitted.scene.intersection import compute_hit
        from whitted.scene.manager import SceneManager

        scene = SceneManager()
        scene.add_sphere()
        comps = compute_hit((0, 0, 0), (0, 0, 1), 1.0, 0)
        assert _close(comps["point"], (0, 0, 1))
        assert _close(comps["eyev"], (0, 0, -1))
        assert _close(comps["normalv"], (0, 0, -1))
        assert comps["inside"] is True

    def test_offset_points(self):
        """over_point lies just above the surface, under_point just below."""
        from whitted.scene.intersection import EPSILON, compute_hit
        from whitted.scene.manager import SceneManager

        scene = SceneManager()
        scene.add_sphere(transform=[("translate", 0, 0, 1)])
        comps = compute_hit((0, 0, -5), (0, 0, 1), 5.0, 0)
        assert comps["over_point"][2] < -EPSILON / 2
        assert comps["point"][2] > comps["over_point"][2]
        assert comps["under_point"][2] > EPSILON / 2
        assert comps["point"][2] < comps["under_point"][2]

    def test_reflect_vector(self):
        from whitted.scene.intersection import compute_hit
        from whitted.scene.manager import SceneManager

        scene = SceneManager()
        scene.add_plane()
        comps = compute_hit((0, 1, -1), (0, -SQRT2_2, SQRT2_2), math.sqrt(2.0), 0)
        assert _close(comps["reflectv"], (0, SQRT2_2, SQRT2_2))

    def test_transformed_normal(self):
        """Normals go through the inverse transpose and are renormalized."""
        from whitted.scene.intersection import compute_hit
        from whitted.scene.manager import SceneManager

        scene = SceneManager()
        scene.add_sphere(transform=[("translate", 0, 1, 0)])
        origin = (0.0, 1.70711 + 5.0, -0.70711)
        comps = compute_hit(origin, (0, -1, 0), 5.0, 0)
        assert _close(comps["normalv"], (0, 0.70711, -0.70711))

    @pytest.mark.parametrize(
        "index,n1,n2",
        [
            (0, 1.0, 1.5),
            (1, 1.5, 2.0),
            (2, 2.0, 2.5),
            (3, 2.5, 2.5),
            (4, 2.5, 1.5),
            (5, 1.5, 1.0),
        ],
    )
    def test_refractive_indices(self, index, n1, n2):
        """n1 and n2 at each boundary of three overlapping glass spheres."""
        from whitted.materials.material import Material
        from whitted.scene.intersection import compute_hit, intersect_all
        from whitted.scene.manager import SceneManager

        scene = SceneManager()
        scene.add_sphere(
            Material(transparency=1.0, refractive_index=1.5), [("scale", 2, 2, 2)]
        )
        scene.add_sphere(
            Material(transparency=1.0, refractive_index=2.0), [("translate", 0, 0, -0.25)]
        )
        scene.add_sphere(
            Material(transparency=1.0, refractive_index=2.5), [("translate", 0, 0, 0.25)]
        )

        origin, direction = (0, 0, -4), (0, 0, 1)
        roots = intersect_all(origin, direction)
        assert len(roots) == 6
        t, shape = roots[index]
        comps = compute_hit(origin, direction, t, shape)
        assert abs(comps["n1"] - n1) < 1e-5
        assert abs(comps["n2"] - n2) < 1e-5


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
