"""Unit tests for procedural patterns and materials.

Tests cover:
- Stripe and 3D checker evaluation in pattern space
- Pattern and object transforms through the material lookup
- Material defaults, validation and dict parsing
"""

import pytest
import taichi as ti

WHITE = (1.0, 1.0, 1.0)
BLACK = (0.0, 0.0, 0.0)


def _evaluate(pattern_type, points):
    """Evaluate a pattern with white/black colors at a list of points."""
    from whitted.materials.pattern import pattern_at

    n = len(points)
    inputs = ti.Vector.field(3, dtype=ti.f32, shape=n)
    outputs = ti.Vector.field(3, dtype=ti.f32, shape=n)
    for i, p in enumerate(points):
        inputs[i] = list(p)

    @ti.kernel
    def test_kernel(kind: ti.i32):
        for i in range(n):
            outputs[i] = pattern_at(
                kind, ti.math.vec3(1.0, 1.0, 1.0), ti.math.vec3(0.0, 0.0, 0.0), inputs[i]
            )

    test_kernel(int(pattern_type))
    return [tuple(float(c) for c in outputs[i]) for i in range(n)]


def _assert_color(actual, expected, tol=1e-4):
    for c in range(3):
        assert abs(actual[c] - expected[c]) < tol, f"{actual} != {expected}"


class TestStripe:
    """Tests for the stripe pattern."""

    def test_constant_in_y_and_z(self):
        from whitted.materials.pattern import PatternType

        colors = _evaluate(
            PatternType.STRIPE,
            [(0, 0, 0), (0, 1, 0), (0, 2, 0), (0, 0, 1), (0, 0, 2)],
        )
        for color in colors:
            _assert_color(color, WHITE)

    def test_alternates_in_x(self):
        from whitted.materials.pattern import PatternType

        points = [(0, 0, 0), (0.9, 0, 0), (1, 0, 0), (-0.1, 0, 0), (-1, 0, 0), (-1.1, 0, 0)]
        expected = [WHITE, WHITE, BLACK, BLACK, BLACK, WHITE]
        for color, e in zip(_evaluate(PatternType.STRIPE, points), expected):
            _assert_color(color, e)


class TestChecker:
    """Tests for the 3D checker pattern."""

    @pytest.mark.parametrize("axis", [0, 1, 2])
    def test_repeats_along_each_axis(self, axis):
        from whitted.materials.pattern import PatternType

        def along(v):
            p = [0.0, 0.0, 0.0]
            p[axis] = v
            return tuple(p)

        colors = _evaluate(PatternType.CHECKER, [along(0.0), along(0.99), along(1.01)])
        _assert_color(colors[0], WHITE)
        _assert_color(colors[1], WHITE)
        _assert_color(colors[2], BLACK)


class TestPatternTransforms:
    """Patterns evaluated through the shape and pattern transforms."""

    def _striped_sphere(self, shape_ops, pattern_ops):
        from whitted.materials.material import Material
        from whitted.materials.pattern import Pattern
        from whitted.scene.manager import SceneManager

        scene = SceneManager()
        material = Material(pattern=Pattern.stripe(WHITE, BLACK, pattern_ops))
        scene.add_sphere(material, shape_ops)
        return scene

    def test_object_transform(self):
        from whitted.core.shading import surface_color_at

        self._striped_sphere([("scale", 2, 2, 2)], [])
        _assert_color(surface_color_at(0, (1.5, 0.0, 0.0)), WHITE)

    def test_pattern_transform(self):
        from whitted.core.shading import surface_color_at

        self._striped_sphere([], [("scale", 2, 2, 2)])
        _assert_color(surface_color_at(0, (1.5, 0.0, 0.0)), WHITE)

    def test_object_and_pattern_transform(self):
        from whitted.core.shading import surface_color_at

        self._striped_sphere([("scale", 2, 2, 2)], [("translate", 0.5, 0, 0)])
        _assert_color(surface_color_at(0, (2.5, 0.0, 0.0)), WHITE)

    def test_unpatterned_material_uses_color(self):
        from whitted.core.shading import surface_color_at
        from whitted.materials.material import Material
        from whitted.scene.manager import SceneManager

        scene = SceneManager()
        scene.add_sphere(Material(color=(0.2, 0.4, 0.6)))
        _assert_color(surface_color_at(0, (0.0, 1.0, 0.0)), (0.2, 0.4, 0.6))


class TestPatternConfig:
    """Tests for Pattern construction and parsing."""

    def test_from_dict_scene_keys(self):
        from whitted.materials.pattern import Pattern, PatternType

        pattern = Pattern.from_dict(
            {
                "type": "3d-check",
                "colour-a": [0.9, 0.9, 0.9],
                "colour-b": [0.2, 0.2, 0.2],
                "transform": [["rotate-y", 0.5]],
            }
        )
        assert pattern.pattern_type == PatternType.CHECKER
        assert pattern.color_a == (0.9, 0.9, 0.9)
        assert pattern.color_b == (0.2, 0.2, 0.2)
        assert pattern.transform == (("rotate-y", 0.5),)

    def test_from_dict_round_trip(self):
        from whitted.materials.pattern import Pattern

        pattern = Pattern.stripe((1, 0, 0), (0, 0, 1), [("scale", 0.5, 0.5, 0.5)])
        assert Pattern.from_dict(pattern.to_dict()) == pattern

    def test_unknown_type(self):
        from whitted.errors import ConfigurationError
        from whitted.materials.pattern import Pattern

        with pytest.raises(ConfigurationError, match="Unknown pattern type"):
            Pattern.from_dict({"type": "gradient"})

    def test_unknown_key(self):
        from whitted.errors import ConfigurationError
        from whitted.materials.pattern import Pattern

        with pytest.raises(ConfigurationError, match="Unknown pattern key"):
            Pattern.from_dict({"type": "stripe", "color-c": [1, 1, 1]})

    def test_bad_color(self):
        from whitted.errors import ConfigurationError
        from whitted.materials.pattern import Pattern

        with pytest.raises(ConfigurationError):
            Pattern.checker((1, 1), (0, 0, 0))


class TestMaterialConfig:
    """Tests for Material defaults and validation."""

    def test_defaults(self):
        from whitted.materials.material import Material

        m = Material()
        assert m.color == (1.0, 1.0, 1.0)
        assert m.ambient == 0.1
        assert m.diffuse == 0.9
        assert m.specular == 0.9
        assert m.shininess == 200.0
        assert m.reflectivity == 0.0
        assert m.transparency == 0.0
        assert m.refractive_index == 1.0
        assert m.pattern is None

    def test_from_dict_aliases(self):
        """Scene files may spell colour, reflective and hyphenated keys."""
        from whitted.materials.material import Material

        m = Material.from_dict(
            {"colour": [0.5, 0.5, 0.5], "reflective": 0.3, "refractive-index": 1.5}
        )
        assert m.color == (0.5, 0.5, 0.5)
        assert m.reflectivity == 0.3
        assert m.refractive_index == 1.5

    def test_from_dict_round_trip(self):
        from whitted.materials.material import Material
        from whitted.materials.pattern import Pattern

        m = Material(diffuse=0.7, pattern=Pattern.checker(WHITE, BLACK))
        assert Material.from_dict(m.to_dict()) == m

    @pytest.mark.parametrize(
        "changes",
        [
            {"ambient": -0.1},
            {"shininess": 0.0},
            {"reflectivity": 1.5},
            {"transparency": -0.5},
            {"refractive_index": 0.0},
        ],
    )
    def test_out_of_range(self, changes):
        from whitted.errors import ConfigurationError
        from whitted.materials.material import Material

        with pytest.raises(ConfigurationError):
            Material(**changes)

    def test_unknown_key(self):
        from whitted.errors import ConfigurationError
        from whitted.materials.material import Material

        with pytest.raises(ConfigurationError, match="glossiness"):
            Material.from_dict({"glossiness": 1.0})

    def test_material_storage(self):
        """Materials get sequential ids and capacity is enforced."""
        from whitted.materials.material import (
            MAX_MATERIALS,
            Material,
            add_material,
            get_material_count,
        )

        assert add_material(Material()) == 0
        assert add_material(Material(color=(1, 0, 0))) == 1
        assert get_material_count() == 2

        for _ in range(MAX_MATERIALS - 2):
            add_material(Material())
        with pytest.raises(RuntimeError):
            add_material(Material())


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
