"""Unit tests for transform operation lists.

Tests cover:
- Composition order of operation lists
- Inverse operations for every supported operation
- Validation errors for malformed operations and singular transforms
"""

import math

import numpy as np
import pytest


class TestCompose:
    """Tests for composing operation lists."""

    def test_empty_list_is_identity(self):
        from whitted.core.linalg import identity
        from whitted.core.transforms import compose

        assert np.allclose(compose([]), identity())

    def test_operations_apply_in_list_order(self):
        """[rotate-x, scale, translate] equals translate @ scale @ rotate-x."""
        from whitted.core.transforms import compose

        m = compose([("rotate-x", math.pi / 2), ("scale", 5, 5, 5), ("translate", 10, 5, 7)])
        expected = np.array(
            [
                [5.0, 0.0, 0.0, 10.0],
                [0.0, 0.0, -5.0, 5.0],
                [0.0, 5.0, 0.0, 7.0],
                [0.0, 0.0, 0.0, 1.0],
            ]
        )
        assert np.allclose(m, expected, atol=1e-9)

    def test_lists_are_accepted_as_operations(self):
        """Operations parsed from scene files arrive as lists."""
        from whitted.core.transforms import compose

        m = compose([["translate", 1, 2, 3]])
        assert np.allclose(m[:3, 3], [1.0, 2.0, 3.0])

    def test_matrix_operation(self):
        from whitted.core.linalg import translation
        from whitted.core.transforms import compose

        values = translation(1.0, 2.0, 3.0).reshape(16).tolist()
        assert np.allclose(compose([("matrix", *values)]), translation(1.0, 2.0, 3.0))

    def test_transform_derived_matrices(self):
        """Transform caches the inverse and its transpose."""
        from whitted.core.transforms import Transform

        xf = Transform.from_ops([("scale", 2, 4, 8), ("translate", 1, 0, 0)])
        assert np.allclose(xf.matrix @ xf.inverse, np.eye(4))
        assert np.allclose(xf.inverse_transpose, xf.inverse.T)
        assert xf.ops == (("scale", 2, 4, 8), ("translate", 1, 0, 0))

    def test_supported_operations(self):
        from whitted.core.transforms import supported_operations

        assert supported_operations() == [
            "matrix",
            "rotate-x",
            "rotate-y",
            "rotate-z",
            "scale",
            "shear",
            "translate",
        ]


class TestInvertOp:
    """Tests for inverse operations."""

    @pytest.mark.parametrize(
        "op",
        [
            ("translate", 1.0, -2.0, 3.5),
            ("scale", 2.0, 0.5, -4.0),
            ("rotate-x", 0.3),
            ("rotate-y", -1.2),
            ("rotate-z", 2.0),
            ("shear", 1.0, 0.0, 0.5, 0.0, 0.0, 2.0),
        ],
    )
    def test_op_followed_by_inverse_is_identity(self, op):
        from whitted.core.transforms import compose, invert_op

        assert np.allclose(compose([op, invert_op(op)]), np.eye(4), atol=1e-9)

    @pytest.mark.parametrize(
        "ops",
        [
            [("scale", 2.0, 0.5, 3.0), ("translate", 1.0, -2.0, 3.5)],
            [
                ("scale", 2.0, 1.0, -1.5),
                ("shear", 1.0, 0.0, 0.5, 0.0, 0.0, 2.0),
                ("rotate-y", 0.7),
                ("translate", -3.0, 0.25, 4.0),
            ],
            [
                ("rotate-x", 1.1),
                ("translate", 0.0, 5.0, 0.0),
                ("shear", 0.0, 0.3, 0.0, 0.0, 0.7, 0.0),
                ("rotate-z", -0.4),
                ("scale", 0.25, 4.0, 1.0),
            ],
        ],
        ids=["scale-translate", "scale-shear-rotate-translate", "mixed-five"],
    )
    def test_list_inverse_is_reversed_op_inverses(self, ops):
        """Undoing a list means undoing each op, last op first."""
        from whitted.core import linalg
        from whitted.core.transforms import compose, invert_op

        undo = [invert_op(op) for op in reversed(ops)]
        assert np.allclose(compose(undo), linalg.inverse(compose(ops)), atol=1e-9)
        assert np.allclose(compose(list(ops) + undo), np.eye(4), atol=1e-9)

    def test_simple_inverses_keep_their_name(self):
        from whitted.core.transforms import invert_op

        assert invert_op(("translate", 1, 2, 3)) == ("translate", -1.0, -2.0, -3.0)
        assert invert_op(("scale", 2, 4, 0.5)) == ("scale", 0.5, 0.25, 2.0)
        assert invert_op(("rotate-y", 0.5)) == ("rotate-y", -0.5)

    def test_shear_inverts_to_matrix(self):
        from whitted.core.transforms import invert_op

        inverse = invert_op(("shear", 1, 0, 0, 0, 0, 0))
        assert inverse[0] == "matrix"
        assert len(inverse) == 17

    def test_zero_scale_has_no_inverse(self):
        from whitted.core.transforms import invert_op
        from whitted.errors import ConfigurationError

        with pytest.raises(ConfigurationError):
            invert_op(("scale", 1, 0, 1))


class TestValidation:
    """Tests for malformed operations."""

    def test_unknown_operation(self):
        from whitted.core.transforms import compose
        from whitted.errors import ConfigurationError

        with pytest.raises(ConfigurationError, match="position 1"):
            compose([("translate", 0, 0, 0), ("twist", 1.0)])

    def test_wrong_arity(self):
        from whitted.core.transforms import compose
        from whitted.errors import ConfigurationError

        with pytest.raises(ConfigurationError, match="takes 3"):
            compose([("translate", 1, 2)])

    def test_non_numeric_argument(self):
        from whitted.core.transforms import compose
        from whitted.errors import ConfigurationError

        with pytest.raises(ConfigurationError, match="non-numeric"):
            compose([("rotate-x", "ninety")])

    def test_bare_string_operation(self):
        from whitted.core.transforms import compose
        from whitted.errors import ConfigurationError

        with pytest.raises(ConfigurationError):
            compose(["translate"])

    def test_singular_transform(self):
        from whitted.core.transforms import Transform
        from whitted.errors import ConfigurationError

        with pytest.raises(ConfigurationError, match="singular"):
            Transform.from_ops([("scale", 1, 0, 1)])

    def test_configuration_error_is_value_error(self):
        from whitted.errors import ConfigurationError

        assert issubclass(ConfigurationError, ValueError)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
