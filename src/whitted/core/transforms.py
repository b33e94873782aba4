"""Transform pipeline: ordered operation lists to object-to-world matrices.

A transform is described as a list of operations, each a tuple or list of
an operation name followed by its numeric arguments::

    [("rotate-x", 1.5708), ("scale", 5, 5, 5), ("translate", 10, 5, 7)]

Operations are applied in list order to an object-space point, so the list
``[A, B, C]`` composes to the matrix ``C @ B @ A``.

Supported operations:
    translate x y z
    scale x y z
    rotate-x / rotate-y / rotate-z radians
    shear x_y x_z y_x y_z z_x z_y
    matrix m00 m01 ... m33 (16 values, row-major)

Example:
    >>> from whitted.core.transforms import Transform
    >>> xf = Transform.from_ops([("scale", 2, 2, 2), ("translate", 0, 1, 0)])
    >>> xf.matrix[1, 3]
    1.0
"""

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from numbers import Real
from typing import Any

import numpy as np

from whitted.core import linalg
from whitted.errors import ConfigurationError

TransformOp = Sequence[Any]

# Operation name -> (arity, matrix builder)
_BUILDERS: dict[str, tuple[int, Callable[..., np.ndarray]]] = {
    "translate": (3, linalg.translation),
    "scale": (3, linalg.scaling),
    "rotate-x": (1, linalg.rotation_x),
    "rotate-y": (1, linalg.rotation_y),
    "rotate-z": (1, linalg.rotation_z),
    "shear": (6, linalg.shearing),
    "matrix": (16, lambda *values: np.array(values, dtype=np.float64).reshape(4, 4)),
}


def supported_operations() -> list[str]:
    """Return the names of all supported transform operations."""
    return sorted(_BUILDERS)


def _split_op(op: TransformOp, position: int) -> tuple[str, list[float]]:
    """Validate an operation and return its name and numeric arguments."""
    if isinstance(op, str) or not isinstance(op, Sequence) or len(op) == 0:
        raise ConfigurationError(
            f"Transform operation at position {position} must be a non-empty "
            f"list such as ['translate', 1, 2, 3], got {op!r}"
        )

    name = op[0]
    if name not in _BUILDERS:
        raise ConfigurationError(
            f"Unknown transform operation {name!r} at position {position}; "
            f"expected one of {', '.join(supported_operations())}"
        )

    arity, _ = _BUILDERS[name]
    args = list(op[1:])
    if len(args) != arity:
        raise ConfigurationError(
            f"Transform operation {name!r} at position {position} takes "
            f"{arity} argument(s), got {len(args)}"
        )
    for arg in args:
        if isinstance(arg, bool) or not isinstance(arg, Real):
            raise ConfigurationError(
                f"Transform operation {name!r} at position {position} has a "
                f"non-numeric argument {arg!r}"
            )
    return name, [float(a) for a in args]


def op_matrix(op: TransformOp, position: int = 0) -> np.ndarray:
    """Build the matrix for a single operation.

    Args:
        op: The operation, e.g. ``("rotate-y", 0.5)``.
        position: Index of the operation in its list, used in error messages.

    Returns:
        The 4x4 matrix for the operation.

    Raises:
        ConfigurationError: If the operation is unknown or malformed.
    """
    name, args = _split_op(op, position)
    _, builder = _BUILDERS[name]
    return builder(*args)


def compose(ops: Sequence[TransformOp]) -> np.ndarray:
    """Compose an operation list into a single object-to-world matrix.

    Each subsequent operation is left-multiplied, so ``[A, B, C]`` yields
    ``C @ B @ A``. An empty list yields the identity.

    Raises:
        ConfigurationError: If any operation is unknown or malformed.
    """
    result = linalg.identity()
    for position, op in enumerate(ops):
        result = op_matrix(op, position) @ result
    return result


def invert_op(op: TransformOp) -> tuple[Any, ...]:
    """Return the operation that undoes ``op``.

    Translations negate, scales take reciprocals and rotations negate their
    angle. Shears and raw matrices invert to a raw ``matrix`` operation.

    Raises:
        ConfigurationError: If the operation is malformed or not invertible.
    """
    name, args = _split_op(op, 0)
    if name == "translate":
        return ("translate", -args[0], -args[1], -args[2])
    if name == "scale":
        if any(a == 0.0 for a in args):
            raise ConfigurationError(f"Scale {tuple(args)} is not invertible")
        return ("scale", 1.0 / args[0], 1.0 / args[1], 1.0 / args[2])
    if name in ("rotate-x", "rotate-y", "rotate-z"):
        return (name, -args[0])

    try:
        inv = linalg.inverse(op_matrix(op))
    except ValueError as exc:
        raise ConfigurationError(f"Transform operation {name!r} is not invertible") from exc
    return ("matrix", *inv.reshape(16).tolist())


@dataclass(frozen=True)
class Transform:
    """A composed transform with its derived matrices.

    Attributes:
        ops: The operation list the transform was built from.
        matrix: Object-to-world matrix.
        inverse: World-to-object matrix.
        inverse_transpose: Transpose of the inverse, used to map normals.
    """

    ops: tuple[tuple[Any, ...], ...] = ()
    matrix: np.ndarray = field(default_factory=linalg.identity, compare=False)
    inverse: np.ndarray = field(default_factory=linalg.identity, compare=False)
    inverse_transpose: np.ndarray = field(default_factory=linalg.identity, compare=False)

    @classmethod
    def from_ops(cls, ops: Sequence[TransformOp] = ()) -> "Transform":
        """Compose an operation list and precompute inverse matrices.

        Raises:
            ConfigurationError: If an operation is invalid or the composite
                matrix is singular (e.g. a zero scale).
        """
        matrix = compose(ops)
        try:
            inv = linalg.inverse(matrix)
        except ValueError as exc:
            raise ConfigurationError(
                f"Transform {list(ops)!r} is singular and cannot be inverted"
            ) from exc
        return cls(
            ops=tuple(tuple(op) for op in ops),
            matrix=matrix,
            inverse=inv,
            inverse_transpose=linalg.transpose(inv),
        )

    @classmethod
    def identity(cls) -> "Transform":
        return cls.from_ops(())
