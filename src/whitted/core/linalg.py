"""Host-side linear algebra for tuples and 4x4 affine matrices.

Points and vectors are 4-component NumPy arrays: points carry w=1 and are
moved by translation, vectors carry w=0 and are not. Matrices are 4x4
``float64`` arrays; they are converted to ``float32`` only when uploaded to
Taichi fields.

Example:
    >>> from whitted.core.linalg import point, translation, transform
    >>> transform(translation(5.0, -3.0, 2.0), point(-3.0, 4.0, 5.0))
    array([ 2.,  1.,  7.,  1.])
"""

import math
from collections.abc import Sequence

import numpy as np
import numpy.typing as npt

Matrix4 = npt.NDArray[np.float64]
Tuple4 = npt.NDArray[np.float64]

# Determinants below this are treated as singular
SINGULAR_EPSILON = 1e-12


# =============================================================================
# Tuples
# =============================================================================


def point(x: float, y: float, z: float) -> Tuple4:
    """Create a point (w=1)."""
    return np.array([x, y, z, 1.0], dtype=np.float64)


def vector(x: float, y: float, z: float) -> Tuple4:
    """Create a direction vector (w=0)."""
    return np.array([x, y, z, 0.0], dtype=np.float64)


def as_xyz(values: Sequence[float]) -> npt.NDArray[np.float64]:
    """Return the first three components of a tuple as a float64 array."""
    return np.asarray(values, dtype=np.float64)[:3]


def magnitude(v: Sequence[float]) -> float:
    return float(np.linalg.norm(as_xyz(v)))


def normalize(v: Sequence[float]) -> npt.NDArray[np.float64]:
    """Normalize the xyz part of a tuple.

    Raises:
        ValueError: If the vector has zero length.
    """
    xyz = as_xyz(v)
    length = float(np.linalg.norm(xyz))
    if length == 0.0:
        raise ValueError("Cannot normalize a zero-length vector")
    return xyz / length


def dot(a: Sequence[float], b: Sequence[float]) -> float:
    return float(np.dot(as_xyz(a), as_xyz(b)))


def cross(a: Sequence[float], b: Sequence[float]) -> npt.NDArray[np.float64]:
    return np.cross(as_xyz(a), as_xyz(b))


# =============================================================================
# Matrices
# =============================================================================


def identity() -> Matrix4:
    return np.identity(4, dtype=np.float64)


def translation(x: float, y: float, z: float) -> Matrix4:
    m = identity()
    m[0, 3] = x
    m[1, 3] = y
    m[2, 3] = z
    return m


def scaling(x: float, y: float, z: float) -> Matrix4:
    return np.diag([x, y, z, 1.0]).astype(np.float64)


def rotation_x(radians: float) -> Matrix4:
    """Rotation about the x axis (left-handed, as seen looking down +x)."""
    c = math.cos(radians)
    s = math.sin(radians)
    m = identity()
    m[1, 1] = c
    m[1, 2] = -s
    m[2, 1] = s
    m[2, 2] = c
    return m


def rotation_y(radians: float) -> Matrix4:
    c = math.cos(radians)
    s = math.sin(radians)
    m = identity()
    m[0, 0] = c
    m[0, 2] = s
    m[2, 0] = -s
    m[2, 2] = c
    return m


def rotation_z(radians: float) -> Matrix4:
    c = math.cos(radians)
    s = math.sin(radians)
    m = identity()
    m[0, 0] = c
    m[0, 1] = -s
    m[1, 0] = s
    m[1, 1] = c
    return m


def shearing(
    x_y: float, x_z: float, y_x: float, y_z: float, z_x: float, z_y: float
) -> Matrix4:
    """Shear matrix; ``x_y`` moves x in proportion to y, and so on."""
    m = identity()
    m[0, 1] = x_y
    m[0, 2] = x_z
    m[1, 0] = y_x
    m[1, 2] = y_z
    m[2, 0] = z_x
    m[2, 1] = z_y
    return m


def multiply(a: Matrix4, b: Matrix4) -> Matrix4:
    return np.asarray(a, dtype=np.float64) @ np.asarray(b, dtype=np.float64)


def transform(m: Matrix4, t: Sequence[float]) -> Tuple4:
    """Apply a matrix to a point or vector (the w component decides which)."""
    return np.asarray(m, dtype=np.float64) @ np.asarray(t, dtype=np.float64)


def transpose(m: Matrix4) -> Matrix4:
    return np.ascontiguousarray(np.asarray(m, dtype=np.float64).T)


def determinant(m: Matrix4) -> float:
    return float(np.linalg.det(np.asarray(m, dtype=np.float64)))


def is_invertible(m: Matrix4) -> bool:
    return abs(determinant(m)) > SINGULAR_EPSILON


def inverse(m: Matrix4) -> Matrix4:
    """Invert a 4x4 matrix.

    Args:
        m: The matrix to invert.

    Returns:
        The inverse matrix.

    Raises:
        ValueError: If the matrix is singular.
    """
    if not is_invertible(m):
        raise ValueError("Matrix is not invertible")
    return np.linalg.inv(np.asarray(m, dtype=np.float64))


def matrices_close(a: Matrix4, b: Matrix4, tol: float = 1e-5) -> bool:
    return bool(np.allclose(a, b, atol=tol, rtol=0.0))


# =============================================================================
# Viewing
# =============================================================================


def view_transform(
    from_point: Sequence[float], to_point: Sequence[float], up: Sequence[float]
) -> Matrix4:
    """Build the world-to-camera matrix for an eye looking at a target.

    The camera looks down its own -z axis with +y up. The orientation rows
    are (left, true_up, -forward) followed by a translation that moves the
    eye to the origin.

    Args:
        from_point: Eye position.
        to_point: Point the eye looks at.
        up: Approximate up direction; need not be perpendicular to the view.

    Returns:
        The 4x4 view transform.

    Raises:
        ValueError: If from_point equals to_point or up is parallel to the
            view direction.
    """
    eye = as_xyz(from_point)
    forward = normalize(as_xyz(to_point) - eye)
    left = np.cross(forward, normalize(up))
    if np.linalg.norm(left) < 1e-9:
        raise ValueError("Up vector is parallel to the view direction")
    true_up = np.cross(left, forward)

    orientation = identity()
    orientation[0, :3] = left
    orientation[1, :3] = true_up
    orientation[2, :3] = -forward
    return orientation @ translation(-eye[0], -eye[1], -eye[2])
