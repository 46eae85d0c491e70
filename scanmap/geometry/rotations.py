"""Rotation matrix and quaternion conversions.

This module provides the low-level conversions that back the rotation
representations used by the registration and mapping code:
- Rotation matrices (2x2 in SO(2), 3x3 in SO(3))
- Planar rotation angles (unit complex numbers)
- Quaternions (unit quaternions, q = [qw, qx, qy, qz])

Conventions:
- Quaternions: [qw, qx, qy, qz] where qw is the scalar part
- Euler angles: [roll, pitch, yaw] in radians (ZYX/3-2-1 convention)
- Rotation matrices act on column vectors: v_rotated = R @ v
"""

import numpy as np
from numpy.typing import NDArray


def angle_to_rotation_matrix(angle: float) -> NDArray[np.float64]:
    """Convert a planar rotation angle to a 2x2 rotation matrix.

    Args:
        angle: Rotation angle in radians, counter-clockwise.

    Returns:
        2x2 rotation matrix [[cos, -sin], [sin, cos]].

    Example:
        >>> R = angle_to_rotation_matrix(np.pi / 2)
        >>> np.allclose(R @ [1.0, 0.0], [0.0, 1.0])
        True
    """
    c = np.cos(angle)
    s = np.sin(angle)
    return np.array([[c, -s], [s, c]], dtype=np.float64)


def rotation_matrix_to_angle(R: NDArray[np.float64]) -> float:
    """Extract the planar rotation angle from a 2x2 rotation matrix.

    Args:
        R: 2x2 rotation matrix.

    Returns:
        Angle in radians, in [-π, π].

    Raises:
        ValueError: If R is not a 2x2 matrix.
    """
    if R.shape != (2, 2):
        raise ValueError(f"Expected 2x2 matrix, got shape {R.shape}")

    return float(np.arctan2(R[1, 0], R[0, 0]))


def _axis_quat(axis: int, angle: float) -> NDArray[np.float64]:
    q = np.zeros(4, dtype=np.float64)
    q[0] = np.cos(angle / 2.0)
    q[axis + 1] = np.sin(angle / 2.0)
    return q


def euler_to_quat(
    roll: float,
    pitch: float,
    yaw: float,
) -> NDArray[np.float64]:
    """Convert roll-pitch-yaw angles (ZYX convention) to a unit quaternion.

    The rotation is yaw about z, applied after pitch about y, applied after
    roll about x, i.e. R = Rz(yaw) Ry(pitch) Rx(roll).

    Example:
        >>> q = euler_to_quat(0.0, 0.0, np.pi / 2)
        >>> np.allclose(q, [np.cos(np.pi / 4), 0.0, 0.0, np.sin(np.pi / 4)])
        True
    """
    q = quat_multiply(_axis_quat(2, yaw), _axis_quat(1, pitch))
    return quat_multiply(q, _axis_quat(0, roll))


def quat_multiply(q1: NDArray[np.float64], q2: NDArray[np.float64]) -> NDArray[np.float64]:
    """
    Hamilton product q1 ⊗ q2 (rotate by q2 first, then by q1).

    Uses the scalar/vector form (w1 w2 - v1·v2, w1 v2 + w2 v1 + v1 × v2).
    """
    w1, v1 = q1[0], np.asarray(q1[1:], dtype=np.float64)
    w2, v2 = q2[0], np.asarray(q2[1:], dtype=np.float64)

    w = w1 * w2 - v1 @ v2
    v = w1 * v2 + w2 * v1 + np.cross(v1, v2)
    return np.concatenate([[w], v]).astype(np.float64)


def quat_conjugate(q: NDArray[np.float64]) -> NDArray[np.float64]:
    """Conjugate (inverse for unit quaternions) of q = [qw, qx, qy, qz]."""
    return np.asarray(q, dtype=np.float64) * np.array([1.0, -1.0, -1.0, -1.0])


def _skew(v: NDArray[np.float64]) -> NDArray[np.float64]:
    x, y, z = v
    return np.array([[0.0, -z, y], [z, 0.0, -x], [-y, x, 0.0]])


def quat_to_rotation_matrix(q: NDArray[np.float64]) -> NDArray[np.float64]:
    """Convert a unit quaternion [qw, qx, qy, qz] to a 3x3 rotation matrix.

    R = (w² - |v|²) I + 2 v vᵀ + 2 w [v]×, acting on column vectors.

    Raises:
        ValueError: If q is not a 4-element array.

    Example:
        >>> np.allclose(quat_to_rotation_matrix(np.array([1.0, 0.0, 0.0, 0.0])), np.eye(3))
        True
    """
    q = np.asarray(q, dtype=np.float64)
    if q.shape != (4,):
        raise ValueError(f"Expected 4-element quaternion, got shape {q.shape}")

    w, v = q[0], q[1:]
    return (w * w - v @ v) * np.eye(3) + 2.0 * np.outer(v, v) + 2.0 * w * _skew(v)


def rotation_matrix_to_quat(R: NDArray[np.float64]) -> NDArray[np.float64]:
    """Convert a 3x3 rotation matrix to a unit quaternion [qw, qx, qy, qz].

    Shepperd's method: the component with the largest magnitude (taken from
    the trace or one of the diagonal entries) is recovered first, the others
    are divided by it. The scalar part of the result is non-negative.

    Raises:
        ValueError: If R is not a 3x3 matrix.
    """
    R = np.asarray(R, dtype=np.float64)
    if R.shape != (3, 3):
        raise ValueError(f"Expected 3x3 matrix, got shape {R.shape}")

    diagonal = np.diag(R)
    trace = float(np.sum(diagonal))
    pivot = int(np.argmax([trace, *diagonal]))

    q = np.empty(4, dtype=np.float64)
    if pivot == 0:
        w = 0.5 * np.sqrt(1.0 + trace)
        q[0] = w
        q[1] = (R[2, 1] - R[1, 2]) / (4.0 * w)
        q[2] = (R[0, 2] - R[2, 0]) / (4.0 * w)
        q[3] = (R[1, 0] - R[0, 1]) / (4.0 * w)
    else:
        # Cyclic axis order (a, b, c) starting at the dominant diagonal entry
        a = pivot - 1
        b = (a + 1) % 3
        c = (a + 2) % 3
        va = 0.5 * np.sqrt(1.0 + R[a, a] - R[b, b] - R[c, c])
        q[0] = (R[c, b] - R[b, c]) / (4.0 * va)
        q[a + 1] = va
        q[b + 1] = (R[a, b] + R[b, a]) / (4.0 * va)
        q[c + 1] = (R[a, c] + R[c, a]) / (4.0 * va)

    # q and -q are the same rotation
    if q[0] < 0:
        q = -q

    return q / np.linalg.norm(q)
