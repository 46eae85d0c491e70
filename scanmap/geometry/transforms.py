"""Rotation representations and rigid/similarity transforms in 2D and 3D.

Registration and mapping are written once for both dimensionalities. The
dimension-specific part is isolated behind a single capability,
RotationRepresentation, with two implementations:

    - UnitComplex: planar rotations (N = 2), stored as a unit complex number
    - UnitQuaternion: spatial rotations (N = 3), stored as [qw, qx, qy, qz]

rotation_type_for_dimension() picks the implementation from the dimension
of the point cloud being processed.

On top of the rotations this module provides:
    - RigidTransform: rotation + translation (an isometry)
    - SimilarityTransform: isometry + fixed uniform scale, used by the mapper
      to go from world coordinates into grid-cell coordinates

Composition convention: ``new @ old`` applies ``old`` first and ``new``
second, i.e. the newer transform is pre-multiplied onto the accumulated one.
"""

from abc import ABC, abstractmethod
from typing import Type, Union

import numpy as np

from .rotations import (
    angle_to_rotation_matrix,
    euler_to_quat,
    quat_conjugate,
    quat_multiply,
    quat_to_rotation_matrix,
    rotation_matrix_to_angle,
    rotation_matrix_to_quat,
)


def _apply_linear(matrix: np.ndarray, points: np.ndarray) -> np.ndarray:
    """Apply a square matrix to a single point (N,) or a cloud (M, N)."""
    points = np.asarray(points)
    dim = matrix.shape[0]
    if points.shape[-1] != dim or points.ndim not in (1, 2):
        raise ValueError(
            f"points must have shape ({dim},) or (M, {dim}), got {points.shape}"
        )

    result = points @ matrix.T
    if np.issubdtype(points.dtype, np.floating):
        return result.astype(points.dtype, copy=False)
    return result


class RotationRepresentation(ABC):
    """Capability shared by the 2D and 3D rotation types.

    Subclasses set the class attribute ``dimension`` and implement the
    conversion to and from rotation matrices, composition and inversion.
    Point and vector transforms are derived from the rotation matrix.
    """

    dimension: int = 0

    @classmethod
    @abstractmethod
    def identity(cls) -> "RotationRepresentation":
        """Return the neutral rotation."""

    @classmethod
    @abstractmethod
    def from_rotation_matrix(cls, R: np.ndarray) -> "RotationRepresentation":
        """Build the rotation from a proper rotation matrix."""

    @abstractmethod
    def to_matrix(self) -> np.ndarray:
        """Return the rotation as a (dimension x dimension) matrix."""

    @abstractmethod
    def compose(self, other: "RotationRepresentation") -> "RotationRepresentation":
        """Return ``self * other``: rotate by ``other`` first, then by ``self``."""

    @abstractmethod
    def inverse(self) -> "RotationRepresentation":
        """Return the inverse rotation."""

    def transform_vector(self, vectors: np.ndarray) -> np.ndarray:
        """Rotate a vector (N,) or a set of vectors (M, N)."""
        return _apply_linear(self.to_matrix(), vectors)

    def transform_point(self, points: np.ndarray) -> np.ndarray:
        """Rotate a point (N,) or a cloud (M, N) about the origin."""
        return _apply_linear(self.to_matrix(), points)

    def __mul__(self, other: "RotationRepresentation") -> "RotationRepresentation":
        return self.compose(other)

    def _check_same_type(self, other: "RotationRepresentation") -> None:
        if type(other) is not type(self):
            raise TypeError(
                f"Cannot compose {type(self).__name__} with {type(other).__name__}"
            )


class UnitComplex(RotationRepresentation):
    """Planar rotation stored as a unit complex number ``re + i·im``.

    Attributes:
        re: cos(angle).
        im: sin(angle).

    Examples:
        >>> r = UnitComplex.from_angle(np.pi / 2)
        >>> np.allclose(r.transform_point(np.array([1.0, 0.0])), [0.0, 1.0])
        True
    """

    dimension = 2

    def __init__(self, re: float = 1.0, im: float = 0.0) -> None:
        norm = np.hypot(re, im)
        if not np.isfinite(norm) or norm == 0.0:
            raise ValueError(f"Cannot normalize complex number ({re}, {im})")
        self.re = float(re / norm)
        self.im = float(im / norm)

    @classmethod
    def identity(cls) -> "UnitComplex":
        return cls(1.0, 0.0)

    @classmethod
    def from_angle(cls, angle: float) -> "UnitComplex":
        return cls(np.cos(angle), np.sin(angle))

    @classmethod
    def from_rotation_matrix(cls, R: np.ndarray) -> "UnitComplex":
        return cls.from_angle(rotation_matrix_to_angle(np.asarray(R, dtype=np.float64)))

    @property
    def angle(self) -> float:
        """Rotation angle in radians, in [-π, π]."""
        return float(np.arctan2(self.im, self.re))

    def to_matrix(self) -> np.ndarray:
        return angle_to_rotation_matrix(self.angle)

    def compose(self, other: "UnitComplex") -> "UnitComplex":
        self._check_same_type(other)
        return UnitComplex(
            self.re * other.re - self.im * other.im,
            self.re * other.im + self.im * other.re,
        )

    def inverse(self) -> "UnitComplex":
        return UnitComplex(self.re, -self.im)

    def __repr__(self) -> str:
        return f"UnitComplex(angle={self.angle:.6f})"


class UnitQuaternion(RotationRepresentation):
    """Spatial rotation stored as a unit quaternion [qw, qx, qy, qz].

    Examples:
        >>> q = UnitQuaternion.from_euler_angles(0.0, 0.0, np.pi / 2)
        >>> np.allclose(q.transform_point(np.array([1.0, 0.0, 0.0])), [0, 1, 0])
        True
    """

    dimension = 3

    def __init__(self, q=None) -> None:
        if q is None:
            q = np.array([1.0, 0.0, 0.0, 0.0])
        q = np.asarray(q, dtype=np.float64)
        if q.shape != (4,):
            raise ValueError(f"Expected 4-element quaternion, got shape {q.shape}")
        norm = np.linalg.norm(q)
        if not np.isfinite(norm) or norm == 0.0:
            raise ValueError(f"Cannot normalize quaternion {q}")
        self.q = q / norm

    @classmethod
    def identity(cls) -> "UnitQuaternion":
        return cls()

    @classmethod
    def from_rotation_matrix(cls, R: np.ndarray) -> "UnitQuaternion":
        return cls(rotation_matrix_to_quat(np.asarray(R, dtype=np.float64)))

    @classmethod
    def from_euler_angles(cls, roll: float, pitch: float, yaw: float) -> "UnitQuaternion":
        """Build from roll-pitch-yaw angles (ZYX convention)."""
        return cls(euler_to_quat(roll, pitch, yaw))

    @classmethod
    def from_scaled_axis(cls, axis_angle: np.ndarray) -> "UnitQuaternion":
        """Build from a rotation vector (unit axis scaled by the angle)."""
        axis_angle = np.asarray(axis_angle, dtype=np.float64)
        if axis_angle.shape != (3,):
            raise ValueError(f"axis_angle must have shape (3,), got {axis_angle.shape}")
        angle = np.linalg.norm(axis_angle)
        if angle == 0.0:
            return cls.identity()
        axis = axis_angle / angle
        half = angle / 2.0
        return cls(np.concatenate([[np.cos(half)], np.sin(half) * axis]))

    @property
    def angle(self) -> float:
        """Rotation angle in radians, in [0, π]."""
        w = np.clip(abs(self.q[0]), 0.0, 1.0)
        return float(2.0 * np.arccos(w))

    def to_matrix(self) -> np.ndarray:
        return quat_to_rotation_matrix(self.q)

    def compose(self, other: "UnitQuaternion") -> "UnitQuaternion":
        self._check_same_type(other)
        return UnitQuaternion(quat_multiply(self.q, other.q))

    def inverse(self) -> "UnitQuaternion":
        return UnitQuaternion(quat_conjugate(self.q))

    def __repr__(self) -> str:
        qw, qx, qy, qz = self.q
        return f"UnitQuaternion(qw={qw:.6f}, qx={qx:.6f}, qy={qy:.6f}, qz={qz:.6f})"


_ROTATION_TYPES = {
    UnitComplex.dimension: UnitComplex,
    UnitQuaternion.dimension: UnitQuaternion,
}


def rotation_type_for_dimension(dimension: int) -> Type[RotationRepresentation]:
    """
    Select the rotation representation for a point dimensionality.

    Args:
        dimension: Number of coordinates per point.

    Returns:
        UnitComplex for 2, UnitQuaternion for 3.

    Raises:
        ValueError: For any other dimension.
    """
    try:
        return _ROTATION_TYPES[dimension]
    except KeyError:
        raise ValueError(
            f"Rotations are only defined for 2D and 3D points, got dimension {dimension}"
        ) from None


class RigidTransform:
    """
    Rigid transformation (isometry): rotation followed by translation.

    A point p is mapped to ``R p + t``.

    Attributes:
        translation: Translation vector, shape (N,).
        rotation: RotationRepresentation matching N.

    Examples:
        >>> T = RigidTransform([1.0, 2.0], UnitComplex.from_angle(np.pi / 2))
        >>> np.allclose(T.transform_point(np.array([1.0, 0.0])), [1.0, 3.0])
        True
        >>> np.allclose((T.inverse() @ T).translation, [0.0, 0.0])
        True
    """

    def __init__(
        self,
        translation: Union[np.ndarray, list, tuple],
        rotation: RotationRepresentation,
    ) -> None:
        translation = np.array(translation, dtype=np.float64).reshape(-1)
        if translation.shape != (rotation.dimension,):
            raise ValueError(
                f"translation must have shape ({rotation.dimension},) "
                f"for {type(rotation).__name__}, got {translation.shape}"
            )
        self.translation = translation
        self.rotation = rotation

    @classmethod
    def identity(cls, dimension: int) -> "RigidTransform":
        rotation_type = rotation_type_for_dimension(dimension)
        return cls(np.zeros(dimension), rotation_type.identity())

    @classmethod
    def from_parts(cls, translation: np.ndarray, rotation_matrix: np.ndarray) -> "RigidTransform":
        """Build from a translation vector and a proper rotation matrix."""
        rotation_matrix = np.asarray(rotation_matrix, dtype=np.float64)
        rotation_type = rotation_type_for_dimension(rotation_matrix.shape[0])
        return cls(translation, rotation_type.from_rotation_matrix(rotation_matrix))

    @property
    def dimension(self) -> int:
        return self.rotation.dimension

    def transform_point(self, points: np.ndarray) -> np.ndarray:
        """Transform a point (N,) or a cloud (M, N)."""
        rotated = self.rotation.transform_point(points)
        result = rotated + self.translation
        if np.issubdtype(rotated.dtype, np.floating):
            return result.astype(rotated.dtype, copy=False)
        return result

    transform_points = transform_point

    def transform_vector(self, vectors: np.ndarray) -> np.ndarray:
        """Rotate a vector (N,) or vectors (M, N); translation is ignored."""
        return self.rotation.transform_vector(vectors)

    def compose(self, other: "RigidTransform") -> "RigidTransform":
        """Return ``self @ other``: apply ``other`` first, then ``self``."""
        if other.dimension != self.dimension:
            raise ValueError(
                f"Cannot compose {self.dimension}D and {other.dimension}D transforms"
            )
        return RigidTransform(
            self.rotation.transform_vector(other.translation) + self.translation,
            self.rotation.compose(other.rotation),
        )

    def __matmul__(self, other: "RigidTransform") -> "RigidTransform":
        return self.compose(other)

    def inverse(self) -> "RigidTransform":
        inv_rotation = self.rotation.inverse()
        return RigidTransform(-inv_rotation.transform_vector(self.translation), inv_rotation)

    def to_matrix(self) -> np.ndarray:
        """Homogeneous matrix of shape (N+1, N+1)."""
        n = self.dimension
        H = np.eye(n + 1)
        H[:n, :n] = self.rotation.to_matrix()
        H[:n, n] = self.translation
        return H

    def copy(self) -> "RigidTransform":
        return RigidTransform(self.translation.copy(), self.rotation)

    def __repr__(self) -> str:
        return f"RigidTransform(translation={self.translation}, rotation={self.rotation!r})"


class SimilarityTransform:
    """
    Rigid transform with an additional uniform scale.

    A point p is mapped to ``R (s p) + t``: it is scaled first, then moved
    by the isometry.

    Attributes:
        isometry: The rigid part (RigidTransform).
        scale: Uniform scale factor, strictly positive.

    Notes:
        - append_translation and append_rotation_wrt_center mutate in place.
        - Rotating "with respect to the centre" keeps the translation fixed, so
          the transform pivots around its own origin in the target frame.
    """

    def __init__(self, isometry: RigidTransform, scale: float) -> None:
        if not scale > 0:
            raise ValueError(f"scale must be positive, got {scale}")
        self.isometry = isometry
        self.scale = float(scale)

    @property
    def translation(self) -> np.ndarray:
        return self.isometry.translation

    @property
    def rotation(self) -> RotationRepresentation:
        return self.isometry.rotation

    @property
    def dimension(self) -> int:
        return self.isometry.dimension

    def transform_point(self, points: np.ndarray) -> np.ndarray:
        points = np.asarray(points)
        return self.isometry.transform_point(points * self.scale)

    transform_points = transform_point

    def append_translation(self, translation: np.ndarray) -> None:
        """Add ``translation`` to the current translation."""
        self.isometry = RigidTransform(
            self.isometry.translation + np.asarray(translation, dtype=np.float64),
            self.isometry.rotation,
        )

    def append_rotation_wrt_center(self, rotation: RotationRepresentation) -> None:
        """Pre-multiply ``rotation`` onto the current rotation, keeping the translation."""
        self.isometry = RigidTransform(
            self.isometry.translation,
            rotation.compose(self.isometry.rotation),
        )

    def __repr__(self) -> str:
        return f"SimilarityTransform(isometry={self.isometry!r}, scale={self.scale})"
