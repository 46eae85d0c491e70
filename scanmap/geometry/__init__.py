"""Rotation representations and rigid transforms for 2D and 3D point clouds.

Main components:
    - RotationRepresentation: capability shared by UnitComplex (2D) and
      UnitQuaternion (3D)
    - rotation_type_for_dimension: selects the representation by dimension
    - RigidTransform: rotation + translation, composed with ``@``
    - SimilarityTransform: rigid transform + uniform scale (grid mapping)
    - quaternion / rotation matrix conversions

Example usage:
    >>> import numpy as np
    >>> from scanmap.geometry import RigidTransform, UnitComplex
    >>> T = RigidTransform([1.0, 0.0], UnitComplex.from_angle(0.1))
    >>> T.transform_point(np.array([[0.0, 0.0], [1.0, 0.0]])).shape
    (2, 2)
"""

from .rotations import (
    angle_to_rotation_matrix,
    euler_to_quat,
    quat_conjugate,
    quat_multiply,
    quat_to_rotation_matrix,
    rotation_matrix_to_angle,
    rotation_matrix_to_quat,
)
from .transforms import (
    RigidTransform,
    RotationRepresentation,
    SimilarityTransform,
    UnitComplex,
    UnitQuaternion,
    rotation_type_for_dimension,
)

__all__ = [
    # Rotation types
    "RotationRepresentation",
    "UnitComplex",
    "UnitQuaternion",
    "rotation_type_for_dimension",
    # Transforms
    "RigidTransform",
    "SimilarityTransform",
    # Conversions
    "angle_to_rotation_matrix",
    "rotation_matrix_to_angle",
    "euler_to_quat",
    "quat_multiply",
    "quat_conjugate",
    "quat_to_rotation_matrix",
    "rotation_matrix_to_quat",
]
