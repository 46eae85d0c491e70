"""Unit tests for scanmap.geometry rotations and transforms."""

import numpy as np
import pytest

from scanmap.geometry import (
    RigidTransform,
    SimilarityTransform,
    UnitComplex,
    UnitQuaternion,
    angle_to_rotation_matrix,
    quat_to_rotation_matrix,
    rotation_matrix_to_angle,
    rotation_matrix_to_quat,
    rotation_type_for_dimension,
)


class TestRotationConversions:
    """Test rotation matrix / angle / quaternion conversions."""

    def test_angle_round_trip(self):
        for angle in [-3.0, -1.0, 0.0, 0.5, 2.5]:
            R = angle_to_rotation_matrix(angle)
            assert rotation_matrix_to_angle(R) == pytest.approx(angle)

    def test_quaternion_round_trip(self):
        """Matrix -> quaternion -> matrix reproduces the rotation."""
        q = UnitQuaternion.from_euler_angles(0.3, -0.2, 1.1)
        R = quat_to_rotation_matrix(q.q)
        q_back = rotation_matrix_to_quat(R)
        np.testing.assert_allclose(quat_to_rotation_matrix(q_back), R, atol=1e-12)
        assert np.linalg.det(R) == pytest.approx(1.0)

    def test_rotation_type_for_dimension(self):
        assert rotation_type_for_dimension(2) is UnitComplex
        assert rotation_type_for_dimension(3) is UnitQuaternion
        with pytest.raises(ValueError):
            rotation_type_for_dimension(4)


class TestUnitComplex:
    """Test 2D rotations."""

    def test_rotate_quarter_turn(self):
        r = UnitComplex.from_angle(np.pi / 2)
        np.testing.assert_allclose(r.transform_point(np.array([1.0, 0.0])), [0.0, 1.0], atol=1e-12)

    def test_compose_adds_angles(self):
        r = UnitComplex.from_angle(0.3).compose(UnitComplex.from_angle(0.4))
        assert r.angle == pytest.approx(0.7)

    def test_inverse(self):
        r = UnitComplex.from_angle(1.2)
        assert (r * r.inverse()).angle == pytest.approx(0.0)

    def test_from_rotation_matrix(self):
        R = angle_to_rotation_matrix(-0.8)
        np.testing.assert_allclose(UnitComplex.from_rotation_matrix(R).to_matrix(), R)

    def test_mixed_types_rejected(self):
        with pytest.raises(TypeError):
            UnitComplex.identity().compose(UnitQuaternion.identity())


class TestUnitQuaternion:
    """Test 3D rotations."""

    def test_yaw_rotation(self):
        q = UnitQuaternion.from_euler_angles(0.0, 0.0, np.pi / 2)
        np.testing.assert_allclose(
            q.transform_point(np.array([1.0, 0.0, 0.0])), [0.0, 1.0, 0.0], atol=1e-12
        )

    def test_scaled_axis(self):
        q = UnitQuaternion.from_scaled_axis(np.array([0.0, 0.0, 0.5]))
        assert q.angle == pytest.approx(0.5)
        np.testing.assert_allclose(
            q.to_matrix(), UnitQuaternion.from_euler_angles(0.0, 0.0, 0.5).to_matrix(), atol=1e-12
        )

    def test_zero_scaled_axis_is_identity(self):
        q = UnitQuaternion.from_scaled_axis(np.zeros(3))
        np.testing.assert_allclose(q.to_matrix(), np.eye(3))

    def test_compose_matches_matrix_product(self):
        a = UnitQuaternion.from_euler_angles(0.1, 0.2, 0.3)
        b = UnitQuaternion.from_euler_angles(-0.4, 0.5, 0.6)
        np.testing.assert_allclose(
            a.compose(b).to_matrix(), a.to_matrix() @ b.to_matrix(), atol=1e-12
        )


class TestRigidTransform:
    """Test RigidTransform application, composition and inversion."""

    def test_transform_point(self):
        T = RigidTransform([1.0, 2.0], UnitComplex.from_angle(np.pi / 2))
        np.testing.assert_allclose(T.transform_point(np.array([1.0, 0.0])), [1.0, 3.0])

    def test_transform_cloud_preserves_dtype(self):
        T = RigidTransform([1.0, 2.0], UnitComplex.from_angle(0.1))
        cloud = np.ones((5, 2), dtype=np.float32)
        assert T.transform_point(cloud).dtype == np.float32

    def test_compose_applies_right_operand_first(self):
        first = RigidTransform([1.0, 0.0], UnitComplex.from_angle(np.pi / 2))
        second = RigidTransform([0.0, 2.0], UnitComplex.from_angle(0.3))
        p = np.array([0.5, -1.0])

        composed = second @ first
        np.testing.assert_allclose(
            composed.transform_point(p), second.transform_point(first.transform_point(p))
        )

    def test_inverse(self):
        T = RigidTransform([1.0, -2.0, 3.0], UnitQuaternion.from_euler_angles(0.1, 0.2, 0.3))
        identity = T.inverse() @ T
        np.testing.assert_allclose(identity.translation, np.zeros(3), atol=1e-12)
        np.testing.assert_allclose(identity.rotation.to_matrix(), np.eye(3), atol=1e-12)

    def test_to_matrix(self):
        T = RigidTransform([1.0, 2.0], UnitComplex.from_angle(0.5))
        H = T.to_matrix()
        assert H.shape == (3, 3)
        p = np.array([3.0, -1.0])
        np.testing.assert_allclose((H @ np.append(p, 1.0))[:2], T.transform_point(p))

    def test_translation_shape_mismatch(self):
        with pytest.raises(ValueError, match="translation must have shape"):
            RigidTransform([1.0, 2.0, 3.0], UnitComplex.identity())

    def test_copy_is_independent(self):
        T = RigidTransform([1.0, 2.0], UnitComplex.identity())
        copied = T.copy()
        copied.translation[0] = 10.0
        assert T.translation[0] == 1.0


class TestSimilarityTransform:
    """Test scaled poses used by the mapper."""

    def test_scale_applied_before_isometry(self):
        S = SimilarityTransform(RigidTransform([10.0, 10.0], UnitComplex.identity()), 2.0)
        np.testing.assert_allclose(S.transform_point(np.array([1.0, -1.0])), [12.0, 8.0])

    def test_append_translation(self):
        S = SimilarityTransform(RigidTransform([1.0, 1.0], UnitComplex.identity()), 1.0)
        S.append_translation(np.array([0.5, -0.5]))
        np.testing.assert_allclose(S.translation, [1.5, 0.5])

    def test_append_rotation_keeps_translation(self):
        S = SimilarityTransform(RigidTransform([4.0, 4.0], UnitComplex.from_angle(0.2)), 1.0)
        S.append_rotation_wrt_center(UnitComplex.from_angle(0.3))
        np.testing.assert_allclose(S.translation, [4.0, 4.0])
        assert S.rotation.angle == pytest.approx(0.5)

    def test_non_positive_scale_rejected(self):
        with pytest.raises(ValueError):
            SimilarityTransform(RigidTransform.identity(2), 0.0)
