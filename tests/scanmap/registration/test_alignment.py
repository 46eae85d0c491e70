"""Unit tests for scanmap.registration.alignment (SVD rigid alignment)."""

import numpy as np
import pytest

from scanmap.geometry import RigidTransform, UnitComplex, UnitQuaternion
from scanmap.registration import cross_covariance, estimate_rotation, update_transform


class TestCrossCovariance:
    """Test cross-covariance and centroid computation."""

    def test_known_values(self):
        moved = np.array([[6.0, 4.0, 20.0], [100.0, 60.0, 3.0], [5.0, 20.0, 10.0]])
        target = np.array([[40.0, 22.0, 12.0], [10.0, 14.0, 10.0], [7.0, 30.0, 20.0]])

        M, mean_moved, mean_target = cross_covariance(moved, target)

        np.testing.assert_allclose(mean_moved, [37.0, 28.0, 11.0])
        np.testing.assert_allclose(mean_target, [19.0, 22.0, 14.0])
        np.testing.assert_allclose(
            M.T,
            [[-834.0, -760.0, -382.0], [-696.0, -320.0, -128.0], [273.0, 56.0, 8.0]],
        )

    def test_shape_mismatch(self):
        with pytest.raises(ValueError, match="same shape"):
            cross_covariance(np.zeros((3, 2)), np.zeros((4, 2)))


class TestEstimateRotation:
    """Test rotation extraction from the cross-covariance matrix."""

    def test_recovers_known_rotation(self):
        rng = np.random.default_rng(7)
        source = rng.uniform(-5.0, 5.0, size=(30, 3))
        R_true = UnitQuaternion.from_euler_angles(0.2, -0.1, 0.4).to_matrix()
        target = source @ R_true.T

        M, _, _ = cross_covariance(source, target)
        np.testing.assert_allclose(estimate_rotation(M), R_true, atol=1e-10)

    @pytest.mark.parametrize(
        "M",
        [np.diag([1.0, -1.0]), np.diag([3.0, 2.0, -1.0])],
    )
    def test_reflection_corrected(self, M):
        """U V^T is a reflection here, the result must still be a rotation."""
        R = estimate_rotation(M)
        assert np.linalg.det(R) == pytest.approx(1.0)
        np.testing.assert_allclose(R @ R.T, np.eye(M.shape[0]), atol=1e-12)

    def test_non_square_rejected(self):
        with pytest.raises(ValueError, match="square"):
            estimate_rotation(np.zeros((2, 3)))


class TestUpdateTransform:
    """Test the per-iteration transform update."""

    def test_single_step_alignment(self):
        source = np.array([[0.0, 0.0], [2.0, 0.0], [0.0, 1.0], [1.0, 3.0]])
        true = RigidTransform([0.5, -1.5], UnitComplex.from_angle(0.3))
        target = true.transform_point(source)

        M, mean_moved, mean_target = cross_covariance(source, target)
        result = update_transform(RigidTransform.identity(2), mean_moved, mean_target, M)

        np.testing.assert_allclose(result.transform_point(source), target, atol=1e-10)
        np.testing.assert_allclose(result.translation, [0.5, -1.5], atol=1e-10)

    def test_composes_onto_previous(self):
        source = np.array([[0.0, 0.0], [2.0, 0.0], [0.0, 1.0]])
        previous = RigidTransform([1.0, 0.0], UnitComplex.identity())
        moved = previous.transform_point(source)
        target = moved + np.array([0.0, 2.0])

        M, mean_moved, mean_target = cross_covariance(moved, target)
        result = update_transform(previous, mean_moved, mean_target, M)

        np.testing.assert_allclose(result.translation, [1.0, 2.0], atol=1e-10)
        np.testing.assert_allclose(result.transform_point(source), target, atol=1e-10)
