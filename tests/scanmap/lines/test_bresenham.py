"""Unit tests for scanmap.lines.bresenham (N-dimensional ray casting)."""

import numpy as np
import pytest

from scanmap.lines import plot_line


def expected_length(start, end):
    return int(np.max(np.abs(np.asarray(end) - np.asarray(start)))) + 1


class TestPlotLine2D:
    """Test 2D lines in every octant direction."""

    def test_nonsteep_positive(self):
        line = plot_line([0.0, 0.0], [10.0, 3.0])
        assert line.tolist() == [
            [0, 0], [1, 0], [2, 0], [3, 1], [4, 1], [5, 1],
            [6, 2], [7, 2], [8, 2], [9, 3], [10, 3],
        ]

    def test_steep_positive(self):
        line = plot_line([0.0, 0.0], [3.0, 10.0])
        assert len(line) == expected_length([0, 0], [3, 10])
        assert line.tolist() == [
            [0, 0], [0, 1], [0, 2], [1, 3], [1, 4], [1, 5],
            [2, 6], [2, 7], [2, 8], [3, 9], [3, 10],
        ]

    def test_nonsteep_negative(self):
        line = plot_line([0.0, 0.0], [-10.0, -3.0])
        assert line.tolist() == [
            [0, 0], [-1, 0], [-2, 0], [-3, -1], [-4, -1], [-5, -1],
            [-6, -2], [-7, -2], [-8, -2], [-9, -3], [-10, -3],
        ]

    def test_steep_negative(self):
        line = plot_line([0.0, 0.0], [-3.0, -10.0])
        assert line.tolist() == [
            [0, 0], [0, -1], [0, -2], [-1, -3], [-1, -4], [-1, -5],
            [-2, -6], [-2, -7], [-2, -8], [-3, -9], [-3, -10],
        ]

    def test_short_diagonal(self):
        line = plot_line([0, 0], [3, 4])
        assert line.tolist() == [[0, 0], [1, 1], [1, 2], [2, 3], [3, 4]]
        assert len(line) == expected_length([0, 0], [3, 4])


class TestPlotLine3D:
    """Test 3D lines."""

    def test_mixed_directions(self):
        start, end = [0.0, 0.0, 0.0], [-3.0, -10.0, 7.0]
        line = plot_line(start, end)
        assert len(line) == expected_length(start, end)
        assert line.tolist() == [
            [0, 0, 0], [0, -1, 0], [0, -2, 1], [-1, -3, 2], [-1, -4, 3], [-1, -5, 3],
            [-2, -6, 4], [-2, -7, 5], [-2, -8, 5], [-2, -9, 6], [-3, -10, 7],
        ]

    def test_sub_cell_segment(self):
        """Deltas below one cell yield only the truncated end point."""
        line = plot_line([512.0, 512.0, 512.0], [512.5, 511.294, 512.1])
        assert line.tolist() == [[512, 511, 512]]


class TestPlotLineProperties:
    """Test endpoints, length and output types."""

    @pytest.mark.parametrize(
        "start, end",
        [
            ([0, 0], [7, -2]),
            ([5, 5], [5, 5]),
            ([-4, 2, 1], [6, -3, 9]),
            ([1, 1, 1], [1, 1, -8]),
        ],
    )
    def test_endpoints_and_length(self, start, end):
        line = plot_line(start, end)
        np.testing.assert_array_equal(line[0], start)
        np.testing.assert_array_equal(line[-1], end)
        assert len(line) == expected_length(start, end)

    def test_consecutive_cells_are_adjacent(self):
        line = plot_line([0, 0, 0], [13, -7, 4])
        steps = np.abs(np.diff(line, axis=0))
        assert np.all(steps <= 1)

    def test_truncates_toward_zero(self):
        line = plot_line([-0.5, 0.5], [-0.7, 0.2])
        assert line.dtype == np.int64
        assert line.tolist() == [[0, 0]]

    def test_float_output(self):
        line = plot_line([0.5, 0.5], [3.5, 1.5], dtype=np.float64)
        np.testing.assert_allclose(line[0], [0.5, 0.5])
        np.testing.assert_allclose(line[-1], [3.5, 1.5])

    def test_shape_mismatch(self):
        with pytest.raises(ValueError, match="same shape"):
            plot_line([0, 0], [1, 1, 1])
