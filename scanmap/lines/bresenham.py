"""Free-form N-dimensional Bresenham line drawing (grid ray casting).

Used by the occupancy mapper to walk the grid cells between the sensor
position and a detected point: every cell but the last is observed free,
the last one is observed occupied.
"""

import numpy as np


def plot_line(start_point, end_point, dtype=np.int64) -> np.ndarray:
    """
    Plot the sequence of grid cells on the segment from start to end.

    The walk advances one unit at a time along the primary axis (the axis
    with the largest absolute delta). Every secondary axis accumulates an
    error of |delta_axis| / |delta_primary| per step and moves one unit when
    the error reaches 1 - 1/(N + 1).

    Args:
        start_point: Start coordinates, shape (N,). May be fractional.
        end_point: End coordinates, shape (N,). May be fractional.
        dtype: Output element type. Integer types truncate toward zero.

    Returns:
        Array of shape (K, N), always starting at ``start_point`` and ending
        at ``end_point``. For integral endpoints K = max|delta| + 1.

    Raises:
        ValueError: If the endpoints have different shapes.

    Examples:
        >>> plot_line([0, 0], [3, 4]).tolist()
        [[0, 0], [1, 1], [1, 2], [2, 3], [3, 4]]
        >>> len(plot_line([0.0, 0.0], [10.0, 3.0]))
        11
    """
    start = np.asarray(start_point, dtype=np.float64).reshape(-1)
    end = np.asarray(end_point, dtype=np.float64).reshape(-1)
    if start.shape != end.shape:
        raise ValueError(
            f"start and end must have the same shape, got {start.shape} and {end.shape}"
        )

    n_dims = start.shape[0]
    deltas = np.abs(end - start)
    steps = np.where(end > start, 1.0, -1.0)
    # On equal deltas the last axis is primary
    primary_axis = n_dims - 1 - int(np.argmax(deltas[::-1]))
    error_threshold = 1.0 - 1.0 / (n_dims + 1)

    current = start.copy()
    errors = np.zeros(n_dims)
    points = []
    while abs(current[primary_axis] - end[primary_axis]) >= 1.0:
        points.append(current.copy())

        for axis in range(n_dims):
            if axis == primary_axis:
                continue

            errors[axis] += deltas[axis] / deltas[primary_axis]

            if errors[axis] >= error_threshold:
                current[axis] += steps[axis]
                errors[axis] -= 1.0

        current[primary_axis] += steps[primary_axis]

    points.append(end.copy())
    line = np.array(points)

    if np.issubdtype(np.dtype(dtype), np.integer):
        return np.trunc(line).astype(dtype)
    return line.astype(dtype)
