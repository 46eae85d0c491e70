"""Dense N-dimensional log-odds occupancy grid.

Each cell stores:
    - log_odds: belief that the cell is occupied, ln(p / (1 - p))
    - last_update_frame: 8-bit tag of the frame that last touched the cell
      (0 means the cell has never been updated)

The frame tag implements per-frame deduplication of updates: a single scan
typically casts many rays through the same free cells, and each of those
cells should only be decremented once per frame.

Confidence factors:
    The occupied and free increments are derived from symmetric confidence
    multipliers f (> 1) as ln(f - 1/f).
"""

from typing import Optional, Sequence, Tuple

import numpy as np


class OccupancyGrid:
    """
    Fixed-size occupancy grid with frame-scoped update deduplication.

    Cells are addressed by integer coordinates of shape (N,). Internally the
    grid is stored as flat arrays with ``stride[i] = prod(dimensions[:i])``,
    so the first axis varies fastest.

    Attributes:
        dimensions: Number of cells along each axis.
        strides: Flat-index stride per axis.
        positive_factor: Log-odds increment for an occupied observation.
        negative_factor: Log-odds decrement for a free observation.
        max_confidence: Upper bound on a cell's log-odds.

    Examples:
        >>> grid = OccupancyGrid((4, 4), occupied_factor=2.5, free_factor=2.0,
        ...                      max_confidence=10.0)
        >>> grid.occupied_update((1, 2), frame=1)
        True
        >>> grid.probability((1, 2)) > 0.5
        True
    """

    def __init__(
        self,
        dimensions: Sequence[int],
        occupied_factor: float,
        free_factor: float,
        max_confidence: float,
        dtype=np.float64,
    ) -> None:
        dimensions = tuple(int(d) for d in dimensions)
        if len(dimensions) == 0:
            raise ValueError("dimensions must not be empty")
        if any(d <= 0 for d in dimensions):
            raise ValueError(f"every dimension must be positive, got {dimensions}")
        if not occupied_factor > 1.0:
            raise ValueError(f"occupied_factor must be greater than 1, got {occupied_factor}")
        if not free_factor > 1.0:
            raise ValueError(f"free_factor must be greater than 1, got {free_factor}")

        self.dimensions: Tuple[int, ...] = dimensions
        self.strides: Tuple[int, ...] = tuple(
            int(np.prod(dimensions[:idx], dtype=np.int64)) for idx in range(len(dimensions))
        )
        self.dtype = np.dtype(dtype)
        self.positive_factor = float(np.log(occupied_factor - 1.0 / occupied_factor))
        self.negative_factor = float(np.log(free_factor - 1.0 / free_factor))
        self.max_confidence = float(max_confidence)

        n_cells = int(np.prod(dimensions, dtype=np.int64))
        self._log_odds = np.zeros(n_cells, dtype=self.dtype)
        self._update_frame = np.zeros(n_cells, dtype=np.uint8)

    @property
    def ndim(self) -> int:
        return len(self.dimensions)

    def __len__(self) -> int:
        return self._log_odds.shape[0]

    def cell_index(self, cell) -> Optional[int]:
        """
        Flat index of an integer cell coordinate.

        Args:
            cell: Integer coordinates, shape (N,).

        Returns:
            Flat index, or None if the cell lies outside the grid.
        """
        coords = np.asarray(cell).reshape(-1)
        if coords.shape != (self.ndim,):
            raise ValueError(f"cell must have shape ({self.ndim},), got {coords.shape}")

        index = 0
        for coord, size, stride in zip(coords, self.dimensions, self.strides):
            coord = int(coord)
            if coord < 0 or coord >= size:
                return None
            index += coord * stride
        return index

    def occupied_update(self, cell, frame: int) -> bool:
        """
        Record an occupied observation.

        Skipped if the cell is already at maximum confidence. If the cell was
        already touched in this frame (typically marked free by the same
        ray), the free decrement is revoked together with the occupied
        increment. The result never exceeds max_confidence.

        Args:
            cell: Integer cell coordinates, shape (N,).
            frame: Frame tag in 1..=255.

        Returns:
            True if the cell changed, False if out of bounds or saturated.
        """
        index = self.cell_index(cell)
        if index is None:
            return False

        odds = self._log_odds[index]
        if odds >= self.max_confidence:
            return False

        if self._update_frame[index] == frame:
            odds += self.positive_factor + self.negative_factor
        else:
            self._update_frame[index] = frame
            odds += self.positive_factor

        self._log_odds[index] = min(odds, self.max_confidence)
        return True

    def free_update(self, cell, frame: int) -> bool:
        """
        Record a free observation, at most once per cell per frame.

        Args:
            cell: Integer cell coordinates, shape (N,).
            frame: Frame tag in 1..=255.

        Returns:
            True if the cell changed, False if out of bounds or already
            touched in this frame.

        Notes:
            There is no lower bound on the log-odds.
        """
        index = self.cell_index(cell)
        if index is None:
            return False

        if self._update_frame[index] == frame:
            return False

        self._log_odds[index] -= self.negative_factor
        self._update_frame[index] = frame
        return True

    def log_odds(self, cell) -> Optional[float]:
        index = self.cell_index(cell)
        return None if index is None else float(self._log_odds[index])

    def last_update_frame(self, cell) -> Optional[int]:
        index = self.cell_index(cell)
        return None if index is None else int(self._update_frame[index])

    def probability(self, cell) -> Optional[float]:
        """
        Occupancy probability of a cell.

        Returns:
            exp(l) / (1 + exp(l)) for the cell's log-odds l, or None if the
            cell lies outside the grid.
        """
        index = self.cell_index(cell)
        if index is None:
            return None

        odds = np.exp(float(self._log_odds[index]))
        return float(odds / (1.0 + odds))

    def probability_map(self) -> np.ndarray:
        """Occupancy probability of every cell, shaped like ``dimensions``."""
        # Logistic form avoids overflow of exp() for very free cells
        probabilities = 1.0 / (1.0 + np.exp(-self._log_odds.astype(np.float64)))
        return probabilities.reshape(self.dimensions, order="F")

    def log_odds_map(self) -> np.ndarray:
        """Copy of all log-odds, shaped like ``dimensions``."""
        return self._log_odds.reshape(self.dimensions, order="F").copy()

    def __repr__(self) -> str:
        return (
            f"OccupancyGrid(dimensions={self.dimensions}, "
            f"positive_factor={self.positive_factor:.4f}, "
            f"negative_factor={self.negative_factor:.4f}, "
            f"max_confidence={self.max_confidence})"
        )
