"""K-dimensional tree for nearest-neighbour queries on point clouds.

The tree is the spatial index behind ICP correspondence search. It is built
once per query set by inserting points one at a time and is never
rebalanced.

Tree invariant:
    At depth d the splitting dimension is ``d mod N``. The left subtree of a
    node holds points whose coordinate on that dimension is strictly smaller
    than the node's; ties descend to the right.

Duplicate policy:
    Exact duplicates are rejected. Because ties descend right, a duplicate
    always meets its twin on the way down, so ``insert`` returns False and
    the tree size is unchanged.

All operations are iterative, so trees that degenerate into long chains
(e.g. built from sorted scans) do not run into the recursion limit.
"""

from typing import Callable, Iterator, List, Optional, Tuple

import numpy as np


class _KDNode:
    """A stored point and its two exclusively owned children."""

    __slots__ = ("point", "left", "right")

    def __init__(self, point: np.ndarray) -> None:
        self.point = point
        self.left: Optional["_KDNode"] = None
        self.right: Optional["_KDNode"] = None


class KDTree:
    """
    K-d tree over N-dimensional points.

    Attributes:
        dimensions: Number of coordinates per point (N).
        dtype: Floating-point precision of stored points.

    Examples:
        >>> tree = KDTree.from_points(np.array([[0.0, 2.0, 1.0],
        ...                                     [-1.0, 4.0, 2.5],
        ...                                     [1.3, 2.5, 0.5],
        ...                                     [-2.1, 0.2, -0.2]]))
        >>> tree.nearest(np.array([1.32, 2.7, 0.2]))
        array([1.3, 2.5, 0.5])
        >>> len(tree)
        4
    """

    def __init__(self, dimensions: int, dtype=np.float64) -> None:
        if dimensions < 1:
            raise ValueError(f"dimensions must be >= 1, got {dimensions}")
        self.dimensions = int(dimensions)
        self.dtype = np.dtype(dtype)
        self._root: Optional[_KDNode] = None
        self._size = 0

    @classmethod
    def from_points(cls, points: np.ndarray, dtype=None) -> "KDTree":
        """
        Build a tree by inserting every point of a cloud, in cloud order.

        Args:
            points: Point cloud, shape (M, N).
            dtype: Stored precision. Defaults to the cloud's floating dtype,
                   or float64 for non-floating input.

        Returns:
            KDTree holding the distinct points of the cloud.
        """
        points = np.asarray(points)
        if points.ndim != 2:
            raise ValueError(f"points must have shape (M, N), got {points.shape}")
        if dtype is None:
            dtype = points.dtype if np.issubdtype(points.dtype, np.floating) else np.float64

        tree = cls(points.shape[1], dtype=dtype)
        for point in points:
            tree.insert(point)
        return tree

    def _as_point(self, point) -> np.ndarray:
        point = np.array(point, dtype=self.dtype).reshape(-1)
        if point.shape != (self.dimensions,):
            raise ValueError(
                f"point must have shape ({self.dimensions},), got {point.shape}"
            )
        return point

    def __len__(self) -> int:
        return self._size

    def is_empty(self) -> bool:
        return self._root is None

    def insert(self, point) -> bool:
        """
        Insert a point, descending by cycling dimension.

        Args:
            point: Point of shape (N,). Coordinates must be finite.

        Returns:
            True if a new leaf was created, False if the point is an exact
            duplicate of a stored point (tree unchanged).

        Raises:
            ValueError: If the point has the wrong shape or is not finite.
        """
        point = self._as_point(point)
        if not np.all(np.isfinite(point)):
            raise ValueError(f"point must be finite, got {point}")

        if self._root is None:
            self._root = _KDNode(point)
            self._size = 1
            return True

        node = self._root
        depth = 0
        while True:
            if np.array_equal(node.point, point):
                return False

            axis = depth % self.dimensions
            if point[axis] < node.point[axis]:
                if node.left is None:
                    node.left = _KDNode(point)
                    break
                node = node.left
            else:
                if node.right is None:
                    node.right = _KDNode(point)
                    break
                node = node.right
            depth += 1

        self._size += 1
        return True

    def nearest(self, target) -> Optional[np.ndarray]:
        """
        Find the stored point closest to ``target`` (Euclidean distance).

        The branch on the same side of the splitting plane is searched first.
        The opposite branch is only searched when the squared distance from
        the target to the splitting plane is smaller than the squared
        distance to the best candidate so far.

        Args:
            target: Query point, shape (N,).

        Returns:
            Copy of the nearest stored point, or None if the tree is empty.
        """
        if self._root is None:
            return None

        target = self._as_point(target)
        best: Optional[np.ndarray] = None
        best_distance = np.inf

        # (node, depth, squared distance to the plane that separates it from the query)
        stack: List[Tuple[_KDNode, int, float]] = [(self._root, 0, 0.0)]
        while stack:
            node, depth, plane_distance = stack.pop()
            if plane_distance >= best_distance:
                continue

            diff = node.point - target
            distance = float(diff @ diff)
            if distance < best_distance:
                best = node.point
                best_distance = distance

            axis = depth % self.dimensions
            axis_distance = float(target[axis] - node.point[axis])
            if axis_distance < 0:
                near_branch, far_branch = node.left, node.right
            else:
                near_branch, far_branch = node.right, node.left

            # Far side is pushed first so the near side is exhausted before it is checked
            if far_branch is not None:
                stack.append((far_branch, depth + 1, axis_distance * axis_distance))
            if near_branch is not None:
                stack.append((near_branch, depth + 1, 0.0))

        return best.copy()

    def _in_order(self) -> Iterator[_KDNode]:
        stack: List[_KDNode] = []
        node = self._root
        while stack or node is not None:
            while node is not None:
                stack.append(node)
                node = node.left
            node = stack.pop()
            yield node
            node = node.right

    def traverse(self, visitor: Callable[[np.ndarray], None]) -> None:
        """
        Visit every stored point in order (left, self, right).

        Args:
            visitor: Called with a read-only view of each stored point.
        """
        for node in self._in_order():
            view = node.point.view()
            view.flags.writeable = False
            visitor(view)

    def traverse_mut(self, visitor: Callable[[np.ndarray], Optional[np.ndarray]]) -> None:
        """
        Visit every stored point in order, allowing in-place modification.

        Args:
            visitor: Called with the stored point array. It may modify the
                     array in place, or return a replacement point.

        Notes:
            Moving a point across a splitting plane breaks the tree
            invariant; later queries are then undefined.
        """
        for node in self._in_order():
            replacement = visitor(node.point)
            if replacement is not None:
                node.point = self._as_point(replacement)

    def __iter__(self) -> Iterator[np.ndarray]:
        for node in self._in_order():
            yield node.point.copy()

    def to_array(self) -> np.ndarray:
        """Stored points in traversal order, shape (len, N)."""
        if self._root is None:
            return np.empty((0, self.dimensions), dtype=self.dtype)
        return np.array(list(self), dtype=self.dtype)

    def __repr__(self) -> str:
        return f"KDTree(dimensions={self.dimensions}, size={self._size}, dtype={self.dtype})"
