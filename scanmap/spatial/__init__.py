"""Spatial indexing for nearest-neighbour search."""

from .kd_tree import KDTree

__all__ = ["KDTree"]
