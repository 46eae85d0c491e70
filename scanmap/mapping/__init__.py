"""Occupancy grid mapping.

Main components:
    - OccupancyGrid: log-odds grid with per-frame update deduplication
    - IncrementalMapper: pushes point clouds, runs ICP odometry and ray
      casts them into the grid
    - MapperConfig, MapperConfigError: mapper configuration

Example usage:
    >>> from scanmap.mapping import IncrementalMapper
    >>> mapper = (IncrementalMapper.builder()
    ...           .with_dimensions((100, 100))
    ...           .with_calculate_odometry(True)
    ...           .build())
    >>> # mapper.push_point_cloud(scan, is_new_frame=True)
"""

from .grid_map import OccupancyGrid
from .mapper import IncrementalMapper, MapperConfig, MapperConfigError

__all__ = [
    "OccupancyGrid",
    "IncrementalMapper",
    "MapperConfig",
    "MapperConfigError",
]
