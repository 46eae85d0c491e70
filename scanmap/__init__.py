"""Point-cloud registration and incremental occupancy mapping.

This package contains the components of a small 2D/3D mapping pipeline:
- geometry: Rotation representations and rigid/similarity transforms
- spatial: k-d tree for nearest-neighbour queries
- point_clouds: Centroids, downsampling and synthetic cloud generation
- registration: SVD alignment and ICP scan matching
- lines: N-dimensional Bresenham ray casting
- mapping: Log-odds occupancy grid and incremental mapper
"""

__version__ = "0.1.0"
