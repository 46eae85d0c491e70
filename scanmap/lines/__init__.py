"""Grid line drawing used for ray casting."""

from .bresenham import plot_line

__all__ = ["plot_line"]
