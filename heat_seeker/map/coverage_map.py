"""
Fog-of-war coverage map.
Tracks which parts of the arena the sensor fan has swept, as a coverage
signal for patterns without a mission plan (spiral, random patrol).
"""
import numpy as np
from scipy.ndimage import binary_dilation
from typing import Tuple


class CoverageMap:
    """Boolean explored grid over the square arena."""

    def __init__(self, field_size: float = 40.0, resolution: float = 0.5,
                 reveal_radius: float = 1.3):
        """
        Initialize coverage map.

        Args:
            field_size: arena side length in meters
            resolution: grid cell size in meters
            reveal_radius: radius cleared around every swept sample point
        """
        self.field_size = field_size
        self.resolution = resolution
        self.size = max(1, int(np.ceil(field_size / resolution)))
        self.explored = np.zeros((self.size, self.size), dtype=bool)

        r = max(0, int(round(reveal_radius / resolution)))
        yy, xx = np.ogrid[-r:r + 1, -r:r + 1]
        self._footprint = (xx ** 2 + yy ** 2) <= r ** 2

    def world_to_grid(self, x, z) -> Tuple[np.ndarray, np.ndarray]:
        """Convert world coordinates to grid indices (arrays accepted)."""
        half = self.field_size / 2.0
        gx = np.floor((np.asarray(x) + half) / self.resolution).astype(int)
        gz = np.floor((np.asarray(z) + half) / self.resolution).astype(int)
        return gx, gz

    def mark_points(self, xs: np.ndarray, zs: np.ndarray):
        """Reveal the area around every given sample point."""
        if np.size(xs) == 0:
            return
        gx, gz = self.world_to_grid(xs, zs)
        inside = (gx >= 0) & (gx < self.size) & (gz >= 0) & (gz < self.size)
        hits = np.zeros_like(self.explored)
        hits[gz[inside], gx[inside]] = True
        self.explored |= binary_dilation(hits, structure=self._footprint)

    def explored_percentage(self) -> float:
        return float(self.explored.mean() * 100.0)

    def reset(self):
        self.explored.fill(False)
