"""
Arena model for the heat search simulation.
Square operating area symmetric about the origin, bounded by walls and
populated with circular obstacles.
"""
from typing import List, Optional

import numpy as np

from heat_seeker.objects.heat_sources import Obstacle


class Arena:
    """Static bounds, wall test, obstacle set and blocked-point test."""

    def __init__(self, field_size: float = 40.0, wall_margin: float = 1.0,
                 obstacles: Optional[List[Obstacle]] = None):
        """
        Initialize arena.

        Args:
            field_size: side length of the square arena
            wall_margin: distance from the boundary treated as wall
            obstacles: initial obstacle list
        """
        self.field_size = float(field_size)
        self.wall_margin = float(wall_margin)
        self.obstacles: List[Obstacle] = list(obstacles or [])

    @property
    def half_extent(self) -> float:
        return self.field_size / 2.0

    @property
    def inner_limit(self) -> float:
        """Largest |coordinate| that is not a wall point."""
        return self.half_extent - self.wall_margin

    def is_wall(self, x: float, z: float) -> bool:
        limit = self.inner_limit
        return x <= -limit or x >= limit or z <= -limit or z >= limit

    def is_obstacle(self, x: float, z: float) -> bool:
        for obstacle in self.obstacles:
            if obstacle.contains(x, z):
                return True
        return False

    def is_blocked(self, x: float, z: float) -> bool:
        return self.is_wall(x, z) or self.is_obstacle(x, z)

    # ------------------------------------------------------------------
    # Vectorised queries (used by the ray scanner)
    # ------------------------------------------------------------------
    def wall_mask(self, xs: np.ndarray, zs: np.ndarray) -> np.ndarray:
        limit = self.inner_limit
        return (xs <= -limit) | (xs >= limit) | (zs <= -limit) | (zs >= limit)

    def obstacle_mask(self, xs: np.ndarray, zs: np.ndarray) -> np.ndarray:
        mask = np.zeros(np.shape(xs), dtype=bool)
        for obstacle in self.obstacles:
            mask |= np.hypot(xs - obstacle.x, zs - obstacle.z) < obstacle.radius
        return mask
