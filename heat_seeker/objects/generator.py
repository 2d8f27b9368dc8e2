"""
Procedural placement for the heat search arena
----------------------------------------------
• Robot spawn sampled inside the inset interior
• Obstacles kept away from the spawn point and the walls
• Heat targets kept away from the robot and from every obstacle
• Bounded retry: when the attempt budget runs out the last sample is
  accepted and a warning is logged
"""

import logging
from typing import Callable, List, Optional, Tuple

import numpy as np

from heat_seeker.config import SimulationConfig
from heat_seeker.objects.heat_sources import HeatCategory, Obstacle, Target

logger = logging.getLogger(__name__)

OBSTACLE_SHAPES = ("box", "cylinder", "cone")


def _centered(rng: np.random.Generator, span: float) -> float:
    return float((rng.random() - 0.5) * span)


def _sample_with_budget(rng: np.random.Generator, span: float, attempts: int,
                        accept: Callable[[float, float], bool],
                        what: str) -> Tuple[float, float, bool]:
    """Sample points until `accept` holds or the attempt budget runs out."""
    x = z = 0.0
    for _ in range(max(1, attempts)):
        x = _centered(rng, span)
        z = _centered(rng, span)
        if accept(x, z):
            return x, z, True
    logger.warning("No valid %s placement after %d attempts; accepting (%.2f, %.2f)",
                   what, attempts, x, z)
    return x, z, False


def sample_robot_spawn(cfg: SimulationConfig, rng: np.random.Generator) -> Tuple[float, float]:
    span = cfg.field_size - cfg.robot_spawn_margin
    return _centered(rng, span), _centered(rng, span)


def place_obstacle(cfg: SimulationConfig, rng: np.random.Generator,
                   robot_pos: Tuple[float, float]) -> Obstacle:
    """
    Place one obstacle away from the robot spawn and the walls.

    Args:
        cfg: simulation configuration
        rng: random generator
        robot_pos: (x, z) robot position at placement time

    Returns:
        The new obstacle (possibly at an invalid position, see module docs)
    """
    h = cfg.half_extent

    def accept(x, z):
        dist_robot = np.hypot(x - robot_pos[0], z - robot_pos[1])
        dist_wall = min(abs(x + h), abs(x - h), abs(z + h), abs(z - h))
        return dist_robot > cfg.obstacle_robot_clearance and dist_wall > cfg.obstacle_wall_clearance

    x, z, _ = _sample_with_budget(rng, cfg.field_size - cfg.obstacle_spawn_margin,
                                  cfg.placement_attempts, accept, "obstacle")
    shape = OBSTACLE_SHAPES[int(rng.integers(0, len(OBSTACLE_SHAPES)))]
    size = float(rng.uniform(1.0, 3.0))
    return Obstacle(x=x, z=z, radius=cfg.obstacle_clearance, shape=shape, size=size)


def place_target(cfg: SimulationConfig, rng: np.random.Generator, target_id: int,
                 robot_pos: Tuple[float, float], obstacles: List[Obstacle],
                 category: Optional[HeatCategory] = None) -> Target:
    """Place one heat target away from the robot and every obstacle."""
    if category is None:
        categories = list(HeatCategory)
        category = categories[int(rng.integers(0, len(categories)))]

    def accept(x, z):
        if np.hypot(x - robot_pos[0], z - robot_pos[1]) <= cfg.target_robot_clearance:
            return False
        for obstacle in obstacles:
            if np.hypot(x - obstacle.x, z - obstacle.z) < cfg.target_obstacle_clearance:
                return False
        return True

    x, z, _ = _sample_with_budget(rng, cfg.field_size - cfg.target_spawn_margin,
                                  cfg.placement_attempts, accept, "target")
    return Target(target_id=target_id, x=x, z=z, category=category)


def generate_obstacles(cfg: SimulationConfig, rng: np.random.Generator,
                       robot_pos: Tuple[float, float]) -> List[Obstacle]:
    return [place_obstacle(cfg, rng, robot_pos) for _ in range(cfg.num_obstacles)]
