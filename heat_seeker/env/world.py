"""
World container owned by the caller of the navigation core.
Holds the arena, the robot spawn and the live heat targets in an id-keyed
table. Ids grow monotonically and are never reused, so a lock that refers
to a captured target is detectably stale.
"""
import json
import logging
import os
from typing import Dict, List, Optional, Tuple

import numpy as np

from heat_seeker.config import SimulationConfig
from heat_seeker.env.arena import Arena
from heat_seeker.objects.generator import (
    generate_obstacles,
    place_target,
    sample_robot_spawn,
)
from heat_seeker.objects.heat_sources import HeatCategory, Obstacle, Target

logger = logging.getLogger(__name__)


class LayoutError(ValueError):
    """Raised when a saved layout file cannot be interpreted."""


class World:
    """Arena + target set shared with the navigation core by reference."""

    def __init__(self, arena: Arena, spawn: Tuple[float, float] = (0.0, 0.0),
                 spawn_heading: float = 0.0, rng: Optional[np.random.Generator] = None):
        self.arena = arena
        self.spawn = spawn
        self.spawn_heading = spawn_heading
        self.rng = rng if rng is not None else np.random.default_rng()
        self.targets: Dict[int, Target] = {}
        self._next_id = 0

    # ================================================================
    #  Construction
    # ================================================================
    @classmethod
    def generate(cls, cfg: SimulationConfig, rng: Optional[np.random.Generator] = None) -> "World":
        """Random world: robot spawn, obstacles, then targets."""
        rng = rng if rng is not None else np.random.default_rng(cfg.seed)
        spawn = sample_robot_spawn(cfg, rng)
        arena = Arena(cfg.field_size, cfg.wall_margin)
        world = cls(arena, spawn=spawn, spawn_heading=cfg.robot_spawn_heading, rng=rng)
        arena.obstacles = generate_obstacles(cfg, rng, spawn)
        for _ in range(cfg.num_targets):
            world.spawn_target(cfg, spawn)
        logger.info("Generated world: side %.0f, %d obstacles, %d targets, spawn (%.1f, %.1f)",
                    cfg.field_size, len(arena.obstacles), len(world.targets), *spawn)
        return world

    # ================================================================
    #  Targets
    # ================================================================
    def add_target(self, x: float, z: float, category: HeatCategory) -> Target:
        target = Target(target_id=self._allocate_id(), x=x, z=z, category=category)
        self.targets[target.target_id] = target
        return target

    def spawn_target(self, cfg: SimulationConfig, robot_pos: Tuple[float, float],
                     category: Optional[HeatCategory] = None) -> Target:
        target = place_target(cfg, self.rng, self._allocate_id(), robot_pos,
                              self.arena.obstacles, category)
        self.targets[target.target_id] = target
        logger.debug("Spawned %s #%d at (%.1f, %.1f)", target.category.label,
                     target.target_id, target.x, target.z)
        return target

    def get_target(self, target_id: Optional[int]) -> Optional[Target]:
        if target_id is None:
            return None
        return self.targets.get(target_id)

    def remove_target(self, target_id: int) -> Optional[Target]:
        return self.targets.pop(target_id, None)

    def capture(self, target_id: int, cfg: SimulationConfig,
                robot_pos: Tuple[float, float]) -> Optional[Target]:
        """Remove a target and spawn its replacement elsewhere."""
        captured = self.remove_target(target_id)
        if captured is not None:
            self.spawn_target(cfg, robot_pos)
        return captured

    def targets_within(self, x: float, z: float, radius: float) -> List[Target]:
        return [t for t in self.target_list() if t.distance_to(x, z) < radius]

    def target_list(self) -> List[Target]:
        """Targets in stable id order (a copy, safe to mutate the table while iterating)."""
        return [self.targets[i] for i in sorted(self.targets)]

    def respawn_targets(self, cfg: SimulationConfig, robot_pos: Tuple[float, float]):
        self.targets.clear()
        for _ in range(cfg.num_targets):
            self.spawn_target(cfg, robot_pos)

    def respawn_obstacles(self, cfg: SimulationConfig, robot_pos: Tuple[float, float]):
        self.arena.obstacles = generate_obstacles(cfg, self.rng, robot_pos)

    def _allocate_id(self) -> int:
        target_id = self._next_id
        self._next_id += 1
        return target_id

    # ================================================================
    #  Layout persistence
    # ================================================================
    def save_layout(self, path: str):
        data = {
            "field_size": self.arena.field_size,
            "wall_margin": self.arena.wall_margin,
            "spawn": list(self.spawn),
            "spawn_heading": self.spawn_heading,
            "obstacles": [
                {"x": o.x, "z": o.z, "radius": o.radius, "shape": o.shape, "size": o.size}
                for o in self.arena.obstacles
            ],
            "targets": [
                {"x": t.x, "z": t.z, "category": t.category.name}
                for t in self.target_list()
            ],
        }
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(path, "w") as f:
            json.dump(data, f, indent=2)
        logger.info("Saved layout to %s", path)

    @classmethod
    def load_layout(cls, path: str, rng: Optional[np.random.Generator] = None) -> "World":
        with open(path, "r") as f:
            try:
                data = json.load(f)
            except json.JSONDecodeError as exc:
                raise LayoutError(f"{path} is not valid JSON: {exc}") from exc
        try:
            arena = Arena(data["field_size"], data.get("wall_margin", 1.0),
                          [Obstacle(**o) for o in data.get("obstacles", [])])
            world = cls(arena, spawn=tuple(data["spawn"]),
                        spawn_heading=data.get("spawn_heading", 0.0), rng=rng)
            for t in data.get("targets", []):
                world.add_target(t["x"], t["z"], HeatCategory[t["category"]])
        except (KeyError, TypeError) as exc:
            raise LayoutError(f"{path} is missing or has malformed fields: {exc}") from exc
        logger.info("Loaded layout from %s (%d obstacles, %d targets)",
                    path, len(arena.obstacles), len(world.targets))
        return world
