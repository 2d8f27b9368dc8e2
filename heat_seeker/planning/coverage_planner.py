"""
Coverage patterns driven while no target is locked.

Four patterns: grid sweep over cell centres, an outward spiral that
re-anchors when blocked, a perimeter waypoint sweep, and a random patrol
that holds a direction for a step budget. Each step issues at most one
motion command through the MotionController and returns a status string
when the mission status should change (None keeps the previous one).
"""
import logging
import math
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

import numpy as np

from heat_seeker.config import SimulationConfig
from heat_seeker.control.motion_controller import MotionController
from heat_seeker.env.arena import Arena
from heat_seeker.robot.rover import RobotState
from heat_seeker.sensors.thermal_lidar import PerceptionSnapshot
from heat_seeker.utils import bearing, step_along

logger = logging.getLogger(__name__)


@dataclass
class GridCell:
    x: float
    z: float
    searched: bool = False


@dataclass
class SpiralState:
    center: Tuple[float, float]
    angle: float = 0.0
    radius: float = 2.0
    growth: float = 0.05


@dataclass
class RandomWalkState:
    angle: float
    steps: int


@dataclass
class MissionState:
    """Plan and cursors for every pattern."""
    cells: List[GridCell] = field(default_factory=list)
    cell_index: int = 0
    waypoints: List[Tuple[float, float]] = field(default_factory=list)
    waypoint_index: int = 0
    spiral: Optional[SpiralState] = None
    random_walk: Optional[RandomWalkState] = None
    spiral_reanchors: int = 0


def _progress(index: int, total: int) -> int:
    if total == 0:
        return 100
    return int(math.floor(100 * index / total))


class CoveragePlanner:
    """Generates mission plans and advances the active pattern by one tick."""

    def __init__(self, cfg: SimulationConfig, arena: Arena, motion: MotionController,
                 rng: Optional[np.random.Generator] = None):
        self.cfg = cfg
        self.arena = arena
        self.motion = motion
        self.rng = rng if rng is not None else np.random.default_rng()
        self.mission = MissionState()

    # ================================================================
    #  Plan generation
    # ================================================================
    def generate_mission_plan(self):
        """Rebuild grid cells and perimeter waypoints for the current arena."""
        fs = self.arena.field_size
        cells = []
        start = -fs / 2 + self.cfg.grid_inset
        stop = fs / 2 - self.cfg.grid_inset
        for x in np.arange(start, stop, self.cfg.grid_spacing):
            for z in np.arange(start, stop, self.cfg.grid_spacing):
                if not self.arena.is_blocked(x, z):
                    cells.append(GridCell(float(x), float(z)))

        waypoints = []
        radius = fs / 2 - self.cfg.perimeter_inset
        n = self.cfg.perimeter_waypoints
        for i in range(n):
            angle = 2 * math.pi * i / n
            x, z = math.cos(angle) * radius, math.sin(angle) * radius
            if not self.arena.is_blocked(x, z):
                waypoints.append((x, z))

        self.mission.cells = cells
        self.mission.cell_index = 0
        self.mission.waypoints = waypoints
        self.mission.waypoint_index = 0
        logger.info("Mission plan: %d grid cells, %d perimeter waypoints",
                    len(cells), len(waypoints))

    def reset(self):
        """Clear cursors and pattern state, keep the generated plan."""
        m = self.mission
        for cell in m.cells:
            cell.searched = False
        m.cell_index = 0
        m.waypoint_index = 0
        m.spiral = None
        m.random_walk = None
        m.spiral_reanchors = 0

    @property
    def grid_progress(self) -> int:
        return _progress(self.mission.cell_index, len(self.mission.cells))

    @property
    def perimeter_progress(self) -> int:
        return _progress(self.mission.waypoint_index, len(self.mission.waypoints))

    # ================================================================
    #  Helpers
    # ================================================================
    def _step_best(self, state: RobotState, snapshot: PerceptionSnapshot, distance: float):
        heading = self.motion.best_available_direction(snapshot, state.heading)
        self.motion.command_step(state, heading, distance)

    # ================================================================
    #  Grid sweep
    # ================================================================
    def step_grid(self, state: RobotState, snapshot: PerceptionSnapshot) -> Optional[str]:
        m = self.mission
        if m.cell_index >= len(m.cells):
            return "GRID SEARCH COMPLETE"

        status = None
        cell = m.cells[m.cell_index]
        if math.hypot(state.x - cell.x, state.z - cell.z) < self.cfg.grid_completion_radius:
            cell.searched = True
            m.cell_index += 1
            status = f"SEARCHING... {self.grid_progress}% COMPLETE"
            logger.debug("Grid cell %d/%d reached", m.cell_index, len(m.cells))

        if m.cell_index < len(m.cells):
            nxt = m.cells[m.cell_index]
            to_cell = bearing(state.x, state.z, nxt.x, nxt.z)
            record = snapshot.clear_toward(to_cell, self.cfg.grid_direction_tolerance)
            if record is not None:
                self.motion.command_step(state, record.angle, self.cfg.robot_speed)
            else:
                self._step_best(state, snapshot, self.cfg.robot_speed)
        return status

    # ================================================================
    #  Spiral
    # ================================================================
    def step_spiral(self, state: RobotState, snapshot: PerceptionSnapshot) -> Optional[str]:
        cfg = self.cfg
        m = self.mission
        if m.spiral is None:
            m.spiral = SpiralState(center=(state.x, state.z), radius=cfg.spiral_start_radius,
                                   growth=cfg.spiral_radius_growth)

        spiral = m.spiral
        spiral.angle += cfg.spiral_angle_step
        spiral.radius += spiral.growth
        nx = spiral.center[0] + math.cos(spiral.angle) * spiral.radius
        nz = spiral.center[1] + math.sin(spiral.angle) * spiral.radius

        to_point = bearing(state.x, state.z, nx, nz)
        clear = snapshot.clear_toward(to_point, cfg.spiral_direction_tolerance,
                                      cfg.spiral_min_clearance)
        if clear is not None and not self.arena.is_blocked(nx, nz):
            self.motion.update_target_position(state, nx, nz, to_point)
            return None

        escape = self.motion.best_available_direction(snapshot, state.heading)
        ex, ez = step_along(state.x, state.z, escape, cfg.robot_speed * cfg.spiral_escape_factor)
        if not self.arena.is_blocked(ex, ez):
            self.motion.update_target_position(state, ex, ez, escape)
        m.spiral = SpiralState(center=(state.x, state.z), radius=cfg.spiral_reanchor_radius,
                               growth=cfg.spiral_radius_growth)
        m.spiral_reanchors += 1
        logger.debug("Spiral re-anchored at (%.1f, %.1f)", state.x, state.z)
        return None

    # ================================================================
    #  Perimeter sweep
    # ================================================================
    def step_perimeter(self, state: RobotState, snapshot: PerceptionSnapshot) -> Optional[str]:
        m = self.mission
        if m.waypoint_index >= len(m.waypoints):
            return "PERIMETER SWEEP COMPLETE"

        status = None
        wx, wz = m.waypoints[m.waypoint_index]
        if math.hypot(state.x - wx, state.z - wz) < self.cfg.perimeter_completion_radius:
            m.waypoint_index += 1
            status = f"PERIMETER SWEEP... {self.perimeter_progress}% COMPLETE"

        if m.waypoint_index < len(m.waypoints):
            self._step_best(state, snapshot, self.cfg.robot_speed)
        return status

    # ================================================================
    #  Random patrol
    # ================================================================
    def step_random(self, state: RobotState, snapshot: PerceptionSnapshot) -> Optional[str]:
        cfg = self.cfg
        m = self.mission
        if m.random_walk is None or m.random_walk.steps <= 0:
            m.random_walk = RandomWalkState(
                angle=self.motion.best_available_direction(snapshot, state.heading),
                steps=int(math.floor(cfg.patrol_min_steps + self.rng.random() * cfg.patrol_step_spread)),
            )

        walk = m.random_walk
        nx, nz = step_along(state.x, state.z, walk.angle, cfg.robot_speed)
        clear = snapshot.clear_toward(walk.angle, cfg.patrol_direction_tolerance,
                                      cfg.patrol_min_clearance)
        if clear is not None and not self.arena.is_blocked(nx, nz):
            self.motion.update_target_position(state, nx, nz, walk.angle)
            walk.steps -= 1
        else:
            walk.angle = self.motion.best_available_direction(snapshot, state.heading)
            walk.steps = int(math.floor(
                cfg.patrol_repick_min_steps + self.rng.random() * cfg.patrol_repick_spread))
        return None
