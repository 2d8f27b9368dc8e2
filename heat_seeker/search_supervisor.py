"""
Heat-seeking search supervisor.

Owns the rover state and runs the per-tick pipeline:
    sense -> arbitrate targets -> no-path bookkeeping -> dispatch
    (manual / locked pursuit / rotation scan / coverage pattern)
    -> smoothing -> history

The World (arena + targets) is passed in by reference and mutated only
through captures and explicit respawn requests.
"""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

import numpy as np

from heat_seeker.clock import SimulatedClock
from heat_seeker.config import SimulationConfig
from heat_seeker.control.motion_controller import MotionController
from heat_seeker.env.world import World
from heat_seeker.map.coverage_map import CoverageMap
from heat_seeker.objects.heat_sources import HeatCategory, Target
from heat_seeker.planning.coverage_planner import CoveragePlanner
from heat_seeker.planning.target_tracker import TargetTracker
from heat_seeker.robot.rover import ManualInput, OperatingMode, RobotState, SearchPattern
from heat_seeker.sensors.thermal_lidar import PerceptionSnapshot, ThermalLidar
from heat_seeker.utils import angle_diff, bearing, step_along

logger = logging.getLogger(__name__)

RESCUE_CATEGORIES = (HeatCategory.HUMAN, HeatCategory.ANIMAL)


class NavState(Enum):
    MANUAL = "manual"
    TARGET_LOCKED = "target-locked"
    ROTATION_SEARCH = "rotation-search"
    EXPLORING = "exploring"


@dataclass
class TickResult:
    """What one tick reports back to the caller."""
    x: float
    z: float
    heading: float
    state: NavState
    status: str
    coverage: float
    explored: float
    heat_detected: bool
    locked: bool
    targets_found: int


class HeatSearchSimulation:
    """Explicit simulation context: one rover searching one world."""

    def __init__(self, config: Optional[SimulationConfig] = None, world: Optional[World] = None,
                 clock=None, rng: Optional[np.random.Generator] = None):
        """
        Args:
            config: mutable configuration (defaults are the stock scenario)
            world: arena + targets; generated from the config when omitted
            clock: object with now() / tick(dt); a SimulatedClock by default
            rng: random generator shared by placement and random patrol
        """
        self.cfg = config if config is not None else SimulationConfig()
        self.rng = rng if rng is not None else np.random.default_rng(self.cfg.seed)
        self.clock = clock if clock is not None else SimulatedClock()
        self.world = world if world is not None else World.generate(self.cfg, self.rng)
        if self.world.arena.field_size != self.cfg.field_size:
            # Respawns and captures place targets from the config
            logger.info("Arena side %.0f overrides configured %.0f",
                        self.world.arena.field_size, self.cfg.field_size)
            self.cfg.field_size = self.world.arena.field_size

        self.manual_input = ManualInput()
        self.targets_found = 0
        self.tick_count = 0
        self.status = "SEARCHING"
        self.heat_detected = False
        self.coverage_history = []
        self._build(OperatingMode.AUTO, SearchPattern.GRID)

    def _build(self, mode: OperatingMode, pattern: SearchPattern):
        """(Re)create the components bound to the current world."""
        self.arena = self.world.arena
        sx, sz = self.world.spawn
        self.robot = RobotState.spawn(sx, sz, self.world.spawn_heading, mode=mode, pattern=pattern)
        self.lidar = ThermalLidar(self.cfg, self.clock)
        self.tracker = TargetTracker(self.cfg)
        self.motion = MotionController(self.cfg, self.arena)
        self.motion.resync(self.robot)
        self.planner = CoveragePlanner(self.cfg, self.arena, self.motion, self.rng)
        self.coverage_map = CoverageMap(self.arena.field_size, self.cfg.coverage_resolution,
                                        self.cfg.coverage_reveal_radius)
        self.no_path_counter = 0
        self.rotation_search = False
        self.rotation_target = 0.0
        self.rotation_last_eval = 0
        self._settle_pending = False
        self.planner.generate_mission_plan()

    # ================================================================
    #  Read-only views
    # ================================================================
    @property
    def snapshot(self) -> PerceptionSnapshot:
        return self.lidar.snapshot

    @property
    def nav_state(self) -> NavState:
        if self.robot.mode is OperatingMode.MANUAL:
            return NavState.MANUAL
        if self.tracker.locked:
            return NavState.TARGET_LOCKED
        if self.rotation_search:
            return NavState.ROTATION_SEARCH
        return NavState.EXPLORING

    @property
    def explored(self) -> float:
        return self.coverage_map.explored_percentage()

    @property
    def coverage(self) -> float:
        pattern = self.robot.pattern
        if pattern is SearchPattern.GRID:
            return float(self.planner.grid_progress)
        if pattern is SearchPattern.PERIMETER:
            return float(self.planner.perimeter_progress)
        return self.explored

    # ================================================================
    #  Main loop
    # ================================================================
    def tick(self) -> TickResult:
        """Advance the simulation by one step."""
        cfg = self.cfg
        state = self.robot
        self.clock.tick(cfg.tick_dt)
        self.tick_count += 1

        # --- sense ---
        scans_before = self.lidar.scans_performed
        self.heat_detected = self.lidar.scan(state, self.arena, self.world.target_list())
        if self.lidar.scans_performed != scans_before:
            self.coverage_map.mark_points(*self.lidar.last_sweep)
        snapshot = self.lidar.snapshot

        # --- arbitrate ---
        acquired = self.tracker.update(state, self.world, snapshot)
        if acquired is not None:
            self.status = TargetTracker.detection_status(*acquired)

        if self._settle_pending:
            # First tick after a reset only senses
            self._settle_pending = False
        else:
            if state.mode is not OperatingMode.MANUAL:
                self._update_no_path(snapshot)
            self._dispatch(snapshot)

        self.motion.smooth(state)
        state.record()
        self.coverage_history.append(self.coverage)
        return TickResult(
            x=state.x, z=state.z, heading=state.heading,
            state=self.nav_state, status=self.status,
            coverage=self.coverage, explored=self.explored,
            heat_detected=self.heat_detected, locked=self.tracker.locked,
            targets_found=self.targets_found,
        )

    def run(self, ticks: int) -> TickResult:
        result = None
        for _ in range(ticks):
            result = self.tick()
        return result

    def _dispatch(self, snapshot: PerceptionSnapshot):
        state = self.robot
        if state.mode is OperatingMode.MANUAL:
            self._step_manual()
            return

        target = self.tracker.locked_target(self.world)
        if target is not None:
            self._step_pursuit(target, snapshot)
        elif self.rotation_search:
            self._step_rotation(snapshot)
        else:
            self._collect_nearby()
            self._step_pattern(snapshot)

    # ================================================================
    #  No clear path -> rotation scan
    # ================================================================
    def _update_no_path(self, snapshot: PerceptionSnapshot):
        cfg = self.cfg
        if not snapshot.clear_directions:
            self.no_path_counter += 1
            if self.no_path_counter > cfg.no_path_threshold and not self.rotation_search:
                self.rotation_search = True
                self.rotation_target = self.robot.heading + cfg.rotation_step
                self.rotation_last_eval = self.tick_count
                self.status = "NO CLEAR PATH - ROTATING TO SCAN"
                logger.info("No clear path for %d ticks - rotation scan", self.no_path_counter)
        else:
            self.no_path_counter = 0
            if self.rotation_search:
                self.rotation_search = False
                self.status = "CLEAR PATH FOUND - RESUMING MOVEMENT"
                logger.info("Clear path found - leaving rotation scan")

    def _step_rotation(self, snapshot: PerceptionSnapshot):
        cfg = self.cfg
        state = self.robot
        error = angle_diff(state.heading, self.rotation_target)
        state.target_heading = state.heading + error * cfg.rotation_gain

        clear = snapshot.clear_directions
        settled = abs(error) < cfg.rotation_tolerance or len(clear) > cfg.rotation_exit_clear_count
        if settled and self.tick_count - self.rotation_last_eval >= cfg.rotation_dwell_ticks:
            self.rotation_last_eval = self.tick_count
            if clear:
                self.rotation_search = False
                self.status = "CLEAR PATH FOUND - RESUMING MOVEMENT"
                logger.info("Clear path found - leaving rotation scan")
            else:
                self.rotation_target += cfg.rotation_extension
                self.status = "CONTINUING ROTATION SCAN..."

    # ================================================================
    #  Targets
    # ================================================================
    def _step_pursuit(self, target: Target, snapshot: PerceptionSnapshot):
        cfg = self.cfg
        state = self.robot
        distance = target.distance_to(state.x, state.z)
        label = target.category.short_name

        if distance <= cfg.capture_radius:
            self._capture(target)
            self.tracker.clear()
            verb = "RESCUED" if target.category in RESCUE_CATEGORIES else "COLLECTED"
            self.status = f"{label} {verb}! RESUMING SEARCH"
            return

        multiplier = cfg.human_speed_multiplier if target.is_human else cfg.target_speed_multiplier
        step = cfg.robot_speed * multiplier
        to_target = bearing(state.x, state.z, target.x, target.z)

        heading = None
        if self.motion.emergency_maneuver:
            # Stuck: keep the lock, back out along an emergency exit
            heading = self.motion.best_available_direction(snapshot, state.heading)
        else:
            approach = snapshot.clear_toward(to_target, cfg.approach_tolerance)
            if approach is not None:
                heading = approach.angle
            elif not self.arena.is_blocked(*step_along(state.x, state.z, to_target, step)):
                heading = to_target
        if heading is None:
            heading = self.motion.best_available_direction(snapshot, state.heading, seek_heat=True)

        self.motion.command_step(state, heading, step)
        self.status = f"APPROACHING {label} - {distance:.1f}m"

    def _capture(self, target: Target):
        self.world.capture(target.target_id, self.cfg, (self.robot.x, self.robot.z))
        self.targets_found += 1
        logger.info("Captured %s #%d (total %d)", target.category.label,
                    target.target_id, self.targets_found)

    def _collect_nearby(self):
        state = self.robot
        for target in self.world.targets_within(state.x, state.z, self.cfg.capture_radius):
            self._capture(target)
        self.tracker.validate(self.world)

    # ================================================================
    #  Motion sources
    # ================================================================
    def _step_manual(self):
        cfg = self.cfg
        state = self.robot
        keys = self.manual_input
        heading = state.heading
        if keys.left:
            heading -= cfg.manual_turn_rate
        if keys.right:
            heading += cfg.manual_turn_rate
        state.target_heading = heading

        speed = cfg.robot_speed * cfg.manual_speed_multiplier
        dx, dz = step_along(0.0, 0.0, heading, speed)
        if keys.forward or keys.backward:
            sign = (1 if keys.forward else 0) - (1 if keys.backward else 0)
            self.motion.update_target_position(state, state.x + sign * dx, state.z + sign * dz)
        self._collect_nearby()
        self.status = "MANUAL CONTROL"

    def _step_pattern(self, snapshot: PerceptionSnapshot):
        state = self.robot
        pattern = state.pattern
        if pattern is SearchPattern.GRID:
            status = self.planner.step_grid(state, snapshot)
        elif pattern is SearchPattern.SPIRAL:
            status = self.planner.step_spiral(state, snapshot)
        elif pattern is SearchPattern.PERIMETER:
            status = self.planner.step_perimeter(state, snapshot)
        elif pattern is SearchPattern.RANDOM:
            status = self.planner.step_random(state, snapshot)
        else:
            raise ValueError(f"unknown search pattern {pattern!r}")
        if status is not None:
            self.status = status

    # ================================================================
    #  Operator commands
    # ================================================================
    def reset_pattern_states(self):
        """Drop lock, rotation, cursors and pending motion; safe to repeat."""
        self.tracker.clear()
        self.rotation_search = False
        self.rotation_target = 0.0
        self.rotation_last_eval = self.tick_count
        self.no_path_counter = 0
        self.planner.reset()
        self.lidar.reset()
        self.motion.resync(self.robot)
        self.status = "INITIALIZING"
        self._settle_pending = True

    def set_mode(self, mode: OperatingMode):
        self.robot.mode = mode
        self.manual_input.clear()
        self.reset_pattern_states()
        self.planner.generate_mission_plan()
        if mode is OperatingMode.MANUAL:
            self.status = "MANUAL CONTROL"
        else:
            self.status = "SEARCHING"
        logger.info("Mode -> %s", mode.value)

    def toggle_mode(self):
        self.set_mode(self.robot.mode.next())

    def set_pattern(self, pattern: SearchPattern):
        self.robot.pattern = pattern
        self.reset_pattern_states()
        self.planner.generate_mission_plan()
        logger.info("Pattern -> %s", pattern.value)

    def toggle_pattern(self):
        self.set_pattern(self.robot.pattern.next())

    def reset_simulation(self):
        """Rebuild world and components from the current configuration."""
        mode, pattern = self.robot.mode, self.robot.pattern
        self.world = World.generate(self.cfg, self.rng)
        self.targets_found = 0
        self.coverage_history = []
        self.status = "SEARCHING"
        self._build(mode, pattern)
        logger.info("Simulation reset (side %.0f)", self.cfg.field_size)

    def resize_arena(self, delta: float):
        self.cfg.field_size = max(20.0, self.cfg.field_size + delta)
        self.reset_simulation()

    def respawn_targets(self):
        self.world.respawn_targets(self.cfg, (self.robot.x, self.robot.z))
        self.tracker.validate(self.world)

    def respawn_obstacles(self):
        self.world.respawn_obstacles(self.cfg, (self.robot.x, self.robot.z))
        self.planner.generate_mission_plan()
