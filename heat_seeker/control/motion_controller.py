"""
Motion controller for the search rover.
Turns a desired heading / position into a collision-checked commanded
pose, exponentially smooths the actual pose toward it, and detects the
rover being stuck.
"""
import logging
from typing import Optional

import numpy as np

from heat_seeker.config import SimulationConfig
from heat_seeker.env.arena import Arena
from heat_seeker.robot.rover import OperatingMode, RobotState
from heat_seeker.sensors.thermal_lidar import PerceptionSnapshot
from heat_seeker.utils import angle_diff, clip_angle, step_along

logger = logging.getLogger(__name__)


class MotionController:
    """Pose smoothing with stuck detection and direction arbitration."""

    def __init__(self, cfg: SimulationConfig, arena: Arena):
        self.cfg = cfg
        self.arena = arena
        self.last_x = 0.0
        self.last_z = 0.0
        self.stuck_counter = 0
        self.emergency_maneuver = False

    # ------------------------------------------------------------------
    # Direction selection
    # ------------------------------------------------------------------
    def best_available_direction(self, snapshot: PerceptionSnapshot, heading: float,
                                 seek_heat: bool = False) -> float:
        """
        Resolve one bearing by descending priority.

        Args:
            snapshot: current perception snapshot
            heading: current robot heading (used for the fallback rotation)
            seek_heat: whether heat-bearing directions are eligible

        Returns:
            Bearing in radians
        """
        humans = snapshot.human_detections
        if humans:
            return humans[0].angle

        if seek_heat:
            heat = snapshot.heat_directions
            if heat:
                return heat[0].angle

        if self.emergency_maneuver:
            exits = snapshot.emergency_exits
            if exits:
                return exits[0].angle

        best = snapshot.best_paths
        if best:
            return best[0].angle

        clear = snapshot.clear_directions
        if clear:
            return clear[0].angle

        # No traversable direction: rotate a little and look again
        return heading + self.cfg.fallback_rotation

    # ------------------------------------------------------------------
    # Commanded pose
    # ------------------------------------------------------------------
    def update_target_position(self, state: RobotState, x: float, z: float,
                               heading: Optional[float] = None) -> bool:
        """Accept (x, z) only when it is not blocked; heading is always taken."""
        accepted = not self.arena.is_blocked(x, z)
        if accepted:
            state.target_x = x
            state.target_z = z
        if heading is not None:
            state.target_heading = heading
        return accepted

    def command_step(self, state: RobotState, heading: float, distance: float) -> bool:
        """Command a straight step of `distance` along `heading`."""
        nx, nz = step_along(state.x, state.z, heading, distance)
        return self.update_target_position(state, nx, nz, heading)

    # ------------------------------------------------------------------
    # Per-tick smoothing
    # ------------------------------------------------------------------
    def smooth(self, state: RobotState):
        """Stuck detection, then move the actual pose toward the commanded pose."""
        moved = float(np.hypot(state.x - self.last_x, state.z - self.last_z))

        if moved < self.cfg.stuck_epsilon and state.mode is not OperatingMode.MANUAL:
            self.stuck_counter += 1
            if self.stuck_counter > self.cfg.stuck_threshold:
                if not self.emergency_maneuver:
                    logger.info("Rover stuck for %d ticks - emergency maneuver engaged",
                                self.stuck_counter)
                self.emergency_maneuver = True
                self.stuck_counter = 0
        else:
            if self.emergency_maneuver:
                logger.info("Rover moving again - emergency maneuver cleared")
            self.stuck_counter = 0
            self.emergency_maneuver = False

        self.last_x, self.last_z = state.x, state.z

        k = self.cfg.smoothing_factor
        state.x += (state.target_x - state.x) * k
        state.z += (state.target_z - state.z) * k
        rot_diff = angle_diff(state.heading, state.target_heading)
        # Normalize angle to [-pi, pi]
        state.heading = clip_angle(state.heading + rot_diff * k)

    def resync(self, state: RobotState):
        """Drop pending motion: commanded pose := actual pose."""
        state.resync()
        self.last_x, self.last_z = state.x, state.z
        self.stuck_counter = 0
        self.emergency_maneuver = False
