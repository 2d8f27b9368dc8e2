"""
Priority target arbitration with lock-on hysteresis.
Decides which heat target (if any) the rover commits to pursuing.
"""
import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

from heat_seeker.config import SimulationConfig
from heat_seeker.objects.heat_sources import Target
from heat_seeker.robot.rover import OperatingMode, RobotState
from heat_seeker.sensors.thermal_lidar import PerceptionSnapshot
from heat_seeker.utils import angle_diff, bearing

logger = logging.getLogger(__name__)


@dataclass
class LockState:
    """Retained target id plus the lock flag."""
    target_id: Optional[int] = None
    locked: bool = False


@dataclass
class Candidate:
    target: Target
    distance: float


class TargetTracker:
    """Visibility test, candidate selection and lock acquisition."""

    def __init__(self, cfg: SimulationConfig):
        self.cfg = cfg
        self.lock = LockState()
        self.last_candidate: Optional[Candidate] = None

    # ================================================================
    #  Lock bookkeeping
    # ================================================================
    @property
    def locked(self) -> bool:
        return self.lock.locked

    def locked_target(self, world) -> Optional[Target]:
        if not self.lock.locked:
            return None
        return world.get_target(self.lock.target_id)

    def validate(self, world):
        """Clear the lock when its target has left the world."""
        if self.lock.target_id is not None and world.get_target(self.lock.target_id) is None:
            logger.info("Target #%d no longer exists - clearing lock", self.lock.target_id)
            self.clear()

    def clear(self):
        self.lock = LockState()

    # ================================================================
    #  Visibility / candidate
    # ================================================================
    def is_visible(self, target: Target, distance: float, robot: RobotState,
                   snapshot: PerceptionSnapshot) -> bool:
        if distance < self.cfg.always_detect_radius:
            return True
        to_target = bearing(robot.x, robot.z, target.x, target.z)
        for record in snapshot.human_detections + snapshot.heat_directions:
            if abs(angle_diff(record.angle, to_target)) < self.cfg.bearing_tolerance:
                return True
        return False

    def visible_targets(self, robot: RobotState, targets: List[Target],
                        snapshot: PerceptionSnapshot) -> List[Candidate]:
        visible = []
        for target in targets:
            distance = target.distance_to(robot.x, robot.z)
            if distance > self.cfg.detection_range:
                continue
            if self.is_visible(target, distance, robot, snapshot):
                visible.append(Candidate(target, distance))
        return visible

    def select_candidate(self, visible: List[Candidate]) -> Optional[Candidate]:
        """Top-priority category first, nearer distance within a category."""
        if not visible:
            return None
        return min(visible, key=lambda c: (c.target.category.rank, c.distance))

    def should_acquire(self, candidate: Candidate, current: Optional[Candidate]) -> bool:
        """
        Decide whether `candidate` replaces the retained target.

        Args:
            candidate: best visible target this tick
            current: the retained target with its current distance, if any

        Returns:
            True to (re)acquire the lock on the candidate
        """
        if current is None:
            return True
        if candidate.target.target_id == current.target.target_id:
            return True
        if candidate.target.category.outranks(current.target.category):
            return True
        if candidate.target.category is current.target.category:
            return current.distance - candidate.distance > self.cfg.lock_margin
        return False

    # ================================================================
    #  Per-tick update
    # ================================================================
    def update(self, robot: RobotState, world,
               snapshot: PerceptionSnapshot) -> Optional[Tuple[Target, float]]:
        """
        Run arbitration for this tick.

        Args:
            robot: current robot state
            world: World holding the live targets
            snapshot: this tick's perception

        Returns:
            (target, distance) when a lock was newly acquired this tick
        """
        self.validate(world)
        if robot.mode is OperatingMode.MANUAL:
            self.last_candidate = None
            return None

        candidate = self.select_candidate(
            self.visible_targets(robot, world.target_list(), snapshot))
        self.last_candidate = candidate
        if candidate is None:
            return None

        retained = world.get_target(self.lock.target_id)
        current = None
        if retained is not None:
            current = Candidate(retained, retained.distance_to(robot.x, robot.z))

        if self.lock.locked:
            # Lock stability: only a strictly higher priority preempts
            if not candidate.target.category.outranks(current.target.category):
                return None
        elif not self.should_acquire(candidate, current):
            return None

        self.lock = LockState(target_id=candidate.target.target_id, locked=True)
        logger.info("Locked on %s #%d at %.1fm", candidate.target.category.label,
                    candidate.target.target_id, candidate.distance)
        return candidate.target, candidate.distance

    @staticmethod
    def detection_status(target: Target, distance: float) -> str:
        return f"{target.category.short_name} DETECTED! DISTANCE: {distance:.1f}m"
