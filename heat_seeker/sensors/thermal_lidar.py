"""
Thermal lidar: a fixed-FOV fan of range-limited rays.
Each ray is marched in fixed steps against the arena (walls, obstacles)
and the heat targets, and yields one classified RayRecord. The derived
direction buckets are recomputed from the record sequence on every access.
"""
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, List, Optional, Tuple

import numpy as np

from heat_seeker.config import SimulationConfig
from heat_seeker.env.arena import Arena
from heat_seeker.objects.heat_sources import HeatCategory, Target
from heat_seeker.utils import angle_diff

logger = logging.getLogger(__name__)


class RayKind(Enum):
    CLEAR = "clear"
    WALL = "wall"
    OBSTACLE = "obstacle"


class DetectionOrder(Enum):
    """How heat- and human-bearing directions are ranked."""
    FARTHEST_FIRST = "farthest"
    NEAREST_FIRST = "nearest"


@dataclass(frozen=True)
class RayRecord:
    index: int
    angle: float
    distance: float          # range of the last processed sample
    clear_distance: float    # longest unobstructed range
    kind: RayKind
    has_heat: bool = False
    has_human: bool = False
    target_id: Optional[int] = None
    quality: float = 0.0     # clear_distance / max range


@dataclass
class PerceptionSnapshot:
    """One tick's perception: ordered ray records plus derived views."""
    records: List[RayRecord] = field(default_factory=list)
    heat_found: bool = False
    detected_categories: List[HeatCategory] = field(default_factory=list)
    max_range: float = 15.0
    best_path_ratio: float = 0.6
    emergency_exit_ratio: float = 0.8
    heat_order: DetectionOrder = DetectionOrder.FARTHEST_FIRST

    # --- derived buckets (never cached) ---
    @property
    def clear_directions(self) -> List[RayRecord]:
        return _by_quality(r for r in self.records if r.kind is RayKind.CLEAR)

    @property
    def blocked_directions(self) -> List[RayRecord]:
        return [r for r in self.records if r.kind is not RayKind.CLEAR]

    @property
    def best_paths(self) -> List[RayRecord]:
        limit = self.max_range * self.best_path_ratio
        return _by_quality(r for r in self.records
                           if r.kind is RayKind.CLEAR and r.clear_distance > limit)

    @property
    def emergency_exits(self) -> List[RayRecord]:
        limit = self.max_range * self.emergency_exit_ratio
        return _by_quality(r for r in self.records
                           if r.kind is RayKind.CLEAR and r.clear_distance > limit)

    @property
    def heat_directions(self) -> List[RayRecord]:
        return self._by_detection_order(r for r in self.records if r.has_heat)

    @property
    def human_detections(self) -> List[RayRecord]:
        return self._by_detection_order(r for r in self.records if r.has_human)

    def clear_toward(self, angle: float, tolerance: float,
                     min_clearance: float = 0.0) -> Optional[RayRecord]:
        """
        Best clear record within `tolerance` of `angle`.

        Smallest angular error wins; equal error goes to the higher quality.
        Returns None when no clear record qualifies.
        """
        best, best_key = None, None
        for record in self.clear_directions:
            error = abs(angle_diff(record.angle, angle))
            if error >= tolerance or record.clear_distance <= min_clearance:
                continue
            key = (error, -record.quality)
            if best_key is None or key < best_key:
                best, best_key = record, key
        return best

    def _by_detection_order(self, records: Iterable[RayRecord]) -> List[RayRecord]:
        farthest = self.heat_order is DetectionOrder.FARTHEST_FIRST
        return sorted(records, key=lambda r: r.distance, reverse=farthest)


def _by_quality(records: Iterable[RayRecord]) -> List[RayRecord]:
    return sorted(records, key=lambda r: r.quality, reverse=True)


class ThermalLidar:
    """Ray-marching heat scanner with a minimum-interval rate limiter."""

    def __init__(self, cfg: SimulationConfig, clock):
        """
        Initialize scanner.

        Args:
            cfg: simulation configuration (read on every scan, so UI edits
                 to fov / ray count / range apply on the next scan)
            clock: object exposing now() in seconds
        """
        self.cfg = cfg
        self.clock = clock
        self.last_scan_time: Optional[float] = None
        self.scans_performed = 0
        self.snapshot = self._empty_snapshot()
        # processed sample points of the last executed scan, for coverage
        self.last_sweep: Tuple[np.ndarray, np.ndarray] = (np.empty(0), np.empty(0))

    def reset(self):
        self.last_scan_time = None
        self.snapshot = self._empty_snapshot()
        self.last_sweep = (np.empty(0), np.empty(0))

    def beam_angles(self, heading: float) -> np.ndarray:
        n = self.cfg.sensor_rays
        if n == 1:
            return np.array([heading])
        fov = self.cfg.sensor_fov
        return heading - fov / 2 + (np.arange(n) / (n - 1)) * fov

    def sample_ranges(self) -> np.ndarray:
        count = int(np.floor(self.cfg.sensor_range / self.cfg.ray_step + 1e-9))
        return np.arange(1, count + 1) * self.cfg.ray_step

    def scan(self, robot, arena: Arena, targets: List[Target]) -> bool:
        """
        Cast the ray fan from the robot pose.

        Args:
            robot: RobotState (x, z, heading)
            arena: Arena for wall / obstacle tests
            targets: live heat targets

        Returns:
            heat detection flag; unchanged from the previous scan when the
            call falls inside the minimum scan interval
        """
        now = self.clock.now()
        if self.last_scan_time is not None and now - self.last_scan_time < self.cfg.scan_interval:
            return self.snapshot.heat_found
        self.last_scan_time = now
        self.scans_performed += 1

        cfg = self.cfg
        angles = self.beam_angles(robot.heading)
        radii = self.sample_ranges()
        n_samples = len(radii)

        xs = robot.x + np.sin(angles)[:, None] * radii[None, :]
        zs = robot.z + np.cos(angles)[:, None] * radii[None, :]

        wall = arena.wall_mask(xs, zs)
        obstacle = arena.obstacle_mask(xs, zs)
        first_wall = _first_true(wall, n_samples)
        first_obstacle = _first_true(obstacle, n_samples)

        hit_obstacle = first_obstacle < first_wall
        if cfg.see_through_obstacles:
            end = first_wall
            hit_wall = first_wall < n_samples
        else:
            end = np.minimum(first_wall, first_obstacle)
            hit_wall = (first_wall < n_samples) & (first_wall <= first_obstacle)
        clear_end = np.minimum(first_wall, first_obstacle)
        processed = np.arange(n_samples)[None, :] < end[:, None]

        has_heat = np.zeros(len(angles), dtype=bool)
        has_human = np.zeros(len(angles), dtype=bool)
        last_hit = np.full(len(angles), -1)
        hit_target = np.full(len(angles), -1)
        detected = set()
        for target in targets:
            near = (np.hypot(xs - target.x, zs - target.z) < cfg.heat_detection_radius) & processed
            rays_hit = near.any(axis=1)
            if not rays_hit.any():
                continue
            detected.add(target.category)
            has_heat |= rays_hit
            if target.is_human:
                has_human |= rays_hit
            farthest_idx = np.where(near, np.arange(n_samples)[None, :], -1).max(axis=1)
            newer = rays_hit & (farthest_idx >= last_hit)
            last_hit = np.where(newer, farthest_idx, last_hit)
            hit_target = np.where(newer, target.target_id, hit_target)

        records = []
        for i, angle in enumerate(angles):
            distance = float(radii[end[i] - 1]) if end[i] > 0 else 0.0
            clear_distance = float(radii[clear_end[i] - 1]) if clear_end[i] > 0 else 0.0
            if hit_wall[i]:
                kind = RayKind.WALL
            elif hit_obstacle[i]:
                kind = RayKind.OBSTACLE
            else:
                kind = RayKind.CLEAR
            records.append(RayRecord(
                index=i,
                angle=float(angle),
                distance=distance,
                clear_distance=clear_distance,
                kind=kind,
                has_heat=bool(has_heat[i]),
                has_human=bool(has_human[i]),
                target_id=int(hit_target[i]) if hit_target[i] >= 0 else None,
                quality=clear_distance / cfg.sensor_range,
            ))

        # Close-range heat is always sensed, independent of the rays
        heat_found = bool(has_heat.any())
        for target in targets:
            if target.distance_to(robot.x, robot.z) < cfg.proximity_heat_range:
                heat_found = True
                detected.add(target.category)

        self.snapshot = PerceptionSnapshot(
            records=records,
            heat_found=heat_found,
            detected_categories=sorted(detected, key=lambda c: c.rank),
            max_range=cfg.sensor_range,
            best_path_ratio=cfg.best_path_ratio,
            emergency_exit_ratio=cfg.emergency_exit_ratio,
            heat_order=DetectionOrder(cfg.heat_order),
        )
        self.last_sweep = (xs[processed], zs[processed])
        logger.debug("Scan #%d: %d clear / %d blocked rays, heat=%s",
                     self.scans_performed, len(self.snapshot.clear_directions),
                     len(self.snapshot.blocked_directions), heat_found)
        return heat_found

    def _empty_snapshot(self) -> PerceptionSnapshot:
        return PerceptionSnapshot(
            max_range=self.cfg.sensor_range,
            best_path_ratio=self.cfg.best_path_ratio,
            emergency_exit_ratio=self.cfg.emergency_exit_ratio,
            heat_order=DetectionOrder(self.cfg.heat_order),
        )


def _first_true(mask: np.ndarray, default: int) -> np.ndarray:
    """Index of the first True per row, `default` where a row has none."""
    return np.where(mask.any(axis=1), mask.argmax(axis=1), default)
