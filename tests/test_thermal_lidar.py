import math

import numpy as np
import pytest

from heat_seeker.clock import SimulatedClock
from heat_seeker.config import SimulationConfig
from heat_seeker.env.arena import Arena
from heat_seeker.objects.heat_sources import HeatCategory, Obstacle, Target
from heat_seeker.robot.rover import RobotState
from heat_seeker.sensors.thermal_lidar import (
    DetectionOrder,
    PerceptionSnapshot,
    RayKind,
    RayRecord,
    ThermalLidar,
)


def center_record(snapshot):
    return min(snapshot.records, key=lambda r: abs(r.angle))


def scan_once(cfg, arena, targets, robot=None):
    lidar = ThermalLidar(cfg, SimulatedClock())
    robot = robot if robot is not None else RobotState.spawn(0.0, 0.0, 0.0)
    found = lidar.scan(robot, arena, targets)
    return lidar, found


def test_beam_fan_spans_fov_around_heading():
    cfg = SimulationConfig()
    lidar = ThermalLidar(cfg, SimulatedClock())
    angles = lidar.beam_angles(0.5)
    assert len(angles) == 140
    assert angles[0] == pytest.approx(0.5 - cfg.sensor_fov / 2)
    assert angles[-1] == pytest.approx(0.5 + cfg.sensor_fov / 2)

    single = ThermalLidar(cfg.replace(sensor_rays=1), SimulatedClock())
    assert single.beam_angles(0.5) == pytest.approx([0.5])


def test_open_field_rays_are_clear():
    cfg = SimulationConfig()
    lidar, found = scan_once(cfg, Arena(40.0), [])
    snap = lidar.snapshot
    assert not found
    assert len(snap.records) == 140
    assert len(snap.clear_directions) == 140
    assert snap.blocked_directions == []
    assert all(r.quality == pytest.approx(1.0) for r in snap.records)


def test_wall_and_obstacle_classification():
    cfg = SimulationConfig()
    robot = RobotState.spawn(0.0, 10.0, 0.0)
    lidar, _ = scan_once(cfg, Arena(40.0), [], robot)
    wall_ray = center_record(lidar.snapshot)
    assert wall_ray.kind is RayKind.WALL
    assert wall_ray.distance < 9.0

    arena = Arena(40.0, 1.0, [Obstacle(0.0, 6.0)])
    lidar, _ = scan_once(cfg, arena, [])
    hit = center_record(lidar.snapshot)
    assert hit.kind is RayKind.OBSTACLE
    assert hit.clear_distance < 3.5
    assert hit.quality == pytest.approx(hit.clear_distance / cfg.sensor_range)


def test_heat_and_human_flags():
    cfg = SimulationConfig()
    human = Target(7, 0.0, 10.0, HeatCategory.HUMAN)
    lidar, found = scan_once(cfg, Arena(40.0), [human])
    snap = lidar.snapshot
    assert found
    assert snap.detected_categories == [HeatCategory.HUMAN]
    ahead = center_record(snap)
    assert ahead.has_heat and ahead.has_human
    assert ahead.target_id == 7
    assert snap.human_detections

    fire = Target(8, 0.0, 10.0, HeatCategory.FIRE)
    lidar, _ = scan_once(cfg, Arena(40.0), [fire])
    assert lidar.snapshot.heat_directions
    assert lidar.snapshot.human_detections == []


def test_obstacle_hides_heat_unless_see_through():
    arena = Arena(40.0, 1.0, [Obstacle(0.0, 6.0)])
    target = Target(1, 0.0, 10.0, HeatCategory.HUMAN)

    lidar, found = scan_once(SimulationConfig(), arena, [target])
    assert not found
    assert lidar.snapshot.heat_directions == []

    lidar, found = scan_once(SimulationConfig(see_through_obstacles=True), arena, [target])
    assert found
    hit = center_record(lidar.snapshot)
    assert hit.has_human
    assert hit.kind is RayKind.OBSTACLE


def test_close_targets_are_sensed_without_rays():
    behind = Target(2, 0.0, -6.0, HeatCategory.VEHICLE)
    lidar, found = scan_once(SimulationConfig(), Arena(40.0), [behind])
    assert found
    assert lidar.snapshot.detected_categories == [HeatCategory.VEHICLE]
    assert lidar.snapshot.heat_directions == []


def test_buckets_are_ordered_and_nested():
    arena = Arena(40.0, 1.0, [Obstacle(4.0, 8.0), Obstacle(-6.0, 5.0, radius=1.5)])
    lidar, _ = scan_once(SimulationConfig(), arena, [])
    snap = lidar.snapshot

    clear = snap.clear_directions
    qualities = [r.quality for r in clear]
    assert qualities == sorted(qualities, reverse=True)
    best = {r.index for r in snap.best_paths}
    exits = {r.index for r in snap.emergency_exits}
    assert exits <= best <= {r.index for r in clear}
    assert all(r.clear_distance > 0.6 * 15.0 for r in snap.best_paths)
    assert len(clear) + len(snap.blocked_directions) == len(snap.records)


def test_detection_order_policy():
    records = [
        RayRecord(0, -0.1, 3.0, 3.0, RayKind.CLEAR, has_heat=True),
        RayRecord(1, 0.0, 9.0, 9.0, RayKind.CLEAR, has_heat=True, has_human=True),
        RayRecord(2, 0.1, 6.0, 6.0, RayKind.CLEAR, has_heat=True, has_human=True),
    ]
    farthest = PerceptionSnapshot(records=records)
    assert [r.distance for r in farthest.heat_directions] == [9.0, 6.0, 3.0]
    assert [r.distance for r in farthest.human_detections] == [9.0, 6.0]

    nearest = PerceptionSnapshot(records=records, heat_order=DetectionOrder.NEAREST_FIRST)
    assert [r.distance for r in nearest.heat_directions] == [3.0, 6.0, 9.0]


def test_rate_limiter_returns_previous_flag():
    cfg = SimulationConfig()
    clock = SimulatedClock()
    lidar = ThermalLidar(cfg, clock)
    robot = RobotState.spawn(0.0, 0.0, 0.0)
    arena = Arena(40.0)
    target = Target(1, 0.0, 10.0, HeatCategory.HUMAN)

    assert lidar.scan(robot, arena, [target])
    first = lidar.snapshot
    clock.advance(0.03)
    # Target gone, but the scan is skipped
    assert lidar.scan(robot, arena, [])
    assert lidar.snapshot is first
    assert lidar.scans_performed == 1

    clock.advance(0.04)
    assert not lidar.scan(robot, arena, [])
    assert lidar.scans_performed == 2


def test_clear_toward_prefers_alignment_then_quality():
    records = [
        RayRecord(0, -0.6, 15.0, 15.0, RayKind.CLEAR, quality=1.0),
        RayRecord(1, 0.0, 13.0, 13.0, RayKind.CLEAR, quality=13.0 / 15.0),
        RayRecord(2, 0.9, 15.0, 15.0, RayKind.CLEAR, quality=1.0),
        RayRecord(3, 0.3, 6.0, 6.0, RayKind.CLEAR, quality=0.4),
        RayRecord(4, 0.3, 15.0, 15.0, RayKind.CLEAR, quality=1.0),
        RayRecord(5, 0.1, 2.0, 2.0, RayKind.OBSTACLE, quality=2.0 / 15.0),
    ]
    snap = PerceptionSnapshot(records=records)
    # A slightly shorter ray on the bearing beats a longer one 0.9 rad off
    assert snap.clear_toward(0.0, math.pi / 3).index == 1
    # Same angle: the longer ray wins
    assert snap.clear_toward(0.3, math.pi / 2).index == 4
    assert snap.clear_toward(0.0, math.pi / 3, min_clearance=14.0).index == 4
    assert snap.clear_toward(0.0, math.pi / 3, min_clearance=15.0) is None
    assert snap.clear_toward(-2.5, math.pi / 4) is None
    assert snap.clear_toward(math.pi - 0.1, 0.5) is None
